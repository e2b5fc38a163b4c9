"""Consistency checks and resets for the question bank and audio store."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from brain_teaser.feedback import FEEDBACK_SUBDIR

if TYPE_CHECKING:
    from brain_teaser.models import QuestionRecord

log = logging.getLogger("brain_teaser.maintenance")


@dataclass
class MissingAudio:
    file: str
    source: str      # "q<id>" or "feedback"
    char: str | None
    text: str | None


@dataclass
class AudioReport:
    entries: int = 0
    with_audio: int = 0
    without_audio: int = 0
    records_without_pronunciation: int = 0
    referenced: int = 0
    on_disk: int = 0
    feedback_referenced: int = 0
    missing: list[MissingAudio] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


def check_audio(
    records: list[QuestionRecord],
    audio_dir: Path,
    feedback_mapping: dict[str, str] | None = None,
) -> AudioReport:
    """Compare audio references against the files actually in *audio_dir*."""
    report = AudioReport()
    refs: dict[str, MissingAudio] = {}

    for rec in records:
        if not rec.pronunciation:
            report.records_without_pronunciation += 1
            continue
        for char, info in rec.pronunciation.items():
            report.entries += 1
            if not info.audio_file:
                report.without_audio += 1
                continue
            report.with_audio += 1
            refs.setdefault(info.audio_file, MissingAudio(info.audio_file, f"q{rec.id}", char, info.tts_text))

    feedback_refs = {ref: MissingAudio(ref, "feedback", None, text)
                     for text, ref in (feedback_mapping or {}).items()}
    report.referenced = len(refs)
    report.feedback_referenced = len(feedback_refs)

    for ref, where in list(refs.items()) + list(feedback_refs.items()):
        if not (audio_dir / ref).is_file():
            report.missing.append(where)

    disk = sorted(p.name for p in audio_dir.glob("*.mp3")) if audio_dir.is_dir() else []
    report.on_disk = len(disk)
    report.orphaned = [f for f in disk if f not in refs]
    fb_dir = audio_dir / FEEDBACK_SUBDIR
    if fb_dir.is_dir():
        report.orphaned += [
            f"{FEEDBACK_SUBDIR}/{p.name}" for p in sorted(fb_dir.glob("*.mp3"))
            if f"{FEEDBACK_SUBDIR}/{p.name}" not in feedback_refs
        ]
    return report


@dataclass
class ResetSummary:
    removed_tts: int = 0
    removed_audio: int = 0
    deleted_files: int = 0
    dict_deleted: bool = False


def reset_audio(records: list[QuestionRecord], audio_dir: Path, dict_path: Path) -> ResetSummary:
    """Drop every mnemonic phrase and audio reference, the audio files, and the dictionary.

    Feedback audio in its subdirectory is left alone.
    """
    summary = ResetSummary()
    for rec in records:
        for info in (rec.pronunciation or {}).values():
            if info.tts_text is not None:
                info.tts_text = None
                summary.removed_tts += 1
            if info.audio_file is not None:
                info.audio_file = None
                summary.removed_audio += 1

    if audio_dir.is_dir():
        for p in audio_dir.glob("*.mp3"):
            p.unlink()
            summary.deleted_files += 1

    if dict_path.exists():
        dict_path.unlink()
        summary.dict_deleted = True
    log.info("Reset: %d ttsText, %d audioFile, %d files", summary.removed_tts,
             summary.removed_audio, summary.deleted_files)
    return summary
