"""Content-addressed pronunciation audio.

Every mnemonic phrase is hashed to a short hex name; the artifact for a
phrase is ``<hash>.mp3`` in the audio directory. An existing file is never
regenerated, and every record entry whose phrase maps to that hash points at
the same file.
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from brain_teaser.models import AudioJob, AudioRef
from brain_teaser.providers.base import RateLimitError
from brain_teaser.runner import run_pool

if TYPE_CHECKING:
    from brain_teaser.models import QuestionRecord
    from brain_teaser.providers.base import TTSProvider

log = logging.getLogger("brain_teaser.audio")


def text_hash(text: str, length: int = 12) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()[:length]


def audio_filename(text: str, length: int = 12) -> str:
    return f"{text_hash(text, length)}.mp3"


def audio_exists(audio_dir: Path, filename: str) -> bool:
    return (audio_dir / filename).is_file()


def ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


def collect_audio_jobs(
    records: list[QuestionRecord], hash_length: int = 12,
) -> tuple[list[AudioJob], list[AudioJob]]:
    """Group every mnemonic phrase in *records* into one job per distinct text.

    Returns ``(jobs, collisions)``. A collision is a second, different text
    whose truncated hash is already taken; it gets no artifact so that two
    phrases never share one file.
    """
    by_hash: dict[str, AudioJob] = {}
    collisions: dict[str, AudioJob] = {}
    for qi, rec in enumerate(records):
        for char, info in (rec.pronunciation or {}).items():
            if not info.tts_text:
                continue
            h = text_hash(info.tts_text, hash_length)
            job = by_hash.get(h)
            if job is None:
                job = by_hash[h] = AudioJob(content_hash=h, text=info.tts_text)
            elif job.text != info.tts_text:
                log.error("Hash collision on %s: %r vs %r", h, job.text, info.tts_text)
                job = collisions.setdefault(info.tts_text, AudioJob(content_hash=h, text=info.tts_text))
            job.refs.append(AudioRef(record_index=qi, char=char))
    return list(by_hash.values()), list(collisions.values())


def _wire(records: list[QuestionRecord], job: AudioJob, filename: str | None) -> None:
    for ref in job.refs:
        records[ref.record_index].pronunciation[ref.char].audio_file = filename


async def synthesize_with_retry(
    tts: TTSProvider,
    text: str,
    max_retries: int = 5,
    base_delay: float = 6.0,
) -> bytes:
    """Call the provider, backing off exponentially on rate limits only."""
    attempt = 0
    while True:
        try:
            return await tts.synthesize(text)
        except RateLimitError as e:
            if attempt >= max_retries:
                raise
            delay = base_delay * (2 ** attempt)
            attempt += 1
            log.info("  Rate limited (%s), retry %d/%d in %.0fs", e, attempt, max_retries, delay)
            await asyncio.sleep(delay)


async def transcode_to_mp3(raw: bytes, output_path: Path, bitrate: str = "64k") -> None:
    """Encode *raw* audio as mono MP3 at *bitrate* into *output_path* via ffmpeg."""
    tmp_in = output_path.with_name(output_path.name + ".tmp.wav")
    tmp_in.write_bytes(raw)
    try:
        proc = await asyncio.create_subprocess_exec(
            "ffmpeg", "-y", "-i", str(tmp_in),
            "-codec:a", "libmp3lame", "-b:a", bitrate, "-ac", "1",
            str(output_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            output_path.unlink(missing_ok=True)
            tail = stderr.decode(errors="replace").strip().splitlines()[-1:] or [""]
            raise RuntimeError(f"ffmpeg failed with code {proc.returncode}: {tail[0]}")
    finally:
        tmp_in.unlink(missing_ok=True)


async def write_artifact(raw: bytes, path: Path, transcode: bool, bitrate: str = "64k") -> int:
    """Finalize *raw* audio at *path* and return the stored size.

    Writes to a temporary sibling and renames, so a file that exists under
    its final name is always complete. Without ffmpeg the raw bytes are
    stored as-is under the ``.mp3`` name.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    part = path.with_name(path.name + ".part.mp3")
    try:
        if transcode:
            await transcode_to_mp3(raw, part, bitrate)
        else:
            part.write_bytes(raw)
        part.replace(path)
    finally:
        part.unlink(missing_ok=True)
    return path.stat().st_size


@dataclass
class AudioSummary:
    unique_texts: int = 0
    existing: int = 0
    generated: int = 0
    errors: int = 0
    collisions: int = 0
    bytes_before: int = 0
    bytes_after: int = 0
    transcoded: bool = False
    failed: list[str] = field(default_factory=list)


async def generate_audio(
    tts: TTSProvider,
    records: list[QuestionRecord],
    audio_dir: Path,
    hash_length: int = 12,
    concurrency: int = 5,
    checkpoint_every: int = 20,
    on_checkpoint: Callable[[int], None] | None = None,
    delay: float = 0.0,
    max_retries: int = 5,
    retry_base_delay: float = 6.0,
    transcode: bool | None = None,
    bitrate: str = "64k",
) -> AudioSummary:
    """Synthesize every missing artifact and wire ``audio_file`` into *records*."""
    if transcode is None:
        transcode = ffmpeg_available()
    audio_dir.mkdir(parents=True, exist_ok=True)

    jobs, collisions = collect_audio_jobs(records, hash_length)
    summary = AudioSummary(unique_texts=len(jobs), collisions=len(collisions), transcoded=transcode)
    for job in collisions:
        _wire(records, job, None)

    to_process: list[AudioJob] = []
    for job in jobs:
        if audio_exists(audio_dir, job.filename):
            _wire(records, job, job.filename)
            summary.existing += 1
        else:
            to_process.append(job)

    log.info("%d unique texts, %d existing, %d to generate (%s)",
             len(jobs), summary.existing, len(to_process),
             "ffmpeg → mp3" if transcode else "no ffmpeg, storing raw bytes")

    total = len(to_process)

    def make_job(job: AudioJob):
        async def run() -> bool:
            try:
                raw = await synthesize_with_retry(tts, job.text, max_retries, retry_base_delay)
                size = await write_artifact(raw, audio_dir / job.filename, transcode, bitrate)
            except Exception as e:
                summary.errors += 1
                summary.failed.append(job.text)
                _wire(records, job, None)
                log.error("[%d/%d] ERROR %r: %s",
                          summary.generated + summary.errors, total, job.text, e)
                return False
            summary.generated += 1
            summary.bytes_before += len(raw)
            summary.bytes_after += size
            _wire(records, job, job.filename)
            log.info("[%d/%d] %r → %s (%d bytes)",
                     summary.generated + summary.errors, total, job.text, job.filename, size)
            return True
        return run

    await run_pool(
        [make_job(j) for j in to_process],
        concurrency=concurrency,
        checkpoint_every=checkpoint_every,
        on_checkpoint=on_checkpoint,
        delay=delay,
    )
    return summary


@dataclass
class ConvertSummary:
    converted: int = 0
    errors: int = 0
    bytes_before: int = 0
    bytes_after: int = 0


async def convert_existing(audio_dir: Path, bitrate: str = "64k") -> ConvertSummary:
    """Re-encode every ``.mp3`` under *audio_dir* in place (fixes raw WAV stored as .mp3)."""
    summary = ConvertSummary()
    files = sorted(p for p in audio_dir.rglob("*.mp3") if not p.name.endswith((".part.mp3", ".tmp.mp3")))
    log.info("Converting %d files", len(files))
    for i, path in enumerate(files, 1):
        try:
            before = path.stat().st_size
            after = await write_artifact(path.read_bytes(), path, transcode=True, bitrate=bitrate)
        except Exception as e:
            summary.errors += 1
            log.error("ERROR %s: %s", path.name, str(e).split("\n")[0])
            continue
        summary.converted += 1
        summary.bytes_before += before
        summary.bytes_after += after
        if i % 200 == 0 or i == len(files):
            log.info("[%d/%d] %s: %d → %d bytes", i, len(files), path.name, before, after)
    return summary
