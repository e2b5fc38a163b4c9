"""Persistent character → readings dictionary.

Each character maps to an ordered list of distinct readings (pinyin plus
mnemonic phrase). One reading means the character can be filled in from the
dictionary alone; two or more mark it ambiguous, and every occurrence has to
be disambiguated in context.

Readings are only ever appended, never removed, so the dictionary grows
monotonically across runs.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from brain_teaser.models import ReadingEntry
from brain_teaser.store import load_json, save_json

if TYPE_CHECKING:
    from brain_teaser.models import QuestionRecord

log = logging.getLogger("brain_teaser.dict")


class ReadingDictionary:
    def __init__(self, path: Path, entries: dict[str, list[ReadingEntry]] | None = None):
        self.path = path
        self.entries: dict[str, list[ReadingEntry]] = entries or {}

    @classmethod
    def load(cls, path: Path) -> ReadingDictionary:
        """Load from *path*. A missing or unreadable file is a cold start."""
        if not path.exists():
            log.info("No dictionary at %s — cold start", path)
            return cls(path)
        try:
            raw = load_json(path)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("Could not read dictionary %s (%s) — cold start", path, e)
            return cls(path)

        d = cls(path)
        for char, readings in raw.items():
            if not isinstance(readings, list):
                continue
            for r in readings:
                if isinstance(r, dict) and r.get("pinyin") and r.get("ttsText"):
                    d.add_reading(char, r["pinyin"], r["ttsText"])
        return d

    def save(self) -> None:
        save_json(self.path, {
            char: [{"pinyin": r.pinyin, "ttsText": r.tts_text} for r in readings]
            for char, readings in self.entries.items()
        })

    def add_reading(self, char: str, pinyin: str, tts_text: str) -> bool:
        """Append a reading unless one with the same pinyin is already known.

        A mnemonic phrase that does not contain *char* is refused.
        """
        if char not in tts_text:
            log.warning("Ignoring reading for %s: %r does not contain the character", char, tts_text)
            return False
        readings = self.entries.setdefault(char, [])
        if any(r.pinyin == pinyin for r in readings):
            return False
        readings.append(ReadingEntry(pinyin=pinyin, tts_text=tts_text))
        return True

    def ingest_from_records(self, records: list[QuestionRecord]) -> int:
        """Add every settled reading found in *records*. Returns the number added."""
        added = 0
        for rec in records:
            if not rec.pronunciation:
                continue
            for char, info in rec.pronunciation.items():
                if not info.pinyin or not info.tts_text:
                    continue
                if self.add_reading(char, info.pinyin, info.tts_text):
                    added += 1
        return added

    def lookup(self, char: str) -> list[ReadingEntry]:
        return self.entries.get(char, [])

    def is_ambiguous(self, char: str) -> bool:
        return len(self.lookup(char)) > 1

    def sole_reading(self, char: str) -> ReadingEntry | None:
        """The reading to use without context, or None if absent or ambiguous."""
        readings = self.lookup(char)
        return readings[0] if len(readings) == 1 else None

    @property
    def ambiguous_count(self) -> int:
        return sum(1 for r in self.entries.values() if len(r) > 1)

    def __contains__(self, char: str) -> bool:
        return char in self.entries

    def __len__(self) -> int:
        return len(self.entries)
