"""Flat-file persistence: every write is a full, pretty-printed rewrite."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from brain_teaser.models import QuestionRecord

log = logging.getLogger("brain_teaser.store")


def load_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def save_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def load_records(path: Path) -> list[QuestionRecord]:
    """Read the whole record store. A missing store raises FileNotFoundError."""
    if not path.exists():
        raise FileNotFoundError(f"Question store not found: {path}")
    data = load_json(path)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of questions")
    records = [QuestionRecord.from_dict(d) for d in data]
    log.debug("Loaded %d records from %s", len(records), path)
    return records


def save_records(path: Path, records: list[QuestionRecord]) -> None:
    save_json(path, [r.to_dict() for r in records])
