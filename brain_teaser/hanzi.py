"""Chinese character extraction."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brain_teaser.models import QuestionRecord

# CJK Unified Ideographs block only; punctuation and full-width symbols fall outside it.
_HANZI = re.compile(r"[\u4e00-\u9fff]")


def is_hanzi(ch: str) -> bool:
    return bool(_HANZI.fullmatch(ch))


def extract_chinese_chars(text: str) -> list[str]:
    """Distinct ideographs in *text*, ordered by first occurrence."""
    return list(dict.fromkeys(_HANZI.findall(text or "")))


def record_chars(record: QuestionRecord) -> list[str]:
    """Distinct ideographs across a record's prompt and all of its options."""
    return extract_chinese_chars("".join(record.texts()))
