"""Import raw brain teasers from ``data.txt`` into the question bank.

Each line looks like ``0001—题目 答案：答案``. New questions are sent to the
LLM in batches; it drops anything unsuitable for children and writes three
short options (one correct) for the rest.
"""
from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from brain_teaser.llm_json import extract_json
from brain_teaser.models import Option, QuestionRecord
from brain_teaser.prompts import IMPORT_PROMPT, format_import_items
from brain_teaser.runner import run_pool

if TYPE_CHECKING:
    from brain_teaser.providers.base import LLMProvider

_log = logging.getLogger("brain_teaser.import")

_LINE = re.compile(r"^(\d+)—(.+?)\s*答案[：:](.+)$")
_NOISE = re.compile(r"[？?！!。，,\s]")

QUESTION_TYPES = ("logic", "math", "animal", "daily")
OPTION_COUNT = 3


@dataclass
class RawQuestion:
    raw_id: int
    question: str
    answer: str


@dataclass
class ImportResult:
    added: list[QuestionRecord] = field(default_factory=list)
    duplicates: int = 0
    selected: int = 0
    failed_batches: int = 0


def normalize_text(text: str) -> str:
    """Strip punctuation and whitespace so near-identical questions compare equal."""
    return _NOISE.sub("", text)


def parse_data_txt(content: str) -> list[RawQuestion]:
    parsed = []
    for line in content.splitlines():
        m = _LINE.match(line.strip())
        if not m:
            continue
        parsed.append(RawQuestion(int(m.group(1)), m.group(2).strip(), m.group(3).strip()))
    return parsed


def _validate_selected_item(item, batch_len: int) -> str | None:
    if not isinstance(item, dict):
        return "not an object"
    idx = item.get("index")
    if not isinstance(idx, int) or isinstance(idx, bool) or not 1 <= idx <= batch_len:
        return f"index out of range: {idx!r}"
    if not isinstance(item.get("text"), str) or not item["text"].strip():
        return "missing text"
    opts = item.get("options")
    if not isinstance(opts, list) or len(opts) != OPTION_COUNT:
        return f"options must be a list of {OPTION_COUNT}"
    for o in opts:
        if not isinstance(o, dict) or not isinstance(o.get("text"), str) or not o["text"].strip():
            return "option without text"
        if not isinstance(o.get("isCorrect"), bool):
            return "option without boolean isCorrect"
    if sum(1 for o in opts if o["isCorrect"]) != 1:
        return "exactly one option must be correct"
    return None


async def select_batch(llm: LLMProvider, batch: list[RawQuestion]) -> list[dict]:
    """Return the LLM's validated selections for one batch.

    A reply without a ``selected`` array raises ValueError; individual
    malformed items are dropped.
    """
    prompt = IMPORT_PROMPT.format(items=format_import_items([(q.question, q.answer) for q in batch]))
    response = await llm.generate(prompt, temperature=0.3, json_mode=True)
    data = extract_json(response)
    if not isinstance(data, dict) or not isinstance(data.get("selected"), list):
        raise ValueError("expected an object with a 'selected' array")

    selected = []
    for item in data["selected"]:
        reason = _validate_selected_item(item, len(batch))
        if reason:
            _log.warning("  Dropping selection %.80r: %s", item, reason)
            continue
        selected.append(item)
    return selected


def build_record(item: dict, qid: int, rng: random.Random) -> QuestionRecord:
    opts = list(item["options"])
    rng.shuffle(opts)
    qtype = item.get("type")
    return QuestionRecord(
        id=qid,
        type=qtype if qtype in QUESTION_TYPES else "logic",
        text=item["text"].strip(),
        options=[
            Option(id=chr(ord("a") + j), text=o["text"].strip(), is_correct=o["isCorrect"])
            for j, o in enumerate(opts)
        ],
    )


async def import_questions(
    llm: LLMProvider,
    raw: list[RawQuestion],
    existing: list[QuestionRecord],
    batch_size: int = 40,
    delay: float = 0.5,
    rng: random.Random | None = None,
) -> ImportResult:
    """Select and build new records from *raw*. *existing* is not modified."""
    rng = rng or random.Random()
    result = ImportResult()
    seen = {normalize_text(q.text) for q in existing}

    fresh = []
    for q in raw:
        if normalize_text(q.question) in seen:
            result.duplicates += 1
        else:
            fresh.append(q)
    _log.info("%d parsed, %d new after de-duplication", len(raw), len(fresh))
    if not fresh:
        return result

    batches = [fresh[i:i + batch_size] for i in range(0, len(fresh), batch_size)]

    def make_job(idx: int, batch: list[RawQuestion]):
        async def run() -> list[dict]:
            try:
                selected = await select_batch(llm, batch)
            except Exception as e:
                result.failed_batches += 1
                _log.error("  Batch %d/%d: ERROR — %s", idx + 1, len(batches), e)
                return []
            _log.info("  Batch %d/%d: %d input → %d selected", idx + 1, len(batches), len(batch), len(selected))
            return selected
        return run

    per_batch = await run_pool(
        [make_job(i, b) for i, b in enumerate(batches)], concurrency=1, delay=delay,
    )

    next_id = max((q.id for q in existing), default=0) + 1
    for selected in per_batch:
        for item in selected or []:
            result.selected += 1
            key = normalize_text(item["text"])
            # The LLM may rephrase two inputs into the same question.
            if key in seen:
                result.duplicates += 1
                continue
            seen.add(key)
            result.added.append(build_record(item, next_id, rng))
            next_id += 1
    return result
