"""Age-appropriateness review of the question bank."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from brain_teaser.llm_json import extract_json
from brain_teaser.models import reindex
from brain_teaser.prompts import MODERATION_PROMPT, format_moderation_items
from brain_teaser.runner import run_pool

if TYPE_CHECKING:
    from brain_teaser.models import QuestionRecord
    from brain_teaser.providers.base import LLMProvider

_log = logging.getLogger("brain_teaser.filter")


@dataclass
class Verdict:
    keep: bool
    reason: str


@dataclass
class FilterResult:
    verdicts: dict[int, Verdict] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)   # one per failed batch


def _validate_verdicts(data: dict | None, expected_ids: set[int]) -> str | None:
    """Require ``{"results": [{"id", "keep", "reason"}, ...]}`` covering every id exactly once."""
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        return "expected an object with a 'results' array"
    seen: set[int] = set()
    for i, item in enumerate(data["results"]):
        if not isinstance(item, dict):
            return f"results[{i}] is not an object"
        qid = item.get("id")
        if not isinstance(qid, int) or isinstance(qid, bool) or qid not in expected_ids:
            return f"results[{i}] has unknown id {qid!r}"
        if qid in seen:
            return f"duplicate verdict for id {qid}"
        if not isinstance(item.get("keep"), bool):
            return f"results[{i}] (id {qid}): 'keep' must be true or false"
        if not isinstance(item.get("reason", ""), str):
            return f"results[{i}] (id {qid}): 'reason' must be a string"
        seen.add(qid)
    missing = expected_ids - seen
    if missing:
        return f"no verdict for ids {sorted(missing)}"
    return None


async def review_batch(llm: LLMProvider, batch: list[QuestionRecord]) -> dict[int, Verdict]:
    """Ask the LLM about one batch. Raises ValueError if the reply does not validate."""
    prompt = MODERATION_PROMPT.format(items=format_moderation_items(batch))
    response = await llm.generate(prompt, temperature=0.1, json_mode=True)
    data = extract_json(response)
    reason = _validate_verdicts(data, {r.id for r in batch})
    if reason:
        _log.debug("  Raw response: %.300s", response)
        raise ValueError(reason)
    return {item["id"]: Verdict(item["keep"], item.get("reason", "")) for item in data["results"]}


async def review_questions(
    llm: LLMProvider,
    records: list[QuestionRecord],
    batch_size: int = 20,
    concurrency: int = 3,
) -> FilterResult:
    batches = [records[i:i + batch_size] for i in range(0, len(records), batch_size)]
    result = FilterResult()

    def make_job(idx: int, batch: list[QuestionRecord]):
        async def run() -> None:
            try:
                verdicts = await review_batch(llm, batch)
            except Exception as e:
                msg = f"batch {idx + 1}/{len(batches)}: {e}"
                result.errors.append(msg)
                _log.error("  %s", msg)
                return
            result.verdicts.update(verdicts)
            rejected = [(qid, v) for qid, v in verdicts.items() if not v.keep]
            if rejected:
                _log.info("  Batch %d/%d: %d rejected", idx + 1, len(batches), len(rejected))
                for qid, v in rejected:
                    _log.info("    ❌ #%d: %s", qid, v.reason)
            else:
                _log.info("  Batch %d/%d: all kept", idx + 1, len(batches))
        return run

    await run_pool([make_job(i, b) for i, b in enumerate(batches)], concurrency=concurrency)
    return result


def apply_verdicts(
    records: list[QuestionRecord], verdicts: dict[int, Verdict],
) -> tuple[list[QuestionRecord], list[QuestionRecord]]:
    """Split *records* into (kept, rejected) and renumber the kept ones 1..N.

    Every record must have a verdict; rejected records carry ``_rejectReason``.
    """
    unreviewed = [r.id for r in records if r.id not in verdicts]
    if unreviewed:
        raise ValueError(f"{len(unreviewed)} questions have no verdict: {unreviewed[:10]}")
    kept: list[QuestionRecord] = []
    rejected: list[QuestionRecord] = []
    for r in records:
        v = verdicts[r.id]
        if v.keep:
            kept.append(r)
        else:
            r.extra["_rejectReason"] = v.reason
            rejected.append(r)
    return reindex(kept), rejected
