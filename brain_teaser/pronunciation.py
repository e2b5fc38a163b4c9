"""Fill in per-character readings for every question.

Characters with a single known reading are copied from the dictionary for
free. Unknown and ambiguous characters go to the LLM together with the full
question so it can pick the reading that fits the context.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from brain_teaser.hanzi import record_chars
from brain_teaser.llm_json import extract_json
from brain_teaser.models import ReadingEntry
from brain_teaser.prompts import PRONUNCIATION_PROMPT, format_options
from brain_teaser.runner import run_pool

if TYPE_CHECKING:
    from brain_teaser.dictionary import ReadingDictionary
    from brain_teaser.models import QuestionRecord
    from brain_teaser.providers.base import LLMProvider

_log = logging.getLogger("brain_teaser.pronounce")

# Outcome statuses
SKIPPED = "skipped"          # nothing to do
DICT = "dict"                # everything came from the dictionary
OK = "ok"                    # LLM filled in the rest
INCOMPLETE = "incomplete"    # LLM reply rejected; dictionary hits kept
ERROR = "error"              # LLM call failed; dictionary hits kept


@dataclass
class ResolveOutcome:
    status: str
    dict_hits: int = 0
    api_chars: int = 0
    message: str = ""


@dataclass
class PronunciationSummary:
    counts: dict[str, int] = field(default_factory=lambda: {
        SKIPPED: 0, DICT: 0, OK: 0, INCOMPLETE: 0, ERROR: 0,
    })
    dict_hits: int = 0
    api_chars: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: list[ResolveOutcome]) -> PronunciationSummary:
        s = cls()
        for o in outcomes:
            s.counts[o.status] += 1
            s.dict_hits += o.dict_hits
            s.api_chars += o.api_chars
        return s

    @property
    def llm_calls(self) -> int:
        return self.counts[OK] + self.counts[INCOMPLETE] + self.counts[ERROR]


def _set_reading(record: QuestionRecord, char: str, pinyin: str, tts_text: str) -> None:
    entry = record.pronunciation.get(char)
    if entry is None:
        record.pronunciation[char] = ReadingEntry(pinyin=pinyin, tts_text=tts_text)
        return
    if entry.tts_text != tts_text:
        # The old audio belongs to different text.
        entry.audio_file = None
    entry.pinyin = pinyin
    entry.tts_text = tts_text


def _validate_readings(data: dict | None, chars: list[str]) -> str | None:
    """Check an LLM reply covers every requested character.

    Returns ``None`` when valid, otherwise a reason string. Any problem
    rejects the whole reply. Keys that were not asked for are ignored.
    """
    if not isinstance(data, dict):
        return "response is not a JSON object"
    problems = []
    for ch in chars:
        info = data.get(ch)
        if not isinstance(info, dict):
            problems.append(f"{ch}: missing")
            continue
        pinyin = info.get("pinyin")
        tts_text = info.get("ttsText")
        if not isinstance(pinyin, str) or not pinyin.strip():
            problems.append(f"{ch}: no pinyin")
        if not isinstance(tts_text, str) or not tts_text.strip():
            problems.append(f"{ch}: no ttsText")
        elif ch not in tts_text:
            problems.append(f"{ch}: ttsText {tts_text!r} does not contain the character")
    if problems:
        return "; ".join(problems)
    return None


async def resolve_record(
    llm: LLMProvider,
    record: QuestionRecord,
    dictionary: ReadingDictionary,
) -> ResolveOutcome:
    chars = record_chars(record)
    if record.pronunciation is None:
        record.pronunciation = {}
    if not chars:
        return ResolveOutcome(SKIPPED, message="no Chinese characters")

    # Settled entries are never touched again.
    pending = [ch for ch in chars
               if not (ch in record.pronunciation and record.pronunciation[ch].tts_text)]
    if not pending:
        return ResolveOutcome(SKIPPED, message="all characters have ttsText")

    needs_llm: list[str] = []
    dict_hits = 0
    for ch in pending:
        sole = dictionary.sole_reading(ch)
        if sole is None:
            needs_llm.append(ch)
        else:
            _set_reading(record, ch, sole.pinyin, sole.tts_text)
            dict_hits += 1

    if not needs_llm:
        return ResolveOutcome(DICT, dict_hits=dict_hits)

    prompt = PRONUNCIATION_PROMPT.format(
        question_text=record.text,
        options_formatted=format_options(record),
        chars="、".join(needs_llm),
    )
    try:
        response = await llm.generate(prompt, temperature=0.1, json_mode=True)
    except Exception as e:
        return ResolveOutcome(ERROR, dict_hits=dict_hits, api_chars=len(needs_llm), message=str(e))

    data = extract_json(response)
    reason = _validate_readings(data, needs_llm)
    if reason:
        _log.warning("#%d: rejected LLM readings — %s", record.id, reason)
        _log.debug("  Raw response: %.300s", response)
        return ResolveOutcome(INCOMPLETE, dict_hits=dict_hits, api_chars=len(needs_llm), message=reason)

    for ch in needs_llm:
        pinyin = data[ch]["pinyin"].strip()
        tts_text = data[ch]["ttsText"].strip()
        _set_reading(record, ch, pinyin, tts_text)
        dictionary.add_reading(ch, pinyin, tts_text)

    return ResolveOutcome(OK, dict_hits=dict_hits, api_chars=len(needs_llm))


async def generate_pronunciations(
    llm: LLMProvider,
    records: list[QuestionRecord],
    dictionary: ReadingDictionary,
    concurrency: int = 5,
    checkpoint_every: int = 20,
    on_checkpoint: Callable[[int], None] | None = None,
) -> PronunciationSummary:
    """Resolve every record in place and return the run summary."""
    total = len(records)
    done = 0

    def make_job(rec: QuestionRecord):
        async def job() -> ResolveOutcome:
            nonlocal done
            outcome = await resolve_record(llm, rec, dictionary)
            done += 1
            if outcome.status == OK:
                _log.info("[%d/%d] #%d — OK (%d cached + %d API)",
                          done, total, rec.id, outcome.dict_hits, outcome.api_chars)
            elif outcome.status == DICT:
                _log.info("[%d/%d] #%d — all from dict (%d chars)", done, total, rec.id, outcome.dict_hits)
            elif outcome.status in (ERROR, INCOMPLETE):
                _log.warning("[%d/%d] #%d — %s: %s", done, total, rec.id, outcome.status.upper(), outcome.message)
            return outcome
        return job

    results = await run_pool(
        [make_job(r) for r in records],
        concurrency=concurrency,
        checkpoint_every=checkpoint_every,
        on_checkpoint=on_checkpoint,
    )
    outcomes = [
        r if isinstance(r, ResolveOutcome) else ResolveOutcome(ERROR, message=str(r))
        for r in results
    ]
    return PronunciationSummary.from_outcomes(outcomes)


def records_needing_readings(records: list[QuestionRecord]) -> int:
    """How many records still have a character without a mnemonic phrase."""
    count = 0
    for rec in records:
        pron = rec.pronunciation or {}
        if any(not (ch in pron and pron[ch].tts_text) for ch in record_chars(rec)):
            count += 1
    return count
