"""CLI entry point for the brain-teaser data tools.

Usage:
  python -m brain_teaser import [--file PATH]
  python -m brain_teaser filter
  python -m brain_teaser pronounce
  python -m brain_teaser audio
  python -m brain_teaser feedback
  python -m brain_teaser convert
  python -m brain_teaser check
  python -m brain_teaser reset --yes
  python -m brain_teaser stats

Concurrency comes from config.json or the CONCURRENCY environment variable.
API keys are read from the variables named in config.json
(DEEPSEEK_API_KEY and DASHSCOPE_API_KEY by default).
"""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from brain_teaser.config import ConfigError, Settings, llm_api_key, load_settings, tts_api_key


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")
    args = sys.argv[1:]
    command = args[0] if args else ""

    commands = {
        "import": _import,
        "filter": _filter,
        "pronounce": _pronounce,
        "audio": _audio,
        "feedback": _feedback,
        "convert": _convert,
        "check": _check,
        "reset": _reset,
        "stats": _stats,
    }
    if command not in commands:
        print(f"Unknown command: {command}" if command else "No command given.")
        print("Commands: " + ", ".join(commands))
        sys.exit(1)

    try:
        settings = load_settings()
        code = commands[command](settings, args[1:])
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)
    sys.exit(code or 0)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _get_llm(s: Settings):
    api_key = llm_api_key(s)
    if s.llm_provider == "openai":
        from brain_teaser.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(api_key=api_key, model=s.llm_model, base_url=s.llm_base_url)
    elif s.llm_provider == "anthropic":
        from brain_teaser.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(api_key=api_key, model=s.llm_model)
    elif s.llm_provider == "ollama":
        from brain_teaser.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=s.ollama_url, model=s.llm_model)
    raise ValueError(f"Unknown LLM provider: {s.llm_provider}")


def _get_tts(s: Settings):
    api_key = tts_api_key(s)
    if s.tts_provider == "dashscope":
        from brain_teaser.providers.tts_dashscope import DashScopeTTSProvider
        return DashScopeTTSProvider(api_key=api_key, model=s.tts_model, voice=s.tts_voice)
    elif s.tts_provider == "edge-tts":
        from brain_teaser.providers.tts_edge import EdgeTTSProvider
        return EdgeTTSProvider(voice=s.tts_voice)
    elif s.tts_provider == "elevenlabs":
        from brain_teaser.providers.tts_elevenlabs import ElevenLabsProvider
        return ElevenLabsProvider(api_key=api_key, voice_id=s.tts_voice, model_id=s.tts_model)
    raise ValueError(f"Unknown TTS provider: {s.tts_provider}")


def _mb(n: int) -> str:
    return f"{n / 1024 / 1024:.1f} MB"


def _import(s: Settings, args: list[str]) -> int:
    from brain_teaser.importer import import_questions, parse_data_txt
    from brain_teaser.store import load_records, save_records

    llm = _get_llm(s)
    data_path = Path(_parse_flag(args, "--file", str(s.resolve(s.data_txt_path))))
    if not data_path.exists():
        raise FileNotFoundError(f"Input file not found: {data_path}")
    raw = parse_data_txt(data_path.read_text(encoding="utf-8"))
    existing = load_records(s.questions_full_path)
    print(f"Parsed {len(raw)} questions from {data_path.name}")

    result = asyncio.run(import_questions(llm, raw, existing, batch_size=s.import_batch_size))
    if result.added:
        save_records(s.questions_full_path, existing + result.added)

    print("\nDone!")
    print(f"  Previously: {len(existing)} questions")
    print(f"  Duplicates skipped: {result.duplicates}")
    print(f"  Added: {len(result.added)} questions")
    print(f"  Total: {len(existing) + len(result.added)} questions")
    if result.failed_batches:
        print(f"  Failed batches: {result.failed_batches} (re-run to retry them)")
    print("\nNext steps: pronounce, then audio")
    return 0


def _filter(s: Settings, args: list[str]) -> int:
    from brain_teaser.moderation import apply_verdicts, review_questions
    from brain_teaser.store import load_records, save_json, save_records

    llm = _get_llm(s)
    records = load_records(s.questions_full_path)
    print(f"Total questions: {len(records)}  (batch size {s.moderation_batch_size})")

    result = asyncio.run(review_questions(
        llm, records, batch_size=s.moderation_batch_size, concurrency=min(s.concurrency, 3),
    ))
    if result.errors:
        print(f"\n{len(result.errors)} batch(es) could not be reviewed; nothing was written:")
        for e in result.errors:
            print(f"  {e}")
        return 1

    kept, rejected = apply_verdicts(records, result.verdicts)
    save_records(s.questions_full_path, kept)
    rejected_path = s.resolve(s.rejected_path)
    save_json(rejected_path, [r.to_dict() for r in rejected])

    print("\n" + "=" * 50)
    print("Done!")
    print(f"  Kept: {len(kept)}")
    print(f"  Rejected: {len(rejected)}")
    print(f"  Rejected saved to: {rejected_path}")
    return 0


def _pronounce(s: Settings, args: list[str]) -> int:
    from brain_teaser.dictionary import ReadingDictionary
    from brain_teaser.pronunciation import (
        DICT, ERROR, INCOMPLETE, OK, SKIPPED,
        generate_pronunciations, records_needing_readings,
    )
    from brain_teaser.store import load_records, save_records

    llm = _get_llm(s)
    records = load_records(s.questions_full_path)
    dictionary = ReadingDictionary.load(s.dict_full_path)
    added = dictionary.ingest_from_records(records)
    pending = records_needing_readings(records)

    print(f"Dictionary: {len(dictionary)} unique chars ({dictionary.ambiguous_count} polyphonic, "
          f"{added} learned from questions)")
    print(f"Total questions: {len(records)}")
    print(f"Need ttsText: {pending}")
    print(f"Concurrency: {s.concurrency}\n")

    if pending == 0:
        dictionary.save()
        print("All questions already have ttsText. Dictionary saved.")
        return 0

    def checkpoint(completed: int) -> None:
        save_records(s.questions_full_path, records)
        dictionary.save()
        print(f"  Progress saved ({completed} completed, dict: {len(dictionary)} chars)")

    summary = asyncio.run(generate_pronunciations(
        llm, records, dictionary,
        concurrency=s.concurrency,
        checkpoint_every=s.checkpoint_every,
        on_checkpoint=checkpoint,
    ))
    save_records(s.questions_full_path, records)
    dictionary.save()

    c = summary.counts
    print("\nDone!")
    print(f"  From API: {c[OK]} questions ({summary.api_chars} chars)")
    print(f"  From dict: {c[DICT]} questions ({summary.dict_hits} chars)")
    print(f"  Skipped: {c[SKIPPED]}")
    print(f"  Incomplete (reply rejected): {c[INCOMPLETE]}")
    print(f"  Errors: {c[ERROR]}")
    print(f"  Dictionary: {len(dictionary)} chars ({dictionary.ambiguous_count} polyphonic)")
    return 0


def _audio(s: Settings, args: list[str]) -> int:
    from brain_teaser.audio import ffmpeg_available, generate_audio
    from brain_teaser.store import load_records, save_records

    tts = _get_tts(s)
    records = load_records(s.questions_full_path)
    transcode = ffmpeg_available()

    print(f"TTS: {tts.name()}")
    print(f"Concurrency: {s.concurrency}")
    print(f"FFmpeg: {'available (will convert to MP3)' if transcode else 'not found (raw audio saved with .mp3 name)'}\n")

    def checkpoint(completed: int) -> None:
        save_records(s.questions_full_path, records)
        print(f"  Progress saved ({completed} completed)")

    summary = asyncio.run(generate_audio(
        tts, records, s.audio_full_path,
        hash_length=s.hash_length,
        concurrency=s.concurrency,
        checkpoint_every=s.checkpoint_every,
        on_checkpoint=checkpoint,
        delay=s.request_delay,
        max_retries=s.max_retries,
        retry_base_delay=s.retry_base_delay,
        transcode=transcode,
        bitrate=s.audio_bitrate,
    ))
    save_records(s.questions_full_path, records)

    print("\nDone!")
    print(f"  Unique ttsText: {summary.unique_texts}")
    print(f"  Generated: {summary.generated}")
    print(f"  Skipped (existing): {summary.existing}")
    print(f"  Errors: {summary.errors}")
    if summary.collisions:
        print(f"  Hash collisions (left without audio): {summary.collisions}")
    if summary.generated and transcode:
        print(f"  Size: {_mb(summary.bytes_before)} raw → {_mb(summary.bytes_after)} mp3")
    return 0


def _feedback(s: Settings, args: list[str]) -> int:
    from brain_teaser.audio import ffmpeg_available
    from brain_teaser.feedback import generate_feedback_audio

    tts = _get_tts(s)
    summary = asyncio.run(generate_feedback_audio(
        tts, s.audio_full_path, s.feedback_mapping_full_path,
        hash_length=s.feedback_hash_length,
        delay=s.request_delay,
        transcode=ffmpeg_available(),
        bitrate=s.audio_bitrate,
    ))
    print(f"\nDone! Generated: {summary.generated}, Skipped: {summary.skipped}, Errors: {summary.errors}")
    print(f"Mapping saved to: {s.feedback_mapping_full_path}")
    return 0


def _convert(s: Settings, args: list[str]) -> int:
    from brain_teaser.audio import convert_existing, ffmpeg_available

    if not ffmpeg_available():
        print("ffmpeg not found on PATH.")
        return 1
    summary = asyncio.run(convert_existing(s.audio_full_path, bitrate=s.audio_bitrate))
    print("\nDone!")
    print(f"  Converted: {summary.converted}")
    print(f"  Errors: {summary.errors}")
    print(f"  Before: {_mb(summary.bytes_before)}")
    print(f"  After:  {_mb(summary.bytes_after)}")
    if summary.bytes_before:
        saved = summary.bytes_before - summary.bytes_after
        print(f"  Saved:  {_mb(saved)} ({round(saved / summary.bytes_before * 100)}%)")
    return 0


def _check(s: Settings, args: list[str]) -> int:
    from brain_teaser.maintenance import check_audio
    from brain_teaser.store import load_json, load_records

    records = load_records(s.questions_full_path)
    mapping_path = s.feedback_mapping_full_path
    feedback_mapping = load_json(mapping_path) if mapping_path.exists() else {}
    report = check_audio(records, s.audio_full_path, feedback_mapping)

    print("Audio File Check Report")
    print("─" * 50)
    print(f"  Questions without pronunciation: {report.records_without_pronunciation}")
    print(f"  Pronunciation entries:  {report.entries}")
    print(f"  With audioFile ref:     {report.with_audio}")
    print(f"  Without audioFile ref:  {report.without_audio}")
    print(f"  Referenced audio files: {report.referenced}")
    print(f"  Audio files on disk:    {report.on_disk}")
    print(f"  Feedback audio refs:    {report.feedback_referenced}\n")

    if report.ok:
        print("No missing audio files!")
    else:
        print(f"Missing audio: {len(report.missing)}")
        for m in report.missing:
            label = f'"{m.char}" ({m.text})' if m.char else f'"{m.text}"'
            print(f"   {m.file} — {label} [{m.source}]")

    if report.orphaned:
        print(f"\nOrphaned files (on disk, not referenced): {len(report.orphaned)}")
        for f in report.orphaned[:10]:
            print(f"   {f}")
        if len(report.orphaned) > 10:
            print(f"   ... and {len(report.orphaned) - 10} more")
    return 0 if report.ok else 1


def _reset(s: Settings, args: list[str]) -> int:
    from brain_teaser.maintenance import reset_audio
    from brain_teaser.store import load_records, save_records

    if "--yes" not in args:
        print("This deletes every ttsText, audioFile, pronunciation audio file and the dictionary.")
        print("Re-run with --yes to confirm.")
        return 1
    records = load_records(s.questions_full_path)
    summary = reset_audio(records, s.audio_full_path, s.dict_full_path)
    save_records(s.questions_full_path, records)
    print(f"Removed ttsText: {summary.removed_tts}")
    print(f"Removed audioFile: {summary.removed_audio}")
    print(f"Deleted audio files: {summary.deleted_files}")
    if summary.dict_deleted:
        print(f"Deleted {s.dict_full_path.name}")
    return 0


def _stats(s: Settings, args: list[str]) -> int:
    from brain_teaser.dictionary import ReadingDictionary
    from brain_teaser.pronunciation import records_needing_readings
    from brain_teaser.store import load_records

    records = load_records(s.questions_full_path)
    dictionary = ReadingDictionary.load(s.dict_full_path)
    entries = [e for r in records for e in (r.pronunciation or {}).values()]

    print("Brain Teaser Stats")
    print("=" * 40)
    print(f"Questions:             {len(records)}")
    print(f"Need readings:         {records_needing_readings(records)}")
    print(f"Pronunciation entries: {len(entries)}")
    print(f"  with ttsText:        {sum(1 for e in entries if e.tts_text)}")
    print(f"  with audioFile:      {sum(1 for e in entries if e.audio_file)}")
    print(f"Dictionary chars:      {len(dictionary)}")
    print(f"  polyphonic:          {dictionary.ambiguous_count}")
    return 0


if __name__ == "__main__":
    main()
