"""Audio for the fixed feedback phrases the quiz plays after each answer."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from brain_teaser.audio import audio_filename, audio_exists, synthesize_with_retry, write_artifact
from brain_teaser.runner import run_pool
from brain_teaser.store import save_json

if TYPE_CHECKING:
    from brain_teaser.providers.base import TTSProvider

log = logging.getLogger("brain_teaser.feedback")

FEEDBACK_SUBDIR = "feedback"

FEEDBACK_PHRASES = {
    "correct": [
        "太棒了！", "真聪明！", "答对了！", "好厉害！", "真厉害！",
        "你真棒！", "非常好！", "太厉害了！", "完美！", "了不起！",
        "正确！", "真不错！", "太好了！", "厉害！", "很棒！",
        "你好聪明！", "太赞了！", "做得好！", "就是这样！", "非常棒！",
    ],
    "incorrect": [
        "再试试！", "不太对哦！", "加油！", "再想想！", "别放弃！",
        "快答对了！", "没关系！", "动动脑！", "下次一定行！", "差一点！",
        "再来一次！", "换一个！", "再试一次！", "别灰心！", "你能行的！",
        "没关系哦！", "再想一想！", "你可以的！", "快了快了！", "继续加油！",
    ],
    "complete": [
        "挑战完成！", "你太厉害了！", "真是小天才！", "好棒好棒！", "胜利！",
        "冒险家！", "小博士！", "达人！", "冠军！", "闪亮之星！",
        "超级厉害！", "太棒棒了！", "好厉害呀！", "目标达成！", "小英雄！",
        "天才！", "完成了！", "通关啦！", "赢家！", "表现超棒！",
    ],
}


@dataclass
class FeedbackSummary:
    generated: int = 0
    skipped: int = 0
    errors: int = 0


def feedback_ref(text: str, hash_length: int = 10) -> str:
    """Path of a phrase's audio relative to the audio root, e.g. ``feedback/ab12.mp3``."""
    return f"{FEEDBACK_SUBDIR}/{audio_filename(text, hash_length)}"


async def generate_feedback_audio(
    tts: TTSProvider,
    audio_dir: Path,
    mapping_path: Path,
    phrases: dict[str, list[str]] | None = None,
    hash_length: int = 10,
    concurrency: int = 1,
    delay: float = 1.0,
    max_retries: int = 3,
    retry_base_delay: float = 5.0,
    transcode: bool = True,
    bitrate: str = "64k",
) -> FeedbackSummary:
    """Synthesize missing feedback phrases and rewrite the text → file mapping."""
    phrases = phrases or FEEDBACK_PHRASES
    texts = list(dict.fromkeys(t for group in phrases.values() for t in group))
    (audio_dir / FEEDBACK_SUBDIR).mkdir(parents=True, exist_ok=True)

    summary = FeedbackSummary()
    mapping: dict[str, str] = {}
    todo: list[str] = []
    for text in texts:
        ref = feedback_ref(text, hash_length)
        if audio_exists(audio_dir, ref):
            mapping[text] = ref
            summary.skipped += 1
        else:
            todo.append(text)

    def make_job(text: str):
        async def run() -> None:
            ref = feedback_ref(text, hash_length)
            try:
                raw = await synthesize_with_retry(tts, text, max_retries, retry_base_delay)
                await write_artifact(raw, audio_dir / ref, transcode, bitrate)
            except Exception as e:
                summary.errors += 1
                log.error("  ❌ %r: %s", text, e)
                return
            mapping[text] = ref
            summary.generated += 1
            log.info("  ✅ %r → %s", text, ref)
        return run

    await run_pool([make_job(t) for t in todo], concurrency=concurrency, delay=delay)

    # Keep the mapping in phrase order regardless of completion order.
    save_json(mapping_path, {t: mapping[t] for t in texts if t in mapping})
    return summary
