from __future__ import annotations

from brain_teaser.providers.base import ProviderError, TTSProvider


class EdgeTTSProvider(TTSProvider):
    def __init__(self, voice: str = "zh-CN-XiaoxiaoNeural"):
        self.voice = voice

    async def synthesize(self, text: str) -> bytes:
        import edge_tts

        communicate = edge_tts.Communicate(text, self.voice)
        chunks: list[bytes] = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                chunks.append(chunk["data"])
        if not chunks:
            raise ProviderError(f"edge-tts returned no audio for {text!r}")
        return b"".join(chunks)

    def name(self) -> str:
        return f"edge-tts/{self.voice}"
