from __future__ import annotations

import base64
import logging

import httpx

from brain_teaser.providers.base import (
    ProviderError,
    RateLimitError,
    SynthesisResult,
    TTSProvider,
)

log = logging.getLogger("brain_teaser.tts")

DASHSCOPE_URL = "https://dashscope.aliyuncs.com/api/v1/services/aigc/multimodal-generation/generation"


def parse_synthesis_response(data: dict) -> SynthesisResult:
    """Normalise a DashScope reply into a SynthesisResult.

    ``output.audio`` comes back either as a bare URL string or as an object
    carrying ``url`` and/or base64 ``data``. Error codes are raised here so
    callers never look at the payload shape.
    """
    code = data.get("code")
    if code:
        message = data.get("message", "")
        if "Throttling" in str(code):
            raise RateLimitError(f"{code}: {message}")
        raise ProviderError(f"API error {code}: {message}")

    audio = (data.get("output") or {}).get("audio")
    if isinstance(audio, str) and audio:
        return SynthesisResult(url=audio)
    if isinstance(audio, dict):
        if audio.get("data"):
            return SynthesisResult(audio=base64.b64decode(audio["data"]))
        if audio.get("url"):
            return SynthesisResult(url=audio["url"])
    raise ProviderError(f"Unexpected audio format: {str(data.get('output'))[:500]}")


class DashScopeTTSProvider(TTSProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "qwen3-tts-flash",
        voice: str = "Cherry",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.voice = voice
        self._transport = transport

    async def synthesize(self, text: str) -> bytes:
        async with httpx.AsyncClient(timeout=60.0, transport=self._transport) as client:
            resp = await client.post(
                DASHSCOPE_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "input": {"text": text},
                    "parameters": {"voice": self.voice},
                },
            )
            if resp.status_code == 429:
                raise RateLimitError("HTTP 429")
            if resp.status_code >= 400:
                raise ProviderError(f"HTTP {resp.status_code}: {resp.text[:200]}")

            result = parse_synthesis_response(resp.json())
            if not result.needs_download:
                return result.audio

            log.debug("Downloading %s", result.url)
            audio_resp = await client.get(result.url)
            if audio_resp.status_code >= 400:
                raise ProviderError(f"Failed to download audio: {audio_resp.status_code}")
            return audio_resp.content

    def name(self) -> str:
        return f"dashscope/{self.model}/{self.voice}"
