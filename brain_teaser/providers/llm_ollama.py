from __future__ import annotations

import logging
import time

import httpx

from brain_teaser.providers.base import LLMProvider, ProviderError, RateLimitError

log = logging.getLogger("brain_teaser.llm")


class OllamaProvider(LLMProvider):
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen3:8b",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._transport = transport

    async def generate(self, prompt: str, temperature: float = 0.7, json_mode: bool = False) -> str:
        log.debug("── PROMPT (%s) ──\n%s", self.model, prompt)
        body: dict = {
            "model": self.model,
            "prompt": prompt,
            "temperature": temperature,
            "stream": False,
            "think": False,
        }
        if json_mode:
            body["format"] = "json"

        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=120.0, transport=self._transport) as client:
            try:
                resp = await client.post(f"{self.base_url}/api/generate", json=body)
            except httpx.HTTPError as e:
                raise ProviderError(f"Ollama unreachable: {e}") from e
        if resp.status_code == 429:
            raise RateLimitError("Ollama returned 429")
        if resp.status_code >= 400:
            raise ProviderError(f"HTTP {resp.status_code}: {resp.text[:200]}")
        data = resp.json()
        elapsed = time.monotonic() - t0
        response = data["response"]
        log.debug("── RESPONSE (%.1fs, %s tokens) ──\n%s", elapsed, data.get("eval_count", "?"), response)
        return response

    def name(self) -> str:
        return f"ollama/{self.model}"
