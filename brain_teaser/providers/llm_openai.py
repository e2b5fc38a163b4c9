from __future__ import annotations

import logging

from brain_teaser.providers.base import LLMProvider, ProviderError, RateLimitError

log = logging.getLogger("brain_teaser.llm")

DEEPSEEK_URL = "https://api.deepseek.com"


class OpenAIProvider(LLMProvider):
    """Any OpenAI-compatible chat endpoint (DeepSeek, DashScope compatible mode, OpenAI)."""

    def __init__(self, api_key: str, model: str = "deepseek-chat", base_url: str | None = DEEPSEEK_URL):
        import openai
        self._openai = openai
        self.client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url or None)
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7, json_mode: bool = False) -> str:
        kwargs: dict = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except self._openai.RateLimitError as e:
            raise RateLimitError(str(e)) from e
        except self._openai.APIError as e:
            raise ProviderError(str(e)) from e
        content = resp.choices[0].message.content
        log.debug("── RESPONSE (%s) ──\n%s", self.model, content)
        return content or ""

    def name(self) -> str:
        return f"openai/{self.model}"
