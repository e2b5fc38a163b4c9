from __future__ import annotations

from brain_teaser.providers.base import LLMProvider, ProviderError, RateLimitError


class AnthropicProvider(LLMProvider):
    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        import anthropic
        self._anthropic = anthropic
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7, json_mode: bool = False) -> str:
        # No native JSON mode; the prompts already demand a bare JSON object.
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=2048,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except self._anthropic.RateLimitError as e:
            raise RateLimitError(str(e)) from e
        except self._anthropic.APIError as e:
            raise ProviderError(str(e)) from e
        return message.content[0].text

    def name(self) -> str:
        return f"anthropic/{self.model}"
