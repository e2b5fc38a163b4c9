from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class ProviderError(RuntimeError):
    """Permanent failure from an external service. Not retried."""


class RateLimitError(ProviderError):
    """The service asked us to slow down (HTTP 429 or a throttling code)."""


@dataclass
class SynthesisResult:
    """What a speech service handed back: inline audio or a URL to fetch."""

    audio: bytes | None = None
    url: str | None = None

    @property
    def needs_download(self) -> bool:
        return self.audio is None


class LLMProvider(ABC):
    @abstractmethod
    async def generate(self, prompt: str, temperature: float = 0.7, json_mode: bool = False) -> str:
        ...

    @abstractmethod
    def name(self) -> str:
        ...


class TTSProvider(ABC):
    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Return raw audio bytes for *text* in this provider's native container."""
        ...

    @abstractmethod
    def name(self) -> str:
        ...
