from __future__ import annotations

import asyncio

from brain_teaser.providers.base import ProviderError, RateLimitError, TTSProvider


class ElevenLabsProvider(TTSProvider):
    def __init__(self, api_key: str, voice_id: str = "lfBVYbXnblkOddWFfEIg",
                 model_id: str = "eleven_multilingual_v2"):
        from elevenlabs import ElevenLabs
        self.client = ElevenLabs(api_key=api_key)
        self.voice_id = voice_id
        self.model_id = model_id

    async def synthesize(self, text: str) -> bytes:
        from elevenlabs.core import ApiError
        from elevenlabs.types import VoiceSettings

        def _generate() -> bytes:
            audio = self.client.text_to_speech.convert(
                voice_id=self.voice_id,
                text=text,
                model_id=self.model_id,
                output_format="mp3_44100_128",
                voice_settings=VoiceSettings(
                    stability=0.5,
                    similarity_boost=0.75,
                    style=0.3,
                    speed=0.9,
                ),
            )
            # audio is a generator of bytes
            return b"".join(audio)

        try:
            return await asyncio.get_running_loop().run_in_executor(None, _generate)
        except ApiError as e:
            if e.status_code == 429:
                raise RateLimitError(str(e)) from e
            raise ProviderError(str(e)) from e

    def name(self) -> str:
        return f"elevenlabs/{self.voice_id}"
