from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "openai",
    "llm_model": "deepseek-chat",
    "llm_base_url": "https://api.deepseek.com",
    "llm_api_key_env": "DEEPSEEK_API_KEY",
    "ollama_url": "http://localhost:11434",
    "tts_provider": "dashscope",
    "tts_model": "qwen3-tts-flash",
    "tts_voice": "Cherry",
    "tts_api_key_env": "DASHSCOPE_API_KEY",
    "concurrency": 5,
    "checkpoint_every": 20,
    "request_delay": 1.0,
    "max_retries": 5,
    "retry_base_delay": 6.0,
    "audio_bitrate": "64k",
    "hash_length": 12,
    "feedback_hash_length": 10,
    "questions_path": "src/data/questions.json",
    "dict_path": "src/data/pronunciation_dict.json",
    "audio_dir": "docs/audio",
    "feedback_mapping_path": "src/data/feedback_audio.json",
    "rejected_path": "src/data/rejected_questions.json",
    "data_txt_path": "data.txt",
    "moderation_batch_size": 20,
    "import_batch_size": 40,
}

# Providers that run locally and need no credential.
_KEYLESS_PROVIDERS = {"ollama", "edge-tts"}

# Model, voice and credential defaults per provider. Applied by load_settings
# for every key config.json leaves unset.
PROVIDER_DEFAULTS = {
    "llm_provider": {
        "openai": {
            "llm_model": "deepseek-chat",
            "llm_base_url": "https://api.deepseek.com",
            "llm_api_key_env": "DEEPSEEK_API_KEY",
        },
        "anthropic": {
            "llm_model": "claude-sonnet-4-20250514",
            "llm_base_url": "",
            "llm_api_key_env": "ANTHROPIC_API_KEY",
        },
        "ollama": {
            "llm_model": "qwen3:8b",
            "llm_base_url": "",
            "llm_api_key_env": "",
        },
    },
    "tts_provider": {
        "dashscope": {
            "tts_model": "qwen3-tts-flash",
            "tts_voice": "Cherry",
            "tts_api_key_env": "DASHSCOPE_API_KEY",
        },
        "edge-tts": {
            "tts_model": "",
            "tts_voice": "zh-CN-XiaoxiaoNeural",
            "tts_api_key_env": "",
        },
        "elevenlabs": {
            "tts_model": "eleven_multilingual_v2",
            "tts_voice": "lfBVYbXnblkOddWFfEIg",
            "tts_api_key_env": "ELEVENLABS_API_KEY",
        },
    },
}


class ConfigError(RuntimeError):
    pass


class MissingCredentialError(ConfigError):
    pass


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    llm_base_url: str = DEFAULTS["llm_base_url"]
    llm_api_key_env: str = DEFAULTS["llm_api_key_env"]
    ollama_url: str = DEFAULTS["ollama_url"]
    tts_provider: str = DEFAULTS["tts_provider"]
    tts_model: str = DEFAULTS["tts_model"]
    tts_voice: str = DEFAULTS["tts_voice"]
    tts_api_key_env: str = DEFAULTS["tts_api_key_env"]
    concurrency: int = DEFAULTS["concurrency"]
    checkpoint_every: int = DEFAULTS["checkpoint_every"]
    request_delay: float = DEFAULTS["request_delay"]
    max_retries: int = DEFAULTS["max_retries"]
    retry_base_delay: float = DEFAULTS["retry_base_delay"]
    audio_bitrate: str = DEFAULTS["audio_bitrate"]
    hash_length: int = DEFAULTS["hash_length"]
    feedback_hash_length: int = DEFAULTS["feedback_hash_length"]
    questions_path: str = DEFAULTS["questions_path"]
    dict_path: str = DEFAULTS["dict_path"]
    audio_dir: str = DEFAULTS["audio_dir"]
    feedback_mapping_path: str = DEFAULTS["feedback_mapping_path"]
    rejected_path: str = DEFAULTS["rejected_path"]
    data_txt_path: str = DEFAULTS["data_txt_path"]
    moderation_batch_size: int = DEFAULTS["moderation_batch_size"]
    import_batch_size: int = DEFAULTS["import_batch_size"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    def resolve(self, path: str) -> Path:
        """Resolve a configured path against the project root (absolute paths pass through)."""
        return self.project_root / path

    @property
    def questions_full_path(self) -> Path:
        return self.resolve(self.questions_path)

    @property
    def dict_full_path(self) -> Path:
        return self.resolve(self.dict_path)

    @property
    def audio_full_path(self) -> Path:
        return self.resolve(self.audio_dir)

    @property
    def feedback_mapping_full_path(self) -> Path:
        return self.resolve(self.feedback_mapping_path)

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in DEFAULTS}


def load_settings() -> Settings:
    raw: dict = {}
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    filtered = {k: v for k, v in raw.items() if k in known}

    for selector, per_provider in PROVIDER_DEFAULTS.items():
        provider = filtered.get(selector, DEFAULTS[selector])
        if provider not in per_provider:
            raise ConfigError(
                f"Unknown {selector} {provider!r} (choose from {', '.join(per_provider)})"
            )
        for key, value in per_provider[provider].items():
            filtered.setdefault(key, value)
    settings = Settings(**filtered)

    concurrency = os.environ.get("CONCURRENCY")
    if concurrency:
        message = f"CONCURRENCY must be a positive integer, got {concurrency!r}"
        try:
            value = int(concurrency)
        except ValueError:
            raise ConfigError(message) from None
        if value < 1:
            raise ConfigError(message)
        settings.concurrency = value
    return settings


def require_env(name: str) -> str:
    value = os.environ.get(name, "")
    if not value:
        raise MissingCredentialError(f"{name} environment variable is required.")
    return value


def llm_api_key(settings: Settings) -> str | None:
    if settings.llm_provider in _KEYLESS_PROVIDERS:
        return None
    return require_env(settings.llm_api_key_env)


def tts_api_key(settings: Settings) -> str | None:
    if settings.tts_provider in _KEYLESS_PROVIDERS:
        return None
    return require_env(settings.tts_api_key_env)
