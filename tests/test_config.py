"""Tests for configuration loading."""
from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from brain_teaser.config import (
    DEFAULTS,
    PROVIDER_DEFAULTS,
    ConfigError,
    MissingCredentialError,
    Settings,
    llm_api_key,
    load_settings,
    require_env,
    tts_api_key,
)


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.llm_provider == "openai"
        assert s.tts_provider == "dashscope"
        assert s.concurrency == 5
        assert s.checkpoint_every == 20
        assert s.hash_length == 12

    def test_to_dict(self):
        d = Settings().to_dict()
        assert d == DEFAULTS
        assert len(d) == 25  # all fields present

    def test_to_dict_roundtrip(self):
        s = Settings(llm_provider="anthropic", concurrency=8)
        s2 = Settings(**s.to_dict())
        assert s2.llm_provider == "anthropic"
        assert s2.concurrency == 8

    def test_paths_resolve_against_project_root(self):
        s = Settings(audio_dir="public/audio")
        assert s.audio_full_path == s.project_root / "public" / "audio"
        assert s.questions_full_path.name == "questions.json"

    def test_absolute_path_passes_through(self, tmp_path):
        s = Settings(dict_path=str(tmp_path / "dict.json"))
        assert s.dict_full_path == tmp_path / "dict.json"


class TestLoadSettings:
    def test_load_from_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CONCURRENCY", raising=False)
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"tts_provider": "edge-tts", "concurrency": 2}))

        with patch("brain_teaser.config.CONFIG_PATH", config_path):
            s = load_settings()
        assert s.tts_provider == "edge-tts"
        assert s.concurrency == 2
        # Defaults for unspecified fields
        assert s.llm_model == DEFAULTS["llm_model"]

    def test_load_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CONCURRENCY", raising=False)
        with patch("brain_teaser.config.CONFIG_PATH", tmp_path / "nope.json"):
            s = load_settings()
        assert s == Settings()

    def test_unknown_keys_ignored(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CONCURRENCY", raising=False)
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"llm_model": "deepseek-reasoner", "session_size": 30}))
        with patch("brain_teaser.config.CONFIG_PATH", config_path):
            s = load_settings()
        assert s.llm_model == "deepseek-reasoner"

    def test_concurrency_env_overrides(self, tmp_path, monkeypatch):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"concurrency": 2}))
        monkeypatch.setenv("CONCURRENCY", "10")
        with patch("brain_teaser.config.CONFIG_PATH", config_path):
            assert load_settings().concurrency == 10

    @pytest.mark.parametrize("value", ["abc", "0", "-3", "2.5"])
    def test_bad_concurrency_env(self, tmp_path, monkeypatch, value):
        monkeypatch.setenv("CONCURRENCY", value)
        with patch("brain_teaser.config.CONFIG_PATH", tmp_path / "nope.json"):
            with pytest.raises(ConfigError, match="CONCURRENCY"):
                load_settings()


class TestProviderDefaults:
    def _load(self, tmp_path, monkeypatch, config):
        monkeypatch.delenv("CONCURRENCY", raising=False)
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(config))
        with patch("brain_teaser.config.CONFIG_PATH", config_path):
            return load_settings()

    def test_elevenlabs(self, tmp_path, monkeypatch):
        s = self._load(tmp_path, monkeypatch, {"tts_provider": "elevenlabs"})
        assert s.tts_model == "eleven_multilingual_v2"
        assert s.tts_voice == PROVIDER_DEFAULTS["tts_provider"]["elevenlabs"]["tts_voice"]
        assert s.tts_api_key_env == "ELEVENLABS_API_KEY"

    def test_edge_tts_gets_chinese_voice(self, tmp_path, monkeypatch):
        s = self._load(tmp_path, monkeypatch, {"tts_provider": "edge-tts"})
        assert s.tts_voice == "zh-CN-XiaoxiaoNeural"

    def test_anthropic(self, tmp_path, monkeypatch):
        s = self._load(tmp_path, monkeypatch, {"llm_provider": "anthropic"})
        assert s.llm_api_key_env == "ANTHROPIC_API_KEY"
        assert s.llm_model.startswith("claude")

    def test_explicit_values_win(self, tmp_path, monkeypatch):
        s = self._load(tmp_path, monkeypatch, {"tts_provider": "edge-tts", "tts_voice": "zh-CN-YunxiNeural"})
        assert s.tts_voice == "zh-CN-YunxiNeural"

    def test_unknown_provider(self, tmp_path, monkeypatch):
        with pytest.raises(ConfigError, match="tts_provider"):
            self._load(tmp_path, monkeypatch, {"tts_provider": "piper"})

    def test_defaults_agree(self):
        for selector, per_provider in PROVIDER_DEFAULTS.items():
            for key, value in per_provider[DEFAULTS[selector]].items():
                assert DEFAULTS[key] == value


class TestCredentials:
    def test_require_env(self, monkeypatch):
        monkeypatch.setenv("DASHSCOPE_API_KEY", "sk-1")
        assert require_env("DASHSCOPE_API_KEY") == "sk-1"

    def test_require_env_missing(self, monkeypatch):
        monkeypatch.delenv("DASHSCOPE_API_KEY", raising=False)
        with pytest.raises(MissingCredentialError, match="DASHSCOPE_API_KEY"):
            require_env("DASHSCOPE_API_KEY")

    def test_empty_value_is_missing(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_API_KEY", "")
        with pytest.raises(MissingCredentialError):
            llm_api_key(Settings())

    def test_keyless_providers(self, monkeypatch):
        monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
        monkeypatch.delenv("DASHSCOPE_API_KEY", raising=False)
        assert llm_api_key(Settings(llm_provider="ollama")) is None
        assert tts_api_key(Settings(tts_provider="edge-tts")) is None

    def test_custom_env_name(self, monkeypatch):
        monkeypatch.setenv("MY_TTS_KEY", "abc")
        assert tts_api_key(Settings(tts_api_key_env="MY_TTS_KEY")) == "abc"


def test_config_path_is_project_root():
    from brain_teaser import config
    assert config.CONFIG_PATH == Path(config.__file__).resolve().parent.parent / "config.json"
