"""Tests for the command-line entry point."""
from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from brain_teaser.__main__ import _parse_flag, main
from brain_teaser.config import Settings
from brain_teaser.models import ReadingEntry
from brain_teaser.store import load_records, save_records
from conftest import make_record, mnemonic


class FakeLLM:
    def __init__(self):
        self.call_count = 0

    async def generate(self, prompt: str, temperature: float = 0.7, json_mode: bool = False) -> str:
        self.call_count += 1
        line = prompt.split("请为以下每个中文字生成读音信息：\n", 1)[1].split("\n", 1)[0]
        return json.dumps({ch: {"pinyin": "x", "ttsText": mnemonic(ch)} for ch in line.split("、")},
                          ensure_ascii=False)

    def name(self) -> str:
        return "fake-llm"


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.delenv("CONCURRENCY", raising=False)
    s = Settings(
        questions_path=str(tmp_path / "questions.json"),
        dict_path=str(tmp_path / "dict.json"),
        audio_dir=str(tmp_path / "audio"),
        feedback_mapping_path=str(tmp_path / "feedback_audio.json"),
        rejected_path=str(tmp_path / "rejected.json"),
    )
    with patch("brain_teaser.__main__.load_settings", return_value=s):
        yield s


def run_cli(*argv) -> int:
    with patch("sys.argv", ["brain-teaser", *argv]):
        with pytest.raises(SystemExit) as exc:
            main()
    return exc.value.code


def test_parse_flag():
    assert _parse_flag(["--file", "x.txt"], "--file", "d") == "x.txt"
    assert _parse_flag(["--file"], "--file", "d") == "d"


def test_unknown_command(capsys):
    assert run_cli("bogus") == 1
    assert "Unknown command: bogus" in capsys.readouterr().out


def test_no_command(capsys):
    assert run_cli() == 1
    assert "No command given." in capsys.readouterr().out


def test_missing_tts_credential_exits_before_work(settings, monkeypatch, capsys):
    monkeypatch.delenv("DASHSCOPE_API_KEY", raising=False)
    save_records(settings.questions_full_path, [
        make_record(1, "猫", [], pronunciation={"猫": ReadingEntry("māo", mnemonic("猫"))}),
    ])
    before = settings.questions_full_path.read_bytes()

    assert run_cli("audio") == 1
    assert "DASHSCOPE_API_KEY" in capsys.readouterr().out
    assert settings.questions_full_path.read_bytes() == before
    assert not settings.audio_full_path.exists()


def test_missing_llm_credential(settings, monkeypatch, capsys):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    assert run_cli("pronounce") == 1
    assert "DEEPSEEK_API_KEY" in capsys.readouterr().out


def test_bad_concurrency_env(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("CONCURRENCY", "lots")
    with patch("brain_teaser.config.CONFIG_PATH", tmp_path / "config.json"):
        assert run_cli("stats") == 1
    assert "Error: CONCURRENCY must be a positive integer" in capsys.readouterr().out


def test_missing_store(settings, capsys):
    assert run_cli("stats") == 1
    assert "Question store not found" in capsys.readouterr().out


def test_pronounce_end_to_end(settings, capsys):
    save_records(settings.questions_full_path, [
        make_record(1, "小猫", ["鱼"]),
        make_record(2, "1+1", ["2"]),
    ])
    llm = FakeLLM()
    with patch("brain_teaser.__main__._get_llm", return_value=llm):
        assert run_cli("pronounce") == 0
        records = load_records(settings.questions_full_path)
        assert records[0].pronunciation["猫"].tts_text == mnemonic("猫")
        assert records[1].pronunciation == {}
        assert settings.dict_full_path.exists()

        assert run_cli("pronounce") == 0
    assert llm.call_count == 1
    assert "All questions already have ttsText" in capsys.readouterr().out


def test_reset_requires_confirmation(settings, capsys):
    save_records(settings.questions_full_path, [
        make_record(1, "猫", [], pronunciation={"猫": ReadingEntry("māo", mnemonic("猫"), "a.mp3")}),
    ])
    assert run_cli("reset") == 1
    assert load_records(settings.questions_full_path)[0].pronunciation["猫"].tts_text

    assert run_cli("reset", "--yes") == 0
    entry = load_records(settings.questions_full_path)[0].pronunciation["猫"]
    assert (entry.tts_text, entry.audio_file) == (None, None)


def test_check_reports_missing(settings, capsys):
    save_records(settings.questions_full_path, [
        make_record(1, "猫", [], pronunciation={"猫": ReadingEntry("māo", mnemonic("猫"), "a.mp3")}),
    ])
    assert run_cli("check") == 1
    assert "a.mp3" in capsys.readouterr().out

    settings.audio_full_path.mkdir()
    (settings.audio_full_path / "a.mp3").write_bytes(b"x")
    assert run_cli("check") == 0
