"""Tests for audio consistency checks and resets."""
from __future__ import annotations

from brain_teaser.maintenance import check_audio, reset_audio
from brain_teaser.models import ReadingEntry
from conftest import make_record, mnemonic


def wired_records():
    return [
        make_record(1, "小猫", [], pronunciation={
            "小": ReadingEntry("xiǎo", mnemonic("小", "大小"), "aaa.mp3"),
            "猫": ReadingEntry("māo", mnemonic("猫", "小猫"), "bbb.mp3"),
        }),
        make_record(2, "小狗", [], pronunciation={
            "小": ReadingEntry("xiǎo", mnemonic("小", "大小"), "aaa.mp3"),
            "狗": ReadingEntry("gǒu", mnemonic("狗", "小狗")),
        }),
        make_record(3, "123", []),
    ]


class TestCheckAudio:
    def test_all_present(self, tmp_path):
        for name in ("aaa.mp3", "bbb.mp3"):
            (tmp_path / name).write_bytes(b"x")
        report = check_audio(wired_records(), tmp_path)

        assert report.ok
        assert report.entries == 4
        assert report.with_audio == 3
        assert report.without_audio == 1
        assert report.records_without_pronunciation == 1
        assert report.referenced == 2
        assert report.on_disk == 2
        assert report.orphaned == []

    def test_missing_and_orphaned(self, tmp_path):
        (tmp_path / "aaa.mp3").write_bytes(b"x")
        (tmp_path / "zzz.mp3").write_bytes(b"x")
        report = check_audio(wired_records(), tmp_path)

        assert not report.ok
        assert [(m.file, m.source, m.char) for m in report.missing] == [("bbb.mp3", "q1", "猫")]
        assert report.orphaned == ["zzz.mp3"]

    def test_feedback_references(self, tmp_path):
        (tmp_path / "feedback").mkdir()
        (tmp_path / "feedback" / "f1.mp3").write_bytes(b"x")
        (tmp_path / "feedback" / "old.mp3").write_bytes(b"x")
        mapping = {"太棒了！": "feedback/f1.mp3", "加油！": "feedback/f2.mp3"}

        report = check_audio([], tmp_path, mapping)

        assert report.feedback_referenced == 2
        assert [(m.file, m.source, m.text) for m in report.missing] == [("feedback/f2.mp3", "feedback", "加油！")]
        assert report.orphaned == ["feedback/old.mp3"]

    def test_missing_audio_dir(self, tmp_path):
        report = check_audio(wired_records(), tmp_path / "nope")
        assert report.on_disk == 0
        assert len(report.missing) == 2


class TestResetAudio:
    def test_clears_text_audio_and_files(self, tmp_path):
        audio_dir = tmp_path / "audio"
        (audio_dir / "feedback").mkdir(parents=True)
        (audio_dir / "aaa.mp3").write_bytes(b"x")
        (audio_dir / "bbb.mp3").write_bytes(b"x")
        (audio_dir / "feedback" / "f1.mp3").write_bytes(b"x")
        dict_path = tmp_path / "dict.json"
        dict_path.write_text("{}")
        records = wired_records()

        summary = reset_audio(records, audio_dir, dict_path)

        assert summary.removed_tts == 4
        assert summary.removed_audio == 3
        assert summary.deleted_files == 2
        assert summary.dict_deleted
        assert not dict_path.exists()
        assert list(audio_dir.glob("*.mp3")) == []
        assert (audio_dir / "feedback" / "f1.mp3").exists()
        entry = records[0].pronunciation["猫"]
        assert (entry.pinyin, entry.tts_text, entry.audio_file) == ("māo", None, None)

    def test_nothing_to_reset(self, tmp_path):
        summary = reset_audio([make_record(1, "猫", [])], tmp_path / "audio", tmp_path / "dict.json")
        assert (summary.removed_tts, summary.deleted_files, summary.dict_deleted) == (0, 0, False)
