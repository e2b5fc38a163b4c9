"""Shared test fixtures."""
from __future__ import annotations

import pytest

from brain_teaser.models import Option, QuestionRecord, ReadingEntry


def make_record(qid: int, text: str, options: list[str], correct: int = 0,
                pronunciation: dict[str, ReadingEntry] | None = None) -> QuestionRecord:
    return QuestionRecord(
        id=qid,
        type="logic",
        text=text,
        options=[
            Option(id=chr(ord("a") + i), text=t, is_correct=(i == correct))
            for i, t in enumerate(options)
        ],
        pronunciation=pronunciation,
    )


def mnemonic(ch: str, word: str | None = None) -> str:
    word = word or ch * 2
    return f"“{ch}”：“{word}”的“{ch}”"


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def sample_records():
    """A few questions sharing some characters."""
    return [
        make_record(1, "什么东西早晨四条腿？", ["人", "狗", "猫"]),
        make_record(2, "小猫为什么爱吃鱼？", ["因为好吃", "因为饿了", "因为好玩"]),
        make_record(3, "1+1=?", ["2", "3", "11"], correct=0),
    ]


@pytest.fixture
def sample_questions_json():
    """Raw store content as the quiz app writes it."""
    return [
        {
            "id": 1,
            "type": "logic",
            "text": "什么东西早晨四条腿？",
            "options": [
                {"id": "a", "text": "人", "isCorrect": True},
                {"id": "b", "text": "狗", "isCorrect": False},
            ],
            "pronunciation": {
                "人": {"pinyin": "rén", "ttsText": mnemonic("人", "大人"), "audioFile": "abc123.mp3"},
                "狗": {"pinyin": "gǒu"},
            },
        },
        {
            "id": 2,
            "text": "小猫为什么爱吃鱼？",
            "options": [
                {"id": "a", "text": "好吃", "isCorrect": True},
            ],
            "difficulty": 2,
        },
    ]
