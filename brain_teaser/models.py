from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ReadingEntry:
    pinyin: str
    tts_text: str | None = None      # mnemonic phrase, e.g. “妈”：“妈妈”的“妈”
    audio_file: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ReadingEntry:
        known = {"pinyin", "ttsText", "audioFile"}
        return cls(
            pinyin=data.get("pinyin", ""),
            tts_text=data.get("ttsText"),
            audio_file=data.get("audioFile"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict:
        d: dict = {"pinyin": self.pinyin}
        if self.tts_text is not None:
            d["ttsText"] = self.tts_text
        if self.audio_file is not None:
            d["audioFile"] = self.audio_file
        d.update(self.extra)
        return d


@dataclass
class Option:
    id: str
    text: str
    is_correct: bool

    @classmethod
    def from_dict(cls, data: dict) -> Option:
        return cls(id=data["id"], text=data["text"], is_correct=bool(data.get("isCorrect", False)))

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "isCorrect": self.is_correct}


@dataclass
class QuestionRecord:
    id: int
    text: str
    options: list[Option]
    type: str | None = None
    pronunciation: dict[str, ReadingEntry] | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> QuestionRecord:
        known = {"id", "type", "text", "options", "pronunciation"}
        pron = data.get("pronunciation")
        return cls(
            id=int(data["id"]),
            text=data["text"],
            options=[Option.from_dict(o) for o in data.get("options", [])],
            type=data.get("type"),
            pronunciation=(
                {ch: ReadingEntry.from_dict(info) for ch, info in pron.items() if isinstance(info, dict)}
                if isinstance(pron, dict) else None
            ),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict:
        d: dict = {"id": self.id}
        if self.type is not None:
            d["type"] = self.type
        d["text"] = self.text
        d["options"] = [o.to_dict() for o in self.options]
        if self.pronunciation is not None:
            d["pronunciation"] = {ch: e.to_dict() for ch, e in self.pronunciation.items()}
        d.update(self.extra)
        return d

    def texts(self) -> list[str]:
        """Prompt followed by every option text."""
        return [self.text] + [o.text for o in self.options]

    @property
    def correct_option(self) -> Option | None:
        return next((o for o in self.options if o.is_correct), None)


@dataclass
class AudioRef:
    record_index: int
    char: str


@dataclass
class AudioJob:
    content_hash: str
    text: str
    refs: list[AudioRef] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return f"{self.content_hash}.mp3"


def reindex(records: list[QuestionRecord]) -> list[QuestionRecord]:
    """Re-issue ids densely as 1..N in current order."""
    for i, r in enumerate(records, 1):
        r.id = i
    return records
