"""Tests for JSON extraction from LLM replies."""
from __future__ import annotations

from brain_teaser.llm_json import _find_json_objects, extract_json


class TestExtractJson:
    def test_bare_json(self):
        assert extract_json('{"猫": {"pinyin": "māo"}}') == {"猫": {"pinyin": "māo"}}

    def test_code_fence_json(self):
        text = '好的：\n```json\n{"results": []}\n```'
        assert extract_json(text) == {"results": []}

    def test_code_fence_no_lang(self):
        assert extract_json('```\n{"a": 1}\n```') == {"a": 1}

    def test_surrounding_text(self):
        assert extract_json('Sure:\n{"value": 42}\nHope that helps!')["value"] == 42

    def test_think_block_stripped(self):
        text = '<think>draft {"a": 0}</think>\n{"a": 1}'
        assert extract_json(text) == {"a": 1}

    def test_prefers_last_object(self):
        assert extract_json('first {"a": 1} then {"a": 2}') == {"a": 2}

    def test_top_level_array_rejected(self):
        assert extract_json('[{"id": 1, "keep": true}]') is None

    def test_invalid(self):
        assert extract_json("This is not JSON at all.") is None
        assert extract_json('{"stem": "missing closing brace"') is None
        assert extract_json("") is None


class TestFindJsonObjects:
    def test_braces_in_strings(self):
        assert _find_json_objects('x {"a": "}{"} y') == ['{"a": "}{"}']

    def test_nested(self):
        assert _find_json_objects('{"a": {"b": 1}} {"c": 2}') == ['{"a": {"b": 1}}', '{"c": 2}']
