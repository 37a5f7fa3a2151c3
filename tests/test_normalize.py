"""Tests for completion cleanup and JSON recovery."""

import json

import pytest

from receipt_sheets.errors import EmptyResponseError, MalformedResponseError
from receipt_sheets.normalize import parse_completion, strip_fences

PAYLOAD = {"storeName": "Cafe X", "date": "2024-03-01", "items": [], "total": 0}
INNER = json.dumps(PAYLOAD)


class TestStripFences:
    def test_json_tagged_fence(self):
        assert strip_fences(f"```json\n{INNER}\n```") == INNER

    def test_bare_fence(self):
        assert strip_fences(f"```\n{INNER}\n```") == INNER

    def test_no_fence(self):
        assert strip_fences(f"  {INNER}\n") == INNER

    def test_fence_inside_prose(self):
        text = f"Here is the receipt:\n```json\n{INNER}\n```\nLet me know!"
        assert strip_fences(text) == INNER


class TestParseCompletion:
    def test_fenced_and_unfenced_agree(self):
        assert parse_completion(f"```json\n{INNER}\n```") == parse_completion(INNER)

    def test_idempotent_on_parsed_value(self):
        once = parse_completion(f"```\n{INNER}\n```")
        assert parse_completion(once) == once

    def test_prose_around_object(self):
        text = f"Sure! {INNER} Hope this helps."
        assert parse_completion(text) == PAYLOAD

    def test_bare_json_with_backticks_in_values(self):
        raw = (
            '{"storeName":"A","date":"2024-01-01",'
            '"items":[{"name":"```x```","price":1}],"total":1}'
        )
        assert parse_completion(raw)["items"][0]["name"] == "```x```"

    @pytest.mark.parametrize("raw", [None, "", "   \n"])
    def test_empty_completion(self, raw):
        with pytest.raises(EmptyResponseError):
            parse_completion(raw)

    def test_invalid_json_keeps_raw_text(self):
        raw = "```json\n{storeName: Cafe X,,}\n```"
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_completion(raw)
        assert exc_info.value.raw_text == raw

    def test_plain_prose(self):
        with pytest.raises(MalformedResponseError):
            parse_completion("I can't read this receipt, sorry.")
