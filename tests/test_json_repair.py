import json

import pytest

from aippt.kernel.errors import ParseError
from aippt.services.json_repair import (
    extract_json_array,
    parse_json_array,
    repair_truncated_json,
    scan,
)

PAGES = [
    {"title": "Cover", "keyPoints": ["a", "b", "c"], "content": "intro", "emphasis": "x", "layoutSuggestion": "centered"},
    {"title": "Body {1}", "keyPoints": ["d", "e \"quoted\" ]", "f"], "content": "c, d", "emphasis": "y", "layoutSuggestion": "left"},
]


def test_valid_array_is_returned_unchanged():
    raw = json.dumps(PAGES, ensure_ascii=False)
    assert parse_json_array(raw) == PAGES


def test_fenced_block_with_prose():
    raw = "Sure! Here are the pages:\n```json\n" + json.dumps(PAGES) + "\n```\nHope that helps."
    assert parse_json_array(raw) == PAGES


def test_unclosed_array_slices_to_end():
    assert extract_json_array('noise [{"a": 1}, {"b"') == '[{"a": 1}, {"b"'


def test_strategy_a_keeps_complete_objects():
    full = json.dumps(PAGES + [{"title": "Summary", "keyPoints": ["z"], "content": "wrap up"}])
    cut = full[: full.index("wrap") + 2]  # truncated inside the third object
    assert parse_json_array(cut) == PAGES


def test_strategy_a_drops_dangling_comma():
    raw = json.dumps(PAGES)[:-1] + ", "
    assert json.loads(repair_truncated_json(raw)) == PAGES


def test_strategy_b_closes_partial_first_object():
    raw = '[{"title": "Cover", "content": "intro", "emphasis": "tru'
    assert parse_json_array(raw) == [{"title": "Cover", "content": "intro"}]


def test_strategy_b_ignores_commas_inside_nested_arrays():
    raw = '[{"title": "Cover", "keyPoints": ["a", "b", "c'
    assert parse_json_array(raw) == [{"title": "Cover"}]


def test_escaped_quote_does_not_toggle_string_state():
    raw = '[{"title": "say \\"}\\" ok", "content": "x"}, {"title": "cut'
    assert parse_json_array(raw) == [{"title": 'say "}" ok', "content": "x"}]


def test_scan_tracks_boundaries():
    s = '[{"a": 1, "b": [1, 2]}, {"c": 3'
    res = scan(s)
    assert s[res.last_complete_object] == "}"
    assert res.last_complete_object == s.index("]}") + 1
    assert s[res.last_property_comma] == ","
    assert res.last_property_comma == s.index(", \"b\"")


def test_unrepairable_raises_parse_error_with_excerpt():
    raw = "I cannot help with that. " + "x" * 1000
    with pytest.raises(ParseError) as e:
        parse_json_array(raw)
    assert e.value.code == "E_PARSE"
    assert len(e.value.text) == 500
    assert "first 500 chars" in e.value.detail


def test_non_array_json_is_a_parse_error():
    with pytest.raises(ParseError):
        parse_json_array('{"pages": 3}')
