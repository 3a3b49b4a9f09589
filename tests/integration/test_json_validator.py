import json
import logging

from core.json_validator import (
    EmbeddedJson,
    PairList,
    Unrecognized,
    classify,
    extract_items,
    find_json_chunk,
    read_judge_response,
)

PAIR = {"delete_id": "7", "keep_id": "3", "reason": "Same award story"}


def test_bare_array():
    assert extract_items(json.dumps([PAIR])) == [PAIR]


def test_object_wrapping_array_under_any_key():
    assert extract_items(json.dumps({"duplicates": [PAIR]})) == [PAIR]
    assert extract_items(json.dumps({"result": [PAIR], "note": "ok"})) == [PAIR]


def test_string_field_with_embedded_json_and_trailing_noise():
    wrapped = {"response": json.dumps([PAIR]) + "\n\nLet me know if you need anything else!"}
    assert extract_items(json.dumps(wrapped)) == [PAIR]


def test_prose_around_json():
    raw = "Sure! Here are the duplicates:\n```json\n" + json.dumps([PAIR]) + "\n```"
    assert extract_items(raw) == [PAIR]


def test_single_pair_object_is_accepted():
    assert extract_items(json.dumps(PAIR)) == [PAIR]


def test_brackets_inside_strings_do_not_confuse_the_scan():
    item = {"delete_id": "1", "keep_id": "2", "reason": "both say ] and [ oddly"}
    raw = "noise " + json.dumps([item]) + " trailing"
    assert extract_items(raw) == [item]


def test_unbalanced_opener_is_skipped():
    assert find_json_chunk("[not json {\"a\": 1}") == '{"a": 1}'


def test_unrecognized_shapes_yield_nothing(caplog):
    caplog.set_level(logging.WARNING, logger="core.json_validator")

    assert extract_items("No duplicates found.") == []
    assert extract_items("") == []
    assert extract_items(json.dumps({"status": "ok"})) == []
    assert "Unrecognized judge response shape" in caplog.text


def test_empty_array_is_a_valid_answer():
    assert extract_items("[]") == []
    assert read_judge_response("[]") == PairList([])


def test_classify_shapes():
    assert isinstance(classify([PAIR]), PairList)
    assert isinstance(classify({"text": "prefix [1, 2]"}), EmbeddedJson)
    assert isinstance(classify({"count": 3}), Unrecognized)
    assert isinstance(classify(42), Unrecognized)
