# tests/test_json_extraction.py
"""
Tolerant JSON extraction from completion text.
"""

import pytest

from core.errors import JsonExtractionFailure
from core.services.json_extraction import extract_json, parse_json_object


def test_fenced_block_with_language_tag():
    text = 'Here you go:\n```json\n{"flightNumber": "6568", "origin": "IKA"}\n```\nThanks!'
    assert extract_json(text) == {"flightNumber": "6568", "origin": "IKA"}


def test_fenced_block_without_tag():
    text = '```\n{"type": "delay"}\n```'
    assert extract_json(text) == {"type": "delay"}


def test_braces_inside_prose():
    text = 'The extracted data is {"airline": "Aseman", "newTime": "01:00"} as requested.'
    assert extract_json(text) == {"airline": "Aseman", "newTime": "01:00"}


def test_localized_digits_retry():
    text = '{"flightNumber": ۶۵۶۸, "date": "۱۴۰۴/۰۷/۲۶"}'
    assert extract_json(text) == {"flightNumber": 6568, "date": "1404/07/26"}


def test_valid_json_keeps_localized_strings():
    text = '{"date": "۱۴۰۴/۰۷/۲۶"}'
    assert extract_json(text) == {"date": "۱۴۰۴/۰۷/۲۶"}


@pytest.mark.parametrize(
    "text",
    [
        "no json here at all",
        "",
        None,
        '{"airline": "Aseman"',
        "[1, 2, 3]",
        "{not: valid}",
        '{"a": ' + "[" * 100000 + "]" * 100000 + "}",
    ],
    ids=["prose", "empty", "none", "truncated", "array", "unquoted", "deeply-nested"],
)
def test_fail_soft(text):
    assert extract_json(text) == {}


def test_strict_variant_raises():
    with pytest.raises(JsonExtractionFailure):
        parse_json_object("no json here at all")
