#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tolerant JSON extraction for judge model output.

Judge responses arrive in several shapes: a bare JSON array, an object
wrapping the array under an arbitrary key, or an object whose string field
holds embedded JSON followed by trailing non-JSON content. Each shape is
modelled explicitly and extraction is a pure function with explicit
fall-through cases.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .text_sanitizer import preprocess_llm_response

logger = logging.getLogger(__name__)

MAX_UNWRAP_DEPTH = 3

_OPENERS = {'[': ']', '{': '}'}


@dataclass(frozen=True)
class PairList:
    """A JSON array of verdict objects."""
    items: List[Dict[str, Any]]


@dataclass(frozen=True)
class EmbeddedJson:
    """A string that contains JSON somewhere inside it."""
    text: str


@dataclass(frozen=True)
class Unrecognized:
    """Anything else; yields no verdicts."""
    raw: Any


JudgeResponse = Union[PairList, EmbeddedJson, Unrecognized]


def find_json_chunk(text: str) -> Optional[str]:
    """
    Locate the first balanced `[...]` or `{...}` substring.

    Brackets inside JSON string literals are ignored. If a candidate opening
    bracket never balances, scanning resumes at the next opening bracket.

    Args:
        text: Text that may contain JSON mixed with prose or markup

    Returns:
        The balanced substring, or None if there is none
    """
    if not text:
        return None

    start = 0
    while True:
        positions = [p for p in (text.find('[', start), text.find('{', start)) if p != -1]
        if not positions:
            return None
        begin = min(positions)

        stack = []
        in_string = False
        escaped = False
        for idx in range(begin, len(text)):
            char = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char in _OPENERS:
                stack.append(_OPENERS[char])
            elif char in (']', '}'):
                if not stack or stack[-1] != char:
                    break
                stack.pop()
                if not stack:
                    return text[begin:idx + 1]

        start = begin + 1


def parse_json_lenient(text: str) -> Optional[Any]:
    """Parse text directly, then fall back to its first balanced JSON chunk."""
    if text is None:
        return None

    try:
        return json.loads(text.strip())
    except ValueError:
        pass

    chunk = find_json_chunk(text)
    if chunk is None:
        return None
    try:
        return json.loads(chunk)
    except ValueError as e:
        logger.debug(f"Extracted JSON chunk did not parse: {e}")
        return None


def _is_pair_object(value: Dict[str, Any]) -> bool:
    return any(key in value for key in ('delete_id', 'deleteId', 'deleteid'))


def classify(value: Any) -> JudgeResponse:
    """
    Classify an already-decoded value into one of the response shapes.

    Args:
        value: Result of json.loads, or a raw string

    Returns:
        PairList, EmbeddedJson or Unrecognized
    """
    if isinstance(value, list):
        return PairList([item for item in value if isinstance(item, dict)])

    if isinstance(value, dict):
        if _is_pair_object(value):
            return PairList([value])
        for inner in value.values():
            if isinstance(inner, list):
                return PairList([item for item in inner if isinstance(item, dict)])
        for inner in value.values():
            if isinstance(inner, str) and find_json_chunk(inner) is not None:
                return EmbeddedJson(inner)
        return Unrecognized(value)

    if isinstance(value, str) and value.strip():
        return EmbeddedJson(value)

    return Unrecognized(value)


def read_judge_response(raw: str) -> JudgeResponse:
    """Decode raw judge output into its top-level shape."""
    processed = preprocess_llm_response(raw or '')
    parsed = parse_json_lenient(processed)
    if parsed is None:
        return Unrecognized(raw)
    return classify(parsed)


def extract_items(raw: str) -> List[Dict[str, Any]]:
    """
    Extract the list of verdict objects from raw judge output.

    Embedded JSON is unwrapped up to MAX_UNWRAP_DEPTH times. Unrecognized
    shapes yield an empty list rather than an exception.

    Args:
        raw: Raw text returned by the judge or proxy

    Returns:
        List of verdict dictionaries (possibly empty)
    """
    response = read_judge_response(raw)

    for _ in range(MAX_UNWRAP_DEPTH):
        if isinstance(response, PairList):
            return response.items
        if isinstance(response, EmbeddedJson):
            parsed = parse_json_lenient(response.text)
            response = classify(parsed) if parsed is not None else Unrecognized(response.text)
            continue
        break

    if isinstance(response, PairList):
        return response.items

    preview = str(raw)[:200] if raw else ''
    logger.warning(f"Unrecognized judge response shape, treating as no verdicts: {preview!r}")
    return []
