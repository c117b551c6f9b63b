# src/aippt/services/json_repair.py
"""
Recover a JSON array of page objects from raw model output.

Models wrap JSON in prose or ```json fences, and long outputs get cut off when
they hit the token limit. The pipeline is:

1. unwrap a fenced code block if there is one
2. slice from the first ``[`` to the last ``]`` (or to the end if never closed)
3. ``json.loads`` the slice
4. otherwise truncate to the last structurally complete boundary and retry

Repair only ever truncates; it never invents field values.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List

from aippt.core.logging import get_logger
from aippt.kernel.errors import ParseError

log = get_logger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_TRAILING_COMMA = re.compile(r",\s*$")


class ScanState(str, Enum):
    DEFAULT = "default"
    IN_STRING = "in_string"
    ESCAPED = "escaped"


@dataclass
class ScanResult:
    last_complete_object: int = -1   # offset of '}' closing the last top-level object
    last_property_comma: int = -1    # offset of the last ',' between properties of a top-level object


def extract_json_array(raw: str) -> str:
    s = (raw or "").strip()
    m = _FENCE.search(s)
    if m:
        s = m.group(1).strip()

    start = s.find("[")
    end = s.rfind("]")
    if start != -1 and end != -1 and end > start:
        return s[start:end + 1]
    if start != -1:
        # array opened but never closed: truncated response
        return s[start:]
    return s


def scan(s: str) -> ScanResult:
    """Single pass over `s`, tracking string/escape state and {} / [] depth."""
    res = ScanResult()
    state = ScanState.DEFAULT
    brace = 0
    bracket = 0

    for i, ch in enumerate(s):
        if state is ScanState.ESCAPED:
            state = ScanState.IN_STRING
            continue
        if state is ScanState.IN_STRING:
            if ch == "\\":
                state = ScanState.ESCAPED
            elif ch == '"':
                state = ScanState.DEFAULT
            continue

        if ch == '"':
            state = ScanState.IN_STRING
        elif ch == "[":
            bracket += 1
        elif ch == "]":
            bracket -= 1
        elif ch == "{":
            brace += 1
        elif ch == "}":
            brace -= 1
            if brace == 0 and bracket <= 1:
                res.last_complete_object = i
        elif ch == "," and brace == 1 and bracket == 1:
            res.last_property_comma = i

    return res


def repair_truncated_json(json_str: str) -> str:
    """
    Strategy A: cut after the last complete top-level object and close the array.
    Strategy B: no complete object yet, cut before the last property comma and close `}]`.
    Neither applies: return the input unchanged (the caller's parse will fail).
    """
    s = json_str.strip()
    res = scan(s)

    if res.last_complete_object > 0:
        s = s[:res.last_complete_object + 1]
        if not s.endswith("]"):
            s = _TRAILING_COMMA.sub("", s) + "]"
        if not s.startswith("["):
            s = "[" + s
        log.info("json repair: kept objects up to offset %d", res.last_complete_object)
        return s

    if res.last_property_comma > 0:
        s = s[:res.last_property_comma] + "}]"
        if not s.startswith("["):
            s = "[" + s
        log.info("json repair: closed partial object at property comma %d", res.last_property_comma)
        return s

    return s


def parse_json_array(raw: str) -> List[Any]:
    """Full pipeline: fences -> array bounds -> direct parse -> structural repair -> ParseError."""
    json_str = extract_json_array(raw)
    try:
        data = json.loads(json_str)
    except ValueError as e:
        log.warning("direct parse failed, attempting repair: %s", e)
        repaired = repair_truncated_json(json_str)
        try:
            data = json.loads(repaired)
        except ValueError as e2:
            raise ParseError(detail=f"Failed to parse AI response as JSON: {e2}", text=json_str) from e2
        log.info("json repaired, got %d items", len(data) if isinstance(data, list) else 0)

    if not isinstance(data, list):
        raise ParseError(detail="AI response is not a JSON array", text=json_str)
    return data
