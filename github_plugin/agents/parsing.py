"""
Parsing helpers for free-text model output.

Every prompt that expects a structured reply ends with one of the
footers below. The parsers accept minor format drift (surrounding
prose, markdown fences) and fail closed:

- parse_boolean_from_text  -> False
- parse_json_array_from_text -> []
- parse_json_object_from_text -> {}
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


BOOLEAN_FOOTER = "\nRespond with only a YES or a NO."

STRING_ARRAY_FOOTER = """
Respond with a JSON array of strings inside a JSON markdown code block, for example:
```json
["path/to/first.py", "path/to/second.md"]
```"""

JSON_OBJECT_FOOTER = """
Respond with a single JSON object inside a JSON markdown code block."""

_AFFIRMATIVE = {"YES", "Y", "TRUE", "T", "1", "ON", "ENABLE"}
_NEGATIVE = {"NO", "N", "FALSE", "F", "0", "OFF", "DISABLE"}

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
_WORD_RE = re.compile(r"\b(yes|no|true|false)\b", re.IGNORECASE)
_VERDICT_RE = re.compile(r"\b(YES|NO)\b")
_LABEL_RE = re.compile(r"^(?:final\s+)?(?:answer|verdict|response)\s*:\s*", re.IGNORECASE)


def _strip_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    return match.group(1) if match else text


def _as_token(text: str) -> Optional[bool]:
    cleaned = text.strip().strip(".!\"'`*").strip().upper()
    if cleaned in _AFFIRMATIVE:
        return True
    if cleaned in _NEGATIVE:
        return False
    return None


def parse_boolean_from_text(text: str) -> bool:
    """
    Interpret a yes/no style reply.

    Checked in order, first hit wins:
    1. the whole reply is a token ("YES", "no", "true", "0", ...)
    2. the last line that is a token, optionally labelled ("Answer: YES")
    3. the last upper-case YES or NO in the text
    4. the first yes/no/true/false word in the text
    Anything else is False.
    """
    if not text:
        return False

    body = _strip_fences(text)
    verdict = _as_token(body)
    if verdict is not None:
        return verdict

    for line in reversed(body.splitlines()):
        verdict = _as_token(_LABEL_RE.sub("", line.strip()))
        if verdict is not None:
            return verdict

    shouted = _VERDICT_RE.findall(body)
    if shouted:
        return shouted[-1] == "YES"

    match = _WORD_RE.search(text)
    if match:
        return match.group(1).lower() in ("yes", "true")

    logger.warning(f"Could not parse boolean from model output: {text[:80]!r}")
    return False


def parse_json_array_from_text(text: str) -> List[str]:
    """
    Extract a list of strings from a reply.

    Looks for a ```json fenced block first, then for the outermost
    [...] span. Non-string items are dropped.
    """
    if not text:
        return []

    candidates = []
    fenced = _FENCE_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    start = text.find("[")
    end = text.rfind("]") + 1
    if start != -1 and end > start:
        candidates.append(text[start:end])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, list):
            return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]

    logger.warning(f"Could not parse JSON array from model output: {text[:80]!r}")
    return []


def parse_json_object_from_text(text: str) -> Dict[str, Any]:
    """Extract a JSON object from a reply, {} when there is none."""
    if not text:
        return {}

    candidates = []
    fenced = _FENCE_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    start = text.find("{")
    end = text.rfind("}") + 1
    if start != -1 and end > start:
        candidates.append(text[start:end])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.warning(f"Could not parse JSON object from model output: {text[:80]!r}")
    return {}
