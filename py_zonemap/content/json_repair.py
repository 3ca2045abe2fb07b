"""Lenient parsing of JSON written by a language model."""

import json
import re
from typing import Any

from .errors import ContentGenerationError

_CODE_FENCE = re.compile(r"```?json`?", re.IGNORECASE)
_SINGLE_QUOTED_KEY = re.compile(r"([{,]\s*)'([^']+?)'\s*:")
_SINGLE_QUOTED_VALUE = re.compile(r":\s*'([^']+?)'")
_TRAILING_COMMA = re.compile(r",(?=\s*[}\]])")
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT = re.compile(r"^\s*//.*$", re.MULTILINE)
_UNDEFINED = re.compile(r"(?<=[:\s\[,])undefined\b")


def repair_json(text: str) -> Any:
    """
    Clean up common model output mistakes and parse the result.

    Handles code fences, stray backticks, single-quoted keys and values,
    trailing commas, comments on their own lines and ``undefined``.

    Raises:
        ContentGenerationError: if the text still is not valid JSON
    """
    fixed = _CODE_FENCE.sub("", text).strip()
    fixed = fixed.replace("`", "").strip()

    fixed = _SINGLE_QUOTED_KEY.sub(r'\1"\2":', fixed)
    fixed = _SINGLE_QUOTED_VALUE.sub(r': "\1"', fixed)

    fixed = _BLOCK_COMMENT.sub("", fixed)
    fixed = _LINE_COMMENT.sub("", fixed)
    fixed = _TRAILING_COMMA.sub("", fixed)
    fixed = _UNDEFINED.sub("null", fixed)

    try:
        return json.loads(fixed)
    except json.JSONDecodeError as e:
        raise ContentGenerationError(f"Could not parse model output as JSON: {e}") from e
