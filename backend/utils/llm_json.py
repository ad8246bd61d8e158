"""
Parsing of JSON replies from the language model.

Model output is treated as already-encoded JSON: nothing is escaped or
re-escaped. Raw control characters inside strings (e.g. literal newlines
in generated XML) are tolerated by the decoder instead.
"""

import json
import re
from typing import Any, Tuple, Type

from utils.errors import LLMResponseFormatError

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```$", re.DOTALL)


def strip_code_fence(content: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    content = content.strip()
    match = _CODE_FENCE.match(content)
    if match:
        return match.group(1).strip()
    return content


def parse_llm_json(content: str, expected: Tuple[Type, ...] = (dict, list), source: str = "LLM") -> Any:
    """
    Parse a model reply as JSON.

    Raises:
        LLMResponseFormatError: If the reply is empty, not JSON, or of the wrong shape
    """
    if not content or not content.strip():
        raise LLMResponseFormatError(f"Invalid response format from {source}: empty response")

    try:
        parsed = json.loads(strip_code_fence(content), strict=False)
    except json.JSONDecodeError as e:
        raise LLMResponseFormatError(f"Invalid response format from {source}: {e}")

    if not isinstance(parsed, expected):
        names = " or ".join(t.__name__ for t in expected)
        raise LLMResponseFormatError(
            f"Invalid response format from {source}: expected {names}, got {type(parsed).__name__}"
        )
    return parsed
