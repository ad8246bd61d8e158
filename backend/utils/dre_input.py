"""
DRE input loading

Turns the uploaded JSON (a string, a list of rules, a single rule, or a
Salesforce query result with a "records" list) into DreRule models.
"""

import json
from typing import Any, List

from pydantic import ValidationError

from schemas.dre_rule import DreRule
from utils.errors import InputValidationError


def _as_rule_list(data: Any) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("records"), list):
            return data["records"]
        return [data]
    raise InputValidationError(
        f"DRE rules must be a JSON array or object, got {type(data).__name__}"
    )


def parse_dre_rules(raw: Any) -> List[DreRule]:
    """
    Parse raw DRE input into rules.

    Raises:
        InputValidationError: If the input is not valid JSON or not rule-shaped
    """
    if raw is None or raw == "":
        raise InputValidationError("Request must include a jsonString field")

    data = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InputValidationError(f"Invalid JSON input: {e}")

    items = _as_rule_list(data)
    if not items:
        raise InputValidationError("No DRE rules found in input")

    rules = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise InputValidationError(f"DRE rule at index {index} must be a JSON object")
        try:
            rules.append(DreRule.model_validate(item))
        except ValidationError as e:
            raise InputValidationError(f"Invalid DRE rule at index {index}: {e}")
    return rules


def load_dre_rules_file(path: str) -> List[DreRule]:
    """Read and parse the DRE rule export stored at path."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        raise InputValidationError(f"DRE input file not found: {path}")
    return parse_dre_rules(content)
