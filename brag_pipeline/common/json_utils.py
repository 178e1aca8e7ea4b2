"""
JSON Utilities for LLM Response Parsing.

This module provides robust JSON parsing for LLM outputs which may contain
malformed JSON (single quotes, trailing commas, unquoted keys, etc.).

Uses json-repair library as a fallback when standard json.loads() fails.
"""

import json
import re
from typing import Any, Dict, List, Union

from json_repair import repair_json

JsonValue = Union[Dict[str, Any], List[Any]]


def parse_llm_json(text: str) -> JsonValue:
    """
    Parse JSON from LLM response with robust error recovery.

    Handles common LLM output issues:
    - Markdown code blocks (```json ... ```)
    - JSON embedded in surrounding text
    - Single quotes instead of double quotes
    - Trailing commas
    - Unquoted keys

    Unlike a plain object parser, a top-level array is returned as a list:
    extraction models sometimes answer with a bare list of achievements.

    Args:
        text: Raw LLM response text that may contain JSON

    Returns:
        Parsed dict or list

    Raises:
        ValueError: If no valid JSON can be extracted or repaired

    Example:
        >>> parse_llm_json('```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
        >>> parse_llm_json("{'name': 'test',}")  # Single quotes + trailing comma
        {'name': 'test'}
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = _strip_markdown_blocks(text.strip())
    json_str = _extract_json_value(json_str)

    try:
        return json.loads(json_str)
    except json.JSONDecodeError:
        pass  # Fall through to repair

    try:
        repaired = repair_json(json_str, return_objects=True)
    except Exception as e:
        raise ValueError(
            f"Failed to parse or repair JSON: {e}\n"
            f"Original text (first 500 chars): {text[:500]}"
        ) from e

    if isinstance(repaired, (dict, list)):
        return repaired

    # repair_json yields "" when nothing was salvageable
    raise ValueError(
        f"Failed to parse or repair JSON: unexpected result {type(repaired).__name__}\n"
        f"Original text (first 500 chars): {text[:500]}"
    )


def _strip_markdown_blocks(text: str) -> str:
    """
    Remove markdown code block wrappers from text.

    Handles:
    - ```json ... ```
    - ``` ... ```
    - Leading/trailing whitespace
    """
    result = text

    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]

    if result.endswith("```"):
        result = result[:-3]

    return result.strip()


def _extract_json_value(text: str) -> str:
    """
    Extract a JSON object or array from text that may contain surrounding content.

    Raises:
        ValueError: If no JSON object or array pattern is found
    """
    text = text.strip()

    if text.startswith(("{", "[")):
        return text

    # Whichever bracket opens first wins, so prose before an array is skipped
    object_start = text.find("{")
    array_start = text.find("[")
    if array_start != -1 and (object_start == -1 or array_start < object_start):
        match = re.search(r"\[.*\]", text, re.DOTALL)
    else:
        match = re.search(r"\{.*\}", text, re.DOTALL)

    if match:
        return match.group(0)

    raise ValueError(f"No JSON object found in text: {text[:200]}")
