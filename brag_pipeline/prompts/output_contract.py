"""
System and correction prompts for structured extraction output.
"""

import json
from typing import Any, Dict, Sequence


OUTPUT_CONTRACT_TEMPLATE = """You extract structured work achievements for the user.

Respond with a single JSON object and nothing else (no prose, no markdown).
The object must match this JSON schema:

{schema}

Field rules:
- Dates are YYYY-MM-DD
- Omit impact when you cannot judge it
- If there are no achievements, respond with {{"achievements": []}}"""

CORRECTION_TEMPLATE = """Your previous output was invalid because:
{errors}

Reformat your answer as a single JSON object of the form {{"achievements": [...]}}
that matches the schema from the system message. Return only the JSON object."""


def build_output_contract(schema: Dict[str, Any]) -> str:
    """Build the system prompt that carries the response JSON schema."""
    return OUTPUT_CONTRACT_TEMPLATE.format(schema=json.dumps(schema, indent=2))


def build_correction_prompt(errors: Sequence[str]) -> str:
    """Build the follow-up sent after a response failed validation."""
    lines = "\n".join(f"- {e}" for e in errors) or "- The response could not be parsed"
    return CORRECTION_TEMPLATE.format(errors=lines)
