"""
quotesmith.llm.parsing - Structured-output parsing with validation.

The model is asked for JSON matching RESPONSE_SCHEMA. Anything that does not
parse or does not match is a FatalError; there is no repair pass.
"""

from __future__ import annotations

import json
import re
from typing import Any

from quotesmith.exceptions import FatalError
from quotesmith.models import GenerationResult

SUMMARY_FIELD = "transcription"
QUOTES_FIELD = "generatedQuotes"

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        SUMMARY_FIELD: {
            "type": "string",
            "description": "Video transcription, or a summary of the theme without video",
        },
        QUOTES_FIELD: {
            "type": "array",
            "items": {"type": "string"},
            "description": "3 generated heart-wrenching quotes",
        },
    },
    "required": [SUMMARY_FIELD, QUOTES_FIELD],
}


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text.strip()


def parse_generation_response(response: str | None) -> GenerationResult:
    """Parse and validate the model's JSON response.

    Args:
        response: Raw response text

    Returns:
        GenerationResult with the summary and quotes

    Raises:
        FatalError: If the response is empty, not JSON, or off-schema
    """
    if not response or not response.strip():
        raise FatalError("No response from model")

    text = strip_code_fence(response)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FatalError(
            f"Model response is not valid JSON: {e}\n\n"
            f"Response (first 500 chars):\n{text[:500]}"
        ) from e

    return validate_generation_response(data)


def validate_generation_response(data: Any) -> GenerationResult:
    """Check parsed JSON against the response schema.

    Raises:
        FatalError: If a required field is missing or has the wrong type
    """
    if not isinstance(data, dict):
        raise FatalError("Model response must be a JSON object")

    summary = data.get(SUMMARY_FIELD)
    if not isinstance(summary, str):
        raise FatalError(f"Model response missing '{SUMMARY_FIELD}' string")

    quotes = data.get(QUOTES_FIELD)
    if not isinstance(quotes, list) or not all(isinstance(q, str) for q in quotes):
        raise FatalError(f"Model response missing '{QUOTES_FIELD}' string array")

    return GenerationResult(summary_text=summary, quotes=tuple(quotes))
