"""
Response extractor for model output.

Pulls a JSON payload out of text that may be wrapped in a Markdown code
fence. There is exactly one parse attempt; nothing is repaired.
"""

import json
import re
from typing import Any

# Fences explicitly tagged as JSON take precedence over any other fence
_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[ \t]*(?:[\w+-]+[ \t]*\n)?([\s\S]*?)```")

# Maximum raw text kept on errors for diagnostics
_RAW_PREVIEW_CHARS = 500


class ResponseFormatError(Exception):
    """Base for errors caused by malformed model output."""


class ExtractionError(ResponseFormatError):
    """Raised when no parseable JSON can be found in a response."""

    def __init__(self, message: str, raw_text: Any = None, cause: Exception | None = None):
        self.raw_text = raw_text[:_RAW_PREVIEW_CHARS] if isinstance(raw_text, str) else None
        self.cause = cause
        super().__init__(message)


def extract_json(text: Any) -> Any:
    """
    Extract and parse JSON from a model response.

    Args:
        text: Raw response text.

    Returns:
        The parsed JSON value.

    Raises:
        ExtractionError: If the input is not text, is blank, or holds no valid JSON.
    """
    if not isinstance(text, str) or not text.strip():
        raise ExtractionError("Response is empty or not text", raw_text=text)

    match = _JSON_FENCE.search(text) or _ANY_FENCE.search(text)
    json_str = match.group(1).strip() if match else text.strip()

    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ExtractionError(
            f"Failed to parse JSON from model response: {e}",
            raw_text=text,
            cause=e,
        ) from e
