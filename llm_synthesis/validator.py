"""Decoding layer for raw LLM analysis replies.

Turns free text into a tagged result: ``ValidResponse`` when a JSON object
could be extracted and normalized, ``MalformedResponse`` otherwise.
"""

import json
import re
from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError

from llm_synthesis.schema import AnalysisPayload

# NaN and Infinity are not valid JSON; they decode as null.
_DECODER = json.JSONDecoder(parse_constant=lambda _constant: None)


@dataclass(frozen=True)
class ValidResponse:
    """Reply that decoded into an ``AnalysisPayload``."""

    payload: AnalysisPayload


@dataclass(frozen=True)
class MalformedResponse:
    """Reply that could not be decoded.

    Attributes:
        stage: Which step failed ("empty", "json_parse" or "schema").
        reason: Human-readable description of the failure.
        raw_response: The original string.
    """

    stage: str
    reason: str
    raw_response: str


DecodedResponse = Union[ValidResponse, MalformedResponse]


def _strip_markdown_fences(text: str) -> str:
    """Remove optional markdown code fences wrapping JSON.

    Args:
        text: Raw LLM response string.

    Returns:
        The text with leading/trailing code fences removed, if present.
    """
    stripped = text.strip()
    match = re.match(
        r"^```(?:json)?\s*\n?(.*?)\n?\s*```$",
        stripped,
        re.DOTALL,
    )
    if match:
        return match.group(1).strip()
    return stripped


def extract_json_object(text: str) -> Union[dict, None]:
    """Return the first JSON object embedded in ``text``.

    Scans each ``{`` in order and returns the first position that decodes to
    a complete JSON object. Surrounding prose is ignored.
    """
    for match in re.finditer(r"\{", text):
        try:
            value, _ = _DECODER.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def decode_analysis_response(raw_response: str) -> DecodedResponse:
    """Decode a raw LLM reply into a tagged result.

    Steps:
        1. Reject empty replies.
        2. Strip optional markdown fences.
        3. Extract the first JSON object.
        4. Normalize it through ``AnalysisPayload``.

    Args:
        raw_response: The raw string returned by the LLM adapter.

    Returns:
        ``ValidResponse`` or ``MalformedResponse``. Never raises.
    """
    if not raw_response or not raw_response.strip():
        return MalformedResponse(stage="empty", reason="empty reply", raw_response=raw_response or "")

    cleaned = _strip_markdown_fences(raw_response)
    data = extract_json_object(cleaned)
    if data is None:
        return MalformedResponse(
            stage="json_parse",
            reason="no JSON object found in reply",
            raw_response=raw_response,
        )

    try:
        payload = AnalysisPayload.model_validate(data)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        return MalformedResponse(stage="schema", reason=errors, raw_response=raw_response)

    return ValidResponse(payload=payload)
