"""Transcript extraction from raw request bodies."""

import base64
import binascii
import json
from typing import Any, Optional

MAX_TRANSCRIPT_LENGTH = 10_000_000


class TranscriptValidationError(Exception):
    """Transcript missing, blank or too long."""

    pass


def _sniff_text(text: str) -> Any:
    """Decode JSON objects and JSON strings; anything else is raw text."""
    stripped = text.strip()
    if stripped.startswith("{") or (stripped.startswith('"') and len(stripped) >= 2):
        try:
            decoded = json.loads(stripped)
        except json.JSONDecodeError:
            return text
        if isinstance(decoded, (dict, str)):
            return decoded
    return text


def transcript_from_body(body: Any) -> Optional[str]:
    """Find the transcript in a body of unknown shape.

    Accepts raw text (or UTF-8 bytes), a JSON string, or a mapping with a
    ``transcript`` string or a base64 ``transcriptBase64`` field.

    Args:
        body: Raw body or decoded mapping

    Returns:
        Transcript text, or None if no non-blank transcript was found
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        body = _sniff_text(body)

    if isinstance(body, str):
        return body if body.strip() else None

    if isinstance(body, dict):
        transcript = body.get("transcript")
        if isinstance(transcript, str) and transcript.strip():
            return transcript

        encoded = body.get("transcriptBase64")
        if isinstance(encoded, str):
            try:
                decoded = base64.b64decode(encoded).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                return None
            return decoded if decoded.strip() else None

    return None


def validate_transcript(transcript: Optional[str], max_length: int = MAX_TRANSCRIPT_LENGTH) -> str:
    """Validate transcript presence and length.

    Raises:
        TranscriptValidationError: If blank or longer than max_length
    """
    if transcript is None or not transcript.strip():
        raise TranscriptValidationError("transcript required")
    if len(transcript) > max_length:
        raise TranscriptValidationError(
            f"Transcript exceeds max length ({max_length} characters)."
        )
    return transcript
