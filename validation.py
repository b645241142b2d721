"""
Input validation and ID conversion utilities.

Handles:
- Google Docs URL → document ID extraction
- response_format string → RenderFormat
"""

import re

from models import RenderFormat, ValidationError

# =============================================================================
# PATTERNS
# =============================================================================

# https://docs.google.com/document/d/{id}/edit
GOOGLE_DOC_URL_PATTERN = re.compile(r'/document/(?:u/\d+/)?d/([a-zA-Z0-9_-]+)')
GOOGLE_DRIVE_QUERY_PATTERN = re.compile(r'[?&]id=([a-zA-Z0-9_-]+)')
GOOGLE_FILE_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')


# =============================================================================
# DOCUMENT ID EXTRACTION
# =============================================================================

def extract_document_id(input_value: str | None) -> str:
    """
    Extract a Google Docs document ID from a URL or validate a bare ID.

    Accepts:
    - Full URL: https://docs.google.com/document/d/1abc.../edit
    - Full URL: https://drive.google.com/open?id=1abc...
    - Bare ID: 1abc...

    Returns:
        Extracted document ID

    Raises:
        ValidationError: If input doesn't contain a valid document ID
    """
    if not input_value or not input_value.strip():
        raise ValidationError("Document ID cannot be empty")

    input_value = input_value.strip()

    if input_value.startswith('http://') or input_value.startswith('https://'):
        match = GOOGLE_DOC_URL_PATTERN.search(input_value)
        if match:
            return match.group(1)

        match = GOOGLE_DRIVE_QUERY_PATTERN.search(input_value)
        if match:
            return match.group(1)

        raise ValidationError(
            f"Could not extract document ID from URL: {input_value}\n"
            "Expected format: https://docs.google.com/document/d/{id}/..."
        )

    if not GOOGLE_FILE_ID_PATTERN.match(input_value):
        raise ValidationError(
            f"Invalid document ID format: {input_value}\n"
            "Document IDs contain only letters, numbers, hyphens, and underscores"
        )

    return input_value


# =============================================================================
# RESPONSE FORMAT
# =============================================================================

def parse_response_format(value: str | RenderFormat | None) -> RenderFormat:
    """
    Resolve the response_format tool argument.

    Raises:
        ValidationError: Anything other than "markdown" or "json"
    """
    if value is None or value == "":
        return RenderFormat.MARKDOWN
    if isinstance(value, RenderFormat):
        return value
    try:
        return RenderFormat(value.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown response_format {value!r}: expected 'markdown' or 'json'"
        ) from None
