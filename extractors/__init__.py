"""
Extractors: Pure functions for content rendering.

No MCP awareness, no Google API calls. Just transform input → output.
Easily testable with fixtures.
"""

from .docs import (
    render_document,
    render_markdown,
    render_json,
    document_to_dict,
    document_from_dict,
)

__all__ = [
    "render_document",
    "render_markdown",
    "render_json",
    "document_to_dict",
    "document_from_dict",
]
