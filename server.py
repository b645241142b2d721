#!/usr/bin/env python3
"""
Google Docs MCP Server

Read and update Google Documents using service-account authentication.

Tools:
- google_docs_get_document: Document → markdown or JSON
- google_docs_update_document: Edit operations → one atomic batchUpdate,
  then the updated document

Architecture:
- auth.py: Service-account key → cached bearer token
- adapters/: Thin Google Docs API wrappers
- extractors/: Pure rendering functions (no MCP, no API calls)
- tools/: Tool implementations (translation, execution)
- server.py: Thin MCP wrappers (this file)
"""

import os
import signal
import sys
from typing import Any

from mcp.server.fastmcp import FastMCP

import config
from adapters.services import get_credential_manager
from logging_config import configure_logging, logger
from models import AuthError
from tools import do_get_document, do_update_document


# Initialize MCP server
mcp = FastMCP(
    "Google Docs",
    instructions=(
        "Google Docs MCP Server - Read and update Google Documents "
        "using Service Account authentication"
    ),
)


# ============================================================================
# TOOLS (thin wrappers)
# ============================================================================

@mcp.tool()
async def google_docs_get_document(
    document_id: str,
    response_format: str = "markdown",
) -> str | dict[str, Any]:
    """
    Get a Google Document by its ID.

    Returns the full content from all tabs (including nested child tabs).

    Args:
        document_id: Document ID or docs.google.com URL
        response_format: 'markdown' (default) or 'json'. JSON carries the
            character indices needed to target edits.

    Returns:
        The rendered document, or an error dict with kind and message
    """
    return await do_get_document(document_id, response_format)


@mcp.tool()
async def google_docs_update_document(
    document_id: str,
    requests: list[dict[str, Any]],
    response_format: str = "markdown",
) -> str | dict[str, Any]:
    """
    Update a Google Document with batch operations.

    Supported operations (one key per request object):

    insert_text: Insert text at a position
        text (str): The text to insert
        index (int): Position to insert at (1 = beginning of document body)

    delete_content_range: Delete a range
        start_index (int): Start of the range (inclusive)
        end_index (int): End of the range (exclusive, > start_index)

    replace_all_text: Replace every occurrence of a string
        find_text (str): The text to search for
        replace_text (str): The replacement text
        match_case (bool, optional): Case-sensitive match (default false)

    camelCase spellings (insertText, startIndex, findText, ...) are accepted.

    Example:
        requests=[
            {"insert_text": {"text": "Hello, World!", "index": 1}},
            {"replace_all_text": {"find_text": "old", "replace_text": "new"}},
        ]

    Notes:
        - Operations are applied in order, as one atomic batch
        - Each index must be valid after the operations before it
        - To append at the end, first get the document (json) to find the last index
        - A replace that matches nothing is not an error

    Args:
        document_id: Document ID or docs.google.com URL
        requests: List of operations, as above
        response_format: 'markdown' (default) or 'json' for the returned document

    Returns:
        The updated document, or an error dict (operation_index set when
        a specific request was rejected)
    """
    return await do_update_document(document_id, requests, response_format)


# ============================================================================
# SERVER ENTRY POINT
# ============================================================================

def _shutdown_handler(signum: int, frame: object) -> None:
    """Handle termination signals by exiting immediately.

    os._exit() is required because sys.exit() raises SystemExit,
    which asyncio's event loop catches and ignores. The server
    would survive SIGTERM until stdin closes.
    """
    os._exit(0)


def main() -> None:
    configure_logging(config.get_log_level())

    try:
        manager = get_credential_manager()
    except AuthError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    logger.info(f"Starting Google Docs MCP server as {manager.client_email}")

    signal.signal(signal.SIGTERM, _shutdown_handler)
    signal.signal(signal.SIGINT, _shutdown_handler)
    mcp.run()


if __name__ == "__main__":
    main()
