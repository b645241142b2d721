"""
Document tools: get and update a Google Doc.

Thin orchestration over the adapter, renderer, translator and executor.
Every DocsError is returned as its to_dict() form; nothing raises into
the MCP transport.
"""

from typing import Any, Sequence

from adapters.docs import fetch_document
from extractors.docs import render_document
from logging_config import logger
from models import DocsError
from validation import extract_document_id, parse_response_format

from .execute import execute
from .translate import describe_operation, parse_operations, translate


async def do_get_document(
    document_id: str,
    response_format: str | None = "markdown",
) -> str | dict[str, Any]:
    """
    Fetch a document and render it.

    Returns:
        Rendered document (markdown or JSON string), or an error dict
    """
    try:
        doc_id = extract_document_id(document_id)
        fmt = parse_response_format(response_format)
        model = await fetch_document(doc_id)
        return render_document(model, fmt)
    except DocsError as e:
        return e.to_dict()


async def do_update_document(
    document_id: str,
    requests: Sequence[Any] | None,
    response_format: str | None = "markdown",
) -> str | dict[str, Any]:
    """
    Validate, translate and apply a list of edit operations as one batch.

    The whole list is rejected before anything is sent if any operation
    is malformed.

    Returns:
        The post-mutation document, rendered, or an error dict
    """
    try:
        doc_id = extract_document_id(document_id)
        fmt = parse_response_format(response_format)
        operations = parse_operations(requests)
        batch = translate(operations)

        for position, op in enumerate(operations, 1):
            logger.info(f"{doc_id} [{position}/{len(operations)}] {describe_operation(op)}")

        result = await execute(doc_id, batch, fmt)
        return result.rendered or ""
    except DocsError as e:
        return e.to_dict()
