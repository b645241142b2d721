"""
Mutation executor: submit a batch, then re-fetch the result.

State machine for one update call:
    IDLE -> TOKEN_READY -> BATCH_SENT -> SUCCEEDED -> REFETCHING -> DONE
    any non-terminal state -> FAILED

The batchUpdate response carries no document content, so a successful
batch is always followed by a fresh fetch + render.
"""

from typing import Any

from adapters.docs import batch_update, fetch_document
from adapters.services import get_credential_manager
from extractors.docs import render_document
from logging_config import logger
from models import (
    BatchRequest,
    DocsError,
    ExecutionResult,
    ExecutionState,
    RenderFormat,
)

_TRANSITIONS: dict[ExecutionState, frozenset[ExecutionState]] = {
    ExecutionState.IDLE: frozenset({ExecutionState.TOKEN_READY, ExecutionState.FAILED}),
    ExecutionState.TOKEN_READY: frozenset({ExecutionState.BATCH_SENT, ExecutionState.FAILED}),
    ExecutionState.BATCH_SENT: frozenset({ExecutionState.SUCCEEDED, ExecutionState.FAILED}),
    ExecutionState.SUCCEEDED: frozenset({ExecutionState.REFETCHING}),
    ExecutionState.REFETCHING: frozenset({ExecutionState.DONE, ExecutionState.FAILED}),
    ExecutionState.DONE: frozenset(),
    ExecutionState.FAILED: frozenset(),
}


def _transition(result: ExecutionResult, new_state: ExecutionState) -> None:
    if new_state not in _TRANSITIONS[result.state]:
        raise RuntimeError(f"Illegal transition {result.state.value} -> {new_state.value}")
    logger.debug(f"batchUpdate {result.document_id}: {result.state.value} -> {new_state.value}")
    result.state = new_state


def _occurrences_changed(batch: BatchRequest, replies: list[dict[str, Any]]) -> list[int]:
    """occurrencesChanged for each replaceAllText request, in batch order."""
    counts: list[int] = []
    for position, request in enumerate(batch):
        if "replaceAllText" not in request:
            continue
        reply = replies[position] if position < len(replies) else {}
        counts.append(int((reply or {}).get("replaceAllText", {}).get("occurrencesChanged", 0)))
    return counts


async def execute(
    document_id: str,
    batch: BatchRequest,
    fmt: RenderFormat = RenderFormat.MARKDOWN,
) -> ExecutionResult:
    """
    Apply a translated batch and return the post-mutation document.

    Raises:
        ValidationError: The API rejected the batch (operation_index when known)
        PermissionDeniedError: 403
        NotFoundError: 404
        AuthError: Token could not be obtained
        TransientError: Still failing after whole-batch retries
    """
    result = ExecutionResult(document_id=document_id)

    try:
        await get_credential_manager().get_token()
        _transition(result, ExecutionState.TOKEN_READY)

        _transition(result, ExecutionState.BATCH_SENT)
        response = await batch_update(document_id, batch)
        _transition(result, ExecutionState.SUCCEEDED)

        result.replies = response.get("replies", [])
        result.operations_applied = len(batch)
        result.occurrences_changed = _occurrences_changed(batch, result.replies)
        if 0 in result.occurrences_changed:
            logger.info(f"batchUpdate {document_id}: a replaceAllText matched no text")

        _transition(result, ExecutionState.REFETCHING)
        model = await fetch_document(document_id)
        result.rendered = render_document(model, fmt)
        _transition(result, ExecutionState.DONE)

    except DocsError as e:
        if result.state is ExecutionState.REFETCHING:
            # The batch is already applied remotely; only the re-read failed
            e.details["batch_applied"] = True
        logger.error(f"batchUpdate {document_id} failed in state {result.state.value}: {e}")
        e.details["failed_in"] = result.state.value
        _transition(result, ExecutionState.FAILED)
        raise

    logger.info(
        f"batchUpdate {document_id}: applied {result.operations_applied} operations"
    )
    return result
