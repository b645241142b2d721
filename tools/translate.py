"""
Operation translator: abstract edit operations to a Docs batchUpdate.

Pure functions: no API calls, no logging.

Operations are translated in the order given and packed into one batch.
The API applies a batch atomically and sequentially, so each index must be
valid against the document as it stands after every earlier operation in
the batch. Callers supply such indices; nothing here renumbers them or
checks them against the document length (the API does that).
"""

from typing import Any, Sequence, assert_never

from models import (
    BatchRequest,
    DeleteContentRange,
    EditOperation,
    InsertText,
    ReplaceAllText,
    ValidationError,
)

# Wire keys -> canonical operation name. camelCase is the Docs API spelling.
_OPERATION_KEYS = {
    "insert_text": "insert_text",
    "insertText": "insert_text",
    "delete_content_range": "delete_content_range",
    "deleteContentRange": "delete_content_range",
    "replace_all_text": "replace_all_text",
    "replaceAllText": "replace_all_text",
}

_FIELD_ALIASES = {
    "startIndex": "start_index",
    "endIndex": "end_index",
    "findText": "find_text",
    "replaceText": "replace_text",
    "matchCase": "match_case",
}


# =============================================================================
# WIRE PARSING
# =============================================================================

def parse_operations(raw: Sequence[Any] | None) -> list[EditOperation]:
    """
    Convert tool-call request objects to EditOperations.

    Accepts:
        {"insert_text": {"text": str, "index": int}}
        {"delete_content_range": {"start_index": int, "end_index": int}}
        {"replace_all_text": {"find_text": str, "replace_text": str, "match_case": bool}}

    Raises:
        ValidationError: Malformed object, with its position in the list
    """
    if not raw:
        raise ValidationError("At least one update request is required")
    return [_parse_operation(item, position) for position, item in enumerate(raw)]


def _parse_operation(item: Any, position: int) -> EditOperation:
    if not isinstance(item, dict):
        raise ValidationError(f"Request {position} must be an object", operation_index=position)

    kinds = [key for key in item if key in _OPERATION_KEYS]
    if len(item) != 1 or len(kinds) != 1:
        raise ValidationError(
            f"Request {position} must contain exactly one of "
            "insert_text, delete_content_range, replace_all_text",
            operation_index=position,
        )

    key = kinds[0]
    body = item[key]
    if not isinstance(body, dict):
        raise ValidationError(f"Request {position}: {key} must be an object", operation_index=position)
    fields = {_FIELD_ALIASES.get(k, k): v for k, v in body.items()}

    kind = _OPERATION_KEYS[key]
    if kind == "insert_text":
        return InsertText(
            text=_require_str(fields, "text", position),
            index=_require_int(fields, "index", position),
        )
    if kind == "delete_content_range":
        return DeleteContentRange(
            start_index=_require_int(fields, "start_index", position),
            end_index=_require_int(fields, "end_index", position),
        )
    return ReplaceAllText(
        find_text=_require_str(fields, "find_text", position),
        replace_text=_require_str(fields, "replace_text", position),
        match_case=_optional_bool(fields, "match_case", position),
    )


def _require_int(fields: dict[str, Any], name: str, position: int) -> int:
    value = fields.get(name)
    # bool is an int subclass; True is not an index
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Request {position}: {name} must be an integer", operation_index=position)
    return value


def _require_str(fields: dict[str, Any], name: str, position: int) -> str:
    value = fields.get(name)
    if not isinstance(value, str):
        raise ValidationError(f"Request {position}: {name} must be a string", operation_index=position)
    return value


def _optional_bool(fields: dict[str, Any], name: str, position: int) -> bool:
    value = fields.get(name, False)
    if not isinstance(value, bool):
        raise ValidationError(f"Request {position}: {name} must be a boolean", operation_index=position)
    return value


# =============================================================================
# TRANSLATION
# =============================================================================

def translate(operations: Sequence[EditOperation]) -> BatchRequest:
    """
    Build the ordered batchUpdate request list.

    One Docs request per operation, in input order. Any invalid operation
    rejects the whole batch.

    Raises:
        ValidationError: First operation violating its invariants
    """
    if not operations:
        raise ValidationError("At least one update request is required")
    return [_translate_one(op, position) for position, op in enumerate(operations)]


def _translate_one(op: EditOperation, position: int) -> dict[str, Any]:
    if isinstance(op, InsertText):
        if op.index < 1:
            raise ValidationError(
                f"Request {position}: insert index must be at least 1 "
                "(1 = beginning of document body)",
                operation_index=position,
            )
        if not op.text:
            raise ValidationError(f"Request {position}: insert text cannot be empty", operation_index=position)
        return {"insertText": {"text": op.text, "location": {"index": op.index}}}

    if isinstance(op, DeleteContentRange):
        if op.start_index < 1:
            raise ValidationError(f"Request {position}: start index must be at least 1", operation_index=position)
        if op.end_index <= op.start_index:
            raise ValidationError(
                f"Request {position}: end index must be greater than start index "
                f"(got {op.start_index}..{op.end_index})",
                operation_index=position,
            )
        return {
            "deleteContentRange": {
                "range": {"startIndex": op.start_index, "endIndex": op.end_index},
            },
        }

    if isinstance(op, ReplaceAllText):
        if not op.find_text:
            raise ValidationError(f"Request {position}: find text cannot be empty", operation_index=position)
        return {
            "replaceAllText": {
                "containsText": {"text": op.find_text, "matchCase": op.match_case},
                "replaceText": op.replace_text,
            },
        }

    assert_never(op)


# =============================================================================
# SUMMARIES
# =============================================================================

def _truncate(text: str, max_len: int) -> str:
    return text if len(text) <= max_len else f"{text[:max_len]}..."


def describe_operation(op: EditOperation) -> str:
    """One-line human summary of an operation."""
    if isinstance(op, InsertText):
        return f'Inserted text at index {op.index}: "{_truncate(op.text, 50)}"'
    if isinstance(op, DeleteContentRange):
        return f"Deleted content from index {op.start_index} to {op.end_index}"
    if isinstance(op, ReplaceAllText):
        return (
            f'Replaced "{_truncate(op.find_text, 30)}" with "{_truncate(op.replace_text, 30)}" '
            f"(case-sensitive: {op.match_case})"
        )
    assert_never(op)
