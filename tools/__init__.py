"""
Tools: MCP tool implementations.

Each tool has its own module with the implementation logic.
server.py provides thin @mcp.tool() wrappers that call into these.

- documents: get / update entry points
- translate: edit operations → batchUpdate requests (pure)
- execute: batch submission, whole-batch retry, re-fetch
"""

from .documents import do_get_document, do_update_document
from .execute import execute
from .translate import describe_operation, parse_operations, translate

__all__ = [
    "do_get_document", "do_update_document", "execute",
    "describe_operation", "parse_operations", "translate",
]
