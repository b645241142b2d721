"""
Type definitions for the Google Docs MCP server.

Dataclasses defining the contracts between layers:
- auth.py produces bearer tokens from a ServiceAccountKey
- Adapters produce DocumentModel from API responses
- Extractors consume DocumentModel and return rendered strings
- The translator turns EditOperations into a BatchRequest
- Tools wire everything together

These types make the adapter→extractor contract explicit and IDE-checkable.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


# ============================================================================
# ERROR TYPES
# ============================================================================

class ErrorKind(Enum):
    """Categories of errors for consistent handling."""
    AUTH = "auth_error"                      # Key, signing or token endpoint failure
    NOT_FOUND = "not_found"                  # Document doesn't exist
    PERMISSION_DENIED = "permission_denied"  # Service account lacks access
    VALIDATION = "validation_error"          # Bad operation input or remote rejection
    TRANSIENT = "transient_error"            # Network, rate limit, 5xx
    UNKNOWN = "unknown"                      # Unexpected error


class DocsError(Exception):
    """
    Structured error for consistent handling across layers.

    Adapters raise these on API failures.
    Tools catch and format for MCP response.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool | None = None,
        kind: ErrorKind | None = None,
    ):
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.message = message
        self.details = details or {}
        self.retryable = self.default_retryable if retryable is None else retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for MCP response."""
        return {
            "error": True,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


class AuthError(DocsError):
    """Key file, signing step or token endpoint failure."""
    kind = ErrorKind.AUTH


class NotFoundError(DocsError):
    """Remote 404."""
    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(DocsError):
    """Remote 403: the service account has no access to the document."""
    kind = ErrorKind.PERMISSION_DENIED


class ValidationError(DocsError):
    """Malformed operation input, or the API rejected the batch."""
    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        operation_index: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = dict(details or {})
        if operation_index is not None:
            merged["operation_index"] = operation_index
        super().__init__(message, merged)
        self.operation_index = operation_index


class TransientError(DocsError):
    """Network failure, rate limit or 5xx. Safe to retry the whole call."""
    kind = ErrorKind.TRANSIENT
    default_retryable = True


# ============================================================================
# CREDENTIAL TYPES
# ============================================================================

@dataclass(frozen=True)
class ServiceAccountKey:
    """The fields of a service-account JSON key file we actually use."""
    client_email: str
    private_key: str  # PEM
    token_uri: str
    private_key_id: str | None = None
    project_id: str | None = None


@dataclass(frozen=True)
class CachedToken:
    """A bearer token and its absolute expiry (epoch seconds)."""
    value: str
    expires_at: float

    def is_fresh(self, now: float, skew: float) -> bool:
        """True while the token has more than `skew` seconds left."""
        return now < self.expires_at - skew


# ============================================================================
# DOCUMENT MODEL
# ============================================================================

class RenderFormat(Enum):
    """Output mode for the renderer."""
    MARKDOWN = "markdown"
    JSON = "json"


@dataclass
class TextRun:
    """A run of text sharing one style."""
    content: str
    start_index: int | None = None
    end_index: int | None = None
    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    monospace: bool = False
    link_url: str | None = None


@dataclass
class Bullet:
    """List membership of a paragraph."""
    list_id: str
    nesting_level: int = 0


@dataclass
class Paragraph:
    """A paragraph: ordered runs plus its named style."""
    runs: list[TextRun] = field(default_factory=list)
    named_style: str = "NORMAL_TEXT"
    bullet: Bullet | None = None
    start_index: int | None = None
    end_index: int | None = None

    @property
    def text(self) -> str:
        return "".join(run.content for run in self.runs)


@dataclass
class TableCell:
    """A table cell owns its own structural elements."""
    content: list["StructuralElement"] = field(default_factory=list)


@dataclass
class Table:
    rows: list[list[TableCell]] = field(default_factory=list)
    start_index: int | None = None
    end_index: int | None = None


@dataclass
class SectionBreak:
    start_index: int | None = None
    end_index: int | None = None


@dataclass
class TableOfContents:
    content: list["StructuralElement"] = field(default_factory=list)
    start_index: int | None = None
    end_index: int | None = None


StructuralElement = Union[Paragraph, Table, SectionBreak, TableOfContents]


@dataclass
class DocTab:
    """A single tab within a Google Doc."""
    title: str
    tab_id: str
    index: int
    content: list[StructuralElement] = field(default_factory=list)
    # list_id -> glyph type per nesting level ("BULLET", "DECIMAL", ...)
    lists: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class DocumentModel:
    """
    Assembled document data for the renderer.

    Adapter calls documents.get and assembles this structure.
    Both legacy single-tab and modern multi-tab docs are normalized
    to a flat list of DocTab for a consistent renderer interface.
    """
    document_id: str
    title: str
    tabs: list[DocTab] = field(default_factory=list)
    revision_id: str | None = None

    # Element kinds the parser skipped
    warnings: list[str] = field(default_factory=list)


# ============================================================================
# EDIT OPERATIONS
# ============================================================================

@dataclass(frozen=True)
class InsertText:
    text: str
    index: int


@dataclass(frozen=True)
class DeleteContentRange:
    start_index: int
    end_index: int


@dataclass(frozen=True)
class ReplaceAllText:
    find_text: str
    replace_text: str
    match_case: bool = False


# Closed set: the translator handles each case and ends in assert_never
EditOperation = Union[InsertText, DeleteContentRange, ReplaceAllText]

# Docs API request objects, in the order they must be applied
BatchRequest = list[dict[str, Any]]


# ============================================================================
# EXECUTION TYPES
# ============================================================================

class ExecutionState(Enum):
    """Lifecycle of a single update call."""
    IDLE = "idle"
    TOKEN_READY = "token_ready"
    BATCH_SENT = "batch_sent"
    SUCCEEDED = "succeeded"
    REFETCHING = "refetching"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ExecutionResult:
    """
    Outcome of executing one batch.

    `rendered` holds the post-mutation document in the requested format
    once the state reaches DONE.
    """
    document_id: str
    state: ExecutionState = ExecutionState.IDLE
    operations_applied: int = 0
    replies: list[dict[str, Any]] = field(default_factory=list)
    # One entry per replaceAllText request, in batch order
    occurrences_changed: list[int] = field(default_factory=list)
    rendered: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "state": self.state.value,
            "operations_applied": self.operations_applied,
            "occurrences_changed": self.occurrences_changed,
        }
