"""
Docs adapter: Google Docs API wrapper.

Fetches document structure and submits batchUpdate requests.
Normalizes legacy/modern (tabbed) documents to DocumentModel.
"""

import re
from typing import Any, Iterator
from urllib.parse import quote

import httpx

import config
from adapters.services import get_credential_manager, get_http_client
from auth import CredentialManager
from logging_config import log_api_call, log_api_result
from models import (
    AuthError,
    BatchRequest,
    Bullet,
    DocsError,
    DocTab,
    DocumentModel,
    NotFoundError,
    Paragraph,
    PermissionDeniedError,
    SectionBreak,
    StructuralElement,
    Table,
    TableCell,
    TableOfContents,
    TextRun,
    TransientError,
    ValidationError,
)
from retry import RETRYABLE_STATUS_CODES, with_retry


# Fonts rendered as inline code
MONOSPACE_FONTS = frozenset({
    "Courier New", "Roboto Mono", "Consolas", "Source Code Pro",
    "Monaco", "Menlo", "Fira Code", "JetBrains Mono", "Inconsolata",
})

# "Invalid requests[2].deleteContentRange: ..." -> 2
_REQUEST_INDEX_PATTERN = re.compile(r"requests\[(\d+)\]")


# =============================================================================
# HTTP HELPERS
# =============================================================================

def _document_url(document_id: str) -> str:
    return f"{config.DOCS_API_URL}/documents/{quote(document_id, safe='')}"


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _error_message(response: httpx.Response) -> str:
    """Pull error.message out of a Google error body, else the raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text


def _failed_request_index(message: str) -> int | None:
    match = _REQUEST_INDEX_PATTERN.search(message)
    return int(match.group(1)) if match else None


def _raise_for_status(
    response: httpx.Response,
    document_id: str,
    manager: CredentialManager,
) -> None:
    """Map a non-2xx Docs API response to a typed error."""
    if response.is_success:
        return

    status = response.status_code
    message = _error_message(response)
    details: dict[str, Any] = {"document_id": document_id, "status": status}

    if status == 404:
        raise NotFoundError(
            f"Document not found: {document_id}. Please check the document ID. Details: {message}",
            details,
        )
    if status == 403:
        raise PermissionDeniedError(
            f"Permission denied for document {document_id}. Ensure the service account "
            f"({manager.client_email}) has access to this document. Details: {message}",
            details,
        )
    if status == 401:
        manager.invalidate()
        raise AuthError(
            f"Authentication failed. Check service account credentials. Details: {message}",
            details,
        )
    if status == 400:
        raise ValidationError(
            f"Request rejected for document {document_id}: {message}",
            operation_index=_failed_request_index(message),
            details=details,
        )
    if status == 429:
        raise TransientError(
            "Rate limit exceeded. Please wait before making more requests.",
            details,
        )
    if status in RETRYABLE_STATUS_CODES:
        raise TransientError(f"API request failed with status {status}: {message}", details)

    raise DocsError(f"API request failed with status {status}: {message}", details)


def _parse_json(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as e:
        raise DocsError(f"Failed to parse API response: {e}") from e
    if not isinstance(body, dict):
        raise DocsError("Failed to parse API response: expected a JSON object")
    return body


# =============================================================================
# API CALLS
# =============================================================================

@with_retry()
async def fetch_document(document_id: str) -> DocumentModel:
    """
    Fetch complete document structure.

    Handles both legacy (single-tab) and modern (multi-tab) document formats,
    normalizing both to DocumentModel with a flat list of tabs.

    Args:
        document_id: The document ID (from URL or API)

    Returns:
        DocumentModel ready for the renderer

    Raises:
        NotFoundError: 404, never retried
        PermissionDeniedError: 403, never retried
        TransientError: Network/429/5xx still failing after the retry budget
    """
    manager = get_credential_manager()
    token = await manager.get_token()

    log_api_call("docs", "documents.get", documentId=document_id)
    response = await get_http_client().get(
        _document_url(document_id),
        params={"includeTabsContent": "true"},
        headers=_auth_headers(token),
    )
    _raise_for_status(response, document_id, manager)

    model = parse_document(_parse_json(response), document_id)
    log_api_result("docs", "documents.get", response.status_code, len(model.tabs), "tabs")
    return model


@with_retry()
async def batch_update(document_id: str, requests: BatchRequest) -> dict[str, Any]:
    """
    Submit one batchUpdate.

    The API applies the requests atomically and in order. A retry re-submits
    the whole batch; a suffix is never sent on its own.

    Returns:
        Raw batchUpdate response (documentId, replies, writeControl)
    """
    manager = get_credential_manager()
    token = await manager.get_token()

    log_api_call("docs", "documents.batchUpdate", documentId=document_id, requests=len(requests))
    response = await get_http_client().post(
        f"{_document_url(document_id)}:batchUpdate",
        json={"requests": requests},
        headers=_auth_headers(token),
    )
    _raise_for_status(response, document_id, manager)

    result = _parse_json(response)
    log_api_result(
        "docs", "documents.batchUpdate", response.status_code, len(result.get("replies", [])), "replies",
    )
    return result


# =============================================================================
# PARSING
# =============================================================================

def parse_document(raw: dict[str, Any], document_id: str | None = None) -> DocumentModel:
    """Build a DocumentModel from a documents.get response."""
    unknown: set[str] = set()

    tabs_data = raw.get("tabs", [])
    if tabs_data:
        tabs = [
            _build_tab(tab_data, i, unknown)
            for i, tab_data in enumerate(_walk_tabs(tabs_data))
        ]
    else:
        tabs = [_build_legacy_tab(raw, unknown)]

    warnings = []
    if unknown:
        warnings.append(f"Unknown element types ignored: {', '.join(sorted(unknown))}")

    return DocumentModel(
        document_id=raw.get("documentId") or document_id or "",
        title=raw.get("title", "Untitled"),
        tabs=tabs,
        revision_id=raw.get("revisionId"),
        warnings=warnings,
    )


def _walk_tabs(tabs_data: list[dict[str, Any]]) -> Iterator[dict[str, Any]]:
    """Depth-first: each tab, then its child tabs."""
    for tab_data in tabs_data:
        yield tab_data
        yield from _walk_tabs(tab_data.get("childTabs", []))


def _build_tab(tab_data: dict[str, Any], index: int, unknown: set[str]) -> DocTab:
    """Build DocTab from a tabs[] entry."""
    props = tab_data.get("tabProperties", {})
    doc_tab = tab_data.get("documentTab", {})

    return DocTab(
        title=props.get("title", f"Tab {index + 1}"),
        tab_id=props.get("tabId", f"tab_{index}"),
        index=index,
        content=_parse_elements(doc_tab.get("body", {}).get("content", []), unknown),
        lists=_parse_lists(doc_tab.get("lists", {})),
    )


def _build_legacy_tab(doc: dict[str, Any], unknown: set[str]) -> DocTab:
    """Build DocTab from legacy single-tab document format."""
    return DocTab(
        title=doc.get("title", "Untitled"),
        tab_id="main",
        index=0,
        content=_parse_elements(doc.get("body", {}).get("content", []), unknown),
        lists=_parse_lists(doc.get("lists", {})),
    )


def _parse_lists(lists: dict[str, Any]) -> dict[str, list[str]]:
    """list_id -> glyph type per nesting level."""
    return {
        list_id: [
            level.get("glyphType", "BULLET")
            for level in definition.get("listProperties", {}).get("nestingLevels", [])
        ]
        for list_id, definition in lists.items()
    }


def _parse_elements(elements: list[dict[str, Any]], unknown: set[str]) -> list[StructuralElement]:
    parsed: list[StructuralElement] = []
    for element in elements:
        start = element.get("startIndex")
        end = element.get("endIndex")

        if "paragraph" in element:
            parsed.append(_parse_paragraph(element["paragraph"], start, end, unknown))
        elif "table" in element:
            parsed.append(Table(
                rows=[
                    [
                        TableCell(content=_parse_elements(cell.get("content", []), unknown))
                        for cell in row.get("tableCells", [])
                    ]
                    for row in element["table"].get("tableRows", [])
                ],
                start_index=start,
                end_index=end,
            ))
        elif "sectionBreak" in element:
            parsed.append(SectionBreak(start_index=start, end_index=end))
        elif "tableOfContents" in element:
            parsed.append(TableOfContents(
                content=_parse_elements(element["tableOfContents"].get("content", []), unknown),
                start_index=start,
                end_index=end,
            ))
        else:
            elem_type = next((k for k in element if k not in ("startIndex", "endIndex")), None)
            if elem_type:
                unknown.add(elem_type)
    return parsed


def _parse_paragraph(
    paragraph: dict[str, Any],
    start: int | None,
    end: int | None,
    unknown: set[str],
) -> Paragraph:
    runs: list[TextRun] = []
    for elem in paragraph.get("elements", []):
        if "textRun" in elem:
            runs.append(_parse_text_run(elem))
        else:
            elem_type = next((k for k in elem if k not in ("startIndex", "endIndex")), None)
            if elem_type:
                unknown.add(elem_type)

    bullet_data = paragraph.get("bullet")
    bullet = None
    if bullet_data:
        bullet = Bullet(
            list_id=bullet_data.get("listId", ""),
            nesting_level=bullet_data.get("nestingLevel", 0),
        )

    return Paragraph(
        runs=runs,
        named_style=paragraph.get("paragraphStyle", {}).get("namedStyleType", "NORMAL_TEXT"),
        bullet=bullet,
        start_index=start,
        end_index=end,
    )


def _parse_text_run(elem: dict[str, Any]) -> TextRun:
    text_run = elem["textRun"]
    style = text_run.get("textStyle", {})
    font_family = style.get("weightedFontFamily", {}).get("fontFamily", "")

    return TextRun(
        content=text_run.get("content", ""),
        start_index=elem.get("startIndex"),
        end_index=elem.get("endIndex"),
        bold=bool(style.get("bold", False)),
        italic=bool(style.get("italic", False)),
        strikethrough=bool(style.get("strikethrough", False)),
        underline=bool(style.get("underline", False)),
        monospace=font_family in MONOSPACE_FONTS,
        link_url=style.get("link", {}).get("url"),
    )
