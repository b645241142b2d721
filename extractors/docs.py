"""
Docs Extractor: Pure functions for rendering a DocumentModel.

Markdown for reading, JSON for callers that need character indices
(markdown drops them, and edit operations address content by index).
No API calls, no MCP awareness, no logging.
"""

import json
from dataclasses import asdict
from typing import Any, assert_never

import config
from models import (
    Bullet,
    DocTab,
    DocumentModel,
    Paragraph,
    RenderFormat,
    SectionBreak,
    StructuralElement,
    Table,
    TableCell,
    TableOfContents,
    TextRun,
)


HEADING_PREFIXES = {
    "TITLE": "# ",
    "SUBTITLE": "## ",
    "HEADING_1": "# ",
    "HEADING_2": "## ",
    "HEADING_3": "### ",
    "HEADING_4": "#### ",
    "HEADING_5": "##### ",
    "HEADING_6": "###### ",
}

TAB_SEPARATOR = "\n\n" + "=" * 60 + "\n\n"


def render_document(model: DocumentModel, fmt: RenderFormat = RenderFormat.MARKDOWN) -> str:
    """Render a document in the requested format."""
    if fmt is RenderFormat.MARKDOWN:
        return render_markdown(model)
    if fmt is RenderFormat.JSON:
        return render_json(model)
    assert_never(fmt)


def render_markdown(model: DocumentModel) -> str:
    """
    Convert a document to markdown.

    A single-tab document renders as its body alone. Multi-tab documents get
    a header per tab (unless the tab already opens with an H1) and a
    separator between tabs:
        # Tab Title

        Content here...

        ============================================================

        # Second Tab

        More content...
    """
    rendered: list[str] = []
    multi_tab = len(model.tabs) > 1

    for tab in model.tabs:
        tab_text = _render_elements(tab.content, tab.lists, {}).strip()
        if multi_tab and not tab_text.startswith("# "):
            tab_text = f"# {tab.title}\n\n{tab_text}".rstrip()
        rendered.append(tab_text)

    return TAB_SEPARATOR.join(rendered)


def render_json(model: DocumentModel) -> str:
    """Serialize the structural tree with stable field names."""
    return json.dumps(document_to_dict(model), indent=2, ensure_ascii=False)


# =============================================================================
# MARKDOWN ESCAPING
# =============================================================================


def _escape_markdown_link_text(text: str) -> str:
    """Escape characters that break markdown link text syntax."""
    return text.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def _escape_markdown_url(url: str) -> str:
    """Escape characters that break markdown URL syntax."""
    return url.replace("(", "%28").replace(")", "%29")


def _format_markdown_link(text: str, url: str) -> str:
    """Format text and URL as a markdown link with proper escaping."""
    return f"[{_escape_markdown_link_text(text)}]({_escape_markdown_url(url)})"


# =============================================================================
# LIST HANDLING
# =============================================================================


def _get_list_prefix(
    lists: dict[str, list[str]],
    list_id: str,
    nesting_level: int,
    list_counters: dict[tuple[str, int], int],
) -> str:
    """
    Get the markdown list prefix for a list item.

    Args:
        lists: list_id -> glyph type per nesting level
        list_id: The list ID this paragraph belongs to
        nesting_level: 0-based nesting level
        list_counters: Dict tracking counters per (list_id, level)

    Returns:
        Markdown prefix like "1. ", "- ", "  a. " etc.
    """
    counter_key = (list_id, nesting_level)
    list_counters[counter_key] = list_counters.get(counter_key, 0) + 1
    item_number = list_counters[counter_key]

    glyphs = lists.get(list_id, [])
    glyph_type = glyphs[nesting_level] if nesting_level < len(glyphs) else "BULLET"

    # 2 spaces per level
    indent = "  " * nesting_level

    if glyph_type == "DECIMAL":
        return f"{indent}{item_number}. "
    elif glyph_type == "ZERO_DECIMAL":
        return f"{indent}{item_number:02d}. "
    elif glyph_type == "ALPHA":
        return f"{indent}{_to_alpha(item_number, lowercase=True)}. "
    elif glyph_type == "UPPER_ALPHA":
        return f"{indent}{_to_alpha(item_number, lowercase=False)}. "
    elif glyph_type == "ROMAN":
        return f"{indent}{_to_roman(item_number, lowercase=True)}. "
    elif glyph_type == "UPPER_ROMAN":
        return f"{indent}{_to_roman(item_number, lowercase=False)}. "
    else:
        # BULLET, GLYPH_TYPE_UNSPECIFIED, or custom symbol
        return f"{indent}- "


def _to_alpha(n: int, lowercase: bool = True) -> str:
    """Convert number to alphabetic: 1->a, 26->z, 27->aa, etc."""
    result = ""
    while n > 0:
        n -= 1
        char = chr(ord("a" if lowercase else "A") + (n % 26))
        result = char + result
        n //= 26
    return result


def _to_roman(n: int, lowercase: bool = True) -> str:
    """Convert number to roman numeral."""
    numerals = [
        (1000, "m"), (900, "cm"), (500, "d"), (400, "cd"),
        (100, "c"), (90, "xc"), (50, "l"), (40, "xl"),
        (10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i"),
    ]
    result = ""
    for value, numeral in numerals:
        while n >= value:
            result += numeral
            n -= value
    return result if lowercase else result.upper()


# =============================================================================
# ELEMENT RENDERING
# =============================================================================


def _render_elements(
    elements: list[StructuralElement],
    lists: dict[str, list[str]],
    list_counters: dict[tuple[str, int], int],
) -> str:
    """Render structural elements in document order."""
    text_parts: list[str] = []

    # Track previous list state to reset counters when list changes
    prev_list_id: str | None = None
    prev_nesting_level = -1

    for element in elements:
        if isinstance(element, Paragraph):
            para_text, prev_list_id, prev_nesting_level = _render_paragraph(
                element, lists, list_counters, prev_list_id, prev_nesting_level,
            )
            text_parts.append(para_text)
        elif isinstance(element, Table):
            text_parts.append(_render_table(element, lists, list_counters))
        elif isinstance(element, TableOfContents):
            text_parts.append(_render_elements(element.content, lists, list_counters))
        elif isinstance(element, SectionBreak):
            # Every body opens with a section break that carries no content
            if any(part.strip() for part in text_parts):
                text_parts.append("\n---\n")
        else:
            assert_never(element)

    return "".join(text_parts)


def _render_paragraph(
    paragraph: Paragraph,
    lists: dict[str, list[str]],
    list_counters: dict[tuple[str, int], int],
    prev_list_id: str | None,
    prev_nesting_level: int,
) -> tuple[str, str | None, int]:
    """
    Render one paragraph.

    Returns:
        Tuple of (paragraph_text, new_prev_list_id, new_prev_nesting_level)
    """
    list_prefix = ""
    bullet = paragraph.bullet

    if bullet is not None:
        list_id = bullet.list_id
        nesting_level = bullet.nesting_level

        # Reset counters when list changes or going back up levels
        if list_id != prev_list_id:
            for k in [k for k in list_counters if k[0] == list_id]:
                del list_counters[k]
        elif nesting_level < prev_nesting_level:
            for level in range(nesting_level + 1, prev_nesting_level + 1):
                list_counters.pop((list_id, level), None)

        list_prefix = _get_list_prefix(lists, list_id, nesting_level, list_counters)
        prev_list_id = list_id
        prev_nesting_level = nesting_level
    else:
        prev_list_id = None
        prev_nesting_level = -1

    content = _render_runs(paragraph.runs)
    if not content.strip():
        return content, prev_list_id, prev_nesting_level

    heading_prefix = HEADING_PREFIXES.get(paragraph.named_style, "")
    return heading_prefix + list_prefix + content, prev_list_id, prev_nesting_level


def _render_runs(runs: list[TextRun]) -> str:
    """Concatenate runs, merging adjacent runs that share a link."""
    text_parts: list[str] = []

    current_link_url: str | None = None
    current_link_text: list[str] = []

    def flush_link() -> None:
        nonlocal current_link_url, current_link_text
        if current_link_url and current_link_text:
            combined = "".join(current_link_text)
            stripped = combined.rstrip()
            trailing = combined[len(stripped):]
            if stripped:
                text_parts.append(_format_markdown_link(stripped, current_link_url))
            text_parts.append(trailing)
        current_link_url = None
        current_link_text = []

    for run in runs:
        content = _apply_text_formatting(run)

        if run.link_url and content.strip():
            if run.link_url == current_link_url:
                current_link_text.append(content)
            else:
                flush_link()
                current_link_url = run.link_url
                current_link_text = [content]
        else:
            flush_link()
            text_parts.append(content)

    flush_link()
    return "".join(text_parts)


def _apply_text_formatting(run: TextRun) -> str:
    """Apply markdown formatting based on run attributes."""
    content = run.content
    if not content or not content.strip():
        return content

    # Preserve whitespace outside formatting
    leading_ws = content[: len(content) - len(content.lstrip())]
    trailing_ws = content[len(content.rstrip()):]
    inner = content.strip()

    if run.monospace:
        # Code spans don't support nested formatting
        return leading_ws + f"`{inner}`" + trailing_ws
    elif run.bold or run.italic or run.strikethrough:
        if run.italic:
            inner = f"*{inner}*"
        if run.bold:
            inner = f"**{inner}**"
        if run.strikethrough:
            inner = f"~~{inner}~~"
        return leading_ws + inner + trailing_ws

    return content


def _render_table(
    table: Table,
    lists: dict[str, list[str]],
    list_counters: dict[tuple[str, int], int],
) -> str:
    """Render a table as pipe-delimited markdown rows."""
    if not table.rows:
        return ""

    table_lines: list[str] = []

    for row_idx, row in enumerate(table.rows):
        cell_texts: list[str] = []
        for cell in row:
            cell_text = _render_elements(cell.content, lists, list_counters)
            # Clean for table cell: strip, collapse newlines, escape pipes
            cell_texts.append(cell_text.strip().replace("\n", " ").replace("|", "\\|"))

        table_lines.append("| " + " | ".join(cell_texts) + " |")

        # Header separator after first row
        if row_idx == 0:
            table_lines.append("|" + "|".join(["---"] * len(cell_texts)) + "|")

    return "\n".join(table_lines) + "\n\n"


# =============================================================================
# JSON PROJECTION
# =============================================================================


def document_to_dict(model: DocumentModel) -> dict[str, Any]:
    """Project the document tree onto plain JSON types."""
    return {
        "document_id": model.document_id,
        "title": model.title,
        "revision_id": model.revision_id,
        "url": config.document_url(model.document_id),
        "tabs": [
            {
                "title": tab.title,
                "tab_id": tab.tab_id,
                "index": tab.index,
                "lists": tab.lists,
                "content": [_element_to_dict(e) for e in tab.content],
            }
            for tab in model.tabs
        ],
        "warnings": model.warnings,
    }


def _element_to_dict(element: StructuralElement) -> dict[str, Any]:
    if isinstance(element, Paragraph):
        return {
            "type": "paragraph",
            "start_index": element.start_index,
            "end_index": element.end_index,
            "named_style": element.named_style,
            "bullet": asdict(element.bullet) if element.bullet else None,
            "text": element.text,
            "runs": [asdict(run) for run in element.runs],
        }
    if isinstance(element, Table):
        return {
            "type": "table",
            "start_index": element.start_index,
            "end_index": element.end_index,
            "rows": [
                [{"content": [_element_to_dict(e) for e in cell.content]} for cell in row]
                for row in element.rows
            ],
        }
    if isinstance(element, SectionBreak):
        return {
            "type": "section_break",
            "start_index": element.start_index,
            "end_index": element.end_index,
        }
    if isinstance(element, TableOfContents):
        return {
            "type": "table_of_contents",
            "start_index": element.start_index,
            "end_index": element.end_index,
            "content": [_element_to_dict(e) for e in element.content],
        }
    assert_never(element)


def document_from_dict(data: dict[str, Any]) -> DocumentModel:
    """
    Rebuild a DocumentModel from document_to_dict() output.

    Raises:
        ValueError: On an unknown element type
    """
    return DocumentModel(
        document_id=data["document_id"],
        title=data["title"],
        revision_id=data.get("revision_id"),
        tabs=[
            DocTab(
                title=tab["title"],
                tab_id=tab["tab_id"],
                index=tab["index"],
                lists={k: list(v) for k, v in tab.get("lists", {}).items()},
                content=[_element_from_dict(e) for e in tab.get("content", [])],
            )
            for tab in data.get("tabs", [])
        ],
        warnings=list(data.get("warnings", [])),
    )


def _element_from_dict(data: dict[str, Any]) -> StructuralElement:
    element_type = data.get("type")
    start = data.get("start_index")
    end = data.get("end_index")

    if element_type == "paragraph":
        bullet = data.get("bullet")
        return Paragraph(
            runs=[TextRun(**run) for run in data.get("runs", [])],
            named_style=data.get("named_style", "NORMAL_TEXT"),
            bullet=Bullet(**bullet) if bullet else None,
            start_index=start,
            end_index=end,
        )
    if element_type == "table":
        return Table(
            rows=[
                [TableCell(content=[_element_from_dict(e) for e in cell.get("content", [])]) for cell in row]
                for row in data.get("rows", [])
            ],
            start_index=start,
            end_index=end,
        )
    if element_type == "section_break":
        return SectionBreak(start_index=start, end_index=end)
    if element_type == "table_of_contents":
        return TableOfContents(
            content=[_element_from_dict(e) for e in data.get("content", [])],
            start_index=start,
            end_index=end,
        )
    raise ValueError(f"Unknown element type: {element_type!r}")
