"""Plain-text and JSON renderings shared by the CLI and the tool handlers."""

from __future__ import annotations

import typing as typ

from .cleaner import strip_html
from .wikitext import find_templates_by_name, get_content_by_title

if typ.TYPE_CHECKING:
    from .client import PageContent, SearchResult
    from .wikitext import PageStructure

SEPARATOR = "-" * 50


def _title_block(title: str, extra: int = 3) -> list[str]:
    return [title, "=" * (len(title) + extra), ""]


def truncate(text: str, max_length: int, *, hint: str) -> str:
    """Cut ``text`` to ``max_length`` characters and note what was left out."""
    if len(text) <= max_length:
        return text
    remaining = len(text) - max_length
    return f"{text[:max_length]}\n\n... ({remaining} more characters not shown; {hint})"


def format_search_results(results: typ.Sequence[SearchResult]) -> str:
    """Return a numbered listing of search hits."""
    if not results:
        return "No matching pages found."
    lines = _title_block("Search results", extra=0)
    for idx, result in enumerate(results, start=1):
        lines.append(f"{idx}. {result.title}")
        lines.append(f"   Page ID: {result.pageid}")
        lines.append(f"   URL: {result.url}")
        if result.snippet:
            lines.append(f"   Snippet: {strip_html(result.snippet)}")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_page(page: PageContent, max_length: int, *, hint: str) -> str:
    """Return a page header followed by its (cleaned, when available) text."""
    content = page.cleaned_content or page.content
    lines = _title_block(page.title)
    lines.append(f"Page ID: {page.pageid}")
    lines.append(f"Length: {len(content)} characters")
    lines.append("")
    if len(content) > max_length:
        lines.append(truncate(content, max_length, hint=hint))
    else:
        lines.append(content)
        lines.append("")
        lines.append(f"(complete, {len(content)} characters)")
    return "\n".join(lines)


def sections_payload(
    structure: PageStructure,
    titles: typ.Sequence[str],
    template_names: typ.Sequence[str],
) -> dict[str, typ.Any]:
    """Return requested heading content and templates as a JSON-ready dict.

    ``content`` maps each title query to its text and each template query to
    a list of ``{name, fullText, parameters}`` objects. Queries that match
    nothing are omitted.
    """
    content: dict[str, typ.Any] = {}
    for query in titles:
        text = get_content_by_title(structure, query)
        if text:
            content[query] = text
    for query in template_names:
        templates = find_templates_by_name(structure, query)
        if templates:
            content[query] = [template.to_dict() for template in templates]
    return {
        "page": structure.title,
        "requested_sections": {"titles": list(titles), "templates": list(template_names)},
        "content": content,
    }


def format_sections(
    structure: PageStructure,
    titles: typ.Sequence[str],
    template_names: typ.Sequence[str],
) -> str:
    """Return requested heading content and templates as readable text.

    Returns an empty string when no query matched.
    """
    blocks: list[str] = []
    for query in titles:
        text = get_content_by_title(structure, query)
        if text:
            blocks.append("\n".join([*_title_block(query), text]))
    for query in template_names:
        for template in find_templates_by_name(structure, query):
            header = f"Template: {template.name}"
            blocks.append("\n".join([*_title_block(header, extra=0), template.full_text]))
    return f"\n\n{SEPARATOR}\n\n".join(blocks)


__all__ = [
    "format_page",
    "format_search_results",
    "format_sections",
    "sections_payload",
    "truncate",
]
