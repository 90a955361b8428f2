"""Protocol-agnostic tool handlers for an assistant-facing content server.

Each tool takes a JSON-like argument mapping and returns a response of the
form ``{"content": [{"type": "text", "text": ...}]}``. Failures reaching the
wiki become responses flagged with ``"isError": True``; calling an unknown
tool or passing invalid arguments raises :class:`ToolError`, which the
transport reports as a protocol error.

Example
-------
>>> from moegirl_pages.tools import WikiToolService
>>> service = WikiToolService()  # doctest: +SKIP
>>> service.call_tool("get_page_structure", {"title": "初音未来"})  # doctest: +SKIP
{'content': [{'type': 'text', 'text': 'Table of contents\\n...'}]}
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import typing as typ

from .cache import ExpiringCache, doc_key, search_key, structure_key
from .cleaner import clean
from .client import MoegirlClient, PageContent
from .errors import MoegirlAPIError, ToolError
from .formatting import format_page, format_search_results, sections_payload, truncate
from .wikitext import parse_page

if typ.TYPE_CHECKING:
    from .wikitext import PageStructure

logger = logging.getLogger(__name__)

ToolResponse = dict[str, typ.Any]

SEARCH_LIMIT_RANGE = (1, 20)
PAGE_LENGTH_RANGE = (100, 10000)
SECTIONS_LENGTH_RANGE = (100, 50000)

_PAGE_IDENTIFIER_SCHEMA: dict[str, typ.Any] = {
    "pageid": {"type": "number", "description": "Page id (alternative to title)"},
    "title": {"type": "string", "description": "Page title (alternative to pageid)"},
}

TOOL_DEFINITIONS: tuple[dict[str, typ.Any], ...] = (
    {
        "name": "search_moegirl",
        "description": "Search Moegirlpedia for pages matching a keyword.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "keyword": {"type": "string", "description": "Search keyword"},
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results (1-20)",
                    "default": 5,
                },
            },
            "required": ["keyword"],
        },
    },
    {
        "name": "get_page",
        "description": "Fetch the text of a Moegirlpedia page.",
        "inputSchema": {
            "type": "object",
            "properties": {
                **_PAGE_IDENTIFIER_SCHEMA,
                "clean_content": {
                    "type": "boolean",
                    "description": "Simplify wiki markup before returning it",
                    "default": True,
                },
                "max_length": {
                    "type": "number",
                    "description": "Maximum characters returned (100-10000)",
                    "default": 2000,
                },
            },
        },
    },
    {
        "name": "get_page_structure",
        "description": "Return the table of contents and template names of a page.",
        "inputSchema": {"type": "object", "properties": dict(_PAGE_IDENTIFIER_SCHEMA)},
    },
    {
        "name": "get_page_sections",
        "description": (
            "Return the content under the given headings and the full text of "
            "templates whose names match, as JSON."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                **_PAGE_IDENTIFIER_SCHEMA,
                "section_titles": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Heading titles to extract (substring match)",
                },
                "template_names": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Template names to extract (substring match)",
                },
                "max_length": {
                    "type": "number",
                    "description": "Maximum characters returned",
                    "default": 5000,
                },
            },
        },
    },
)


def text_response(text: str, *, is_error: bool = False) -> ToolResponse:
    """Wrap ``text`` in the tool response envelope."""
    response: ToolResponse = {"content": [{"type": "text", "text": text}]}
    if is_error:
        response["isError"] = True
    return response


def _bounded_int(
    arguments: typ.Mapping[str, typ.Any], key: str, default: int, bounds: tuple[int, int]
) -> int:
    value = arguments.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"'{key}' must be a number, got {value!r}"
        raise ToolError(msg)
    low, high = bounds
    if not low <= value <= high:
        msg = f"'{key}' must be between {low} and {high}, got {value}"
        raise ToolError(msg)
    return int(value)


def _string_list(arguments: typ.Mapping[str, typ.Any], key: str) -> list[str]:
    value = arguments.get(key) or []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"'{key}' must be a list of strings"
        raise ToolError(msg)
    return [item for item in value if item.strip()]


def _page_identifier(arguments: typ.Mapping[str, typ.Any]) -> tuple[int | None, str | None]:
    pageid = arguments.get("pageid")
    title = arguments.get("title")
    if pageid is not None and (isinstance(pageid, bool) or not isinstance(pageid, (int, float))):
        msg = f"'pageid' must be a number, got {pageid!r}"
        raise ToolError(msg)
    if title is not None and not isinstance(title, str):
        msg = f"'title' must be a string, got {title!r}"
        raise ToolError(msg)
    if not pageid and not (title and title.strip()):
        msg = "Either 'pageid' or 'title' is required"
        raise ToolError(msg)
    return (int(pageid) if pageid else None), (title.strip() if title else None)


class WikiToolService:
    """Dispatch tool calls to the wiki client, caching pages and searches.

    Parameters
    ----------
    client : MoegirlClient, optional
        API client; a default client is created when omitted.
    cache : ExpiringCache, optional
        Cache shared across calls; a default cache is created when omitted.
    """

    def __init__(
        self,
        client: MoegirlClient | None = None,
        cache: ExpiringCache | None = None,
    ) -> None:
        self.client = client or MoegirlClient()
        self.cache = cache if cache is not None else ExpiringCache()
        self.total_requests = 0
        self.failed_requests = 0
        self._handlers: dict[str, typ.Callable[[typ.Mapping[str, typ.Any]], ToolResponse]] = {
            "search_moegirl": self._search,
            "get_page": self._get_page,
            "get_page_structure": self._get_page_structure,
            "get_page_sections": self._get_page_sections,
        }

    def list_tools(self) -> list[dict[str, typ.Any]]:
        """Return the descriptors of every available tool."""
        return [dict(definition) for definition in TOOL_DEFINITIONS]

    def call_tool(self, name: str, arguments: typ.Mapping[str, typ.Any] | None = None) -> ToolResponse:
        """Run the tool ``name`` with ``arguments``.

        Raises
        ------
        ToolError
            If the tool is unknown or the arguments are invalid.
        """
        self.total_requests += 1
        handler = self._handlers.get(name)
        if handler is None:
            self.failed_requests += 1
            msg = f"Unknown tool: {name}"
            raise ToolError(msg)
        logger.info("tool call %s", name)
        try:
            response = handler(arguments or {})
        except ToolError:
            self.failed_requests += 1
            raise
        except MoegirlAPIError as exc:
            logger.warning("tool %s failed: %s", name, exc)
            response = text_response(f"Request failed: {exc}", is_error=True)
        if response.get("isError"):
            self.failed_requests += 1
        return response

    def stats(self) -> dict[str, typ.Any]:
        """Return request counters and the cache statistics."""
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.total_requests - self.failed_requests,
            "failed_requests": self.failed_requests,
            "cache": dc.asdict(self.cache.stats()),
        }

    def fetch_page(self, pageid: int | None, title: str | None) -> PageContent | None:
        """Return the page from the cache or the API."""
        key = doc_key(pageid or title or "")
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("cache hit for %s", key)
            return typ.cast("PageContent", cached)
        page = self.client.fetch_page(pageid=pageid, title=title)
        if page is not None:
            self.cache.set(key, page)
        return page

    def page_structure(self, pageid: int | None, title: str | None) -> PageStructure | None:
        """Return the parsed structure of a page, caching it by identity."""
        key = structure_key(pageid or title or "")
        cached = self.cache.get(key)
        if cached is not None:
            return typ.cast("PageStructure", cached)
        page = self.fetch_page(pageid, title)
        if page is None:
            return None
        structure = parse_page(page.title, page.content)
        self.cache.set(key, structure)
        return structure

    def _search(self, arguments: typ.Mapping[str, typ.Any]) -> ToolResponse:
        keyword = arguments.get("keyword")
        if not isinstance(keyword, str) or not keyword.strip():
            msg = "'keyword' is required"
            raise ToolError(msg)
        limit = _bounded_int(arguments, "limit", 5, SEARCH_LIMIT_RANGE)
        key = search_key(keyword, limit)
        results = self.cache.get(key)
        if results is None:
            results = self.client.search(keyword, limit)
            self.cache.set(key, results)
        return text_response(format_search_results(results))

    def _get_page(self, arguments: typ.Mapping[str, typ.Any]) -> ToolResponse:
        pageid, title = _page_identifier(arguments)
        max_length = _bounded_int(arguments, "max_length", 2000, PAGE_LENGTH_RANGE)
        clean_content = bool(arguments.get("clean_content", True))
        page = self.fetch_page(pageid, title)
        if page is None:
            return text_response(f"Page not found: {pageid or title}", is_error=True)
        cleaned = clean(page.content) if clean_content else None
        shown = dc.replace(page, cleaned_content=cleaned)
        hint = "increase max_length to see more"
        return text_response(format_page(shown, max_length, hint=hint))

    def _get_page_structure(self, arguments: typ.Mapping[str, typ.Any]) -> ToolResponse:
        pageid, title = _page_identifier(arguments)
        structure = self.page_structure(pageid, title)
        if structure is None:
            return text_response(f"Page not found: {pageid or title}", is_error=True)
        names = list(dict.fromkeys(template.name for template in structure.templates))
        lines = [structure.toc, "", f"Templates ({len(names)}):"]
        lines.extend(f"- {name}" for name in names)
        return text_response("\n".join(lines))

    def _get_page_sections(self, arguments: typ.Mapping[str, typ.Any]) -> ToolResponse:
        pageid, title = _page_identifier(arguments)
        titles = _string_list(arguments, "section_titles")
        templates = _string_list(arguments, "template_names")
        if not titles and not templates:
            msg = "Provide 'section_titles' or 'template_names'"
            raise ToolError(msg)
        max_length = _bounded_int(arguments, "max_length", 5000, SECTIONS_LENGTH_RANGE)
        structure = self.page_structure(pageid, title)
        if structure is None:
            return text_response(f"Page not found: {pageid or title}", is_error=True)
        payload = sections_payload(structure, titles, templates)
        text = json.dumps(payload, ensure_ascii=False, indent=2)
        return text_response(truncate(text, max_length, hint="increase max_length"))


__all__ = ["TOOL_DEFINITIONS", "ToolResponse", "WikiToolService", "text_response"]
