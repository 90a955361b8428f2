"""Model Context Protocol server exposing the wiki tools to assistants.

:func:`build_server` registers the four :class:`~moegirl_pages.tools.WikiToolService`
tools on a :class:`FastMCP` instance, together with two plain-text help
resources (``help://search`` and ``help://page``) and a JSON resource with
request and cache counters (``stats://server``). The ``moegirl serve``
command runs it over stdio.

Example
-------
>>> from moegirl_pages.server import build_server
>>> from moegirl_pages.tools import WikiToolService
>>> server = build_server(WikiToolService())  # doctest: +SKIP
>>> server.run(transport="stdio")  # doctest: +SKIP
"""

from __future__ import annotations

import json
import logging
import typing as typ

from mcp.server.fastmcp import FastMCP

from ._constants import DEFAULT_CACHE_TTL
from .errors import MoegirlError
from .tools import (
    PAGE_LENGTH_RANGE,
    SEARCH_LIMIT_RANGE,
    TOOL_DEFINITIONS,
    WikiToolService,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "moegirl-pages"
SEARCH_HELP_URI = "help://search"
PAGE_HELP_URI = "help://page"
STATS_URI = "stats://server"

SEARCH_HELP = f"""Moegirlpedia search

Tool: search_moegirl

Arguments:
- keyword (required): search keyword
- limit (optional): number of results, default 5, range {SEARCH_LIMIT_RANGE[0]}-{SEARCH_LIMIT_RANGE[1]}

Examples:
search_moegirl(keyword="芙宁娜")
search_moegirl(keyword="原神", limit=10)

Notes:
- Results are cached for {int(DEFAULT_CACHE_TTL // 60)} minutes by default
- Chinese and English keywords are supported
- Each result lists the page id, title, link and a snippet
"""

PAGE_HELP = f"""Moegirlpedia page retrieval

Tool: get_page

Arguments:
- pageid (optional): numeric page id
- title (optional): page title
- clean_content (optional): simplify wiki markup, default true
- max_length (optional): characters returned, default 2000, range {PAGE_LENGTH_RANGE[0]}-{PAGE_LENGTH_RANGE[1]}

Rules:
- Provide either pageid or title
- pageid takes precedence over title

Examples:
get_page(pageid=12345)
get_page(title="芙宁娜")
get_page(title="原神", clean_content=false)
get_page(title="原神", max_length=5000)

Related tools:
- get_page_structure lists the table of contents and template names
- get_page_sections returns chosen headings and templates as JSON

Notes:
- Pages are cached for {int(DEFAULT_CACHE_TTL // 60)} minutes by default
- Truncated output reports how many characters were left out
"""


def _description(name: str) -> str:
    return next(d["description"] for d in TOOL_DEFINITIONS if d["name"] == name)


def run_tool(service: WikiToolService, name: str, arguments: typ.Mapping[str, typ.Any]) -> str:
    """Run ``name`` and return its text, raising on an error response.

    Arguments left at ``None`` are dropped so the handler applies its own
    defaults. The MCP layer reports a raised exception to the caller as a
    tool error.

    Raises
    ------
    MoegirlError
        If the handler answered with an error response, or rejected the
        call (``ToolError``).
    """
    present = {key: value for key, value in arguments.items() if value is not None}
    response = service.call_tool(name, present)
    text = response["content"][0]["text"]
    if response.get("isError"):
        raise MoegirlError(text)
    return text


def build_server(service: WikiToolService) -> FastMCP:
    """Return a FastMCP server whose tools delegate to ``service``."""
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Search Moegirlpedia, read pages, and extract headings or templates "
            f"from their wikitext. Usage notes live at {SEARCH_HELP_URI} and "
            f"{PAGE_HELP_URI}."
        ),
    )

    @server.tool(name="search_moegirl", description=_description("search_moegirl"))
    def search_moegirl(keyword: str, limit: int = 5) -> str:
        return run_tool(service, "search_moegirl", {"keyword": keyword, "limit": limit})

    @server.tool(name="get_page", description=_description("get_page"))
    def get_page(
        pageid: int | None = None,
        title: str | None = None,
        clean_content: bool = True,
        max_length: int = 2000,
    ) -> str:
        return run_tool(
            service,
            "get_page",
            {
                "pageid": pageid,
                "title": title,
                "clean_content": clean_content,
                "max_length": max_length,
            },
        )

    @server.tool(name="get_page_structure", description=_description("get_page_structure"))
    def get_page_structure(pageid: int | None = None, title: str | None = None) -> str:
        return run_tool(service, "get_page_structure", {"pageid": pageid, "title": title})

    @server.tool(name="get_page_sections", description=_description("get_page_sections"))
    def get_page_sections(
        pageid: int | None = None,
        title: str | None = None,
        section_titles: list[str] | None = None,
        template_names: list[str] | None = None,
        max_length: int = 5000,
    ) -> str:
        return run_tool(
            service,
            "get_page_sections",
            {
                "pageid": pageid,
                "title": title,
                "section_titles": section_titles,
                "template_names": template_names,
                "max_length": max_length,
            },
        )

    @server.resource(
        SEARCH_HELP_URI,
        name="search-help",
        description="How to use the search_moegirl tool",
        mime_type="text/plain",
    )
    def search_help() -> str:
        return SEARCH_HELP

    @server.resource(
        PAGE_HELP_URI,
        name="page-help",
        description="How to use the get_page tool",
        mime_type="text/plain",
    )
    def page_help() -> str:
        return PAGE_HELP

    @server.resource(
        STATS_URI,
        name="server-stats",
        description="Tool request counters and cache statistics",
        mime_type="application/json",
    )
    def server_stats() -> str:
        return json.dumps(service.stats(), ensure_ascii=False, indent=2)

    logger.debug("registered %d tools on %s", len(TOOL_DEFINITIONS), SERVER_NAME)
    return server


__all__ = ["PAGE_HELP", "SEARCH_HELP", "SERVER_NAME", "build_server", "run_tool"]
