"""Cyclopts CLI entrypoint for browsing Moegirlpedia pages from a terminal.

The ``moegirl`` console script defined here searches the wiki, prints page
text (cleaned or raw), shows a page's table of contents, and extracts the
content under chosen headings or the full text of chosen templates. The
``tool`` command runs one of the content-server tools and prints its JSON
response, which is handy when debugging an assistant integration, and
``serve`` runs the same tools as an MCP server over stdio.

Examples
--------
Print the section "角色设定" and every "Infobox" template of a page as JSON:

>>> from moegirl_pages.cli import app
>>> app(
...     ["section", "初音未来", "--titles", "角色设定", "--templates", "Infobox", "--json"]
... )  # doctest: +SKIP

Run the CLI with default arguments:

>>> from moegirl_pages.cli import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

import json
import logging
import os
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .cache import ExpiringCache
from .cleaner import clean
from .client import MoegirlClient, PageContent
from .config import DEFAULT_CONFIG_PATH, ClientSettings, load_settings
from .errors import MoegirlError
from .formatting import (
    format_page,
    format_search_results,
    format_sections,
    sections_payload,
    truncate,
)
from .server import build_server
from .tools import WikiToolService
from .wikitext import parse_page

app = App(name="moegirl", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]

ConfigOption = typ.Annotated[
    Path, Parameter(help="Path to the TOML settings file", env_var="MOEGIRL_CONFIG_FILE")
]
JsonFlag = typ.Annotated[bool, Parameter(help="Print JSON instead of text")]
IdFlag = typ.Annotated[bool, Parameter(name="--id", help="Treat the identifier as a page id")]


def _emit_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _fail(message: str) -> typ.NoReturn:
    print(message, file=sys.stderr)
    raise SystemExit(1)


def _client_for(settings: ClientSettings) -> MoegirlClient:
    return MoegirlClient(
        api_endpoint=settings.api_endpoint,
        user_agent=settings.user_agent,
        timeout=settings.timeout,
        retries=settings.retries,
    )


def _build_client(config: Path) -> MoegirlClient:
    return _client_for(load_settings(config))


def _build_service(config: Path) -> WikiToolService:
    """Return a tool service whose client and cache share one settings read."""
    settings = load_settings(config)
    cache = ExpiringCache(default_ttl=settings.cache_ttl)
    return WikiToolService(client=_client_for(settings), cache=cache)


def _resolve_identifier(identifier: str, *, as_id: bool) -> tuple[int | None, str | None]:
    """Return ``(pageid, title)``; all-digit identifiers are page ids."""
    text = identifier.strip()
    if as_id or text.isdigit():
        if not text.isdigit():
            _fail(f"Page id must be numeric, got {identifier!r}")
        return int(text), None
    return None, text


def _load_page(client: MoegirlClient, identifier: str, *, as_id: bool) -> PageContent:
    pageid, title = _resolve_identifier(identifier, as_id=as_id)
    page = client.fetch_page(pageid=pageid, title=title)
    if page is None:
        _fail(f"Page not found: {identifier}")
    return page


@app.command(help="Search the wiki for pages matching a keyword.")
def search(
    keyword: str,
    *,
    limit: typ.Annotated[int, Parameter(help="Maximum number of results")] = 5,
    json_output: typ.Annotated[bool, Parameter(name="--json", help="Print JSON instead of text")] = False,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Print the pages matching ``keyword``.

    Parameters
    ----------
    keyword : str
        Full-text search query.
    limit : int, optional
        Maximum number of hits to print. Defaults to ``5``.
    json_output : bool, optional
        Emit the hits as a JSON list of objects.
    config : Path, optional
        Settings file (overridable via ``MOEGIRL_CONFIG_FILE``).
    """
    try:
        results = _build_client(config).search(keyword, limit)
    except (MoegirlError, ValueError) as exc:
        _fail(f"Search failed: {exc}")
    if json_output:
        _emit_json(
            [
                {"title": r.title, "pageid": r.pageid, "url": r.url, "snippet": r.snippet}
                for r in results
            ]
        )
        return
    print(format_search_results(results))


@app.command(help="Print the text of a page, cleaned unless --raw is given.")
def page(
    identifier: str,
    *,
    as_id: IdFlag = False,
    raw: typ.Annotated[bool, Parameter(help="Keep the original wiki markup")] = False,
    limit: typ.Annotated[int, Parameter(help="Maximum characters to print")] = 2000,
    json_output: typ.Annotated[bool, Parameter(name="--json", help="Print JSON instead of text")] = False,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Print a page with its table of contents.

    Parameters
    ----------
    identifier : str
        Page title, or page id when numeric or ``--id`` is given.
    as_id : bool, optional
        Force ``identifier`` to be read as a page id.
    raw : bool, optional
        Print the wikitext without cleaning.
    limit : int, optional
        Characters of page text to print before truncating.
    json_output : bool, optional
        Emit ``title``, ``pageid``, ``content`` and ``cleaned_content`` as JSON.
    config : Path, optional
        Settings file (overridable via ``MOEGIRL_CONFIG_FILE``).
    """
    try:
        content = _load_page(_build_client(config), identifier, as_id=as_id)
    except MoegirlError as exc:
        _fail(f"Could not fetch page: {exc}")
    if not raw:
        content.cleaned_content = clean(content.content)

    if json_output:
        _emit_json(
            {
                "title": content.title,
                "pageid": content.pageid,
                "content": content.content,
                "cleaned_content": content.cleaned_content,
            }
        )
        return

    structure = parse_page(content.title, content.content)
    if structure.headings:
        print(structure.toc)
        print()
    hint = "use the section command to print specific parts"
    print(format_page(content, limit, hint=hint))


@app.command(help="Print the table of contents of a page.")
def toc(
    identifier: str,
    *,
    as_id: IdFlag = False,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Print the heading outline of a page."""
    try:
        content = _load_page(_build_client(config), identifier, as_id=as_id)
    except MoegirlError as exc:
        _fail(f"Could not fetch page: {exc}")
    print(parse_page(content.title, content.content).toc)


@app.command(help="Print content under headings or the text of templates.")
def section(
    identifier: str,
    *,
    titles: typ.Annotated[
        list[str] | None,
        Parameter(help="Heading titles to extract (substring, case-insensitive)"),
    ] = None,
    templates: typ.Annotated[
        list[str] | None,
        Parameter(help="Template names to extract (substring, case-insensitive)"),
    ] = None,
    as_id: IdFlag = False,
    limit: typ.Annotated[int, Parameter(help="Maximum characters to print")] = 5000,
    json_output: typ.Annotated[bool, Parameter(name="--json", help="Print JSON instead of text")] = False,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Print the parts of a page selected by heading title or template name.

    Parameters
    ----------
    identifier : str
        Page title, or page id when numeric or ``--id`` is given.
    titles : list[str] or None, optional
        Heading queries; each prints the content nested under the first
        matching heading.
    templates : list[str] or None, optional
        Template queries; each prints every matching template.
    as_id : bool, optional
        Force ``identifier`` to be read as a page id.
    limit : int, optional
        Characters to print before truncating the text output.
    json_output : bool, optional
        Emit ``{page, requested_sections, content}`` as JSON.
    config : Path, optional
        Settings file (overridable via ``MOEGIRL_CONFIG_FILE``).
    """
    title_queries = titles or []
    template_queries = templates or []
    if not title_queries and not template_queries:
        _fail("Provide --titles or --templates")
    try:
        content = _load_page(_build_client(config), identifier, as_id=as_id)
    except MoegirlError as exc:
        _fail(f"Could not fetch page: {exc}")

    structure = parse_page(content.title, content.content)
    if json_output:
        _emit_json(sections_payload(structure, title_queries, template_queries))
        return

    text = format_sections(structure, title_queries, template_queries)
    if not text:
        print("No matching headings or templates.")
        print(f"Headings searched: {', '.join(title_queries)}")
        print(f"Templates searched: {', '.join(template_queries)}")
        return
    print(truncate(text, limit, hint="raise --limit to see more"))


@app.command(help="Check that the wiki API is reachable.")
def check(*, config: ConfigOption = DEFAULT_CONFIG_PATH) -> None:
    """Exit non-zero when the API does not answer a siteinfo query."""
    try:
        client = _build_client(config)
    except MoegirlError as exc:
        _fail(str(exc))
    if not client.check_connection():
        _fail("API connection failed")
    print("API connection OK")


@app.command(help="Run a content-server tool and print its JSON response.")
def tool(
    name: str,
    *,
    arguments: typ.Annotated[
        str, Parameter(help="Tool arguments as a JSON object")
    ] = "{}",
    config: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Dispatch ``name`` through :class:`WikiToolService`.

    Parameters
    ----------
    name : str
        Tool name, for example ``get_page_sections``; ``list`` prints the
        tool descriptors instead.
    arguments : str, optional
        JSON object passed to the tool.
    config : Path, optional
        Settings file (overridable via ``MOEGIRL_CONFIG_FILE``).
    """
    try:
        service = _build_service(config)
    except MoegirlError as exc:
        _fail(str(exc))
    if name == "list":
        _emit_json(service.list_tools())
        return
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as exc:
        _fail(f"Arguments are not valid JSON: {exc}")
    if not isinstance(parsed, dict):
        _fail("Arguments must be a JSON object")
    try:
        response = service.call_tool(name, parsed)
    except MoegirlError as exc:
        _fail(str(exc))
    _emit_json(response)


@app.command(help="Serve the wiki tools to an assistant over stdio (MCP).")
def serve(
    *,
    skip_check: typ.Annotated[
        bool, Parameter(name="--skip-check", help="Start without probing the API first")
    ] = False,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Run the Model Context Protocol server on stdin/stdout.

    Parameters
    ----------
    skip_check : bool, optional
        Skip the startup connection check against the wiki API.
    config : Path, optional
        Settings file (overridable via ``MOEGIRL_CONFIG_FILE``).
    """
    try:
        service = _build_service(config)
    except MoegirlError as exc:
        _fail(str(exc))
    if not skip_check and not service.client.check_connection():
        _fail("API connection failed")
    logging.getLogger(__name__).info("serving wiki tools over stdio")
    build_server(service).run(transport="stdio")


def _configure_logging() -> None:
    level = os.getenv("MOEGIRL_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    """Invoke the Cyclopts application that powers the ``moegirl`` console command.

    Logging goes to stderr at the level named by ``MOEGIRL_LOG_LEVEL``
    (``WARNING`` by default).

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    _configure_logging()
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
