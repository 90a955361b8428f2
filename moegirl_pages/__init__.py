"""Structured access to Moegirlpedia wikitext pages.

This package parses raw MediaWiki markup into headings, sections and
templates, and exposes that structure through the ``moegirl`` CLI and a set
of content-server tool handlers.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``parse_page``: Build a ``PageStructure`` from a title and raw wikitext.

Examples
--------
>>> from moegirl_pages import parse_page
>>> page = parse_page("Demo", "== Intro ==\\nHello")
>>> [heading.title for heading in page.headings]
['Intro']
"""

from __future__ import annotations

from .cli import app, main
from .wikitext import parse_page

__all__ = ["app", "main", "parse_page"]
