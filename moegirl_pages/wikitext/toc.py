"""Render heading entries as an indented outline.

Example
-------
>>> from moegirl_pages.wikitext.models import Heading
>>> from moegirl_pages.wikitext.toc import render_toc
>>> print(render_toc([Heading("Plot", 2, 0), Heading("Early days", 3, 4)]))
Table of contents
====================
<BLANKLINE>
  • Plot
    • Early days
>>> render_toc([])
'No table of contents'
"""

from __future__ import annotations

import typing as typ

from .._constants import NO_TOC_SENTINEL, TOC_HEADER

if typ.TYPE_CHECKING:
    from .models import Heading

INDENT_UNIT = "  "
BULLET = "•"


def render_toc(headings: typ.Sequence[Heading]) -> str:
    """Return the outline for ``headings`` in document order.

    Each heading occupies one line indented by ``level - 1`` units of
    two spaces. An empty sequence yields ``NO_TOC_SENTINEL``.
    """
    if not headings:
        return NO_TOC_SENTINEL
    lines = [TOC_HEADER, "=" * 20, ""]
    lines.extend(
        f"{INDENT_UNIT * (heading.level - 1)}{BULLET} {heading.title}"
        for heading in headings
    )
    return "\n".join(lines)


__all__ = ["render_toc"]
