"""Read-only lookups over a parsed :class:`PageStructure`.

All matching is a case-insensitive substring test, so ``"plot"`` finds the
heading ``"Plot summary"``. Queries that match nothing return empty results.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from .models import PageStructure, Section, Template


def _matches(candidate: str | None, query: str) -> bool:
    return candidate is not None and query.casefold() in candidate.casefold()


def find_sections_by_title(structure: PageStructure, query: str) -> list[Section]:
    """Return every heading section whose title contains ``query``."""
    return [
        section
        for section in structure.sections
        if section.is_heading and _matches(section.title, query)
    ]


def find_templates_by_name(structure: PageStructure, query: str) -> list[Template]:
    """Return every template whose name contains ``query``, in completion order."""
    return [
        template for template in structure.templates if _matches(template.name, query)
    ]


def get_content_by_title(structure: PageStructure, query: str) -> str:
    """Return the content nested under the first heading matching ``query``.

    Parameters
    ----------
    structure : PageStructure
        Parsed page.
    query : str
        Case-insensitive substring of the heading title.

    Returns
    -------
    str
        Contents of the sections following the matched heading, joined by a
        blank line. Collection stops at the next heading whose level is less
        than or equal to the matched heading's; deeper headings are part of
        the result. Returns ``""`` when no heading matches.
    """
    sections = structure.sections
    start = next(
        (
            idx
            for idx, section in enumerate(sections)
            if section.is_heading and _matches(section.title, query)
        ),
        None,
    )
    if start is None:
        return ""

    level = sections[start].level or 0
    collected: list[str] = []
    for section in sections[start + 1 :]:
        if section.is_heading and (section.level or 0) <= level:
            break
        collected.append(section.content)
    return "\n\n".join(collected)


__all__ = ["find_sections_by_title", "find_templates_by_name", "get_content_by_title"]
