"""Immutable dataclasses describing a parsed wikitext page."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ
from types import MappingProxyType


class SectionKind(enum.Enum):
    """Classification of a contiguous span of page lines."""

    HEADING = "heading"
    CONTENT = "content"
    TEMPLATE = "template"


@dc.dataclass(frozen=True, slots=True)
class Heading:
    """Heading entry recorded for the table of contents.

    Attributes
    ----------
    title : str
        Heading text with the surrounding ``=`` or leading ``#`` markers
        removed.
    level : int
        Number of markers (1-6).
    line : int
        0-based line index of the heading.
    """

    title: str
    level: int
    line: int


@dc.dataclass(frozen=True, slots=True)
class Section:
    """Contiguous, non-overlapping span of the page.

    Attributes
    ----------
    kind : SectionKind
        Whether the span is a heading line, a run of text or a template.
    content : str
        Raw text covered by the span. Templates completed while a content
        section is open are appended to that section's content.
    start_line : int
        First line of the span (0-based, inclusive).
    end_line : int
        Last line of the span (0-based, inclusive).
    title : str | None
        Heading text; only set for ``SectionKind.HEADING``.
    level : int | None
        Heading level; only set for ``SectionKind.HEADING``.
    template_name : str | None
        Template name; only set for ``SectionKind.TEMPLATE``.
    """

    kind: SectionKind
    content: str
    start_line: int
    end_line: int
    title: str | None = None
    level: int | None = None
    template_name: str | None = None

    @property
    def is_heading(self) -> bool:
        """Return ``True`` when the section is a heading line."""
        return self.kind is SectionKind.HEADING


@dc.dataclass(frozen=True, slots=True)
class Template:
    """A template invocation captured as data, never expanded.

    Attributes
    ----------
    name : str
        Extracted template name.
    full_text : str
        Raw text from the opening ``{{`` through the matching ``}}``.
    parameters : Mapping[str, str]
        Read-only, insertion-ordered arguments keyed by explicit name or by
        1-based positional index.
    start_line : int
        Line holding the opening braces.
    end_line : int
        Line holding the closing braces.
    """

    name: str
    full_text: str
    parameters: typ.Mapping[str, str]
    start_line: int
    end_line: int

    def __post_init__(self) -> None:
        if not isinstance(self.parameters, MappingProxyType):
            frozen = MappingProxyType(dict(self.parameters))
            object.__setattr__(self, "parameters", frozen)

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON-friendly form used by the CLI and tool handlers."""
        return {
            "name": self.name,
            "fullText": self.full_text,
            "parameters": dict(self.parameters),
        }


@dc.dataclass(frozen=True, slots=True)
class PageStructure:
    """Read-only snapshot of a parsed page.

    Attributes
    ----------
    title : str
        Page title supplied by the caller.
    sections : tuple[Section, ...]
        Sections in document order.
    templates : tuple[Template, ...]
        Templates in order of completion.
    headings : tuple[Heading, ...]
        Every heading encountered, in document order.
    toc : str
        Outline rendered from ``headings``.
    """

    title: str
    sections: tuple[Section, ...]
    templates: tuple[Template, ...]
    headings: tuple[Heading, ...]
    toc: str


__all__ = ["Heading", "PageStructure", "Section", "SectionKind", "Template"]
