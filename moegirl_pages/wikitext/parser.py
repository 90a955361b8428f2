r"""Single-pass structural parser for wikitext pages.

The parser walks the page line by line and keeps at most one *open* section
plus, while a template is being scanned, one template frame. Section
placement is expressed as small pure transition functions that take the open
section and return ``(closed, open)``: the section to emit (or ``None``) and
the section that stays open afterwards.

Rules, first match wins:

1. A template scan in progress consumes the line.
2. A heading closes the open section and opens a heading section.
3. A template start opens a scan frame; the open section is left alone so
   the completed template can either merge into it or replace a heading.
4. Anything else is plain text.

Example
-------
>>> from moegirl_pages.wikitext.parser import parse_page
>>> page = parse_page("Demo", "== A ==\ntext1\n{{Quote\n|text=Hello\n}}")
>>> [(s.kind.value, s.start_line, s.end_line) for s in page.sections]
[('heading', 0, 0), ('content', 1, 4)]
>>> page.templates[0].name, dict(page.templates[0].parameters)
('Quote', {'text': 'Hello'})
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re

from .braces import extract_template_parameters, is_template_complete
from .models import Heading, PageStructure, Section, SectionKind, Template
from .templates import extract_template_name, is_valid_template_start
from .toc import render_toc

logger = logging.getLogger(__name__)

_EQUALS_HEADING = re.compile(r"^(?P<marks>={1,6})(?P<title>[^=](?:.*[^=])?)(?P=marks)$")
_HASH_HEADING = re.compile(r"^(?P<marks>#{1,6})\s+(?P<title>.+)$")

Transition = tuple[Section | None, Section]


@dc.dataclass(slots=True)
class _TemplateFrame:
    """Lines of a template whose closing braces have not been seen yet."""

    name: str
    start_line: int
    lines: list[str] = dc.field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def match_heading(line: str) -> Heading | None:
    """Return a heading for the trimmed ``line`` or ``None``.

    Both ``== Title ==`` (matching runs of one to six ``=``) and ``## Title``
    forms are recognised. The line index is filled in by the caller.
    """
    match = _EQUALS_HEADING.match(line) or _HASH_HEADING.match(line)
    if not match:
        return None
    title = match.group("title").strip()
    if not title:
        return None
    return Heading(title=title, level=len(match.group("marks")), line=-1)


def close_section(section: Section, end_line: int) -> Section:
    """Freeze ``section`` so that it ends on ``end_line``."""
    return dc.replace(section, end_line=end_line)


def open_heading(open_section: Section | None, heading: Heading, raw: str) -> Transition:
    """Close the open section and start a heading section on ``heading.line``."""
    closed = None
    if open_section is not None:
        closed = close_section(open_section, heading.line - 1)
    section = Section(
        kind=SectionKind.HEADING,
        content=raw,
        start_line=heading.line,
        end_line=heading.line,
        title=heading.title,
        level=heading.level,
    )
    return closed, section


def absorb_text_line(open_section: Section | None, raw: str, index: int) -> Transition:
    """Add a plain line to the open content section or start a new one."""
    if open_section is not None and open_section.kind is SectionKind.CONTENT:
        extended = dc.replace(
            open_section,
            content=f"{open_section.content}\n{raw}",
            end_line=index,
        )
        return None, extended
    closed = None
    if open_section is not None:
        closed = close_section(open_section, index - 1)
    return closed, Section(
        kind=SectionKind.CONTENT, content=raw, start_line=index, end_line=index
    )


def place_template(open_section: Section | None, template: Template) -> Transition:
    """Decide where a completed template lives.

    With nothing open, or a heading open, the template becomes its own
    section (the heading is closed just before the template). Otherwise the
    template text is appended to the open section, which grows to cover it.
    """
    if open_section is None or open_section.kind is SectionKind.HEADING:
        closed = None
        if open_section is not None:
            closed = close_section(open_section, template.start_line - 1)
        section = Section(
            kind=SectionKind.TEMPLATE,
            content=template.full_text,
            start_line=template.start_line,
            end_line=template.end_line,
            template_name=template.name,
        )
        return closed, section
    merged = dc.replace(
        open_section,
        content=f"{open_section.content}\n{template.full_text}",
        end_line=template.end_line,
    )
    return None, merged


def _finish_template(frame: _TemplateFrame, end_line: int) -> Template:
    full_text = frame.text
    return Template(
        name=frame.name,
        full_text=full_text,
        parameters=extract_template_parameters(full_text),
        start_line=frame.start_line,
        end_line=end_line,
    )


def parse_page(title: str, content: str) -> PageStructure:
    """Parse raw wikitext into an immutable :class:`PageStructure`.

    Parameters
    ----------
    title : str
        Page title, stored verbatim on the result.
    content : str
        Raw wikitext. Lines are split on ``\\n``; other line endings are the
        caller's concern. An empty string has no lines.

    Returns
    -------
    PageStructure
        Sections, templates, headings and the rendered table of contents.
        Malformed markup never raises; a template still open at the end of
        the page is discarded.
    """
    lines = content.split("\n") if content else []
    sections: list[Section] = []
    templates: list[Template] = []
    headings: list[Heading] = []
    open_section: Section | None = None
    frame: _TemplateFrame | None = None

    def _apply(transition: Transition) -> Section:
        closed, current = transition
        if closed is not None:
            sections.append(closed)
        return current

    for index, raw in enumerate(lines):
        stripped = raw.strip()

        if frame is None:
            heading = match_heading(stripped)
            if heading is not None:
                heading = dc.replace(heading, line=index)
                headings.append(heading)
                open_section = _apply(open_heading(open_section, heading, raw))
                continue

            if is_valid_template_start(stripped):
                frame = _TemplateFrame(
                    name=extract_template_name(stripped), start_line=index
                )
            else:
                open_section = _apply(absorb_text_line(open_section, raw, index))
                continue

        frame.lines.append(raw)
        if is_template_complete(frame.text):
            template = _finish_template(frame, index)
            templates.append(template)
            open_section = _apply(place_template(open_section, template))
            frame = None

    if frame is not None:
        logger.debug(
            "dropping unterminated template %r opened on line %d of %r",
            frame.name,
            frame.start_line,
            title,
        )
    if open_section is not None:
        sections.append(close_section(open_section, len(lines) - 1))

    return PageStructure(
        title=title,
        sections=tuple(sections),
        templates=tuple(templates),
        headings=tuple(headings),
        toc=render_toc(headings),
    )


__all__ = [
    "absorb_text_line",
    "close_section",
    "match_heading",
    "open_heading",
    "parse_page",
    "place_template",
]
