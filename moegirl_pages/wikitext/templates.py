"""Recognise lines that open a template invocation and extract its name.

Example
-------
>>> from moegirl_pages.wikitext.templates import extract_template_name
>>> extract_template_name("{{Infobox character|name=Foo")
'Infobox character'
>>> extract_template_name("{{ID|Miku}}")
'ID|Miku'
>>> from moegirl_pages.wikitext.templates import is_valid_template_start
>>> is_valid_template_start("{{{1|default}}}")
False
"""

from __future__ import annotations

import re

from .braces import CLOSE, OPEN, brace_depth

PLACEHOLDER_OPEN = "{{{"
SHORT_NAME_LIMIT = 3

_NAME_PATTERN = re.compile(r"^\{\{([^|}]+)(?:\||\}\}|$)")
_FOLDED_NAME_PATTERN = re.compile(r"^\{\{([^|}]+(?:\|[^|}]+)?)(?:\||\}\})")


def fold_short_template_name(line: str, name: str) -> str:
    """Fold the first argument into very short template names.

    Names of three characters or fewer are ambiguous on their own (for
    example ``{{ID|...}}``), so when the line has a pipe the first argument
    is kept as part of the name, provided that argument is followed by
    another ``|`` or the closing braces. Any other name is returned
    unchanged.
    """
    if len(name) > SHORT_NAME_LIMIT or "|" not in line:
        return name
    match = _FOLDED_NAME_PATTERN.match(line)
    if match and "|" in match.group(1):
        return match.group(1).strip()
    return name


def extract_template_name(line: str) -> str:
    """Return the template name opened on ``line`` or ``""`` when absent.

    The name is the text between ``{{`` and the first ``|``, ```}}``` or end of
    line, trimmed, after :func:`fold_short_template_name` is applied.
    """
    match = _NAME_PATTERN.match(line)
    if not match:
        return ""
    name = match.group(1).strip()
    if not name:
        return ""
    return fold_short_template_name(line, name)


def is_valid_template_start(line: str) -> bool:
    """Return whether the trimmed ``line`` opens a template call.

    Triple-brace parameter placeholders are rejected. A line that also
    closes braces must balance exactly, so only complete single-line calls
    and first lines without any ``}}`` qualify.
    """
    if not line.startswith(OPEN) or line.startswith(PLACEHOLDER_OPEN):
        return False
    if not extract_template_name(line):
        return False
    if CLOSE in line:
        return brace_depth(line) == 0
    return True


__all__ = [
    "extract_template_name",
    "fold_short_template_name",
    "is_valid_template_start",
]
