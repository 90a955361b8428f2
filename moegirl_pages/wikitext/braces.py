r"""Brace matching and template argument splitting.

Templates are the only wikitext construct this package tracks across line
boundaries. Depth is counted in units of two per ``{{`` / ``}}`` pair; single
braces are ordinary text.

Example
-------
>>> from moegirl_pages.wikitext.braces import is_template_complete
>>> is_template_complete("{{Quote\n|text=Hello")
False
>>> is_template_complete("{{Quote\n|text=Hello\n}}")
True
>>> from moegirl_pages.wikitext.braces import split_template_params
>>> split_template_params("Infobox|link=[[A|B]]|{{lang|ja}}")
['Infobox', 'link=[[A|B]]', '{{lang|ja}}']
"""

from __future__ import annotations

import re

OPEN = "{{"
CLOSE = "}}"

_OUTER_BRACES = re.compile(r"^\{\{|\}\}$")


def brace_depth(text: str) -> int:
    """Return the net brace depth of ``text`` (``+2`` per ``{{``, ``-2`` per ``}}``)."""
    depth = 0
    idx = 0
    while idx < len(text):
        pair = text[idx : idx + 2]
        if pair == OPEN:
            depth += 2
            idx += 2
        elif pair == CLOSE:
            depth -= 2
            idx += 2
        else:
            idx += 1
    return depth


def is_template_complete(buffer: str) -> bool:
    """Return whether the outermost template in ``buffer`` has closed.

    Parameters
    ----------
    buffer : str
        Newline-joined lines accumulated since the template opened.

    Returns
    -------
    bool
        ``True`` once the depth returns to zero with no further ``{{`` in the
        remaining text. Reaching zero while another ``{{`` follows means a
        sibling template is still pending, so scanning continues.
    """
    depth = 0
    idx = 0
    while idx < len(buffer):
        pair = buffer[idx : idx + 2]
        if pair == OPEN:
            depth += 2
            idx += 2
        elif pair == CLOSE:
            depth -= 2
            idx += 2
            if depth == 0 and OPEN not in buffer[idx:]:
                return True
        else:
            idx += 1
    return False


def split_template_params(interior: str) -> list[str]:
    """Split a template interior on top-level ``|`` characters.

    Pipes nested inside ``{{...}}`` or ``[[...]]`` belong to the nested
    construct and do not split. The first returned piece is the template
    name.
    """
    parts: list[str] = []
    current: list[str] = []
    brace_level = 0
    bracket_level = 0
    idx = 0
    while idx < len(interior):
        pair = interior[idx : idx + 2]
        char = interior[idx]
        if pair == OPEN:
            brace_level += 2
            current.append(pair)
            idx += 2
            continue
        if pair == CLOSE:
            brace_level = max(brace_level - 2, 0)
            current.append(pair)
            idx += 2
            continue
        if char == "[":
            bracket_level += 1
        elif char == "]":
            bracket_level = max(bracket_level - 1, 0)
        elif char == "|" and brace_level == 0 and bracket_level == 0:
            parts.append("".join(current))
            current = []
            idx += 1
            continue
        current.append(char)
        idx += 1

    if current:
        parts.append("".join(current))
    return parts


def _top_level_equals(argument: str) -> int:
    """Return the index of the first ``=`` outside nested braces/brackets, or -1."""
    brace_level = 0
    bracket_level = 0
    idx = 0
    while idx < len(argument):
        pair = argument[idx : idx + 2]
        char = argument[idx]
        if pair == OPEN:
            brace_level += 2
            idx += 2
            continue
        if pair == CLOSE:
            brace_level = max(brace_level - 2, 0)
            idx += 2
            continue
        if char == "[":
            bracket_level += 1
        elif char == "]":
            bracket_level = max(bracket_level - 1, 0)
        elif char == "=" and brace_level == 0 and bracket_level == 0:
            return idx
        idx += 1
    return -1


def extract_template_parameters(full_text: str) -> dict[str, str]:
    """Return the ordered argument mapping for a complete template.

    Named arguments (``key=value``) are stored under their trimmed key;
    other arguments are stored under their 1-based position among the
    unnamed arguments. Whitespace-only arguments keep their position but are
    not stored. A named key equal to a positional number overwrites the
    earlier entry.

    Examples
    --------
    >>> extract_template_parameters("{{Infobox|name=Foo|2=bar}}")
    {'name': 'Foo', '2': 'bar'}
    >>> extract_template_parameters("{{lang|ja|  |text}}")
    {'1': 'ja', '3': 'text'}
    """
    interior = _OUTER_BRACES.sub("", full_text.strip())
    parameters: dict[str, str] = {}
    position = 0
    for argument in split_template_params(interior)[1:]:
        split_at = _top_level_equals(argument)
        key = argument[:split_at].strip() if split_at >= 0 else ""
        if key:
            parameters[key] = argument[split_at + 1 :].strip()
            continue
        position += 1
        value = argument.strip()
        if value:
            parameters[str(position)] = value
    return parameters


__all__ = [
    "brace_depth",
    "extract_template_parameters",
    "is_template_complete",
    "split_template_params",
]
