"""Unit tests for brace matching, argument splitting and template names."""

from __future__ import annotations

import pytest

from moegirl_pages.wikitext.braces import (
    brace_depth,
    extract_template_parameters,
    is_template_complete,
    split_template_params,
)
from moegirl_pages.wikitext.templates import (
    extract_template_name,
    fold_short_template_name,
    is_valid_template_start,
)


def test_brace_matcher_waits_for_closing_line() -> None:
    """A multi-line template completes only once its braces close."""
    assert not is_template_complete("{{Quote")
    assert not is_template_complete("{{Quote\n|text=Hello")
    assert is_template_complete("{{Quote\n|text=Hello\n}}")


def test_brace_matcher_tracks_nesting() -> None:
    """Inner templates do not close the outer one."""
    assert not is_template_complete("{{Infobox\n|image={{img|a.png}}")
    assert is_template_complete("{{Infobox\n|image={{img|a.png}}\n}}")


def test_brace_matcher_waits_for_pending_sibling() -> None:
    """Returning to depth zero with another ``{{`` ahead is not completion."""
    assert not is_template_complete("{{Alpha}} {{Beta\n|x=1")
    assert is_template_complete("{{Alpha}} {{Beta\n|x=1\n}}")


def test_brace_matcher_ignores_single_braces() -> None:
    """Lone braces are ordinary characters."""
    assert brace_depth("{ } {{a}") == 2
    assert not is_template_complete("{a}")


def test_split_respects_links_and_nested_templates() -> None:
    """Pipes inside ``[[...]]`` and ``{{...}}`` stay with their argument."""
    parts = split_template_params("Infobox|link=[[Page|Label]]|note={{lang|ja|x=1}}|plain")

    assert parts == ["Infobox", "link=[[Page|Label]]", "note={{lang|ja|x=1}}", "plain"]


@pytest.mark.parametrize(
    ("full_text", "expected"),
    [
        ("{{Infobox|name=Foo|2=bar}}", {"name": "Foo", "2": "bar"}),
        ("{{lang|ja|text}}", {"1": "ja", "2": "text"}),
        ("{{Alpha|first|1=override}}", {"1": "override"}),
        ("{{Alpha| |b}}", {"2": "b"}),
        ("{{Alpha|=v}}", {"1": "=v"}),
        ("{{Alpha|key=}}", {"key": ""}),
        ("{{Alpha|{{lang|ja|x=1}}}}", {"1": "{{lang|ja|x=1}}"}),
        ("{{Alpha|link=[[Page|Label]]}}", {"link": "[[Page|Label]]"}),
        (
            "{{Quote\n|text=Hello\n|author = Someone\n}}",
            {"text": "Hello", "author": "Someone"},
        ),
        ("{{Alpha}}", {}),
    ],
)
def test_extract_template_parameters(full_text: str, expected: dict[str, str]) -> None:
    """Named and positional arguments are keyed as documented."""
    assert extract_template_parameters(full_text) == expected


def test_parameters_keep_argument_order() -> None:
    """Mapping order follows the order arguments appear in."""
    params = extract_template_parameters("{{Alpha|z=1|first|a=2|second}}")

    assert list(params) == ["z", "1", "a", "2"]


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("{{Infobox character|name=Foo", "Infobox character"),
        ("{{Quote", "Quote"),
        ("{{ Navbox }}", "Navbox"),
        ("{{ID|Miku}}", "ID|Miku"),
        ("{{ID|Miku|extra}}", "ID|Miku"),
        ("{{Box|x}}", "Box|x"),
        ("{{ID}}", "ID"),
        ("{{ID|Miku", "ID"),
        ("{{Navbox|x}}", "Navbox"),
        ("{{|x}}", ""),
        ("not a template", ""),
    ],
)
def test_extract_template_name(line: str, expected: str) -> None:
    """Names stop at the first pipe; very short names absorb their first argument."""
    assert extract_template_name(line) == expected


def test_fold_short_template_name_leaves_long_names() -> None:
    """Names longer than three characters are never folded."""
    assert fold_short_template_name("{{Navbox|x}}", "Navbox") == "Navbox"
    assert fold_short_template_name("{{ID}}", "ID") == "ID"


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("{{Infobox|name=Foo}}", True),
        ("{{Infobox", True),
        ("{{Infobox|image={{img|a.png}}", False),
        ("{{{1|default}}}", False),
        ("{{Alpha}} }}", False),
        ("text {{Alpha}}", False),
        ("{{|x}}", False),
        ("{{ }}", False),
    ],
)
def test_is_valid_template_start(line: str, expected: bool) -> None:
    """Template starts exclude placeholders and lines whose braces do not balance."""
    assert is_valid_template_start(line) is expected
