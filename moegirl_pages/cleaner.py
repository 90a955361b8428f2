r"""Rewrite raw wikitext into lighter, Markdown-flavoured display text.

The cleaner is a fixed pipeline of regular-expression substitutions. It has
no structural awareness: templates it does not know are left untouched.

Example
-------
>>> from moegirl_pages.cleaner import clean
>>> clean("'''Miku''' is a [[VOCALOID|singer]].<ref>cite</ref>")
'**Miku** is a [singer](VOCALOID).'
"""

from __future__ import annotations

import re

_Rule = tuple[re.Pattern[str], str]

_VISUAL_TAGS: list[_Rule] = [
    (re.compile(r"</?\s*(?:poem|big|small|u)\b[^>]*>", re.IGNORECASE), ""),
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</?div[^>]*>", re.IGNORECASE), ""),
]

_PAGE_LEVEL_TEMPLATES = re.compile(
    r"\{\{(?:原神TOP|背景图片|注释|references/|玩梗适度)(?:\|[^}]*)?\}\}", re.IGNORECASE
)
_FOOTNOTES = re.compile(r"<ref[^>]*?(?:/>|>.*?</ref>)", re.DOTALL)

_INLINE_TEMPLATES: list[_Rule] = [
    (re.compile(r"\{\{(?:color|genshincolor)\|[^|}]+?\|([^}]+?)\}\}", re.IGNORECASE), r"\1"),
    (re.compile(r"\{\{ruby\|([^|}]+)\|([^}]+)\}\}", re.IGNORECASE), r"\1(\2)"),
    (re.compile(r"\{\{!!\}\}"), ", "),
    (re.compile(r"\[\[(?:File|文件):([^|\]]+).*?\]\]", re.IGNORECASE), r"[Image: \1]"),
    (
        re.compile(r"\{\{BilibiliVideo\|id=(.*?)\}\}", re.IGNORECASE),
        r"[Bilibili video: https://www.bilibili.com/video/\1]",
    ),
]

_MARKUP: list[_Rule] = [
    (re.compile(r"'''(.*?)'''"), r"**\1**"),
    (re.compile(r"''(.*?)''"), r"*\1*"),
    (re.compile(r"\[\[([^|\]]+?)\|([^\]]+?)\]\]"), r"[\2](\1)"),
    (re.compile(r"\[\[([^\]]+?)\]\]"), r"[\1](\1)"),
    (re.compile(r"^;\s*(.*?)\s*$", re.MULTILINE), r"**\1**"),
    (re.compile(r"\[(https?://[^\s\]]+)\s+([^\]]+?)\]"), r"[\2](\1)"),
    (re.compile(r"\[(https?://[^\s\]]+)\]"), r"\1"),
    (re.compile(r"<del>(.*?)</del>", re.IGNORECASE), r"~~\1~~"),
    (re.compile(r"</?del[^>]*>", re.IGNORECASE), ""),
]

_HEADING = re.compile(r"^(={1,6})\s*(.*?)\s*\1\s*$", re.MULTILINE)
_BLANK_RUNS = re.compile(r"\n{3,}")
_HTML_TAG = re.compile(r"<[^>]*>")
_SENTENCE_ENDS = ("。", "！", "？", ".", "!", "?")


def _apply(rules: list[_Rule], text: str) -> str:
    for pattern, replacement in rules:
        text = pattern.sub(replacement, text)
    return text


def clean(wikitext: str) -> str:
    """Return ``wikitext`` with visual noise removed and markup simplified.

    Bold, italic, internal and external links, and ``=`` headings are turned
    into their Markdown equivalents; footnotes, page-furniture templates and
    purely presentational tags are dropped. Runs of blank lines collapse to
    one.
    """
    if not wikitext:
        return ""
    cleaned = _apply(_VISUAL_TAGS, wikitext)
    cleaned = _PAGE_LEVEL_TEMPLATES.sub("", cleaned)
    cleaned = _FOOTNOTES.sub("", cleaned)
    cleaned = _apply(_INLINE_TEMPLATES, cleaned)
    cleaned = _apply(_MARKUP, cleaned)
    cleaned = _HEADING.sub(lambda m: f"{'#' * len(m.group(1))} {m.group(2)}", cleaned)
    cleaned = _BLANK_RUNS.sub("\n\n", cleaned)
    return cleaned.strip()


def strip_html(text: str) -> str:
    """Remove HTML tags, as found in search snippets."""
    return _HTML_TAG.sub("", text)


def extract_summary(wikitext: str, max_length: int = 500) -> str:
    """Return at most ``max_length`` characters of cleaned text.

    The cut prefers the last sentence end in the final 30% of the window,
    then the last space in the final 20%, and otherwise truncates hard.
    """
    cleaned = clean(wikitext)
    if len(cleaned) <= max_length:
        return cleaned
    truncated = cleaned[:max_length]
    sentence_end = max(truncated.rfind(mark) for mark in _SENTENCE_ENDS)
    if sentence_end > max_length * 0.7:
        return truncated[: sentence_end + 1]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return f"{truncated[:last_space]}..."
    return f"{truncated}..."


def find_keywords(wikitext: str, keywords: list[str]) -> list[str]:
    """Return the ``keywords`` that occur in the cleaned text, ignoring case."""
    haystack = clean(wikitext).casefold()
    return [keyword for keyword in keywords if keyword.casefold() in haystack]


def format_for_display(title: str, content: str, max_length: int = 1000) -> str:
    """Return a titled summary of ``content`` suitable for a terminal."""
    cleaned = clean(content)
    lines = [title, "=" * (len(title) + 3), "", extract_summary(content, max_length)]
    if len(cleaned) > max_length:
        lines.append("")
        lines.append(f"... (truncated, full length: {len(cleaned)} characters)")
    return "\n".join(lines)


__all__ = ["clean", "extract_summary", "find_keywords", "format_for_display", "strip_html"]
