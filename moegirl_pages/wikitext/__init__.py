"""Structural parsing of MediaWiki markup into headings, sections and templates."""

from .models import Heading, PageStructure, Section, SectionKind, Template
from .parser import parse_page
from .query import find_sections_by_title, find_templates_by_name, get_content_by_title
from .toc import render_toc

__all__ = [
    "Heading",
    "PageStructure",
    "Section",
    "SectionKind",
    "Template",
    "find_sections_by_title",
    "find_templates_by_name",
    "get_content_by_title",
    "parse_page",
    "render_toc",
]
