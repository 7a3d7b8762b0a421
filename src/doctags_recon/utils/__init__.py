"""
Utility modules for the DocTags reconstruction pipeline.
"""

from .io import load_text, load_pages, save_json, save_text, ensure_dir
from .tokens import Token, tokenize, clean_meta_tokens, strip_location_tags, find_otsl_block
from .tables import TableResult, build_grid, resolve_spans, process_otsl, otsl_to_html, otsl_to_markdown
from .sections import (
    HeaderSection, TextSection, ListSection, TableSection,
    extract_sections, extract_legacy_sections,
)
from .snippets import CodeSnippet, extract_formula_content, extract_code_content
from .export import (
    doctags_to_markdown, doctags_to_json, doctags_to_dict,
    render_page, DocumentExporter,
)

__all__ = [
    # IO
    "load_text", "load_pages", "save_json", "save_text", "ensure_dir",
    # Tokens
    "Token", "tokenize", "clean_meta_tokens", "strip_location_tags", "find_otsl_block",
    # Tables
    "TableResult", "build_grid", "resolve_spans",
    "process_otsl", "otsl_to_html", "otsl_to_markdown",
    # Sections
    "HeaderSection", "TextSection", "ListSection", "TableSection",
    "extract_sections", "extract_legacy_sections",
    # Snippets
    "CodeSnippet", "extract_formula_content", "extract_code_content",
    # Export
    "doctags_to_markdown", "doctags_to_json", "doctags_to_dict",
    "render_page", "DocumentExporter",
]
