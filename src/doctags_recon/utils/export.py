"""
Export module for DocTags reconstruction.

Provides:
- DocTags to Markdown conversion
- DocTags to JSON conversion
- Per-page renderer selection from the prompt that produced the page
- Multi-page export to Markdown, JSON, HTML and raw text files
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

import markdown as md_lib

from ..config import (
    PipelineConfig,
    JSON_PARSE_ERROR,
    FULL_PAGE_PROMPT,
    FORMULA_PROMPT,
    CODE_PROMPT,
    OTSL_PROMPT_MARKER,
)
from .tokens import clean_meta_tokens
from .tables import otsl_to_html, otsl_to_markdown, escape_html
from .sections import extract_sections, extract_legacy_sections
from .snippets import extract_formula_content, extract_code_content
from .io import ensure_dir, save_json, save_text

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("markdown", "json", "html", "raw")


# ============================================================================
# DocTags to Markdown
# ============================================================================

# Applied in order; later rules see the output of earlier ones.
DOCTAGS_MARKDOWN_RULES = [
    (re.compile(r'<section_header_level_1>.*?<loc_.*?>(.*?)</section_header_level_1>'), '\n## \\1\n'),
    (re.compile(r'<section_header_level_2>.*?<loc_.*?>(.*?)</section_header_level_2>'), '\n### \\1\n'),
    (re.compile(r'<section_header_level_3>.*?<loc_.*?>(.*?)</section_header_level_3>'), '\n#### \\1\n'),
    (re.compile(r'<text>.*?<loc_.*?>(.*?)</text>'), '\n\\1\n'),
    (re.compile(r'<unordered_list>\s*'), '\n'),
    (re.compile(r'\s*</unordered_list>'), '\n'),
    (re.compile(r'<list_item>.*?<loc_.*?>(.*?)</list_item>'), '- \\1\n'),
    (re.compile(r'<table>.*?<loc_.*?>(.*?)</table>'), '\n\\1\n'),
    (re.compile(r'<table_row>.*?<loc_.*?>(.*?)</table_row>'), '| \\1 |\n'),
    (re.compile(r'<table_cell>.*?<loc_.*?>(.*?)</table_cell>'), ' \\1 |'),
    (re.compile(r'<[^>]+>'), ''),
    (re.compile(r'\n{3,}'), '\n\n'),
]

LEGACY_LOCATION_MARKER = re.compile(r'\d+>\d+>\d+>\d+>\d+>')
EMAIL_PATTERN = re.compile(r'([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})')
WHITESPACE_RUN = re.compile(r'\s{2,}')


def doctags_to_markdown(doctags: str, config: Optional[PipelineConfig] = None) -> str:
    """
    Convert DocTags model output to Markdown.

    Output with a <doctag> wrapper is rewritten element by element:
    headers become ##/###/#### lines, list items '- ' bullets and table
    cells pipe fragments. Output without the wrapper is treated as the
    legacy raw format, where only the numeric location markers are
    removed and whitespace runs become paragraph breaks.

    Args:
        doctags: Raw model output
        config: Pipeline configuration

    Returns:
        Markdown text
    """
    config = config or PipelineConfig()
    cleaned = clean_meta_tokens(doctags, config.doctags)

    if config.doctags.wrapper_tag in cleaned:
        markdown = cleaned
        for pattern, replacement in DOCTAGS_MARKDOWN_RULES:
            markdown = pattern.sub(replacement, markdown)
        return markdown

    markdown = LEGACY_LOCATION_MARKER.sub('', cleaned)
    markdown = EMAIL_PATTERN.sub(r'\1@\2', markdown)
    markdown = WHITESPACE_RUN.sub('\n\n', markdown)
    return markdown


# ============================================================================
# DocTags to JSON
# ============================================================================

def doctags_to_dict(doctags: str, config: Optional[PipelineConfig] = None) -> Dict[str, Any]:
    """
    Build the JSON document tree for DocTags model output.

    Returns {"sections": [...]} on success. Any failure while structuring
    is reported as {"error": ..., "rawContent": ...} instead of raised.
    """
    config = config or PipelineConfig()
    cleaned = clean_meta_tokens(doctags, config.doctags)

    try:
        if config.doctags.wrapper_tag in cleaned:
            sections = extract_sections(cleaned)
        else:
            sections = extract_legacy_sections(cleaned)
        return {"sections": [section.to_dict() for section in sections]}
    except Exception as e:
        logger.error(f"Error converting DocTags to JSON: {e}")
        return {"error": JSON_PARSE_ERROR, "rawContent": cleaned}


def doctags_to_json(doctags: str, config: Optional[PipelineConfig] = None) -> str:
    """Convert DocTags model output to a pretty-printed JSON string."""
    config = config or PipelineConfig()
    return json.dumps(
        doctags_to_dict(doctags, config),
        indent=config.export.json_indent,
        ensure_ascii=config.export.ensure_ascii
    )


# ============================================================================
# Page Rendering
# ============================================================================

def render_page(
    raw_output: str,
    prompt: str = FULL_PAGE_PROMPT,
    output_format: str = "markdown",
    config: Optional[PipelineConfig] = None
) -> str:
    """
    Render one page of model output according to the prompt that produced it.

    Args:
        raw_output: Raw model output for the page
        prompt: Prompt the page was generated with
        output_format: One of 'markdown', 'json', 'html', 'raw'
        config: Pipeline configuration

    Returns:
        Rendered page
    """
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")

    config = config or PipelineConfig()
    raw_output = raw_output or ""
    is_otsl = OTSL_PROMPT_MARKER in prompt

    if output_format == "raw":
        return raw_output

    if output_format == "json":
        return doctags_to_json(raw_output, config)

    if output_format == "html":
        return _render_html(raw_output, prompt, config)

    if prompt == FORMULA_PROMPT:
        return extract_formula_content(raw_output)
    if prompt == CODE_PROMPT:
        return extract_code_content(raw_output).code
    if is_otsl:
        return otsl_to_markdown(raw_output, config.table)
    return doctags_to_markdown(raw_output, config)


def _render_html(raw_output: str, prompt: str, config: PipelineConfig) -> str:
    """HTML display form of a page."""
    if OTSL_PROMPT_MARKER in prompt:
        return otsl_to_html(raw_output, config.table)

    if prompt == FORMULA_PROMPT:
        formula = extract_formula_content(raw_output)
        # Left for a client-side math renderer
        return f'<div class="latex-body">$${escape_html(formula)}$$</div>'

    if prompt == CODE_PROMPT:
        snippet = extract_code_content(raw_output)
        return md_lib.markdown(
            f"```{snippet.language}\n{snippet.code}\n```",
            extensions=['fenced_code']
        )

    return md_lib.markdown(
        doctags_to_markdown(raw_output, config),
        extensions=['tables']
    )


# ============================================================================
# Multi-Page Exporter
# ============================================================================

class DocumentExporter:
    """Render a multi-page document and write it in several formats."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "document",
        config: Optional[PipelineConfig] = None
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name
        self.config = config or PipelineConfig()

    def _page_prompts(self, pages: List[str], prompts: Optional[List[str]]) -> List[str]:
        prompts = list(prompts or [])
        # Pages without their own prompt were full-page conversions
        return prompts + [FULL_PAGE_PROMPT] * (len(pages) - len(prompts))

    def _page_documents(self, pages: List[str]) -> List[Dict[str, Any]]:
        return [doctags_to_dict(page, self.config) for page in pages]

    def render(
        self,
        pages: List[str],
        output_format: str = "markdown",
        prompts: Optional[List[str]] = None
    ) -> str:
        """
        Render every page and join them into one document string.

        JSON pages are collected into a JSON array; other formats are
        joined with the configured page separator.
        """
        page_prompts = self._page_prompts(pages, prompts)

        if output_format == "json":
            return json.dumps(
                self._page_documents(pages),
                indent=self.config.export.json_indent,
                ensure_ascii=self.config.export.ensure_ascii
            )

        rendered = [
            render_page(page, prompt, output_format, self.config)
            for page, prompt in zip(pages, page_prompts)
        ]
        separator = "\n<hr />\n" if output_format == "html" else self.config.export.page_separator
        return separator.join(rendered)

    def export(
        self,
        pages: List[str],
        formats: Optional[List[str]] = None,
        prompts: Optional[List[str]] = None
    ) -> Dict[str, Path]:
        """
        Export pages to multiple formats.

        Args:
            pages: Raw model output, one string per page
            formats: Formats to write ('markdown', 'json', 'html', 'raw', 'all')
            prompts: Prompt used for each page (defaults to full-page conversion)

        Returns:
            Dictionary mapping format to output path
        """
        if formats is None:
            formats = ["markdown", "json"]

        if "all" in formats:
            formats = list(OUTPUT_FORMATS)

        ensure_dir(self.output_dir)
        max_pages = self.config.max_pages
        if max_pages is not None:
            pages = pages[:max_pages]

        results = {}
        for fmt in formats:
            extension = self.config.export.extensions[fmt]
            path = self.output_dir / f"{self.base_name}.{extension}"

            if fmt == "json":
                results[fmt] = save_json(
                    self._page_documents(pages), path,
                    indent=self.config.export.json_indent,
                    ensure_ascii=self.config.export.ensure_ascii
                )
            else:
                results[fmt] = save_text(self.render(pages, fmt, prompts), path)

            logger.info(f"Exported {fmt} ({len(pages)} page(s)) to: {path}")

        return results
