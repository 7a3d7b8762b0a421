"""
Configuration and constants for the DocTags reconstruction pipeline.

This module provides:
- Global logging configuration
- Rendering settings for tables, documents and exports
- The fixed placeholder messages shared by the table renderers
- The prompt catalog used to pick a renderer per page
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Dict
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("doctags_recon")


# ============================================================================
# Placeholder Messages
# ============================================================================

# Identical text for the HTML and Markdown table renderers; HTML wraps in <p>.
NO_TABLE_DATA = "No table data available."
OTSL_NOT_FOUND = "Could not find OTSL tags in the output."
OTSL_NO_TOKENS = "Could not parse any tokens from OTSL."

FORMULA_NOT_FOUND = "Could not parse formula from model output."
JSON_PARSE_ERROR = "Failed to parse DocTags"


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class TableConfig:
    """OTSL table rendering configuration."""
    css_class: str = "rendered-table"
    empty_cell: str = "&nbsp;"  # Keeps empty cells from collapsing
    # Chart-derived tables use their first column as row labels
    first_column_header: bool = True


@dataclass
class DocTagsConfig:
    """DocTags parsing configuration."""
    # Removed from the raw model output before any parsing
    meta_tokens: List[str] = field(default_factory=lambda: [
        "<end_of_utterance>",
        "Assistant:",
        "<pad>",
        "User:",
        "Convert this page to docling.",
    ])
    wrapper_tag: str = "<doctag>"


@dataclass
class ExportConfig:
    """Export configuration."""
    json_indent: int = 2
    ensure_ascii: bool = False
    # Joins rendered pages of a multi-page document
    page_separator: str = "\n\n---\n\n"
    extensions: Dict[str, str] = field(default_factory=lambda: {
        "markdown": "md",
        "json": "json",
        "html": "html",
        "raw": "txt",
    })


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    table: TableConfig = field(default_factory=TableConfig)
    doctags: DocTagsConfig = field(default_factory=DocTagsConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Global settings
    debug_mode: bool = False
    max_pages: Optional[int] = None  # None = render all pages


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("DOCTAGS_RECON_DEBUG", "").lower() == "true":
        config.debug_mode = True

    if os.environ.get("DOCTAGS_RECON_NO_FIRST_COLUMN_HEADER", "").lower() == "true":
        config.table.first_column_header = False

    return config


# ============================================================================
# Section Types
# ============================================================================

class SectionType:
    """JSON type identifiers of document sections."""
    HEADER = "header"
    TEXT = "text"
    LIST = "unordered_list"
    TABLE = "table"


# ============================================================================
# Prompt Catalog
# ============================================================================

FULL_PAGE_PROMPT = "Convert this page to docling."
FORMULA_PROMPT = "Convert formula to LaTeX."
CODE_PROMPT = "Convert code to text."
OTSL_PROMPT_MARKER = "to OTSL"

BASE_PROMPTS = [
    {"value": FULL_PAGE_PROMPT, "label": "Full Page Conversion"},
    {"value": "Convert chart to OTSL.", "label": "Extract Chart"},
    {"value": FORMULA_PROMPT, "label": "Extract Formula"},
    {"value": "Convert table to OTSL.", "label": "Extract Table"},
    {"value": CODE_PROMPT, "label": "Extract Code"},
    {"value": "Find all section headers on the page.", "label": "Extract Headers"},
    {"value": "Detect footer elements on the page.", "label": "Extract Footer"},
    {"value": "Identify figures and their captions.", "label": "Extract Figures & Captions"},
    {"value": "Extract and organize list elements.", "label": "Extract Lists"},
]


def find_prompt(label_or_value: str) -> Optional[str]:
    """Resolve a catalog label (case-insensitive) or value to a prompt value."""
    wanted = label_or_value.strip().lower()
    for prompt in BASE_PROMPTS:
        if wanted in (prompt["value"].lower(), prompt["label"].lower()):
            return prompt["value"]
    return None
