"""
OTSL table reconstruction module.

Provides:
- Grid building from an OTSL token stream
- Row/column span resolution for merge markers
- HTML rendering with rowspan/colspan
- Lossy Markdown pipe-table rendering
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

import numpy as np

from ..config import (
    TableConfig,
    NO_TABLE_DATA,
    OTSL_NOT_FOUND,
    OTSL_NO_TOKENS,
)
from .tokens import (
    Token,
    tokenize,
    find_otsl_block,
    FCEL,
    UNKNOWN,
    LCEL,
    UCEL,
    XCEL,
    HEADER_TAGS,
)

logger = logging.getLogger(__name__)

TABLE_FORMATS = ("html", "markdown")


# ============================================================================
# Helpers
# ============================================================================

def escape_html(text: str) -> str:
    """Escape HTML special characters."""
    return (text
        .replace('&', '&amp;')
        .replace('<', '&lt;')
        .replace('>', '&gt;')
        .replace('"', '&quot;')
        .replace("'", '&#039;')
    )


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class GridCell:
    """A raw grid position before span resolution."""
    text: str
    tag: str

    @property
    def is_col_span(self) -> bool:
        return self.tag == LCEL

    @property
    def is_row_span(self) -> bool:
        return self.tag == UCEL

    @property
    def is_cross_span(self) -> bool:
        return self.tag == XCEL

    @property
    def is_continuation(self) -> bool:
        return self.is_col_span or self.is_row_span or self.is_cross_span

    @property
    def extends_left(self) -> bool:
        return self.is_col_span or self.is_cross_span

    @property
    def extends_up(self) -> bool:
        return self.is_row_span or self.is_cross_span


@dataclass
class ResolvedCell:
    """A grid position after span resolution."""
    text: str
    tag: str
    row: int
    col: int
    row_span: int = 1
    col_span: int = 1
    skip: bool = False
    is_orphan: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "tag": self.tag,
            "row": self.row,
            "col": self.col,
            "row_span": self.row_span,
            "col_span": self.col_span,
            "skip": self.skip,
        }


# ============================================================================
# Grid Building and Span Resolution
# ============================================================================

def build_grid(tokens: List[Token]) -> List[List[GridCell]]:
    """
    Arrange tokens into rows, starting a new row at every <nl>.

    Rows may have different lengths; nothing pads them.
    """
    grid: List[List[GridCell]] = [[]]
    for token in tokens:
        if token.is_row_break:
            grid.append([])
        else:
            grid[-1].append(GridCell(text=token.text, tag=token.tag))
    return grid


def resolve_spans(grid: List[List[GridCell]]) -> List[List[ResolvedCell]]:
    """
    Compute rowspan/colspan for every content cell of a grid.

    Column spans count the run of <lcel>/<xcel> to the right of a cell,
    row spans the run of <ucel>/<xcel> below it in the same column. A row
    too short to reach the column ends the row scan. Continuation markers
    left outside every content cell's span rectangle are released as
    plain 1x1 cells.

    Args:
        grid: Rows of grid cells from build_grid()

    Returns:
        Rows of resolved cells, same shape as the input grid
    """
    resolved = [
        [
            ResolvedCell(
                text=cell.text,
                tag=cell.tag,
                row=r,
                col=c,
                skip=cell.is_continuation
            )
            for c, cell in enumerate(row)
        ]
        for r, row in enumerate(grid)
    ]

    # Column spans
    for r, row in enumerate(grid):
        for c in range(len(row)):
            if resolved[r][c].skip:
                continue
            col_span = 1
            for next_col in range(c + 1, len(row)):
                if not row[next_col].extends_left:
                    break
                col_span += 1
            resolved[r][c].col_span = col_span

    # Row spans
    for r, row in enumerate(grid):
        for c in range(len(row)):
            if resolved[r][c].skip:
                continue
            row_span = 1
            for next_row in range(r + 1, len(grid)):
                below = grid[next_row]
                if c >= len(below) or not below[c].extends_up:
                    break
                row_span += 1
            resolved[r][c].row_span = row_span

    _release_orphans(resolved)
    return resolved


def _release_orphans(resolved: List[List[ResolvedCell]]) -> None:
    """Turn continuation markers no content cell covers into empty cells."""
    num_rows = len(resolved)
    num_cols = max((len(row) for row in resolved), default=0)
    if num_rows == 0 or num_cols == 0:
        return

    covered = np.zeros((num_rows, num_cols), dtype=bool)
    for row in resolved:
        for cell in row:
            if not cell.skip:
                covered[cell.row:cell.row + cell.row_span,
                        cell.col:cell.col + cell.col_span] = True

    for row in resolved:
        for cell in row:
            if cell.skip and not covered[cell.row, cell.col]:
                cell.skip = False
                cell.is_orphan = True
                cell.text = ""
                logger.debug(f"Orphan {cell.tag} at ({cell.row}, {cell.col}) rendered as empty cell")


# ============================================================================
# Table Result
# ============================================================================

@dataclass
class TableResult:
    """A reconstructed OTSL table with its rendered forms."""
    tokens: List[Token]
    config: TableConfig = field(default_factory=TableConfig)
    is_chart: bool = False

    grid: List[List[GridCell]] = field(default_factory=list)
    cells: List[List[ResolvedCell]] = field(default_factory=list)

    # Pre-generated output formats
    table_html: str = ""
    table_markdown: str = ""

    def __post_init__(self):
        if not self.grid:
            self.grid = build_grid(self.tokens)
        if not self.cells:
            self.cells = resolve_spans(self.grid)
        if not self.table_html:
            self.table_html = self._build_html()
        if not self.table_markdown:
            self.table_markdown = self._build_markdown()

    @property
    def num_rows(self) -> int:
        return len(self.grid)

    @property
    def num_cols(self) -> int:
        return max((len(row) for row in self.grid), default=0)

    def is_header(self, cell: ResolvedCell) -> bool:
        """Header-role tags, or the first column of a chart table."""
        if cell.tag in HEADER_TAGS:
            return True
        return (
            self.is_chart
            and self.config.first_column_header
            and cell.col == 0
            and cell.tag in (FCEL, UNKNOWN)
        )

    def _build_html(self) -> str:
        """Build HTML table with rowspan/colspan attributes."""
        parts = [f'<table class="{self.config.css_class}">']

        for row in self.cells:
            if not row:
                continue

            parts.append('<tr>')
            for cell in row:
                if cell.skip:
                    continue

                tag = 'th' if self.is_header(cell) else 'td'
                row_span_attr = f' rowspan="{cell.row_span}"' if cell.row_span > 1 else ''
                col_span_attr = f' colspan="{cell.col_span}"' if cell.col_span > 1 else ''
                content = escape_html(cell.text) or self.config.empty_cell

                parts.append(f'<{tag}{row_span_attr}{col_span_attr}>{content}</{tag}>')
            parts.append('</tr>')

        parts.append('</table>')
        return "".join(parts)

    def _build_markdown(self) -> str:
        """
        Build a pipe table from the token stream.

        Merge markers are dropped instead of resolved since Markdown has
        no merged cells. Row 0 is the header row.
        """
        rows: List[List[str]] = [[]]
        for token in self.tokens:
            if token.is_row_break:
                rows.append([])
            elif not token.is_continuation:
                rows[-1].append(token.text)

        header = rows[0]
        lines = [
            "| " + " | ".join(header) + " |",
            "| " + " | ".join("---" for _ in header) + " |",
        ]
        for row in rows[1:]:
            if row:
                lines.append("| " + " | ".join(row) + " |")

        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "cells": [cell.to_dict() for row in self.cells for cell in row],
            "html": self.table_html,
            "markdown": self.table_markdown,
        }


# ============================================================================
# Public Rendering Functions
# ============================================================================

def _placeholder(message: str, fmt: str) -> str:
    return f"<p>{message}</p>" if fmt == "html" else message


def process_otsl(
    otsl_string: str,
    fmt: str = "html",
    config: Optional[TableConfig] = None
) -> str:
    """
    Render raw OTSL model output as an HTML or Markdown table.

    Args:
        otsl_string: Raw output containing an <otsl> or <chart> block
        fmt: 'html' or 'markdown'
        config: Table rendering configuration

    Returns:
        The rendered table, or a fixed placeholder message when the input
        holds no usable table
    """
    if fmt not in TABLE_FORMATS:
        raise ValueError(f"Unsupported table format: {fmt}")

    if not otsl_string:
        logger.warning("Empty OTSL input")
        return _placeholder(NO_TABLE_DATA, fmt)

    block = find_otsl_block(otsl_string)
    if block is None:
        logger.warning("No <otsl> or <chart> block found")
        return _placeholder(OTSL_NOT_FOUND, fmt)

    wrapper, body = block
    tokens = tokenize(body)
    if not tokens:
        logger.warning("OTSL block produced no tokens")
        return _placeholder(OTSL_NO_TOKENS, fmt)

    result = TableResult(
        tokens=tokens,
        config=config or TableConfig(),
        is_chart=(wrapper == "chart")
    )
    logger.debug(f"Reconstructed table: {result.num_rows} x {result.num_cols}")

    return result.table_html if fmt == "html" else result.table_markdown


def otsl_to_html(otsl_string: str, config: Optional[TableConfig] = None) -> str:
    return process_otsl(otsl_string, "html", config)


def otsl_to_markdown(otsl_string: str, config: Optional[TableConfig] = None) -> str:
    return process_otsl(otsl_string, "markdown", config)
