"""
Document section extraction for DocTags output.

Provides:
- Section data model (header, text, list, table)
- Ordered extraction of sections from a <doctag> document
- Positional fallback for legacy output without the <doctag> wrapper

Each element kind is matched by its own pattern over the whole string.
The match offsets are kept on the sections so the merged result can be
put back into document order.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Union

from ..config import SectionType

logger = logging.getLogger(__name__)


# ============================================================================
# Patterns
# ============================================================================

HEADER_PATTERNS = {
    level: re.compile(
        rf'<section_header_level_{level}>.*?<loc_(.*?)>(.*?)</section_header_level_{level}>'
    )
    for level in (1, 2, 3)
}
TEXT_PATTERN = re.compile(r'<text>.*?<loc_(.*?)>(.*?)</text>')

LIST_PATTERN = re.compile(r'<unordered_list>([\s\S]*?)</unordered_list>')
LIST_ITEM_PATTERN = re.compile(r'<list_item>.*?<loc_(.*?)>(.*?)</list_item>')

TABLE_PATTERN = re.compile(r'<table>.*?<loc_(.*?)>(.*?)</table>')
TABLE_ROW_PATTERN = re.compile(r'<table_row>.*?<loc_(.*?)>(.*?)</table_row>')
TABLE_CELL_PATTERN = re.compile(r'<table_cell>.*?<loc_(.*?)>(.*?)</table_cell>')

NUMERIC_LOCATION_TAG = re.compile(r'<loc_\d+>')

# Legacy raw format: five numbers, each followed by '>'
LEGACY_LOCATION_PATTERN = re.compile(r'(\d+)>(\d+)>(\d+)>(\d+)>(\d+)>')
LEGACY_GROUPS = 5
NUMERIC_PART = re.compile(r'\d+')


def clean_location_tags(text: str) -> str:
    return NUMERIC_LOCATION_TAG.sub("", text)


# ============================================================================
# Data Classes
# ============================================================================

class DocumentSection(ABC):
    """Base of the section variants. `position` is for ordering only."""
    position: int

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """JSON form of the section."""


@dataclass
class HeaderSection(DocumentSection):
    level: int
    content: str
    location: str
    position: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": SectionType.HEADER,
            "level": self.level,
            "content": self.content,
            "location": self.location,
        }


@dataclass
class TextSection(DocumentSection):
    content: str
    location: Optional[str] = None
    position: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": SectionType.TEXT,
            "content": self.content,
        }
        # Legacy fragments carry no location
        if self.location is not None:
            result["location"] = self.location
        return result


@dataclass
class ListItem:
    content: str
    location: str

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "location": self.location}


@dataclass
class ListSection(DocumentSection):
    items: List[ListItem] = field(default_factory=list)
    position: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": SectionType.LIST,
            "content": "",
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class TableCell:
    content: str
    location: str

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "location": self.location}


@dataclass
class TableRow:
    cells: List[TableCell] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"cells": [cell.to_dict() for cell in self.cells]}


@dataclass
class TableSection(DocumentSection):
    content: str
    location: str
    rows: List[TableRow] = field(default_factory=list)
    position: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": SectionType.TABLE,
            "content": self.content,
            "location": self.location,
            "rows": [row.to_dict() for row in self.rows],
        }


Section = Union[HeaderSection, TextSection, ListSection, TableSection]


# ============================================================================
# DocTags Extraction
# ============================================================================

def _extract_headers(doctags: str) -> List[Section]:
    sections = []
    for level, pattern in HEADER_PATTERNS.items():
        for match in pattern.finditer(doctags):
            sections.append(HeaderSection(
                level=level,
                content=clean_location_tags(match.group(2)),
                location=match.group(1),
                position=match.start()
            ))
    return sections


def _extract_text(doctags: str) -> List[Section]:
    return [
        TextSection(
            content=clean_location_tags(match.group(2)),
            location=match.group(1),
            position=match.start()
        )
        for match in TEXT_PATTERN.finditer(doctags)
    ]


def _extract_lists(doctags: str) -> List[Section]:
    sections = []
    for match in LIST_PATTERN.finditer(doctags):
        items = [
            ListItem(
                content=clean_location_tags(item.group(2)),
                location=item.group(1)
            )
            for item in LIST_ITEM_PATTERN.finditer(match.group(1))
        ]
        sections.append(ListSection(items=items, position=match.start()))
    return sections


def _extract_tables(doctags: str) -> List[Section]:
    sections = []
    for match in TABLE_PATTERN.finditer(doctags):
        rows = []
        for row_match in TABLE_ROW_PATTERN.finditer(match.group(0)):
            cells = [
                TableCell(
                    content=clean_location_tags(cell.group(2)),
                    location=cell.group(1)
                )
                for cell in TABLE_CELL_PATTERN.finditer(row_match.group(0))
            ]
            rows.append(TableRow(cells=cells))

        sections.append(TableSection(
            content=clean_location_tags(match.group(2)),
            location=match.group(1),
            rows=rows,
            position=match.start()
        ))
    return sections


def extract_sections(doctags: str) -> List[Section]:
    """
    Extract all sections of a cleaned DocTags string in document order.

    Args:
        doctags: DocTags text with meta tokens already removed

    Returns:
        Sections sorted by their offset in the input
    """
    sections: List[Section] = []
    sections.extend(_extract_headers(doctags))
    sections.extend(_extract_text(doctags))
    sections.extend(_extract_lists(doctags))
    sections.extend(_extract_tables(doctags))

    sections.sort(key=lambda s: s.position)
    logger.debug(f"Extracted {len(sections)} sections")
    return sections


# ============================================================================
# Legacy Extraction
# ============================================================================

def extract_legacy_sections(raw: str) -> List[Section]:
    """
    Rebuild text sections from legacy output without the <doctag> wrapper.

    The text is split on the five-number location markers. Each text
    fragment takes the second number of a marker as its sort position,
    picking the marker by fragment index. This is a best-effort heuristic:
    fragments and markers are not guaranteed to pair up, and fragments
    past the last marker fall back to their split index. The fragment in
    front of the first marker is not kept.
    """
    positions = [
        int(match.group(2))
        for match in LEGACY_LOCATION_PATTERN.finditer(raw)
    ]
    parts = LEGACY_LOCATION_PATTERN.split(raw)

    sections = []
    for i in range(1, len(parts)):
        part = parts[i]
        if not part or not part.strip() or NUMERIC_PART.fullmatch(part):
            continue

        location_index = (i - 1) // LEGACY_GROUPS
        position = positions[location_index] if location_index < len(positions) else i
        sections.append(TextSection(
            content=clean_location_tags(part.strip()),
            position=position
        ))

    sections.sort(key=lambda s: s.position)
    logger.debug(f"Rebuilt {len(sections)} legacy text sections from {len(positions)} markers")
    return sections
