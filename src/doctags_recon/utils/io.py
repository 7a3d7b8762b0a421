"""
I/O utilities for the DocTags reconstruction pipeline.

Handles:
- Loading raw model output, one file per page
- Text and JSON serialization
- Directory management
"""

import json
import logging
from pathlib import Path
from typing import List, Union, Any

logger = logging.getLogger(__name__)

PAGE_EXTENSIONS = ('.txt', '.doctags', '.otsl', '.dt')


# ============================================================================
# Page Loading
# ============================================================================

def load_text(text_path: Union[str, Path]) -> str:
    """
    Load raw model output from a text file.

    Args:
        text_path: Path to the text file

    Returns:
        File content

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    text_path = Path(text_path)
    if not text_path.is_file():
        raise FileNotFoundError(f"Input file not found: {text_path}")

    with open(text_path, 'r', encoding='utf-8') as f:
        text = f.read()

    logger.debug(f"Loaded {len(text)} characters from: {text_path}")
    return text


def load_pages_from_folder(folder_path: Union[str, Path]) -> List[str]:
    """
    Load every page file in a folder, ordered by file name.

    Args:
        folder_path: Directory holding one raw output file per page

    Returns:
        List of page strings
    """
    folder_path = Path(folder_path)
    if not folder_path.is_dir():
        raise FileNotFoundError(f"Input folder not found: {folder_path}")

    page_files = sorted(
        f for f in folder_path.iterdir()
        if f.is_file() and f.suffix.lower() in PAGE_EXTENSIONS
    )
    logger.info(f"Found {len(page_files)} page files in {folder_path}")

    return [load_text(f) for f in page_files]


def load_pages(paths: List[Union[str, Path]]) -> List[str]:
    """Load pages from a mix of page files and page folders, in order."""
    pages = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            pages.extend(load_pages_from_folder(path))
        else:
            pages.append(load_text(path))
    return pages


# ============================================================================
# Serialization
# ============================================================================

def save_text(text: str, output_path: Union[str, Path]) -> Path:
    """Write text to a UTF-8 file, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(text)

    logger.debug(f"Saved text: {output_path}")
    return output_path


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: JSON-serializable data (dicts, lists, strings, numbers)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """
    Load data from a JSON file.

    Args:
        json_path: Path to the JSON file

    Returns:
        Parsed JSON data
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
