"""
Formula and code extraction from single-element model output.
"""

import logging
import re
from dataclasses import dataclass

from ..config import FORMULA_NOT_FOUND
from .tokens import strip_location_tags

logger = logging.getLogger(__name__)

FORMULA_PATTERN = re.compile(r'<formula>([\s\S]*?)</formula>')
# Language marker such as <_Python_> or <_C#_>
LANGUAGE_PATTERN = re.compile(r'<_([A-Za-z0-9#+]+)_>')
CLOSING_TAG_PATTERN = re.compile(r'</.*?>')


@dataclass
class CodeSnippet:
    code: str
    language: str = "text"


def extract_formula_content(raw_output: str) -> str:
    """Return the LaTeX body of the first <formula> element."""
    if not raw_output:
        return ""

    match = FORMULA_PATTERN.search(raw_output)
    if match and match.group(1):
        return strip_location_tags(match.group(1)).strip()

    logger.warning("No <formula> element in model output")
    return FORMULA_NOT_FOUND


def extract_code_content(raw_output: str) -> CodeSnippet:
    """
    Split code output into source text and language.

    Everything after the language marker is code. Without a marker the
    whole output is code and the language is 'text'.
    """
    if not raw_output:
        return CodeSnippet(code="")

    language = "text"
    code = raw_output

    lang_match = LANGUAGE_PATTERN.search(raw_output)
    if lang_match:
        language = lang_match.group(1).lower()
        code = raw_output[lang_match.end():].strip()

    code = code.replace("</code>", "").replace("<end_of_utterance>", "")
    code = CLOSING_TAG_PATTERN.sub("", code).strip()

    return CodeSnippet(code=code, language=language)
