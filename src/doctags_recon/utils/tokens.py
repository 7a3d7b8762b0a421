"""
Tag tokenizer for OTSL and DocTags model output.

Provides:
- Meta-token cleanup (end-of-turn markers, role prefixes, the instruction)
- Location tag stripping
- OTSL / chart wrapper lookup
- Splitting of a tag stream into (tag, text) tokens
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..config import DocTagsConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Patterns
# ============================================================================

TAG_SPLIT_PATTERN = re.compile(r'(<[^>]+>)')
LOCATION_TAG_PATTERN = re.compile(r'<loc_.*?>')
OTSL_BLOCK_PATTERN = re.compile(r'<(otsl|chart)>([\s\S]*?)</\1>')

# Token vocabulary
FCEL = "<fcel>"
CHED = "<ched>"
RHED = "<rhed>"
SROW = "<srow>"
LCEL = "<lcel>"
UCEL = "<ucel>"
XCEL = "<xcel>"
NL = "<nl>"
UNKNOWN = "<unknown>"

HEADER_TAGS = frozenset([CHED, RHED, SROW])
CONTINUATION_TAGS = frozenset([LCEL, UCEL, XCEL])


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class Token:
    """A single tag with the text that follows it."""
    tag: str
    text: str = ""

    @property
    def is_row_break(self) -> bool:
        return self.tag == NL

    @property
    def is_continuation(self) -> bool:
        return self.tag in CONTINUATION_TAGS


# ============================================================================
# Cleaning
# ============================================================================

def clean_meta_tokens(text: str, config: Optional[DocTagsConfig] = None) -> str:
    """
    Remove conversation meta tokens from raw model output.

    Args:
        text: Raw model output
        config: DocTags configuration holding the meta token list

    Returns:
        Cleaned and trimmed text
    """
    if not text:
        return ""

    config = config or DocTagsConfig()
    pattern = "|".join(re.escape(token) for token in config.meta_tokens)
    return re.sub(pattern, "", text).strip()


def strip_location_tags(text: str) -> str:
    """Remove every <loc_...> tag."""
    return LOCATION_TAG_PATTERN.sub("", text)


def find_otsl_block(text: str) -> Optional[Tuple[str, str]]:
    """
    Find the first <otsl> or <chart> block.

    Returns:
        (wrapper name, body) with location tags removed from the trimmed
        body, or None when no wrapper pair was found
    """
    match = OTSL_BLOCK_PATTERN.search(text)
    if not match:
        return None
    return match.group(1), strip_location_tags(match.group(2)).strip()


# ============================================================================
# Tokenizer
# ============================================================================

def tokenize(text: str) -> List[Token]:
    """
    Split a tag stream into ordered tokens.

    A tag takes the text run right after it as its payload. A text run
    with no tag in front of it becomes an <fcel> token.

    Args:
        text: OTSL body with location tags already stripped

    Returns:
        List of tokens (empty for empty input)
    """
    parts = [p for p in TAG_SPLIT_PATTERN.split(text) if p.strip()]
    tokens = []

    i = 0
    while i < len(parts):
        part = parts[i]
        if part.startswith("<"):
            has_text = i + 1 < len(parts) and not parts[i + 1].startswith("<")
            payload = parts[i + 1].strip() if has_text else ""
            tokens.append(Token(tag=part, text=payload))
            if payload:
                i += 1
        else:
            tokens.append(Token(tag=FCEL, text=part.strip()))
        i += 1

    logger.debug(f"Tokenized {len(tokens)} tokens from {len(parts)} parts")
    return tokens
