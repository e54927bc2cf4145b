from __future__ import annotations

"""
Text normalization utilities used across the product selector.

These helpers perform the basic cleaning needed to turn storefront
records into searchable text: HTML tag stripping, whitespace
collapsing, comma-separated tag parsing and assembly of the
``doc_text`` string that both scorers read.  Keeping this logic
centralized ensures catalog content and queries are treated the same
way everywhere.
"""

import re
from typing import Iterable, List, Optional, Tuple

# Generic tag removal; no entity decoding, no parser.
HTML_TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------
# Basic helpers
# ---------------------------

def normalize_whitespace(text: str) -> str:
    """
    Collapse all whitespace runs into a single space and strip edges.
    """
    if not text:
        return ""
    return WHITESPACE_RE.sub(" ", text).strip()


def strip_html(raw: Optional[str]) -> str:
    """
    Remove anything that looks like a tag, then collapse whitespace.
    Absent HTML yields an empty string.
    """
    if not raw:
        return ""
    return normalize_whitespace(HTML_TAG_RE.sub("", raw))


def parse_tags(raw: Optional[str]) -> Tuple[str, ...]:
    """
    Split a Shopify comma-separated tag string.  Tags are trimmed and
    empties dropped, so ``""`` gives ``()`` rather than ``("",)``.
    Order and duplicates are preserved.
    """
    if not raw:
        return ()
    return tuple(tag.strip() for tag in raw.split(",") if tag.strip())


# ---------------------------
# Tokenization
# ---------------------------

def whitespace_tokens(text: str) -> List[str]:
    """
    Lowercase and split on whitespace runs.  Punctuation stays attached
    to its word (``"3.5m"`` is one token), which is what the lexical
    scorer expects.
    """
    if not text:
        return []
    return text.lower().split()


# ---------------------------
# High-level pipelines
# ---------------------------

def build_doc_text(
    title: str,
    description: str,
    vendor: str,
    product_type: str,
    tags: Iterable[str],
) -> str:
    """
    Build the ``doc_text`` field:

    title + description + vendor + product type + space-joined tags

    Empty segments are dropped before joining with single spaces and the
    result is lowercased.  Segments are not re-normalized internally, so
    the join is fully determined by its inputs.
    """
    segments = [title, description, vendor, product_type, " ".join(tags)]
    return " ".join(s for s in segments if s).lower()
