from __future__ import annotations

"""
Mapping utilities for the product selector.

This module converts normalized products into compact
:class:`~product_selector.schemas.ProductCard` objects sized for an LLM
context window (short description, at most three tags) and renders a
list of cards as plain prompt text.  All presentation logic lives here
to keep :mod:`product_selector.selector` focused on selection.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from .config import (
    CARD_MAX_TAGS,
    CURRENCY_SYMBOL,
    DEFAULT_CARD_TYPE,
    DESCRIPTION_MAX_CHARS,
    HIGHLY_RELEVANT_RANKS,
    REASON_ALTERNATIVE,
    REASON_BEST_MATCH,
    REASON_HIGHLY_RELEVANT,
)
from .schemas import NormalizedProduct, ProductCard


_CENTS = Decimal("0.01")


def _two_decimals(value: float) -> str:
    # exact binary value, ties rounded up: 0.125 -> 0.13, 1.005 -> 1.00
    return str(Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_price(product: NormalizedProduct, currency: str = CURRENCY_SYMBOL) -> str:
    """``€150.00`` for a single price, ``€100.00-200.00`` for a range."""
    if product.price_min == product.price_max:
        return f"{currency}{_two_decimals(product.price_min)}"
    return f"{currency}{_two_decimals(product.price_min)}-{_two_decimals(product.price_max)}"


def truncate_description(text: str, max_length: int = DESCRIPTION_MAX_CHARS) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def reason_by_rank(index: int) -> str:
    """Human-readable reason for the 0-based position in a ranked result."""
    if index == 0:
        return REASON_BEST_MATCH
    if index < HIGHLY_RELEVANT_RANKS:
        return REASON_HIGHLY_RELEVANT
    return REASON_ALTERNATIVE


def format_product_card(product: NormalizedProduct, reason: Optional[str] = None) -> ProductCard:
    """Convert one normalized product into a :class:`ProductCard`."""
    return ProductCard(
        id=product.id,
        title=product.title,
        price=format_price(product),
        vendor=product.vendor,
        type=product.product_type or DEFAULT_CARD_TYPE,
        tags=list(product.tags[:CARD_MAX_TAGS]),
        description=truncate_description(product.description_text),
        url=product.url,
        image=product.images[0].src if product.images else None,
        reason=reason,
    )


def cards_to_prompt_context(cards: Sequence[ProductCard]) -> str:
    """
    Render cards as numbered lines for injection into an LLM prompt.

    Empty fields are left out so each line stays as short as the card
    allows.
    """
    lines: List[str] = []
    for idx, card in enumerate(cards, start=1):
        parts = [card.title, card.price, card.vendor, card.type]
        if card.tags:
            parts.append("tags=" + ", ".join(card.tags))
        if card.description:
            parts.append(card.description)
        parts.append(card.url)
        if card.reason:
            parts.append(f"reason={card.reason}")
        lines.append(f"{idx}. [{card.id}] " + " | ".join(p for p in parts if p))
    return "\n".join(lines)
