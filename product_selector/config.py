from __future__ import annotations
"""
Configuration for the product selector (constants + static vocabularies).
"""

import os
from pathlib import Path
from typing import Dict, List, Tuple

# Paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_CATALOG_PATH = DATA_DIR / "products.json"
CATALOG_PATH = Path(os.getenv("PRODUCT_CATALOG_PATH", str(DEFAULT_CATALOG_PATH)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# HTTP server
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Result policy
DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 20
SELECT_MAX_RESULTS = 10  # selection requests never return more than this
DEFAULT_SIMILAR_LIMIT = 5
DEBUG_TOP_N = 5

# Fusion
DEFAULT_RRF_K = 60
RRF_K = int(os.getenv("RRF_K", str(DEFAULT_RRF_K)))
ALGORITHM_NAME = "hybrid_bm25_semantic_rrf"

# Lexical scorer boosts
TITLE_BOOST = 2.0
EXACT_TERM_BOOST = 1.5

# Semantic scorer bonuses
TYPE_BONUS = 0.5
VENDOR_BONUS = 0.3

# Card budget
DESCRIPTION_MAX_CHARS = 150
CARD_MAX_TAGS = 3
DEFAULT_CARD_TYPE = "Product"
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "€")

# Reasons attached to cards
REASON_BEST_MATCH = "Best match for your query"
REASON_HIGHLY_RELEVANT = "Highly relevant"
REASON_ALTERNATIVE = "Good alternative"
REASON_SIMILAR = "Similar product"
HIGHLY_RELEVANT_RANKS = 3  # positions 1..2 (0-based) are "highly relevant"

# Similarity weights
SIMILAR_TYPE_WEIGHT = 3
SIMILAR_VENDOR_WEIGHT = 2
SIMILAR_TAG_WEIGHT = 1
SIMILAR_PRICE_WEIGHT = 1
SIMILAR_PRICE_MAX_GAP = 0.5  # relative gap below which prices count as close

# Product-type vocabulary for implicit filter extraction (first hit wins)
PRODUCT_TYPE_KEYWORDS: List[str] = [
    "ladder",
    "escalera",
    "plataforma",
    "platform",
    "elevadora",
    "tool",
    "herramienta",
    "equipment",
    "equipo",
]

# Price / availability hints in free text
MAX_PRICE_PATTERN = r"(?:under|below|less than|<)\s*(\d+)"
MIN_PRICE_PATTERN = r"(?:over|above|more than|>)\s*(\d+)"
AVAILABILITY_PHRASES: Tuple[str, ...] = ("available", "in stock")

# Synonym clusters for the vocabulary-based semantic scorer: (terms, weight)
SEMANTIC_CLUSTERS: List[Tuple[Tuple[str, ...], float]] = [
    (("ladder", "escalera", "step"), 1.0),
    (("platform", "plataforma", "elevadora"), 1.0),
    (("height", "altura", "high"), 0.8),
    (("safety", "seguridad", "safe"), 0.8),
    (("work", "trabajo", "professional"), 0.6),
    (("tool", "herramienta", "equipment"), 0.6),
]

