from __future__ import annotations

"""
Ranking module for the product selector.

Two cheap scorers run over the filtered candidates and their rankings
are combined with Reciprocal Rank Fusion:

* a lexical scorer ("bm25" for historical reasons) that counts query
  terms appearing inside ``doc_text`` tokens, with title and exact-token
  boosts.  There is no IDF and no length normalisation.
* a vocabulary scorer ("semantic") that rewards query/document overlap
  on a fixed table of multilingual synonym clusters, plus small bonuses
  when the query names the product type or vendor.

Every ranking is produced with a stable descending sort so equal scores
keep their input order, which keeps results reproducible.

Example::

    from product_selector.ranking import rank_products
    result = rank_products("aluminium ladder", candidates)
    for s in result.scores[:5]:
        print(s.rank, s.id, s.score)
"""

from typing import Dict, List, Sequence

import numpy as np
from loguru import logger

from .config import (
    ALGORITHM_NAME,
    EXACT_TERM_BOOST,
    RRF_K,
    SEMANTIC_CLUSTERS,
    TITLE_BOOST,
    TYPE_BONUS,
    VENDOR_BONUS,
)
from .normalize import whitespace_tokens
from .schemas import NormalizedProduct, ProductScore, RankingResult


def assign_ranks(scores: List[ProductScore]) -> List[ProductScore]:
    """Stable-sort scores descending and set 1-based ranks by position."""
    if not scores:
        return []
    values = np.asarray([s.score for s in scores], dtype="float64")
    order = np.argsort(-values, kind="stable")
    ranked = [scores[int(i)] for i in order]
    for position, item in enumerate(ranked, start=1):
        item.rank = position
    return ranked


# ---------------------------
# Lexical scorer
# ---------------------------

def _term_score(term: str, doc_terms: List[str], title_lower: str) -> float:
    term_freq = sum(1 for d in doc_terms if term in d)
    title_boost = TITLE_BOOST if term in title_lower else 1.0
    exact_boost = EXACT_TERM_BOOST if term in doc_terms else 1.0
    return term_freq * title_boost * exact_boost


def score_bm25(query: str, products: Sequence[NormalizedProduct]) -> List[ProductScore]:
    """Score products by substring term overlap with the query.

    An empty or whitespace-only query scores every product 0 and keeps
    input order.
    """
    if not (query or "").strip():
        return [
            ProductScore(id=p.id, score=0.0, rank=i + 1, source="bm25")
            for i, p in enumerate(products)
        ]
    query_terms = whitespace_tokens(query)
    scores: List[ProductScore] = []
    for product in products:
        doc_terms = whitespace_tokens(product.doc_text)
        title_lower = product.title.lower()
        total = sum(_term_score(t, doc_terms, title_lower) for t in query_terms)
        scores.append(ProductScore(id=product.id, score=float(total), rank=0, source="bm25"))
    return assign_ranks(scores)


# ---------------------------
# Vocabulary ("semantic") scorer
# ---------------------------

def _cluster_score(query_lower: str, doc_text: str) -> float:
    total = 0.0
    for terms, weight in SEMANTIC_CLUSTERS:
        matches = sum(1 for t in terms if t in query_lower and t in doc_text)
        total += matches * weight
    return total


def _bonus_score(query_lower: str, product: NormalizedProduct) -> float:
    bonus = 0.0
    if product.product_type and product.product_type.lower() in query_lower:
        bonus += TYPE_BONUS
    if product.vendor and product.vendor.lower() in query_lower:
        bonus += VENDOR_BONUS
    return bonus


def score_semantic_similarity(
    query: str, products: Sequence[NormalizedProduct]
) -> List[ProductScore]:
    """Score products against the synonym-cluster table plus type/vendor bonuses."""
    query_lower = (query or "").lower()
    scores = [
        ProductScore(
            id=p.id,
            score=_cluster_score(query_lower, p.doc_text.lower()) + _bonus_score(query_lower, p),
            rank=0,
            source="semantic",
        )
        for p in products
    ]
    return assign_ranks(scores)


# ---------------------------
# Fusion
# ---------------------------

def fuse_rankings(rankings: Sequence[Sequence[ProductScore]], k: int = RRF_K) -> List[ProductScore]:
    """Reciprocal Rank Fusion.

    Each id scores ``sum(1 / (k + rank))`` over the rankings that contain
    it; rankings that omit an id contribute nothing.  Ids are collected
    in first-seen order, which is the tie-break order for the final
    stable sort.
    """
    rank_maps: List[Dict[int, int]] = []
    ids: Dict[int, None] = {}
    for ranking in rankings:
        ranks: Dict[int, int] = {}
        for item in ranking:
            ranks.setdefault(item.id, item.rank)
            ids.setdefault(item.id, None)
        rank_maps.append(ranks)

    fused = []
    for pid in ids:
        score = sum(1.0 / (k + ranks[pid]) for ranks in rank_maps if pid in ranks)
        fused.append(ProductScore(id=pid, score=score, rank=0, source="fused"))
    return assign_ranks(fused)


def rank_products(query: str, products: Sequence[NormalizedProduct]) -> RankingResult:
    """Rank products with the lexical + vocabulary scorers fused by RRF."""
    lexical = score_bm25(query, products)
    semantic = score_semantic_similarity(query, products)
    fused = fuse_rankings([lexical, semantic])
    logger.debug(
        "Ranked {} candidates for {!r}; top fused ids: {}",
        len(products),
        query,
        [s.id for s in fused[:5]],
    )
    return RankingResult(
        scores=fused,
        total_candidates=len(products),
        algorithm_used=ALGORITHM_NAME,
        lexical=lexical,
        semantic=semantic,
    )
