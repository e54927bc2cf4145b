# product_selector/cli.py
"""
Batch runner for the product selector.
Runs queries against a catalog file without starting FastAPI.

- Queries come from --query (repeatable) or a CSV/XLSX file with a Query column
- De-duplicates identical queries (runs once, fans out)
- Writes one CSV row per (query, selected product) when --out is given
- --stats prints catalog statistics instead of running queries
"""

from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd
from loguru import logger

from product_selector.catalog import CatalogStore
from product_selector.config import CATALOG_PATH, DEFAULT_LIMIT, LOG_LEVEL
from product_selector.mapping import cards_to_prompt_context
from product_selector.schemas import ProductCard
from product_selector.selector import ProductSelector

OUTPUT_COLUMNS = ["Query", "rank", "product_id", "title", "price", "reason"]


def load_queries(path: Path) -> List[str]:
    ext = path.suffix.lower()
    df = pd.read_excel(path) if ext in {".xlsx", ".xls"} else pd.read_csv(path)
    cols = {c.lower(): c for c in df.columns}
    qcol = cols.get("query")
    if not qcol:
        raise ValueError(f"Expected column 'Query' in {path}. Found: {list(df.columns)}")
    return df[qcol].fillna("").astype(str).str.strip().tolist()


def _dedup_preserve_order(seq: List[str]) -> List[str]:
    return list(dict.fromkeys(seq))


def write_predictions_csv(preds: Dict[str, List[ProductCard]], queries: List[str], out_path: Path) -> None:
    """
    One row per (query, product), in the original query order and the
    selected product order.
    """
    rows: List[Tuple] = []
    for q in queries:
        for rank, card in enumerate(preds.get(q, []), start=1):
            rows.append((q, rank, card.id, card.title, card.price, card.reason or ""))
    df = pd.DataFrame(rows, columns=OUTPUT_COLUMNS)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)


def configure_logging(level: str = LOG_LEVEL) -> None:
    logger.remove()
    # looked up per message so redirected stderr is honoured
    logger.add(lambda msg: sys.stderr.write(msg), level=level.upper())


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Select products from a catalog file.")
    ap.add_argument("--catalog", type=str, default=str(CATALOG_PATH), help="JSON catalog file")
    ap.add_argument("--query", action="append", default=[], help="query text (repeatable)")
    ap.add_argument("--in", dest="inp", type=str, default=None, help="CSV/XLSX file with a Query column")
    ap.add_argument("--out", dest="out", type=str, default=None, help="optional output CSV")
    ap.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="max products per query (default 10)")
    ap.add_argument("--stats", action="store_true", help="print catalog statistics and exit")
    ap.add_argument("--log-level", type=str, default=LOG_LEVEL, help="loguru level for stderr (default $LOG_LEVEL or INFO)")
    return ap


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    store = CatalogStore.from_file(Path(args.catalog))
    selector = ProductSelector(store)
    if store.rejected_count:
        print(f"[WARN] {store.rejected_count} catalog records were rejected")

    if args.stats:
        print(json.dumps(selector.get_catalog_stats().model_dump(), indent=2))
        return 0

    queries = list(args.query)
    if args.inp:
        queries += load_queries(Path(args.inp))
    if not queries:
        print("No queries given (use --query or --in).")
        return 2

    unique_queries = _dedup_preserve_order(queries)
    print(f"Running {len(unique_queries)} unique queries against {store.count()} products")

    preds: Dict[str, List[ProductCard]] = {}
    for q in unique_queries:
        result = selector.select_products(query=q, max_results=args.limit)
        preds[q] = result.products
        if not args.out:
            print(f"\n# {q} ({result.total_found} matched filters)")
            print(cards_to_prompt_context(result.products) or "(no products)")

    if args.out:
        write_predictions_csv(preds, queries, Path(args.out))
        total_rows = sum(len(preds[q]) for q in queries)
        print(f"Wrote {total_rows} rows to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
