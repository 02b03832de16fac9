# marketrank/cli.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from . import config
from .catalog_build import Catalog, load_catalog_snapshot
from .config import FilterOptions, Item
from .history import JsonFileStore, ViewHistory
from .recommend import get_recommendations, get_similar_products, track_product_view
from .search import run_search
from .spelling import build_dictionary, get_spelling_correction
from .suggestions import get_search_suggestions

DEFAULT_HISTORY_PATH = config.DATA_DIR / "view_history.json"


def _dump(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _items_payload(items: List[Item]) -> list:
    return [i.model_dump(mode="json") for i in items]


def _history(args) -> ViewHistory:
    return ViewHistory(JsonFileStore(args.history))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="marketrank", description="Search and recommend over a catalog snapshot.")
    ap.add_argument("--catalog", type=Path, default=config.CATALOG_SNAPSHOT_PATH,
                    help="Catalog snapshot (.json document or .csv/.parquet item table)")
    ap.add_argument("--log-level", default=config.LOG_LEVEL)
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Filter and rank the catalog for a query")
    p.add_argument("query", nargs="?", default="")
    p.add_argument("--category", action="append", default=[])
    p.add_argument("--bucket", action="append", default=[])
    p.add_argument("--price-min", type=float)
    p.add_argument("--price-max", type=float)
    p.add_argument("--instant-buy", action="store_true")

    p = sub.add_parser("suggest", help="As-you-type suggestions")
    p.add_argument("query")

    p = sub.add_parser("correct", help="Spelling correction against the catalog dictionary")
    p.add_argument("query")

    p = sub.add_parser("recommend", help="Recommendations from the local view history")
    p.add_argument("--history", type=Path, default=DEFAULT_HISTORY_PATH)

    p = sub.add_parser("similar", help="Items similar to one catalog item")
    p.add_argument("item_id")

    p = sub.add_parser("track", help="Record a product view in the local history")
    p.add_argument("item_id")
    p.add_argument("--history", type=Path, default=DEFAULT_HISTORY_PATH)

    return ap


def run(args, catalog: Catalog) -> int:
    if args.command == "search":
        options = FilterOptions(
            categories=args.category,
            buckets=args.bucket,
            price_min=args.price_min,
            price_max=args.price_max,
            instant_buy=args.instant_buy,
        )
        _dump(run_search(catalog, args.query, options).model_dump(mode="json"))
    elif args.command == "suggest":
        result = get_search_suggestions(args.query, catalog.items, catalog.vendors, catalog.categories)
        _dump(result.model_dump(mode="json"))
    elif args.command == "correct":
        dictionary = build_dictionary(catalog.items, catalog.vendors)
        _dump({"query": args.query, "correction": get_spelling_correction(args.query, dictionary)})
    elif args.command == "recommend":
        _dump(_items_payload(get_recommendations(catalog.items, _history(args))))
    elif args.command == "similar":
        item = catalog.item_by_id(args.item_id)
        if item is None:
            logger.error("Unknown item id {}", args.item_id)
            return 1
        _dump(_items_payload(get_similar_products(item, catalog.items)))
    elif args.command == "track":
        _dump({"history": track_product_view(_history(args), args.item_id)})
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config.configure_logging(args.log_level.upper())

    try:
        catalog = load_catalog_snapshot(args.catalog)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Could not load catalog: {}", e)
        return 2

    return run(args, catalog)


if __name__ == "__main__":
    sys.exit(main())
