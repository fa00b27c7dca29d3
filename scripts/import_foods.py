import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from smartscales import create_app
from smartscales.food_catalog import cache_products, search_products


def main():
    parser = argparse.ArgumentParser(
        description="Warm the local food catalog from Open Food Facts search results."
    )
    parser.add_argument(
        "queries",
        nargs="+",
        help="Search terms to cache (example: oats skyr banana).",
    )
    parser.add_argument(
        "--max-results",
        type=int,
        default=20,
        help="Max Open Food Facts results per query (default: 20).",
    )
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        total = 0
        for query in args.queries:
            products = search_products(query, limit=args.max_results)
            inserted = cache_products(products) if products else 0
            total += inserted
            print(f"{query}: {len(products)} found, {inserted} new")
        print(f"Total new products: {total}")


if __name__ == "__main__":
    main()
