#!/usr/bin/env python3
"""
Search the e-Gov law API and print the hits.

Examples:
    python scripts/run_search.py 個人情報
    python scripts/run_search.py 取締役会 --category 会社法 --sort promulgationDate --page 2
    python scripts/run_search.py 標準処理期間 --law-id 405AC0000000088
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add the project root to Python path for imports
project_root = Path(__file__).resolve().parents[1]
sys.path.append(str(project_root))

from hourei_engine.core.law_explorer.config import CATEGORY_CODE_MAP, LawClientConfig
from hourei_engine.core.law_explorer.errors import LawApiError, LawClientError
from hourei_engine.core.law_explorer.highlight import highlight_keyword
from hourei_engine.core.law_explorer.law_client import LawApiClient
from hourei_engine.core.law_explorer.models import SearchParams, SortOrder


def main() -> int:
    parser = argparse.ArgumentParser(description="Search statutes by keyword")
    parser.add_argument("keyword", help="Search keyword")
    parser.add_argument("--category", choices=sorted(CATEGORY_CODE_MAP), help="Category label filter")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=10)
    parser.add_argument("--sort", choices=[order.value for order in SortOrder], default=SortOrder.RELEVANCE.value)
    parser.add_argument("--law-id", help="Also fetch this law and list provisions containing the keyword")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the cache")
    args = parser.parse_args()

    load_dotenv(project_root / ".env.local")
    load_dotenv(project_root / ".env")
    logging.basicConfig(
        level=os.getenv("HOUREI_LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    config = LawClientConfig.from_env()
    if args.no_cache:
        config.disable_cache = True
    with LawApiClient(config) as client:
        return run_search(client, args)


def run_search(client: LawApiClient, args: argparse.Namespace) -> int:
    params = SearchParams(
        keyword=args.keyword,
        category=args.category,
        page=args.page,
        page_size=args.page_size,
        sort=SortOrder(args.sort),
    )

    try:
        result = client.search_laws(params)
    except (LawClientError, LawApiError) as e:
        print(f"❌ Search failed: {e}")
        return 1

    print(f"\n=== {result.total_count} laws for '{args.keyword}' (page {result.page}, {result.execution_time_ms:.0f}ms)")
    for summary in result.results:
        print(f"\n• {summary.law_name} [{summary.law_id}] {summary.law_number or ''}")
        for snippet in summary.highlights[:2]:
            print(f"    {highlight_keyword(snippet, args.keyword)}")
    print(f"\nhas_previous={result.has_previous} has_next={result.has_next}")

    if args.law_id:
        try:
            detail = client.get_law_by_id(args.law_id)
        except (LawClientError, LawApiError) as e:
            print(f"❌ Could not load {args.law_id}: {e}")
            return 1
        matches = client.extract_provisions_by_keyword(detail, args.keyword)
        print(f"\n=== {detail.law_name}: {len(matches)} provisions contain '{args.keyword}'")
        for provision in matches:
            print(f"  {provision.path}: {highlight_keyword(provision.text, args.keyword)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
