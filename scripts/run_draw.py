#!/usr/bin/env python3
"""
Draw random provisions from the curated statute list.

Examples:
    python scripts/run_draw.py
    python scripts/run_draw.py --law-id 129AC0000000089 --count 3
    python scripts/run_draw.py --keyword 契約 --law-id 129AC0000000089
    python scripts/run_draw.py --reset
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

from hourei_engine.core.law_explorer.config import LawClientConfig
from hourei_engine.core.law_explorer.errors import LawApiError, LawClientError
from hourei_engine.core.law_explorer.law_client import LawApiClient
from hourei_engine.core.law_explorer.persist import PersistentStore
from hourei_engine.core.law_explorer.provision_draw import ProvisionDraw


def main() -> int:
    parser = argparse.ArgumentParser(description="Draw random statute provisions")
    parser.add_argument("--law-id", help="Draw from this law instead of a weighted pick")
    parser.add_argument("--keyword", help="Only draw provisions containing this keyword")
    parser.add_argument("--count", type=int, default=1, help="Number of draws")
    parser.add_argument("--multiplier", type=float, default=3.0, help="Weight multiplier for the major six statutes")
    parser.add_argument("--reset", action="store_true", help="Forget the draw history first")
    args = parser.parse_args()

    load_dotenv(project_root / ".env.local")
    load_dotenv(project_root / ".env")
    logging.basicConfig(
        level=os.getenv("HOUREI_LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    config = LawClientConfig.from_env()
    store = PersistentStore(str(Path(config.cache_dir) / "state"))
    with LawApiClient(config) as client:
        draw = ProvisionDraw(client, store=store, major_six_multiplier=args.multiplier)
        return run_draws(draw, args)


def run_draws(draw: ProvisionDraw, args: argparse.Namespace) -> int:
    if args.reset:
        draw.clear_history(args.law_id)
        print("✓ Draw history cleared")

    for _ in range(args.count):
        try:
            result = draw.draw(law_id=args.law_id, keyword=args.keyword)
        except (LawClientError, LawApiError) as e:
            print(f"❌ Draw failed: {e}")
            return 1
        print(f"\n🎲 {result.law_name} {result.provision.path}  (seen {result.history_size})")
        print(f"   {result.provision.text}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
