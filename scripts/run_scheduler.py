#!/usr/bin/env python3
"""
Scheduler Runner

Cron entry point: runs one scheduling cycle and prints the summary.

Usage:
    # Set environment variables first (or use a .env file):
    export DATABASE_URL=postgresql://...
    export OPENAI_API_KEY=...
    export PERPLEXITY_API_KEY=...
    export GEMINI_API_KEY=...

    # Daily cycle for everybody:
    python scripts/run_scheduler.py daily

    # Manual run for selected users:
    python scripts/run_scheduler.py manual --user 3f1c... --user 9a2b...
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from citetrack.database import init_db
from citetrack.services import build_services

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def run_scheduler(schedule_type: str, user_ids=None, priority=None) -> dict:
    """Run one scheduling cycle and return the summary dict."""
    init_db()
    services = build_services()
    try:
        summary = await services.scheduler.run_schedule(
            schedule_type,
            user_ids=user_ids,
            priority=priority,
        )
    finally:
        await services.close()
    return summary.to_dict()


def main():
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Run a citation tracking scheduling cycle"
    )
    parser.add_argument(
        "type",
        choices=["daily", "weekly", "manual"],
        help="Schedule type",
    )
    parser.add_argument(
        "--user",
        dest="user_ids",
        action="append",
        help="Restrict to a user id (repeatable)",
    )
    parser.add_argument(
        "--priority",
        choices=["high", "normal", "low"],
        default=None,
        help="Override plan-derived priority",
    )

    args = parser.parse_args()

    try:
        summary = asyncio.run(run_scheduler(args.type, args.user_ids, args.priority))
    except Exception as e:
        logger.error(f"Scheduler run failed: {e}")
        sys.exit(1)

    print(json.dumps(summary, indent=2))
    sys.exit(1 if summary["errors"] else 0)


if __name__ == "__main__":
    main()
