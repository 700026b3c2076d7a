#!/usr/bin/env python3
"""
Persist ``overdue`` for reminders whose date has passed, once.

The Celery beat schedule does the same thing periodically; this is for cron
or manual runs.

Usage:
    python scripts/reconcile_overdue.py [--user-id ID]
"""

import sys
import logging
import argparse

from dotenv import load_dotenv

load_dotenv()

from cling.reminders.tasks import run_reconcile  # noqa: E402

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description='Reconcile overdue reminders')
    parser.add_argument('--user-id', type=int, default=None,
                        help='Only reconcile reminders owned by this user')
    args = parser.parse_args()

    result = run_reconcile(args.user_id)
    logger.info(f"matched={result['matched']} modified={result['modified']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
