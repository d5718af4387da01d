"""
Scheduled billing jobs.

Usage:
    python jobs.py mark-overdue
    python jobs.py mark-overdue --as-of 2026-11-30
"""
import os
import sys
import argparse
import logging
from datetime import date
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

from database import get_session_context
from services import InvoiceService


def mark_overdue(as_of: date = None) -> int:
    """Run the overdue sweep; returns the number of invoices moved to OVERDUE."""
    with get_session_context() as db:
        results = InvoiceService.mark_overdue_invoices(db, today=as_of)
        for result in results:
            logger.info(
                "Invoice %s: %s -> %s",
                result.invoice.invoice_number,
                result.previous_status.value,
                result.status.value,
            )
        return len(results)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Invoice billing jobs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    overdue = subparsers.add_parser("mark-overdue", help="Mark past-due invoices as OVERDUE")
    overdue.add_argument("--as-of", type=date.fromisoformat, default=None,
                         help="Treat this date (YYYY-MM-DD) as today")

    args = parser.parse_args(argv)

    if args.command == "mark-overdue":
        count = mark_overdue(args.as_of)
        logger.info("Overdue sweep finished: %d invoice(s) marked", count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
