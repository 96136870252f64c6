"""Pipeline CLI Entry Point

Provides the command-line interface for loading the customer and order
files into the document store and reporting the lookup and aggregation
queries against both the normalized and the embedded collections.

Usage:
    python -m src.run_pipeline --customers data/customer.tbl --orders data/order.tbl
    python -m src.run_pipeline --skip-load --store-dir store --custkey 7 --orderkey 42
"""

import argparse
import logging
import time
from pathlib import Path
from typing import List

from src.order_docstore import queries
from src.order_docstore.models import CustomerSpend
from src.order_docstore.pipeline import run_pipeline
from src.order_docstore.store import DocumentStore, JsonDirectoryDocumentStore
from src.order_docstore.store_config import (
    DEFAULT_CUSTOMER_FILE,
    DEFAULT_ORDER_FILE,
    DEFAULT_STORE_DIR,
    DELIMITER,
    TOP_N,
)


def configure_logging() -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "pipeline.log"

    # Root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # Console handler: high-level INFO+
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler: detailed DEBUG+
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def _log_ranking(logger: logging.Logger, title: str, ranking: List[CustomerSpend]) -> None:
    logger.info("%s:", title)
    if not ranking:
        logger.info("  (no customers)")
    for rank, record in enumerate(ranking, start=1):
        logger.info(
            "  %d. custkey=%d %-20s totalOrderAmount=%.2f",
            rank,
            record.custkey,
            record.name,
            record.total_order_amount,
        )


def report_queries(store: DocumentStore, args: argparse.Namespace) -> None:
    """Log every query against both representations."""
    logger = logging.getLogger(__name__)

    if args.custkey is not None:
        name = queries.customer_name(store, args.custkey)
        logger.info(
            "Customer name (custkey=%d): %s",
            args.custkey,
            name if name is not None else "<not found>",
        )

    if args.orderkey is not None:
        date = queries.order_date(store, args.orderkey)
        nested_date = queries.order_date_nested(store, args.orderkey)
        logger.info(
            "Order date (orderkey=%d): %s",
            args.orderkey,
            date if date is not None else "<not found>",
        )
        logger.info(
            "Order date nested (orderkey=%d): %s",
            args.orderkey,
            nested_date if nested_date is not None else "<not found>",
        )

    logger.info("Order count: %d", queries.order_count(store))
    logger.info("Order count nested: %d", queries.order_count_nested(store))

    _log_ranking(
        logger,
        f"Top {args.top} customers by spend",
        queries.top_customers_by_spend(store, limit=args.top),
    )
    _log_ranking(
        logger,
        f"Top {args.top} customers by spend (nested)",
        queries.top_customers_by_spend_nested(store, limit=args.top),
    )


def main(argv=None) -> int:
    """
    CLI entrypoint for the customer/order document store.

    Parses command-line arguments, loads both files (unless --skip-load),
    reports the queries, and returns a Unix-style exit code (0 on success,
    non-zero on failure).
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    parser = argparse.ArgumentParser(
        description="Load customer/order files into a document store and query them"
    )
    parser.add_argument(
        "--customers",
        type=Path,
        default=Path(DEFAULT_CUSTOMER_FILE),
        help="Path to the delimited customer file.",
    )
    parser.add_argument(
        "--orders",
        type=Path,
        default=Path(DEFAULT_ORDER_FILE),
        help="Path to the delimited order file.",
    )
    parser.add_argument(
        "--store-dir",
        type=Path,
        default=Path(DEFAULT_STORE_DIR),
        help="Directory holding one JSON file per collection.",
    )
    parser.add_argument(
        "--delimiter",
        default=DELIMITER,
        help=f"Field delimiter (default: {DELIMITER!r})",
    )
    parser.add_argument(
        "--skip-load",
        action="store_true",
        help="Query the existing store without reloading the files",
    )
    parser.add_argument(
        "--skip-nested",
        action="store_true",
        help="Load the normalized collections only; keep custorders as is",
    )
    parser.add_argument(
        "--custkey",
        type=int,
        default=None,
        help="Customer key to look up by name.",
    )
    parser.add_argument(
        "--orderkey",
        type=int,
        default=None,
        help="Order key to look up by date in both representations.",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=TOP_N,
        help=f"Number of top-spending customers to report (default: {TOP_N})",
    )

    args = parser.parse_args(argv)

    logger.info("=== Starting customer/order document store pipeline ===")
    logger.info("Customers: %s", args.customers)
    logger.info("Orders: %s", args.orders)
    logger.info("Store directory: %s", args.store_dir)
    logger.info("Skip load: %s", args.skip_load)
    logger.info("Skip nested: %s", args.skip_nested)

    try:
        start_time = time.time()
        store = JsonDirectoryDocumentStore(args.store_dir)

        if not args.skip_load:
            customers_loaded, orders_loaded, nested_written = run_pipeline(
                customer_path=args.customers,
                order_path=args.orders,
                store_dir=args.store_dir,
                store=store,
                skip_nested=args.skip_nested,
                delimiter=args.delimiter,
            )

        report_queries(store, args)

        elapsed_time = time.time() - start_time

        logger.info("=" * 70)
        logger.info("Pipeline completed successfully in %.2fs", elapsed_time)
        if not args.skip_load:
            logger.info("")
            logger.info("Summary:")
            logger.info("  Customers:  %d", customers_loaded)
            logger.info("  Orders:     %d", orders_loaded)
            if args.skip_nested:
                logger.info("  Custorders: Skipped")
            else:
                logger.info("  Custorders: %d", nested_written)
        logger.info("=" * 70)

    except Exception as e:
        logger.exception(f"Pipeline failed with an unhandled exception: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
