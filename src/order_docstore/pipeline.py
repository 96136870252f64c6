"""
Load Pipeline for the customer/order document store

Sequences the loader and the denormalizer:

1. Load customers into the customer collection
2. Load orders into the orders collection
3. Rebuild the embedded custorders collection from both

Steps 1 and 2 are independent, but both must finish before step 3.
Each step replaces its collection wholesale, so re-running the pipeline on
the same files is idempotent.

Features:
- Buffer-then-insert loading (a fatal parse error leaves the collection as it was)
- Structured step logging with timings
- Run metadata written next to the collections
"""

from pathlib import Path
import json
from typing import Any, Dict, Optional, Tuple
import logging
import time
from datetime import datetime

from .denormalize import build_customer_orders
from .loaders import load_collection
from .parsers import parse_customer, parse_order
from .store import DocumentStore, JsonDirectoryDocumentStore
from .store_config import (
    CUSTOMER_COLLECTION,
    CUSTOMER_ORDERS_COLLECTION,
    DEFAULT_CUSTOMER_FILE,
    DEFAULT_ORDER_FILE,
    DEFAULT_STORE_DIR,
    DELIMITER,
    ORDER_COLLECTION,
)
from . import queries

logger = logging.getLogger(__name__)

METADATA_FILENAME = "run_metadata.json"


def run_pipeline(
    customer_path: Path | str = DEFAULT_CUSTOMER_FILE,
    order_path: Path | str = DEFAULT_ORDER_FILE,
    store_dir: Path | str = DEFAULT_STORE_DIR,
    store: Optional[DocumentStore] = None,
    skip_nested: bool = False,
    delimiter: str = DELIMITER,
) -> Tuple[int, int, int]:
    """
    Run the complete load: both normalized collections, then the embedded one.

    Args:
        customer_path: Delimited customer file
        order_path: Delimited order file
        store_dir: Directory for the JSON-backed store and run metadata;
            ignored for collections when `store` is given
        store: Store to load into (default: JsonDirectoryDocumentStore(store_dir))
        skip_nested: If True, leave the custorders collection untouched
        delimiter: Field separator used by both files

    Returns:
        Tuple of (customers_loaded, orders_loaded, customer_orders_written)

    Raises:
        FileNotFoundError: If an input file doesn't exist
        RecordParseError: If a numeric field in either file is malformed
        RecordDecodeError: If a line in either file is not valid UTF-8
    """
    customer_path = Path(customer_path)
    order_path = Path(order_path)
    store_dir = Path(store_dir)
    if store is None:
        store = JsonDirectoryDocumentStore(store_dir)

    run_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    job_start = time.time()
    logger.debug("Starting load pipeline run %s", run_timestamp)

    # ========== STEP 1: CUSTOMERS ==========
    t0 = time.time()
    logger.info("STEP 1/3: Loading customers from %s", customer_path)
    try:
        customers_loaded = load_collection(
            store, CUSTOMER_COLLECTION, customer_path, parse_customer, delimiter=delimiter
        )
    except FileNotFoundError:
        logger.exception("Customer file not found: %s", customer_path)
        raise
    except Exception:
        logger.exception("Failed to load customers from %s", customer_path)
        raise
    logger.info("✓ Loaded %d customers in %.2fs", customers_loaded, time.time() - t0)

    # ========== STEP 2: ORDERS ==========
    t1 = time.time()
    logger.info("STEP 2/3: Loading orders from %s", order_path)
    try:
        orders_loaded = load_collection(
            store, ORDER_COLLECTION, order_path, parse_order, delimiter=delimiter
        )
    except FileNotFoundError:
        logger.exception("Order file not found: %s", order_path)
        raise
    except Exception:
        logger.exception("Failed to load orders from %s", order_path)
        raise
    logger.info("✓ Loaded %d orders in %.2fs", orders_loaded, time.time() - t1)

    # ========== STEP 3: EMBEDDED CUSTOMER ORDERS ==========
    if skip_nested:
        logger.info("STEP 3/3: Skipping custorders rebuild (skip_nested=True)")
        nested_written = 0
        embedded_orders = None
    else:
        t2 = time.time()
        logger.info("STEP 3/3: Building %s collection", CUSTOMER_ORDERS_COLLECTION)
        try:
            nested_written = build_customer_orders(store)
        except Exception:
            logger.exception("Failed to build %s", CUSTOMER_ORDERS_COLLECTION)
            raise
        embedded_orders = queries.order_count_nested(store)
        logger.info(
            "✓ Wrote %d customer documents embedding %d orders in %.2fs",
            nested_written,
            embedded_orders,
            time.time() - t2,
        )

    _save_metadata(store_dir, {
        "timestamp": run_timestamp,
        "customer_file": str(customer_path),
        "order_file": str(order_path),
        "customers_loaded": customers_loaded,
        "orders_loaded": orders_loaded,
        "customer_orders_written": nested_written,
        "embedded_orders": embedded_orders,
        "orphaned_orders": (
            orders_loaded - embedded_orders if embedded_orders is not None else None
        ),
        "duration_seconds": time.time() - job_start,
    })

    logger.debug(
        "Load pipeline completed: %d customers, %d orders, %d custorders",
        customers_loaded,
        orders_loaded,
        nested_written,
    )
    return customers_loaded, orders_loaded, nested_written


def _save_metadata(store_dir: Path, metadata: Dict[str, Any]) -> None:
    """Save pipeline run metadata."""
    meta_path = store_dir / METADATA_FILENAME
    try:
        store_dir.mkdir(parents=True, exist_ok=True)
        with meta_path.open("w", encoding="utf-8") as f:
            json.dump(metadata, f, ensure_ascii=False, indent=2)
        logger.info("✓ Saved: %s", meta_path.name)
    except OSError:
        logger.warning("Failed to save metadata (non-fatal)", exc_info=True)
