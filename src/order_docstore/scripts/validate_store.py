"""Store Validation Script

Checks that a loaded store keeps the normalized and embedded collections
consistent with each other:
  - custkey is unique among customers, orderkey among orders
  - exactly one custorders document per customer
  - embedded order count == order count minus orphaned orders
  - every non-orphaned order has the same date in both representations,
    and every orphaned order is absent from the embedded one

Orphaned orders (custkey matching no customer) are reported as warnings.

Usage:
    python -m src.order_docstore.scripts.validate_store --store-dir store

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

#!/usr/bin/env python
import argparse
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Tuple

from src.order_docstore import queries
from src.order_docstore.store import DocumentStore, JsonDirectoryDocumentStore
from src.order_docstore.store_config import (
    CUSTOMER_COLLECTION,
    CUSTOMER_ORDERS_COLLECTION,
    EMBEDDED_ORDERS_FIELD,
    ORDER_COLLECTION,
)


def _duplicates(keys: List[int]) -> List[int]:
    return sorted(k for k, n in Counter(keys).items() if n > 1)


def validate_store(store: DocumentStore) -> Tuple[List[str], List[str]]:
    """Validate cross-representation invariants of a loaded store.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    customers = list(store.find_all(CUSTOMER_COLLECTION))
    orders = list(store.find_all(ORDER_COLLECTION))
    nested = list(store.find_all(CUSTOMER_ORDERS_COLLECTION))

    # --- unique keys ---
    custkeys = [c.get("custkey") for c in customers]
    for key in _duplicates(custkeys):
        errors.append(f"[customer] duplicate custkey {key}")
    for key in _duplicates([o.get("orderkey") for o in orders]):
        errors.append(f"[orders] duplicate orderkey {key}")

    # --- one embedded document per customer ---
    nested_counts = Counter(doc.get("custkey") for doc in nested)
    known = set(custkeys)
    for key in sorted(known):
        count = nested_counts.get(key, 0)
        if count != 1:
            errors.append(
                f"[custorders] custkey {key} has {count} documents, expected 1"
            )
    for key in sorted(set(nested_counts) - known):
        errors.append(f"[custorders] custkey {key} has no customer")

    # --- counts ---
    orphaned = [o for o in orders if o.get("custkey") not in known]
    for order in orphaned:
        warnings.append(
            f"[orders] orderkey {order.get('orderkey')} references unknown "
            f"custkey {order.get('custkey')}"
        )

    expected_nested = queries.order_count(store) - len(orphaned)
    actual_nested = queries.order_count_nested(store)
    if actual_nested != expected_nested:
        errors.append(
            f"[counts] nested order count {actual_nested} != "
            f"order count minus orphans {expected_nested}"
        )

    # --- per-order agreement ---
    # first embedded occurrence wins, as with an orders.orderkey lookup
    nested_dates: Dict[Any, Any] = {}
    for doc in nested:
        for embedded in doc.get(EMBEDDED_ORDERS_FIELD) or []:
            nested_dates.setdefault(embedded.get("orderkey"), embedded.get("orderdate"))

    orphan_keys = {o.get("orderkey") for o in orphaned}
    for order in orders:
        orderkey = order.get("orderkey")
        nested_date = nested_dates.get(orderkey)
        if orderkey in orphan_keys:
            if nested_date is not None:
                errors.append(
                    f"[custorders] orphaned orderkey {orderkey} is embedded"
                )
        elif nested_date != order.get("orderdate"):
            errors.append(
                f"[custorders] orderkey {orderkey}: nested date {nested_date!r} "
                f"!= {order.get('orderdate')!r}"
            )

    return errors, warnings


def main(argv: list[str] | None = None) -> None:
    """Validate a JSON-directory store.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(
        description="Validate normalized vs. embedded collections of a store."
    )
    parser.add_argument(
        "--store-dir",
        type=str,
        required=True,
        help="Directory holding the collection JSON files",
    )
    args = parser.parse_args(argv)

    store_dir = Path(args.store_dir)
    if not store_dir.is_dir():
        print(f"FAILED TO LOAD STORE: {store_dir} is not a directory")
        raise SystemExit(1)

    try:
        errors, warnings = validate_store(JsonDirectoryDocumentStore(store_dir))
    except Exception as e:
        print(f"FAILED TO LOAD STORE: {e}")
        raise SystemExit(1)

    if errors:
        print("VALIDATION FAILED:\n")
        for err in errors:
            print(err)
        print(f"\nTotal errors: {len(errors)}")
        if warnings:
            print(f"Total warnings: {len(warnings)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    if warnings:
        print("\nWarnings (non-fatal):")
        for w in warnings:
            print(w)
        print(f"\nTotal warnings: {len(warnings)}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
