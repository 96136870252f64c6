"""Query Engine Module

Point lookups, counts and top-N spend aggregations over both the
normalized collections (customer, orders) and the denormalized one
(custorders).

Every function takes the store as its first argument and keeps no state
between calls. A lookup that finds nothing returns None.

Top-N ordering is descending total order amount, ties broken by
ascending custkey, identically for both representations. A NaN total
ranks after every number. Totals are summed with math.fsum so the two
representations agree exactly on the same set of orders.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import math

from .models import CustomerSpend
from .store import Document, DocumentStore
from .store_config import (
    CUSTOMER_COLLECTION,
    CUSTOMER_ORDERS_COLLECTION,
    EMBEDDED_ORDERS_FIELD,
    ORDER_COLLECTION,
    TOP_N,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Point lookups
# ---------------------------------------------------------------------------

def customer_name(
    store: DocumentStore,
    custkey: int,
    collection: str = CUSTOMER_COLLECTION,
) -> Optional[str]:
    """Name of the customer with `custkey`, or None if there is none."""
    customer = store.find_one(collection, "custkey", custkey)
    if customer is None:
        logger.debug("customer_name: custkey=%d not found", custkey)
        return None
    return customer["name"]


def order_date(
    store: DocumentStore,
    orderkey: int,
    collection: str = ORDER_COLLECTION,
) -> Optional[str]:
    """Order date of `orderkey` from the orders collection, or None."""
    order = store.find_one(collection, "orderkey", orderkey)
    if order is None:
        logger.debug("order_date: orderkey=%d not found", orderkey)
        return None
    return order["orderdate"]


def order_date_nested(
    store: DocumentStore,
    orderkey: int,
    collection: str = CUSTOMER_ORDERS_COLLECTION,
) -> Optional[str]:
    """
    Order date of `orderkey` looked up through the embedded order lists.

    Orders that reference no existing customer were never embedded, so
    they are not found here even though order_date() finds them.
    """
    field = f"{EMBEDDED_ORDERS_FIELD}.orderkey"
    customer_orders = store.find_one(collection, field, orderkey)
    if customer_orders is None:
        logger.debug("order_date_nested: orderkey=%d not embedded", orderkey)
        return None
    for order in customer_orders.get(EMBEDDED_ORDERS_FIELD) or []:
        if order.get("orderkey") == orderkey:
            return order["orderdate"]
    return None


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------

def order_count(
    store: DocumentStore,
    collection: str = ORDER_COLLECTION,
) -> int:
    """Number of documents in the orders collection."""
    return store.count_documents(collection)


def order_count_nested(
    store: DocumentStore,
    collection: str = CUSTOMER_ORDERS_COLLECTION,
) -> int:
    """Total length of all embedded order lists.

    Equals order_count() minus the orphaned orders.
    """
    return sum(
        len(doc.get(EMBEDDED_ORDERS_FIELD) or [])
        for doc in store.find_all(collection)
    )


# ---------------------------------------------------------------------------
# Top-N by spend
# ---------------------------------------------------------------------------

def _to_spend(customer: Document, total: float) -> CustomerSpend:
    return CustomerSpend(
        custkey=customer["custkey"],
        name=customer["name"],
        address=customer["address"],
        nationkey=customer["nationkey"],
        total_order_amount=total,
    )


def _rank_key(record: CustomerSpend) -> Tuple[bool, float, int]:
    total = record.total_order_amount
    # NaN totals (documents written outside the parser) rank last
    if math.isnan(total):
        return (True, 0.0, record.custkey)
    return (False, -total, record.custkey)


def _rank(records: Iterable[CustomerSpend], limit: int) -> List[CustomerSpend]:
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    ranked = sorted(records, key=_rank_key)
    return ranked[:limit]


def top_customers_by_spend(
    store: DocumentStore,
    limit: int = TOP_N,
    customer_collection: str = CUSTOMER_COLLECTION,
    order_collection: str = ORDER_COLLECTION,
) -> List[CustomerSpend]:
    """
    Customers ranked by the sum of their orders' totalprice (normalized).

    Customers without orders rank with a total of 0.0. Orders for unknown
    customers contribute to nobody.

    Args:
        store: Document store holding the normalized collections
        limit: Maximum number of records to return

    Returns:
        At most `limit` records, non-increasing by total_order_amount
    """
    prices: Dict[Any, List[float]] = defaultdict(list)
    for order in store.find_all(order_collection):
        prices[order["custkey"]].append(order["totalprice"])

    records = [
        _to_spend(customer, math.fsum(prices.get(customer["custkey"], [])))
        for customer in store.find_all(customer_collection)
    ]
    return _rank(records, limit)


def top_customers_by_spend_nested(
    store: DocumentStore,
    limit: int = TOP_N,
    collection: str = CUSTOMER_ORDERS_COLLECTION,
) -> List[CustomerSpend]:
    """Customers ranked by the sum of their embedded orders' totalprice."""
    records = [
        _to_spend(
            doc,
            math.fsum(o["totalprice"] for o in doc.get(EMBEDDED_ORDERS_FIELD) or []),
        )
        for doc in store.find_all(collection)
    ]
    return _rank(records, limit)


def top5_by_spend(store: DocumentStore) -> List[CustomerSpend]:
    """Five biggest spenders from the normalized collections."""
    return top_customers_by_spend(store, limit=5)


def top5_by_spend_nested(store: DocumentStore) -> List[CustomerSpend]:
    """Five biggest spenders from the denormalized collection."""
    return top_customers_by_spend_nested(store, limit=5)
