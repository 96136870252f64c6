"""Schema Denormalization Module

Builds the embedded representation: one CustomerOrders document per
customer, each holding copies of that customer's orders.

Orders are grouped with a hash join on custkey. Grouping appends in
order-stream order, so every embedded list keeps the order collection's
natural iteration order. Orders whose custkey matches no customer cannot
attach to a parent and are left out.
"""

from collections import defaultdict
from typing import Dict, Iterable, List
import logging

from .loaders import reload_collection
from .models import Customer, CustomerOrders, Order
from .store import DocumentStore
from .store_config import (
    CUSTOMER_COLLECTION,
    CUSTOMER_ORDERS_COLLECTION,
    ORDER_COLLECTION,
)

logger = logging.getLogger(__name__)


def group_orders_by_customer(orders: Iterable[Order]) -> Dict[int, List[Order]]:
    """Map custkey -> orders, preserving stream order within each key."""
    grouped: Dict[int, List[Order]] = defaultdict(list)
    for order in orders:
        grouped[order.custkey].append(order)
    return grouped


def denormalize(
    customers: Iterable[Customer],
    orders: Iterable[Order],
) -> List[CustomerOrders]:
    """
    Embed each customer's orders into a CustomerOrders document.

    Args:
        customers: Normalized customers, in collection order
        orders: Normalized orders, in collection order

    Returns:
        One CustomerOrders per customer, in customer order. Customers
        without orders get an empty list.
    """
    grouped = group_orders_by_customer(orders)
    return [
        CustomerOrders(
            custkey=customer.custkey,
            name=customer.name,
            address=customer.address,
            nationkey=customer.nationkey,
            orders=[order.model_copy() for order in grouped.get(customer.custkey, [])],
        )
        for customer in customers
    ]


def count_orphaned_orders(
    customers: Iterable[Customer],
    orders: Iterable[Order],
) -> int:
    """Count orders whose custkey matches no customer."""
    known = {customer.custkey for customer in customers}
    return sum(1 for order in orders if order.custkey not in known)


def build_customer_orders(
    store: DocumentStore,
    customer_collection: str = CUSTOMER_COLLECTION,
    order_collection: str = ORDER_COLLECTION,
    target_collection: str = CUSTOMER_ORDERS_COLLECTION,
) -> int:
    """Rebuild the denormalized collection from the two normalized ones.

    Both normalized collections must already be loaded; the target
    collection is replaced wholesale.

    Returns:
        Number of CustomerOrders documents written
    """
    customers = [Customer.model_validate(doc) for doc in store.find_all(customer_collection)]
    orders = [Order.model_validate(doc) for doc in store.find_all(order_collection)]

    nested = denormalize(customers, orders)

    orphaned = count_orphaned_orders(customers, orders)
    if orphaned:
        logger.info(
            "%d of %d orders reference no known customer and were not embedded",
            orphaned,
            len(orders),
        )

    return reload_collection(store, target_collection, nested)
