"""Data Models Module

Defines Pydantic models for the entities stored in the document store:
normalized customers and orders, the denormalized customer document that
embeds its own orders, and the record returned by the top-spend queries.
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class Customer(BaseModel):
    """Customer row from the customer file.

    Immutable once loaded; replaced only by a full collection reload.
    """
    model_config = ConfigDict(frozen=True)

    custkey: int
    name: str
    address: str
    nationkey: int


class Order(BaseModel):
    """Order row from the order file.

    `custkey` references a Customer but is not checked at load time.
    `orderdate` is kept as the opaque token found in the file.
    """
    model_config = ConfigDict(frozen=True)

    orderkey: int
    custkey: int
    orderdate: str
    totalprice: float


class CustomerOrders(BaseModel):
    """Denormalized customer document.

    Carries the same base fields as Customer plus copies of every Order
    whose custkey matches, in order-collection stream order.
    """
    custkey: int
    name: str
    address: str
    nationkey: int
    orders: List[Order] = []


class CustomerSpend(BaseModel):
    """Customer plus the sum of its order prices (top-spend query result)."""
    model_config = ConfigDict(populate_by_name=True)

    custkey: int
    name: str
    address: str
    nationkey: int
    total_order_amount: float = Field(alias="totalOrderAmount")
