"""
Document Store Configuration

Collection names, input defaults and query settings shared by the loader,
the denormalizer, the query engine and the CLI. Every value can be
overridden through an environment variable so the same code can be pointed
at a different store layout without edits.
"""

import os

# --- Input files ---

# Single literal character separating fields; no escaping is supported
DELIMITER = os.getenv("ORDER_DOCSTORE_DELIMITER", "|")

DEFAULT_CUSTOMER_FILE = os.getenv("DEFAULT_CUSTOMER_FILE", "data/customer.tbl")
DEFAULT_ORDER_FILE = os.getenv("DEFAULT_ORDER_FILE", "data/order.tbl")


# --- Collections ---

DEFAULT_STORE_DIR = os.getenv("DEFAULT_STORE_DIR", "store")

CUSTOMER_COLLECTION = os.getenv("CUSTOMER_COLLECTION", "customer")
ORDER_COLLECTION = os.getenv("ORDER_COLLECTION", "orders")
CUSTOMER_ORDERS_COLLECTION = os.getenv("CUSTOMER_ORDERS_COLLECTION", "custorders")

# Field holding the embedded order list on denormalized documents
EMBEDDED_ORDERS_FIELD = "orders"


# --- Queries ---

TOP_N = int(os.getenv("TOP_N", "5"))
