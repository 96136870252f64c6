from pathlib import Path

import pytest

from src.order_docstore.loaders import (
    RecordDecodeError,
    load_collection,
    load_records,
    reload_collection,
)
from src.order_docstore.models import Customer
from src.order_docstore.parsers import RecordParseError, parse_customer, parse_order
from src.order_docstore.store import InMemoryDocumentStore


FIXTURES = Path(__file__).parent / "fixtures"


def write_lines(path: Path, lines) -> Path:
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


# --- load_records ---------------------------------------------------------------


def test_load_records_skips_short_line(tmp_path: Path):
    """Three valid lines plus one short line load exactly three customers."""
    path = write_lines(
        tmp_path / "customer.tbl",
        [
            "1|Alice|1 Main St|3|",
            "2|Bob|2 Main St|4|",
            "3|Carol|",
            "4|Dave|4 Main St|5|",
        ],
    )

    customers = load_records(path, parse_customer)

    assert [c.custkey for c in customers] == [1, 2, 4]
    assert [c.name for c in customers] == ["Alice", "Bob", "Dave"]


def test_load_records_preserves_file_order_and_duplicates(tmp_path: Path):
    path = write_lines(
        tmp_path / "order.tbl",
        ["12|2|2024-01-03|200.0", "10|1|2024-01-01|100.0", "12|2|2024-01-03|200.0"],
    )

    orders = load_records(path, parse_order)

    assert [o.orderkey for o in orders] == [12, 10, 12]


def test_load_records_reports_path_and_line_number_on_bad_number(tmp_path: Path):
    path = write_lines(
        tmp_path / "order.tbl",
        ["10|1|2024-01-01|100.0", "", "11|1|2024-01-02|fifty"],
    )

    with pytest.raises(RecordParseError) as excinfo:
        load_records(path, parse_order)

    err = excinfo.value
    assert err.path == str(path)
    assert err.line_number == 3
    assert err.column == "totalprice"
    assert f"{path}:3" in str(err)


def test_load_records_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "missing.tbl", parse_customer)


def test_load_records_empty_file_returns_empty(tmp_path: Path):
    path = tmp_path / "empty.tbl"
    path.write_text("", encoding="utf-8")

    assert load_records(path, parse_customer) == []


def test_load_records_on_fixture():
    customers = load_records(FIXTURES / "customer_small.tbl", parse_customer)

    assert len(customers) == 6
    assert customers[1].name == "Customer#000000002"
    assert customers[1].nationkey == 13


# --- reload_collection / load_collection ----------------------------------------


def test_reload_collection_replaces_stale_documents():
    store = InMemoryDocumentStore()
    store.insert_many("customer", [{"custkey": 99, "name": "Stale", "address": "", "nationkey": 0}])

    inserted = reload_collection(
        store,
        "customer",
        [Customer(custkey=1, name="Alice", address="a", nationkey=1)],
    )

    assert inserted == 1
    assert list(store.find_all("customer")) == [
        {"custkey": 1, "name": "Alice", "address": "a", "nationkey": 1}
    ]


def test_reload_collection_with_no_entities_leaves_collection_empty():
    store = InMemoryDocumentStore()
    store.insert_many("customer", [{"custkey": 99}])

    assert reload_collection(store, "customer", []) == 0
    assert store.count_documents("customer") == 0


def test_load_collection_twice_is_idempotent():
    store = InMemoryDocumentStore()
    path = FIXTURES / "order_small.tbl"

    load_collection(store, "orders", path, parse_order)
    first = list(store.find_all("orders"))
    load_collection(store, "orders", path, parse_order)
    second = list(store.find_all("orders"))

    assert first == second
    assert len(second) == 8


def test_load_collection_fatal_error_keeps_previous_contents(tmp_path: Path):
    """Parsing completes before the collection is touched."""
    store = InMemoryDocumentStore()
    load_collection(store, "customer", FIXTURES / "customer_small.tbl", parse_customer)
    before = list(store.find_all("customer"))

    bad = write_lines(tmp_path / "bad.tbl", ["1|Alice|a|1", "x|Bob|b|2"])
    with pytest.raises(RecordParseError):
        load_collection(store, "customer", bad, parse_customer)

    assert list(store.find_all("customer")) == before


def test_load_records_reports_path_and_line_number_on_invalid_utf8(tmp_path: Path):
    path = tmp_path / "customer.tbl"
    path.write_bytes(b"1|Alice|a|1|\n2|B\xffb|b|2|\n")

    with pytest.raises(RecordDecodeError) as excinfo:
        load_records(path, parse_customer)

    assert excinfo.value.path == str(path)
    assert excinfo.value.line_number == 2
    assert f"{path}:2" in str(excinfo.value)


def test_load_records_handles_crlf_and_non_ascii_names(tmp_path: Path):
    path = tmp_path / "customer.tbl"
    path.write_bytes("1|Zoë|Straße 1|3|\r\n".encode("utf-8"))

    customers = load_records(path, parse_customer)

    assert customers[0].name == "Zoë"
    assert customers[0].address == "Straße 1"
