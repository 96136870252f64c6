# tests/test_pipeline_errors.py

import json
from pathlib import Path

import pytest

import src.run_pipeline as run_pipeline
import src.order_docstore.pipeline as pipeline_mod
from src.order_docstore.parsers import RecordParseError
from src.order_docstore.store import InMemoryDocumentStore


FIXTURES = Path(__file__).parent / "fixtures"
CUSTOMER_FILE = FIXTURES / "customer_small.tbl"
ORDER_FILE = FIXTURES / "order_small.tbl"


def test_pipeline_missing_input_file_exits_nonzero(tmp_path: Path, monkeypatch):
    """
    If an input file does not exist, the CLI should fail with a non-zero
    exit code and not write any collection.
    """
    monkeypatch.chdir(tmp_path)
    store_dir = tmp_path / "store"

    exit_code = run_pipeline.main(
        [
            "--customers",
            str(tmp_path / "does_not_exist.tbl"),
            "--orders",
            str(ORDER_FILE),
            "--store-dir",
            str(store_dir),
        ]
    )

    assert exit_code != 0
    if store_dir.exists():
        assert list(store_dir.glob("*.json")) == []


def test_pipeline_missing_order_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        pipeline_mod.run_pipeline(
            CUSTOMER_FILE,
            tmp_path / "missing_orders.tbl",
            store_dir=tmp_path,
            store=InMemoryDocumentStore(),
        )


def test_pipeline_empty_input_files_succeed_with_zero_docs(tmp_path: Path, monkeypatch):
    """
    Empty files are valid input: exit code 0 and empty collections.
    """
    monkeypatch.chdir(tmp_path)
    customers = tmp_path / "customer.tbl"
    orders = tmp_path / "order.tbl"
    customers.write_text("", encoding="utf-8")
    orders.write_text("", encoding="utf-8")
    store_dir = tmp_path / "store"

    exit_code = run_pipeline.main(
        [
            "--customers",
            str(customers),
            "--orders",
            str(orders),
            "--store-dir",
            str(store_dir),
        ]
    )

    assert exit_code == 0
    metadata = json.loads((store_dir / "run_metadata.json").read_text(encoding="utf-8"))
    assert metadata["customers_loaded"] == 0
    assert metadata["orders_loaded"] == 0
    assert metadata["customer_orders_written"] == 0


def test_pipeline_malformed_number_aborts_with_location(tmp_path: Path, monkeypatch, capsys):
    """
    A non-numeric value in a numeric column aborts the run, reports the
    file and line, and leaves the order collection from the previous run.
    """
    monkeypatch.chdir(tmp_path)
    store_dir = tmp_path / "store"
    pipeline_mod.run_pipeline(CUSTOMER_FILE, ORDER_FILE, store_dir)
    orders_before = (store_dir / "orders.json").read_text(encoding="utf-8")

    bad_orders = tmp_path / "bad_order.tbl"
    bad_orders.write_text(
        "1|3|1996-01-02|172799.49|\n2|x|1996-12-01|38426.09|\n",
        encoding="utf-8",
    )

    exit_code = run_pipeline.main(
        [
            "--customers",
            str(CUSTOMER_FILE),
            "--orders",
            str(bad_orders),
            "--store-dir",
            str(store_dir),
        ]
    )

    assert exit_code != 0
    messages = capsys.readouterr().err
    assert f"{bad_orders}:2" in messages
    assert (store_dir / "orders.json").read_text(encoding="utf-8") == orders_before


def test_pipeline_malformed_number_raises_record_parse_error(tmp_path: Path):
    bad_customers = tmp_path / "bad_customer.tbl"
    bad_customers.write_text("1|Alice|a|one|\n", encoding="utf-8")
    store = InMemoryDocumentStore()

    with pytest.raises(RecordParseError) as excinfo:
        pipeline_mod.run_pipeline(bad_customers, ORDER_FILE, tmp_path, store=store)

    assert excinfo.value.line_number == 1
    assert excinfo.value.column == "nationkey"
    assert store.count_documents("customer") == 0
    assert store.count_documents("orders") == 0


def test_pipeline_denormalization_error_fails_fast(tmp_path: Path, monkeypatch):
    """
    If building custorders fails, the CLI should exit non-zero rather than
    report success.
    """
    monkeypatch.chdir(tmp_path)

    def fake_build_customer_orders(*args, **kwargs):
        raise RuntimeError("Simulated store failure")

    monkeypatch.setattr(pipeline_mod, "build_customer_orders", fake_build_customer_orders)

    exit_code = run_pipeline.main(
        [
            "--customers",
            str(CUSTOMER_FILE),
            "--orders",
            str(ORDER_FILE),
            "--store-dir",
            str(tmp_path / "store"),
        ]
    )

    assert exit_code != 0
    assert not (tmp_path / "store" / "custorders.json").exists()


def test_cli_negative_top_fails(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    exit_code = run_pipeline.main(
        [
            "--customers",
            str(CUSTOMER_FILE),
            "--orders",
            str(ORDER_FILE),
            "--store-dir",
            str(tmp_path / "store"),
            "--top",
            "-1",
        ]
    )

    assert exit_code == 1
