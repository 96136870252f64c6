"""Document Store Module

Narrow port over a document store plus two implementations:

  - InMemoryDocumentStore: dict of lists, used by tests and short-lived runs
  - JsonDirectoryDocumentStore: one JSON array file per collection, used by
    the CLI so a later run can query what an earlier run loaded

Only per-field equality lookups are supported. A dotted field path walks
into nested documents, and a list along the path matches when any element
matches (so `orders.orderkey` finds the customer document embedding that
order).
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol
import copy
import json
import logging

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class DocumentStore(Protocol):
    """Capabilities the loader, denormalizer and query engine rely on."""

    def drop_collection(self, name: str) -> None:
        ...

    def insert_many(self, name: str, documents: Iterable[Document]) -> int:
        ...

    def find_one(self, name: str, field: str, value: Any) -> Optional[Document]:
        ...

    def find_all(self, name: str) -> Iterator[Document]:
        ...

    def count_documents(self, name: str) -> int:
        ...


def _resolve(value: Any, parts: List[str]) -> List[Any]:
    """Collect every value reachable along a dotted path."""
    if not parts:
        return [value]
    if isinstance(value, list):
        found: List[Any] = []
        for item in value:
            found.extend(_resolve(item, parts))
        return found
    if isinstance(value, dict) and parts[0] in value:
        return _resolve(value[parts[0]], parts[1:])
    return []


def field_matches(document: Document, field: str, value: Any) -> bool:
    """True if `document[field]` (dotted path allowed) equals `value`."""
    for candidate in _resolve(document, field.split(".")):
        if candidate == value:
            return True
        if isinstance(candidate, list) and value in candidate:
            return True
    return False


class InMemoryDocumentStore:
    """Process-local store; documents are deep-copied in and out."""

    def __init__(self) -> None:
        self._collections: Dict[str, List[Document]] = {}

    def drop_collection(self, name: str) -> None:
        self._collections.pop(name, None)

    def insert_many(self, name: str, documents: Iterable[Document]) -> int:
        batch = [copy.deepcopy(doc) for doc in documents]
        if not batch:
            return 0
        self._collections.setdefault(name, []).extend(batch)
        return len(batch)

    def find_one(self, name: str, field: str, value: Any) -> Optional[Document]:
        for doc in self._collections.get(name, []):
            if field_matches(doc, field, value):
                return copy.deepcopy(doc)
        return None

    def find_all(self, name: str) -> Iterator[Document]:
        for doc in list(self._collections.get(name, [])):
            yield copy.deepcopy(doc)

    def count_documents(self, name: str) -> int:
        return len(self._collections.get(name, []))


class JsonDirectoryDocumentStore:
    """
    Store each collection as `<root>/<name>.json` holding a JSON array.

    Writes go to a temporary sibling file which then replaces the
    collection file, so readers see either the old or the new array.
    A missing file is an empty collection.
    """

    SUFFIX = ".json"

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        return self.root / f"{name}{self.SUFFIX}"

    def _read(self, name: str) -> List[Document]:
        path = self._path(name)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Collection file {path} does not hold a JSON array")
        return data

    def _write(self, name: str, documents: List[Document]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(name)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(documents, f, ensure_ascii=False, indent=2)
        tmp_path.replace(path)
        logger.debug("Wrote %d documents to %s", len(documents), path)

    def drop_collection(self, name: str) -> None:
        path = self._path(name)
        if path.exists():
            path.unlink()
            logger.debug("Dropped collection file %s", path)

    def insert_many(self, name: str, documents: Iterable[Document]) -> int:
        batch = list(documents)
        if not batch:
            return 0
        self._write(name, self._read(name) + batch)
        return len(batch)

    def find_one(self, name: str, field: str, value: Any) -> Optional[Document]:
        for doc in self._read(name):
            if field_matches(doc, field, value):
                return doc
        return None

    def find_all(self, name: str) -> Iterator[Document]:
        yield from self._read(name)

    def count_documents(self, name: str) -> int:
        return len(self._read(name))
