"""Data Loader Module

Reads delimited record files into typed entities and replaces store
collections with them.

Loading is buffer-then-insert: the whole file is parsed before the target
collection is touched, so a fatal parse error leaves the collection as it
was and never half-populated.
"""

from pathlib import Path
from typing import List, Sequence, TypeVar
import logging

from pydantic import BaseModel

from .parsers import RecordParseError, RecordParser, split_record
from .store import DocumentStore
from .store_config import DELIMITER

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class RecordDecodeError(ValueError):
    """A line of an input file is not valid UTF-8."""

    def __init__(self, path: str, line_number: int, reason: str):
        self.path = path
        self.line_number = line_number
        super().__init__(f"{path}:{line_number}: invalid UTF-8 ({reason})")


def load_records(
    path: str | Path,
    parser: RecordParser[T],
    delimiter: str = DELIMITER,
) -> List[T]:
    """Parse every line of a delimited file into entities.

    Args:
        path: File path to the delimited record file
        parser: Callable turning split fields into an entity or None
        delimiter: Field separator

    Returns:
        Entities in file order; short lines are skipped

    Raises:
        FileNotFoundError: If file does not exist
        RecordParseError: If a numeric column cannot be coerced; carries
            the file path and 1-based line number
        RecordDecodeError: If a line is not valid UTF-8
    """
    path = Path(path)
    entities: List[T] = []
    skipped = 0

    with path.open("rb") as f:
        for line_number, raw_line in enumerate(f, start=1):
            try:
                line = raw_line.decode("utf-8")
            except UnicodeDecodeError as e:
                raise RecordDecodeError(str(path), line_number, e.reason) from e
            fields = split_record(line, delimiter)
            try:
                entity = parser(fields)
            except RecordParseError as e:
                raise e.at(str(path), line_number) from e
            if entity is None:
                skipped += 1
                continue
            entities.append(entity)

    logger.info(
        "Parsed %d records from %s (skipped %d short lines)",
        len(entities),
        path.name,
        skipped,
    )
    return entities


def reload_collection(
    store: DocumentStore,
    collection: str,
    entities: Sequence[BaseModel],
) -> int:
    """Drop `collection` and insert `entities` in order.

    Returns:
        Number of documents inserted (0 for an empty sequence)
    """
    store.drop_collection(collection)
    inserted = store.insert_many(collection, [e.model_dump() for e in entities])
    logger.debug("Reloaded collection %s with %d documents", collection, inserted)
    return inserted


def load_collection(
    store: DocumentStore,
    collection: str,
    path: str | Path,
    parser: RecordParser[T],
    delimiter: str = DELIMITER,
) -> int:
    """Parse `path` completely, then replace `collection` with the result."""
    entities = load_records(path, parser, delimiter=delimiter)
    return reload_collection(store, collection, entities)
