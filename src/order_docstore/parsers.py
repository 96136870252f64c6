"""Record Parsing Module

Turns one delimited line of a customer or order file into a typed entity.

Two failure modes are kept apart on purpose:
  - Structurally short lines (fewer than MIN_FIELDS fields) are skipped:
    the parser returns None and the load carries on.
  - Present-but-unparseable numeric values raise RecordParseError, which
    aborts the whole load.
"""

from typing import Callable, List, Optional, Sequence, TypeVar

import logging
import math
import re

from .models import Customer, Order
from .store_config import DELIMITER

logger = logging.getLogger(__name__)

MIN_FIELDS = 4

# Plain ASCII base-10 numbers: no surrounding whitespace, no digit separators
INTEGER_RE = re.compile(r"[+-]?[0-9]+")
DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

T = TypeVar("T")

# A parser maps split fields to an entity, or None for a skipped line
RecordParser = Callable[[Sequence[str]], Optional[T]]


class RecordParseError(ValueError):
    """A numeric column held text that cannot be coerced.

    `path` and `line_number` are filled in by the loader once the failing
    line is known.
    """

    def __init__(
        self,
        column: str,
        value: str,
        path: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        self.column = column
        self.value = value
        self.path = path
        self.line_number = line_number
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        message = f"invalid value {self.value!r} for column '{self.column}'"
        if self.path is not None:
            location = str(self.path)
            if self.line_number is not None:
                location += f":{self.line_number}"
            message = f"{location}: {message}"
        return message

    def at(self, path: str, line_number: int) -> "RecordParseError":
        """Return a copy of this error carrying the file location."""
        return RecordParseError(self.column, self.value, path, line_number)


def split_record(line: str, delimiter: str = DELIMITER) -> List[str]:
    """
    Split one raw line into fields.

    The line terminator is removed and trailing empty fields are dropped,
    so `1|Alice|Main St|3|` yields four fields and an empty line yields
    none.
    """
    fields = line.rstrip("\r\n").split(delimiter)
    while fields and fields[-1] == "":
        fields.pop()
    return fields


def _to_int(column: str, value: str) -> int:
    if not INTEGER_RE.fullmatch(value):
        raise RecordParseError(column, value)
    return int(value, 10)


def _to_float(column: str, value: str) -> float:
    # finite prices only
    if not DECIMAL_RE.fullmatch(value):
        raise RecordParseError(column, value)
    number = float(value)
    if not math.isfinite(number):
        raise RecordParseError(column, value)
    return number


def parse_customer(fields: Sequence[str]) -> Optional[Customer]:
    """Parse `custkey|name|address|nationkey|...` into a Customer."""
    if len(fields) < MIN_FIELDS:
        logger.debug("Skipping short customer record (%d fields)", len(fields))
        return None
    return Customer(
        custkey=_to_int("custkey", fields[0]),
        name=fields[1],
        address=fields[2],
        nationkey=_to_int("nationkey", fields[3]),
    )


def parse_order(fields: Sequence[str]) -> Optional[Order]:
    """Parse `orderkey|custkey|orderdate|totalprice|...` into an Order."""
    if len(fields) < MIN_FIELDS:
        logger.debug("Skipping short order record (%d fields)", len(fields))
        return None
    return Order(
        orderkey=_to_int("orderkey", fields[0]),
        custkey=_to_int("custkey", fields[1]),
        orderdate=fields[2],
        totalprice=_to_float("totalprice", fields[3]),
    )
