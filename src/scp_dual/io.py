"""Reader for set-covering instances in the OR-Library text format.

Format (whitespace separated, values may wrap across lines):

    <num_rows> <num_cols>
    <cost_1> ... <cost_num_cols>
    for each row: <count> <col_1> ... <col_count>

Column indices are 1-based in the file and 0-based in memory.

Example:
    2 3
    1 1 2
    2 1 2
    2 2 3
"""

from __future__ import annotations

import logging
from pathlib import Path

from .data import Instance, build_instance
from .exceptions import MalformedInputError

logger = logging.getLogger(__name__)


class _TokenStream:
    """Sequential reader over whitespace-separated tokens."""

    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        self.position = 0

    @property
    def remaining(self) -> int:
        return len(self.tokens) - self.position

    def _next(self, what: str) -> str:
        if self.position >= len(self.tokens):
            raise MalformedInputError(
                f"Unexpected end of input while reading {what}.", position=self.position
            )
        token = self.tokens[self.position]
        self.position += 1
        return token

    def next_int(self, what: str) -> int:
        token = self._next(what)
        try:
            return int(token)
        except ValueError as e:
            raise MalformedInputError(
                f"Token {self.position}: expected an integer for {what}, got {token!r}.",
                position=self.position - 1,
            ) from e

    def next_number(self, what: str) -> float:
        token = self._next(what)
        try:
            return float(token)
        except ValueError as e:
            raise MalformedInputError(
                f"Token {self.position}: expected a number for {what}, got {token!r}.",
                position=self.position - 1,
            ) from e


def parse_instance_string(content: str) -> Instance:
    """Parse a set-covering instance from a string.

    Args:
        content: Instance in OR-Library set-covering format.

    Returns:
        Instance built from the parsed data.

    Raises:
        MalformedInputError: If a token is missing or unparsable, a count is
            negative, or a column index falls outside 1..num_cols.
        ResourceExhaustionError: If the instance arrays cannot be allocated.

    Example:
        >>> instance = parse_instance_string("2 3\\n1 1 2\\n2 1 2\\n2 2 3\\n")
        >>> instance.num_rows, instance.num_cols
        (2, 3)
    """
    stream = _TokenStream(content.split())

    num_rows = stream.next_int("the number of rows")
    num_cols = stream.next_int("the number of columns")
    if num_rows < 0 or num_cols < 0:
        raise MalformedInputError(
            f"Row and column counts must be non-negative, got {num_rows} and {num_cols}.",
            position=0,
        )

    costs = [stream.next_number(f"the cost of column {j + 1}") for j in range(num_cols)]

    rows: list[list[int]] = []
    for i in range(num_rows):
        count = stream.next_int(f"the column count of row {i + 1}")
        if count < 0:
            raise MalformedInputError(
                f"Row {i + 1} declares a negative column count ({count}).",
                position=stream.position - 1,
            )
        row: list[int] = []
        for k in range(count):
            index = stream.next_int(f"column {k + 1} of row {i + 1}")
            if index < 1 or index > num_cols:
                raise MalformedInputError(
                    f"Row {i + 1} references column {index}, outside the valid range "
                    f"1..{num_cols}.",
                    position=stream.position - 1,
                )
            row.append(index - 1)
        rows.append(row)

    if stream.remaining:
        logger.warning(
            "Ignoring trailing tokens after the last row",
            extra={"trailing_tokens": stream.remaining},
        )

    return build_instance(num_rows, num_cols, costs, rows)


def load_instance(path: str | Path) -> Instance:
    """Load a set-covering instance from an OR-Library format file.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedInputError: If the file content is invalid.
    """
    with Path(path).open("r", encoding="utf-8") as fh:
        content = fh.read()
    instance = parse_instance_string(content)
    logger.info(
        "Loaded set-covering instance",
        extra={
            "path": str(path),
            "rows": instance.num_rows,
            "cols": instance.num_cols,
            "nonzeros": instance.num_nonzero,
        },
    )
    return instance
