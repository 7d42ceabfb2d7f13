"""
Materialized row-sets and row collection.

A `ResultSet` is fully buffered when the statement executes, so the cursor
that produced it can be closed immediately. Rows come back as dicts keyed by
column name, in the backend's natural order.
"""
import logging
import numbers
import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import pandas as pd
from dbwrap.types import is_empty

logger = logging.getLogger(__name__)

# Canonical decimal integers: no leading zeros, no plus sign
_INTEGER_KEY = re.compile(r'-?[1-9][0-9]*')

__all__ = ['ResultSet', 'collect_rows']


class ResultSet:
    """Buffered row-set with a read position.

    Fetching advances the position; iteration yields the remaining rows.
    """

    def __init__(self, columns: list[str], rows: list[tuple],
                 rowcount: int = -1) -> None:
        self.columns = list(columns)
        self._rows = [tuple(row) for row in rows]
        self.rowcount = rowcount if rowcount >= 0 else len(self._rows)
        self._position = 0

    def __repr__(self) -> str:
        return f'ResultSet(columns={self.columns!r}, rows={len(self._rows)})'

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while (row := self.fetch_next_row()) is not None:
            yield row

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    def fetch_next_row(self) -> dict[str, Any] | None:
        """Return the next row as a column -> value dict, or None at end of rows.
        """
        row = self.fetch_row()
        if row is None:
            return None
        return dict(zip(self.columns, row))

    def fetch_row(self) -> tuple | None:
        """Return the next row as a tuple, or None at end of rows.
        """
        if self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def fetch_all(self) -> list[dict[str, Any]]:
        """Return every remaining row."""
        return list(self)

    def rewind(self) -> None:
        """Move the read position back to the first row."""
        self._position = 0

    def to_frame(self) -> pd.DataFrame:
        """Return all rows as a DataFrame, keeping columns for empty results.
        """
        if not self._rows:
            return pd.DataFrame(columns=self.columns)
        return pd.DataFrame.from_records(self._rows, columns=self.columns)


def _row_key(value: Any) -> Any:
    """Integer keys for integers and canonical decimal strings, as in PHP arrays.

    >>> _row_key('42'), _row_key('-7'), _row_key('042'), _row_key('4.0')
    (42, -7, '042', '4.0')
    """
    if isinstance(value, str) and _INTEGER_KEY.fullmatch(value):
        return int(value)
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        return int(value)
    return value


def collect_rows(result: ResultSet | Iterable[Mapping[str, Any]]) -> dict[Any, dict[str, Any]]:
    """Fold rows into a mapping keyed by their ``id`` where present.

    A row whose ``id`` is missing or empty (None, 0, '', '0', False) is
    appended under the next integer index, one past the largest integer key
    collected so far. Later rows overwrite earlier ones on key collision, so
    the result is a convenience index, not a unique one.

    Drivers that return ids as text (MySQL without native types) key the
    same as integer ids: '12' becomes 12. Other strings stay as given.

    >>> collect_rows([{'id': 2, 'name': 'b'}, {'id': 1, 'name': 'a'}])
    {2: {'id': 2, 'name': 'b'}, 1: {'id': 1, 'name': 'a'}}
    >>> list(collect_rows([{'id': '5'}, {'x': 1}]))
    [5, 6]
    >>> collect_rows([{'x': 1}, {'x': 2}])
    {0: {'x': 1}, 1: {'x': 2}}
    """
    collected: dict[Any, dict[str, Any]] = {}
    next_index = 0

    for row in result:
        row = dict(row)
        key = row.get('id')
        if is_empty(key):
            key = next_index
        key = _row_key(key)
        collected[key] = row
        if isinstance(key, int) and not isinstance(key, bool) and key >= next_index:
            next_index = key + 1

    logger.debug(f'Collected {len(collected)} rows')
    return collected


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
