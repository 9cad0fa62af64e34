"""Cursor based record sources.

A cursor walks a record set with three primitives: `first()` positions it on
the first record, `next()` advances it, and `eof` becomes True once it has
moved past the last record.  `current` is the record under the cursor.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)


class AbstractCursor(ABC):
    """The capability seqpipe needs from a record set."""

    @abstractmethod
    def first(self) -> None:
        """Position the cursor on the first record."""

    @abstractmethod
    def next(self) -> None:
        """Advance the cursor to the next record."""

    @property
    @abstractmethod
    def eof(self) -> bool:
        """True when the cursor is past the last record."""

    @property
    @abstractmethod
    def current(self) -> Any:
        """The record under the cursor.  Undefined while eof is True."""


class RecordCursor(AbstractCursor):
    """A rewindable cursor over an in-memory sequence of records."""

    def __init__(self, records: Sequence[Any]):
        self.records = records
        self._position = 0

    def first(self) -> None:
        self._position = 0

    def next(self) -> None:
        if self._position < len(self.records):
            self._position += 1

    @property
    def eof(self) -> bool:
        return self._position >= len(self.records)

    @property
    def current(self) -> Any:
        if self.eof:
            raise IndexError("Cursor is past the last record")
        return self.records[self._position]


class DBAPICursor(AbstractCursor):
    """A forward-only cursor over an executed DB-API 2.0 cursor.

    Rows are fetched one at a time with fetchone(), so the result set is
    never loaded into memory as a whole.  Because the underlying cursor
    cannot be rewound, first() may only be called once; a pipeline built on
    this cursor can therefore only be evaluated once.

    Examples:
        conn = sqlite3.connect("data.db")
        rows = DBAPICursor(conn.execute("SELECT id, name FROM users"))
        from_cursor(rows).map(lambda row: row["name"]).to_list()
    """

    def __init__(self, cursor: Any, as_dict: bool = True):
        self.cursor = cursor
        self.as_dict = as_dict
        self._row: Optional[Any] = None
        self._started = False
        self._columns = None

    def first(self) -> None:
        if self._started:
            raise RuntimeError("DBAPICursor is forward-only and cannot be rewound; execute the query again instead")
        self._started = True
        if self.as_dict and self.cursor.description is not None:
            self._columns = [column[0] for column in self.cursor.description]
        logger.debug(f"Reading rows with columns {self._columns}")
        self._fetch()

    def next(self) -> None:
        if not self._started:
            raise RuntimeError("first() must be called before next()")
        self._fetch()

    def _fetch(self):
        row = self.cursor.fetchone()
        if row is not None and self._columns is not None:
            row = dict(zip(self._columns, row))
        self._row = row

    @property
    def eof(self) -> bool:
        return not self._started or self._row is None

    @property
    def current(self) -> Any:
        if self.eof:
            raise IndexError("Cursor is past the last record")
        return self._row
