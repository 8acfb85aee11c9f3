from __future__ import annotations
from pathlib import Path
from typing import Optional


class CsvDbError(Exception):
    """Base class for all engine errors."""


class ConfigError(CsvDbError):
    pass


class DatabaseClosedError(CsvDbError):
    pass


class CollectionIOError(CsvDbError):
    """
    Collection file could not be opened, created, read or written.
    Missing file on read is reported here, never as an empty result.
    """
    def __init__(self, msg: str, path: Optional[Path] = None) -> None:
        super().__init__(msg)
        self.path = path


class ParseError(CsvDbError):
    """
    A row does not fit the record type: header mismatch, wrong field count,
    bad quoting or a value the model rejects. `row` is the 1-based line.
    """
    def __init__(self, msg: str, path: Optional[Path] = None, row: Optional[int] = None) -> None:
        if row is not None:
            msg = f"{msg} (row {row})"
        super().__init__(msg)
        self.path = path
        self.row = row


class SerializeError(CsvDbError):
    pass
