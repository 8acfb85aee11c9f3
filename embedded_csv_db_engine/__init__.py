"""
Embedded CSV document store: collections of pydantic records kept as CSV files,
with asyncio insert/find/update/delete running file I/O on a worker pool.
"""
from .codec import RecordCodec
from .config import DEFAULT_EXTENSION, Config
from .database import Database
from .errors import (
    CollectionIOError,
    ConfigError,
    CsvDbError,
    DatabaseClosedError,
    ParseError,
    SerializeError,
)
from .query import match_all, where
from .storage import FileStorage

__all__ = [
    "Database",
    "Config",
    "DEFAULT_EXTENSION",
    "FileStorage",
    "RecordCodec",
    "CsvDbError",
    "CollectionIOError",
    "ConfigError",
    "DatabaseClosedError",
    "ParseError",
    "SerializeError",
    "match_all",
    "where",
]
