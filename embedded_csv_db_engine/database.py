from __future__ import annotations
import asyncio
import functools
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from .config import Config
from .errors import DatabaseClosedError
from .progress import Progress, ProgressCallback
from .storage import FileStorage

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


class Database:
    """
    CSV-backed document store: one file per collection under `path`.

    Every verb is a coroutine that hands exactly one blocking unit of work
    (read, filter/mutate, write) to a shared thread pool, so the event loop is
    never blocked on file I/O. There is no locking: concurrent update/delete on
    the same collection are last-writer-wins, and rows appended while another
    call rewrites the file can be lost.

    Predicates are called on the worker thread; anything they raise reaches the
    awaiting caller unchanged and nothing is written.
    """

    def __init__(
        self,
        path: Union[str, os.PathLike],
        extension: Optional[str] = None,
        *,
        max_workers: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self._config = Config(path=Path(path), extension=extension, max_workers=max_workers)
        self._fs = FileStorage(self._config.path, self._config.extension)
        self._progress = Progress(on_progress)
        self._executor = ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="csvdb",
        )
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: Union[Config, Mapping[str, Any]],
        *,
        on_progress: Optional[ProgressCallback] = None,
    ) -> "Database":
        if not isinstance(config, Config):
            config = Config.from_dict(config)
        return cls(
            config.path,
            config.extension,
            max_workers=config.max_workers,
            on_progress=on_progress,
        )

    @property
    def config(self) -> Config:
        return self._config

    @property
    def path(self) -> Path:
        return self._config.path

    @property
    def extension(self) -> str:
        return self._config.extension

    @property
    def closed(self) -> bool:
        return self._closed

    def collection_path(self, collection: str) -> Path:
        return self._fs.path_for(collection)

    # ----- Public verbs -----

    async def insert(self, collection: str, record: BaseModel) -> None:
        """
        Append `record` to the collection, creating the file (header + row) if absent.
        Duplicates are allowed.
        """
        self._progress.start("insert", collection)
        await self._offload(self._fs.append, collection, record)
        self._progress.done("insert", collection)

    async def find(self, collection: str, model: Type[M], predicate: Callable[[M], bool]) -> List[M]:
        """
        All records of type `model` for which `predicate` holds, in file order.
        """
        self._progress.start("find", collection)
        found = await self._offload(self._find_blocking, collection, model, predicate)
        self._progress.done("find", f"{collection}: {len(found)} matched")
        return found

    async def update(self, collection: str, record: M, predicate: Callable[[M], bool]) -> int:
        """
        Replace every matching record with `record` (the same value for all matches),
        keeping positions. The file is rewritten even when nothing matches.
        Returns the number of replaced records.
        """
        self._progress.start("update", collection)
        n = await self._offload(self._update_blocking, collection, record, predicate)
        self._progress.done("update", f"{collection}: {n} updated")
        return n

    async def delete(self, collection: str, model: Type[M], predicate: Callable[[M], bool]) -> int:
        """
        Remove every matching record. Deleting everything leaves a header-only file.
        Returns the number of removed records.
        """
        self._progress.start("delete", collection)
        n = await self._offload(self._delete_blocking, collection, model, predicate)
        self._progress.done("delete", f"{collection}: {n} deleted")
        return n

    # ----- Blocking units (run on the pool) -----

    def _find_blocking(self, collection: str, model: Type[M], predicate: Callable[[M], bool]) -> List[M]:
        return [rec for rec in self._fs.read_all(collection, model) if predicate(rec)]

    def _update_blocking(self, collection: str, record: M, predicate: Callable[[M], bool]) -> int:
        model = type(record)
        records = self._fs.read_all(collection, model)
        n = 0
        for i, rec in enumerate(records):
            if predicate(rec):
                records[i] = record
                n += 1
        self._fs.write_all(collection, records, model)
        return n

    def _delete_blocking(self, collection: str, model: Type[M], predicate: Callable[[M], bool]) -> int:
        records = self._fs.read_all(collection, model)
        kept = [rec for rec in records if not predicate(rec)]
        self._fs.write_all(collection, kept, model)
        return len(records) - len(kept)

    async def _offload(self, fn: Callable[..., T], *args: Any) -> T:
        if self._closed:
            raise DatabaseClosedError("database is closed")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    # ----- Lifecycle -----

    def close(self) -> None:
        """
        Stop accepting work and wait for in-flight operations to finish.
        """
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database(path={str(self.path)!r}, extension={self.extension!r})"
