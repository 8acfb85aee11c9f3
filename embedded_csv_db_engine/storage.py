from __future__ import annotations
import csv
import io
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Sequence, Type, TypeVar

from pydantic import BaseModel

from .codec import RecordCodec
from .errors import CollectionIOError, ParseError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ENCODING = "utf-8"
DIALECT = "excel"  # comma separated, '"' quoting, \r\n rows


class FileStorage:
    """
    Collection files under one base directory: <base>/<name>.<extension>.
    Every call opens, fully reads or writes, and closes the file; nothing is cached
    and no lock is taken, so concurrent rewrites of one collection are last-writer-wins.
    """
    def __init__(self, base_dir: str | os.PathLike, extension: str, codec: RecordCodec | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.extension = extension
        self.codec = codec or RecordCodec()

    def path_for(self, name: str) -> Path:
        return self.base_dir / f"{name}.{self.extension}"

    def read_all(self, name: str, model: Type[M]) -> List[M]:
        """
        Parse the whole collection file into `model` instances, in file order.
        Missing file -> CollectionIOError. Zero-byte file -> [].
        """
        header = self.codec.field_names(model)
        path = self.path_for(name)
        records: List[M] = []
        try:
            with open(path, "r", encoding=ENCODING, newline="") as f:
                reader = csv.reader(f, dialect=DIALECT, strict=True)
                seen_header = False
                try:
                    for row in reader:
                        if not row:
                            continue
                        if not seen_header:
                            if row != header:
                                raise ParseError(
                                    f"header {row} does not match {model.__name__} fields {header}",
                                    path, reader.line_num,
                                )
                            seen_header = True
                            continue
                        if len(row) != len(header):
                            raise ParseError(
                                f"expected {len(header)} fields, found {len(row)}",
                                path, reader.line_num,
                            )
                        try:
                            records.append(self.codec.from_row(model, header, row))
                        except ParseError as e:
                            raise ParseError(str(e), path, reader.line_num) from e
                except csv.Error as e:
                    raise ParseError(f"malformed row: {e}", path, reader.line_num) from e
                except UnicodeDecodeError as e:
                    raise ParseError(f"not valid {ENCODING}: {e}", path) from e
        except FileNotFoundError as e:
            raise CollectionIOError(f"collection '{name}' does not exist: {path}", path) from e
        except OSError as e:
            raise CollectionIOError(f"cannot read collection '{name}': {e}", path) from e
        return records

    def write_all(self, name: str, records: Sequence[BaseModel], model: Type[BaseModel]) -> None:
        """
        Overwrite the collection with header + one row per record.
        Rows are serialized before the file is touched, so SerializeError leaves it intact.
        """
        header = self.codec.field_names(model)
        rows = [self.codec.to_row(rec, model) for rec in records]
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding=ENCODING, newline="") as f:
                f.write(self._format_rows([header, *rows]))
        except OSError as e:
            raise CollectionIOError(f"cannot write collection '{name}': {e}", path) from e
        logger.debug("rewrote %s with %d records", path, len(rows))

    def append(self, name: str, record: BaseModel) -> None:
        """
        Append one row; a missing file is first created holding only the header.
        """
        model = type(record)
        header = self.codec.field_names(model)
        row = self.codec.to_row(record, model)
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                self._create_with_header(path, header)
            needs_break = self._missing_line_break(path)
            with open(path, "a", encoding=ENCODING, newline="") as f:
                # Pre-existing zero-byte file
                lines = [header, row] if f.tell() == 0 else [row]
                text = self._format_rows(lines)
                if needs_break:
                    text = "\r\n" + text
                f.write(text)
        except OSError as e:
            raise CollectionIOError(f"cannot append to collection '{name}': {e}", path) from e

    def _create_with_header(self, path: Path, header: List[str]) -> None:
        # Header goes to a temp file that is hard-linked into place, so a racing
        # append never sees the collection file without its header.
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding=ENCODING, newline="") as f:
                f.write(self._format_rows([header]))
            try:
                os.link(tmp, path)
                logger.debug("created collection file %s", path)
            except FileExistsError:
                pass
            except OSError:
                # No hard links here (FAT, some network mounts); exclusive create instead
                self._create_exclusive(path, header)
        finally:
            os.unlink(tmp)

    def _create_exclusive(self, path: Path, header: List[str]) -> None:
        try:
            with open(path, "x", encoding=ENCODING, newline="") as f:
                f.write(self._format_rows([header]))
            logger.debug("created collection file %s without hard link", path)
        except FileExistsError:
            pass

    @staticmethod
    def _missing_line_break(path: Path) -> bool:
        """True when a non-empty file does not end with a line terminator."""
        with open(path, "rb") as f:
            f.seek(0, os.SEEK_END)
            if f.tell() == 0:
                return False
            f.seek(-1, os.SEEK_END)
            return f.read(1) not in (b"\n", b"\r")

    @staticmethod
    def _format_rows(rows: Sequence[Sequence[str]]) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, dialect=DIALECT)
        writer.writerows(rows)
        return buf.getvalue()
