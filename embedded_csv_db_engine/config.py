"""Database configuration.

Keys accepted by Config.from_dict:

    path           base directory for collection files (alias: base_directory), required
    extension      collection file extension without dot (alias: file_extension), default "csv"
    max_workers    size of the shared worker pool, default: executor's own default
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .errors import ConfigError

DEFAULT_EXTENSION = "csv"


def normalize_extension(extension: Optional[str]) -> str:
    if extension is None:
        return DEFAULT_EXTENSION
    ext = str(extension).strip().lstrip(".")
    if not ext:
        raise ConfigError("file extension must not be empty")
    return ext


@dataclass(frozen=True)
class Config:
    path: Path
    extension: str = DEFAULT_EXTENSION
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        object.__setattr__(self, "extension", normalize_extension(self.extension))
        if self.max_workers is not None:
            if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int):
                raise ConfigError(f"max_workers must be an int, got {self.max_workers!r}")
            if self.max_workers < 1:
                raise ConfigError("max_workers must be >= 1")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        path = data.get("path", data.get("base_directory"))
        if path is None or str(path) == "":
            raise ConfigError("'path' (base directory) is required")
        extension = data.get("extension", data.get("file_extension"))
        return cls(
            path=Path(path),
            extension=extension,
            max_workers=data.get("max_workers"),
        )
