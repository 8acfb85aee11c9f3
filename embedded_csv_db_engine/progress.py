from __future__ import annotations
from typing import Any, Callable, Dict, Optional

ProgressCallback = Callable[[Dict[str, Any]], None]


class Progress:
    """
    Forwards events {"phase": "find.start", "pct": 0, "msg": "..."} to the user callback.
    """
    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self._callback = callback

    def emit(self, phase: str, pct: int = 0, msg: str = "") -> None:
        if self._callback is None:
            return
        self._callback({"phase": phase, "pct": int(pct), "msg": msg})

    def start(self, op: str, msg: str = "") -> None:
        self.emit(f"{op}.start", 0, msg)

    def done(self, op: str, msg: str = "") -> None:
        self.emit(f"{op}.done", 100, msg)
