from __future__ import annotations
from typing import Any, Callable

Predicate = Callable[[Any], bool]

_MISSING = object()


def match_all(record: Any) -> bool:
    return True


def where(**fields: Any) -> Predicate:
    """
    Equality predicate over record attributes: where(id=1, active=True).
    An attribute the record does not have never matches. No arguments matches everything.
    """
    def predicate(record: Any) -> bool:
        for name, expected in fields.items():
            value = getattr(record, name, _MISSING)
            if value is _MISSING or value != expected:
                return False
        return True
    return predicate
