from __future__ import annotations
from typing import Any, Dict, List, Sequence, Type, TypeVar, get_args

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .errors import ParseError, SerializeError

M = TypeVar("M", bound=BaseModel)

# Values a single CSV field can hold once converted to JSON-compatible form
_SCALARS = (str, int, float)


def _accepts_none(annotation: Any) -> bool:
    return annotation is type(None) or type(None) in get_args(annotation)


class RecordCodec:
    """
    Maps pydantic models to CSV rows and back.
    Header = model field names (never aliases) in declaration order; every value is a string.
    None is written as an empty field and read back as None for optional fields.
    """

    def field_names(self, model: Type[BaseModel]) -> List[str]:
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise TypeError(f"record type must be a pydantic BaseModel subclass, got {model!r}")
        return list(model.model_fields.keys())

    def to_row(self, record: BaseModel, model: Type[BaseModel] | None = None) -> List[str]:
        model = model or type(record)
        names = self.field_names(model)
        if not isinstance(record, model):
            raise SerializeError(
                f"expected {model.__name__} record, got {type(record).__name__}"
            )
        # Read attributes directly: model_dump would drop exclude=True fields
        row: List[str] = []
        for name in names:
            try:
                value = to_jsonable_python(getattr(record, name))
            except PydanticSerializationError as e:
                raise SerializeError(f"cannot serialize {model.__name__}.{name}: {e}") from e
            row.append(self._encode_value(model, name, value))
        return row

    def from_row(self, model: Type[M], header: Sequence[str], values: Sequence[str]) -> M:
        fields = model.model_fields
        data: Dict[str, Any] = {}
        for name, raw in zip(header, values):
            if raw == "" and _accepts_none(fields[name].annotation):
                data[name] = None
            else:
                data[name] = raw
        try:
            return model.model_validate(data, by_name=True)
        except ValidationError as e:
            raise ParseError(f"row does not match {model.__name__}: {e}") from e

    @staticmethod
    def _encode_value(model: Type[BaseModel], name: str, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, _SCALARS):
            return str(value)
        raise SerializeError(
            f"{model.__name__}.{name}: {type(value).__name__} value cannot be stored in a single field"
        )
