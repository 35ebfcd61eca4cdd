"""JSON codec backed by Pydantic ``TypeAdapter``.

Any type Pydantic can validate works as a target: builtins and generics
(``dict[str, int]``, ``list[str]``), ``BaseModel`` subclasses, dataclasses
and ``TypedDict``.  ``Any`` returns the plain decoded JSON value.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from resteasy.exceptions import DeserializationError, SerializationError

T = TypeVar("T")


@lru_cache(maxsize=128)
def _cached_adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


def get_adapter(type_: Any) -> TypeAdapter[Any]:
    """Return a (cached where possible) ``TypeAdapter`` for *type_*."""
    try:
        return _cached_adapter(type_)
    except TypeError:
        # unhashable type expression
        return TypeAdapter(type_)


def deserialize(text: str, type_: type[T] | Any = Any) -> T:
    """Parse *text* as JSON and validate it against *type_*.

    Raises:
        DeserializationError: If *text* is not valid JSON or does not match
            *type_*.
    """
    try:
        return get_adapter(type_).validate_json(text)
    except ValidationError as exc:
        raise DeserializationError(f"Cannot deserialize body as {type_!r}: {exc}") from exc


def serialize(value: Any) -> str:
    """Render *value* as a compact JSON string.

    Raises:
        SerializationError: If *value* contains something with no JSON form.
    """
    try:
        return get_adapter(Any).dump_json(value).decode("utf-8")
    except (ValueError, TypeError) as exc:
        raise SerializationError(f"Cannot serialize {type(value).__name__}: {exc}") from exc
