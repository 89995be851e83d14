from __future__ import annotations

from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)


class DecodeError(Exception):
    pass


def decode_one(model: Type[T], payload: Any) -> T:
    if not isinstance(payload, dict):
        raise DecodeError(f"{model.__name__}: expected an object, got {type(payload).__name__}")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise DecodeError(f"{model.__name__}: {exc}") from exc


def decode_optional(model: Type[T], payload: Any) -> T | None:
    if payload is None:
        return None
    return decode_one(model, payload)


def decode_list(model: Type[T], payload: Any) -> List[T]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise DecodeError(f"{model.__name__}: expected a list, got {type(payload).__name__}")
    return [decode_one(model, item) for item in payload]


def decode_first(model: Type[T], payload: Any) -> T:
    """Insert/update with return=representation answers with a one-row list."""
    if isinstance(payload, list):
        if not payload:
            raise DecodeError(f"{model.__name__}: empty representation")
        payload = payload[0]
    return decode_one(model, payload)
