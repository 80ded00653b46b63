"""
Record codec.

Single (de)serialization boundary between pydantic records and the text
values held by a KeyValueStore. Decode failures surface as StorageError so
a corrupt key degrades exactly like an unreadable one.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from dialogue_store.errors import StorageError

ModelT = TypeVar("ModelT", bound=BaseModel)

_STRING_LIST = TypeAdapter(list[str])


def encode_record(record: BaseModel, *, compact: bool = True) -> str:
    return record.model_dump_json(by_alias=True, indent=None if compact else 2)


def decode_record(model: type[ModelT], raw: str, *, key: str | None = None) -> ModelT:
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise StorageError(
            f"Undecodable {model.__name__} payload: {e.error_count()} error(s)",
            operation="decode",
            key=key,
        ) from e


def encode_records(records: list[BaseModel], *, compact: bool = True) -> str:
    payload = [record.model_dump(mode="json", by_alias=True) for record in records]
    if compact:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(payload, ensure_ascii=False, indent=2)


def decode_records(model: type[ModelT], raw: str, *, key: str | None = None) -> list[ModelT]:
    try:
        return TypeAdapter(list[model]).validate_json(raw)
    except ValidationError as e:
        raise StorageError(
            f"Undecodable {model.__name__} list: {e.error_count()} error(s)",
            operation="decode",
            key=key,
        ) from e


def encode_ids(ids: list[str]) -> str:
    return json.dumps(ids)


def decode_ids(raw: str, *, key: str | None = None) -> list[str]:
    try:
        return _STRING_LIST.validate_json(raw)
    except ValidationError as e:
        raise StorageError("Undecodable id list", operation="decode", key=key) from e


def to_wire(record: BaseModel) -> dict[str, Any]:
    """Plain JSON-compatible dict with camelCase keys and ISO-8601 dates."""
    return record.model_dump(mode="json", by_alias=True)
