"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Foreman object model and value conversion helpers.

Every Foreman entity shares the ForemanObject attributes. Records decode
themselves from the API's read shape with from_dict(), expose that same
shape through to_dict(), and produce the write shape expected by create and
update calls through to_payload().

The Foreman API returns foreign-key ids as JSON numbers but requires them as
quoted strings in request bodies, with null standing for "no value".
int_id_to_json_string() implements that rule and every encoder routes its
id fields through it.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar, Union

from foreman_client.exceptions import DecodeError

R = TypeVar("R", bound="ForemanObject")


# ----------------------------------------------------------------------------
# Value conversion
# ----------------------------------------------------------------------------

def int_id_to_json_string(id: int) -> Optional[str]:
    """
    Convert a Foreman integer id to its request-body representation.

    0 is not a valid Foreman id, so ids <= 0 become None (JSON null).
    Positive ids become their decimal string.
    """
    if id <= 0:
        return None
    return str(id)


def foreman_object_array_to_id_array(
    objects: Iterable[Union["ForemanObject", Mapping[str, Any]]]
) -> List[int]:
    """
    Reduce nested related objects to the ordered list of their ids.

    Read responses embed related entities as full objects while create and
    update only take their ids.
    """
    ids = []
    for obj in objects or []:
        if isinstance(obj, ForemanObject):
            ids.append(obj.id)
        elif isinstance(obj, Mapping):
            ids.append(decode_int(obj.get("id"), "id"))
        else:
            raise DecodeError(f"Expected a nested object with an id, got {type(obj).__name__}")
    return ids


def decode_int(value: Any, name: str) -> int:
    """Decode an integer field, accepting numbers and numeric strings."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise DecodeError(f"Field '{name}' must be an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise DecodeError(f"Field '{name}' must be an integer, got {value!r}")


def decode_str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise DecodeError(f"Field '{name}' must be a string, got {type(value).__name__}")
    return str(value)


def require_mapping(data: Any, type_name: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DecodeError(
            f"Cannot decode {type_name} from JSON {type(data).__name__}, expected an object"
        )
    return data


def decode_json(body: bytes, target: Any) -> Any:
    """
    Deserialize a response body into the requested target.

    Args:
        body: Raw response body
        target: dict or list for plain JSON values, or a record class with
            a from_dict() classmethod

    An empty body decodes as an empty array for list and as an empty
    object otherwise.

    Raises:
        DecodeError: If the body is not valid JSON or does not match target
    """
    if not body or not body.strip():
        data: Any = [] if target is list else {}
    else:
        try:
            data = json.loads(body)
        except ValueError as e:
            raise DecodeError(f"Malformed JSON in response body: {e}") from e

    if target is dict:
        return dict(require_mapping(data, "object"))
    if target is list:
        if not isinstance(data, list):
            raise DecodeError(f"Expected a JSON array, got {type(data).__name__}")
        return data
    if hasattr(target, "from_dict"):
        return target.from_dict(data)
    raise DecodeError(f"Unsupported decode target: {target!r}")


# ----------------------------------------------------------------------------
# Foreman Object Model
# ----------------------------------------------------------------------------

@dataclass
class ForemanObject:
    """
    Base Foreman API object.

    Attributes:
        id: Unique identifier, 0 when the object does not exist yet
        name: Human readable name
        created_at: Creation timestamp ("%Y-%m-%d %H-%M-%S UTC")
        updated_at: Last update timestamp ("%Y-%m-%d %H-%M-%S UTC")
    """

    id: int = 0
    name: str = ""
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def _base_fields(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "id": decode_int(data.get("id"), "id"),
            "name": decode_str(data.get("name"), "name"),
            "created_at": decode_str(data.get("created_at"), "created_at"),
            "updated_at": decode_str(data.get("updated_at"), "updated_at"),
        }

    @classmethod
    def from_dict(cls: Type[R], data: Any) -> R:
        data = require_mapping(data, cls.__name__)
        return cls(**cls._base_fields(data))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_payload(self) -> Dict[str, Any]:
        # timestamps are server-owned and never written
        return {
            "id": int_id_to_json_string(self.id),
            "name": self.name,
        }


@dataclass
class ForemanKVParameter:
    """Name/value pair used by inline parameter lists (hosts, domains, ...)."""

    name: str = ""
    value: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "ForemanKVParameter":
        data = require_mapping(data, cls.__name__)
        return cls(
            name=decode_str(data.get("name"), "name"),
            value=decode_str(data.get("value"), "value"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value}


def decode_kv_list(values: Any, name: str) -> List[ForemanKVParameter]:
    if values is None:
        return []
    if not isinstance(values, list):
        raise DecodeError(f"Field '{name}' must be a list, got {type(values).__name__}")
    return [ForemanKVParameter.from_dict(item) for item in values]


def from_kv(kv: Iterable[ForemanKVParameter]) -> Dict[str, str]:
    """Convert a parameter list into a name -> value mapping."""
    return {pair.name: pair.value for pair in kv}


def to_kv(mapping: Mapping[str, Any]) -> List[ForemanKVParameter]:
    """Convert a name -> value mapping into a parameter list."""
    return [ForemanKVParameter(name=key, value=str(value)) for key, value in mapping.items()]


# ----------------------------------------------------------------------------
# Foreman API Query Responses
# ----------------------------------------------------------------------------

@dataclass
class QueryResponseSort:
    """Sort options reported by a search response."""

    order: str = ""
    by: str = ""


@dataclass
class QueryResponse:
    """
    Paginated response of every search endpoint (/api/<resource>).

    results holds the decoded JSON values until the query normalizer
    replaces them with typed records.
    """

    total: int = 0
    subtotal: int = 0
    page: int = 0
    per_page: int = 0
    search: str = ""
    sort: QueryResponseSort = field(default_factory=QueryResponseSort)
    results: Any = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "QueryResponse":
        data = require_mapping(data, cls.__name__)
        sort_data = data.get("sort") or {}
        if not isinstance(sort_data, Mapping):
            raise DecodeError("Field 'sort' must be an object")
        results = data.get("results")
        if results is None:
            results = []
        if not isinstance(results, (list, dict)):
            raise DecodeError(
                f"Field 'results' must be an array or object, got {type(results).__name__}"
            )
        return cls(
            total=decode_int(data.get("total"), "total"),
            subtotal=decode_int(data.get("subtotal"), "subtotal"),
            page=decode_int(data.get("page"), "page"),
            per_page=decode_int(data.get("per_page"), "per_page"),
            search=decode_str(data.get("search"), "search"),
            sort=QueryResponseSort(
                order=decode_str(sort_data.get("order"), "order"),
                by=decode_str(sort_data.get("by"), "by"),
            ),
            results=results,
        )
