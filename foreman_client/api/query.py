"""
Normalization of search results into typed records.

Search endpoints return their results as JSON values whose shape depends on
the resource. They are first decoded generically into QueryResponse.results,
then re-encoded and decoded again as the caller's record type.
"""

import json
from typing import Any, List, Optional, Type

from foreman_client.api.core import QueryResponse
from foreman_client.exceptions import DecodeError
from foreman_client.logging_config import get_logger

logger = get_logger(__name__)


def _encode_value(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def normalize_results(query_response: QueryResponse, record_type: Type[Any]) -> QueryResponse:
    """
    Replace the generic results of a query with instances of record_type.

    Order and count are preserved. Results that already are records are
    encoded through their to_dict() form, so normalizing twice is harmless.
    Any failure aborts the whole query and leaves results untouched.

    Args:
        query_response: Response decoded by send_and_parse()
        record_type: Record class exposing from_dict()

    Returns:
        The same QueryResponse, with typed results

    Raises:
        DecodeError: If the results cannot be converted
    """
    results = query_response.results
    if not isinstance(results, list):
        raise DecodeError(
            f"Query results must be an array to normalize, got {type(results).__name__}"
        )

    try:
        encoded = json.dumps(results, default=_encode_value)
        decoded = json.loads(encoded)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Failed to re-encode query results: {e}") from e

    typed: List[Any] = [record_type.from_dict(item) for item in decoded]
    if len(typed) != len(results):
        raise DecodeError(
            f"Query normalization changed the result count from {len(results)} to {len(typed)}"
        )

    query_response.results = typed
    logger.debug(
        "normalized query results",
        record_type=record_type.__name__,
        count=len(typed),
    )
    return query_response


def select_nested_results(query_response: QueryResponse, key: Optional[str]) -> QueryResponse:
    """
    Select one entry of a search response whose results are a map.

    Some endpoints (Puppet classes) return {"<module>": [...]} instead of an
    array. The list stored under key becomes the results. With key None, a
    map holding a single entry yields that entry. A missing key yields no
    results.

    Raises:
        DecodeError: If results are not a map, or the selected entry is
            neither an array nor an object
    """
    results = query_response.results
    if isinstance(results, list):
        return query_response
    if not isinstance(results, dict):
        raise DecodeError(
            f"Query results must be an object to select from, got {type(results).__name__}"
        )

    if key is None and len(results) == 1:
        selected = next(iter(results.values()))
    else:
        selected = results.get(key, [])

    if isinstance(selected, dict):
        selected = [selected]
    if not isinstance(selected, list):
        raise DecodeError(
            f"Selected query results for '{key}' must be an array, got {type(selected).__name__}"
        )

    query_response.results = selected
    return query_response
