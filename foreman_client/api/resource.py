"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Generic resource operations.

A resource type supplies its record class, endpoint and optional envelope
key; it inherits read/query (ReadOnlyResourceAPI) and create/update/delete
(ResourceAPI) built on the client core.
"""

import threading
from typing import Any, Generic, Optional, Type, TypeVar

from foreman_client.api.client import ForemanClient
from foreman_client.api.core import QueryResponse
from foreman_client.api.query import normalize_results
from foreman_client.core.retry import retry_operation
from foreman_client.exceptions import InvalidRequestError

T = TypeVar("T")


class ReadOnlyResourceAPI(Generic[T]):
    """
    Read and search operations for one Foreman resource type.

    Subclasses set:
        record_type: Record class with from_dict()/to_dict()/to_payload()
        endpoint: Collection path, e.g. "domains"
    """

    record_type: Type[T]
    endpoint: str = ""

    def __init__(self, client: ForemanClient):
        self.client = client
        self.log = client.log.bind(resource=self.endpoint)

    def _collection_endpoint(self) -> str:
        return f"/{self.endpoint.strip('/')}"

    def _item_endpoint(self, id: int) -> str:
        if id <= 0:
            raise InvalidRequestError(f"{self.record_type.__name__} id must be positive, got {id}")
        return f"{self._collection_endpoint()}/{id}"

    def read(self, id: int) -> T:
        """Read the record identified by id."""
        request = self.client.new_request("GET", self._item_endpoint(id))
        record = self.client.send_and_parse(request, self.record_type)
        self.log.debug("read record", id=id)
        return record

    def query(self, name: str) -> QueryResponse:
        """
        Search records by name.

        Returns:
            QueryResponse whose results are record_type instances
        """
        request = self.client.new_request(
            "GET",
            self._collection_endpoint(),
            params={"search": f'name="{name}"'},
        )
        query_response = self.client.send_and_parse(request, QueryResponse)
        query_response = self._select_results(query_response, name)
        normalize_results(query_response, self.record_type)
        self.log.debug("query response", search=name, subtotal=query_response.subtotal)
        return query_response

    def _select_results(self, query_response: QueryResponse, name: str) -> QueryResponse:
        return query_response


class ResourceAPI(ReadOnlyResourceAPI[T]):
    """
    Full CRUD operations for one Foreman resource type.

    Subclasses additionally set:
        envelope_key: Key the payload is nested under, None for top level
        with_taxonomy: Inject default organization/location into payloads
    """

    envelope_key: Optional[str] = None
    with_taxonomy: bool = True

    def encode(self, record: Any) -> bytes:
        if self.with_taxonomy:
            return self.client.wrap_json_with_taxonomy(self.envelope_key, record)
        return self.client.wrap_json(self.envelope_key, record)

    def _send(
        self,
        method: str,
        endpoint: str,
        body: bytes,
        operation_name: str,
        retry_count: int,
        cancel_event: Optional[threading.Event],
    ) -> T:
        def attempt() -> T:
            request = self.client.new_request(method, endpoint, body)
            return self.client.send_and_parse(request, self.record_type, cancel_event)

        return retry_operation(
            attempt,
            max_attempts=retry_count,
            operation_name=operation_name,
            cancel_event=cancel_event,
            log=self.log,
        )

    def create(
        self,
        record: T,
        retry_count: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ) -> T:
        """
        Create a record and return the server's version of it.

        Args:
            record: Record to create
            retry_count: Total attempts made before giving up
            cancel_event: Optional event stopping further attempts
        """
        body = self.encode(record)
        created = self._send(
            "POST", self._collection_endpoint(), body,
            f"create_{self.endpoint}", retry_count, cancel_event,
        )
        self.log.info("created record", id=getattr(created, "id", None))
        return created

    def update(
        self,
        record: T,
        id: Optional[int] = None,
        retry_count: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ) -> T:
        """
        Update the record with the given id (defaults to record.id).

        Returns:
            A new record with the attributes from the update result
        """
        if id is None:
            id = getattr(record, "id", 0)
        endpoint = self._item_endpoint(id)
        body = self.encode(record)
        updated = self._send(
            "PUT", endpoint, body,
            f"update_{self.endpoint}", retry_count, cancel_event,
        )
        self.log.info("updated record", id=id)
        return updated

    def delete(self, id: int) -> None:
        """Delete the record identified by id."""
        request = self.client.new_request("DELETE", self._item_endpoint(id))
        self.client.send_and_parse(request, None)
        self.log.info("deleted record", id=id)
