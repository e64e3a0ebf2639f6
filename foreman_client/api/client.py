"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

REST client for the Foreman API.

Provides the request builder, the transport, the response decoder and the
payload envelopes used by every resource type. Resource code never touches
the underlying requests session directly.
"""

import concurrent.futures
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import urlunsplit

import requests
import structlog
import urllib3
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth

from foreman_client._version import __version__
from foreman_client.api.core import decode_json
from foreman_client.api.server import ClientConfig, ClientCredentials, Server
from foreman_client.exceptions import (
    HTTPError,
    InvalidConfigurationError,
    InvalidMethodError,
    InvalidRequestError,
    NilRequestError,
    OperationCancelledError,
    ResponseReadError,
    TransportError,
)
from foreman_client.logging_config import get_logger, log_api_request

logger = get_logger(__name__)

# Every Foreman API call has this prefix on the path component of the URL.
API_URL_PREFIX = "/api"
KATELLO_API_URL_PREFIX = "/katello/api"
PUPPET_API_URL_PREFIX = "/foreman_puppet/api"
TASKS_API_URL_PREFIX = "/foreman_tasks/api"

# Requested through the Accept header on core API calls.
API_VERSION = "2"

USER_AGENT = f"foreman-client/{__version__}"

# CONNECT is never a valid method for a REST call.
VALID_REQUEST_METHODS = frozenset(
    ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]
)

# Seconds between cancellation checks while a request is in flight.
CANCEL_POLL_INTERVAL = 0.05

# First endpoint segment -> plugin API prefix
PLUGIN_URL_PREFIXES = {
    "katello": KATELLO_API_URL_PREFIX,
    "puppet": PUPPET_API_URL_PREFIX,
    "foreman_tasks": TASKS_API_URL_PREFIX,
}


@dataclass(frozen=True)
class RawResponse:
    """Status code and undecoded body of one exchange."""

    status_code: int
    body: bytes


def is_valid_request_method(method: Any) -> bool:
    """Return True if method names a supported HTTP verb, ignoring case."""
    return isinstance(method, str) and method.upper() in VALID_REQUEST_METHODS


def build_request_path(endpoint: str) -> Tuple[str, bool]:
    """
    Join an endpoint to its API prefix.

    Leading slashes are dropped so exactly one separator sits between the
    prefix and the resource path: "/hosts", "hosts" and "//hosts" all map to
    "/api/hosts". Endpoints whose first segment names a plugin (katello,
    puppet, foreman_tasks) are routed to that plugin's prefix instead.

    Returns:
        The URL path and whether the core, versioned API is addressed
    """
    relative = (endpoint or "").lstrip("/")
    head, _, rest = relative.partition("/")
    prefix = PLUGIN_URL_PREFIXES.get(head)
    if prefix is not None:
        return prefix + "/" + rest.lstrip("/"), False
    return API_URL_PREFIX + "/" + relative, True


def _negotiate_auth() -> requests.auth.AuthBase:
    """HTTP negotiate (SPNEGO/Kerberos) authentication from requests-gssapi."""
    try:
        from requests_gssapi import HTTPSPNEGOAuth
    except ImportError as e:
        raise InvalidConfigurationError(
            "negotiate_auth requires the requests-gssapi package "
            "(pip install foreman-client[negotiate])"
        ) from e
    return HTTPSPNEGOAuth(opportunistic_auth=True)


class _InFlightExchange:
    """
    Response handle shared by the worker running an exchange and the caller
    waiting on it. Cancelling closes the response as soon as it exists.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._response: Optional[requests.Response] = None
        self.cancelled = False

    def attach(self, response: requests.Response) -> bool:
        with self._lock:
            if self.cancelled:
                return False
            self._response = response
            return True

    def cancel(self) -> None:
        with self._lock:
            self.cancelled = True
            response = self._response
        if response is not None:
            response.close()


class ForemanClient:
    """
    Client for the Foreman REST API.

    Holds the immutable connection settings, a pooled requests session and
    an explicit logger handle. No client state is written while a request
    is in flight, so one instance may serve concurrent callers.

    Example:
        >>> client = ForemanClient(
        ...     Server("https://foreman.example.com"),
        ...     ClientCredentials("admin", "changeme"),
        ... )
        >>> request = client.new_request("GET", "/domains/1")
        >>> domain = client.send_and_parse(request, dict)
    """

    def __init__(
        self,
        server: Server,
        credentials: ClientCredentials,
        config: Optional[ClientConfig] = None,
        log: Optional[structlog.stdlib.BoundLogger] = None,
    ):
        self._server = server
        self._credentials = credentials
        self._config = config if config is not None else ClientConfig()
        self.log = (log if log is not None else logger).bind(server=server.url)

        self._session = requests.Session()
        # retries are decided by the callers, never by the adapter
        adapter = HTTPAdapter(
            max_retries=0,
            pool_connections=self._config.pool_connections,
            pool_maxsize=self._config.pool_maxsize,
        )
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)
        self._session.verify = not self._config.tls_insecure

        if self._config.negotiate_auth:
            self._auth = _negotiate_auth()
        else:
            self._auth = HTTPBasicAuth(credentials.username, credentials.password)

        # runs exchanges that a caller may cancel while they are in flight
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self._config.pool_maxsize,
            thread_name_prefix="foreman-client",
        )

        if self._config.tls_insecure:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            self.log.warning("TLS certificate verification is disabled")

        self.log.debug(
            "Foreman client configured",
            tls_insecure=self._config.tls_insecure,
            negotiate_auth=self._config.negotiate_auth,
            organization_id=self._config.organization_id,
            location_id=self._config.location_id,
        )

    @classmethod
    def from_config(cls, config, log: Optional[structlog.stdlib.BoundLogger] = None) -> "ForemanClient":
        """
        Build a client from a loaded ForemanConfig.

        Args:
            config: foreman_client.config.ForemanConfig instance
            log: Optional logger handle
        """
        return cls(
            Server(config.server.url),
            ClientCredentials(
                username=config.credentials.username,
                password=config.credentials.password,
            ),
            ClientConfig(
                tls_insecure=config.client.tls_insecure,
                negotiate_auth=config.client.negotiate_auth,
                organization_id=config.taxonomy.default_organization_id,
                location_id=config.taxonomy.default_location_id,
                timeout=config.client.timeout,
                pool_connections=config.client.pool_connections,
                pool_maxsize=config.client.pool_maxsize,
                host_retry_attempts=config.retry.host_attempts,
                power_retry_attempts=config.retry.power_attempts,
                task_poll_attempts=config.tasks.attempts,
                task_poll_interval=config.tasks.interval_seconds,
            ),
            log=log,
        )

    @property
    def server(self) -> Server:
        return self._server

    @property
    def credentials(self) -> ClientCredentials:
        return self._credentials

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP session and release pooled connections."""
        self._executor.shutdown(wait=False)
        self._session.close()
        self.log.debug("Closed Foreman client session")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # Request builder
    # ------------------------------------------------------------------

    def new_request(
        self,
        method: str,
        endpoint: str,
        body: Optional[Union[bytes, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> requests.PreparedRequest:
        """
        Construct an authenticated request for the Foreman API.

        The following headers are set automatically: User-Agent, Accept,
        Content-Type and Authorization (HTTP basic).

        Args:
            method: HTTP verb, case-insensitive
            endpoint: Resource path, absolute or relative to the API prefix
            body: Encoded JSON body
            params: Query string parameters

        Returns:
            A prepared request, ready for send()

        Raises:
            InvalidMethodError: If method is not a supported HTTP verb
        """
        self.log.debug("new request", method=method, endpoint=endpoint)

        if not is_valid_request_method(method):
            self.log.error(f"Invalid HTTP request method: [{method}]")
            raise InvalidMethodError(method)

        path, versioned = build_request_path(endpoint)
        url = urlunsplit((self._server.scheme, self._server.netloc, path, "", ""))

        accept = "application/json"
        if versioned:
            accept += ",version=" + API_VERSION

        request = requests.Request(
            method=method.upper(),
            url=url,
            headers={
                "User-Agent": USER_AGENT,
                "Accept": accept,
                "Content-Type": "application/json",
            },
            data=body,
            params=dict(params) if params else None,
            auth=self._auth,
        )
        return request.prepare()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def send(
        self,
        request: Optional[requests.PreparedRequest],
        cancel_event: Optional[threading.Event] = None,
    ) -> RawResponse:
        """
        Send a request built by new_request() and return the raw response.

        The response is always closed before returning, whether or not the
        body could be read. With a cancel_event, the exchange runs on a
        worker thread and setting the event returns control to the caller
        at once; the in-flight response is closed as soon as it is known.

        Raises:
            NilRequestError: If request is None
            TransportError: If no response was received (status_code -1)
            ResponseReadError: If the body could not be read; carries the
                received status code
            OperationCancelledError: If cancel_event is set before the
                exchange completes
        """
        if request is None:
            self.log.error("Client trying to send a nil request")
            raise NilRequestError()

        if cancel_event is None:
            return self._exchange(request)
        return self._exchange_cancellable(request, cancel_event)

    def _exchange_cancellable(
        self,
        request: requests.PreparedRequest,
        cancel_event: threading.Event,
    ) -> RawResponse:
        if cancel_event.is_set():
            raise OperationCancelledError(f"{request.method} {request.url} cancelled before sending")

        in_flight = _InFlightExchange()
        future = self._executor.submit(self._exchange, request, in_flight)
        while True:
            try:
                return future.result(timeout=CANCEL_POLL_INTERVAL)
            except concurrent.futures.TimeoutError:
                if not cancel_event.is_set():
                    continue
            future.cancel()
            in_flight.cancel()
            self.log.info("request cancelled", method=request.method, endpoint=request.url)
            raise OperationCancelledError(f"{request.method} {request.url} cancelled while in flight")

    def _exchange(
        self,
        request: requests.PreparedRequest,
        in_flight: Optional[_InFlightExchange] = None,
    ) -> RawResponse:
        start = time.monotonic()
        try:
            response = self._session.send(
                request,
                stream=True,
                timeout=self._config.timeout,
                verify=not self._config.tls_insecure,
            )
        except requests.RequestException as e:
            log_api_request(
                self.log, request.method, request.url, -1,
                (time.monotonic() - start) * 1000, error=type(e).__name__,
            )
            raise TransportError(
                f"Error encountered when sending HTTP request to server: {e}"
            ) from e

        if in_flight is not None and not in_flight.attach(response):
            # the caller gave up while the headers were on their way
            response.close()
            raise OperationCancelledError(f"{request.method} {request.url} cancelled while in flight")

        with response:
            status_code = response.status_code
            try:
                body = response.content
            except requests.RequestException as e:
                self.log.error(
                    "Error encountered when reading HTTP response from server",
                    endpoint=request.url,
                    status_code=status_code,
                    error=str(e),
                )
                raise ResponseReadError(
                    f"Error encountered when reading HTTP response from server: {e}",
                    status_code=status_code,
                ) from e

        log_api_request(
            self.log, request.method, request.url, status_code,
            (time.monotonic() - start) * 1000,
        )
        return RawResponse(status_code=status_code, body=body or b"")

    # ------------------------------------------------------------------
    # Response decoder
    # ------------------------------------------------------------------

    def send_and_parse(
        self,
        request: Optional[requests.PreparedRequest],
        target: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        """
        Send a request and check the server's response for errors.

        Args:
            request: Request built by new_request()
            target: None for a status-only check, dict or list for plain JSON,
                or a record class with from_dict()
            cancel_event: Optional event aborting the exchange, see send()

        Returns:
            The decoded body, or None when no target was given

        Raises:
            HTTPError: If the status code is outside 200-299
            DecodeError: If the body cannot be decoded into target
            TransportError, OperationCancelledError: Propagated unchanged
                from send()
        """
        raw = self.send(request, cancel_event)

        self.log.debug(
            "server response",
            endpoint=request.url,
            method=request.method,
            status_code=raw.status_code,
            body=raw.body.decode("utf-8", errors="replace"),
        )

        if raw.status_code < 200 or raw.status_code > 299:
            raise HTTPError(
                request.url,
                raw.status_code,
                raw.body.decode("utf-8", errors="replace"),
            )

        if target is None:
            return None
        return decode_json(raw.body, target)

    # ------------------------------------------------------------------
    # Envelope wrapper
    # ------------------------------------------------------------------

    def wrap_parameters(self, name: Optional[str], item: Any) -> Dict[str, Any]:
        """
        Nest the encoded item under name, or return it at the top level.

        Records are encoded through their to_payload() method.
        """
        payload = item.to_payload() if hasattr(item, "to_payload") else item

        if name is not None:
            return {str(name): payload}

        if not isinstance(payload, Mapping):
            raise InvalidRequestError(
                f"Payload must encode to a JSON object, got {type(payload).__name__}"
            )
        return dict(payload)

    def wrap_json(self, name: Optional[str], item: Any) -> bytes:
        """Wrap the item as an object of its own name and encode it to JSON."""
        return self._dump(self.wrap_parameters(name, item))

    def wrap_json_with_taxonomy(self, name: Optional[str], item: Any) -> bytes:
        """
        Wrap the item like wrap_json() and add taxonomy scoping.

        The configured default organization and location are added to the
        envelope when the record does not already set them.
        """
        wrapped = self.wrap_parameters(name, item)
        record = wrapped.get(str(name)) if name is not None else wrapped
        if not isinstance(record, Mapping):
            record = {}

        defaults = (
            ("organization_id", self._config.organization_id),
            ("location_id", self._config.location_id),
        )
        for key, default in defaults:
            if default is None or default < 0:
                continue
            if _taxonomy_is_set(record, key):
                continue
            wrapped[key] = default

        self.log.debug("wrapped payload with taxonomy", payload=wrapped)
        return self._dump(wrapped)

    @staticmethod
    def _dump(wrapped: Mapping[str, Any]) -> bytes:
        try:
            return json.dumps(wrapped).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise InvalidRequestError(f"Failed to encode request payload: {e}") from e


def _taxonomy_is_set(record: Mapping[str, Any], key: str) -> bool:
    value = record.get(key)
    if value not in (None, "", 0, "0"):
        return True
    # plural form, e.g. organization_ids
    values = record.get(key + "s")
    return bool(values)
