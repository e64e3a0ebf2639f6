"""
Connection configuration for the Foreman REST client.

The values here are fixed when a client is constructed and never modified
afterwards, so a single client can be shared by concurrent callers.
"""

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from foreman_client.exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class Server:
    """The Foreman API server every request is directed to."""

    url: str

    def __post_init__(self):
        parts = urlsplit(self.url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidConfigurationError(
                f"Server URL must be an absolute http(s) URL, got '{self.url}'"
            )

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme

    @property
    def netloc(self) -> str:
        return urlsplit(self.url).netloc


@dataclass(frozen=True)
class ClientCredentials:
    """Credentials used to authenticate against the Foreman API."""

    username: str = ""
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class ClientConfig:
    """
    Configurable features applied to the REST client.

    Attributes:
        tls_insecure: Skip server certificate and hostname verification
        negotiate_auth: Authenticate through HTTP negotiate (SPNEGO) instead
            of basic auth; needs the requests-gssapi package
        organization_id: Organization injected into taxonomy-scoped payloads
            that do not set one. None or a negative value disables injection.
        location_id: Location injected the same way as organization_id
        timeout: Per-request timeout in seconds
        pool_connections: Number of connection pools to cache
        pool_maxsize: Maximum number of connections kept per pool
        host_retry_attempts: Attempts for host create/update
        power_retry_attempts: Attempts for power and boot commands
        task_poll_attempts: Fetches made while waiting for an async task
        task_poll_interval: Seconds slept between task fetches
    """

    tls_insecure: bool = False
    negotiate_auth: bool = False
    organization_id: Optional[int] = None
    location_id: Optional[int] = None
    timeout: float = 60.0
    pool_connections: int = 10
    pool_maxsize: int = 20
    host_retry_attempts: int = 2
    power_retry_attempts: int = 2
    task_poll_attempts: int = 3
    task_poll_interval: float = 0.5
