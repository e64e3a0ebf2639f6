"""
Pytest configuration and shared fixtures for Foreman Client tests.
"""

import json
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, Optional
from unittest.mock import MagicMock, PropertyMock

import pytest

from foreman_client.api.client import ForemanClient
from foreman_client.api.server import ClientConfig, ClientCredentials, Server


TEST_SERVER_URL = "https://foreman.example.com"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.
    
    Yields:
        Path to temporary directory that is cleaned up after test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def credentials() -> ClientCredentials:
    return ClientCredentials(username="admin", password="changeme")


@pytest.fixture
def make_client(credentials: ClientCredentials) -> Generator[Callable[..., ForemanClient], None, None]:
    """
    Factory fixture building clients against the test server URL.
    
    Every client created is closed after the test.
    """
    clients = []
    
    def _make_client(config: Optional[ClientConfig] = None, url: str = TEST_SERVER_URL) -> ForemanClient:
        client = ForemanClient(Server(url), credentials, config)
        clients.append(client)
        return client
    
    yield _make_client
    
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client) -> ForemanClient:
    """Client with default configuration."""
    return make_client()


def make_response(status_code: int = 200, body: Any = b"", read_error: Optional[Exception] = None) -> MagicMock:
    """
    Build a mock requests.Response usable as a context manager.
    
    Args:
        status_code: Status code to report
        body: Raw bytes, str, or a JSON-serializable value
        read_error: Exception raised when the body is read
    """
    response = MagicMock(name="Response")
    response.status_code = status_code
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    
    if read_error is not None:
        type(response).content = PropertyMock(side_effect=read_error)
    else:
        if isinstance(body, str):
            body = body.encode("utf-8")
        elif not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        response.content = body
    return response


@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    return make_response
