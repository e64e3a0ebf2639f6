"""
Exception hierarchy for Foreman Client.

All custom exceptions inherit from ForemanClientError base class.
"""

from typing import Optional


class ForemanClientError(Exception):
    """Base exception for all Foreman Client errors."""
    pass


# Configuration Errors
class ConfigurationError(ForemanClientError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid or malformed."""
    pass


# Request Validation Errors
class RequestValidationError(ForemanClientError):
    """Base exception for requests rejected before reaching the network."""
    pass


class InvalidMethodError(RequestValidationError):
    """Raised when a request is built with an unsupported HTTP method."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Invalid HTTP request method: [{method}]")


class NilRequestError(RequestValidationError):
    """Raised when the transport is asked to send a missing request."""

    status_code = -1
    body = b""

    def __init__(self, message: str = "Client trying to send a nil request"):
        super().__init__(message)


class InvalidRequestError(RequestValidationError):
    """Raised when operation arguments are invalid."""
    pass


# Transport Errors
class TransportError(ForemanClientError):
    """Raised when a request could not be exchanged with the server."""

    def __init__(self, message: str, status_code: int = -1):
        self.status_code = status_code
        self.body = b""
        super().__init__(message)


class ResponseReadError(TransportError):
    """Raised when the response arrived but its body could not be read."""
    pass


# Response Errors
class HTTPError(ForemanClientError):
    """Raised when the server answers with a status code outside 2xx."""

    def __init__(self, endpoint: str, status_code: int, body: str):
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        super().__init__(
            "HTTP Error:{\n"
            f"  endpoint:   [{endpoint}]\n"
            f"  statusCode: [{status_code}]\n"
            f"  respBody:   [{body}]\n"
            "}"
        )

    @property
    def is_not_found(self) -> bool:
        """True when the server reported the resource as missing (404)."""
        return self.status_code == 404


class DecodeError(ForemanClientError):
    """Raised when a response body cannot be decoded into the target type."""
    pass


# Task Errors
class TaskError(ForemanClientError):
    """Base exception for asynchronous task errors."""
    pass


class TaskTimeoutError(TaskError):
    """Raised when a task is still pending after all polling attempts."""

    def __init__(self, task_id: str, attempts: Optional[int] = None):
        self.task_id = task_id
        self.attempts = attempts
        message = f"Timed out waiting for task {task_id}"
        if attempts is not None:
            message += f" after {attempts} attempts"
        super().__init__(message)


# Control Flow Errors
class OperationCancelledError(ForemanClientError):
    """Raised when a caller cancels a retry or polling loop between attempts."""
    pass


class PowerOperationError(ForemanClientError):
    """Raised when the server reports a failed power or boot operation."""
    pass
