"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Bounded retry for mutations the Foreman API is known to fail intermittently
(host create/update, power and boot commands).

Attempts are repeated immediately, without backoff and without looking at
the kind of failure, until one succeeds or the attempt budget is spent.
"""

import threading
from typing import Callable, Optional, TypeVar

import structlog

from foreman_client.exceptions import (
    ForemanClientError,
    InvalidRequestError,
    OperationCancelledError,
    RequestValidationError,
)
from foreman_client.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


def retry_operation(
    operation: Callable[[], T],
    max_attempts: int,
    operation_name: str = "operation",
    cancel_event: Optional[threading.Event] = None,
    log: Optional[structlog.stdlib.BoundLogger] = None,
) -> T:
    """
    Execute an operation, retrying on client errors up to max_attempts times.
    
    Args:
        operation: Callable to execute
        max_attempts: Total number of attempts, including the first one
        operation_name: Name of the operation for logging
        cancel_event: Optional event; when set, no further attempt is started
        log: Logger handle, defaults to this module's logger
        
    Returns:
        Result of the first successful attempt
        
    Raises:
        InvalidRequestError: If max_attempts is less than 1
        OperationCancelledError: If cancel_event is set before an attempt
        ForemanClientError: The last error if every attempt fails
        
    Example:
        host = retry_operation(
            lambda: client.send_and_parse(request, ForemanHost),
            max_attempts=3,
            operation_name="create_host",
        )
    """
    log = log if log is not None else logger
    
    if max_attempts < 1:
        raise InvalidRequestError(f"max_attempts must be at least 1, got {max_attempts}")
    
    last_exception: Optional[ForemanClientError] = None
    
    for attempt in range(1, max_attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            log.info(f"{operation_name} cancelled before attempt {attempt}/{max_attempts}")
            raise OperationCancelledError(
                f"{operation_name} cancelled after {attempt - 1} attempt(s)"
            ) from last_exception
        
        log.debug(f"{operation_name}: attempt {attempt}/{max_attempts}")
        try:
            return operation()
        except (RequestValidationError, OperationCancelledError):
            raise
        except ForemanClientError as e:
            last_exception = e
            if attempt < max_attempts:
                log.warning(
                    f"Failure in {operation_name} (attempt {attempt}/{max_attempts}): "
                    f"{type(e).__name__}. Retrying...",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                )
            else:
                log.error(
                    f"Permanent failure in {operation_name} after {max_attempts} attempts: "
                    f"{type(e).__name__}",
                    operation=operation_name,
                    total_attempts=max_attempts,
                )
    
    raise last_exception
