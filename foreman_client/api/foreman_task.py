"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Asynchronous Foreman tasks.

Some calls (mostly Katello ones) return as soon as the work is queued
server-side. The caller then polls the task until it is no longer pending.
Whether the task succeeded is reported by the returned ForemanTask record
(state, result), not interpreted here.
"""

import threading
import time
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog

from foreman_client.api.core import decode_str, require_mapping
from foreman_client.exceptions import (
    DecodeError,
    InvalidRequestError,
    OperationCancelledError,
    TaskTimeoutError,
)
from foreman_client.logging_config import get_logger

if TYPE_CHECKING:
    from foreman_client.api.client import ForemanClient

logger = get_logger(__name__)

TASK_ENDPOINT = "foreman_tasks/tasks/{task_id}"


@dataclass
class ForemanTask:
    """Task from /foreman_tasks/api/tasks/<uuid>. Only the main fields are mapped."""

    id: str = ""
    label: str = ""
    pending: bool = False
    action: str = ""
    username: str = ""
    started_at: str = ""
    ended_at: str = ""
    duration: str = ""
    state: str = ""
    result: str = ""
    progress: float = 0.0
    input: Any = None
    output: Any = None
    humanized: Dict[str, Any] = field(default_factory=dict)
    available_actions: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "ForemanTask":
        data = require_mapping(data, cls.__name__)
        pending = data.get("pending", False)
        if not isinstance(pending, bool):
            raise DecodeError(f"Field 'pending' must be a boolean, got {pending!r}")
        try:
            progress = float(data.get("progress") or 0.0)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Field 'progress' must be a number: {e}") from e
        return cls(
            id=decode_str(data.get("id"), "id"),
            label=decode_str(data.get("label"), "label"),
            pending=pending,
            action=decode_str(data.get("action"), "action"),
            username=decode_str(data.get("username"), "username"),
            started_at=decode_str(data.get("started_at"), "started_at"),
            ended_at=decode_str(data.get("ended_at"), "ended_at"),
            duration=decode_str(data.get("duration"), "duration"),
            state=decode_str(data.get("state"), "state"),
            result=decode_str(data.get("result"), "result"),
            progress=progress,
            input=data.get("input"),
            output=data.get("output"),
            humanized=dict(require_mapping(data.get("humanized") or {}, "humanized")),
            available_actions=dict(
                require_mapping(data.get("available_actions") or {}, "available_actions")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def wait_for_task(
    client: "ForemanClient",
    task_id: str,
    attempts: Optional[int] = None,
    interval: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    log: Optional[structlog.stdlib.BoundLogger] = None,
) -> ForemanTask:
    """
    Block until the task is no longer pending.

    Args:
        client: Client used to fetch the task
        task_id: Task UUID
        attempts: Number of fetches, defaults to the client's task_poll_attempts
        interval: Seconds between fetches, defaults to task_poll_interval
        cancel_event: Optional event; setting it stops the wait early
        log: Logger handle, defaults to the client's logger

    Returns:
        The last fetched task, with pending == False

    Raises:
        TaskTimeoutError: If the task is still pending after every attempt
        OperationCancelledError: If cancel_event is set while waiting
        ForemanClientError: Request errors are propagated without retry
    """
    log = log if log is not None else client.log
    attempts = attempts if attempts is not None else client.config.task_poll_attempts
    interval = interval if interval is not None else client.config.task_poll_interval

    if not task_id:
        raise InvalidRequestError("task_id is required")
    if attempts < 1:
        raise InvalidRequestError(f"attempts must be at least 1, got {attempts}")

    endpoint = TASK_ENDPOINT.format(task_id=task_id)

    for attempt in range(1, attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(f"Cancelled while waiting for task {task_id}")

        request = client.new_request("GET", endpoint)
        task = client.send_and_parse(request, ForemanTask, cancel_event)
        log.debug("fetched task", task_id=task_id, attempt=attempt, state=task.state)

        if not task.pending:
            log.info(
                f"Task {task_id} finished",
                state=task.state,
                result=task.result,
                attempts=attempt,
            )
            return task

        if attempt < attempts:
            log.info(f"Task {task_id} is still pending, sleeping for {interval}s and then retrying")
            if cancel_event is not None:
                if cancel_event.wait(interval):
                    raise OperationCancelledError(f"Cancelled while waiting for task {task_id}")
            else:
                time.sleep(interval)

    log.error(f"Timed out waiting for task {task_id}", attempts=attempts)
    raise TaskTimeoutError(task_id, attempts)
