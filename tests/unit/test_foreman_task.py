"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Unit tests for asynchronous task polling.
"""

import threading
from unittest.mock import patch

import pytest

from foreman_client.api.foreman_task import ForemanTask, wait_for_task
from foreman_client.api.server import ClientConfig
from foreman_client.exceptions import (
    DecodeError,
    HTTPError,
    InvalidRequestError,
    OperationCancelledError,
    TaskTimeoutError,
)

TASK_ID = "8f2c6d3e-1b4a-4c55-9d0e-5a7b3c2d1e0f"


def _task(pending, state="running", result="pending"):
    return {"id": TASK_ID, "label": "Actions::Katello::Repository::Sync",
            "pending": pending, "state": state, "result": result, "progress": 0.5}


class TestForemanTask:
    """Tests for decoding task records."""
    
    def test_from_dict(self):
        task = ForemanTask.from_dict({
            **_task(False, "stopped", "success"),
            "progress": 1,
            "humanized": {"action": "Synchronize"},
            "available_actions": {"cancellable": False},
            "input": {"repository": {"id": 1}},
        })
        
        assert task.id == TASK_ID
        assert task.pending is False
        assert task.state == "stopped"
        assert task.result == "success"
        assert task.progress == 1.0
        assert task.humanized == {"action": "Synchronize"}
        assert task.input == {"repository": {"id": 1}}
    
    def test_pending_must_be_boolean(self):
        with pytest.raises(DecodeError):
            ForemanTask.from_dict({"id": TASK_ID, "pending": "yes"})
    
    def test_progress_must_be_number(self):
        with pytest.raises(DecodeError):
            ForemanTask.from_dict({"id": TASK_ID, "progress": "half"})


class TestWaitForTask:
    """Tests for wait_for_task."""
    
    def test_polls_until_not_pending(self, client, response_factory):
        """Test pending, pending, done results in three fetches."""
        responses = [
            response_factory(200, _task(True)),
            response_factory(200, _task(True)),
            response_factory(200, _task(False, "stopped", "success")),
        ]
        
        with patch.object(client._session, "send", side_effect=responses) as mock_send, \
                patch("foreman_client.api.foreman_task.time.sleep") as mock_sleep:
            task = wait_for_task(client, TASK_ID, attempts=3, interval=0.5)
        
        assert task.pending is False
        assert task.result == "success"
        assert mock_send.call_count == 3
        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.5)
    
    def test_request_url(self, client, response_factory):
        """Test the task endpoint uses the tasks plugin prefix."""
        with patch.object(client._session, "send",
                          return_value=response_factory(200, _task(False))) as mock_send:
            wait_for_task(client, TASK_ID, attempts=1)
        
        request = mock_send.call_args[0][0]
        assert request.method == "GET"
        assert request.url == f"https://foreman.example.com/foreman_tasks/api/tasks/{TASK_ID}"
    
    def test_timeout_when_always_pending(self, client, response_factory):
        """Test TaskTimeoutError after every attempt is pending."""
        responses = [response_factory(200, _task(True)) for _ in range(3)]
        
        with patch.object(client._session, "send", side_effect=responses) as mock_send, \
                patch("foreman_client.api.foreman_task.time.sleep") as mock_sleep:
            with pytest.raises(TaskTimeoutError) as exc_info:
                wait_for_task(client, TASK_ID, attempts=3, interval=1)
        
        assert exc_info.value.task_id == TASK_ID
        assert exc_info.value.attempts == 3
        assert mock_send.call_count == 3
        # no sleep after the final attempt
        assert mock_sleep.call_count == 2
    
    def test_defaults_from_client_config(self, make_client, response_factory):
        """Test attempts and interval default to the client configuration."""
        client = make_client(ClientConfig(task_poll_attempts=2, task_poll_interval=0.25))
        responses = [response_factory(200, _task(True)) for _ in range(2)]
        
        with patch.object(client._session, "send", side_effect=responses) as mock_send, \
                patch("foreman_client.api.foreman_task.time.sleep") as mock_sleep:
            with pytest.raises(TaskTimeoutError):
                wait_for_task(client, TASK_ID)
        
        assert mock_send.call_count == 2
        mock_sleep.assert_called_once_with(0.25)
    
    def test_request_error_propagates(self, client, response_factory):
        """Test that fetch errors abort the wait without retry."""
        with patch.object(client._session, "send",
                          return_value=response_factory(404, b"not found")) as mock_send:
            with pytest.raises(HTTPError):
                wait_for_task(client, TASK_ID, attempts=3, interval=0)
        
        assert mock_send.call_count == 1
    
    def test_empty_task_id(self, client):
        with pytest.raises(InvalidRequestError):
            wait_for_task(client, "")
    
    def test_invalid_attempts(self, client):
        with pytest.raises(InvalidRequestError):
            wait_for_task(client, TASK_ID, attempts=0)
    
    def test_cancelled_before_first_fetch(self, client):
        event = threading.Event()
        event.set()
        
        with patch.object(client._session, "send") as mock_send:
            with pytest.raises(OperationCancelledError):
                wait_for_task(client, TASK_ID, cancel_event=event)
        
        mock_send.assert_not_called()
    
    def test_cancelled_while_sleeping(self, client, response_factory):
        """Test that setting the event interrupts the wait between fetches."""
        event = threading.Event()
        
        def send(request, **kwargs):
            event.set()
            return response_factory(200, _task(True))
        
        with patch.object(client._session, "send", side_effect=send) as mock_send:
            with pytest.raises(OperationCancelledError):
                wait_for_task(client, TASK_ID, attempts=5, interval=30, cancel_event=event)
        
        assert mock_send.call_count == 1
