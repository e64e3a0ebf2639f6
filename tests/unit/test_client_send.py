"""
Unit tests for ForemanClient transport and response decoding.
"""

import threading
import time
from unittest.mock import patch

import pytest
import requests

from foreman_client.api.client import RawResponse
from foreman_client.api.core import ForemanObject
from foreman_client.exceptions import (
    DecodeError,
    HTTPError,
    NilRequestError,
    OperationCancelledError,
    ResponseReadError,
    TransportError,
)


class TestSend:
    """Test ForemanClient.send."""

    def test_nil_request(self, client, response_factory):
        with pytest.raises(NilRequestError) as exc_info:
            client.send(None)
        assert exc_info.value.status_code == -1
        assert exc_info.value.body == b""

    def test_status_code_and_body(self, client, response_factory):
        response = response_factory(200, b"Hello, World!")
        with patch.object(client._session, "send", return_value=response) as mock_send:
            raw = client.send(client.new_request("GET", "/foo"))

        assert raw == RawResponse(status_code=200, body=b"Hello, World!")
        response.__exit__.assert_called_once()
        _, kwargs = mock_send.call_args
        assert kwargs["stream"] is True
        assert kwargs["verify"] is True
        assert kwargs["timeout"] == client.config.timeout

    def test_transport_failure(self, client, response_factory):
        with patch.object(
            client._session, "send",
            side_effect=requests.exceptions.ConnectionError("connection refused"),
        ):
            with pytest.raises(TransportError) as exc_info:
                client.send(client.new_request("GET", "/foo"))

        assert exc_info.value.status_code == -1
        assert exc_info.value.body == b""
        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)

    def test_read_failure_keeps_status_code(self, client, response_factory):
        response = response_factory(
            200, read_error=requests.exceptions.ChunkedEncodingError("truncated")
        )
        with patch.object(client._session, "send", return_value=response):
            with pytest.raises(ResponseReadError) as exc_info:
                client.send(client.new_request("GET", "/foo"))

        assert exc_info.value.status_code == 200
        assert exc_info.value.body == b""
        response.__exit__.assert_called_once()

    def test_empty_body(self, client, response_factory):
        response = response_factory(204, b"")
        with patch.object(client._session, "send", return_value=response):
            raw = client.send(client.new_request("DELETE", "/foo/1"))
        assert raw.status_code == 204
        assert raw.body == b""


class TestSendAndParse:
    """Test ForemanClient.send_and_parse."""

    def test_status_error_contains_status_and_body(self, client, response_factory):
        response = response_factory(500, "boom")
        with patch.object(client._session, "send", return_value=response):
            with pytest.raises(HTTPError) as exc_info:
                client.send_and_parse(client.new_request("GET", "/foo"))

        error = exc_info.value
        assert error.status_code == 500
        assert error.body == "boom"
        assert error.endpoint == "https://foreman.example.com/api/foo"
        assert "500" in str(error)
        assert "boom" in str(error)
        assert not error.is_not_found

    def test_not_found(self, client, response_factory):
        with patch.object(client._session, "send", return_value=response_factory(404, "{}")):
            with pytest.raises(HTTPError) as exc_info:
                client.send_and_parse(client.new_request("GET", "/foo/1"), dict)
        assert exc_info.value.is_not_found

    @pytest.mark.parametrize("status_code", [200, 201, 202, 204, 299])
    def test_success_without_target(self, client, response_factory, status_code):
        with patch.object(client._session, "send", return_value=response_factory(status_code, "not json")):
            assert client.send_and_parse(client.new_request("GET", "/foo")) is None

    @pytest.mark.parametrize("status_code", [100, 199, 300, 301, 400, 422, 503])
    def test_non_2xx_is_error(self, client, response_factory, status_code):
        with patch.object(client._session, "send", return_value=response_factory(status_code, "")):
            with pytest.raises(HTTPError):
                client.send_and_parse(client.new_request("GET", "/foo"))

    def test_dict_target(self, client, response_factory):
        with patch.object(client._session, "send", return_value=response_factory(200, {"a": 1})):
            assert client.send_and_parse(client.new_request("GET", "/foo"), dict) == {"a": 1}

    def test_record_target(self, client, response_factory):
        body = {"id": 7, "name": "example", "created_at": "2024-01-01 00:00:00 UTC"}
        with patch.object(client._session, "send", return_value=response_factory(200, body)):
            record = client.send_and_parse(client.new_request("GET", "/foo/7"), ForemanObject)

        assert isinstance(record, ForemanObject)
        assert record.id == 7
        assert record.name == "example"
        assert record.created_at == "2024-01-01 00:00:00 UTC"
        assert record.updated_at == ""

    def test_malformed_json(self, client, response_factory):
        with patch.object(client._session, "send", return_value=response_factory(200, "{not json")):
            with pytest.raises(DecodeError):
                client.send_and_parse(client.new_request("GET", "/foo"), dict)

    def test_shape_mismatch(self, client, response_factory):
        with patch.object(client._session, "send", return_value=response_factory(200, [1, 2])):
            with pytest.raises(DecodeError):
                client.send_and_parse(client.new_request("GET", "/foo"), ForemanObject)

    def test_transport_error_propagates_unchanged(self, client, response_factory):
        error = requests.exceptions.Timeout("timed out")
        with patch.object(client._session, "send", side_effect=error):
            with pytest.raises(TransportError) as exc_info:
                client.send_and_parse(client.new_request("GET", "/foo"), dict)
        assert exc_info.value.__cause__ is error

    def test_nil_request(self, client, response_factory):
        with pytest.raises(NilRequestError):
            client.send_and_parse(None, dict)


class TestCancellableSend:
    """Test aborting an exchange through a cancel event."""

    def test_cancel_unblocks_caller_in_flight(self, client, response_factory):
        release = threading.Event()
        cancel = threading.Event()
        response = response_factory(200, {"id": 1})

        def slow_send(request, **kwargs):
            release.wait(5)
            return response

        timer = threading.Timer(0.1, cancel.set)
        timer.start()
        try:
            with patch.object(client._session, "send", side_effect=slow_send):
                start = time.monotonic()
                with pytest.raises(OperationCancelledError):
                    client.send_and_parse(client.new_request("GET", "/foo"), dict, cancel)
                elapsed = time.monotonic() - start

                assert elapsed < 1.0

                # the late response is closed without being read
                release.set()
                deadline = time.monotonic() + 5
                while not response.close.called and time.monotonic() < deadline:
                    time.sleep(0.01)
        finally:
            timer.cancel()
            release.set()

        response.close.assert_called()

    def test_cancelled_before_sending(self, client):
        cancel = threading.Event()
        cancel.set()

        with patch.object(client._session, "send") as mock_send:
            with pytest.raises(OperationCancelledError):
                client.send(client.new_request("GET", "/foo"), cancel)

        mock_send.assert_not_called()

    def test_completes_when_not_cancelled(self, client, response_factory):
        cancel = threading.Event()

        with patch.object(client._session, "send",
                          return_value=response_factory(200, {"id": 1})):
            result = client.send_and_parse(client.new_request("GET", "/foo"), dict, cancel)

        assert result == {"id": 1}
        assert not cancel.is_set()

    def test_worker_errors_propagate(self, client):
        cancel = threading.Event()
        error = requests.exceptions.ConnectionError("reset")

        with patch.object(client._session, "send", side_effect=error):
            with pytest.raises(TransportError) as exc_info:
                client.send(client.new_request("GET", "/foo"), cancel)

        assert exc_info.value.__cause__ is error
