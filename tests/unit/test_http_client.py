"""Tests for the booking API client's retry behavior."""
from datetime import datetime
from unittest.mock import Mock, patch

import pytest
import requests

from obelixq.http_client import BookingClient, ServerError


def _response(status_code, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return response


@pytest.fixture
def client():
    # backoff=0 keeps retries instant
    return BookingClient(base_url="http://test.com/", backoff=0)


class TestTenacityRetries:
    """Test exponential backoff retry behavior."""

    def test_retries_on_connection_error(self, client):
        """Should retry 3 times on connection errors."""
        with patch('requests.Session.request') as mock_request:
            mock_request.side_effect = requests.exceptions.ConnectionError("Connection failed")

            with pytest.raises(requests.exceptions.ConnectionError):
                client.health()

            # 1 initial + 3 retries
            assert mock_request.call_count == 4

    def test_retries_on_timeout(self, client):
        with patch('requests.Session.request') as mock_request:
            mock_request.side_effect = requests.exceptions.Timeout("Request timeout")

            with pytest.raises(requests.exceptions.Timeout):
                client.health()

            assert mock_request.call_count == 4

    def test_retries_on_503_service_unavailable(self, client):
        with patch('requests.Session.request') as mock_request:
            mock_request.return_value = _response(503)

            with pytest.raises(ServerError):
                client.health()

            assert mock_request.call_count == 4

    def test_success_on_second_attempt(self, client):
        with patch('requests.Session.request') as mock_request:
            mock_request.side_effect = [
                requests.exceptions.ConnectionError("Failed"),
                _response(200, {"success": True}),
            ]

            assert client.health() == {"success": True}
            assert mock_request.call_count == 2

    def test_conflict_is_not_retried(self, client):
        """A taken slot stays taken; the 409 body goes back to the caller."""
        body = {"success": False, "code": "SLOT_UNAVAILABLE", "alternatives": ["2030-01-07T09:30:00"]}
        with patch('requests.Session.request') as mock_request:
            mock_request.return_value = _response(409, body)

            result = client.book("user-1", "biz-1", "srv-1", datetime(2030, 1, 7, 9, 0))

            assert result == body
            assert mock_request.call_count == 1


class TestRequests:

    def test_book_sends_iso_payload(self, client):
        with patch('requests.Session.request') as mock_request:
            mock_request.return_value = _response(201, {"success": True})

            client.book("user-1", "biz-1", "srv-1", datetime(2030, 1, 7, 9, 30), notes="hi")

            method, url = mock_request.call_args.args
            assert (method, url) == ("POST", "http://test.com/appointments")
            assert mock_request.call_args.kwargs["json"] == {
                "user_id": "user-1",
                "business_id": "biz-1",
                "service_id": "srv-1",
                "scheduled_at": "2030-01-07T09:30:00",
                "notes": "hi",
            }
            assert mock_request.call_args.kwargs["timeout"] == 15

    def test_update_status(self, client):
        with patch('requests.Session.request') as mock_request:
            mock_request.return_value = _response(200, {"success": True})

            client.update_status("apt-1", "confirmed")

            assert mock_request.call_args.args == ("PATCH", "http://test.com/appointments/apt-1/status")
            assert mock_request.call_args.kwargs["json"] == {"status": "confirmed"}

    def test_list_user_appointments_status_param(self, client):
        with patch('requests.Session.request') as mock_request:
            mock_request.return_value = _response(200, {"success": True})

            client.list_user_appointments("user-1", status="pending")

            assert mock_request.call_args.kwargs["params"] == {"status": "pending"}
