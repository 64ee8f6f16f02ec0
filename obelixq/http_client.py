"""HTTP client for the booking API.

Pattern: requests.Session with tenacity retries and connection pooling.
- Connection errors, timeouts and 5xx responses are retried with
  exponential backoff
- 4xx responses (validation, not found, slot taken) are returned to the
  caller untouched: retrying them cannot succeed
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    before_sleep_log,
    retry_if_exception_type,
    Retrying,
    stop_after_attempt,
    wait_exponential,
)

from obelixq import config

logger = logging.getLogger(__name__)


class ServerError(requests.exceptions.HTTPError):
    """5xx response from the booking API."""


RETRYABLE_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    ServerError,
)


def create_http_session(pool_size: int = 10) -> requests.Session:
    """
    Create HTTP session with connection pooling.

    Args:
        pool_size: Connections kept per host

    Returns:
        Configured requests.Session
    """
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class BookingClient:
    """Thin client over the booking API endpoints."""

    def __init__(
        self,
        base_url: str = config.MOCK_API_BASE_URL,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
        backoff: float = 1.0,
        timeout: int = 15,
    ):
        """
        Args:
            base_url: API root, e.g. http://localhost:5000
            session: Shared session (a pooled one is created if None)
            max_retries: Retries after the first attempt
            backoff: Exponential backoff multiplier; delays 1s, 2s, 4s...
                     (0 disables waiting, useful in tests)
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or create_http_session()
        self.max_retries = max_retries
        self.backoff = backoff
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        kwargs.setdefault("timeout", self.timeout)
        url = f"{self.base_url}{path}"

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff, min=self.backoff, max=8),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        for attempt in retrying:
            with attempt:
                response = self.session.request(method, url, **kwargs)
                if response.status_code >= 500:
                    raise ServerError(f"{response.status_code} from {method} {url}", response=response)

        return response.json()

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def list_businesses(self) -> Dict[str, Any]:
        return self._request("GET", "/businesses")

    def available_slots(self, business_id: str, day: date, time_of_day: str = "any") -> Dict[str, Any]:
        return self._request(
            "GET",
            f"/businesses/{business_id}/slots",
            params={"date": day.isoformat(), "time_of_day": time_of_day},
        )

    def book(
        self,
        user_id: str,
        business_id: str,
        service_id: str,
        scheduled_at: datetime,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "user_id": user_id,
            "business_id": business_id,
            "service_id": service_id,
            "scheduled_at": scheduled_at.isoformat(),
        }
        if notes:
            payload["notes"] = notes
        return self._request("POST", "/appointments", json=payload)

    def get_appointment(self, appointment_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/appointments/{appointment_id}")

    def update_status(self, appointment_id: str, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/appointments/{appointment_id}/status", json={"status": status})

    def cancel(self, appointment_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/appointments/{appointment_id}/cancel")

    def list_user_appointments(self, user_id: str, status: Optional[str] = None) -> Dict[str, Any]:
        params = {"status": status} if status else None
        return self._request("GET", f"/users/{user_id}/appointments", params=params)
