"""
Synchronous HTTP client for the trip planner API.

Requests are sent once; there is no retry and no timeout beyond the
transport default.
"""
import logging
import os
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_URL = "http://localhost:8000"


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def resolve_api_base_url(override: Optional[str] = None, domain: Optional[str] = None) -> str:
    """
    Base URL for API calls.

    An explicit override wins, then the public domain the app is served
    from, then localhost. Unset arguments fall back to TRIP_API_URL and
    TRIP_PUBLIC_DOMAIN.
    """
    override = override if override is not None else os.environ.get("TRIP_API_URL")
    domain = domain if domain is not None else os.environ.get("TRIP_PUBLIC_DOMAIN")
    if override:
        return override.rstrip("/")
    if domain:
        return f"https://{domain.strip('/')}"
    return DEFAULT_LOCAL_URL


class TripApiClient:
    """Thin wrapper over the REST endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = resolve_api_base_url(base_url)
        self.token = token
        self._client = httpx.Client(base_url=self.base_url, transport=transport)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self._client.request(method, path, json=json, headers=headers)
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("error", response.text) if isinstance(body, dict) else response.text
            logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
            raise ApiError(response.status_code, message)
        return response.json()

    # Auth

    def register(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        data = self._request("POST", "/api/auth/register", {"email": email, "password": password, "name": name})
        self.token = data["token"]
        return data

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/api/auth/login", {"email": email, "password": password})
        self.token = data["token"]
        return data

    def logout(self) -> None:
        self._request("POST", "/api/auth/logout")
        self.token = None

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/me")

    # Trips

    def list_trips(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/trips")

    def get_trip(self, trip_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/trips/{trip_id}")

    def create_trip(self, trip: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/trips", trip)

    # Itinerary

    def generate_itinerary(self, trip_id: int, interests: List[str], pace: str = "moderate") -> Dict[str, Any]:
        data = self._request("POST", f"/api/trips/{trip_id}/generate", {"interests": interests, "pace": pace})
        return data["itinerary"]

    def get_itinerary(self, trip_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/trips/{trip_id}/itinerary")["itinerary"]

    def set_activity_status(self, trip_id: int, activity_id: int, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/trips/{trip_id}/activities/{activity_id}/status", {"status": status})

    def reoptimize(
        self,
        trip_id: int,
        failed_activity: str,
        time_available: Optional[int] = None,
        constraints: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        data = self._request("POST", f"/api/trips/{trip_id}/reoptimize", {
            "failedActivity": failed_activity,
            "timeAvailable": time_available,
            "constraints": constraints or [],
        })
        return data["suggestions"]

    # Expenses

    def list_expenses(self, trip_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/trips/{trip_id}/expenses")

    def add_expense(self, trip_id: int, expense: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"/api/trips/{trip_id}/expenses", expense)

    def budget(self, trip_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/trips/{trip_id}/budget")
