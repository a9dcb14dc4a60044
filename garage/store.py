"""HTTP client for the garage persistence service."""

from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from .errors import AuthExpired, PersistenceFailure, VehicleNotFound


def _error_message(resp: requests.Response) -> str:
    """Best human-readable message from an error response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("msg") or body.get("message")
        if message:
            return str(message)
    return f"Server error: {resp.status_code} {resp.reason or ''}".strip()


class RemoteStore:
    """
    Persistence collaborator reached over authenticated REST calls.

    Every request carries the bearer token. A 401 is always AuthExpired,
    whatever the reason (expired, malformed or missing token).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(
                method, url, json=json, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise PersistenceFailure(f"Could not reach the garage server: {e}") from e

        if resp.status_code == 401:
            raise AuthExpired(_error_message(resp))
        if resp.status_code == 404:
            raise VehicleNotFound(_error_message(resp), resp.status_code)
        if not resp.ok:
            message = _error_message(resp)
            logger.warning(f"{method} {path} -> {resp.status_code}: {message}")
            raise PersistenceFailure(message, resp.status_code)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise PersistenceFailure("Server sent an invalid response.", resp.status_code) from e

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def register(self, email: str, password: str) -> str:
        data = self._request(
            "POST", "/api/auth/register", {"email": email, "password": password}
        )
        return data.get("msg", "Registered.")

    def login(self, email: str, password: str) -> str:
        """Exchange credentials for a bearer token and keep it."""
        data = self._request(
            "POST", "/api/auth/login", {"email": email, "password": password}
        )
        token = data.get("token")
        if not token:
            raise PersistenceFailure("Login response did not include a token.")
        self.token = token
        return token

    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    def list_vehicles(self) -> List[Dict[str, Any]]:
        data = self._request("GET", "/vehicles")
        if not isinstance(data, list):
            raise PersistenceFailure("Server sent an invalid vehicle list.")
        logger.info(f"Fetched {len(data)} vehicles")
        return data

    def create_vehicle(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/vehicles", record)

    def update_vehicle(self, vehicle_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/vehicles/{vehicle_id}", record)

    def delete_vehicle(self, vehicle_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/vehicles/{vehicle_id}")
