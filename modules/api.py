"""
REST client for the Cues task service.
Each call returns the decoded JSON body; the service reports failures as
{"message": ...} or {"error": ...} bodies, which callers pass to log_err.
"""
import logging
from typing import Any, Optional

import requests

from config.settings import API_BASE_URL, REQUEST_TIMEOUT, USER_AGENT
from modules.errors import ApiError

logger = logging.getLogger(__name__)


class CuesClient:
    """Thin wrapper around the Cues API endpoints."""

    def __init__(self, base_url: str = API_BASE_URL, token: Optional[str] = None,
                 timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/json"

    def _request(self, method: str, endpoint: str, payload: Optional[dict] = None,
                 auth: bool = True) -> dict[str, Any]:
        """Make a request and decode the JSON body."""
        url = f"{self.base_url}/{endpoint}"
        headers = {}
        if auth:
            if not self.token:
                raise ApiError(f"No access token for {method} /{endpoint}")
            headers["Authorization"] = f"Bearer {self.token}"
        else:
            headers["User-Agent"] = USER_AGENT

        logger.debug(f"{method} {url}")
        try:
            resp = self._session.request(
                method=method,
                url=url,
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(f"Could not reach {self.base_url}: {e}") from e

        logger.debug(f"{method} {url} -> {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise ApiError(
                f"Unexpected response from {url} (HTTP {resp.status_code})",
                resp.status_code,
            ) from e

        if not isinstance(body, dict):
            raise ApiError(f"Unexpected response from {url}", resp.status_code)
        return body

    # Projects

    def get_projects(self) -> dict:
        return self._request("GET", "projects")

    def get_project(self, pid: int) -> dict:
        return self._request("GET", f"projects/{pid}")

    def create_project(self, payload: dict) -> dict:
        return self._request("POST", "projects/new", payload)

    def update_project(self, pid: int, payload: dict) -> dict:
        return self._request("PUT", f"projects/{pid}", payload)

    def delete_project(self, pid: int) -> dict:
        return self._request("DELETE", f"projects/{pid}")

    # Tasks

    def get_tasks(self) -> dict:
        return self._request("GET", "tasks")

    def create_task(self, payload: dict) -> dict:
        return self._request("POST", "tasks/new", payload)

    def update_task(self, tid: int, payload: dict) -> dict:
        return self._request("PUT", f"tasks/{tid}", payload)

    def delete_task(self, tid: int) -> dict:
        return self._request("DELETE", f"tasks/{tid}")

    # Auth

    def get_user(self) -> dict:
        return self._request("GET", "auth/user")

    def login(self, payload: dict) -> dict:
        return self._request("POST", "auth/login", payload, auth=False)

    def refresh(self, refresh_token: str) -> dict:
        return self._request("POST", "auth/refresh", {"refresh_token": refresh_token}, auth=False)
