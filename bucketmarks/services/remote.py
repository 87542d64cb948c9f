from __future__ import annotations

from dataclasses import dataclass

import httpx

from bucketmarks.entities import Tree


DEFAULT_HEADERS = {
    "User-Agent": "Bucketmarks/1.0",
    "Accept": "application/json",
}

NETWORK_ERROR = "Network error"


@dataclass
class RemoteResult:
    data: Tree | None = None
    last_modified: str | None = None
    token: str | None = None
    username: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _normalize_error(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return f"{NETWORK_ERROR}: {message}"
    return f"{NETWORK_ERROR}: {exc.__class__.__name__}"


class RemoteSyncClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers=DEFAULT_HEADERS,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        failure: str,
        identity: str | None = None,
        payload: dict | None = None,
    ) -> tuple[dict | None, str | None]:
        headers = {}
        if identity:
            headers["Authorization"] = f"Bearer {identity}"
        try:
            response = self._client.request(method, path, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            return None, _normalize_error(exc)

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            return None, message or f"{failure} (HTTP {response.status_code})"
        if not isinstance(body, dict):
            return None, f"{failure}: malformed response"
        return body, None

    def check(self, identity: str) -> RemoteResult:
        body, error = self._request(
            "GET", "/api/data/check", "Failed to check data", identity=identity
        )
        if error:
            return RemoteResult(error=error)
        return RemoteResult(last_modified=body.get("lastModified"))

    def load(self, identity: str) -> RemoteResult:
        body, error = self._request(
            "GET", "/api/data", "Failed to load data", identity=identity
        )
        if error:
            return RemoteResult(error=error)
        return RemoteResult(
            data=Tree.from_dict(body.get("data")),
            last_modified=body.get("lastModified"),
        )

    def save(self, identity: str, tree: Tree) -> RemoteResult:
        body, error = self._request(
            "POST",
            "/api/data",
            "Failed to save data",
            identity=identity,
            payload={"data": tree.as_dict()},
        )
        if error:
            return RemoteResult(error=error)
        if not body.get("lastModified"):
            return RemoteResult(error="Failed to save data: missing lastModified")
        return RemoteResult(last_modified=body["lastModified"])

    def register(self, username: str, password: str) -> RemoteResult:
        body, error = self._request(
            "POST",
            "/api/auth/register",
            "Registration failed",
            payload={"username": username, "password": password},
        )
        if error:
            return RemoteResult(error=error)
        return RemoteResult(username=body.get("username", username))

    def login(self, username: str, password: str) -> RemoteResult:
        body, error = self._request(
            "POST",
            "/api/auth/login",
            "Login failed",
            payload={"username": username, "password": password},
        )
        if error:
            return RemoteResult(error=error)
        return RemoteResult(token=body.get("token"), username=body.get("username"))

    def logout(self, identity: str) -> RemoteResult:
        _, error = self._request(
            "POST", "/api/auth/logout", "Logout failed", identity=identity
        )
        return RemoteResult(error=error)

    def session(self, identity: str) -> RemoteResult:
        body, error = self._request(
            "GET", "/api/auth/session", "Not authenticated", identity=identity
        )
        if error:
            return RemoteResult(error=error)
        return RemoteResult(username=body.get("username"))
