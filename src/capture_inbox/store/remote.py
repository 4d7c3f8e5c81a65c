"""HTTP client for the remote capture store.

Contract (one endpoint, JSON bodies):
    GET    -> {"captures": [...]}
    POST   {"captures": [...]} replaces the collection
    POST   {"capture": {...}} appends one capture
    DELETE {"id": "..."} removes one capture
Every request carries ``Authorization: Bearer <token>`` from the credential
provider. 401/403 raise Unauthorized; transport errors, timeouts, other
non-2xx statuses and malformed bodies raise PersistenceUnavailable.
"""

import json
import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from capture_inbox.errors import PersistenceUnavailable, Unauthorized
from capture_inbox.models.capture import Capture

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    def get_credential(self) -> str | None: ...


class RemoteStore:
    def __init__(
        self,
        base_url: str,
        credentials: CredentialProvider,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._credentials = credentials
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    def has_credential(self) -> bool:
        return bool(self._credentials.get_credential())

    async def load(self) -> list[Capture]:
        """Fetch the full collection. A 404 or empty body means no captures yet."""
        response = await self._request("GET")
        if response.status_code == 404 or not response.content.strip():
            return []
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PersistenceUnavailable("Remote store returned undecodable JSON") from exc
        if not isinstance(payload, dict):
            raise PersistenceUnavailable("Remote store returned a malformed body")

        rows = payload.get("captures") or []
        if not isinstance(rows, list):
            raise PersistenceUnavailable("Remote store 'captures' is not a list")

        captures = []
        for row in rows:
            try:
                captures.append(Capture.model_validate(row))
            except ValidationError:
                logger.warning("Skipping undecodable remote capture row")
        return captures

    async def save_all(self, captures: list[Capture]) -> None:
        await self._request(
            "POST", {"captures": [c.model_dump(mode="json") for c in captures]}
        )

    async def append(self, capture: Capture) -> None:
        await self._request("POST", {"capture": capture.model_dump(mode="json")})

    async def delete(self, capture_id: str) -> None:
        """Remove one capture. Deleting an id the remote never had is not an error."""
        await self._request("DELETE", {"id": capture_id})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, body: dict[str, Any] | None = None) -> httpx.Response:
        token = self._credentials.get_credential()
        if not token:
            raise Unauthorized("No credential available for the remote store")

        try:
            response = await self._client.request(
                method,
                self.base_url,
                json=body,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise PersistenceUnavailable(f"Remote store {method} failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise Unauthorized(f"Remote store rejected the credential ({response.status_code})")
        if response.status_code == 404 and method in ("GET", "DELETE"):
            return response
        if response.status_code >= 400:
            raise PersistenceUnavailable(
                f"Remote store {method} returned HTTP {response.status_code}"
            )
        return response
