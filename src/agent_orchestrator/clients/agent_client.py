# src/agent_orchestrator/clients/agent_client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import RemoteCallError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://jules.googleapis.com/v1alpha"
DEFAULT_TIMEOUT_SECONDS = 30.0


class AgentApiClient:
    """
    Thin async wrapper around the coding-agent session API.

    Every method maps one HTTP call; transport and HTTP errors are converted
    into RemoteCallError. The API key travels as the `key` query parameter.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("Agent API key is not set. Set ORCH_AGENT_API_KEY in your .env.")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(
                method, url, params={"key": self._api_key}, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteCallError(
                operation,
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteCallError(operation, str(e) or e.__class__.__name__) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteCallError(operation, "response is not JSON") from e

    async def create_session(self, *, repo: str, description: str) -> str:
        data = await self._request(
            "create_session",
            "POST",
            "/sessions",
            json={"repo": repo, "description": description},
        )
        # Accept the field names the API has used for the identifier.
        session_id = None
        if isinstance(data, dict):
            session_id = data.get("sessionId") or data.get("id") or data.get("name")
        if isinstance(session_id, str):
            # Resource names ("sessions/123") carry the collection prefix.
            session_id = session_id.removeprefix("sessions/")
        if not isinstance(session_id, str) or not session_id:
            raise RemoteCallError("create_session", "response carries no session id")
        logger.info("Agent session created session_id=%s repo=%s", session_id, repo)
        return session_id

    async def get_session_state(self, session_id: str) -> str:
        data = await self._request("get_session", "GET", f"/sessions/{session_id}")
        state = data.get("state") if isinstance(data, dict) else None
        if not isinstance(state, str):
            raise RemoteCallError("get_session", f"session {session_id} has no state")
        return state

    async def approve_plan(self, session_id: str) -> None:
        await self._request("approve_plan", "POST", f"/sessions/{session_id}:approvePlan")
        logger.info("Agent plan approved session_id=%s", session_id)

    async def approve_diff(self, session_id: str) -> None:
        await self._request("approve_diff", "POST", f"/sessions/{session_id}:approveDiff")
        logger.info("Agent diff approved session_id=%s", session_id)

    async def cancel_session(self, session_id: str) -> None:
        await self._request("cancel_session", "POST", f"/sessions/{session_id}:cancel")
        logger.info("Agent session cancelled session_id=%s", session_id)
