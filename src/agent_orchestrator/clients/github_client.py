# src/agent_orchestrator/clients/github_client.py

from __future__ import annotations

import logging

import httpx

from ..core.errors import RemoteCallError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


def split_repo(repo: str) -> tuple[str, str]:
    """Split "owner/name" into its parts; anything else is a ValueError."""
    parts = (repo or "").strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"repository must be in owner/name form, got {repo!r}")
    return parts[0], parts[1]


class GitHubClient:
    """Opens pull requests through the GitHub REST API (v3)."""

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token or not token.strip():
            raise ValueError("GitHub token is not set. Set ORCH_GITHUB_TOKEN in your .env.")
        self._api_url = api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def create_pull_request(
        self,
        *,
        repo: str,
        branch: str,
        title: str,
        body: str,
        base: str = "main",
    ) -> str:
        owner, name = split_repo(repo)
        url = f"{self._api_url}/repos/{owner}/{name}/pulls"
        try:
            response = await self._client.post(
                url,
                headers=self._headers,
                json={"title": title, "body": body, "head": branch, "base": base},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteCallError(
                "create_pull_request",
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteCallError("create_pull_request", str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise RemoteCallError("create_pull_request", "response is not JSON") from e

        pr_url = data.get("html_url") if isinstance(data, dict) else None
        if not isinstance(pr_url, str) or not pr_url:
            raise RemoteCallError("create_pull_request", "response carries no html_url")
        logger.info("Pull request created repo=%s head=%s base=%s url=%s", repo, branch, base, pr_url)
        return pr_url
