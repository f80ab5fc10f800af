"""
HTTP access to the GitHub REST API (httpx). One request per call: no retries, no backoff,
no caching. Every non-2xx answer becomes ApiError with the status and GitHub's message.
"""
import logging
from typing import Any

import httpx

from ghapp_auth.config import DEFAULT_API_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, LIST_LIMIT, PER_PAGE, AppConfig
from ghapp_auth.credentials import Credential, authorization_header
from ghapp_auth.errors import ApiError

logger = logging.getLogger(__name__)

GITHUB_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


def _error_message(r: httpx.Response) -> str:
    """GitHub error bodies look like {"message": ..., "documentation_url": ...}."""
    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return (r.text or r.reason_phrase or "request failed")[:500]


class GitHubTransport:
    """
    Thin wrapper around httpx.Client bound to one API base URL.
    Authentication is per call: pass a Credential, or None for public endpoints.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.api_url,
            timeout=timeout,
            headers={
                "Accept": GITHUB_MEDIA_TYPE,
                "User-Agent": user_agent,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: AppConfig, transport: httpx.BaseTransport | None = None) -> "GitHubTransport":
        return cls(config.api_url, timeout=config.timeout, user_agent=config.user_agent, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def send(
        self,
        method: str,
        path: str,
        *,
        credential: Credential | None = None,
        params: dict | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Issue one request; return the response if 2xx, else raise ApiError."""
        logger.debug("%s %s", method, path)
        try:
            r = self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=authorization_header(credential),
            )
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}", status_code=None, path=path) from e
        if r.status_code >= 400:
            message = _error_message(r)
            logger.warning("%s %s -> %s: %s", method, path, r.status_code, message)
            raise ApiError(message, status_code=r.status_code, path=path)
        return r

    def request(
        self,
        method: str,
        path: str,
        *,
        credential: Credential | None = None,
        params: dict | None = None,
        json: Any = None,
    ) -> Any:
        """Like send(), but returns the decoded JSON body (None for empty bodies such as 204)."""
        r = self.send(method, path, credential=credential, params=params, json=json)
        if r.status_code == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned invalid JSON", status_code=r.status_code, path=path) from e

    def paginate(
        self,
        path: str,
        *,
        credential: Credential | None = None,
        params: dict | None = None,
        per_page: int = PER_PAGE,
        limit: int = LIST_LIMIT,
    ) -> list:
        """
        GET a list endpoint page by page following Link: rel="next", stopping after
        `limit` items. Endpoints that wrap their list (e.g. {"total_count", "repositories"})
        are unwrapped by taking the first list value.
        """
        items: list = []
        url: str | None = path
        page_params: dict | None = {**(params or {}), "per_page": per_page}
        while url and len(items) < limit:
            r = self.send("GET", url, credential=credential, params=page_params)
            try:
                body = r.json()
            except ValueError as e:
                raise ApiError(f"GET {url} returned invalid JSON", status_code=r.status_code, path=url) from e
            if isinstance(body, dict):
                body = next((v for v in body.values() if isinstance(v, list)), [])
            if not isinstance(body, list):
                raise ApiError(f"GET {url} did not return a list", status_code=r.status_code, path=url)
            items.extend(body)
            url = r.links.get("next", {}).get("url")
            # the next link already carries the query string
            page_params = None
        return items[:limit]
