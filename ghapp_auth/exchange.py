"""
Token exchange: present the app assertion to resolve an installation, then trade it for an
installation access token (valid 1 hour, scoped to that installation).
Also the pass-through /app calls that authenticate the same way. Nothing here is cached;
every failure is raised to the caller.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

from ghapp_auth.assertion import Assertion
from ghapp_auth.config import LIST_LIMIT
from ghapp_auth.credentials import BearerAssertion
from ghapp_auth.errors import ApiError, ResolutionError, TokenIssuanceError
from ghapp_auth.target import InstallationTarget, parse_target
from ghapp_auth.transport import GitHubTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    value: str
    installation_id: int
    expires_at: datetime | None = None
    permissions: dict[str, str] = field(default_factory=dict)
    repository_selection: str | None = None

    def expired(self, now: datetime | None = None) -> bool:
        """False when GitHub did not report an expiry."""
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"AccessToken(installation_id={self.installation_id}, expires_at={self.expires_at!r})"


def _parse_timestamp(raw: str | None) -> datetime | None:
    """GitHub timestamps are RFC 3339, e.g. 2025-01-01T00:00:00Z."""
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00")).astimezone(timezone.utc)


def _as_app(assertion: Assertion) -> BearerAssertion:
    assertion.ensure_fresh()
    return BearerAssertion(assertion.signed_value)


def installation_info(
    transport: GitHubTransport,
    target: "str | InstallationTarget",
    assertion: Assertion,
) -> dict[str, Any]:
    """Installation metadata for a user/organization or repository."""
    target = parse_target(target)
    credential = _as_app(assertion)
    try:
        body = transport.request("GET", target.installation_path, credential=credential)
    except ApiError as e:
        raise ResolutionError(
            f"could not resolve installation for {target}: {e.message}",
            status_code=e.status_code,
            path=e.path,
        ) from e
    if not isinstance(body, dict):
        raise ResolutionError(f"unexpected installation response for {target}", path=target.installation_path)
    return body


def resolve_installation(
    transport: GitHubTransport,
    target: "str | InstallationTarget",
    assertion: Assertion,
) -> int:
    """
    Return the installation id of the app on `target`.
    Raises ResolutionError when GitHub rejects the lookup, AssertionExpiredError (not a
    ResolutionError) when the assertion is already stale, and ValueError for a malformed target.
    Catch AppAuthError to handle every failure of the exchange.
    """
    body = installation_info(transport, target, assertion)
    installation_id = body.get("id")
    if not isinstance(installation_id, int):
        raise ResolutionError(f"installation response for {target} has no id")
    logger.debug("Resolved %s to installation %s", target, installation_id)
    return installation_id


def issue_token(
    transport: GitHubTransport,
    installation_id: int,
    assertion: Assertion,
) -> AccessToken:
    """POST /app/installations/{id}/access_tokens. Raises TokenIssuanceError."""
    path = f"/app/installations/{int(installation_id)}/access_tokens"
    credential = _as_app(assertion)
    try:
        body = transport.request("POST", path, credential=credential)
    except ApiError as e:
        raise TokenIssuanceError(
            f"installation {installation_id} token request rejected: {e.message}",
            status_code=e.status_code,
            path=e.path,
        ) from e

    token = body.get("token") if isinstance(body, dict) else None
    if not token:
        raise TokenIssuanceError(f"token response for installation {installation_id} has no token", path=path)
    try:
        expires_at = _parse_timestamp(body.get("expires_at"))
    except ValueError as e:
        raise TokenIssuanceError(f"token response has invalid expires_at {body.get('expires_at')!r}", path=path) from e

    logger.info("Issued installation token for installation %s (expires_at=%s)", installation_id, expires_at)
    return AccessToken(
        value=token,
        installation_id=int(installation_id),
        expires_at=expires_at,
        permissions=body.get("permissions") or {},
        repository_selection=body.get("repository_selection"),
    )


def get_token(
    transport: GitHubTransport,
    target: "str | InstallationTarget",
    assertion: Assertion,
) -> AccessToken:
    """Resolve `target` then issue a token for it. A failed resolution issues nothing."""
    installation_id = resolve_installation(transport, target, assertion)
    return issue_token(transport, installation_id, assertion)


def app_metadata(transport: GitHubTransport, assertion: Assertion) -> dict[str, Any]:
    """GET /app for the authenticated app (includes installations_count)."""
    return transport.request("GET", "/app", credential=_as_app(assertion))


def list_installations(
    transport: GitHubTransport,
    assertion: Assertion,
    limit: int = LIST_LIMIT,
) -> list[dict[str, Any]]:
    return transport.paginate("/app/installations", credential=_as_app(assertion), limit=limit)


def delete_installation(transport: GitHubTransport, installation_id: int, assertion: Assertion) -> bool:
    """Uninstall the app. True iff GitHub confirms with 204 No Content."""
    path = f"/app/installations/{int(installation_id)}"
    r = transport.send("DELETE", path, credential=_as_app(assertion))
    deleted = r.status_code == 204
    logger.info("Delete installation %s -> %s", installation_id, r.status_code)
    return deleted


def public_app_info(transport: GitHubTransport, slug: str) -> dict[str, Any]:
    """GET /apps/{slug}; public metadata, no app credential."""
    return transport.request("GET", f"/apps/{quote(slug, safe='')}")
