"""
Credentials presented to the GitHub API. Both classes travel as "Authorization: Bearer <value>";
the type records which one is being sent so the two are never confused.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class BearerAssertion:
    """Signed app assertion (app JWT). Only accepted on /app/... and installation lookups."""

    value: str

    def __repr__(self) -> str:
        return "BearerAssertion(<redacted>)"


@dataclass(frozen=True)
class ScopedToken:
    """Installation access token (ghs_...), scoped to one installation."""

    value: str

    def __repr__(self) -> str:
        return "ScopedToken(<redacted>)"


Credential = BearerAssertion | ScopedToken


def authorization_header(credential: Credential | None) -> dict[str, str]:
    """Headers for the credential; empty when the request is unauthenticated."""
    if credential is None:
        return {}
    if not isinstance(credential, (BearerAssertion, ScopedToken)):
        raise TypeError(f"unsupported credential type {type(credential).__name__}")
    return {"Authorization": f"Bearer {credential.value}"}
