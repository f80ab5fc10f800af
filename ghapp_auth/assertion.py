"""
App assertion (the "app JWT"): RS256-signed claims {iat, exp, iss=app_id}, valid for 5 minutes.
Presented as a bearer credential to resolve installations and to request installation tokens.
"""
import logging
import time
from dataclasses import dataclass

import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ghapp_auth.config import ASSERTION_TTL_SECONDS
from ghapp_auth.errors import AssertionExpiredError, ConfigurationError, SigningError
from ghapp_auth.keys import load_private_key

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"


@dataclass(frozen=True)
class Assertion:
    signed_value: str
    app_id: str
    issued_at: int
    expires_at: int

    def seconds_remaining(self, now: float | None = None) -> float:
        if now is None:
            now = time.time()
        return self.expires_at - now

    def expired(self, now: float | None = None) -> bool:
        return self.seconds_remaining(now) <= 0

    def ensure_fresh(self, now: float | None = None) -> None:
        """Raise AssertionExpiredError if the assertion can no longer be presented."""
        if self.expired(now):
            raise AssertionExpiredError(
                f"assertion for app {self.app_id} expired at {self.expires_at}; build a new one",
                expires_at=self.expires_at,
            )

    def __repr__(self) -> str:
        # signed_value is a credential; keep it out of logs and tracebacks
        return f"Assertion(app_id={self.app_id!r}, issued_at={self.issued_at}, expires_at={self.expires_at})"


def build_assertion(
    app_id: str | int | None,
    private_key: str | bytes | RSAPrivateKey | None,
    now: float | None = None,
) -> Assertion:
    """
    Sign {iat: now, exp: now + 300, iss: app_id} with the app's private key.
    Raises ConfigurationError for a missing app_id/private_key (before touching the key),
    SigningError if the key cannot produce an RS256 signature.
    """
    app_id = "" if app_id is None else str(app_id).strip()
    if not app_id:
        raise ConfigurationError("missing app_id")
    if private_key is None or (isinstance(private_key, (str, bytes)) and not private_key.strip()):
        raise ConfigurationError("missing app_key")

    key = load_private_key(private_key)
    issued_at = int(time.time() if now is None else now)
    expires_at = issued_at + ASSERTION_TTL_SECONDS
    payload = {
        "iat": issued_at,
        "exp": expires_at,
        "iss": app_id,
    }
    try:
        signed = jwt.encode(payload, key, algorithm=ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as e:
        raise SigningError(f"could not sign assertion for app {app_id}: {e}") from e
    if isinstance(signed, bytes):
        signed = signed.decode("utf-8")

    logger.debug("Built assertion for app %s (expires_at=%s)", app_id, expires_at)
    return Assertion(signed_value=signed, app_id=app_id, issued_at=issued_at, expires_at=expires_at)
