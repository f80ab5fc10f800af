"""
Load the app's RSA private key for signing assertions.
The key may arrive as PEM text (escaped "\\n" from env files is accepted), as a path to a .pem
file, or as an already-loaded cryptography key. Nothing is generated or persisted here.
"""
import logging
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ghapp_auth.errors import ConfigurationError, SigningError

logger = logging.getLogger(__name__)

_PEM_MARKER = "-----BEGIN"


def _deserialize_private(pem: bytes) -> RSAPrivateKey:
    try:
        key = serialization.load_pem_private_key(pem, password=None, backend=default_backend())
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(f"app_key is not a usable PEM private key: {e}") from e
    if not isinstance(key, RSAPrivateKey):
        raise SigningError(f"app_key must be an RSA private key, got {type(key).__name__}")
    return key


def looks_like_pem(value: str | bytes) -> bool:
    if isinstance(value, bytes):
        return _PEM_MARKER.encode("ascii") in value
    return _PEM_MARKER in value


def load_private_key(app_key: str | bytes | RSAPrivateKey | None) -> RSAPrivateKey:
    """
    Resolve app_key to an RSA private key.
    Raises ConfigurationError when the key is missing or the path cannot be read,
    SigningError when the material is not an RSA private key.
    """
    if isinstance(app_key, RSAPrivateKey):
        return app_key
    if app_key is None:
        raise ConfigurationError("missing app_key")
    if not isinstance(app_key, (str, bytes)):
        raise SigningError(f"app_key must be PEM text, a path or an RSA key, got {type(app_key).__name__}")
    if not app_key.strip():
        raise ConfigurationError("missing app_key")

    if looks_like_pem(app_key):
        if isinstance(app_key, str):
            app_key = app_key.replace("\\n", "\n").encode("utf-8")
        return _deserialize_private(app_key)

    raw_path = app_key.decode("utf-8") if isinstance(app_key, bytes) else app_key
    path = Path(raw_path.strip().strip('"')).expanduser()
    try:
        pem = path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"app_key is neither PEM text nor a readable key file: {path}") from e
    logger.debug("Loaded app private key from %s", path)
    return _deserialize_private(pem)
