"""
GitHub App configuration.
AppConfig is passed explicitly to every top-level operation; load_config_from_env is the
only place the process environment is read. No key material is ever written to disk.
"""
import os
from dataclasses import dataclass
from typing import Mapping

from ghapp_auth.errors import ConfigurationError

# Public GitHub REST API (override for GitHub Enterprise Server)
DEFAULT_API_URL = "https://api.github.com"

# Seconds; applied by the HTTP client to each request
DEFAULT_TIMEOUT = 15.0

DEFAULT_USER_AGENT = "ghapp-auth"

# App assertions are valid for 5 minutes. Fixed by GitHub, not configurable.
ASSERTION_TTL_SECONDS = 300

# list endpoints: page size and overall cap on results
PER_PAGE = 100
LIST_LIMIT = 1_000_000

ENV_APP_ID = "GH_APP_ID"
ENV_APP_KEY = "GH_APP_KEY"
ENV_API_URL = "GH_API_URL"
ENV_TIMEOUT = "GH_APP_HTTP_TIMEOUT"
ENV_USER_AGENT = "GH_APP_USER_AGENT"


@dataclass(frozen=True)
class AppConfig:
    app_id: str
    # literal PEM or path to a .pem file; resolved by keys.load_private_key
    private_key: str
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __repr__(self) -> str:
        return f"AppConfig(app_id={self.app_id!r}, api_url={self.api_url!r})"


def load_config_from_env(environ: Mapping[str, str] | None = None) -> AppConfig:
    """
    Build AppConfig from GH_APP_ID / GH_APP_KEY (plus optional GH_API_URL, GH_APP_HTTP_TIMEOUT,
    GH_APP_USER_AGENT). Raises ConfigurationError if the app id or key is missing or blank.
    """
    env = os.environ if environ is None else environ
    app_id = env.get(ENV_APP_ID, "").strip()
    app_key = env.get(ENV_APP_KEY, "").strip()
    if not app_id:
        raise ConfigurationError(f"missing app_id (set {ENV_APP_ID})")
    if not app_key:
        raise ConfigurationError(f"missing app_key (set {ENV_APP_KEY})")

    timeout_raw = env.get(ENV_TIMEOUT, "").strip()
    try:
        timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
    except ValueError as e:
        raise ConfigurationError(f"{ENV_TIMEOUT} must be a number, got {timeout_raw!r}") from e

    return AppConfig(
        app_id=app_id,
        private_key=app_key,
        api_url=(env.get(ENV_API_URL, "").strip() or DEFAULT_API_URL).rstrip("/"),
        timeout=timeout,
        user_agent=env.get(ENV_USER_AGENT, "").strip() or DEFAULT_USER_AGENT,
    )
