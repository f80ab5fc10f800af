"""
Top-level operations driven by an AppConfig. Each call builds a fresh assertion and its own
HTTP client, closes the client on return, and keeps nothing between calls.
"""
import logging
from typing import Any

import httpx

from ghapp_auth import exchange
from ghapp_auth.assertion import build_assertion
from ghapp_auth.config import DEFAULT_API_URL, AppConfig
from ghapp_auth.exchange import AccessToken
from ghapp_auth.target import InstallationTarget, parse_target
from ghapp_auth.transport import GitHubTransport

logger = logging.getLogger(__name__)


def app_token(
    installation: "str | InstallationTarget",
    config: AppConfig,
    *,
    http_transport: httpx.BaseTransport | None = None,
) -> AccessToken:
    """
    Installation access token for a user/organization ("ropensci") or a repository
    ("ropensci/magick"). Valid for 1 hour; not refreshed automatically.
    """
    target = parse_target(installation)
    assertion = build_assertion(config.app_id, config.private_key)
    with GitHubTransport.from_config(config, transport=http_transport) as transport:
        return exchange.get_token(transport, target, assertion)


def installation_count(config: AppConfig, *, http_transport: httpx.BaseTransport | None = None) -> int:
    assertion = build_assertion(config.app_id, config.private_key)
    with GitHubTransport.from_config(config, transport=http_transport) as transport:
        body = exchange.app_metadata(transport, assertion)
    return int(body.get("installations_count", 0))


def installation_list(
    config: AppConfig,
    *,
    http_transport: httpx.BaseTransport | None = None,
) -> list[dict[str, Any]]:
    assertion = build_assertion(config.app_id, config.private_key)
    with GitHubTransport.from_config(config, transport=http_transport) as transport:
        return exchange.list_installations(transport, assertion)


def installation_info(
    installation: "str | InstallationTarget",
    config: AppConfig,
    *,
    http_transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    target = parse_target(installation)
    assertion = build_assertion(config.app_id, config.private_key)
    with GitHubTransport.from_config(config, transport=http_transport) as transport:
        return exchange.installation_info(transport, target, assertion)


def installation_delete(
    installation: "str | InstallationTarget",
    config: AppConfig,
    *,
    http_transport: httpx.BaseTransport | None = None,
) -> bool:
    """Look up the installation on `installation`, then uninstall the app from it."""
    target = parse_target(installation)
    assertion = build_assertion(config.app_id, config.private_key)
    with GitHubTransport.from_config(config, transport=http_transport) as transport:
        installation_id = exchange.resolve_installation(transport, target, assertion)
        logger.info("Deleting installation %s (%s)", installation_id, target)
        return exchange.delete_installation(transport, installation_id, assertion)


def app_info(
    name: str = "r-universe",
    config: AppConfig | None = None,
    *,
    http_transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    """Public metadata of the app at https://github.com/apps/{name}. Needs no app key."""
    if config is not None:
        transport = GitHubTransport.from_config(config, transport=http_transport)
    else:
        transport = GitHubTransport(DEFAULT_API_URL, transport=http_transport)
    with transport:
        return exchange.public_app_info(transport, name)
