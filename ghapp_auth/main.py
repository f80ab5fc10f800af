"""
Token broker service: mints GitHub App installation tokens over HTTP.
App id and key are read from the environment once at startup (GH_APP_ID, GH_APP_KEY).
Tokens are returned to the caller and never stored. Port 8080.
"""
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request

from ghapp_auth import apps
from ghapp_auth.config import AppConfig, load_config_from_env
from ghapp_auth.errors import (
    ApiError,
    AppAuthError,
    AssertionExpiredError,
    ConfigurationError,
    ResolutionError,
    SigningError,
)
from ghapp_auth.target import InstallationTarget, Owner, RepoPath

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Read app configuration once; a missing id or key fails startup."""
    app.state.config = load_config_from_env()
    logger.info("Token broker ready for app %s (%s)", app.state.config.app_id, app.state.config.api_url)
    yield


app = FastAPI(title="GitHub App Token Broker", version="0.1.0", lifespan=lifespan)


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(
            status_code=500,
            detail={"error": "server_error", "error_description": "App configuration not loaded"},
        )
    return config


def get_http_transport() -> httpx.BaseTransport | None:
    """Dependency: httpx transport for outgoing calls (None = default network transport)."""
    return None


def _target(owner: str, repo: str | None = None) -> InstallationTarget:
    if not owner.strip() or (repo is not None and not repo.strip()):
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_request", "error_description": "owner and repo must be non-empty"},
        )
    try:
        return Owner(owner) if repo is None else RepoPath(owner=owner, repo=repo)
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_request", "error_description": str(e)},
        ) from e


def _http_error(e: AppAuthError) -> HTTPException:
    """Map ghapp_auth errors to broker responses. Upstream details are passed through."""
    if isinstance(e, ResolutionError) and e.status_code == 404:
        return HTTPException(
            status_code=404,
            detail={"error": "installation_not_found", "error_description": str(e)},
        )
    if isinstance(e, ApiError):
        return HTTPException(
            status_code=502,
            detail={"error": "upstream_error", "error_description": str(e), "upstream_status": e.status_code},
        )
    if isinstance(e, (ConfigurationError, SigningError, AssertionExpiredError)):
        logger.error("App credentials unusable: %s", e)
        return HTTPException(
            status_code=500,
            detail={"error": "server_misconfigured", "error_description": str(e)},
        )
    return HTTPException(status_code=500, detail={"error": "server_error", "error_description": str(e)})


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "ghapp_auth"}


@app.get("/app")
def get_app(
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    """Installation count of the configured app."""
    try:
        count = apps.installation_count(config, http_transport=http_transport)
    except AppAuthError as e:
        raise _http_error(e) from e
    return {"app_id": config.app_id, "installations_count": count}


@app.get("/installations")
def list_installations(
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    try:
        return apps.installation_list(config, http_transport=http_transport)
    except AppAuthError as e:
        raise _http_error(e) from e


def _info(target: InstallationTarget, config: AppConfig, http_transport: httpx.BaseTransport | None):
    try:
        return apps.installation_info(target, config, http_transport=http_transport)
    except AppAuthError as e:
        raise _http_error(e) from e


def _token(target: InstallationTarget, config: AppConfig, http_transport: httpx.BaseTransport | None):
    try:
        token = apps.app_token(target, config, http_transport=http_transport)
    except AppAuthError as e:
        raise _http_error(e) from e
    return {
        "token": token.value,
        "expires_at": token.expires_at.isoformat() if token.expires_at else None,
        "installation_id": token.installation_id,
        "permissions": token.permissions,
        "repository_selection": token.repository_selection,
    }


def _delete(target: InstallationTarget, config: AppConfig, http_transport: httpx.BaseTransport | None):
    try:
        deleted = apps.installation_delete(target, config, http_transport=http_transport)
    except AppAuthError as e:
        raise _http_error(e) from e
    return {"deleted": deleted, "installation": str(target)}


@app.get("/installations/{owner}")
def owner_installation(
    owner: str,
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    return _info(_target(owner), config, http_transport)


@app.get("/installations/{owner}/{repo}")
def repo_installation(
    owner: str,
    repo: str,
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    return _info(_target(owner, repo), config, http_transport)


@app.post("/installations/{owner}/token")
def owner_token(
    owner: str,
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    """Installation token for a user/organization installation (valid 1 hour)."""
    return _token(_target(owner), config, http_transport)


@app.post("/installations/{owner}/{repo}/token")
def repo_token(
    owner: str,
    repo: str,
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    """Installation token for the installation covering owner/repo (valid 1 hour)."""
    return _token(_target(owner, repo), config, http_transport)


@app.delete("/installations/{owner}")
def delete_owner_installation(
    owner: str,
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    return _delete(_target(owner), config, http_transport)


@app.delete("/installations/{owner}/{repo}")
def delete_repo_installation(
    owner: str,
    repo: str,
    config: AppConfig = Depends(get_config),
    http_transport: httpx.BaseTransport | None = Depends(get_http_transport),
):
    return _delete(_target(owner, repo), config, http_transport)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ghapp_auth.main:app",
        host="127.0.0.1",
        port=8080,
        reload=True,
    )
