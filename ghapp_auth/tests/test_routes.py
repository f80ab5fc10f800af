"""Tests for the token broker routes. GitHub is faked; config is injected via dependency overrides."""
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from ghapp_auth.config import AppConfig

from ghapp_auth.main import _target, app, get_config, get_http_transport

client = TestClient(app)


@pytest.fixture
def broker(config, fake_github):
    app.dependency_overrides[get_config] = lambda: config
    app.dependency_overrides[get_http_transport] = lambda: fake_github.transport
    yield fake_github
    app.dependency_overrides.clear()


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("service") == "ghapp_auth"


def test_config_not_loaded():
    r = client.get("/app")
    assert r.status_code == 500
    assert r.json()["detail"]["error"] == "server_error"


def test_lifespan_reads_environment(monkeypatch, rsa_pem):
    monkeypatch.setenv("GH_APP_ID", "4242")
    monkeypatch.setenv("GH_APP_KEY", rsa_pem)
    with TestClient(app):
        assert app.state.config.app_id == "4242"
    del app.state.config


def test_app_count(broker):
    broker.add("GET", "/app", json={"installations_count": 3})
    r = client.get("/app")
    assert r.status_code == 200
    assert r.json() == {"app_id": "87942", "installations_count": 3}


def test_list_installations(broker):
    broker.add("GET", "/app/installations", json=[{"id": 1}, {"id": 2}])
    r = client.get("/installations")
    assert r.status_code == 200
    assert [i["id"] for i in r.json()] == [1, 2]


def test_owner_installation(broker):
    broker.add("GET", "/users/ropensci/installation", json={"id": 11, "account": {"login": "ropensci"}})
    r = client.get("/installations/ropensci")
    assert r.status_code == 200
    assert r.json()["id"] == 11


def test_repo_installation_not_found(broker):
    r = client.get("/installations/ropensci/missing")
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "installation_not_found"


def test_repo_token(broker):
    broker.add("GET", "/repos/ropensci/magick/installation", json={"id": 12345})
    broker.add(
        "POST",
        "/app/installations/12345/access_tokens",
        status=201,
        json={"token": "ghs_demo123", "expires_at": "2026-10-17T13:00:00Z", "repository_selection": "all"},
    )
    r = client.post("/installations/ropensci/magick/token")
    assert r.status_code == 200
    data = r.json()
    assert data["token"] == "ghs_demo123"
    assert data["installation_id"] == 12345
    assert data["expires_at"] == "2026-10-17T13:00:00+00:00"
    assert data["repository_selection"] == "all"


def test_owner_token(broker):
    broker.add("GET", "/users/jeroen/installation", json={"id": 5})
    broker.add("POST", "/app/installations/5/access_tokens", status=201, json={"token": "ghs_owner"})
    r = client.post("/installations/jeroen/token")
    assert r.status_code == 200
    assert r.json()["token"] == "ghs_owner"
    assert r.json()["expires_at"] is None


def test_token_rejected_upstream(broker):
    broker.add("GET", "/users/jeroen/installation", status=401, json={"message": "Bad credentials"})
    r = client.post("/installations/jeroen/token")
    assert r.status_code == 502
    detail = r.json()["detail"]
    assert detail["error"] == "upstream_error"
    assert detail["upstream_status"] == 401
    assert broker.calls("POST") == []


def test_token_issuance_failure(broker):
    broker.add("GET", "/users/jeroen/installation", json={"id": 5})
    broker.add("POST", "/app/installations/5/access_tokens", status=403, json={"message": "suspended"})
    r = client.post("/installations/jeroen/token")
    assert r.status_code == 502
    assert "suspended" in r.json()["detail"]["error_description"]


def test_bad_key_is_server_misconfiguration(broker):
    app.dependency_overrides[get_config] = lambda: AppConfig(app_id="1", private_key="/no/such/key.pem")
    r = client.post("/installations/jeroen/token")
    assert r.status_code == 500
    assert r.json()["detail"]["error"] == "server_misconfigured"
    assert broker.requests == []


def test_delete_repo_installation(broker):
    broker.add("GET", "/repos/ropensci/magick/installation", json={"id": 12345})
    broker.add("DELETE", "/app/installations/12345", status=204)
    r = client.delete("/installations/ropensci/magick")
    assert r.status_code == 200
    assert r.json() == {"deleted": True, "installation": "ropensci/magick"}
    assert broker.calls("DELETE") == [("DELETE", "/app/installations/12345")]


def test_delete_owner_installation(broker):
    broker.add("GET", "/users/jeroen/installation", json={"id": 3})
    broker.add("DELETE", "/app/installations/3", status=204)
    r = client.delete("/installations/jeroen")
    assert r.status_code == 200
    assert r.json()["deleted"] is True


@pytest.mark.parametrize("owner, repo", [("..", None), (".", None), ("..", "app"), ("ropensci", "..")])
def test_dot_segments_are_bad_requests(owner, repo):
    with pytest.raises(HTTPException) as exc:
        _target(owner, repo)
    assert exc.value.status_code == 400
    assert exc.value.detail["error"] == "invalid_request"
