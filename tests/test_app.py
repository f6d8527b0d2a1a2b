import base64
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from auth_strategies.app import (
    BEARER_VERIFIER,
    LOCAL_VERIFIER,
    RESOURCE_OWNER_VERIFIER,
    create_app,
    principal_subject,
    provider_verifier_id,
)
from auth_strategies.config import Settings
from auth_strategies.strategies import oauth2
from auth_strategies.strategy_name import StrategyName
from auth_strategies.verifiers import VerifierRegistry


def _registry():
    registry = VerifierRegistry()
    registry.register(LOCAL_VERIFIER, lambda u, p: {"sub": u} if p == "pw" else None)
    registry.register(RESOURCE_OWNER_VERIFIER, lambda cid, cs, u, p: {"id": u} if cid == "app" and cs == "cs" else None)
    return registry


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setattr("os.path.isfile", lambda p: False)
    return Settings(jwt_secret="test-secret")


def test_health(settings):
    client = TestClient(create_app(settings, _registry()))
    assert client.get("/health").json() == {"status": "ok"}


def test_local_login_issues_token_accepted_by_me(settings):
    client = TestClient(create_app(settings, _registry()))

    login = client.post("/auth/login", json={"username": "alice", "password": "pw"})
    assert login.status_code == 200
    body = login.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 3600

    me = client.get("/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["sub"] == "alice"


def test_local_login_wrong_password(settings):
    client = TestClient(create_app(settings, _registry()))
    resp = client.post("/auth/login", data={"username": "alice", "password": "wrong"})
    assert resp.status_code == 401


def test_resource_owner_grant_with_basic_client_auth(settings):
    client = TestClient(create_app(settings, _registry()))
    basic = base64.b64encode(b"app:cs").decode()

    resp = client.post("/auth/token", headers={"Authorization": f"Basic {basic}"},
                       data={"grant_type": "password", "username": "bob", "password": "x"})

    assert resp.status_code == 200
    me = client.get("/me", headers={"Authorization": f"Bearer {resp.json()['access_token']}"})
    assert me.json()["user"]["sub"] == "bob"


def test_me_rejects_missing_token(settings):
    client = TestClient(create_app(settings, _registry()))
    resp = client.get("/me")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == 'Bearer realm="Users"'


def test_without_jwt_secret_login_is_unavailable(monkeypatch):
    monkeypatch.setattr("os.path.isfile", lambda p: False)
    app = create_app(Settings(), _registry())
    client = TestClient(app)

    assert client.post("/auth/login", json={"username": "alice", "password": "pw"}).status_code == 503
    # no bearer verifier registered at all
    assert client.get("/me", headers={"Authorization": "Bearer x"}).status_code == 500
    assert not app.state.verifiers.is_registered(BEARER_VERIFIER)


def test_existing_bearer_verifier_not_replaced(settings):
    registry = _registry()
    custom = lambda token: {"sub": "custom"}
    registry.register(BEARER_VERIFIER, custom)

    client = TestClient(create_app(settings, registry))

    assert client.get("/me", headers={"Authorization": "Bearer anything"}).json() == {"user": {"sub": "custom"}}


def test_configured_provider_routes_redirect(monkeypatch):
    monkeypatch.setattr("os.path.isfile", lambda p: False)
    settings = Settings(
        jwt_secret="s",
        keycloak_host="https://sso.example",
        keycloak_realm="staff",
        keycloak_client_id="kc",
        keycloak_client_secret="kcs",
        keycloak_callback_url="http://testserver/auth/keycloak/callback",
    )
    registry = _registry()
    registry.register(provider_verifier_id(StrategyName.KEYCLOAK), lambda at, rt, profile: profile)
    client = TestClient(create_app(settings, registry))

    resp = client.get("/auth/keycloak/login", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"].startswith("https://sso.example/realms/staff/protocol/openid-connect/auth?")
    assert client.get("/auth/google/login", follow_redirects=False).status_code == 404


def _keycloak_app(monkeypatch, fake_oauth_client_factory):
    monkeypatch.setattr("os.path.isfile", lambda p: False)
    client_class = fake_oauth_client_factory(token={"access_token": "kc-at"}, profile={"sub": "kc-user"})
    monkeypatch.setattr(oauth2, "AsyncOAuth2Client", client_class)
    settings = Settings(
        jwt_secret="s",
        keycloak_host="https://sso.example",
        keycloak_realm="staff",
        keycloak_client_id="kc",
        keycloak_client_secret="kcs",
        keycloak_callback_url="http://testserver/auth/keycloak/callback",
    )
    registry = _registry()
    registry.register(provider_verifier_id(StrategyName.KEYCLOAK), lambda at, rt, profile: profile)
    return create_app(settings, registry), client_class


def test_provider_login_round_trip_issues_token(monkeypatch, fake_oauth_client_factory):
    app, client_class = _keycloak_app(monkeypatch, fake_oauth_client_factory)
    client = TestClient(app)

    login = client.get("/auth/keycloak/login", follow_redirects=False)
    state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]
    state_cookie = login.headers["set-cookie"].split(";", 1)[0]
    client.cookies.clear()

    callback = client.get(
        "/auth/keycloak/callback",
        params={"code": "c", "state": state},
        headers={"cookie": state_cookie},
    )

    assert callback.status_code == 200
    assert "Max-Age=0" in callback.headers["set-cookie"]
    me = client.get("/me", headers={"Authorization": f"Bearer {callback.json()['access_token']}"})
    assert me.json()["user"]["sub"] == "kc-user"
    assert client_class.calls[1][2]["code_verifier"] == client_class.calls[0][2]["code_verifier"]


def test_provider_callback_without_state_cookie_is_refused(monkeypatch, fake_oauth_client_factory):
    app, client_class = _keycloak_app(monkeypatch, fake_oauth_client_factory)
    client = TestClient(app)

    resp = client.get("/auth/keycloak/callback", params={"code": "attacker", "state": "forged"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid OAuth state"
    assert client_class.calls == []


def test_provider_callback_accepts_form_post(monkeypatch, fake_oauth_client_factory):
    app, _ = _keycloak_app(monkeypatch, fake_oauth_client_factory)

    methods = {m for route in app.routes if getattr(route, "path", None) == "/auth/keycloak/callback" for m in route.methods}

    assert {"GET", "POST"} <= methods


@pytest.mark.parametrize("principal, expected", [
    ({"sub": "s1", "id": "i1"}, "s1"),
    ({"id": 7}, "7"),
    ({"email": "a@example.com"}, "a@example.com"),
    ("plain", "plain"),
])
def test_principal_subject(principal, expected):
    assert principal_subject(principal) == expected


def test_principal_subject_from_object_attribute():
    class User:
        id = 42

    assert principal_subject(User()) == "42"
