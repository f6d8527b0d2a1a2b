import asyncio
import base64

from auth_strategies.strategies import ResourceOwnerPasswordStrategyFactory
from auth_strategies.types import ResultStatus

from _helpers import make_request


def _verify(client_id, client_secret, username, password):
    if client_id == "app" and client_secret == "s3cret" and password == "pw":
        return {"sub": username, "client": client_id}
    return None


def test_body_credentials():
    strategy = ResourceOwnerPasswordStrategyFactory()({}, _verify)
    request = make_request("POST", form={
        "grant_type": "password",
        "client_id": "app",
        "client_secret": "s3cret",
        "username": "alice",
        "password": "pw",
    })

    result = asyncio.run(strategy.authenticate(request))

    assert result.ok
    assert result.user == {"sub": "alice", "client": "app"}


def test_client_credentials_from_basic_header():
    strategy = ResourceOwnerPasswordStrategyFactory()({}, _verify)
    basic = base64.b64encode(b"app:s3cret").decode()
    request = make_request("POST", headers={"Authorization": f"Basic {basic}"},
                           json_body={"username": "alice", "password": "pw"})

    result = asyncio.run(strategy.authenticate(request))

    assert result.ok


def test_missing_client_id_is_bad_request():
    strategy = ResourceOwnerPasswordStrategyFactory()({}, _verify)
    request = make_request("POST", json_body={"username": "alice", "password": "pw"})

    result = asyncio.run(strategy.authenticate(request))

    assert result.status is ResultStatus.FAIL
    assert result.status_code == 400


def test_rejected_credentials():
    strategy = ResourceOwnerPasswordStrategyFactory()({}, _verify)
    request = make_request("POST", json_body={
        "client_id": "app", "client_secret": "wrong", "username": "alice", "password": "pw",
    })

    result = asyncio.run(strategy.authenticate(request))

    assert result.status_code == 401
    assert result.message == "Invalid credentials"


def test_malformed_basic_header_ignored():
    strategy = ResourceOwnerPasswordStrategyFactory()({}, _verify)
    request = make_request("POST", headers={"Authorization": "Basic !!!notbase64"},
                           json_body={"username": "alice", "password": "pw"})

    result = asyncio.run(strategy.authenticate(request))

    assert result.status_code == 400
