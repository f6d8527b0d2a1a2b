import pytest
from pydantic import ValidationError

from auth_strategies.strategy_name import StrategyName
from auth_strategies.types import (
    AuthenticationMetadata,
    AzureADOptions,
    BearerStrategyOptions,
    KeycloakOptions,
    LocalStrategyOptions,
    ResultStatus,
    StrategyResult,
)


def test_strategy_names_match_wire_values():
    assert [s.value for s in StrategyName] == [
        "local",
        "bearer",
        "oauth2-resource-owner-password-grant",
        "google-oauth2",
        "azure-ad",
        "keycloak",
        "instagram-oauth2",
    ]
    assert str(StrategyName.KEYCLOAK) == "keycloak"


def test_metadata_is_immutable():
    metadata = AuthenticationMetadata(strategy="local", options={})
    with pytest.raises(ValidationError):
        metadata.strategy = "bearer"


def test_metadata_stores_enum_as_plain_value():
    metadata = AuthenticationMetadata(strategy=StrategyName.BEARER)
    assert metadata.strategy == "bearer"
    assert metadata.options is None
    assert metadata.verifier is None


def test_local_options_accept_camel_case_and_snake_case():
    camel = LocalStrategyOptions.model_validate({"usernameField": "email", "passReqToCallback": True})
    snake = LocalStrategyOptions.model_validate({"username_field": "email"})
    assert camel.username_field == "email"
    assert camel.pass_request_to_callback is True
    assert snake.username_field == "email"
    assert snake.password_field == "password"


def test_bearer_scopes_normalised_to_list():
    assert BearerStrategyOptions().scopes == []
    assert BearerStrategyOptions(scope="read").scopes == ["read"]
    assert BearerStrategyOptions(scope=["read", "write"]).scopes == ["read", "write"]


def test_oauth2_options_require_client_credentials():
    with pytest.raises(ValidationError):
        KeycloakOptions.model_validate({"host": "https://kc", "realm": "r"})


def test_keycloak_host_trailing_slash_stripped():
    opts = KeycloakOptions.model_validate({
        "host": "https://kc.example/",
        "realm": "main",
        "clientID": "id",
        "clientSecret": "secret",
        "callbackURL": "https://app/cb",
    })
    assert opts.host == "https://kc.example"
    assert opts.scope_string == "openid profile email"


def test_azure_options_use_redirect_url_alias():
    opts = AzureADOptions.model_validate({
        "identityMetadata": "https://login.example/.well-known/openid-configuration",
        "clientID": "id",
        "clientSecret": "secret",
        "redirectUrl": "https://app/cb",
        "scope": ["openid", "offline_access"],
    })
    assert opts.callback_url == "https://app/cb"
    assert opts.scope_string == "openid offline_access"
    assert opts.response_mode == "query"


def test_strategy_result_helpers():
    ok = StrategyResult.success({"sub": "1"})
    assert ok.ok and ok.status is ResultStatus.SUCCESS and ok.user == {"sub": "1"}

    failed = StrategyResult.fail("nope", status_code=400, challenge="Bearer")
    assert not failed.ok
    assert (failed.message, failed.status_code, failed.challenge) == ("nope", 400, "Bearer")

    redirect = StrategyResult.redirect("https://idp/authorize")
    assert redirect.status is ResultStatus.REDIRECT
    assert redirect.status_code == 302
