"""
Data model shared by the resolver, the factories and the middleware.

Option models accept both snake_case names and the camelCase keys used by
passport-style configuration (``usernameField``, ``clientID``, ``callbackURL``).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthenticationMetadata(BaseModel):
    """Authentication requirements attached to a protected operation."""
    model_config = ConfigDict(frozen=True)

    strategy: str
    options: Any = None
    verifier: Optional[str] = None

    @field_validator("strategy", mode="before")
    @classmethod
    def _enum_to_value(cls, v):
        if isinstance(v, Enum):
            return v.value
        return v


class StrategyOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    pass_request_to_callback: bool = Field(default=False, alias="passReqToCallback")


class LocalStrategyOptions(StrategyOptions):
    username_field: str = Field(default="username", alias="usernameField")
    password_field: str = Field(default="password", alias="passwordField")


class BearerStrategyOptions(StrategyOptions):
    realm: str = "Users"
    scope: Optional[Union[str, List[str]]] = None

    @property
    def scopes(self) -> List[str]:
        if not self.scope:
            return []
        if isinstance(self.scope, str):
            return [self.scope]
        return list(self.scope)


class ResourceOwnerPasswordOptions(StrategyOptions):
    pass


class OAuth2Options(StrategyOptions):
    client_id: str = Field(alias="clientID")
    client_secret: str = Field(alias="clientSecret")
    callback_url: str = Field(alias="callbackURL")
    scope: Optional[Union[str, List[str]]] = None
    timeout: float = 10.0
    # signs the state cookie; defaults to the client secret
    state_secret: Optional[str] = Field(default=None, alias="stateSecret")

    @property
    def scope_string(self) -> Optional[str]:
        if not self.scope:
            return None
        if isinstance(self.scope, str):
            return self.scope
        return " ".join(self.scope)


class GoogleOAuth2Options(OAuth2Options):
    scope: Optional[Union[str, List[str]]] = "openid email profile"
    access_type: Optional[str] = Field(default=None, alias="accessType")
    prompt: Optional[str] = None


class AzureADOptions(OAuth2Options):
    """Options for the Azure AD OpenID Connect flow.

    ``identity_metadata`` is the tenant's ``.well-known/openid-configuration``
    document URL.
    """
    identity_metadata: str = Field(alias="identityMetadata")
    callback_url: str = Field(alias="redirectUrl")
    response_mode: Literal["query", "form_post"] = Field(default="query", alias="responseMode")
    scope: Optional[Union[str, List[str]]] = "openid profile email"


class KeycloakOptions(OAuth2Options):
    host: str
    realm: str
    scope: Optional[Union[str, List[str]]] = "openid profile email"

    @field_validator("host")
    @classmethod
    def _strip_trailing_slash(cls, v):
        return v.rstrip("/")


class InstagramOAuth2Options(OAuth2Options):
    scope: Optional[Union[str, List[str]]] = "user_profile"
    profile_fields: str = Field(default="id,username,account_type", alias="profileFields")


# Verify callbacks may be plain functions or coroutines. A falsy return value
# rejects the credentials. With ``passReqToCallback`` the request is prepended
# to the arguments listed beside each alias.
GenericAuthFn = Callable[..., Union[Any, Awaitable[Any]]]
LocalPasswordFn = GenericAuthFn  # (username, password)
BearerFn = GenericAuthFn  # (token)
ResourceOwnerPasswordFn = GenericAuthFn  # (client_id, client_secret, username, password)
GoogleAuthFn = GenericAuthFn  # (access_token, refresh_token, profile)
AzureADAuthFn = GenericAuthFn  # (claims, access_token, refresh_token, profile)
KeycloakAuthFn = GenericAuthFn  # (access_token, refresh_token, profile)
InstagramAuthFn = GenericAuthFn  # (access_token, refresh_token, profile)


class ResultStatus(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class StrategyResult:
    """Outcome of running a strategy against one request."""
    status: ResultStatus
    user: Any = None
    redirect_url: Optional[str] = None
    message: Optional[str] = None
    status_code: int = 401
    challenge: Optional[str] = None
    headers: Optional[Dict[str, str]] = None

    @classmethod
    def success(cls, user: Any, headers: Optional[Dict[str, str]] = None) -> "StrategyResult":
        return cls(status=ResultStatus.SUCCESS, user=user, status_code=200, headers=headers)

    @classmethod
    def fail(cls, message: str, status_code: int = 401, challenge: Optional[str] = None) -> "StrategyResult":
        return cls(status=ResultStatus.FAIL, message=message, status_code=status_code, challenge=challenge)

    @classmethod
    def redirect(cls, url: str, status_code: int = 302, headers: Optional[Dict[str, str]] = None) -> "StrategyResult":
        return cls(status=ResultStatus.REDIRECT, redirect_url=url, status_code=status_code, headers=headers)

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS
