"""
OAuth2 authorization code flow shared by the federated login strategies.

Without a ``code`` parameter the strategy answers with a redirect to the
provider's authorization endpoint. The ``state`` value and the PKCE
``code_verifier`` travel in a short-lived cookie signed with python-jose, so no
server-side session is needed. On the callback the cookie must match the
returned ``state`` before the code is exchanged for tokens; the user profile
and tokens are then passed to the verify callback.
"""
import hmac
import logging
from abc import abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import httpx
from authlib.common.security import generate_token
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client
from fastapi import Request
from jose import JWTError, jwt

from ..types import OAuth2Options, StrategyResult
from .base import AuthStrategy

logger = logging.getLogger(__name__)

STATE_COOKIE_MAX_AGE = 600
STATE_COOKIE_ALGORITHM = "HS256"


class IdentityProviderError(Exception):
    """Raised when a provider answers with a document we cannot use."""


def json_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise IdentityProviderError(f"Non-JSON response from {resp.url}") from exc


class OAuth2CodeStrategy(AuthStrategy):
    options: OAuth2Options

    token_endpoint_auth_method = "client_secret_basic"
    use_pkce = True

    @abstractmethod
    async def endpoints(self) -> Dict[str, Any]:
        """Return ``authorization_endpoint``, ``token_endpoint`` and ``userinfo_endpoint``."""

    def authorization_params(self) -> Dict[str, Any]:
        """Extra query parameters for the authorization redirect."""
        return {}

    async def callback_params(self, request: Request) -> Dict[str, Any]:
        """Parameters the provider sent back to the callback URL."""
        return dict(request.query_params)

    def client(self, **kwargs) -> AsyncOAuth2Client:
        if self.use_pkce:
            kwargs.setdefault("code_challenge_method", "S256")
        return AsyncOAuth2Client(
            client_id=self.options.client_id,
            client_secret=self.options.client_secret,
            scope=self.options.scope_string,
            redirect_uri=self.options.callback_url,
            token_endpoint_auth_method=self.token_endpoint_auth_method,
            timeout=self.options.timeout,
            **kwargs,
        )

    @property
    def state_cookie_name(self) -> str:
        return "oauth_state_" + self.name.value.replace("-", "_")

    @property
    def state_cookie_same_site(self) -> str:
        return "Lax"

    def _state_key(self) -> str:
        return self.options.state_secret or self.options.client_secret

    def issue_state(self) -> Tuple[str, Optional[str], str]:
        """Create ``(state, code_verifier, signed cookie value)`` for one login attempt."""
        state = generate_token(32)
        code_verifier = generate_token(48) if self.use_pkce else None
        payload = {
            'state': state,
            'code_verifier': code_verifier,
            'exp': datetime.now(timezone.utc) + timedelta(seconds=STATE_COOKIE_MAX_AGE),
        }
        return state, code_verifier, jwt.encode(payload, self._state_key(), algorithm=STATE_COOKIE_ALGORITHM)

    def state_cookie_header(self, value: str, max_age: int) -> str:
        same_site = self.state_cookie_same_site
        parts = [f"{self.state_cookie_name}={value}", "Path=/", f"Max-Age={max_age}", "HttpOnly", f"SameSite={same_site}"]
        if same_site == "None" or self.options.callback_url.startswith("https://"):
            parts.append("Secure")
        return "; ".join(parts)

    def load_state(self, request: Request, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Return the stored state payload when it matches the callback's ``state``."""
        cookie = request.cookies.get(self.state_cookie_name)
        returned = params.get("state")
        if not cookie or not returned:
            return None
        try:
            stored = jwt.decode(cookie, self._state_key(), algorithms=[STATE_COOKIE_ALGORITHM])
        except JWTError as e:
            logger.debug(f"State cookie rejected: {e}")
            return None
        if not hmac.compare_digest(str(stored.get("state") or ""), str(returned)):
            return None
        return stored

    async def fetch_profile(self, client: AsyncOAuth2Client, token: Dict[str, Any], endpoints: Dict[str, Any]) -> Dict[str, Any]:
        resp = await client.get(endpoints["userinfo_endpoint"])
        resp.raise_for_status()
        return json_body(resp)

    async def fetch_identity(self, client: AsyncOAuth2Client, token: Dict[str, Any], endpoints: Dict[str, Any]) -> Tuple[Any, ...]:
        """Arguments for the verify callback once the code has been exchanged."""
        profile = await self.fetch_profile(client, token, endpoints)
        return token.get("access_token"), token.get("refresh_token"), profile

    async def authenticate(self, request: Request) -> StrategyResult:
        params = await self.callback_params(request)
        if "error" in params:
            message = params.get("error_description") or params["error"]
            logger.info("%s provider returned an error: %s", self.name.value, message)
            return StrategyResult.fail(message)

        code = params.get("code")
        stored = None
        if code:
            stored = self.load_state(request, params)
            if stored is None:
                logger.warning("%s callback on %s with missing or mismatched state", self.name.value, request.url.path)
                return StrategyResult.fail("Invalid OAuth state", status_code=400)

        try:
            endpoints = await self.endpoints()
            if not code:
                state, code_verifier, cookie = self.issue_state()
                extra = self.authorization_params()
                if code_verifier:
                    extra["code_verifier"] = code_verifier
                async with self.client() as client:
                    url, _ = client.create_authorization_url(
                        endpoints["authorization_endpoint"], state=state, **extra
                    )
                logger.debug("Redirecting to %s authorization endpoint", self.name.value)
                return StrategyResult.redirect(
                    url, headers={"Set-Cookie": self.state_cookie_header(cookie, STATE_COOKIE_MAX_AGE)}
                )

            token_params = {"code": code, "redirect_uri": self.options.callback_url}
            if stored.get("code_verifier"):
                token_params["code_verifier"] = stored["code_verifier"]
            async with self.client() as client:
                token = await client.fetch_token(endpoints["token_endpoint"], **token_params)
                verify_args = await self.fetch_identity(client, token, endpoints)
        except OAuthError as exc:
            logger.warning("%s token exchange failed: %s", self.name.value, exc)
            return StrategyResult.fail(f"Failed to obtain access token: {exc.error}")
        except JWTError as exc:
            logger.warning("%s returned an invalid ID token: %s", self.name.value, exc)
            return StrategyResult.fail("Invalid ID token")
        except (httpx.HTTPError, IdentityProviderError) as exc:
            logger.warning("%s provider request failed: %s", self.name.value, exc)
            return StrategyResult.fail("Identity provider request failed", status_code=502)

        user = await self.call_verify(request, *verify_args)
        if not user:
            return StrategyResult.fail("Login rejected")
        return StrategyResult.success(user, headers={"Set-Cookie": self.state_cookie_header("", 0)})
