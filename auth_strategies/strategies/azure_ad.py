"""
Azure AD (Microsoft identity platform) OpenID Connect login.

Endpoints and signing keys are read from the tenant's discovery document. The
``id_token`` is checked against those keys, the client id (audience) and the
issuer before its claims are handed to the verify callback.
"""
import logging
from typing import Any, Dict, Tuple

import httpx
from authlib.integrations.httpx_client import AsyncOAuth2Client
from fastapi import Request
from jose import JWTError, jwt

from ..strategy_name import StrategyName
from ..types import AzureADAuthFn, AzureADOptions
from .base import StrategyFactory, read_params
from .oauth2 import IdentityProviderError, OAuth2CodeStrategy, json_body

logger = logging.getLogger(__name__)

TENANT_PLACEHOLDER = "{tenantid}"


class AzureADStrategy(OAuth2CodeStrategy):
    name = StrategyName.AZURE_AD
    verify: AzureADAuthFn
    options: AzureADOptions

    async def _get_json(self, url: str) -> Any:
        async with httpx.AsyncClient(timeout=self.options.timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return json_body(resp)

    async def endpoints(self) -> Dict[str, Any]:
        document = await self._get_json(self.options.identity_metadata)
        try:
            endpoints = {
                "issuer": document["issuer"],
                "authorization_endpoint": document["authorization_endpoint"],
                "token_endpoint": document["token_endpoint"],
                "jwks_uri": document["jwks_uri"],
                "userinfo_endpoint": document.get("userinfo_endpoint", ""),
                "signing_algorithms": document.get("id_token_signing_alg_values_supported") or ["RS256"],
            }
        except (KeyError, TypeError) as exc:
            raise IdentityProviderError(f"Azure AD metadata document is missing {exc}") from exc
        logger.debug("Loaded Azure AD metadata for issuer %s", endpoints["issuer"])
        return endpoints

    def authorization_params(self) -> Dict[str, Any]:
        return {"response_mode": self.options.response_mode}

    async def callback_params(self, request: Request) -> Dict[str, Any]:
        if self.options.response_mode == "form_post":
            return await read_params(request)
        return await super().callback_params(request)

    @property
    def state_cookie_same_site(self) -> str:
        # form_post callbacks arrive as a cross-site POST
        return "None" if self.options.response_mode == "form_post" else "Lax"

    async def fetch_profile(self, client: AsyncOAuth2Client, token: Dict[str, Any], endpoints: Dict[str, Any]) -> Dict[str, Any]:
        if not endpoints.get("userinfo_endpoint"):
            return {}
        return await super().fetch_profile(client, token, endpoints)

    async def validate_id_token(self, token: Dict[str, Any], endpoints: Dict[str, Any]) -> Dict[str, Any]:
        id_token = token.get("id_token")
        if not id_token:
            raise JWTError("token response has no id_token")
        jwks = await self._get_json(endpoints["jwks_uri"])
        if not isinstance(jwks, dict) or not jwks.get("keys"):
            raise IdentityProviderError("Azure AD signing key document has no keys")

        issuer = endpoints["issuer"]
        if TENANT_PLACEHOLDER in issuer:
            # multi-tenant metadata; the tenant comes from the token itself
            tenant = jwt.get_unverified_claims(id_token).get("tid") or ""
            issuer = issuer.replace(TENANT_PLACEHOLDER, str(tenant))
        return jwt.decode(
            id_token,
            jwks,
            algorithms=endpoints["signing_algorithms"],
            audience=self.options.client_id,
            issuer=issuer,
            options={"verify_at_hash": False},
        )

    async def fetch_identity(self, client: AsyncOAuth2Client, token: Dict[str, Any], endpoints: Dict[str, Any]) -> Tuple[Any, ...]:
        claims = await self.validate_id_token(token, endpoints)
        profile = await self.fetch_profile(client, token, endpoints)
        return claims, token.get("access_token"), token.get("refresh_token"), profile


class AzureADAuthStrategyFactory(StrategyFactory):
    strategy_class = AzureADStrategy
    options_model = AzureADOptions
