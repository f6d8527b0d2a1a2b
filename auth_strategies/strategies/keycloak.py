"""Keycloak login through the realm's OpenID Connect endpoints."""
from typing import Dict

from ..strategy_name import StrategyName
from ..types import KeycloakAuthFn, KeycloakOptions
from .base import StrategyFactory
from .oauth2 import OAuth2CodeStrategy


class KeycloakStrategy(OAuth2CodeStrategy):
    name = StrategyName.KEYCLOAK
    verify: KeycloakAuthFn
    options: KeycloakOptions

    async def endpoints(self) -> Dict[str, str]:
        base = f"{self.options.host}/realms/{self.options.realm}/protocol/openid-connect"
        return {
            "authorization_endpoint": f"{base}/auth",
            "token_endpoint": f"{base}/token",
            "userinfo_endpoint": f"{base}/userinfo",
        }


class KeycloakStrategyFactory(StrategyFactory):
    strategy_class = KeycloakStrategy
    options_model = KeycloakOptions
