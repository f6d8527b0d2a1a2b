"""Strategy implementations and the factory bundle handed to the resolver."""
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..strategy_name import StrategyName
from ..types import GenericAuthFn
from .azure_ad import AzureADAuthStrategyFactory, AzureADStrategy
from .base import AuthStrategy, StrategyFactory
from .bearer import BearerStrategy, BearerStrategyFactory
from .google import GoogleAuthStrategyFactory, GoogleOAuth2Strategy
from .instagram import InstagramAuthStrategyFactory, InstagramOAuth2Strategy
from .keycloak import KeycloakStrategy, KeycloakStrategyFactory
from .local import LocalPasswordStrategy, LocalPasswordStrategyFactory
from .resource_owner import ResourceOwnerPasswordStrategy, ResourceOwnerPasswordStrategyFactory

Factory = Callable[[Any, Optional[GenericAuthFn]], Any]


@dataclass(frozen=True)
class StrategyFactories:
    """One factory per StrategyName, each called as ``factory(options, verifier)``."""
    local: Factory
    bearer: Factory
    resource_owner_password: Factory
    google_oauth2: Factory
    azure_ad: Factory
    keycloak: Factory
    instagram_oauth2: Factory

    def for_strategy(self, name: StrategyName) -> Factory:
        return getattr(self, _FACTORY_FIELDS[name])


_FACTORY_FIELDS = {
    StrategyName.LOCAL: "local",
    StrategyName.BEARER: "bearer",
    StrategyName.OAUTH2_RESOURCE_OWNER_GRANT: "resource_owner_password",
    StrategyName.GOOGLE_OAUTH2: "google_oauth2",
    StrategyName.AZURE_AD: "azure_ad",
    StrategyName.KEYCLOAK: "keycloak",
    StrategyName.INSTAGRAM_OAUTH2: "instagram_oauth2",
}


def default_factories(default_verifiers: Optional[Mapping[StrategyName, GenericAuthFn]] = None) -> StrategyFactories:
    """Build the stock factories, optionally with per-strategy default verifiers."""
    defaults = dict(default_verifiers or {})
    return StrategyFactories(
        local=LocalPasswordStrategyFactory(defaults.get(StrategyName.LOCAL)),
        bearer=BearerStrategyFactory(defaults.get(StrategyName.BEARER)),
        resource_owner_password=ResourceOwnerPasswordStrategyFactory(
            defaults.get(StrategyName.OAUTH2_RESOURCE_OWNER_GRANT)
        ),
        google_oauth2=GoogleAuthStrategyFactory(defaults.get(StrategyName.GOOGLE_OAUTH2)),
        azure_ad=AzureADAuthStrategyFactory(defaults.get(StrategyName.AZURE_AD)),
        keycloak=KeycloakStrategyFactory(defaults.get(StrategyName.KEYCLOAK)),
        instagram_oauth2=InstagramAuthStrategyFactory(defaults.get(StrategyName.INSTAGRAM_OAUTH2)),
    )


__all__ = [
    "AuthStrategy",
    "StrategyFactory",
    "StrategyFactories",
    "default_factories",
    "LocalPasswordStrategy",
    "LocalPasswordStrategyFactory",
    "BearerStrategy",
    "BearerStrategyFactory",
    "ResourceOwnerPasswordStrategy",
    "ResourceOwnerPasswordStrategyFactory",
    "GoogleOAuth2Strategy",
    "GoogleAuthStrategyFactory",
    "AzureADStrategy",
    "AzureADAuthStrategyFactory",
    "KeycloakStrategy",
    "KeycloakStrategyFactory",
    "InstagramOAuth2Strategy",
    "InstagramAuthStrategyFactory",
]
