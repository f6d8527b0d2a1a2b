"""Names of the authentication mechanisms the resolver can dispatch to."""
from enum import Enum


class StrategyName(str, Enum):
    LOCAL = "local"
    BEARER = "bearer"
    OAUTH2_RESOURCE_OWNER_GRANT = "oauth2-resource-owner-password-grant"
    GOOGLE_OAUTH2 = "google-oauth2"
    AZURE_AD = "azure-ad"
    KEYCLOAK = "keycloak"
    INSTAGRAM_OAUTH2 = "instagram-oauth2"

    def __str__(self) -> str:
        return self.value
