"""Per-endpoint authentication strategy resolution."""
from .errors import (
    AuthStrategyError,
    StrategyNotAvailableError,
    VerifierNotConfiguredError,
    VerifierNotFoundError,
)
from .middleware import Authenticator, authenticate, get_metadata
from .resolver import AuthStrategyResolver
from .strategies import AuthStrategy, StrategyFactories, default_factories
from .strategy_name import StrategyName
from .tokens import JWTBearerVerifier
from .types import AuthenticationMetadata, ResultStatus, StrategyResult
from .verifiers import VerifierRegistry

__all__ = [
    "AuthStrategyError",
    "StrategyNotAvailableError",
    "VerifierNotConfiguredError",
    "VerifierNotFoundError",
    "Authenticator",
    "authenticate",
    "get_metadata",
    "AuthStrategyResolver",
    "AuthStrategy",
    "StrategyFactories",
    "default_factories",
    "StrategyName",
    "JWTBearerVerifier",
    "AuthenticationMetadata",
    "ResultStatus",
    "StrategyResult",
    "VerifierRegistry",
]
