"""
Selects and constructs the authentication strategy for a protected operation.

The resolver owns no state: it receives the factories and the verifier lookup
as arguments and, per call, turns one ``AuthenticationMetadata`` into one
strategy instance.
"""
import logging
from typing import Any, Awaitable, Callable, Optional

from .errors import StrategyNotAvailableError
from .strategies import StrategyFactories
from .strategies.base import AuthStrategy
from .strategy_name import StrategyName
from .types import AuthenticationMetadata, GenericAuthFn

logger = logging.getLogger(__name__)

VerifierLookup = Callable[[str], Awaitable[GenericAuthFn]]


class AuthStrategyResolver:
    def __init__(self, factories: StrategyFactories, verifier_lookup: VerifierLookup):
        self.factories = factories
        self.verifier_lookup = verifier_lookup

    async def resolve(self, metadata: Optional[AuthenticationMetadata]) -> Optional[AuthStrategy]:
        """Build the strategy described by ``metadata``.

        Returns None for operations without metadata. Raises
        StrategyNotAvailableError for unknown strategy names; errors from the
        verifier lookup and from the factory propagate unchanged.
        """
        if metadata is None:
            return None

        verifier = None
        if metadata.verifier:
            verifier = await self.verifier_lookup(metadata.verifier)

        try:
            name = StrategyName(metadata.strategy)
        except ValueError:
            logger.warning("Unsupported authentication strategy requested: %s", metadata.strategy)
            raise StrategyNotAvailableError(metadata.strategy) from None

        factory = self.factories.for_strategy(name)
        logger.debug("Resolving strategy %s (custom verifier: %s)", name.value, metadata.verifier or "-")
        return factory(metadata.options, verifier)

    async def __call__(self, metadata: Optional[AuthenticationMetadata]) -> Optional[Any]:
        return await self.resolve(metadata)
