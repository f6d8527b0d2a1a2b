"""Runtime registry of verify callbacks, looked up by identifier."""
import logging
import threading
from typing import Dict, List

from .errors import VerifierNotFoundError
from .types import GenericAuthFn

logger = logging.getLogger(__name__)


class VerifierRegistry:
    """Maps verifier identifiers (as named in metadata) to callbacks.

    ``get`` is a coroutine so the registry can be handed to the resolver
    directly as its ``verifier_lookup``.
    """

    def __init__(self):
        self._verifiers: Dict[str, GenericAuthFn] = {}
        self._lock = threading.Lock()

    def register(self, identifier: str, verifier: GenericAuthFn) -> None:
        if not callable(verifier):
            raise TypeError(f"Verifier for '{identifier}' must be callable")
        with self._lock:
            if identifier in self._verifiers:
                logger.warning("Overriding existing verifier: %s", identifier)
            self._verifiers[identifier] = verifier
        logger.debug("Registered verifier: %s", identifier)

    def unregister(self, identifier: str) -> bool:
        with self._lock:
            removed = self._verifiers.pop(identifier, None) is not None
        if removed:
            logger.debug("Unregistered verifier: %s", identifier)
        return removed

    async def get(self, identifier: str) -> GenericAuthFn:
        with self._lock:
            verifier = self._verifiers.get(identifier)
        if verifier is None:
            raise VerifierNotFoundError(identifier)
        return verifier

    def is_registered(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._verifiers

    def list_verifiers(self) -> List[str]:
        with self._lock:
            return sorted(self._verifiers)

    async def __call__(self, identifier: str) -> GenericAuthFn:
        return await self.get(identifier)
