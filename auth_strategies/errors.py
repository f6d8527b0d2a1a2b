"""Exceptions raised while resolving and constructing strategies."""


class AuthStrategyError(Exception):
    """Base class for strategy resolution errors."""


class StrategyNotAvailableError(AuthStrategyError):
    """Raised when metadata names a strategy no factory is known for."""

    def __init__(self, strategy_name):
        self.strategy_name = str(strategy_name)
        super().__init__(f"The strategy {self.strategy_name} is not available.")


class VerifierNotFoundError(AuthStrategyError, LookupError):
    """Raised when a verifier identifier is not registered."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"No verifier registered under '{identifier}'")


class VerifierNotConfiguredError(AuthStrategyError):
    """Raised by a factory that received no verifier and has no default."""

    def __init__(self, strategy_name):
        self.strategy_name = str(strategy_name)
        super().__init__(f"No verify function configured for strategy {self.strategy_name}")
