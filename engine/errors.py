"""Exceptions raised by the engine and surfaced by the command interfaces."""


class EngineError(Exception):
    """Base class for engine errors that carry a human-readable message."""


class NotReadyError(EngineError):
    """Wallet or provider has not been initialised."""


class InsufficientFundsError(EngineError):
    """Wallet balance is below the gas threshold needed to trade."""


class InsufficientBalanceError(EngineError):
    """Nothing is left to withdraw once the gas reserve is kept back."""


class AlreadyRunningError(EngineError):
    """A start command arrived while the requested mode is already active."""
