"""Game error types."""


class PokerError(Exception):
    """Base class for all engine errors."""


class IllegalActionError(PokerError, ValueError):
    """An action violates the betting rules.

    The hand is left exactly as it was before the rejected action.
    """


class OutOfTurnError(IllegalActionError):
    """A player tried to act while it is not their turn."""


class DeckExhaustedError(PokerError):
    """The deck does not hold enough cards for a draw."""


class InvalidHandSizeError(PokerError, ValueError):
    """The hand evaluator was given an unusable set of cards."""
