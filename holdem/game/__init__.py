"""Game engine module."""
from .errors import (
    PokerError,
    IllegalActionError,
    OutOfTurnError,
    DeckExhaustedError,
    InvalidHandSizeError,
)
from .deck import Deck, Card, Suit, Rank
from .player import Player, PlayerId, PlayerStatus, new_player_id
from .pot import Pot, SidePot, calculate_winnings
from .betting import ActionRequest, ActionType, BettingState, Street
from .table import Table
from .hand_eval import evaluate_best, evaluate_hand, compare_hands, HandCategory, HandResult
from .engine import HandEngine, ShowdownResult

__all__ = [
    "PokerError",
    "IllegalActionError",
    "OutOfTurnError",
    "DeckExhaustedError",
    "InvalidHandSizeError",
    "Deck",
    "Card",
    "Suit",
    "Rank",
    "Player",
    "PlayerId",
    "PlayerStatus",
    "new_player_id",
    "Pot",
    "SidePot",
    "calculate_winnings",
    "ActionRequest",
    "ActionType",
    "BettingState",
    "Street",
    "Table",
    "evaluate_best",
    "evaluate_hand",
    "compare_hands",
    "HandCategory",
    "HandResult",
    "HandEngine",
    "ShowdownResult",
]
