"""Betting actions and the per-street wagering ledger."""
from enum import Enum
from dataclasses import dataclass

from holdem.game.player import PlayerId


class Street(str, Enum):
    """Betting rounds, in the order they are played."""
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"


_NEXT_STREET = {
    Street.PREFLOP: Street.FLOP,
    Street.FLOP: Street.TURN,
    Street.TURN: Street.RIVER,
    Street.RIVER: Street.SHOWDOWN,
    Street.SHOWDOWN: Street.SHOWDOWN,
}


class ActionType(str, Enum):
    """Player action types."""
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"
    FOLD = "fold"


@dataclass(frozen=True)
class ActionRequest:
    """A player's action.

    ``chips`` is the bet size for BET and the increment over the call for
    RAISE; it is ignored otherwise.
    """
    player_id: PlayerId
    type: ActionType
    chips: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "player_id": self.player_id,
            "type": self.type.value,
            "chips": self.chips,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActionRequest":
        """Create from dictionary."""
        return cls(
            player_id=data["player_id"],
            type=ActionType(data["type"]),
            chips=int(data.get("chips", 0)),
        )


class BettingState:
    """Wagering ledger for the street being played."""

    def __init__(self):
        self.street = Street.PREFLOP
        self.current_bet = 0
        self.min_raise = 0
        self.to_act_seat = -1
        self.last_aggressor_seat = -1
        self._street_contrib: dict[PlayerId, int] = {}
        self._acted: set[PlayerId] = set()

    def contrib_of(self, player_id: PlayerId) -> int:
        """Chips the player has put in on this street."""
        return self._street_contrib.get(player_id, 0)

    def post(self, player_id: PlayerId, amount: int) -> None:
        """Record chips put in on this street, raising the current bet if exceeded."""
        total = self.contrib_of(player_id) + amount
        self._street_contrib[player_id] = total
        if total > self.current_bet:
            self.current_bet = total

    def mark_acted(self, player_id: PlayerId) -> None:
        self._acted.add(player_id)

    def has_acted(self, player_id: PlayerId) -> bool:
        return player_id in self._acted

    def clear_street(self) -> None:
        """Reset the ledger for a new street."""
        self._street_contrib.clear()
        self._acted.clear()
        self.current_bet = 0
        self.last_aggressor_seat = -1

    def advance_street(self) -> Street:
        """Move to the next street; showdown is terminal."""
        self.street = _NEXT_STREET[self.street]
        return self.street

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "street": self.street.value,
            "current_bet": self.current_bet,
            "min_raise": self.min_raise,
            "to_act_seat": self.to_act_seat,
            "last_aggressor_seat": self.last_aggressor_seat,
            "street_contributions": dict(self._street_contrib),
        }
