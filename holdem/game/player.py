"""Player model."""
import uuid
from enum import Enum
from dataclasses import dataclass, field

from holdem.game.deck import Card

PlayerId = str


def new_player_id() -> PlayerId:
    """Generate a process-unique player ID."""
    return uuid.uuid4().hex


class PlayerStatus(str, Enum):
    """Hand-participation status of a seat."""
    ACTIVE = "active"
    FOLDED = "folded"
    ALL_IN = "all_in"
    SITTING_OUT = "sitting_out"


@dataclass
class Player:
    """A player at the poker table."""

    player_id: PlayerId
    name: str
    seat: int
    chips: int = 0
    status: PlayerStatus = PlayerStatus.ACTIVE
    hole_cards: list[Card] = field(default_factory=list)
    sit_in_pending: bool = False  # rejoins at the next reset_for_new_hand

    def reset_for_new_hand(self) -> None:
        """Reset player state for a new hand.

        Folded and all-in players return to active; a player without chips
        is sat out until topped up.
        """
        self.hole_cards = []
        if self.status in (PlayerStatus.FOLDED, PlayerStatus.ALL_IN):
            self.status = PlayerStatus.ACTIVE
        if self.sit_in_pending:
            self.status = PlayerStatus.ACTIVE
            self.sit_in_pending = False
        if self.chips == 0:
            self.status = PlayerStatus.SITTING_OUT

    def commit_chips(self, amount: int) -> int:
        """Commit chips to the pot, going all-in if necessary.

        Args:
            amount: Amount requested.

        Returns:
            Actual amount committed (may be less if all-in).
        """
        if amount < 0:
            raise ValueError(f"Cannot commit a negative amount ({amount})")

        committed = min(amount, self.chips)
        self.chips -= committed

        if self.chips == 0 and self.status == PlayerStatus.ACTIVE:
            self.status = PlayerStatus.ALL_IN

        return committed

    def fold(self) -> None:
        """Fold the hand."""
        self.status = PlayerStatus.FOLDED

    def sit_out(self) -> None:
        """Leave the action until ``sit_in`` is called.

        During a hand this gives up the hand like a fold; the engine's
        ``sit_out`` also moves the turn on.
        """
        self.status = PlayerStatus.SITTING_OUT
        self.sit_in_pending = False

    def sit_in(self) -> None:
        """Rejoin play from the next hand.

        The player stays SITTING_OUT for the rest of the current hand.
        """
        if self.status == PlayerStatus.SITTING_OUT:
            self.sit_in_pending = True

    @property
    def ready_for_next_hand(self) -> bool:
        """Check if player will be dealt in when the next hand starts."""
        if self.chips <= 0:
            return False
        return self.status != PlayerStatus.SITTING_OUT or self.sit_in_pending

    def give_hole_cards(self, first: Card, second: Card) -> None:
        """Receive both hole cards at once."""
        self.hole_cards = [first, second]

    def receive_card(self, card: Card) -> None:
        """Receive one hole card during a dealing pass."""
        if len(self.hole_cards) >= 2:
            raise ValueError(f"{self.name} already holds two cards")
        self.hole_cards.append(card)

    def win_pot(self, amount: int) -> None:
        """Win chips from the pot.

        Args:
            amount: Amount won.
        """
        self.chips += amount

    @property
    def in_hand(self) -> bool:
        """Check if player still contests the current hand."""
        return self.status in (PlayerStatus.ACTIVE, PlayerStatus.ALL_IN)

    @property
    def can_act(self) -> bool:
        """Check if player can take an action."""
        return self.status == PlayerStatus.ACTIVE

    @property
    def has_cards(self) -> bool:
        return len(self.hole_cards) == 2

    def to_dict(self, hide_cards: bool = True) -> dict:
        """Convert to dictionary for serialization.

        Args:
            hide_cards: If True, don't include hole cards.

        Returns:
            Player state dictionary.
        """
        data = {
            "player_id": self.player_id,
            "name": self.name,
            "seat": self.seat,
            "chips": self.chips,
            "status": self.status.value,
            "has_cards": self.has_cards,
            "sit_in_pending": self.sit_in_pending,
        }

        if not hide_cards:
            data["hole_cards"] = [str(c) for c in self.hole_cards]

        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        """Create from dictionary."""
        player = cls(
            player_id=data["player_id"],
            name=data["name"],
            seat=data["seat"],
            chips=data["chips"],
            status=PlayerStatus(data.get("status", PlayerStatus.ACTIVE.value)),
            sit_in_pending=data.get("sit_in_pending", False),
        )

        if "hole_cards" in data:
            player.hole_cards = [Card.from_string(c) for c in data["hole_cards"]]

        return player

    def __str__(self) -> str:
        return f"{self.name}({self.seat}) chips={self.chips} status={self.status.value}"
