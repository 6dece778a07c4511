"""Card deck implementation."""
import random
from enum import Enum
from dataclasses import dataclass
from typing import Optional

from holdem.game.errors import DeckExhaustedError


class Suit(str, Enum):
    """Card suits."""
    HEARTS = "h"
    DIAMONDS = "d"
    CLUBS = "c"
    SPADES = "s"

    def __str__(self) -> str:
        return self.value


class Rank(int, Enum):
    """Card ranks (1-13, where 1 is Ace).

    Hand evaluation treats the Ace as high (14), see ``high_value``.
    """
    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def high_value(self) -> int:
        """Rank value with the Ace counted high (2-14)."""
        return 14 if self is Rank.ACE else self.value

    @classmethod
    def from_high_value(cls, value: int) -> "Rank":
        """Inverse of ``high_value``; accepts 14 (or 1) for the Ace."""
        return cls.ACE if value == 14 else cls(value)

    def __str__(self) -> str:
        return _RANK_SYMBOLS.get(self.value, str(self.value))


_RANK_SYMBOLS = {1: "A", 10: "T", 11: "J", 12: "Q", 13: "K"}
_SYMBOL_RANKS = {"A": 1, "T": 10, "J": 11, "Q": 12, "K": 13}


@dataclass(frozen=True)
class Card:
    """A playing card."""
    rank: Rank
    suit: Suit

    def __post_init__(self) -> None:
        # Coerce raw values and reject anything outside the enumerations
        try:
            rank = Rank(self.rank)
            suit = Suit(self.suit)
        except ValueError as e:
            raise ValueError(f"Invalid card rank={self.rank!r} suit={self.suit!r}") from e
        object.__setattr__(self, "rank", rank)
        object.__setattr__(self, "suit", suit)

    def __str__(self) -> str:
        return str(self.rank) + str(self.suit)

    def __repr__(self) -> str:
        return str(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"rank": self.rank.value, "suit": self.suit.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Card":
        """Create from dictionary."""
        return cls(rank=Rank(data["rank"]), suit=Suit(data["suit"]))

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Parse card from string like 'Ah', '10s', 'Td', '2c'.

        Args:
            s: Card string (rank + suit).

        Returns:
            Card instance.

        Raises:
            ValueError: If the string is not a valid card.
        """
        if len(s) < 2:
            raise ValueError(f"Invalid card string {s!r}")

        suit = Suit(s[-1].lower())
        rank_str = s[:-1].upper()

        if rank_str in _SYMBOL_RANKS:
            rank = Rank(_SYMBOL_RANKS[rank_str])
        elif rank_str.isdigit() and 2 <= int(rank_str) <= 10:
            rank = Rank(int(rank_str))
        else:
            raise ValueError(f"Invalid card rank in {s!r}")

        return cls(rank=rank, suit=suit)


class Deck:
    """A standard 52-card deck with its own random source."""

    def __init__(self, seed: Optional[int] = None):
        """Initialize a deck in canonical order.

        Args:
            seed: Optional seed for reproducible shuffles.
        """
        self._rng = random.Random(seed)
        self._cards: list[Card] = []
        self.reset()

    def reset(self) -> None:
        """Rebuild the full 52-card deck in canonical order."""
        self._cards = [
            Card(rank=rank, suit=suit)
            for suit in Suit
            for rank in Rank
        ]

    def shuffle(self) -> None:
        """Fisher-Yates shuffle of the remaining cards."""
        cards = self._cards
        for i in range(len(cards) - 1, 0, -1):
            j = self._rng.randint(0, i)
            cards[i], cards[j] = cards[j], cards[i]

    def draw(self) -> Card:
        """Draw the next card.

        Raises:
            DeckExhaustedError: If the deck is empty.
        """
        if not self._cards:
            raise DeckExhaustedError("No cards left in the deck")
        return self._cards.pop(0)

    def draw_many(self, count: int) -> list[Card]:
        """Draw several cards at once.

        Nothing is drawn if fewer than ``count`` cards remain.

        Args:
            count: Number of cards to draw.

        Returns:
            List of drawn cards, in draw order.

        Raises:
            DeckExhaustedError: If not enough cards remain.
        """
        if count < 0:
            raise ValueError(f"Cannot draw a negative number of cards ({count})")
        if count > len(self._cards):
            raise DeckExhaustedError(
                f"Cannot draw {count} cards, only {len(self._cards)} remain"
            )
        return [self.draw() for _ in range(count)]

    def burn(self) -> Card:
        """Burn (discard) a card from the top of the deck.

        Returns:
            The burned card.
        """
        return self.draw()

    @property
    def remaining(self) -> int:
        """Number of cards remaining in the deck."""
        return len(self._cards)

    def __len__(self) -> int:
        return len(self._cards)
