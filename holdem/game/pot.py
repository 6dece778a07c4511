"""Pot and side-pot calculation."""
from dataclasses import dataclass, field
from typing import Iterable

from holdem.game.player import Player, PlayerId
from holdem.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SidePot:
    """A pot or side pot."""
    amount: int
    eligible_players: list[PlayerId]  # ids of players eligible to win this pot
    cap: int = 0  # contribution level this pot is capped at

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "amount": self.amount,
            "eligible_players": self.eligible_players,
            "cap": self.cap,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SidePot":
        """Restore from dictionary."""
        return cls(
            amount=data["amount"],
            eligible_players=data["eligible_players"],
            cap=data.get("cap", 0),
        )


@dataclass
class Pot:
    """Chips contributed by each player over the whole hand."""

    _contributions: dict[PlayerId, int] = field(default_factory=dict)

    def add_bet(self, player_id: PlayerId, amount: int) -> None:
        """Add a contribution to the pot.

        Args:
            player_id: Contributing player's ID.
            amount: Chips contributed (callers never pass a negative amount).
        """
        self._contributions[player_id] = self._contributions.get(player_id, 0) + amount

    @property
    def total(self) -> int:
        """Total chips in the pot."""
        return sum(self._contributions.values())

    def get_total(self) -> int:
        """Get total pot amount."""
        return self.total

    def get_contribution(self, player_id: PlayerId) -> int:
        """Get a player's total contribution to the pot."""
        return self._contributions.get(player_id, 0)

    @property
    def contributions(self) -> dict[PlayerId, int]:
        """Copy of the contribution map."""
        return dict(self._contributions)

    def reset(self) -> None:
        """Reset pot for new hand."""
        self._contributions = {}

    def build_side_pots(self, players: Iterable[Player]) -> list[SidePot]:
        """Partition the pot by contribution level.

        Each distinct contribution level caps one pot. A pot is eligible to
        players still in the hand who contributed at least its cap. A level
        only folded players reached sits above every remaining contribution;
        its chips are carried up and end in the highest pot (or in one pot
        for everyone still in the hand when no other pot exists).

        Args:
            players: Players at the table; folded ones are ignored.

        Returns:
            Pots ordered by ascending cap.
        """
        in_hand = [p for p in players if p.in_hand]
        if not in_hand or not self._contributions:
            return []

        caps = sorted({c for c in self._contributions.values() if c > 0})
        pots: list[SidePot] = []
        carry = 0
        prev_cap = 0

        for cap in caps:
            amount = sum(
                min(max(contrib - prev_cap, 0), cap - prev_cap)
                for contrib in self._contributions.values()
            )
            eligible = [
                p.player_id for p in in_hand
                if self.get_contribution(p.player_id) >= cap
            ]
            prev_cap = cap

            if not eligible:
                carry += amount
                continue

            pots.append(SidePot(amount=amount + carry, eligible_players=eligible, cap=cap))
            carry = 0

        if carry:
            if pots:
                pots[-1].amount += carry
            else:
                pots.append(SidePot(
                    amount=carry,
                    eligible_players=[p.player_id for p in in_hand],
                    cap=prev_cap,
                ))

        logger.debug(f"Built {len(pots)} pots: {[(p.cap, p.amount) for p in pots]}")
        return pots

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "contributions": dict(self._contributions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Pot":
        """Restore from dictionary."""
        pot = cls()
        pot._contributions = dict(data.get("contributions", {}))
        return pot


def calculate_winnings(
    side_pots: list[SidePot],
    winners_by_pot: dict[int, list[PlayerId]]
) -> dict[PlayerId, int]:
    """Calculate how much each player wins.

    Args:
        side_pots: List of side pots.
        winners_by_pot: Dict of pot_index -> list of winner ids.

    Returns:
        Dict of player_id -> amount won.
    """
    winnings: dict[PlayerId, int] = {}

    for pot_idx, pot in enumerate(side_pots):
        winners = winners_by_pot.get(pot_idx)
        if not winners:
            continue

        # Split pot among winners, odd chips to the first listed
        share, remainder = divmod(pot.amount, len(winners))

        for i, winner in enumerate(winners):
            amount = share + (1 if i < remainder else 0)
            winnings[winner] = winnings.get(winner, 0) + amount

    return winnings
