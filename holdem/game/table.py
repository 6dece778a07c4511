"""Seat topology, blinds and dealing for a Texas Hold'em table."""
from typing import Optional

from holdem.config import config
from holdem.game.deck import Deck, Card
from holdem.game.player import Player, PlayerId, PlayerStatus, new_player_id
from holdem.game.pot import Pot
from holdem.utils.logger import get_logger

logger = get_logger(__name__)


class Table:
    """A poker table: seated players, the button, the board and the deck."""

    def __init__(
        self,
        seats: list[tuple[str, int]],
        small_blind: int = 1,
        big_blind: int = 2,
        seed: Optional[int] = None,
    ):
        """Initialize a poker table.

        Args:
            seats: (name, starting chips) per seat, in clockwise order.
            small_blind: Small blind amount.
            big_blind: Big blind amount.
            seed: Optional deck seed for reproducible hands.

        Raises:
            ValueError: If the seating or blinds are invalid.
        """
        if not config.min_players <= len(seats) <= config.max_players:
            raise ValueError(
                f"Table needs {config.min_players}-{config.max_players} seats, got {len(seats)}"
            )
        if small_blind <= 0 or big_blind < small_blind:
            raise ValueError(f"Invalid blinds {small_blind}/{big_blind}")
        if any(chips < 0 for _, chips in seats):
            raise ValueError("Starting chips cannot be negative")

        self.players: list[Player] = [
            Player(player_id=new_player_id(), name=name, seat=i, chips=chips)
            for i, (name, chips) in enumerate(seats)
        ]
        self.small_blind = small_blind
        self.big_blind = big_blind
        self.dealer_button = 0
        self.board: list[Card] = []
        self._deck = Deck(seed)

    @classmethod
    def from_config(cls, names: list[str]) -> "Table":
        """Create a table using the configured blinds, stack and seed."""
        return cls(
            seats=[(name, config.starting_chips) for name in names],
            small_blind=config.small_blind,
            big_blind=config.big_blind,
            seed=config.deck_seed,
        )

    @property
    def seat_count(self) -> int:
        return len(self.players)

    @property
    def deck(self) -> Deck:
        return self._deck

    # Seat topology

    def player_at(self, seat: int) -> Player:
        return self.players[seat]

    def get_player_by_id(self, player_id: PlayerId) -> Optional[Player]:
        """Get player by ID.

        Args:
            player_id: Player's ID.

        Returns:
            Player if found.
        """
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def players_in_hand(self) -> list[Player]:
        """Players still contesting the hand, in seat order."""
        return [p for p in self.players if p.in_hand]

    def total_chips(self) -> int:
        """Sum of all stacks behind (excluding the pot)."""
        return sum(p.chips for p in self.players)

    def advance_button(self) -> None:
        """Rotate the dealer button one seat clockwise.

        The button may land on a sitting-out seat; blinds and dealing skip it.
        """
        self.dealer_button = (self.dealer_button + 1) % self.seat_count

    def next_occupied_seat(self, from_exclusive: int) -> int:
        """Next seat after ``from_exclusive`` that is not sitting out.

        Returns:
            Seat index, or -1 if every seat is sitting out.
        """
        seat = from_exclusive
        for _ in range(self.seat_count):
            seat = (seat + 1) % self.seat_count
            if self.players[seat].status != PlayerStatus.SITTING_OUT:
                return seat
        return -1

    # Dealing

    def new_deck_and_shuffle(self) -> None:
        """Clear the board and shuffle a fresh deck."""
        self.board.clear()
        self._deck.reset()
        self._deck.shuffle()

    def post_blinds(self, pot: Pot) -> tuple[Player, Player]:
        """Post small and big blinds.

        Args:
            pot: Pot receiving the blinds.

        Returns:
            The small blind and big blind players.
        """
        sb_seat = self.next_occupied_seat(self.dealer_button)
        bb_seat = self.next_occupied_seat(sb_seat)
        if sb_seat == -1 or sb_seat == bb_seat:
            raise ValueError("At least two players are needed to post blinds")

        sb_player = self.players[sb_seat]
        bb_player = self.players[bb_seat]

        sb_amount = sb_player.commit_chips(self.small_blind)
        pot.add_bet(sb_player.player_id, sb_amount)

        bb_amount = bb_player.commit_chips(self.big_blind)
        pot.add_bet(bb_player.player_id, bb_amount)

        logger.info(f"Blinds posted: {sb_player.name}={sb_amount}, {bb_player.name}={bb_amount}")
        return sb_player, bb_player

    def deal_hole_cards(self) -> None:
        """Deal two cards to every seat not sitting out, one card per pass."""
        start = self.next_occupied_seat(self.dealer_button)
        if start == -1:
            return

        for player in self.players:
            player.hole_cards = []

        for _ in range(2):
            seat = start
            while True:
                self.players[seat].receive_card(self._deck.draw())
                seat = self.next_occupied_seat(seat)
                if seat == start:
                    break

    def burn_one(self) -> None:
        self._deck.burn()

    def deal_flop(self) -> None:
        self._deal_community_cards(3)

    def deal_turn(self) -> None:
        self._deal_community_cards(1)

    def deal_river(self) -> None:
        self._deal_community_cards(1)

    def _deal_community_cards(self, count: int) -> None:
        """Burn one card, then deal ``count`` cards to the board."""
        self.burn_one()
        cards = self._deck.draw_many(count)
        self.board.extend(cards)
        logger.info(f"Dealt {count} community cards: {cards}")

    def to_dict(self, hide_cards: bool = True) -> dict:
        """Serialize table state."""
        return {
            "dealer_button": self.dealer_button,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "board": [str(c) for c in self.board],
            "players": [p.to_dict(hide_cards=hide_cards) for p in self.players],
        }
