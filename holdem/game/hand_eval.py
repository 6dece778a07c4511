"""Hand evaluation for Texas Hold'em."""
from enum import IntEnum
from typing import Iterable, Sequence
from dataclasses import dataclass

from holdem.game.deck import Card, Rank, Suit
from holdem.game.errors import InvalidHandSizeError


class HandCategory(IntEnum):
    """Poker hand categories (higher is better)."""
    HIGH_CARD = 1
    ONE_PAIR = 2
    TWO_PAIR = 3
    THREE_OF_A_KIND = 4
    STRAIGHT = 5
    FLUSH = 6
    FULL_HOUSE = 7
    FOUR_OF_A_KIND = 8
    STRAIGHT_FLUSH = 9


_KICKER_SLOTS = 7
_ACE_HIGH = 14
_WHEEL_HIGH = 5


@dataclass(frozen=True, eq=False)
class HandResult:
    """Best five-card hand found by ``evaluate_best``."""
    category: HandCategory
    cards: tuple[Card, ...]  # The 5 cards making the hand, descending
    kickers: tuple[int, ...]  # Tiebreaker ranks (highest to lowest importance)
    score: int  # Packed category + kickers; bigger is better
    description: str

    @property
    def kicker_ranks(self) -> list[Rank]:
        """Tiebreakers as card ranks."""
        return [Rank.from_high_value(k) for k in self.kickers]

    def __lt__(self, other: "HandResult") -> bool:
        return self.score < other.score

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandResult):
            return NotImplemented
        return self.score == other.score

    def __hash__(self) -> int:
        return hash(self.score)

    def __gt__(self, other: "HandResult") -> bool:
        return other < self

    def __le__(self, other: "HandResult") -> bool:
        return not other < self

    def __ge__(self, other: "HandResult") -> bool:
        return not self < other

    def __str__(self) -> str:
        return f"{self.description}: {' '.join(str(c) for c in self.cards)}"


def _value(card: Card) -> int:
    return card.rank.high_value


def _name(value: int) -> str:
    return str(Rank.from_high_value(value))


def _pack_score(category: HandCategory, kickers: Sequence[int]) -> int:
    """Category nibble first, then seven kicker nibbles (zero padded)."""
    score = int(category)
    padded = list(kickers) + [0] * (_KICKER_SLOTS - len(kickers))
    for kicker in padded[:_KICKER_SLOTS]:
        score = (score << 4) | (kicker & 0xF)
    return score


def _find_straight_high(mask: int) -> int:
    """High card of the best five-bit run in ``mask``, or -1.

    Bit ``r`` marks rank ``r`` present; bit 1 mirrors the Ace for the wheel.
    """
    for high in range(_ACE_HIGH, _WHEEL_HIGH - 1, -1):
        window = 0b11111 << (high - 4)
        if mask & window == window:
            return high
    return -1


def _with_low_ace(mask: int) -> int:
    if mask & (1 << _ACE_HIGH):
        mask |= 1 << 1
    return mask


def _straight_cards(pool: list[Card], high: int) -> list[Card]:
    """Pick one card per rank for the straight ending at ``high``."""
    wanted = [_ACE_HIGH if r == 1 else r for r in range(high, high - 5, -1)]
    used = []
    for rank_value in wanted:
        used.append(next(c for c in pool if _value(c) == rank_value))
    return used


def _by_value(cards: Iterable[Card]) -> list[Card]:
    return sorted(cards, key=_value, reverse=True)


def _result(category: HandCategory, used: list[Card], kickers: list[int],
            description: str, wheel: bool = False) -> HandResult:
    # The wheel keeps its 5-4-3-2-A order so the Ace reads low
    cards = tuple(used) if wheel else tuple(_by_value(used))
    return HandResult(
        category=category,
        cards=cards,
        kickers=tuple(kickers),
        score=_pack_score(category, kickers),
        description=description,
    )


def evaluate_best(cards: Iterable[Card]) -> HandResult:
    """Evaluate the best 5-card hand out of 5 to 7 cards.

    Args:
        cards: Hole cards plus board.

    Returns:
        HandResult for the best hand; the result does not depend on input order.

    Raises:
        InvalidHandSizeError: If fewer than 5 or more than 7 cards are given,
            or a card appears twice.
    """
    pool = list(cards)
    if not 5 <= len(pool) <= 7:
        raise InvalidHandSizeError(f"Expected 5 to 7 cards, got {len(pool)}")
    if len(set(pool)) != len(pool):
        raise InvalidHandSizeError(f"Duplicate cards in {pool}")

    # Sorting first makes every pick below independent of input order
    pool = sorted(pool, key=lambda c: (_value(c), c.suit.value), reverse=True)

    counts = [0] * (_ACE_HIGH + 1)
    by_suit: dict[Suit, list[Card]] = {suit: [] for suit in Suit}
    rank_mask = 0
    for card in pool:
        value = _value(card)
        counts[value] += 1
        rank_mask |= 1 << value
        by_suit[card.suit].append(card)

    flush_cards = next((suited for suited in by_suit.values() if len(suited) >= 5), None)

    straight_high = _find_straight_high(_with_low_ace(rank_mask))

    # Straight flush
    if flush_cards is not None:
        suited_mask = 0
        for card in flush_cards:
            suited_mask |= 1 << _value(card)
        sf_high = _find_straight_high(_with_low_ace(suited_mask))
        if sf_high != -1:
            used = _straight_cards(flush_cards, sf_high)
            if sf_high == _ACE_HIGH:
                description = "Royal Flush"
            else:
                description = f"Straight Flush, {_name(sf_high)} high"
            return _result(HandCategory.STRAIGHT_FLUSH, used, [sf_high], description,
                           wheel=sf_high == _WHEEL_HIGH)

    quads = [r for r in range(_ACE_HIGH, 1, -1) if counts[r] == 4]
    trips = [r for r in range(_ACE_HIGH, 1, -1) if counts[r] == 3]
    pairs = [r for r in range(_ACE_HIGH, 1, -1) if counts[r] == 2]

    # Four of a kind
    if quads:
        quad = quads[0]
        kicker = next(c for c in pool if _value(c) != quad)
        used = [c for c in pool if _value(c) == quad] + [kicker]
        return _result(HandCategory.FOUR_OF_A_KIND, used, [quad, _value(kicker)],
                       f"Four of a Kind, {_name(quad)}s")

    # Full house; a second set of trips can serve as the pair
    if trips and (len(trips) > 1 or pairs):
        top_trip = trips[0]
        top_pair = max(trips[1:] + pairs)
        used = ([c for c in pool if _value(c) == top_trip][:3]
                + [c for c in pool if _value(c) == top_pair][:2])
        return _result(HandCategory.FULL_HOUSE, used, [top_trip, top_pair],
                       f"Full House, {_name(top_trip)}s full of {_name(top_pair)}s")

    # Flush
    if flush_cards is not None:
        used = flush_cards[:5]
        return _result(HandCategory.FLUSH, used, [_value(c) for c in used],
                       f"Flush, {_name(_value(used[0]))} high")

    # Straight
    if straight_high != -1:
        used = _straight_cards(pool, straight_high)
        return _result(HandCategory.STRAIGHT, used, [straight_high],
                       f"Straight, {_name(straight_high)} high",
                       wheel=straight_high == _WHEEL_HIGH)

    # Three of a kind
    if trips:
        trip = trips[0]
        kickers = [c for c in pool if _value(c) != trip][:2]
        used = [c for c in pool if _value(c) == trip] + kickers
        return _result(HandCategory.THREE_OF_A_KIND, used,
                       [trip] + [_value(c) for c in kickers],
                       f"Three of a Kind, {_name(trip)}s")

    # Two pair
    if len(pairs) >= 2:
        high_pair, low_pair = pairs[0], pairs[1]
        kicker = next(c for c in pool if _value(c) not in (high_pair, low_pair))
        used = [c for c in pool if _value(c) in (high_pair, low_pair)] + [kicker]
        return _result(HandCategory.TWO_PAIR, used, [high_pair, low_pair, _value(kicker)],
                       f"Two Pair, {_name(high_pair)}s and {_name(low_pair)}s")

    # One pair
    if pairs:
        pair = pairs[0]
        kickers = [c for c in pool if _value(c) != pair][:3]
        used = [c for c in pool if _value(c) == pair] + kickers
        return _result(HandCategory.ONE_PAIR, used,
                       [pair] + [_value(c) for c in kickers],
                       f"Pair of {_name(pair)}s")

    # High card
    used = pool[:5]
    return _result(HandCategory.HIGH_CARD, used, [_value(c) for c in used],
                   f"High Card, {_name(_value(used[0]))}")


def evaluate_hand(hole_cards: list[Card], community_cards: list[Card]) -> HandResult:
    """Evaluate the best 5-card hand from hole cards and community cards.

    Args:
        hole_cards: Player's 2 hole cards.
        community_cards: 3-5 community cards.

    Returns:
        Best possible HandResult.
    """
    return evaluate_best(list(hole_cards) + list(community_cards))


def compare_hands(results: list[tuple[str, HandResult]]) -> list[list[str]]:
    """Compare multiple hands and return winners.

    Args:
        results: List of (player_id, HandResult) tuples.

    Returns:
        List of winner groups, best first (ties are in the same group).
    """
    if not results:
        return []

    # Sort by hand strength descending
    sorted_results = sorted(results, key=lambda x: x[1].score, reverse=True)

    # Group by equal hands
    winners: list[list[str]] = []
    current_group: list[str] = [sorted_results[0][0]]
    current_hand = sorted_results[0][1]

    for player_id, hand in sorted_results[1:]:
        if hand == current_hand:
            current_group.append(player_id)
        else:
            winners.append(current_group)
            current_group = [player_id]
            current_hand = hand

    winners.append(current_group)
    return winners
