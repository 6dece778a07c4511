"""Betting-round state machine for one hand of Texas Hold'em."""
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from holdem.game.betting import ActionRequest, ActionType, BettingState, Street
from holdem.game.errors import IllegalActionError, OutOfTurnError
from holdem.game.hand_eval import HandResult, compare_hands, evaluate_hand
from holdem.game.player import Player, PlayerId
from holdem.game.pot import Pot, SidePot, calculate_winnings
from holdem.game.table import Table
from holdem.utils.logger import get_logger

logger = get_logger(__name__)

EventCallback = Callable[[str, Any], None]


@dataclass
class ShowdownResult:
    """Everything settlement needs once the hand is over.

    Chips are not moved; ``winnings`` is what each player is owed.
    """
    side_pots: list[SidePot]
    best_hands: dict[PlayerId, HandResult]
    winners_by_pot: dict[int, list[PlayerId]]
    winnings: dict[PlayerId, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "side_pots": [sp.to_dict() for sp in self.side_pots],
            "best_hands": {
                pid: {
                    "category": hand.category.name,
                    "cards": [str(c) for c in hand.cards],
                    "score": hand.score,
                    "description": hand.description,
                }
                for pid, hand in self.best_hands.items()
            },
            "winners_by_pot": {str(i): ids for i, ids in self.winners_by_pot.items()},
            "winnings": self.winnings,
        }


class HandEngine:
    """Drives one table through a hand: blinds, betting rounds, streets.

    All mutating calls are serialized by a per-engine lock, so an engine may
    be shared between threads; separate engines share nothing.
    """

    def __init__(self, table: Table):
        self.table = table
        self.pot = Pot()
        self.state = BettingState()
        self.hand_number = 0
        self._lock = threading.Lock()
        self._event_callback: Optional[EventCallback] = None

    def set_event_callback(self, callback: EventCallback) -> None:
        """Set callback for broadcasting events.

        Args:
            callback: Function(event_type, data) called after state changes.
        """
        self._event_callback = callback

    def _emit(self, event_type: str, data: Any) -> None:
        """Emit an event via callback."""
        if self._event_callback:
            self._event_callback(event_type, data)

    # Hand lifecycle

    def can_start_hand(self) -> bool:
        """Check if enough players have chips to play a hand."""
        ready = [p for p in self.table.players if p.ready_for_next_hand]
        return len(ready) >= 2

    def start_hand(self) -> None:
        """Shuffle, post blinds and deal hole cards for a new hand.

        Raises:
            ValueError: If fewer than two players can play.
        """
        with self._lock:
            self._start_hand()
        self._emit_hand_started()

    def start_next_hand(self) -> None:
        """Move the button, then start a hand.

        Raises:
            ValueError: If fewer than two players can play; the button stays put.
        """
        with self._lock:
            if not self.can_start_hand():
                raise ValueError("At least two players with chips are needed to start a hand")
            self.table.advance_button()
            self._start_hand()
        self._emit_hand_started()

    def _emit_hand_started(self) -> None:
        self._emit("hand_started", {
            "hand_number": self.hand_number,
            "dealer_button": self.table.dealer_button,
            "players": [p.to_dict() for p in self.table.players],
        })

    def _start_hand(self) -> None:
        if not self.can_start_hand():
            raise ValueError("At least two players with chips are needed to start a hand")

        self.hand_number += 1
        self.pot.reset()
        self.table.new_deck_and_shuffle()
        for player in self.table.players:
            player.reset_for_new_hand()

        self.state = BettingState()
        self.state.clear_street()

        sb_player, bb_player = self.table.post_blinds(self.pot)
        for player in (sb_player, bb_player):
            self.state.post(player.player_id, self.pot.get_contribution(player.player_id))

        self.state.min_raise = self.table.big_blind
        self.table.deal_hole_cards()
        self.state.current_bet = self.table.big_blind
        self.state.to_act_seat = self._next_to_act(bb_player.seat)

        logger.info(
            f"Started hand #{self.hand_number}: button={self.table.dealer_button} "
            f"sb={sb_player.name} bb={bb_player.name}"
        )

    # Actions

    def apply(self, action: ActionRequest) -> bool:
        """Validate and apply one player action.

        Args:
            action: The requested action.

        Returns:
            True if the betting round is settled after this action.

        Raises:
            OutOfTurnError: If the actor does not hold the turn.
            IllegalActionError: If the action breaks a betting rule.
        """
        with self._lock:
            actor = self._actor_for(action)
            settled = self._apply(actor, action)
            street = self.state.street
        self._emit("player_action", {
            "action": action.to_dict(),
            "name": actor.name,
            "settled": settled,
            "street": street.value,
        })
        return settled

    def _actor_for(self, action: ActionRequest) -> Player:
        seat = self.state.to_act_seat
        if self.state.street == Street.SHOWDOWN or seat < 0:
            self._reject("No player is due to act")
        actor = self.table.player_at(seat)
        if actor.player_id != action.player_id:
            logger.warning(f"Out-of-turn action from {action.player_id}; {actor.name} is to act")
            raise OutOfTurnError(f"Out-of-turn action: {actor.name} is to act")
        if not actor.can_act:
            self._reject(f"{actor.name} is {actor.status.value} and cannot act")
        return actor

    def _reject(self, reason: str) -> None:
        logger.warning(f"Rejected action: {reason}")
        raise IllegalActionError(reason)

    def sit_out(self, player_id: PlayerId) -> None:
        """Take a player out of play.

        Mid-hand the player forfeits the hand like a fold: their chips stay in
        the pot and the turn moves on if it was theirs.

        Raises:
            KeyError: If the player is not seated.
        """
        with self._lock:
            player = self._require_player(player_id)
            forfeits = player.in_hand and self._hand_in_progress()
            player.sit_out()
            if forfeits:
                logger.info(f"{player.name} sits out and forfeits the hand")
                if (self.state.to_act_seat == player.seat
                        or len(self.table.players_in_hand()) == 1):
                    self._after_action(player)
            street = self.state.street
        self._emit("player_sat_out", {"name": player.name, "street": street.value})

    def sit_in(self, player_id: PlayerId) -> None:
        """Return a sitting-out player to play from the next hand."""
        with self._lock:
            self._require_player(player_id).sit_in()

    def _hand_in_progress(self) -> bool:
        return self.hand_number > 0 and self.state.street != Street.SHOWDOWN

    def _apply(self, actor: Player, action: ActionRequest) -> bool:
        state = self.state
        owed = state.current_bet - state.contrib_of(actor.player_id)

        if action.type == ActionType.FOLD:
            actor.fold()
            logger.info(f"{actor.name} folds")

        elif action.type == ActionType.CHECK:
            if owed != 0:
                self._reject(f"{actor.name} cannot check facing a bet of {owed}")
            logger.info(f"{actor.name} checks")

        elif action.type == ActionType.CALL:
            if owed <= 0:
                self._reject(f"{actor.name} has nothing to call")
            paid = self._commit(actor, owed)
            logger.info(f"{actor.name} calls {paid}")

        elif action.type == ActionType.BET:
            if state.current_bet != 0:
                self._reject("Cannot bet when a bet exists; raise instead")
            if action.chips <= 0:
                self._reject("Bet must be positive")
            if action.chips < self.table.big_blind and action.chips < actor.chips:
                self._reject(f"Bet must be at least {self.table.big_blind}")
            paid = self._commit(actor, action.chips)
            state.min_raise = max(paid, self.table.big_blind)
            state.last_aggressor_seat = actor.seat
            logger.info(f"{actor.name} bets {paid}")

        elif action.type == ActionType.RAISE:
            if state.current_bet == 0:
                self._reject("Nothing to raise; bet instead")
            if action.chips <= 0:
                self._reject("Raise increment must be positive")
            goes_all_in = owed + action.chips >= actor.chips
            if action.chips < state.min_raise and not goes_all_in:
                self._reject(f"Raise must be at least {state.min_raise} over the call")

            previous_bet = state.current_bet
            paid = self._commit(actor, owed + action.chips)
            increment = state.current_bet - previous_bet
            if increment > 0:
                # A short all-in raise does not change the minimum
                state.min_raise = max(state.min_raise, increment)
                state.last_aggressor_seat = actor.seat
                logger.info(f"{actor.name} raises by {increment} to {state.current_bet}")
            else:
                logger.info(f"{actor.name} calls {paid} all-in")

        else:
            self._reject(f"Unknown action {action.type}")

        state.mark_acted(actor.player_id)
        return self._after_action(actor)

    def _commit(self, actor: Player, amount: int) -> int:
        """Move chips from the actor's stack into the pot and street ledger."""
        paid = actor.commit_chips(amount)
        self.pot.add_bet(actor.player_id, paid)
        self.state.post(actor.player_id, paid)
        return paid

    def _after_action(self, actor: Player) -> bool:
        if len(self.table.players_in_hand()) == 1:
            self.state.street = Street.SHOWDOWN
            self.state.to_act_seat = -1
            logger.info("All but one player folded")
            return True

        self.state.to_act_seat = self._next_to_act(actor.seat)
        return self.state.to_act_seat == -1

    def _needs_to_act(self, player: Player) -> bool:
        if not player.can_act:
            return False
        return (not self.state.has_acted(player.player_id)
                or self.state.contrib_of(player.player_id) < self.state.current_bet)

    def _next_to_act(self, from_seat: int) -> int:
        """First seat after ``from_seat`` whose player still owes an action, or -1."""
        seat = from_seat
        for _ in range(self.table.seat_count):
            seat = self.table.next_occupied_seat(seat)
            if seat == -1:
                return -1
            if self._needs_to_act(self.table.player_at(seat)):
                return seat
        return -1

    def is_round_settled(self) -> bool:
        """True when no seat owes an action on this street."""
        return self.state.street == Street.SHOWDOWN or self.state.to_act_seat == -1

    def call_amount(self, player_id: PlayerId) -> int:
        """Chips the player must add to call (capped at their stack)."""
        player = self._require_player(player_id)
        owed = self.state.current_bet - self.state.contrib_of(player_id)
        return max(0, min(owed, player.chips))

    def legal_actions(self, player_id: PlayerId) -> list[ActionType]:
        """Actions the player may submit right now.

        Returns:
            Empty list unless it is this player's turn.
        """
        seat = self.state.to_act_seat
        if self.state.street == Street.SHOWDOWN or seat < 0:
            return []
        player = self.table.player_at(seat)
        if player.player_id != player_id or not player.can_act:
            return []

        actions = [ActionType.FOLD]
        owed = self.state.current_bet - self.state.contrib_of(player_id)
        if owed == 0:
            actions.append(ActionType.CHECK)
        else:
            actions.append(ActionType.CALL)

        if self.state.current_bet == 0:
            actions.append(ActionType.BET)
        elif player.chips > owed:
            actions.append(ActionType.RAISE)
        return actions

    # Streets

    def deal_next_street(self) -> Street:
        """Deal the next street's community cards once betting has settled.

        Returns:
            The new street.

        Raises:
            IllegalActionError: If the current round still has players to act.
        """
        with self._lock:
            street = self._deal_next_street()
        self._emit("street_dealt", {
            "street": street.value,
            "board": [str(c) for c in self.table.board],
            "pot": self.pot.total,
        })
        return street

    def _deal_next_street(self) -> Street:
        if not self.is_round_settled():
            self._reject("Betting round is not settled")

        state = self.state
        state.clear_street()

        if state.street == Street.PREFLOP:
            self.table.deal_flop()
        elif state.street == Street.FLOP:
            self.table.deal_turn()
        elif state.street == Street.TURN:
            self.table.deal_river()
        state.advance_street()

        if state.street != Street.SHOWDOWN:
            state.min_raise = self.table.big_blind
            if self.betting_closed():
                state.to_act_seat = -1
            else:
                state.to_act_seat = self._next_to_act(self.table.dealer_button)
        else:
            state.to_act_seat = -1

        logger.info(f"Street {state.street.value}: board={self.table.board} pot={self.pot.total}")
        return state.street

    def betting_closed(self) -> bool:
        """True when fewer than two players in the hand can still bet."""
        return sum(1 for p in self.table.players_in_hand() if p.can_act) < 2

    def run_out_board(self) -> None:
        """Deal every remaining street through to showdown.

        Raises:
            IllegalActionError: If the current round still has players to act.
        """
        dealt = []
        try:
            with self._lock:
                while self.state.street != Street.SHOWDOWN:
                    street = self._deal_next_street()
                    dealt.append({
                        "street": street.value,
                        "board": [str(c) for c in self.table.board],
                        "pot": self.pot.total,
                    })
        finally:
            for data in dealt:
                self._emit("street_dealt", data)

    # Showdown

    def showdown(self) -> ShowdownResult:
        """Rank the remaining hands and work out each pot's winners.

        With a single player left the whole pot goes to them without
        evaluating cards.

        Raises:
            IllegalActionError: If the hand has not reached showdown.
        """
        with self._lock:
            result = self._showdown()
        self._emit("showdown", result.to_dict())
        return result

    def _showdown(self) -> ShowdownResult:
        if self.state.street != Street.SHOWDOWN:
            self._reject("Hand has not reached showdown")

        side_pots = self.pot.build_side_pots(self.table.players)
        contenders = self.table.players_in_hand()

        best_hands: dict[PlayerId, HandResult] = {}
        if len(contenders) > 1:
            for player in contenders:
                best_hands[player.player_id] = evaluate_hand(player.hole_cards, self.table.board)

        winners_by_pot: dict[int, list[PlayerId]] = {}
        for pot_idx, side_pot in enumerate(side_pots):
            if len(contenders) == 1:
                winners_by_pot[pot_idx] = [contenders[0].player_id]
                continue
            eligible = [(pid, best_hands[pid]) for pid in side_pot.eligible_players]
            winners_by_pot[pot_idx] = compare_hands(eligible)[0]

        winnings = calculate_winnings(side_pots, winners_by_pot)
        logger.info(f"Hand #{self.hand_number} winnings: {winnings}")
        return ShowdownResult(
            side_pots=side_pots,
            best_hands=best_hands,
            winners_by_pot=winners_by_pot,
            winnings=winnings,
        )

    # Helpers

    def _require_player(self, player_id: PlayerId) -> Player:
        player = self.table.get_player_by_id(player_id)
        if player is None:
            raise KeyError(f"Unknown player {player_id}")
        return player

    def to_dict(self) -> dict:
        """Serialize engine state for the transport layer."""
        return {
            "hand_number": self.hand_number,
            "table": self.table.to_dict(),
            "pot": self.pot.to_dict(),
            "betting": self.state.to_dict(),
        }
