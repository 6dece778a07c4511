"""Tests for the hand engine state machine."""
import random
import threading

import pytest
from holdem.game.betting import ActionRequest, ActionType, Street
from holdem.game.engine import HandEngine
from holdem.game.errors import IllegalActionError, OutOfTurnError
from holdem.game.player import PlayerStatus
from holdem.game.table import Table


def make_engine(*chips: int, seed: int = 42) -> HandEngine:
    """Create an engine with one seat per stack, blinds 1/2, and start a hand."""
    stacks = chips or (100, 100, 100)
    table = Table(
        [(f"player_{i}", c) for i, c in enumerate(stacks)],
        small_blind=1,
        big_blind=2,
        seed=seed,
    )
    engine = HandEngine(table)
    engine.start_hand()
    return engine


def act(engine: HandEngine, seat: int, action: ActionType, chips: int = 0) -> bool:
    """Submit an action for the player in ``seat``."""
    player = engine.table.player_at(seat)
    return engine.apply(ActionRequest(player.player_id, action, chips))


def chips_in_play(engine: HandEngine) -> int:
    return engine.table.total_chips() + engine.pot.total


class TestHandStart:
    """Test starting a hand."""

    def test_start_hand_deals_cards(self):
        """Test every player gets two hole cards."""
        engine = make_engine()

        for player in engine.table.players:
            assert len(player.hole_cards) == 2
        assert engine.table.deck.remaining == 46

    def test_start_hand_posts_blinds(self):
        """Test blinds go into the pot and the street ledger."""
        engine = make_engine()
        sb = engine.table.player_at(1)
        bb = engine.table.player_at(2)

        assert engine.pot.total == 3
        assert engine.state.contrib_of(sb.player_id) == 1
        assert engine.state.contrib_of(bb.player_id) == 2
        assert engine.state.current_bet == 2
        assert engine.state.min_raise == 2

    def test_first_to_act_is_left_of_big_blind(self):
        """Test preflop action starts after the big blind."""
        engine = make_engine(100, 100, 100, 100)

        assert engine.state.street == Street.PREFLOP
        assert engine.state.to_act_seat == 3

    def test_cannot_start_with_one_funded_player(self):
        """Test a hand needs two players with chips."""
        table = Table([("a", 100), ("b", 0)], small_blind=1, big_blind=2)
        engine = HandEngine(table)

        assert not engine.can_start_hand()
        with pytest.raises(ValueError):
            engine.start_hand()

    def test_busted_player_sits_out(self):
        """Test a player without chips is skipped for blinds and cards."""
        engine = make_engine(0, 100, 100, 100)
        busted = engine.table.player_at(0)

        assert busted.status == PlayerStatus.SITTING_OUT
        assert busted.hole_cards == []
        assert engine.state.to_act_seat == 3

    def test_next_hand_moves_button_and_resets(self):
        """Test a second hand rotates the button and clears the old hand."""
        engine = make_engine()
        act(engine, 0, ActionType.FOLD)
        act(engine, 1, ActionType.FOLD)
        winner = engine.table.player_at(2)
        winner.win_pot(engine.showdown().winnings[winner.player_id])

        engine.start_next_hand()

        assert engine.hand_number == 2
        assert engine.table.dealer_button == 1
        assert engine.pot.total == 3
        assert all(p.status == PlayerStatus.ACTIVE for p in engine.table.players)
        assert engine.state.to_act_seat == 1
        assert chips_in_play(engine) == 300


class TestActionValidation:
    """Test illegal actions are rejected without side effects."""

    def test_out_of_turn(self):
        """Test acting out of turn raises a distinct error."""
        engine = make_engine()

        with pytest.raises(OutOfTurnError):
            act(engine, 1, ActionType.CALL)
        assert engine.state.to_act_seat == 0

    def test_out_of_turn_is_illegal_action(self):
        """Test out-of-turn errors are illegal-action errors."""
        assert issubclass(OutOfTurnError, IllegalActionError)

    def test_check_facing_bet(self):
        """Test checking with chips owed is illegal."""
        engine = make_engine()
        before = engine.to_dict()

        with pytest.raises(IllegalActionError):
            act(engine, 0, ActionType.CHECK)
        assert engine.to_dict() == before

    def test_bet_when_bet_exists(self):
        """Test BET is refused preflop since the big blind is a bet."""
        engine = make_engine()

        with pytest.raises(IllegalActionError):
            act(engine, 0, ActionType.BET, 10)

    def test_call_with_nothing_owed(self):
        """Test calling with nothing to call is illegal."""
        engine = make_engine()
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)

        with pytest.raises(IllegalActionError):
            act(engine, 2, ActionType.CALL)

    def test_raise_below_minimum(self):
        """Test a short raise with chips behind is illegal."""
        engine = make_engine()
        stack = engine.table.player_at(0).chips

        with pytest.raises(IllegalActionError):
            act(engine, 0, ActionType.RAISE, 1)
        assert engine.table.player_at(0).chips == stack
        assert engine.pot.total == 3

    def test_raise_below_minimum_all_in(self):
        """Test a short raise that puts the actor all-in is allowed."""
        engine = make_engine(3, 100, 100)

        settled = act(engine, 0, ActionType.RAISE, 1)

        actor = engine.table.player_at(0)
        assert not settled
        assert actor.status == PlayerStatus.ALL_IN
        assert engine.state.current_bet == 3
        assert engine.state.min_raise == 2

    def test_raise_with_nothing_to_raise(self):
        """Test RAISE is refused when nobody has bet."""
        engine = make_engine()
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CHECK)
        engine.deal_next_street()

        with pytest.raises(IllegalActionError):
            act(engine, 1, ActionType.RAISE, 10)

    def test_bet_below_big_blind(self):
        """Test a postflop bet must be at least the big blind."""
        engine = make_engine()
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CHECK)
        engine.deal_next_street()

        with pytest.raises(IllegalActionError):
            act(engine, 1, ActionType.BET, 1)

    def test_no_actions_after_showdown(self):
        """Test nobody can act once the hand is decided."""
        engine = make_engine()
        act(engine, 0, ActionType.FOLD)
        act(engine, 1, ActionType.FOLD)

        with pytest.raises(IllegalActionError):
            act(engine, 2, ActionType.CHECK)


class TestBettingRound:
    """Test betting round progression and settlement."""

    def test_big_blind_gets_option(self):
        """Test limpers do not close the round before the big blind acts."""
        engine = make_engine()

        assert not act(engine, 0, ActionType.CALL)
        assert not act(engine, 1, ActionType.CALL)
        assert engine.state.to_act_seat == 2
        assert act(engine, 2, ActionType.CHECK)
        assert engine.state.to_act_seat == -1

    def test_big_blind_can_raise_option(self):
        """Test a raise from the big blind reopens the action."""
        engine = make_engine()
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)

        assert not act(engine, 2, ActionType.RAISE, 4)
        assert engine.state.current_bet == 6
        assert engine.state.last_aggressor_seat == 2
        assert engine.state.to_act_seat == 0
        assert not act(engine, 0, ActionType.CALL)
        assert act(engine, 1, ActionType.CALL)

    def test_full_raise_sets_min_raise(self):
        """Test a raise sets the new minimum increment."""
        engine = make_engine()
        act(engine, 0, ActionType.RAISE, 10)

        assert engine.state.current_bet == 12
        assert engine.state.min_raise == 10

        with pytest.raises(IllegalActionError):
            act(engine, 1, ActionType.RAISE, 9)
        act(engine, 1, ActionType.RAISE, 10)
        assert engine.state.current_bet == 22

    def test_check_around_postflop(self):
        """Test a street of checks settles after the last player checks."""
        engine = make_engine()
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CHECK)

        assert engine.deal_next_street() == Street.FLOP
        assert engine.state.to_act_seat == 1
        assert not act(engine, 1, ActionType.CHECK)
        assert not act(engine, 2, ActionType.CHECK)
        assert act(engine, 0, ActionType.CHECK)

    def test_bet_and_calls_settle(self):
        """Test three players matching a bet settles the round."""
        engine = make_engine()
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CHECK)
        engine.deal_next_street()

        assert not act(engine, 1, ActionType.BET, 10)
        assert engine.state.min_raise == 10
        assert engine.state.last_aggressor_seat == 1
        assert not act(engine, 2, ActionType.CALL)
        assert act(engine, 0, ActionType.CALL)
        assert engine.state.to_act_seat == -1
        assert engine.pot.total == 36

    def test_fold_to_one_forces_showdown(self):
        """Test the last fold ends the hand regardless of unmatched bets."""
        engine = make_engine()
        act(engine, 0, ActionType.RAISE, 20)
        act(engine, 1, ActionType.FOLD)

        assert act(engine, 2, ActionType.FOLD)
        assert engine.state.street == Street.SHOWDOWN
        assert engine.state.to_act_seat == -1

    def test_folded_player_skipped(self):
        """Test turn order skips folded players."""
        engine = make_engine(100, 100, 100, 100)
        act(engine, 3, ActionType.FOLD)
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CHECK)
        engine.deal_next_street()

        act(engine, 1, ActionType.CHECK)
        act(engine, 2, ActionType.CHECK)
        assert engine.state.to_act_seat == 0

    def test_deal_next_street_requires_settled_round(self):
        """Test streets cannot be dealt mid-round."""
        engine = make_engine()

        with pytest.raises(IllegalActionError):
            engine.deal_next_street()

    def test_chip_conservation_each_action(self):
        """Test stacks plus pot never change during a hand."""
        engine = make_engine(100, 80, 60)
        total = chips_in_play(engine)

        act(engine, 0, ActionType.RAISE, 6)
        assert chips_in_play(engine) == total
        act(engine, 1, ActionType.CALL)
        assert chips_in_play(engine) == total
        act(engine, 2, ActionType.RAISE, 50)
        assert chips_in_play(engine) == total
        act(engine, 0, ActionType.CALL)
        assert chips_in_play(engine) == total


class TestStreets:
    """Test dealing streets through to showdown."""

    def _call_down(self, engine: HandEngine) -> None:
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CHECK)
        for _ in range(3):
            engine.deal_next_street()
            act(engine, 1, ActionType.CHECK)
            act(engine, 2, ActionType.CHECK)
            act(engine, 0, ActionType.CHECK)

    def test_streets_advance_in_order(self):
        """Test board grows 3, 4, 5 and then showdown."""
        engine = make_engine()
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CHECK)

        sizes = []
        for expected in (Street.FLOP, Street.TURN, Street.RIVER):
            assert engine.deal_next_street() == expected
            sizes.append(len(engine.table.board))
            act(engine, 1, ActionType.CHECK)
            act(engine, 2, ActionType.CHECK)
            act(engine, 0, ActionType.CHECK)

        assert sizes == [3, 4, 5]
        assert engine.deal_next_street() == Street.SHOWDOWN
        assert len(engine.table.board) == 5
        assert engine.table.deck.remaining == 52 - 6 - 3 - 5

    def test_showdown_splits_pot(self):
        """Test showdown winnings add up to the pot."""
        engine = make_engine()
        self._call_down(engine)
        engine.deal_next_street()

        result = engine.showdown()

        assert sum(p.amount for p in result.side_pots) == 6
        assert sum(result.winnings.values()) == 6
        assert len(result.best_hands) == 3
        best = max(result.best_hands.values())
        for pid in result.winners_by_pot[0]:
            assert result.best_hands[pid] == best

    def test_showdown_before_end_rejected(self):
        """Test showdown needs a finished hand."""
        engine = make_engine()

        with pytest.raises(IllegalActionError):
            engine.showdown()

    def test_uncontested_pot(self):
        """Test the last player standing takes everything unseen."""
        engine = make_engine()
        act(engine, 0, ActionType.FOLD)
        act(engine, 1, ActionType.FOLD)

        result = engine.showdown()
        winner = engine.table.player_at(2)

        assert result.best_hands == {}
        assert result.winnings == {winner.player_id: 3}

    def test_all_in_runs_out_board(self):
        """Test side pots when a short stack is all-in."""
        engine = make_engine(50, 100, 100)
        short, mid, big = engine.table.players

        act(engine, 0, ActionType.RAISE, 48)
        act(engine, 1, ActionType.CALL)
        assert act(engine, 2, ActionType.CALL)

        engine.deal_next_street()
        assert engine.state.to_act_seat == 1
        act(engine, 1, ActionType.BET, 50)
        assert act(engine, 2, ActionType.CALL)

        engine.deal_next_street()
        assert engine.betting_closed()
        assert engine.is_round_settled()
        engine.run_out_board()

        assert engine.state.street == Street.SHOWDOWN
        assert len(engine.table.board) == 5

        result = engine.showdown()
        assert [(p.cap, p.amount) for p in result.side_pots] == [(50, 150), (100, 100)]
        assert set(result.side_pots[1].eligible_players) == {mid.player_id, big.player_id}
        assert sum(result.winnings.values()) == 250


class TestSittingOut:
    """Test players leaving and rejoining play."""

    def test_sitting_out_player_cannot_act(self):
        """Test a player who sat out on their turn is refused."""
        engine = make_engine()
        player = engine.table.player_at(0)
        player.sit_out()

        with pytest.raises(IllegalActionError) as exc_info:
            act(engine, 0, ActionType.CALL)
        assert not isinstance(exc_info.value, OutOfTurnError)
        assert engine.pot.total == 3
        assert player.chips == 100
        assert engine.legal_actions(player.player_id) == []

    def test_sit_out_on_turn_passes_action(self):
        """Test sitting out forfeits the hand and moves the turn on."""
        engine = make_engine()
        player = engine.table.player_at(0)

        engine.sit_out(player.player_id)

        assert player.status == PlayerStatus.SITTING_OUT
        assert engine.state.to_act_seat == 1
        assert len(engine.table.players_in_hand()) == 2
        assert not act(engine, 1, ActionType.CALL)
        assert act(engine, 2, ActionType.CHECK)

    def test_sit_out_leaving_one_player_ends_hand(self):
        """Test the hand ends when a sit-out leaves one player."""
        engine = make_engine()
        act(engine, 0, ActionType.FOLD)

        engine.sit_out(engine.table.player_at(2).player_id)

        assert engine.state.street == Street.SHOWDOWN
        assert engine.state.to_act_seat == -1
        result = engine.showdown()
        assert result.winnings == {engine.table.player_at(1).player_id: 3}

    def test_sit_out_forfeits_chips_in_pot(self):
        """Test chips of a player who sat out stay in the pot for others."""
        engine = make_engine()
        act(engine, 0, ActionType.RAISE, 10)
        act(engine, 1, ActionType.CALL)
        act(engine, 2, ActionType.CALL)
        engine.deal_next_street()

        engine.sit_out(engine.table.player_at(0).player_id)
        assert engine.state.to_act_seat == 1
        act(engine, 1, ActionType.FOLD)

        result = engine.showdown()
        assert result.winnings == {engine.table.player_at(2).player_id: 36}

    def test_sit_in_mid_hand_waits_for_next_hand(self):
        """Test a player sitting in mid-hand is not dealt in or given a turn."""
        table = Table([(f"player_{i}", 100) for i in range(4)], small_blind=1, big_blind=2, seed=42)
        table.players[3].sit_out()
        engine = HandEngine(table)
        engine.start_hand()
        late = table.player_at(3)

        engine.sit_in(late.player_id)

        assert late.hole_cards == []
        assert not late.in_hand
        act(engine, 0, ActionType.CALL)
        act(engine, 1, ActionType.CALL)
        assert act(engine, 2, ActionType.CHECK)
        assert engine.state.to_act_seat == -1

        engine.deal_next_street()
        assert engine.state.to_act_seat == 1
        act(engine, 1, ActionType.CHECK)
        assert engine.state.to_act_seat == 2

        act(engine, 2, ActionType.FOLD)
        act(engine, 0, ActionType.FOLD)
        engine.showdown()

        engine.start_next_hand()
        assert late.status == PlayerStatus.ACTIVE
        assert len(late.hole_cards) == 2

    def test_failed_next_hand_keeps_button(self):
        """Test the button does not move when the next hand cannot start."""
        engine = make_engine()
        act(engine, 0, ActionType.FOLD)
        act(engine, 1, ActionType.FOLD)
        engine.sit_out(engine.table.player_at(0).player_id)
        engine.sit_out(engine.table.player_at(1).player_id)

        with pytest.raises(ValueError):
            engine.start_next_hand()
        assert engine.table.dealer_button == 0
        assert engine.hand_number == 1


class TestRunOut:
    """Test dealing the rest of the board once betting is closed."""

    def test_run_out_is_atomic(self):
        """Test every street is dealt before any street event is emitted."""
        engine = make_engine(100, 100)
        act(engine, 1, ActionType.RAISE, 98)
        assert act(engine, 0, ActionType.CALL)
        streets_seen = []
        engine.set_event_callback(
            lambda kind, data: streets_seen.append((data["street"], engine.state.street))
        )

        engine.run_out_board()

        assert [s for s, _ in streets_seen] == ["flop", "turn", "river", "showdown"]
        assert all(current == Street.SHOWDOWN for _, current in streets_seen)
        assert len(engine.table.board) == 5

    def test_run_out_requires_settled_round(self):
        """Test running out mid-round is refused without dealing."""
        engine = make_engine()

        with pytest.raises(IllegalActionError):
            engine.run_out_board()
        assert engine.table.board == []


class TestEvents:
    """Test the event callback."""

    def test_events_emitted(self):
        """Test hand, action and street events reach the callback."""
        table = Table([("a", 100), ("b", 100)], small_blind=1, big_blind=2, seed=1)
        engine = HandEngine(table)
        events = []
        engine.set_event_callback(lambda kind, data: events.append((kind, data)))

        engine.start_hand()
        act(engine, 1, ActionType.CALL)
        act(engine, 0, ActionType.CHECK)
        engine.deal_next_street()

        kinds = [kind for kind, _ in events]
        assert kinds == ["hand_started", "player_action", "player_action", "street_dealt"]
        assert events[2][1]["settled"] is True
        assert len(events[3][1]["board"]) == 3


class TestConcurrency:
    """Test concurrent submissions are serialized."""

    def test_duplicate_submissions_apply_once(self):
        """Test only one of many identical concurrent calls succeeds."""
        engine = make_engine()
        total = chips_in_play(engine)
        request = ActionRequest(engine.table.player_at(0).player_id, ActionType.CALL)
        results = []

        def submit():
            try:
                engine.apply(request)
                results.append("ok")
            except OutOfTurnError:
                results.append("rejected")

        threads = [threading.Thread(target=submit) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("rejected") == 7
        assert engine.pot.total == 5
        assert chips_in_play(engine) == total

    def test_independent_engines_in_parallel(self):
        """Test separate tables run side by side without interference."""
        engines = [make_engine(seed=s) for s in range(4)]

        def play(engine):
            act(engine, 0, ActionType.CALL)
            act(engine, 1, ActionType.CALL)
            act(engine, 2, ActionType.CHECK)
            engine.deal_next_street()

        threads = [threading.Thread(target=play, args=(e,)) for e in engines]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for engine in engines:
            assert engine.state.street == Street.FLOP
            assert engine.pot.total == 6


class TestRandomPlay:
    """Play many random hands and check invariants."""

    def _random_action(self, engine: HandEngine, rng: random.Random) -> ActionRequest:
        player = engine.table.player_at(engine.state.to_act_seat)
        action = rng.choice(engine.legal_actions(player.player_id))
        chips = 0
        if action == ActionType.BET:
            chips = rng.randint(2, max(2, player.chips))
        elif action == ActionType.RAISE:
            chips = rng.randint(engine.state.min_raise, max(engine.state.min_raise, player.chips))
        return ActionRequest(player.player_id, action, chips)

    def test_chips_conserved_over_session(self):
        """Test chips are conserved through many hands and payouts."""
        rng = random.Random(2024)
        table = Table([(f"p{i}", 150) for i in range(5)], small_blind=1, big_blind=2, seed=2024)
        engine = HandEngine(table)
        session_total = table.total_chips()

        for hand in range(40):
            if not engine.can_start_hand():
                break
            if hand:
                engine.start_next_hand()
            else:
                engine.start_hand()

            while engine.state.street != Street.SHOWDOWN:
                if engine.is_round_settled():
                    engine.deal_next_street()
                    continue
                engine.apply(self._random_action(engine, rng))
                assert table.total_chips() + engine.pot.total == session_total
                assert all(p.chips >= 0 for p in table.players)

            result = engine.showdown()
            assert sum(result.winnings.values()) == engine.pot.total
            for pid, amount in result.winnings.items():
                table.get_player_by_id(pid).win_pot(amount)
            assert table.total_chips() == session_total
