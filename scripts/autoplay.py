#!/usr/bin/env python3
"""
Auto-play a session of hands with random legal actions.

Usage:
    python scripts/autoplay.py [hands] [seed] [--verbose]

Every player picks a random legal action; after each hand the winnings are
paid out and chip conservation is checked.
"""
import random
import sys

from holdem.game import ActionRequest, ActionType, HandEngine, Street, Table
from holdem.utils.logger import set_log_level

PLAYERS = ["alice", "bob", "carol", "dave"]
STARTING_CHIPS = 200


def choose_action(engine: HandEngine, rng: random.Random) -> ActionRequest:
    """Pick a random legal action for the player to act."""
    player = engine.table.player_at(engine.state.to_act_seat)
    legal = engine.legal_actions(player.player_id)
    action = rng.choice(legal)

    chips = 0
    if action == ActionType.BET:
        chips = rng.randint(engine.table.big_blind, max(engine.table.big_blind, player.chips))
    elif action == ActionType.RAISE:
        chips = rng.randint(engine.state.min_raise, max(engine.state.min_raise, player.chips))

    return ActionRequest(player_id=player.player_id, type=action, chips=chips)


def play_hand(engine: HandEngine, rng: random.Random) -> dict:
    """Play one hand to showdown and pay the winners."""
    while engine.state.street != Street.SHOWDOWN:
        if engine.is_round_settled():
            engine.deal_next_street()
            continue
        engine.apply(choose_action(engine, rng))

    result = engine.showdown()
    for player_id, amount in result.winnings.items():
        engine.table.get_player_by_id(player_id).win_pot(amount)
    return result.winnings


def main():
    """Main entry point."""
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if "--verbose" not in sys.argv:
        set_log_level("WARNING")

    hands = int(args[0]) if len(args) > 0 else 20
    seed = int(args[1]) if len(args) > 1 else 7

    rng = random.Random(seed)
    table = Table([(name, STARTING_CHIPS) for name in PLAYERS], small_blind=1, big_blind=2, seed=seed)
    engine = HandEngine(table)
    session_chips = table.total_chips()

    hands_played = 0
    while hands_played < hands and engine.can_start_hand():
        if hands_played == 0:
            engine.start_hand()
        else:
            engine.start_next_hand()

        winnings = play_hand(engine, rng)
        hands_played += 1

        board = " ".join(str(c) for c in table.board)
        print(f"[Hand {hands_played}] board: {board or '-'} winnings: "
              + ", ".join(f"{table.get_player_by_id(pid).name}={amt}" for pid, amt in winnings.items()))

        if table.total_chips() != session_chips:
            print(f"  ✗ Chip total drifted: {table.total_chips()} != {session_chips}")
            sys.exit(1)

    print("\n" + "=" * 50)
    print(f"Completed {hands_played} hands!")
    for player in table.players:
        print(f"  {player.name:<8} {player.chips:>6}")
    print("=" * 50)


if __name__ == "__main__":
    main()
