#!/usr/bin/env python3
"""Interactive CLI to play Gin Rummy against the heuristic bot."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from random import Random
from typing import List, Tuple

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from bots.bot_arena import play_turn
from bots.heuristic import HeuristicBot
from ginrummy.game import RummyEngine
from ginrummy.rules_schema import GinRules, load_rules
from ginrummy.state import Phase, RoundState

HUMAN = 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play Gin Rummy against the heuristic bot.")
    parser.add_argument("--rules", type=Path, default=None, help="Optional JSON rules file.")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true", help="Log engine decisions.")
    return parser.parse_args()


def print_state(engine: RummyEngine, state: RoundState) -> None:
    print("\n============================")
    print(f"Round {state.round_number} | Phase: {state.phase}")
    print(f"Scores -> You: {state.scores[HUMAN]}, Bot: {state.scores[1 - HUMAN]}")
    top = state.top_discard()
    print(f"Discard: {top if top else '-'} | Draw pile: {len(state.draw_pile)} cards")
    melds = engine.get_melds(HUMAN)
    print("Your hand: " + " ".join(str(card) for card in state.hands[HUMAN]))
    for meld in melds.melds:
        print(f"  {meld.kind}: " + " ".join(str(card) for card in meld.cards))
    print(f"  deadwood: {melds.deadwood_points}")
    if state.last_action:
        print(f"Last action: {state.last_action}")


def list_options(engine: RummyEngine, state: RoundState) -> List[Tuple[str, str]]:
    options: List[Tuple[str, str]] = []
    if state.phase is Phase.DRAW:
        options.append(("draw_pile", "Draw from pile"))
        if state.discard_pile:
            options.append(("draw_discard", f"Take {state.top_discard()}"))
    elif state.phase is Phase.DISCARD:
        options.extend((f"discard:{card.id}", f"Discard {card}") for card in state.hands[HUMAN])
        if engine.can_knock():
            options.append(("enter_knock", "Knock"))
    elif state.phase is Phase.KNOCK_DISCARD:
        options.extend((f"knock:{card.id}", f"Knock discarding {card}") for card in state.hands[HUMAN])
        options.append(("cancel_knock", "Cancel knock"))
    return options


def apply_option(engine: RummyEngine, option: str) -> bool:
    action, _, card_id = option.partition(":")
    if action == "draw_pile":
        return engine.draw_from_pile()
    if action == "draw_discard":
        return engine.draw_from_discard()
    if action == "discard":
        return engine.discard(card_id)
    if action == "knock":
        return engine.knock_with_discard(card_id)
    if action == "enter_knock":
        return engine.enter_knock_phase()
    return engine.cancel_knock()


def choose_option(options: List[Tuple[str, str]]) -> str:
    for index, (_, label) in enumerate(options):
        print(f"[{index}] {label}")
    while True:
        choice = input("Select action (q to quit): ").strip()
        if choice.lower() == "q":
            raise KeyboardInterrupt
        if not choice.isdigit():
            print("Please enter a number.")
            continue
        index = int(choice)
        if 0 <= index < len(options):
            return options[index][0]
        print("Invalid choice. Try again.")


def play_game(engine: RummyEngine, bot: HeuristicBot) -> None:
    engine.initialize()
    while True:
        state = engine.get_state()
        if state.phase is Phase.FINISHED:
            break
        if state.phase is Phase.ROUND_OVER:
            print(f"\nRound over: {state.round_result}")
            print(f"Bot hand: {' '.join(str(card) for card in state.hands[1 - HUMAN])}")
            input("Press Enter for the next round...")
            engine.new_round()
            continue
        if state.current_player != HUMAN:
            play_turn(engine, bot)
            continue
        print_state(engine, state)
        option = choose_option(list_options(engine, state))
        if not apply_option(engine, option):
            print(f"Not allowed: {engine.last_error}")

    state = engine.get_state()
    print(f"\nGame over: {state.round_result}")
    print(f"Final scores -> You: {state.scores[HUMAN]}, Bot: {state.scores[1 - HUMAN]}")
    print("You win!" if state.winner == HUMAN else "The bot wins.")


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    rules = load_rules(args.rules) if args.rules else GinRules()
    engine = RummyEngine(rules=rules, rng=Random(args.seed))
    bot = HeuristicBot(knock_limit=rules.knock_limit, strategy=rules.meld_strategy)
    try:
        play_game(engine, bot)
    except KeyboardInterrupt:
        print("\nExiting early.")


if __name__ == "__main__":
    main()
