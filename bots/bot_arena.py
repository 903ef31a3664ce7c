"""Turn orchestration and a simple bot arena for Gin Rummy."""

from __future__ import annotations

import argparse
import logging
from random import Random
from typing import Dict, Iterable, Optional, Sequence

from ginrummy.game import RummyEngine
from ginrummy.rules_schema import GinRules, load_rules
from ginrummy.state import Phase

from .base import BotStrategy, DrawSource
from .heuristic import HeuristicBot
from .random_bot import RandomBot

logger = logging.getLogger(__name__)

BOT_REGISTRY: Dict[str, type[BotStrategy]] = {
    "heuristic": HeuristicBot,
    "random": RandomBot,
}

MAX_TURNS_PER_ROUND = 1000


def build_bot(name: str, rules: Optional[GinRules] = None, *, seed: Optional[int] = None) -> BotStrategy:
    """Create a registered bot that plays by the knock limit and meld strategy of ``rules``."""
    rules = rules or GinRules()
    if name not in BOT_REGISTRY:
        raise ValueError(f"Unknown bot {name!r}. Choose from {sorted(BOT_REGISTRY)}.")
    options = {"knock_limit": rules.knock_limit, "strategy": rules.meld_strategy}
    if BOT_REGISTRY[name] is RandomBot:
        return RandomBot(seed, **options)
    return BOT_REGISTRY[name](**options)


def play_turn(engine: RummyEngine, bot: BotStrategy) -> bool:
    """Play one full turn (draw, then knock or discard) for the current player.

    Returns False when it is not a drawing turn.
    """
    state = engine.get_state()
    if state.phase is not Phase.DRAW:
        return False
    player = state.current_player

    source = bot.choose_draw(state, player)
    drew = source is DrawSource.DISCARD and engine.draw_from_discard()
    if not drew and not engine.draw_from_pile():
        # Empty draw pile ends the round.
        return True

    hand = engine.get_state().hands[player]
    knock_card = bot.choose_knock_discard(hand)
    if knock_card is not None and engine.knock_with_discard(knock_card):
        return True

    card = bot.choose_discard(hand)
    if not engine.discard(card):
        raise RuntimeError(f"{bot.name} chose an illegal discard: {engine.last_error}")
    return True


def play_round(engine: RummyEngine, bots: Sequence[BotStrategy], *, max_turns: int = MAX_TURNS_PER_ROUND) -> None:
    state = engine.get_state()
    for player, bot in enumerate(bots):
        bot.on_round_start(state, player)
    for _ in range(max_turns):
        state = engine.get_state()
        if state.phase is not Phase.DRAW:
            return
        play_turn(engine, bots[state.current_player])
    raise RuntimeError(f"Round did not finish within {max_turns} turns.")


def run_match(
    bot_a: BotStrategy,
    bot_b: BotStrategy,
    *,
    n_rounds: Optional[int] = None,
    seed: int | None = None,
    rules: Optional[GinRules] = None,
) -> dict:
    """Play rounds until the game finishes (or ``n_rounds`` have been played)."""
    engine = RummyEngine(rules=rules, rng=Random(seed))
    engine.initialize()
    bots = [bot_a, bot_b]
    history = []
    while True:
        play_round(engine, bots)
        state = engine.get_state()
        history.append(
            {
                "round": state.round_number,
                "scores": list(state.scores),
                "knocker": state.knocker,
                "result": state.round_result,
            }
        )
        logger.info("Round %d: %s", state.round_number, state.round_result)
        if state.phase is Phase.FINISHED:
            break
        if n_rounds is not None and len(history) >= n_rounds:
            break
        engine.new_round()

    state = engine.get_state()
    return {"scores": list(state.scores), "winner": state.winner, "history": history}


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run a Gin Rummy bot match.")
    parser.add_argument("--bot-a", default="heuristic", choices=BOT_REGISTRY.keys())
    parser.add_argument("--bot-b", default="random", choices=BOT_REGISTRY.keys())
    parser.add_argument("--rounds", type=int, default=None, help="Stop after this many rounds.")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--rules", type=str, default=None, help="Path to a rules JSON file.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    rules = load_rules(args.rules) if args.rules else GinRules()
    bot_a = build_bot(args.bot_a, rules, seed=args.seed)
    bot_b = build_bot(args.bot_b, rules, seed=args.seed + 1)
    results = run_match(bot_a, bot_b, n_rounds=args.rounds, seed=args.seed, rules=rules)

    print(f"Scores after {len(results['history'])} rounds: {results['scores']}")
    if results["winner"] is not None:
        print(f"Winner: {bot_a.name if results['winner'] == 0 else bot_b.name}")


if __name__ == "__main__":
    main()
