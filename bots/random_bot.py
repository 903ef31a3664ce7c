"""Random baseline bot."""

from __future__ import annotations

import random
from typing import Optional, Sequence

from ginrummy.cards import Card
from ginrummy.melds import KNOCK_LIMIT, find_melds
from ginrummy.state import RoundState

from .base import BotStrategy, DrawSource


class RandomBot(BotStrategy):
    name = "Random"

    def __init__(
        self,
        seed: Optional[int] = None,
        knock_probability: float = 0.5,
        *,
        knock_limit: int = KNOCK_LIMIT,
        strategy: str = "greedy",
    ) -> None:
        self._rng = random.Random(seed)
        self.knock_probability = knock_probability
        self.knock_limit = knock_limit
        self.strategy = strategy

    def choose_draw(self, state: RoundState, player: int) -> DrawSource:
        if not state.discard_pile:
            return DrawSource.PILE
        return self._rng.choice([DrawSource.PILE, DrawSource.DISCARD])

    def choose_knock_discard(self, hand: Sequence[Card]) -> Optional[Card]:
        if self._rng.random() >= self.knock_probability:
            return None
        valid = [
            card
            for index, card in enumerate(hand)
            if find_melds(list(hand[:index]) + list(hand[index + 1 :]), self.strategy).deadwood_points
            <= self.knock_limit
        ]
        if not valid:
            return None
        return self._rng.choice(valid)

    def choose_discard(self, hand: Sequence[Card]) -> Card:
        if not hand:
            raise RuntimeError("No cards available to discard.")
        return self._rng.choice(list(hand))
