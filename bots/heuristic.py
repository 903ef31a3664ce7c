"""Heuristic Gin Rummy policy.

Every function here is pure: it reads a state snapshot or a hand and returns
a decision. Thresholds are tuned against the greedy meld finder.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ginrummy.cards import Card
from ginrummy.melds import KNOCK_LIMIT, find_melds
from ginrummy.state import RoundState

from .base import BotStrategy, DrawSource


class PolicyConfig(BaseModel):
    draw_margin: int = Field(1, ge=0, description="Deadwood gain required before taking the top discard.")
    knock_threshold: int = Field(5, ge=0, description="Knock only at or below this deadwood unless gin.")
    one_pair_penalty: int = Field(5, description="Score reduction for a card with one same-rank partner.")
    two_pair_penalty: int = Field(10, description="Additional reduction for a second same-rank partner.")
    near_run_distance: int = Field(2, ge=1, description="Suited rank distance that counts as near a run.")
    one_neighbor_penalty: int = Field(3, description="Score reduction for one suited neighbour.")
    two_neighbor_penalty: int = Field(8, description="Additional reduction for a second suited neighbour.")


DEFAULT_POLICY = PolicyConfig()


def decide_draw(
    state: RoundState,
    player: Optional[int] = None,
    config: PolicyConfig = DEFAULT_POLICY,
    strategy: str = "greedy",
) -> DrawSource:
    """Take the top discard only if shedding afterwards beats the current deadwood by a margin."""
    top = state.top_discard()
    if top is None:
        return DrawSource.PILE
    if player is None:
        player = state.current_player

    hand = list(state.hands[player])
    with_discard = hand + [top]
    result = find_melds(with_discard, strategy)
    melded = result.melded_ids()
    loose = [card for card in with_discard if card.id not in melded]

    if loose:
        shed = max(loose, key=lambda c: c.point_value())
    else:
        shed = min(with_discard, key=lambda c: c.point_value())
    after_shed = [card for card in with_discard if card.id != shed.id]
    projected = find_melds(after_shed, strategy).deadwood_points

    current = find_melds(hand, strategy).deadwood_points
    if projected < current - config.draw_margin:
        return DrawSource.DISCARD
    return DrawSource.PILE


def _keep_value(card: Card, hand: Sequence[Card], config: PolicyConfig) -> int:
    # Higher means less worth keeping.
    score = card.point_value()
    others = [c for c in hand if c.id != card.id]

    partners = sum(1 for c in others if c.rank is card.rank)
    if partners >= 1:
        score -= config.one_pair_penalty
    if partners >= 2:
        score -= config.two_pair_penalty

    neighbours = sum(
        1
        for c in others
        if c.suit is card.suit and abs(c.value - card.value) <= config.near_run_distance
    )
    if neighbours >= 1:
        score -= config.one_neighbor_penalty
    if neighbours >= 2:
        score -= config.two_neighbor_penalty
    return score


def select_discard(hand: Sequence[Card], config: PolicyConfig = DEFAULT_POLICY, strategy: str = "greedy") -> Card:
    if not hand:
        raise ValueError("Cannot select a discard from an empty hand.")
    result = find_melds(hand, strategy)
    melded = result.melded_ids()
    loose = [card for card in hand if card.id not in melded]
    if not loose:
        return max(hand, key=lambda c: (c.point_value(), c.value))

    scored: List[Tuple[Card, int]] = [(card, _keep_value(card, hand, config)) for card in loose]
    return max(scored, key=lambda item: item[1])[0]


def should_knock(
    hand: Sequence[Card],
    config: PolicyConfig = DEFAULT_POLICY,
    knock_limit: int = KNOCK_LIMIT,
    strategy: str = "greedy",
) -> bool:
    points = find_melds(hand, strategy).deadwood_points
    if points > knock_limit:
        return False
    if points == 0:
        return True
    return points <= config.knock_threshold


def select_knock_discard(
    hand: Sequence[Card],
    knock_limit: int = KNOCK_LIMIT,
    strategy: str = "greedy",
) -> Optional[Card]:
    """Pick the discard that leaves the least deadwood while still allowing a knock."""
    best_card: Optional[Card] = None
    best_points: Optional[int] = None
    for index, card in enumerate(hand):
        remaining = list(hand[:index]) + list(hand[index + 1 :])
        points = find_melds(remaining, strategy).deadwood_points
        if points <= knock_limit and (best_points is None or points < best_points):
            best_card = card
            best_points = points
    return best_card


class HeuristicBot(BotStrategy):
    name = "Heuristic"

    def __init__(
        self,
        config: Optional[PolicyConfig] = None,
        *,
        knock_limit: int = KNOCK_LIMIT,
        strategy: str = "greedy",
    ) -> None:
        self.config = config or PolicyConfig()
        self.knock_limit = knock_limit
        self.strategy = strategy

    def choose_draw(self, state: RoundState, player: int) -> DrawSource:
        return decide_draw(state, player, self.config, self.strategy)

    def choose_knock_discard(self, hand: Sequence[Card]) -> Optional[Card]:
        if not should_knock(hand, self.config, self.knock_limit, self.strategy):
            return None
        return select_knock_discard(hand, self.knock_limit, self.strategy)

    def choose_discard(self, hand: Sequence[Card]) -> Card:
        return select_discard(hand, self.config, self.strategy)
