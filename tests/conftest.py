from random import Random
from typing import List, Optional, Sequence

import pytest

from ginrummy.cards import Card, Suit, SYMBOL_RANKS
from ginrummy.deck import build_deck
from ginrummy.game import RummyEngine
from ginrummy.rules_schema import GinRules

SUIT_LETTERS = {"C": Suit.CLUBS, "D": Suit.DIAMONDS, "H": Suit.HEARTS, "S": Suit.SPADES}


def parse_cards(text: str) -> List[Card]:
    """Parse ``"3C 10D KS"`` into cards."""
    return [Card(suit=SUIT_LETTERS[token[-1]], rank=SYMBOL_RANKS[token[:-1]]) for token in text.split()]


def rigged_deck(hand0: str, hand1: str, discard: str, draw_top: str = "") -> List[Card]:
    """Order a full deck so ``deal_round`` produces the given hands.

    ``draw_top`` lists the next cards drawn from the pile, first draw first.
    """
    first = parse_cards(hand0)
    second = parse_cards(hand1)
    upcard = parse_cards(discard)
    tops = parse_cards(draw_top)
    dealt = [card for pair in zip(first, second) for card in pair]
    used = {card.id for card in dealt + upcard + tops}
    rest = [card for card in build_deck() if card.id not in used]
    return dealt + upcard + rest + list(reversed(tops))


@pytest.fixture
def cards():
    return parse_cards


@pytest.fixture
def make_engine():
    def factory(
        hand0: str,
        hand1: str,
        discard: str,
        draw_top: str = "",
        rules: Optional[GinRules] = None,
    ) -> RummyEngine:
        deck: Sequence[Card] = rigged_deck(hand0, hand1, discard, draw_top)
        engine = RummyEngine(rules=rules or GinRules(check_invariants=True), rng=Random(0), deck=deck)
        engine.initialize()
        return engine

    return factory
