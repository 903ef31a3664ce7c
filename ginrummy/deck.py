"""Deck creation and dealing utilities for Gin Rummy."""

from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import List, Optional, Sequence

from .cards import Card, Rank, Suit, card_ids, sort_hand

DECK_SIZE = 52
HAND_SIZE = 10

# Build order of the unshuffled deck.
DECK_SUITS: tuple[Suit, ...] = (Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES)


def build_deck() -> List[Card]:
    """Return the ordered 52-card deck, all cards face down."""
    return [Card(suit=suit, rank=rank) for suit in DECK_SUITS for rank in Rank]


@dataclass
class Deal:
    hands: List[List[Card]]
    discard_pile: List[Card]
    draw_pile: List[Card]


def deal_round(
    *,
    rng: Optional[Random] = None,
    deck: Optional[Sequence[Card]] = None,
    hand_size: int = HAND_SIZE,
) -> Deal:
    """Deal two hands alternately, one face-up discard, and the draw pile.

    A preset ``deck`` is dealt in the given order without shuffling. The draw
    pile is a stack: its last element is the top card.
    """
    if deck is not None:
        cards = list(deck)
    else:
        cards = build_deck()
        if rng is None:
            rng = Random()
        rng.shuffle(cards)
    if len(cards) != DECK_SIZE or len(set(card_ids(cards))) != DECK_SIZE:
        raise ValueError("Deck must contain exactly 52 distinct cards.")
    if hand_size * 2 + 1 > DECK_SIZE:
        raise ValueError("Hand size too large for a 52-card deck.")

    hands: List[List[Card]] = [[], []]
    dealt = hand_size * 2
    for index in range(dealt):
        hands[index % 2].append(cards[index].flipped(True))

    discard_pile = [cards[dealt].flipped(True)]
    draw_pile = [card.flipped(False) for card in cards[dealt + 1 :]]

    sort_hand(hands[0])
    sort_hand(hands[1])
    return Deal(hands=hands, discard_pile=discard_pile, draw_pile=draw_pile)
