"""Card-related data structures and helpers for Gin Rummy."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Mapping


class Suit(Enum):
    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"

    def __str__(self) -> str:
        return self.value


class Rank(Enum):
    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def symbol(self) -> str:
        return RANK_SYMBOLS[self]

    def __str__(self) -> str:
        return self.symbol


RANK_SYMBOLS: dict[Rank, str] = {
    Rank.ACE: "A",
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "10",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
}

SYMBOL_RANKS: dict[str, Rank] = {symbol: rank for rank, symbol in RANK_SYMBOLS.items()}

# Canonical hand ordering: suit first, then rank value.
SUIT_ORDER: dict[Suit, int] = {
    Suit.CLUBS: 0,
    Suit.DIAMONDS: 1,
    Suit.HEARTS: 2,
    Suit.SPADES: 3,
}

SUIT_SYMBOLS: dict[Suit, str] = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}

# Face cards count 10 toward deadwood.
MAX_CARD_POINTS = 10


def make_card_id(rank: Rank, suit: Suit) -> str:
    return f"{rank.symbol}_{suit.value}"


@dataclass(frozen=True)
class Card:
    """Immutable playing card.

    Equality and hashing use ``id`` only, so a face-up copy of a card still
    compares equal to the face-down original.
    """

    suit: Suit = field(compare=False)
    rank: Rank = field(compare=False)
    face_up: bool = field(default=False, compare=False)
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", make_card_id(self.rank, self.suit))

    @property
    def value(self) -> int:
        """Rank value with Ace low (1) through King (13)."""
        return self.rank.value

    def point_value(self) -> int:
        return min(self.rank.value, MAX_CARD_POINTS)

    def flipped(self, face_up: bool = True) -> "Card":
        return replace(self, face_up=face_up)

    def __str__(self) -> str:
        return f"{self.rank.symbol}{SUIT_SYMBOLS[self.suit]}"


def card_sort_key(card: Card) -> tuple[int, int]:
    return SUIT_ORDER[card.suit], card.rank.value


def sort_hand(hand: List[Card]) -> None:
    """Sort a hand in place into canonical suit/rank order."""
    hand.sort(key=card_sort_key)


def card_ids(cards: Iterable[Card]) -> List[str]:
    return [card.id for card in cards]


def serialize_card(card: Card) -> dict[str, object]:
    return {
        "id": card.id,
        "suit": card.suit.value,
        "rank": card.rank.symbol,
        "face_up": card.face_up,
    }


def deserialize_card(payload: Mapping[str, object]) -> Card:
    suit = Suit(str(payload["suit"]).lower())
    rank_symbol = str(payload["rank"]).upper()
    if rank_symbol not in SYMBOL_RANKS:
        raise ValueError(f"Unknown rank: {payload['rank']!r}")
    rank = SYMBOL_RANKS[rank_symbol]
    card_id = str(payload.get("id") or make_card_id(rank, suit))
    return Card(suit=suit, rank=rank, face_up=bool(payload.get("face_up", False)), id=card_id)


def card_from_id(card_id: str) -> Card:
    """Rebuild a card from its ``<rank>_<suit>`` identifier."""
    try:
        rank_symbol, suit_name = card_id.split("_", 1)
    except ValueError as exc:
        raise ValueError(f"Malformed card id: {card_id!r}") from exc
    return deserialize_card({"rank": rank_symbol, "suit": suit_name, "id": card_id})


def card_label(card: Card) -> str:
    return f"{card.rank.name.title()} of {card.suit.name.title()}"
