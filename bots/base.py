"""Common bot strategy interfaces."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from ginrummy.cards import Card
from ginrummy.state import RoundState


class DrawSource(Enum):
    PILE = "pile"
    DISCARD = "discard"

    def __str__(self) -> str:
        return self.value


class BotStrategy:
    """Base class for bot policies.

    Bots only decide; the caller applies the decision through the engine.
    """

    name: str = "BaseBot"

    def on_round_start(self, state: RoundState, player: int) -> None:
        """Optional hook invoked after each deal."""
        return None

    def choose_draw(self, state: RoundState, player: int) -> DrawSource:
        return DrawSource.PILE

    def choose_knock_discard(self, hand: Sequence[Card]) -> Optional[Card]:
        """Return the card to discard when knocking, or None to play on."""
        return None

    def choose_discard(self, hand: Sequence[Card]) -> Card:
        if not hand:
            raise RuntimeError("No cards available to discard.")
        return hand[-1]
