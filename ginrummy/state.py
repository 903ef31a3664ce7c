"""Round state record for Gin Rummy."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .cards import Card, card_ids
from .deck import DECK_SIZE, HAND_SIZE, build_deck


class InvariantViolation(RuntimeError):
    """Raised when a mutation leaves the round state inconsistent."""


class Phase(Enum):
    DRAW = "draw"
    DISCARD = "discard"
    KNOCK_DISCARD = "knock_discard"
    GIN = "gin"
    ROUND_OVER = "round_over"
    FINISHED = "finished"

    def __str__(self) -> str:
        return self.value


ACTIVE_PHASES = frozenset({Phase.DISCARD, Phase.KNOCK_DISCARD})
TERMINAL_PHASES = frozenset({Phase.ROUND_OVER, Phase.FINISHED})


@dataclass
class RoundState:
    hands: List[List[Card]] = field(default_factory=lambda: [[], []])
    draw_pile: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    current_player: int = 0
    phase: Phase = Phase.DRAW
    scores: List[int] = field(default_factory=lambda: [0, 0])
    knocker: Optional[int] = None
    last_action: str = ""
    round_result: Optional[str] = None
    winner: Optional[int] = None
    round_number: int = 0

    def __post_init__(self) -> None:
        if len(self.hands) != 2 or len(self.scores) != 2:
            raise ValueError("RoundState supports exactly two players.")

    @property
    def active_hand(self) -> List[Card]:
        return self.hands[self.current_player]

    def top_discard(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    def opponent(self, player: int) -> int:
        return 1 - player

    def snapshot(self) -> "RoundState":
        """Return a detached copy; cards are immutable so lists are copied shallowly."""
        return RoundState(
            hands=[list(self.hands[0]), list(self.hands[1])],
            draw_pile=list(self.draw_pile),
            discard_pile=list(self.discard_pile),
            current_player=self.current_player,
            phase=self.phase,
            scores=list(self.scores),
            knocker=self.knocker,
            last_action=self.last_action,
            round_result=self.round_result,
            winner=self.winner,
            round_number=self.round_number,
        )

    def all_cards(self) -> List[Card]:
        return [*self.hands[0], *self.hands[1], *self.draw_pile, *self.discard_pile]


def verify_invariants(state: RoundState, *, hand_size: int = HAND_SIZE, target_score: int = 100) -> List[str]:
    """Return a list of human-readable invariant violations (empty when consistent)."""
    problems: List[str] = []

    counts = Counter(card.id for card in state.all_cards())
    duplicates = sorted(card_id for card_id, count in counts.items() if count > 1)
    if duplicates:
        problems.append(f"Duplicated cards: {', '.join(duplicates)}")
    missing = sorted(set(card_ids(build_deck())) - set(counts))
    if missing:
        problems.append(f"Missing cards: {', '.join(missing)}")
    if sum(counts.values()) != DECK_SIZE and not duplicates and not missing:
        problems.append(f"Expected {DECK_SIZE} cards, found {sum(counts.values())}")

    for player, hand in enumerate(state.hands):
        holding_draw = player == state.current_player and state.phase in ACTIVE_PHASES
        expected = hand_size + 1 if holding_draw else hand_size
        if len(hand) != expected:
            problems.append(f"Player {player} holds {len(hand)} cards, expected {expected}")

    if state.phase is Phase.FINISHED:
        if state.winner is None:
            problems.append("Finished game has no winner")
        elif state.scores[state.winner] < target_score:
            problems.append(f"Winner {state.winner} has only {state.scores[state.winner]} points")

    if state.knocker is not None and state.phase not in TERMINAL_PHASES:
        problems.append(f"Knocker set during phase {state.phase}")

    return problems
