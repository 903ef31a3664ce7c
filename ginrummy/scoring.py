"""Round scoring helpers for Gin Rummy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .rules_schema import GinRules


class ScoringError(ValueError):
    """Raised when a round cannot be scored as described."""


class RoundOutcome(Enum):
    GIN = "gin"
    KNOCK = "knock"
    UNDERCUT = "undercut"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RoundScoreResult:
    new_scores: Tuple[int, int]
    outcome: RoundOutcome
    awarded_to: int
    points: int
    knocker: int
    knocker_deadwood: int
    opponent_deadwood: int


def score_round(
    *,
    knocker: int,
    knocker_deadwood: int,
    opponent_deadwood: int,
    gin: bool,
    prior_scores: Sequence[int],
    rules: Optional[GinRules] = None,
) -> RoundScoreResult:
    rules = rules or GinRules()
    if knocker not in (0, 1):
        raise ScoringError("Knocker must be player 0 or 1.")
    if len(prior_scores) != 2:
        raise ScoringError("Exactly two players are supported.")
    if gin and knocker_deadwood != 0:
        raise ScoringError("Gin requires zero deadwood.")
    if knocker_deadwood > rules.knock_limit:
        raise ScoringError(f"Cannot knock with {knocker_deadwood} deadwood.")

    opponent = 1 - knocker
    if gin:
        outcome = RoundOutcome.GIN
        awarded_to = knocker
        points = rules.gin_bonus + opponent_deadwood
    elif knocker_deadwood < opponent_deadwood:
        outcome = RoundOutcome.KNOCK
        awarded_to = knocker
        points = opponent_deadwood - knocker_deadwood
    else:
        outcome = RoundOutcome.UNDERCUT
        awarded_to = opponent
        points = knocker_deadwood - opponent_deadwood + rules.undercut_bonus

    new_scores = list(prior_scores)
    new_scores[awarded_to] += points
    return RoundScoreResult(
        new_scores=(new_scores[0], new_scores[1]),
        outcome=outcome,
        awarded_to=awarded_to,
        points=points,
        knocker=knocker,
        knocker_deadwood=knocker_deadwood,
        opponent_deadwood=opponent_deadwood,
    )


def match_winner(scores: Sequence[int], target: int = 100) -> Optional[int]:
    """Return the higher scorer once either player reaches ``target``."""
    if max(scores) < target:
        return None
    return 0 if scores[0] >= scores[1] else 1
