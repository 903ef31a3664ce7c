"""Validation schema for Gin Rummy rules configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator


class GinRules(BaseModel):
    knock_limit: int = Field(10, ge=0, description="Maximum deadwood allowed when knocking.")
    gin_bonus: int = Field(25, ge=0, description="Bonus added to the opponent's deadwood on gin.")
    undercut_bonus: int = Field(25, ge=0, description="Bonus awarded to the defender on an undercut.")
    target_score: int = Field(100, gt=0, description="Cumulative score that ends the game.")
    hand_size: int = Field(10, ge=3, le=25, description="Cards dealt to each player.")
    meld_strategy: Literal["greedy", "exhaustive"] = Field(
        "greedy",
        description="Meld partitioning strategy. Knock thresholds are tuned against 'greedy'.",
    )
    player_names: list[str] = Field(default_factory=lambda: ["You", "AI"])
    check_invariants: bool = Field(False, description="Verify state invariants after every mutation.")

    @field_validator("player_names")
    @classmethod
    def validate_player_names(cls, value: list[str]) -> list[str]:
        if len(value) != 2:
            raise ValueError("Exactly two player names are required.")
        if any(not name.strip() for name in value):
            raise ValueError("Player names must not be blank.")
        return value


def load_rules(path: Union[str, Path]) -> GinRules:
    """Read a JSON rules file; missing keys fall back to the defaults."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return GinRules.model_validate(payload)
