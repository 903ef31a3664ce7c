"""Core rule engine package for Gin Rummy."""

__all__ = [
    "cards",
    "deck",
    "melds",
    "state",
    "scoring",
    "game",
    "rules_schema",
    "service",
]
