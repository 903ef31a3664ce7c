"""Bot strategies for Gin Rummy."""

from .base import BotStrategy, DrawSource
from .heuristic import HeuristicBot, PolicyConfig
from .random_bot import RandomBot

__all__ = ["BotStrategy", "DrawSource", "HeuristicBot", "PolicyConfig", "RandomBot"]
