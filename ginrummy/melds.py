"""Meld detection: partition a hand into sets, runs and deadwood.

The default ``greedy`` strategy is a two-pass heuristic (sets first, then
runs first) that keeps whichever pass leaves less deadwood. It is not an
optimal solver and the knock/gin thresholds used by the engine and the bots
are defined against its output. The ``exhaustive`` strategy performs an exact
search and is only used when configured explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from itertools import combinations
from typing import Callable, Dict, Iterable, List, Sequence, Set, Tuple

from .cards import Card

KNOCK_LIMIT = 10
MIN_MELD_SIZE = 3
MAX_SET_SIZE = 4


class MeldKind(Enum):
    SET = "set"
    RUN = "run"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Meld:
    kind: MeldKind
    cards: Tuple[Card, ...]

    def is_valid(self) -> bool:
        """Return True if the cards form a legal set or run."""
        if len(self.cards) < MIN_MELD_SIZE:
            return False
        if self.kind is MeldKind.SET:
            ranks = {card.rank for card in self.cards}
            suits = {card.suit for card in self.cards}
            return len(self.cards) <= MAX_SET_SIZE and len(ranks) == 1 and len(suits) == len(self.cards)
        if len({card.suit for card in self.cards}) != 1:
            return False
        values = [card.value for card in self.cards]
        return all(later == earlier + 1 for earlier, later in zip(values, values[1:]))


@dataclass(frozen=True)
class MeldResult:
    melds: Tuple[Meld, ...]
    deadwood: Tuple[Card, ...]
    deadwood_points: int

    def melded_ids(self) -> Set[str]:
        return {card.id for meld in self.melds for card in meld.cards}


def card_points(card: Card) -> int:
    return card.point_value()


def deadwood_points(cards: Iterable[Card]) -> int:
    return sum(card_points(card) for card in cards)


def _group(hand: Sequence[Card], key: Callable[[Card], object]) -> Dict[object, List[Card]]:
    # dict keeps first-appearance order of each group.
    groups: Dict[object, List[Card]] = {}
    for card in hand:
        groups.setdefault(key(card), []).append(card)
    return groups


def _extract_runs(hand: Sequence[Card], used: Set[str]) -> List[Meld]:
    runs: List[Meld] = []
    for cards in _group(hand, lambda c: c.suit).values():
        ordered = sorted((c for c in cards if c.id not in used), key=lambda c: c.value)
        run: List[Card] = []
        for card in ordered:
            if not run or card.value == run[-1].value + 1:
                run.append(card)
                continue
            if len(run) >= MIN_MELD_SIZE:
                runs.append(Meld(MeldKind.RUN, tuple(run)))
                used.update(c.id for c in run)
            run = [card]
        if len(run) >= MIN_MELD_SIZE:
            runs.append(Meld(MeldKind.RUN, tuple(run)))
            used.update(c.id for c in run)
    return runs


def _extract_sets(hand: Sequence[Card], used: Set[str]) -> List[Meld]:
    sets: List[Meld] = []
    for cards in _group(hand, lambda c: c.rank).values():
        remaining = [c for c in cards if c.id not in used]
        if len(remaining) >= MIN_MELD_SIZE:
            chosen = remaining[:MAX_SET_SIZE]
            sets.append(Meld(MeldKind.SET, tuple(chosen)))
            used.update(c.id for c in chosen)
    return sets


def _result(hand: Sequence[Card], melds: List[Meld], used: Set[str]) -> MeldResult:
    deadwood = tuple(card for card in hand if card.id not in used)
    return MeldResult(melds=tuple(melds), deadwood=deadwood, deadwood_points=deadwood_points(deadwood))


def find_melds_greedy(hand: Sequence[Card]) -> MeldResult:
    hand = list(hand)
    best = MeldResult(melds=(), deadwood=tuple(hand), deadwood_points=deadwood_points(hand))

    used: Set[str] = set()
    melds = _extract_sets(hand, used)
    melds += _extract_runs(hand, used)
    sets_first = _result(hand, melds, used)
    if sets_first.deadwood_points < best.deadwood_points:
        best = sets_first

    used = set()
    melds = _extract_runs(hand, used)
    melds += _extract_sets(hand, used)
    runs_first = _result(hand, melds, used)
    if runs_first.deadwood_points < best.deadwood_points:
        best = runs_first

    return best


def _candidate_melds(hand: Sequence[Card]) -> List[Meld]:
    candidates: List[Meld] = []
    for cards in _group(hand, lambda c: c.rank).values():
        if len(cards) >= MIN_MELD_SIZE:
            candidates.extend(Meld(MeldKind.SET, combo) for combo in combinations(cards, MIN_MELD_SIZE))
        if len(cards) == MAX_SET_SIZE:
            candidates.append(Meld(MeldKind.SET, tuple(cards)))
    for cards in _group(hand, lambda c: c.suit).values():
        ordered = sorted(cards, key=lambda c: c.value)
        for start in range(len(ordered)):
            for end in range(start + MIN_MELD_SIZE, len(ordered) + 1):
                segment = ordered[start:end]
                if segment[-1].value - segment[0].value != len(segment) - 1:
                    break
                candidates.append(Meld(MeldKind.RUN, tuple(segment)))
    return candidates


def find_melds_exhaustive(hand: Sequence[Card]) -> MeldResult:
    """Exact minimum-deadwood partition via memoized search."""
    hand = list(hand)
    index_of = {card.id: index for index, card in enumerate(hand)}
    candidates = _candidate_melds(hand)
    covering: Dict[int, List[Tuple[int, frozenset]]] = {index: [] for index in range(len(hand))}
    for meld_index, meld in enumerate(candidates):
        members = frozenset(index_of[card.id] for card in meld.cards)
        for member in members:
            covering[member].append((meld_index, members))

    @lru_cache(maxsize=None)
    def search(remaining: frozenset) -> Tuple[int, Tuple[int, ...]]:
        if not remaining:
            return 0, ()
        first = min(remaining)
        rest = remaining - {first}
        points, chosen = search(rest)
        best = (points + hand[first].point_value(), chosen)
        for meld_index, members in covering[first]:
            if members <= remaining:
                points, chosen = search(remaining - members)
                if points < best[0]:
                    best = (points, (meld_index,) + chosen)
        return best

    _, chosen = search(frozenset(range(len(hand))))
    melds = [candidates[meld_index] for meld_index in chosen]
    used = {card.id for meld in melds for card in meld.cards}
    return _result(hand, melds, used)


STRATEGIES: Dict[str, Callable[[Sequence[Card]], MeldResult]] = {
    "greedy": find_melds_greedy,
    "exhaustive": find_melds_exhaustive,
}


def find_melds(hand: Sequence[Card], strategy: str = "greedy") -> MeldResult:
    try:
        finder = STRATEGIES[strategy]
    except KeyError as exc:
        raise ValueError(f"Unknown meld strategy: {strategy!r}") from exc
    return finder(hand)


def can_knock(hand: Sequence[Card], limit: int = KNOCK_LIMIT, strategy: str = "greedy") -> bool:
    return find_melds(hand, strategy).deadwood_points <= limit


def is_gin(hand: Sequence[Card], strategy: str = "greedy") -> bool:
    return find_melds(hand, strategy).deadwood_points == 0
