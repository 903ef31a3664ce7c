"""Turn-phase state machine for a Gin Rummy game."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from random import Random
from typing import Callable, List, Optional, Sequence, Union

from .cards import Card, sort_hand
from .deck import deal_round
from .melds import MeldResult, find_melds
from .rules_schema import GinRules
from .scoring import RoundOutcome, RoundScoreResult, match_winner, score_round
from .state import ACTIVE_PHASES, InvariantViolation, Phase, RoundState, verify_invariants

logger = logging.getLogger(__name__)

Listener = Callable[[RoundState], None]
CardRef = Union[Card, str]


class RummyError(RuntimeError):
    """Base class for rejected engine actions."""


class WrongPhase(RummyError):
    """Raised when an action is not legal in the current phase."""


class CardNotFound(RummyError):
    """Raised when the referenced card is not in the active hand."""


class InvalidKnock(RummyError):
    """Raised when a knock discard leaves too much deadwood."""


class EmptyPile(RummyError):
    """Raised when drawing from an empty pile."""


class ReentrantAction(RummyError):
    """Raised when a listener calls back into the engine during notification."""


def _engine_action(method):
    """Convert rejected actions into a False result and record the error."""

    @functools.wraps(method)
    def wrapper(self: "RummyEngine", *args, **kwargs) -> bool:
        before = self._state.snapshot()
        history_size = len(self.round_history)
        try:
            if self._notifying:
                raise ReentrantAction(f"{method.__name__} called from a state listener.")
            method(self, *args, **kwargs)
        except InvariantViolation:
            # A failed check leaves the pre-action state in place.
            self._state = before
            del self.round_history[history_size:]
            raise
        except RummyError as exc:
            self.last_error = exc
            logger.debug("Rejected %s: %s", method.__name__, exc)
            return False
        self.last_error = None
        return True

    return wrapper


@dataclass
class RummyEngine:
    """Validate and apply player actions against a single ``RoundState``."""

    rules: Optional[GinRules] = None
    rng: Optional[Random] = None
    deck: Optional[Sequence[Card]] = None

    last_error: Optional[RummyError] = field(init=False, default=None)
    round_history: List[RoundScoreResult] = field(init=False, default_factory=list)
    _state: RoundState = field(init=False, default_factory=RoundState)
    _listeners: List[Listener] = field(init=False, default_factory=list)
    _notifying: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        if self.rules is None:
            self.rules = GinRules()
        if self.rng is None:
            self.rng = Random()

    # Lifecycle ---------------------------------------------------------

    @_engine_action
    def initialize(self) -> None:
        """Start a new game: fresh deal, scores reset to zero."""
        self._state = RoundState(round_number=1)
        self.round_history = []
        self._deal()
        self._commit()

    @_engine_action
    def new_round(self) -> None:
        """Deal a fresh round while keeping the cumulative scores."""
        if self._state.round_number == 0:
            raise WrongPhase("No game in progress; call initialize() first.")
        scores = list(self._state.scores)
        self._state = RoundState(scores=scores, round_number=self._state.round_number + 1)
        self._deal()
        self._commit()

    def get_state(self) -> RoundState:
        return self._state.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Actions -----------------------------------------------------------

    @_engine_action
    def draw_from_pile(self) -> None:
        state = self._ensure_phase(Phase.DRAW)
        if not state.draw_pile:
            state.phase = Phase.ROUND_OVER
            state.last_action = "Draw pile empty - draw game"
            state.round_result = "Draw pile exhausted. Round is a draw."
            logger.info("Round %d ended in a draw: draw pile exhausted", state.round_number)
            self._commit()
            raise EmptyPile("Draw pile is empty.")

        card = state.draw_pile.pop().flipped(True)
        state.active_hand.append(card)
        sort_hand(state.active_hand)
        state.phase = Phase.DISCARD
        state.last_action = "Drew from pile"
        self._commit()

    @_engine_action
    def draw_from_discard(self) -> None:
        state = self._ensure_phase(Phase.DRAW)
        if not state.discard_pile:
            raise EmptyPile("Discard pile is empty.")

        card = state.discard_pile.pop().flipped(True)
        state.active_hand.append(card)
        sort_hand(state.active_hand)
        state.phase = Phase.DISCARD
        state.last_action = "Drew from discard"
        self._commit()

    @_engine_action
    def discard(self, card: CardRef) -> None:
        state = self._ensure_phase(Phase.DISCARD)
        hand = state.active_hand
        discarded = hand.pop(self._hand_index(card))
        state.discard_pile.append(discarded)
        state.last_action = f"Discarded {_describe(discarded)}"

        if self._melds(hand).deadwood_points == 0:
            state.phase = Phase.GIN
            self._resolve_round(state.current_player, gin=True)
        else:
            state.current_player = state.opponent(state.current_player)
            state.phase = Phase.DRAW
            if not state.draw_pile and not state.discard_pile:
                state.phase = Phase.ROUND_OVER
                state.last_action = "No cards left - draw game"
                state.round_result = "No cards available. Round is a draw."
        self._commit()

    @_engine_action
    def enter_knock_phase(self) -> None:
        state = self._ensure_phase(Phase.DISCARD)
        state.phase = Phase.KNOCK_DISCARD
        state.last_action = "Select a card to discard for knock"
        self._commit()

    @_engine_action
    def cancel_knock(self) -> None:
        state = self._ensure_phase(Phase.KNOCK_DISCARD)
        state.phase = Phase.DISCARD
        state.last_action = "Knock cancelled"
        self._commit()

    @_engine_action
    def knock_with_discard(self, card: CardRef) -> None:
        """Discard ``card`` and knock; on an invalid knock nothing changes."""
        state = self._ensure_phase(Phase.DISCARD, Phase.KNOCK_DISCARD)
        hand = state.active_hand
        index = self._hand_index(card)

        discarded = hand.pop(index)
        state.discard_pile.append(discarded)
        result = self._melds(hand)
        if result.deadwood_points > self.rules.knock_limit:
            state.discard_pile.pop()
            hand.insert(index, discarded)
            raise InvalidKnock(
                f"Discarding {_describe(discarded)} leaves {result.deadwood_points} deadwood "
                f"(limit {self.rules.knock_limit})."
            )

        state.last_action = f"Discarded {_describe(discarded)} and knocked"
        self._resolve_round(state.current_player, gin=result.deadwood_points == 0)
        self._commit()

    # Queries -----------------------------------------------------------

    def can_knock(self) -> bool:
        """True if some single discard from the active hand yields a valid knock."""
        return any(
            result.deadwood_points <= self.rules.knock_limit for result in self._discard_outcomes()
        )

    def is_gin(self) -> bool:
        """True if some single discard from the active hand yields gin."""
        return any(result.deadwood_points == 0 for result in self._discard_outcomes())

    def get_melds(self, player: int) -> MeldResult:
        if player not in (0, 1):
            raise ValueError("Player index must be 0 or 1.")
        return self._melds(self._state.hands[player])

    # Internals ---------------------------------------------------------

    def _deal(self) -> None:
        deal = deal_round(rng=self.rng, deck=self.deck, hand_size=self.rules.hand_size)
        self._state.hands = deal.hands
        self._state.discard_pile = deal.discard_pile
        self._state.draw_pile = deal.draw_pile
        logger.debug("Dealt round %d", self._state.round_number)

    def _melds(self, hand: Sequence[Card]) -> MeldResult:
        return find_melds(hand, self.rules.meld_strategy)

    def _discard_outcomes(self):
        state = self._state
        if state.phase not in ACTIVE_PHASES:
            return
        hand = state.active_hand
        for index in range(len(hand)):
            yield self._melds(hand[:index] + hand[index + 1 :])

    def _hand_index(self, card: CardRef) -> int:
        if isinstance(card, Card):
            card_id = card.id
        elif isinstance(card, str):
            card_id = card
        else:
            raise CardNotFound(f"Expected a card or card id, got {card!r}.")
        for index, held in enumerate(self._state.active_hand):
            if held.id == card_id:
                return index
        raise CardNotFound(f"Card {card_id} is not in player {self._state.current_player}'s hand.")

    def _resolve_round(self, knocker: int, *, gin: bool) -> None:
        state = self._state
        opponent = state.opponent(knocker)
        result = score_round(
            knocker=knocker,
            knocker_deadwood=self._melds(state.hands[knocker]).deadwood_points,
            opponent_deadwood=self._melds(state.hands[opponent]).deadwood_points,
            gin=gin,
            prior_scores=state.scores,
            rules=self.rules,
        )
        state.scores = list(result.new_scores)
        names = self.rules.player_names
        if result.outcome is RoundOutcome.GIN:
            message = f"{names[knocker]} got Gin! +{result.points} points"
        elif result.outcome is RoundOutcome.KNOCK:
            message = f"{names[knocker]} knocked and won {result.points} points"
        else:
            message = f"Undercut! {names[opponent]} won {result.points} points"
        state.knocker = knocker
        state.last_action = message
        state.round_result = message
        self.round_history.append(result)
        logger.info("Round %d: %s (scores %s)", state.round_number, message, state.scores)

        winner = match_winner(state.scores, self.rules.target_score)
        if winner is not None:
            state.phase = Phase.FINISHED
            state.winner = winner
            logger.info("Game finished: player %d wins %s", winner, state.scores)
        else:
            state.phase = Phase.ROUND_OVER

    def _ensure_phase(self, *expected: Phase) -> RoundState:
        if self._state.round_number == 0:
            raise WrongPhase("No round has been dealt; call initialize() first.")
        if self._state.phase not in expected:
            allowed = ", ".join(str(phase) for phase in expected)
            raise WrongPhase(f"Action not allowed in phase {self._state.phase}. Expected {allowed}.")
        return self._state

    def _commit(self) -> None:
        if self.rules.check_invariants:
            problems = verify_invariants(
                self._state,
                hand_size=self.rules.hand_size,
                target_score=self.rules.target_score,
            )
            if problems:
                raise InvariantViolation("; ".join(problems))
        self._notify()

    def _notify(self) -> None:
        self._notifying = True
        try:
            for listener in list(self._listeners):
                listener(self._state.snapshot())
        finally:
            self._notifying = False


def _describe(card: Card) -> str:
    return f"{card.rank.symbol} of {card.suit.value}"
