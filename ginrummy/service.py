"""Serialization and read-only views for UI and network consumers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .cards import card_label, deserialize_card, serialize_card
from .game import EmptyPile, RummyEngine
from .melds import MeldResult
from .state import TERMINAL_PHASES, Phase, RoundState


class IllegalAction(RuntimeError):
    """Raised by the service facade when the engine rejects an action."""


def serialize_state(state: RoundState) -> Dict[str, Any]:
    """Return a plain, JSON-safe dict mirroring every field of ``state``."""
    return {
        "hands": [[serialize_card(card) for card in hand] for hand in state.hands],
        "draw_pile": [serialize_card(card) for card in state.draw_pile],
        "discard_pile": [serialize_card(card) for card in state.discard_pile],
        "current_player": state.current_player,
        "phase": state.phase.value,
        "scores": list(state.scores),
        "knocker": state.knocker,
        "last_action": state.last_action,
        "round_result": state.round_result,
        "winner": state.winner,
        "round_number": state.round_number,
    }


def deserialize_state(payload: Mapping[str, Any]) -> RoundState:
    return RoundState(
        hands=[[deserialize_card(card) for card in hand] for hand in payload["hands"]],
        draw_pile=[deserialize_card(card) for card in payload["draw_pile"]],
        discard_pile=[deserialize_card(card) for card in payload["discard_pile"]],
        current_player=int(payload["current_player"]),
        phase=Phase(payload["phase"]),
        scores=[int(score) for score in payload["scores"]],
        knocker=payload.get("knocker"),
        last_action=payload.get("last_action", ""),
        round_result=payload.get("round_result"),
        winner=payload.get("winner"),
        round_number=int(payload.get("round_number", 0)),
    )


def _flip(player: Optional[int]) -> Optional[int]:
    return None if player is None else 1 - player


def swap_perspective(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Re-index a serialized state so the remote player appears as player 0."""
    swapped = dict(payload)
    swapped["hands"] = [payload["hands"][1], payload["hands"][0]]
    swapped["scores"] = [payload["scores"][1], payload["scores"][0]]
    swapped["current_player"] = 1 - payload["current_player"]
    swapped["winner"] = _flip(payload.get("winner"))
    swapped["knocker"] = _flip(payload.get("knocker"))
    return swapped


def serialize_melds(result: MeldResult) -> Dict[str, Any]:
    return {
        "melds": [
            {"kind": meld.kind.value, "cards": [serialize_card(card) for card in meld.cards]}
            for meld in result.melds
        ],
        "deadwood": [serialize_card(card) for card in result.deadwood],
        "deadwood_points": result.deadwood_points,
    }


@dataclass
class RoundView:
    perspective: int
    phase: str
    current_player: int
    round_number: int
    hand: list[dict]
    hand_labels: list[str]
    melds: dict
    opponent_card_count: int
    opponent_hand: Optional[list[dict]]
    discard_top: Optional[dict]
    discard_size: int
    draw_size: int
    scores: list[int]
    knocker: Optional[int]
    winner: Optional[int]
    last_action: str
    round_result: Optional[str]
    can_knock: bool
    is_gin: bool


class GameService:
    """Facade around RummyEngine for UI consumers and the play service."""

    def __init__(self, engine: Optional[RummyEngine] = None) -> None:
        self.engine = engine or RummyEngine()

    # Lifecycle ---------------------------------------------------------

    def start_game(self) -> RoundView:
        self._require(self.engine.initialize(), "initialize")
        return self.get_view()

    def next_round(self) -> RoundView:
        state = self.engine.get_state()
        if state.phase is not Phase.ROUND_OVER:
            raise IllegalAction("A new round can only start after the current round is over.")
        self._require(self.engine.new_round(), "new_round")
        return self.get_view()

    # Actions -----------------------------------------------------------

    def draw(self, player: int, source: str) -> RoundView:
        self._require_turn(player)
        if source == "pile":
            ok = self.engine.draw_from_pile()
        elif source == "discard":
            ok = self.engine.draw_from_discard()
        else:
            raise IllegalAction(f"Unknown draw source: {source!r}")
        # An empty draw pile still ends the round; report the new state.
        if not ok and not (source == "pile" and isinstance(self.engine.last_error, EmptyPile)):
            self._require(ok, f"draw_{source}")
        return self.get_view(player)

    def discard(self, player: int, card_id: str) -> RoundView:
        self._require_turn(player)
        self._require(self.engine.discard(card_id), "discard")
        return self.get_view(player)

    def enter_knock(self, player: int) -> RoundView:
        self._require_turn(player)
        self._require(self.engine.enter_knock_phase(), "enter_knock")
        return self.get_view(player)

    def cancel_knock(self, player: int) -> RoundView:
        self._require_turn(player)
        self._require(self.engine.cancel_knock(), "cancel_knock")
        return self.get_view(player)

    def knock(self, player: int, card_id: str) -> RoundView:
        self._require_turn(player)
        self._require(self.engine.knock_with_discard(card_id), "knock")
        return self.get_view(player)

    # Views -------------------------------------------------------------

    def get_view(self, perspective: int = 0) -> RoundView:
        state = self.engine.get_state()
        opponent = 1 - perspective
        hand = state.hands[perspective]
        reveal = state.phase in TERMINAL_PHASES
        own_turn = state.current_player == perspective
        top = state.top_discard()
        return RoundView(
            perspective=perspective,
            phase=state.phase.value,
            current_player=state.current_player,
            round_number=state.round_number,
            hand=[serialize_card(card) for card in hand],
            hand_labels=[card_label(card) for card in hand],
            melds=serialize_melds(self.engine.get_melds(perspective)),
            opponent_card_count=len(state.hands[opponent]),
            opponent_hand=[serialize_card(card) for card in state.hands[opponent]] if reveal else None,
            discard_top=serialize_card(top) if top is not None else None,
            discard_size=len(state.discard_pile),
            draw_size=len(state.draw_pile),
            scores=list(state.scores),
            knocker=state.knocker,
            winner=state.winner,
            last_action=state.last_action,
            round_result=state.round_result,
            can_knock=own_turn and self.engine.can_knock(),
            is_gin=own_turn and self.engine.is_gin(),
        )

    # Helpers -----------------------------------------------------------

    def _require_turn(self, player: int) -> None:
        if player != self.engine.get_state().current_player:
            raise IllegalAction("Not this player's turn.")

    def _require(self, ok: bool, action: str) -> None:
        if not ok:
            reason = self.engine.last_error or "rejected"
            raise IllegalAction(f"{action}: {reason}")
