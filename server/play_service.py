"""REST service to play Gin Rummy against the heuristic bot."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from random import Random
from typing import Dict, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from bots.base import BotStrategy
from bots.bot_arena import play_turn
from bots.heuristic import HeuristicBot, PolicyConfig
from ginrummy.game import RummyEngine
from ginrummy.rules_schema import GinRules
from ginrummy.service import GameService, IllegalAction, RoundView
from ginrummy.state import Phase

logger = logging.getLogger(__name__)

HUMAN_PLAYER = 0
BOT_PLAYER = 1


class StartRequest(BaseModel):
    seed: Optional[int] = None
    rules: Optional[GinRules] = None
    policy: Optional[PolicyConfig] = None


class ActionRequest(BaseModel):
    action: Literal["draw_pile", "draw_discard", "discard", "enter_knock", "cancel_knock", "knock", "new_round"]
    card_id: Optional[str] = None


class SessionState:
    def __init__(self, service: GameService, bot: BotStrategy) -> None:
        self.service = service
        self.bot = bot


sessions: Dict[str, SessionState] = {}


app = FastAPI(title="Gin Rummy Play Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def ensure_session(session_id: str) -> SessionState:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def run_bot_turns(session: SessionState) -> None:
    """Let the bot play while it is its turn to draw."""
    engine = session.service.engine
    while True:
        state = engine.get_state()
        if state.current_player != BOT_PLAYER or state.phase is not Phase.DRAW:
            return
        play_turn(engine, session.bot)


def serialize_view(view: RoundView) -> Dict[str, object]:
    return asdict(view)


def apply_action(session: SessionState, request: ActionRequest) -> RoundView:
    service = session.service
    if request.action in ("discard", "knock") and not request.card_id:
        raise IllegalAction(f"{request.action} requires card_id")
    if request.action == "draw_pile":
        return service.draw(HUMAN_PLAYER, "pile")
    if request.action == "draw_discard":
        return service.draw(HUMAN_PLAYER, "discard")
    if request.action == "discard":
        return service.discard(HUMAN_PLAYER, request.card_id)
    if request.action == "enter_knock":
        return service.enter_knock(HUMAN_PLAYER)
    if request.action == "cancel_knock":
        return service.cancel_knock(HUMAN_PLAYER)
    if request.action == "knock":
        return service.knock(HUMAN_PLAYER, request.card_id)
    return service.next_round()


@app.post("/session/start")
def start_session(request: StartRequest) -> Dict[str, object]:
    engine = RummyEngine(rules=request.rules, rng=Random(request.seed))
    bot = HeuristicBot(
        request.policy,
        knock_limit=engine.rules.knock_limit,
        strategy=engine.rules.meld_strategy,
    )
    session = SessionState(service=GameService(engine), bot=bot)
    session.service.start_game()
    run_bot_turns(session)
    session_id = uuid.uuid4().hex
    sessions[session_id] = session
    logger.info("Started session %s", session_id)
    return {
        "session_id": session_id,
        "state": serialize_view(session.service.get_view(HUMAN_PLAYER)),
    }


@app.get("/session/{session_id}")
def get_session(session_id: str) -> Dict[str, object]:
    session = ensure_session(session_id)
    return {"state": serialize_view(session.service.get_view(HUMAN_PLAYER))}


@app.post("/session/{session_id}/action")
def take_action(session_id: str, request: ActionRequest) -> Dict[str, object]:
    session = ensure_session(session_id)
    try:
        apply_action(session, request)
    except IllegalAction as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    run_bot_turns(session)
    return {"state": serialize_view(session.service.get_view(HUMAN_PLAYER))}


@app.delete("/session/{session_id}")
def end_session(session_id: str) -> Dict[str, object]:
    ensure_session(session_id)
    del sessions[session_id]
    return {"ended": session_id}

