import json

import pytest

from ginrummy.service import (
    GameService,
    IllegalAction,
    deserialize_state,
    serialize_state,
    swap_perspective,
)
from ginrummy.state import Phase

HAND0 = "3C 4C 5C 7D 7H 7S 2D 3D AH KS"
HAND1 = "9C 9D 9H 10S JS QS 2H 4H 6H 8H"


def test_serialized_state_is_plain_data(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    payload = serialize_state(engine.get_state())

    assert json.loads(json.dumps(payload)) == payload
    assert payload["phase"] == "draw"
    assert deserialize_state(payload) == engine.get_state()


def test_swap_perspective_flips_player_indices(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()
    engine.knock_with_discard("K_spades")
    payload = serialize_state(engine.get_state())

    swapped = swap_perspective(payload)
    assert swapped["hands"][0] == payload["hands"][1]
    assert swapped["scores"] == [0, 19]
    assert swapped["knocker"] == 1
    assert swapped["current_player"] == 1
    assert swapped["winner"] is None
    assert swap_perspective(swapped) == payload


def test_view_hides_opponent_until_round_over(make_engine):
    service = GameService(make_engine(HAND0, HAND1, "8C", "4D"))

    view = service.get_view(perspective=0)
    assert view.phase == "draw"
    assert len(view.hand) == 10
    assert view.opponent_hand is None
    assert view.opponent_card_count == 10
    assert view.discard_top["id"] == "8_clubs"
    assert view.melds["deadwood_points"] == 16

    view = service.draw(0, "pile")
    assert view.can_knock
    view = service.knock(0, "K_spades")
    assert view.phase == "round_over"
    assert len(view.opponent_hand) == 10
    assert view.scores == [19, 0]


def test_service_enforces_turn_order(make_engine):
    service = GameService(make_engine(HAND0, HAND1, "8C", "4D"))

    with pytest.raises(IllegalAction):
        service.draw(1, "pile")
    with pytest.raises(IllegalAction):
        service.discard(0, "K_spades")
    with pytest.raises(IllegalAction):
        service.next_round()


def test_next_round_after_round_over(make_engine):
    service = GameService(make_engine(HAND0, HAND1, "8C", "4D"))
    service.draw(0, "pile")
    service.enter_knock(0)
    service.cancel_knock(0)
    service.knock(0, "K_spades")

    view = service.next_round()
    assert view.round_number == 2
    assert view.scores == [19, 0]
    assert service.engine.get_state().phase is Phase.DRAW
