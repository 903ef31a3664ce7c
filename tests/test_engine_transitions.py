import pytest

from ginrummy.cards import card_sort_key
from ginrummy.game import CardNotFound, EmptyPile, InvalidKnock, RummyEngine, WrongPhase
from ginrummy.rules_schema import GinRules
from ginrummy.scoring import RoundOutcome
from ginrummy.service import serialize_state
from ginrummy.state import InvariantViolation, Phase

HAND0 = "3C 4C 5C 7D 7H 7S 2D 3D AH KS"
HAND0_GIN = "3C 4C 5C 6C 7D 7H 7S 2D 3D KS"
HAND1 = "9C 9D 9H 10S JS QS 2H 4H 6H 8H"


def hand_ids(engine, player=0):
    return [card.id for card in engine.get_state().hands[player]]


def test_initial_deal(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    state = engine.get_state()

    assert state.phase is Phase.DRAW
    assert state.current_player == 0
    assert [len(hand) for hand in state.hands] == [10, 10]
    assert len(state.draw_pile) == 31
    assert [card.id for card in state.discard_pile] == ["8_clubs"]
    assert state.scores == [0, 0]
    assert state.round_number == 1
    assert state.knocker is None and state.winner is None
    assert engine.get_melds(0).deadwood_points == 16
    assert engine.get_melds(1).deadwood_points == 20


def test_actions_rejected_outside_their_phase(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    calls = []
    engine.subscribe(calls.append)
    before = serialize_state(engine.get_state())

    assert not engine.discard("K_spades")
    assert isinstance(engine.last_error, WrongPhase)
    assert not engine.knock_with_discard("K_spades")
    assert not engine.enter_knock_phase()
    assert not engine.cancel_knock()
    assert not engine.can_knock()
    assert not engine.is_gin()

    assert serialize_state(engine.get_state()) == before
    assert calls == []


def test_draw_from_pile_flips_top_card(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    calls = []
    engine.subscribe(calls.append)

    assert engine.draw_from_pile()
    state = engine.get_state()
    drawn = next(card for card in state.hands[0] if card.id == "4_diamonds")
    assert drawn.face_up
    assert len(state.hands[0]) == 11
    assert len(state.draw_pile) == 30
    assert state.phase is Phase.DISCARD
    assert state.last_action == "Drew from pile"
    assert len(calls) == 1
    assert engine.last_error is None

    assert not engine.draw_from_pile()
    assert isinstance(engine.last_error, WrongPhase)


def test_draw_from_discard_takes_upcard(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")

    assert engine.draw_from_discard()
    state = engine.get_state()
    assert "8_clubs" in hand_ids(engine)
    assert state.discard_pile == []
    assert state.phase is Phase.DISCARD


def test_drawn_card_is_sorted_into_hand(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")

    assert engine.draw_from_pile()
    assert hand_ids(engine) == [
        "3_clubs", "4_clubs", "5_clubs",
        "2_diamonds", "3_diamonds", "4_diamonds", "7_diamonds",
        "A_hearts", "7_hearts",
        "7_spades", "K_spades",
    ]


def test_discard_upcard_is_sorted_into_hand(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")

    assert engine.draw_from_discard()
    hand = engine.get_state().hands[0]
    assert hand == sorted(hand, key=card_sort_key)
    assert [card.id for card in hand[:4]] == ["3_clubs", "4_clubs", "5_clubs", "8_clubs"]


def test_discard_moves_exactly_one_card_and_passes_turn(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()
    before = hand_ids(engine)

    assert not engine.discard("8_clubs")
    assert isinstance(engine.last_error, CardNotFound)

    assert engine.discard("K_spades")
    state = engine.get_state()
    after = hand_ids(engine)
    assert len(after) == len(before) - 1
    assert [card_id for card_id in before if card_id != "K_spades"] == after
    assert state.discard_pile[-1].id == "K_spades"
    assert state.current_player == 1
    assert state.phase is Phase.DRAW
    assert state.last_action == "Discarded K of spades"


def test_discard_rejects_non_card_argument(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()
    before = serialize_state(engine.get_state())

    assert not engine.discard(None)
    assert isinstance(engine.last_error, CardNotFound)
    assert not engine.knock_with_discard(42)
    assert isinstance(engine.last_error, CardNotFound)
    assert serialize_state(engine.get_state()) == before


def test_discard_accepts_card_objects(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()
    card = next(c for c in engine.get_state().hands[0] if c.id == "A_hearts")

    assert engine.discard(card)
    assert engine.get_state().discard_pile[-1] == card


def test_knock_phase_enter_and_cancel(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()

    assert engine.enter_knock_phase()
    assert engine.get_state().phase is Phase.KNOCK_DISCARD
    assert not engine.discard("K_spades")
    assert engine.cancel_knock()
    assert engine.get_state().phase is Phase.DISCARD
    assert engine.get_state().last_action == "Knock cancelled"
    assert not engine.cancel_knock()


def test_invalid_knock_rolls_back_exactly(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()
    engine.enter_knock_phase()
    calls = []
    engine.subscribe(calls.append)
    before = serialize_state(engine.get_state())

    assert not engine.knock_with_discard("4_diamonds")
    assert isinstance(engine.last_error, InvalidKnock)
    assert serialize_state(engine.get_state()) == before
    assert engine.get_state().phase is Phase.KNOCK_DISCARD
    assert calls == []


def test_successful_knock_scores_difference(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()
    assert engine.can_knock()
    assert not engine.is_gin()

    assert engine.knock_with_discard("K_spades")
    state = engine.get_state()
    assert state.phase is Phase.ROUND_OVER
    assert state.scores == [19, 0]
    assert state.knocker == 0
    assert state.winner is None
    assert state.round_result == "You knocked and won 19 points"
    assert engine.round_history[-1].outcome is RoundOutcome.KNOCK

    assert not engine.draw_from_pile()
    assert isinstance(engine.last_error, WrongPhase)


def test_gin_on_plain_discard(make_engine):
    engine = make_engine(HAND0_GIN, HAND1, "8C", "4D")
    engine.draw_from_pile()
    assert engine.is_gin()

    assert engine.discard("K_spades")
    state = engine.get_state()
    assert state.phase is Phase.ROUND_OVER
    assert state.scores == [45, 0]
    assert state.knocker == 0
    assert state.round_result == "You got Gin! +45 points"
    assert engine.round_history[-1].outcome is RoundOutcome.GIN


def test_knock_with_zero_deadwood_counts_as_gin(make_engine):
    engine = make_engine(HAND0_GIN, HAND1, "8C", "4D")
    engine.draw_from_pile()

    assert engine.knock_with_discard("K_spades")
    assert engine.round_history[-1].outcome is RoundOutcome.GIN
    assert engine.get_state().scores == [45, 0]


def test_undercut_pays_the_defender(make_engine):
    engine = make_engine("3C 4C 5C 7D 7H 7S 2D 3D 5H KS", "9C 9D 9H 10S JS QS 2H 3H 4H AS", "8C", "4D")
    engine.draw_from_pile()

    assert engine.knock_with_discard("K_spades")
    state = engine.get_state()
    assert state.scores == [0, 29]
    assert state.knocker == 0
    assert state.round_result == "Undercut! AI won 29 points"
    assert engine.round_history[-1].outcome is RoundOutcome.UNDERCUT


def test_reaching_target_finishes_game(make_engine):
    engine = make_engine(HAND0, "9C 9D 9H 10S JS QS 2H 3H 4H 6S", "8C", "4D")
    engine._state.scores = [97, 0]
    engine.draw_from_pile()

    assert engine.knock_with_discard("K_spades")
    state = engine.get_state()
    assert state.scores == [102, 0]
    assert state.phase is Phase.FINISHED
    assert state.winner == 0


def test_exhausted_draw_pile_ends_round_as_draw(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    calls = []
    engine.subscribe(calls.append)

    for _ in range(31):
        top = engine.get_state().draw_pile[-1].id
        assert engine.draw_from_pile()
        assert engine.discard(top)

    assert engine.get_state().draw_pile == []
    notified = len(calls)
    assert not engine.draw_from_pile()
    assert isinstance(engine.last_error, EmptyPile)
    state = engine.get_state()
    assert state.phase is Phase.ROUND_OVER
    assert state.round_result == "Draw pile exhausted. Round is a draw."
    assert state.knocker is None
    assert state.scores == [0, 0]
    assert len(calls) == notified + 1


def test_new_round_keeps_scores(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine.draw_from_pile()
    engine.knock_with_discard("K_spades")

    assert engine.new_round()
    state = engine.get_state()
    assert state.scores == [19, 0]
    assert state.round_number == 2
    assert state.phase is Phase.DRAW
    assert state.knocker is None and state.round_result is None
    assert [len(hand) for hand in state.hands] == [10, 10]

    assert engine.initialize()
    assert engine.get_state().scores == [0, 0]
    assert engine.round_history == []


def test_get_melds_rejects_bad_index(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    with pytest.raises(ValueError):
        engine.get_melds(2)


def test_get_state_is_detached(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    snapshot = engine.get_state()
    snapshot.hands[0].clear()
    snapshot.scores[0] = 99
    assert len(engine.get_state().hands[0]) == 10
    assert engine.get_state().scores == [0, 0]


def test_actions_rejected_before_initialize():
    engine = RummyEngine(rules=GinRules(check_invariants=True))

    assert not engine.draw_from_pile()
    assert isinstance(engine.last_error, WrongPhase)
    assert not engine.draw_from_discard()
    assert not engine.new_round()
    state = engine.get_state()
    assert state.phase is Phase.DRAW
    assert state.round_number == 0
    assert state.round_result is None


def test_invariant_violation_raises_and_restores_state(make_engine):
    engine = make_engine(HAND0, HAND1, "8C", "4D")
    engine._state.draw_pile.pop()
    calls = []
    engine.subscribe(calls.append)
    before = serialize_state(engine.get_state())

    with pytest.raises(InvariantViolation, match="Missing cards: 4_diamonds"):
        engine.draw_from_pile()

    assert serialize_state(engine.get_state()) == before
    assert calls == []
