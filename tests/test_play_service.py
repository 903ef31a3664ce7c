from fastapi.testclient import TestClient

from server.play_service import app, sessions

client = TestClient(app)


def start(seed=3):
    response = client.post("/session/start", json={"seed": seed})
    assert response.status_code == 200
    return response.json()


def test_start_session_deals_to_human():
    body = start()
    state = body["state"]
    assert body["session_id"] in sessions
    assert state["perspective"] == 0
    assert state["current_player"] == 0
    assert state["phase"] == "draw"
    assert len(state["hand"]) == 10
    assert state["opponent_hand"] is None


def test_human_turn_then_bot_reply():
    body = start()
    session_id = body["session_id"]

    response = client.post(f"/session/{session_id}/action", json={"action": "draw_pile"})
    assert response.status_code == 200
    state = response.json()["state"]
    assert state["phase"] == "discard"
    assert len(state["hand"]) == 11

    card_id = state["hand"][0]["id"]
    response = client.post(f"/session/{session_id}/action", json={"action": "discard", "card_id": card_id})
    assert response.status_code == 200
    state = response.json()["state"]
    assert state["phase"] in ("draw", "round_over", "finished")
    if state["phase"] == "draw":
        assert state["current_player"] == 0
        assert len(state["hand"]) == 10


def test_illegal_actions_are_rejected():
    session_id = start()["session_id"]

    response = client.post(f"/session/{session_id}/action", json={"action": "discard", "card_id": "A_spades"})
    assert response.status_code == 400
    response = client.post(f"/session/{session_id}/action", json={"action": "knock"})
    assert response.status_code == 400
    response = client.post(f"/session/{session_id}/action", json={"action": "shuffle"})
    assert response.status_code == 422


def test_unknown_session():
    assert client.get("/session/missing").status_code == 404
    assert client.post("/session/missing/action", json={"action": "draw_pile"}).status_code == 404


def test_end_session():
    session_id = start()["session_id"]
    assert client.get(f"/session/{session_id}").status_code == 200
    assert client.delete(f"/session/{session_id}").status_code == 200
    assert session_id not in sessions
