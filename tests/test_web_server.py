import pytest

import gameplay_models
import web_server


@pytest.fixture
def control_state():
    return web_server.ControlState()


@pytest.fixture
def client(tmp_path, control_state):
    (tmp_path / "controller.html").write_text("<html>controller</html>", encoding="utf-8")
    flask_app = web_server.create_flask_app(
        web_server.WebServerConfig(host="127.0.0.1", port=5178, web_root_dir=tmp_path),
        control_state,
    )
    flask_app.config["TESTING"] = True
    return flask_app.test_client()


def test_root_redirects_to_controller(client):
    response = client.get("/")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/controller.html")
    page = client.get("/controller.html")
    assert page.status_code == 200
    assert b"controller" in page.data


def test_unknown_file_is_json_404(client):
    response = client.get("/missing.js")
    assert response.status_code == 404
    assert response.get_json()["ok"] is False


def test_status_reflects_published_snapshot(client, control_state):
    initial = client.get("/api/status").get_json()
    assert initial["ok"] is True
    assert initial["state"] == "LOADING"

    snapshot = gameplay_models.GameSnapshot(
        score=120,
        session_state=gameplay_models.SessionState.playing(42000),
        time_left_ms=42000,
    )
    control_state.publish_snapshot(snapshot.to_dict())
    payload = client.get("/api/status").get_json()
    assert payload["score"] == 120
    assert payload["state_label"] == "PLAYING(42000)"
    assert payload["time_left_ms"] == 42000


def test_tap_is_queued(client, control_state):
    response = client.post("/api/tap", json={"lane": 2})
    assert response.status_code == 200
    assert control_state.drain_intents() == [web_server.ControlIntent(kind=web_server.IntentKind.TAP, lane=2)]
    assert control_state.drain_intents() == []


@pytest.mark.parametrize("payload", [{"lane": 4}, {"lane": -1}, {"lane": True}, {"lane": "left"}, {}, [1]])
def test_bad_tap_payloads_are_rejected(client, control_state, payload):
    response = client.post("/api/tap", json=payload)
    assert response.status_code == 400
    assert response.get_json()["ok"] is False
    assert control_state.drain_intents() == []


def test_tap_without_json_body_is_rejected(client):
    response = client.post("/api/tap", data="lane=1")
    assert response.status_code == 400


def test_menu_intents_are_queued_in_order(client, control_state):
    client.post("/api/start")
    client.post("/api/replay")
    client.post("/api/menu")
    client.post("/api/difficulty", json={"difficulty": "hard"})
    kinds = [intent.kind for intent in control_state.drain_intents()]
    assert kinds == [
        web_server.IntentKind.START,
        web_server.IntentKind.REPLAY,
        web_server.IntentKind.MENU,
        web_server.IntentKind.DIFFICULTY,
    ]


def test_difficulty_requires_a_value(client):
    assert client.post("/api/difficulty", json={}).status_code == 400
    assert client.post("/api/difficulty", json={"difficulty": "  "}).status_code == 400


def test_apply_intent_drives_the_session(backend, make_session):
    session_machine = make_session()
    backend.advance(1500)

    assert web_server.apply_intent(
        session_machine, web_server.ControlIntent(kind=web_server.IntentKind.DIFFICULTY, difficulty="easy")
    )
    assert session_machine.tier.value == "easy"
    assert web_server.apply_intent(session_machine, web_server.ControlIntent(kind=web_server.IntentKind.START))
    assert not web_server.apply_intent(session_machine, web_server.ControlIntent(kind=web_server.IntentKind.REPLAY))
    backend.advance(4000)

    tap = web_server.ControlIntent(kind=web_server.IntentKind.TAP, lane=0)
    assert web_server.apply_intent(session_machine, tap)
    assert session_machine.combo_state.combo == 0
