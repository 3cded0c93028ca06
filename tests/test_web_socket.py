import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from signaling.main import create_app


@pytest.fixture
def client():
    with TestClient(create_app()) as client:
        yield client


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_connection_without_client_id_is_rejected(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
    assert exc.value.code == 1008
    assert client.get("/health").json()["active_connections"] == 0


def test_join_and_offer_round(client):
    with client.websocket_connect("/ws?clientId=alice") as alice:
        alice.send_json({"type": "join", "room": "lobby", "from": "alice"})
        assert alice.receive_json() == {
            "type": "peers",
            "from": "server",
            "room": "lobby",
            "payload": {"peers": []},
        }

        with client.websocket_connect("/ws?clientId=bob") as bob:
            bob.send_json({"type": "join", "room": "lobby", "from": "bob"})
            assert bob.receive_json()["payload"] == {"peers": ["alice"]}
            assert alice.receive_json() == {"type": "peer-joined", "from": "bob", "room": "lobby"}

            health = client.get("/health").json()
            assert health["active_connections"] == 2
            assert health["active_rooms"] == 1

            sdp = {"type": "offer", "sdp": "v=0"}
            bob.send_json({"type": "offer", "target": "alice", "from": "eve", "room": "lobby", "payload": sdp})
            assert alice.receive_json() == {
                "type": "offer",
                "target": "alice",
                "from": "bob",
                "room": "lobby",
                "payload": sdp,
            }

            alice.send_json({"type": "leave", "from": "alice"})
            assert bob.receive_json() == {"type": "peer-left", "from": "alice", "room": "lobby"}

            rooms = client.get("/rooms").json()
            assert rooms == {"rooms": [{"room_id": "lobby", "peers": ["bob"]}], "total_rooms": 1}


def test_numeric_payload_reaches_target_byte_for_byte(client):
    with client.websocket_connect("/ws?clientId=a") as a, client.websocket_connect("/ws?clientId=b") as b:
        a.send_json({"type": "join", "room": "r"})
        a.receive_json()
        b.send_json({"type": "join", "room": "r"})
        b.receive_json()
        a.receive_json()

        payload = '{"x":1e400,"y":0.10000000000000000001,"n":1.0}'
        b.send_text('{"type":"offer","target":"a","room":"r","payload":' + payload + "}")

        frame = a.receive_text()
        assert frame == '{"type": "offer", "target": "a", "from": "b", "room": "r", "payload": ' + payload + "}"


def test_malformed_frame_closes_connection_and_cleans_up(client):
    with client.websocket_connect("/ws?clientId=carol") as carol:
        carol.send_json({"type": "join", "room": "studio"})
        carol.receive_json()
        assert client.get("/rooms").json()["total_rooms"] == 1

        carol.send_text("this is not json")
        with pytest.raises(WebSocketDisconnect):
            carol.receive_json()

    assert client.get("/rooms").json() == {"rooms": [], "total_rooms": 0}
