import pytest
from fastapi.testclient import TestClient

from main import app
from shared.codes import BusinessCode


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}


def test_connect_list_disconnect(client):
    resp = client.post("/api/v1/connections", json={"connection_id": "a"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == BusinessCode.SUCCESS
    assert body["data"]["connection_id"] == "a"
    assert body["data"]["timestamp"].endswith("Z")

    client.post("/api/v1/connections", json={"connection_id": "b"})
    listing = client.get("/api/v1/connections").json()["data"]
    assert listing == {"connections": ["a", "b"], "count": 2}

    assert client.delete("/api/v1/connections/a").status_code == 200
    assert client.delete("/api/v1/connections/a").status_code == 200
    assert client.get("/api/v1/connections").json()["data"]["connections"] == ["b"]


def test_empty_registry_lists_nothing(client):
    resp = client.get("/api/v1/connections")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"connections": [], "count": 0}


@pytest.mark.parametrize(
    "payload,message",
    [({}, "no connectionId"), ({"connection_id": ""}, "empty connectionId")],
)
def test_connect_rejects_invalid_identifier(client, payload, message):
    resp = client.post("/api/v1/connections", json=payload)
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == BusinessCode.PARAM_VALIDATION_ERROR
    assert body["message"] == message
    assert body["error"]["type"] == "InvalidIdentifier"
    assert client.get("/api/v1/connections").json()["data"]["count"] == 0


def test_publish_without_local_sockets_prunes(client):
    # registered over HTTP but never attached to a socket in this process
    client.post("/api/v1/connections", json={"connection_id": "stale"})

    resp = client.post("/api/v1/messages", json={"message": "hello"})

    assert resp.status_code == 200
    report = resp.json()["data"]
    assert (report["attempted"], report["delivered"], report["pruned"], report["failed"]) == (1, 0, 1, 0)
    assert client.get("/api/v1/connections").json()["data"]["count"] == 0


def test_publish_to_empty_registry(client):
    report = client.post("/api/v1/messages", json={"message": "hello"}).json()["data"]
    assert report["attempted"] == 0


@pytest.mark.parametrize("payload", [{}, {"message": ""}])
def test_publish_rejects_empty_message(client, payload):
    resp = client.post("/api/v1/messages", json=payload)
    assert resp.status_code == 422
    assert resp.json()["message"] == "no message"
    assert resp.json()["error"]["type"] == "EmptyMessage"


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.json()["code"] == BusinessCode.NOT_FOUND


def test_request_id_header_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-1"})
    assert resp.headers["X-Request-ID"] == "req-1"


def test_websocket_round_trip(client):
    with client.websocket_connect("/ws") as ws:
        hello = ws.receive_json()
        assert hello["type"] == "connected"
        connection_id = hello["data"]["connection_id"]
        assert connection_id in client.get("/api/v1/connections").json()["data"]["connections"]

        ws.send_json({"action": "send", "message": "hi all"})
        assert ws.receive_text() == "hi all"
        report = ws.receive_json()
        assert report["type"] == "report"
        assert (report["data"]["attempted"], report["data"]["delivered"]) == (1, 1)

        resp = client.post("/api/v1/messages", json={"message": "from http"})
        assert resp.json()["data"]["delivered"] == 1
        assert ws.receive_text() == "from http"


def test_websocket_control_frames(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        ws.send_json({"action": "ping"})
        assert ws.receive_json()["type"] == "pong"

        ws.send_json({"action": "send", "message": ""})
        err = ws.receive_json()
        assert err["type"] == "error"
        assert err["data"]["message"] == "no message"

        ws.send_json({"action": "dance"})
        err = ws.receive_json()
        assert err["type"] == "error"
        assert err["data"]["action"] == "dance"

        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"
