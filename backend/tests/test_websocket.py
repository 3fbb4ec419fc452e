import json


def _send(ws, message_type, **data):
    ws.send_text(json.dumps({"type": message_type, "data": data}))


def _receive_until(ws, message_type, limit=10):
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"no {message_type} within {limit} messages")


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["activeRooms"] == 0


def test_sign_in_over_websocket(client, app_settings):
    with client.websocket_connect("/ws") as ws:
        _send(ws, "signIn", nickname="Taylor")
        signed_in = ws.receive_json()
        assert signed_in["type"] == "youSignedIn"
        assert signed_in["data"]["points"] == list(app_settings.points)
        assert signed_in["data"]["room"] in app_settings.words
        assert signed_in["data"]["users"][0]["nickname"] == "taylor"
        assert ws.receive_json()["type"] == "someoneSignedIn"


def test_junk_over_websocket(client):
    with client.websocket_connect("/api/ws") as ws:
        ws.send_text(json.dumps({"type": "HAHAHAHAHEYTHERE"}))
        reply = ws.receive_json()
        assert reply == {
            "type": "error",
            "data": {"message": "HAHAHAHAHEYTHERE is not a message type Scrummy is prepared for!"},
        }

        ws.send_text("definitely not json")
        assert ws.receive_json()["data"]["message"].startswith("Malformed message:")


def test_closing_a_socket_removes_its_user(client):
    with client.websocket_connect("/ws") as taylor:
        _send(taylor, "signIn", room="Avengers", nickname="Taylor")
        _receive_until(taylor, "someoneSignedIn")

        with client.websocket_connect("/ws") as tony:
            _send(tony, "signIn", room="Avengers", nickname="Tony Stark")
            _receive_until(tony, "someoneSignedIn")
            joined = _receive_until(taylor, "someoneSignedIn")
            assert [user["nickname"] for user in joined["data"]["users"]] == ["taylor", "tony stark"]

            _send(tony, "placeVote", room="avengers", nickname="tony stark", vote=8)
            _receive_until(taylor, "someoneVoted")

        gone = _receive_until(taylor, "clientDisconnect")
        assert gone["data"] == {
            "nickname": "tony stark",
            "users": [{"nickname": "taylor", "room": "avengers"}],
            "votes": {},
        }

        res = client.get("/api/rooms/Avengers/count")
        assert res.json() == {"room": "avengers", "count": 1}

    stats = client.get("/api/ws-stats").json()
    assert stats["activeRooms"] == 1
    assert stats["rooms"][0]["room"] == "avengers"
    assert stats["stats"]["connectSuccess"] == 2
