"""
Tests for /api/chat: session CRUD, naming, history and the SSE relay.
"""

import json

from levelup.models.chat import ChatMessage, ChatSession


def _frames(body: str):
    return [line[len("data: "):] for line in body.split("\n") if line.startswith("data: ")]


def _create(client, headers, session_id="session-1700000000000-abc123xyz"):
    resp = client.post("/api/chat/session", json={"sessionId": session_id}, headers=headers)
    assert resp.status_code == 200
    return resp.json()


class TestSessions:
    """Session create/list/rename/delete"""

    def test_requires_auth(self, client):
        assert client.get("/api/chat/sessions").status_code == 401

    def test_create_echoes_client_id(self, client, auth_headers):
        data = _create(client, auth_headers)
        assert data["sessionId"] == "session-1700000000000-abc123xyz"
        assert data["id"] == data["sessionId"]
        assert data["name"] == "New Chat"

    def test_create_is_idempotent_for_same_user(self, client, auth_headers):
        _create(client, auth_headers)
        _create(client, auth_headers)
        sessions = client.get("/api/chat/sessions", headers=auth_headers).json()
        assert len(sessions) == 1

    def test_transient_or_invalid_ids_get_server_id(self, client, auth_headers):
        a = _create(client, auth_headers, "temp-session-1-abc")
        b = _create(client, auth_headers, "not a valid id!")
        assert not a["sessionId"].startswith("temp-")
        assert b["sessionId"] != "not a valid id!"

    def test_foreign_id_is_not_reused(self, client, auth_headers, admin_headers):
        mine = _create(client, auth_headers)
        theirs = _create(client, admin_headers, mine["sessionId"])
        assert theirs["sessionId"] != mine["sessionId"]

    def test_list_is_scoped_and_ordered(self, client, auth_headers, admin_headers, db):
        _create(client, auth_headers, "session-1-aaa")
        _create(client, auth_headers, "session-2-bbb")
        _create(client, admin_headers, "session-3-ccc")
        # touch the older one so it sorts first
        client.post(
            "/api/chat/stream",
            json={"message": "hi", "sessionId": "session-1-aaa"},
            headers=auth_headers,
        )
        ids = [s["id"] for s in client.get("/api/chat/sessions", headers=auth_headers).json()]
        assert ids == ["session-1-aaa", "session-2-bbb"]

    def test_rename(self, client, auth_headers):
        sid = _create(client, auth_headers)["sessionId"]
        resp = client.patch(f"/api/chat/session/{sid}", json={"name": "  Hiring plan "}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["name"] == "Hiring plan"

    def test_rename_blank_rejected(self, client, auth_headers):
        sid = _create(client, auth_headers)["sessionId"]
        resp = client.patch(f"/api/chat/session/{sid}", json={"name": "   "}, headers=auth_headers)
        assert resp.status_code == 400

    def test_delete_cascades_messages(self, client, auth_headers, db):
        sid = _create(client, auth_headers)["sessionId"]
        client.post("/api/chat/stream", json={"message": "hi", "sessionId": sid}, headers=auth_headers)
        resp = client.delete(f"/api/chat/session/{sid}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        db.expire_all()
        assert db.get(ChatSession, sid) is None
        assert db.query(ChatMessage).filter(ChatMessage.session_id == sid).count() == 0

    def test_delete_other_users_session_404(self, client, auth_headers, admin_headers):
        sid = _create(client, auth_headers)["sessionId"]
        assert client.delete(f"/api/chat/session/{sid}", headers=admin_headers).status_code == 404


class TestStream:
    """POST /api/chat/stream"""

    def test_frames_and_persistence(self, client, auth_headers, fake_llm):
        sid = _create(client, auth_headers)["sessionId"]
        resp = client.post(
            "/api/chat/stream",
            json={"message": "How do I delegate?", "sessionId": sid},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        frames = _frames(resp.text)
        assert frames[-1] == "[DONE]"
        assert [json.loads(f)["content"] for f in frames[:-1]] == ["Del", "ega", "te by..."]

        history = client.get(f"/api/chat/history/{sid}", headers=auth_headers).json()
        assert [(m["role"], m["content"]) for m in history] == [
            ("user", "How do I delegate?"),
            ("assistant", "Delegate by..."),
        ]
        assert fake_llm.calls[-1]["system_prompt"]

    def test_summary_set_from_first_message(self, client, auth_headers):
        sid = _create(client, auth_headers)["sessionId"]
        client.post("/api/chat/stream", json={"message": "First question", "sessionId": sid}, headers=auth_headers)
        client.post("/api/chat/stream", json={"message": "Second", "sessionId": sid}, headers=auth_headers)
        sessions = client.get("/api/chat/sessions", headers=auth_headers).json()
        assert sessions[0]["summary"] == "First question"

    def test_llm_failure_sends_error_frame_without_done(self, client, auth_headers, fake_llm):
        sid = _create(client, auth_headers)["sessionId"]
        fake_llm.fail_after = 1
        resp = client.post("/api/chat/stream", json={"message": "hi", "sessionId": sid}, headers=auth_headers)
        frames = _frames(resp.text)
        assert json.loads(frames[0]) == {"content": "Del"}
        assert json.loads(frames[-1]) == {"error": "Failed to get response"}
        assert "[DONE]" not in frames
        history = client.get(f"/api/chat/history/{sid}", headers=auth_headers).json()
        assert [m["role"] for m in history] == ["user"]

    def test_unknown_session_404(self, client, auth_headers):
        resp = client.post("/api/chat/stream", json={"message": "hi", "sessionId": "nope"}, headers=auth_headers)
        assert resp.status_code == 404

    def test_blank_message_rejected(self, client, auth_headers):
        sid = _create(client, auth_headers)["sessionId"]
        resp = client.post("/api/chat/stream", json={"message": "", "sessionId": sid}, headers=auth_headers)
        assert resp.status_code == 422


class TestHistoryAndNaming:
    def test_history_timestamps_are_utc(self, client, auth_headers):
        sid = _create(client, auth_headers)["sessionId"]
        client.post("/api/chat/stream", json={"message": "hi", "sessionId": sid}, headers=auth_headers)
        history = client.get(f"/api/chat/history/{sid}", headers=auth_headers).json()
        assert history[0]["timestamp"].endswith(("Z", "+00:00"))

    def test_generate_name_from_transcript(self, client, auth_headers, fake_llm):
        sid = _create(client, auth_headers)["sessionId"]
        fake_llm.reply = '"Delegating Effectively."'
        resp = client.post(
            f"/api/chat/session/{sid}/generate-name",
            json={"messages": [{"role": "user", "content": "How do I delegate?", "timestamp": "x"}]},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json() == {"name": "Delegating Effectively"}
        sessions = client.get("/api/chat/sessions", headers=auth_headers).json()
        assert sessions[0]["name"] == "Delegating Effectively"

    def test_generate_name_without_user_message(self, client, auth_headers, fake_llm):
        sid = _create(client, auth_headers)["sessionId"]
        resp = client.post(f"/api/chat/session/{sid}/generate-name", json={"messages": []}, headers=auth_headers)
        assert resp.json() == {"name": "New Chat"}
        assert fake_llm.calls == []

    def test_generate_name_llm_failure(self, client, auth_headers, fake_llm):
        sid = _create(client, auth_headers)["sessionId"]
        fake_llm.fail = True
        resp = client.post(
            f"/api/chat/session/{sid}/generate-name",
            json={"messages": [{"role": "user", "content": "hello"}]},
            headers=auth_headers,
        )
        assert resp.status_code == 500

    def test_non_streaming_reply(self, client, auth_headers, fake_llm):
        sid = _create(client, auth_headers)["sessionId"]
        resp = client.post("/api/chat", json={"message": "hi", "sessionId": sid}, headers=auth_headers)
        assert resp.json() == {"response": fake_llm.reply}
