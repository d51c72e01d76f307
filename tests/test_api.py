import pytest


@pytest.fixture
def friends_ab(client, auth, alice, bob):
    assert client.post("/api/friends/add", json={"email": bob.email}, headers=auth(alice)).status_code == 200
    assert client.post("/api/friends/accept", json={"id": alice.id}, headers=auth(bob)).status_code == 200


def test_missing_or_bad_token_is_401(client, alice):
    assert client.get("/api/friends").status_code == 401
    assert client.get(f"/api/users/{alice.id}").status_code == 401
    res = client.get("/api/friends", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401
    assert res.headers["www-authenticate"] == "Bearer"


def test_friend_request_flow(client, auth, alice, bob):
    res = client.post("/api/friends/add", json={"email": bob.email}, headers=auth(alice))
    assert res.status_code == 200

    requests = client.get("/api/friends/requests", headers=auth(bob)).json()
    assert [r["id"] for r in requests] == [alice.id]

    assert client.post("/api/friends/add", json={"email": bob.email}, headers=auth(alice)).status_code == 409
    assert client.post("/api/friends/accept", json={"id": alice.id}, headers=auth(bob)).status_code == 200
    assert client.post("/api/friends/accept", json={"id": alice.id}, headers=auth(bob)).status_code == 409

    assert [f["email"] for f in client.get("/api/friends", headers=auth(alice)).json()] == [bob.email]
    assert client.get("/api/friends/ids", headers=auth(bob)).json() == [alice.id]


def test_friend_request_errors(client, auth, alice):
    assert client.post("/api/friends/add", json={"email": "ghost@example.com"}, headers=auth(alice)).status_code == 404
    assert client.post("/api/friends/add", json={"email": alice.email}, headers=auth(alice)).status_code == 400
    assert client.post("/api/friends/add", json={"email": "not-an-email"}, headers=auth(alice)).status_code == 422
    assert client.post("/api/friends/accept", json={"id": "ghost"}, headers=auth(alice)).status_code == 404
    assert client.post("/api/friends/deny", json={"id": "ghost"}, headers=auth(alice)).status_code == 200


def test_dm_conversation(client, auth, broker, alice, bob, friends_ab):
    res = client.post("/api/chat/dms/get-or-create", json={"friendId": bob.id}, headers=auth(alice))
    assert res.status_code == 200
    chat_id = res.json()["chatId"]
    again = client.post("/api/chat/dms/get-or-create", json={"friendId": alice.id}, headers=auth(bob)).json()
    assert again == {"chatId": chat_id, "created": False}

    sent = client.post(f"/api/chat/dms/{chat_id}/send", json={"text": "hey bob"}, headers=auth(alice))
    assert sent.status_code == 201
    message = sent.json()
    assert message["senderId"] == alice.id
    assert broker.named("incoming_message")[-1] == (f"chat__{chat_id}", "incoming_message", message)

    page = client.post(f"/api/chat/dms/{chat_id}/messages", json={"startPos": 0, "endPos": -1}, headers=auth(bob))
    assert page.json() == [message]

    meta = client.get(f"/api/chat/dms/{chat_id}", headers=auth(bob)).json()
    assert meta["type"] == "dms"
    assert sorted(meta["members"]) == sorted([alice.id, bob.id])
    assert meta["lastMessage"]["text"] == "hey bob"
    assert meta["lastMessage"]["sender"]["id"] == alice.id

    dms = client.get("/api/chat/dms/list", headers=auth(bob)).json()
    assert dms[0]["chatId"] == chat_id
    assert dms[0]["friend"]["id"] == alice.id


def test_dm_with_stranger_and_outsider(client, auth, alice, bob, carol, friends_ab):
    assert client.post("/api/chat/dms/get-or-create", json={"friendId": carol.id}, headers=auth(alice)).status_code == 401

    chat_id = client.post("/api/chat/dms/get-or-create", json={"friendId": bob.id}, headers=auth(alice)).json()["chatId"]
    assert client.get(f"/api/chat/dms/{chat_id}", headers=auth(carol)).status_code == 401
    assert client.post(f"/api/chat/dms/{chat_id}/send", json={"text": "hi"}, headers=auth(carol)).status_code == 401
    res = client.post(f"/api/chat/dms/{chat_id}/messages", json={"startPos": 0, "endPos": -1}, headers=auth(carol))
    assert res.status_code == 401


def test_payload_validation(client, auth, alice, bob, friends_ab):
    chat_id = client.post("/api/chat/dms/get-or-create", json={"friendId": bob.id}, headers=auth(alice)).json()["chatId"]
    assert client.post(f"/api/chat/dms/{chat_id}/send", json={"text": ""}, headers=auth(alice)).status_code == 422
    assert client.post(f"/api/chat/dms/{chat_id}/messages", json={"startPos": 0}, headers=auth(alice)).status_code == 422
    assert client.post("/api/chat/dms/get-or-create", json={}, headers=auth(alice)).status_code == 422


def test_group_lifecycle(client, auth, alice, bob, carol, dave):
    too_small = client.post("/api/chat/group/create", json={"name": "x", "members": [bob.id]}, headers=auth(alice))
    assert too_small.status_code == 400

    res = client.post("/api/chat/group/create", json={"name": "Club", "members": [bob.id, carol.id]}, headers=auth(alice))
    assert res.status_code == 200
    chat_id = res.json()["chatId"]

    assert client.get(f"/api/chat/dms/{chat_id}", headers=auth(alice)).status_code == 409
    assert client.get(f"/api/chat/group/{chat_id}", headers=auth(bob)).json()["name"] == "Club"

    added = client.post(f"/api/chat/group/{chat_id}/add-member", json={"userId": dave.id}, headers=auth(bob))
    assert added.status_code == 200
    assert added.json()["user"]["id"] == dave.id
    dup = client.post(f"/api/chat/group/{chat_id}/add-member", json={"userId": dave.id}, headers=auth(bob))
    assert dup.status_code == 409

    members = client.post(f"/api/chat/group/{chat_id}/members", headers=auth(dave)).json()
    assert {m["id"] for m in members} == {alice.id, bob.id, carol.id, dave.id}

    denied = client.post(f"/api/chat/group/{chat_id}/remove-member", json={"userId": dave.id}, headers=auth(bob))
    assert denied.status_code == 403
    removed = client.post(f"/api/chat/group/{chat_id}/remove-member", json={"userId": dave.id}, headers=auth(alice))
    assert removed.status_code == 200

    renamed = client.patch(f"/api/chat/group/{chat_id}/update-meta", json={"name": " Book Club "}, headers=auth(alice))
    assert renamed.json()["name"] == "Book Club"
    assert client.patch(f"/api/chat/group/{chat_id}/update-meta", json={"name": " "}, headers=auth(alice)).status_code == 422

    sent = client.post(f"/api/chat/group/{chat_id}/send", json={"text": "welcome"}, headers=auth(carol))
    assert sent.status_code == 201
    page = client.post(f"/api/chat/group/{chat_id}/messages", json={"startPos": 0, "endPos": 0}, headers=auth(alice))
    assert [m["text"] for m in page.json()] == ["welcome"]

    listed = client.get("/api/chat/group/list", headers=auth(alice)).json()
    assert listed[0]["chatId"] == chat_id

    assert client.post(f"/api/chat/group/{chat_id}/leave", headers=auth(dave)).status_code == 403
    for user in (bob, carol):
        assert client.post(f"/api/chat/group/{chat_id}/leave", headers=auth(user)).json()["deleted"] is False
    last = client.post(f"/api/chat/group/{chat_id}/leave", headers=auth(alice)).json()
    assert last == {"chatId": chat_id, "left": True, "deleted": True}
    assert client.get(f"/api/chat/group/{chat_id}", headers=auth(alice)).status_code == 404


def test_users_and_token_validation(client, auth, alice):
    assert client.get(f"/api/users/{alice.id}", headers=auth(alice)).json()["name"] == "Alice"
    assert client.get("/api/users/ghost", headers=auth(alice)).status_code == 404
    assert client.get("/api/users/me", headers=auth(alice)).json()["id"] == alice.id

    assert client.get("/api/auth/validate", headers=auth(alice)).json() == {"valid": True, "message": None}
    assert client.get("/api/auth/validate").status_code == 401


def test_validate_token_for_deleted_user(client, auth, store, alice):
    store.delete(f"user:{alice.id}")
    res = client.get("/api/auth/validate", headers=auth(alice))
    assert res.status_code == 404
    assert res.json()["valid"] is False


def test_store_failure_maps_to_500(client, auth, alice, redis_client, monkeypatch):
    import redis

    def broken(*args, **kwargs):
        raise redis.ConnectionError("down")

    monkeypatch.setattr(redis_client, "smembers", broken)
    res = client.get("/api/friends", headers=auth(alice))
    assert res.status_code == 500
    assert res.json() == {"detail": "Storage backend failure"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "store": True}
