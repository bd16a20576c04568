import pytest


@pytest.mark.asyncio
async def test_health(client):
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_register_login_and_me(client, signup):
    headers = await signup("Alice")

    res = await client.get("/auth/me", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "Alice"
    assert body["email"] == "alice@example.com"
    assert "hashed_password" not in body


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email_and_short_password(client, signup):
    await signup("Alice")

    res = await client.post(
        "/auth/register",
        json={"name": "Alice Again", "email": "ALICE@example.com", "password": "password123"},
    )
    assert res.status_code == 400

    res = await client.post(
        "/auth/register",
        json={"name": "Bob", "email": "bob@example.com", "password": "short"},
    )
    assert res.status_code == 422

    res = await client.post(
        "/auth/register",
        json={"name": "   ", "email": "carol@example.com", "password": "password123"},
    )
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, signup):
    await signup("Alice")

    res = await client.post("/auth/login", data={"username": "alice@example.com", "password": "wrong-password"})
    assert res.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer not-a-token"}])
async def test_operations_require_authentication(client, headers):
    res = await client.get("/chat-codes", headers=headers)

    assert res.status_code == 401
    assert res.json()["code"] == "unauthenticated"
    assert res.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_generate_list_and_lookup_code(client, signup):
    alice = await signup("Alice")
    bob = await signup("Bob")
    me = (await client.get("/auth/me", headers=alice)).json()

    res = await client.post("/chat-codes", json={"is_one_time": True, "validity_hours": 24}, headers=alice)
    assert res.status_code == 201
    chat_code = res.json()
    assert len(chat_code["code"]) == 8 and chat_code["code"].isdigit()
    assert chat_code["owner_id"] == me["id"]
    assert chat_code["is_one_time"] is True
    assert chat_code["expires_at"] is not None

    res = await client.post("/chat-codes", json={"is_one_time": False, "validity_hours": 0}, headers=alice)
    assert res.json()["expires_at"] is None

    res = await client.get("/chat-codes", headers=alice)
    assert [c["code"] for c in res.json()][-1] == chat_code["code"]
    assert len(res.json()) == 2

    res = await client.get(f"/chat-codes/lookup/{chat_code['code']}", headers=bob)
    assert res.status_code == 200
    assert res.json() == {"code": chat_code["code"], "owner_id": me["id"]}


@pytest.mark.asyncio
async def test_generate_code_rejects_negative_validity(client, signup):
    alice = await signup("Alice")

    res = await client.post("/chat-codes", json={"is_one_time": True, "validity_hours": -5}, headers=alice)

    assert res.status_code == 422
    assert res.json()["code"] == "invalid_validity"
    assert (await client.get("/chat-codes", headers=alice)).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"is_one_time": False, "validity_hours": True},
    {"is_one_time": False, "validity_hours": "24"},
    {"is_one_time": False},
    {"validity_hours": 24},
])
async def test_generate_code_rejects_malformed_body(client, signup, payload):
    alice = await signup("Alice")

    res = await client.post("/chat-codes", json=payload, headers=alice)

    assert res.status_code == 422
    assert (await client.get("/chat-codes", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_lookup_errors(client, signup):
    alice = await signup("Alice")

    res = await client.get("/chat-codes/lookup/1234", headers=alice)
    assert res.status_code == 422
    assert res.json()["code"] == "invalid_format"

    res = await client.get("/chat-codes/lookup/99999999", headers=alice)
    assert res.status_code == 404
    assert res.json()["code"] == "code_not_found"


@pytest.mark.asyncio
async def test_retire_code(client, signup):
    alice = await signup("Alice")
    bob = await signup("Bob")
    chat_code = (await client.post("/chat-codes", json={"is_one_time": False, "validity_hours": 0}, headers=alice)).json()

    res = await client.delete(f"/chat-codes/{chat_code['id']}", headers=bob)
    assert res.status_code == 403
    assert res.json()["code"] == "unauthorized"

    res = await client.delete(f"/chat-codes/{chat_code['id']}", headers=alice)
    assert res.status_code == 200
    assert res.json()["deleted_at"] is not None

    res = await client.delete(f"/chat-codes/{chat_code['id']}", headers=alice)
    assert res.status_code == 200

    res = await client.get(f"/chat-codes/lookup/{chat_code['code']}", headers=bob)
    assert res.status_code == 404
    assert (await client.get("/chat-codes", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_request_flow_accept(client, signup):
    alice = await signup("Alice")
    bob = await signup("Bob")
    carol = await signup("Carol")
    code = (await client.post("/chat-codes", json={"is_one_time": True, "validity_hours": 24}, headers=alice)).json()["code"]

    res = await client.get(f"/chat-requests/by-code/{code}", headers=bob)
    assert res.json() == {"request_id": None}

    res = await client.post("/chat-requests", json={"code": code}, headers=bob)
    assert res.status_code == 201
    request = res.json()
    assert request["status"] == "pending"

    res = await client.get(f"/chat-requests/by-code/{code}", headers=bob)
    assert res.json() == {"request_id": request["id"]}

    res = await client.post("/chat-requests", json={"code": code}, headers=bob)
    assert res.status_code == 409
    assert res.json()["code"] == "duplicate_request"

    res = await client.post("/chat-requests", json={"code": code}, headers=alice)
    assert res.status_code == 400
    assert res.json()["code"] == "self_request"

    incoming = (await client.get("/chat-requests/incoming", headers=alice)).json()
    assert [r["id"] for r in incoming] == [request["id"]]
    outgoing = (await client.get("/chat-requests/outgoing", headers=bob)).json()
    assert [r["id"] for r in outgoing] == [request["id"]]

    res = await client.post(f"/chat-requests/{request['id']}/resolve", json={"action": "accept"}, headers=bob)
    assert res.status_code == 403

    res = await client.post(f"/chat-requests/{request['id']}/resolve", json={"action": "accept"}, headers=alice)
    assert res.status_code == 200
    assert res.json()["status"] == "accepted"

    res = await client.post(f"/chat-requests/{request['id']}/resolve", json={"action": "decline"}, headers=alice)
    assert res.status_code == 409
    assert res.json()["code"] == "already_resolved"

    outgoing = (await client.get("/chat-requests/outgoing", headers=bob)).json()
    assert [r["status"] for r in outgoing] == ["accepted"]

    # The one-time code is spent.
    res = await client.post("/chat-requests", json={"code": code}, headers=carol)
    assert res.status_code == 404
    assert res.json()["code"] == "code_not_found"


@pytest.mark.asyncio
async def test_request_flow_decline(client, signup):
    alice = await signup("Alice")
    bob = await signup("Bob")
    code = (await client.post("/chat-codes", json={"is_one_time": False, "validity_hours": 0}, headers=alice)).json()["code"]
    request = (await client.post("/chat-requests", json={"code": code}, headers=bob)).json()

    res = await client.post(f"/chat-requests/{request['id']}/resolve", json={"action": "decline"}, headers=alice)
    assert res.status_code == 200
    assert res.json()["status"] == "declined"
    assert res.json()["deleted_at"] is not None

    assert (await client.get("/chat-requests/incoming", headers=alice)).json() == []
    assert (await client.get("/chat-requests/outgoing", headers=bob)).json() == []


@pytest.mark.asyncio
async def test_request_rejects_malformed_code_and_unknown_action(client, signup):
    alice = await signup("Alice")

    res = await client.post("/chat-requests", json={"code": "12345"}, headers=alice)
    assert res.status_code == 422
    assert res.json()["code"] == "invalid_format"

    res = await client.post("/chat-requests/1/resolve", json={"action": "maybe"}, headers=alice)
    assert res.status_code == 422
