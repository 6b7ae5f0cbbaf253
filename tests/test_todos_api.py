"""
/todos 接口测试
"""

from datetime import datetime, timezone

from bson import ObjectId

from app.db.client import TODOS


# ── POST /todos ──

async def test_create_todo(client, db):
    text = "New test todo"
    resp = await client.post("/todos", json={"text": text})

    assert resp.status_code == 200
    body = resp.json()
    assert body["text"] == text
    assert body["completed"] is False
    assert body["completedAt"] is None
    assert ObjectId.is_valid(body["_id"])

    docs = await db[TODOS].find({"text": text}).to_list(length=None)
    assert len(docs) == 1
    assert docs[0]["text"] == text


async def test_create_todo_trims_text(client):
    resp = await client.post("/todos", json={"text": "  Buy milk  "})

    assert resp.status_code == 200
    assert resp.json()["text"] == "Buy milk"


async def test_create_todo_with_invalid_body(client, db):
    resp = await client.post("/todos", json={})

    assert resp.status_code == 400
    body = resp.json()
    assert body["name"] == "ValidationError"
    assert body["message"] == "Todo validation failed"
    assert body["errors"]["text"]["name"] == "ValidatorError"
    assert await db[TODOS].count_documents({}) == 2


async def test_create_todo_whitespace_only_text(client, db):
    resp = await client.post("/todos", json={"text": "   "})

    assert resp.status_code == 400
    assert resp.json()["name"] == "ValidationError"
    assert await db[TODOS].count_documents({}) == 2


async def test_create_todo_malformed_json_is_validation_error(client):
    resp = await client.post("/todos", content=b"{not json", headers={"content-type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["name"] == "ValidationError"


async def test_create_todo_records_creator_when_authenticated(client, users):
    resp = await client.post(
        "/todos",
        json={"text": "Owned todo"},
        headers={"x-auth": users[0]["tokens"][0]["token"]},
    )

    assert resp.status_code == 200
    assert resp.json()["creator"] == str(users[0]["_id"])


async def test_create_todo_with_bad_token_is_unauthorized(client, db):
    resp = await client.post("/todos", json={"text": "Owned todo"}, headers={"x-auth": "garbage"})

    assert resp.status_code == 401
    assert await db[TODOS].count_documents({}) == 2


# ── GET /todos ──

async def test_list_todos(client):
    resp = await client.get("/todos")

    assert resp.status_code == 200
    assert len(resp.json()["todos"]) == 2


# ── GET /todos/{id} ──

async def test_get_todo(client, todos):
    resp = await client.get(f"/todos/{todos[0]['_id']}")

    assert resp.status_code == 200
    assert resp.json()["todo"]["text"] == todos[0]["text"]


async def test_get_todo_not_found(client):
    resp = await client.get(f"/todos/{ObjectId()}")

    assert resp.status_code == 404
    assert resp.content == b""


async def test_get_todo_invalid_id(client):
    resp = await client.get("/todos/123abc")

    assert resp.status_code == 404


# ── DELETE /todos/{id} ──

async def test_delete_todo(client, db, todos):
    hex_id = str(todos[1]["_id"])
    resp = await client.delete(f"/todos/{hex_id}")

    assert resp.status_code == 200
    assert resp.json()["todo"]["text"] == todos[1]["text"]
    assert await db[TODOS].find_one({"_id": todos[1]["_id"]}) is None

    again = await client.get(f"/todos/{hex_id}")
    assert again.status_code == 404


async def test_delete_todo_not_found(client):
    resp = await client.delete(f"/todos/{ObjectId()}")

    assert resp.status_code == 404


async def test_delete_todo_invalid_id(client):
    resp = await client.delete("/todos/123abc")

    assert resp.status_code == 404


# ── PATCH /todos/{id} ──

async def test_update_todo_complete(client, todos):
    text = "First test todo is now complete"
    resp = await client.patch(f"/todos/{todos[0]['_id']}", json={"text": text, "completed": True})

    assert resp.status_code == 200
    todo = resp.json()["todo"]
    assert todo["text"] == text
    assert todo["completed"] is True
    assert isinstance(todo["completedAt"], int)


async def test_update_todo_clears_completed_at(client, todos):
    text = "Second test todo is now incomplete"
    resp = await client.patch(f"/todos/{todos[1]['_id']}", json={"text": text, "completed": False})

    assert resp.status_code == 200
    todo = resp.json()["todo"]
    assert todo["text"] == text
    assert todo["completed"] is False
    assert todo["completedAt"] is None


async def test_update_todo_without_completed_marks_incomplete(client, todos):
    resp = await client.patch(f"/todos/{todos[1]['_id']}", json={"text": "Renamed"})

    todo = resp.json()["todo"]
    assert todo["text"] == "Renamed"
    assert todo["completed"] is False
    assert todo["completedAt"] is None


async def test_update_todo_ignores_unknown_fields(client, db, todos):
    resp = await client.patch(
        f"/todos/{todos[0]['_id']}",
        json={"completed": True, "completedAt": 1, "creator": "someone"},
    )

    assert resp.status_code == 200
    doc = await db[TODOS].find_one({"_id": todos[0]["_id"]})
    assert doc["completedAt"] != 1
    assert doc["creator"] == todos[0]["creator"]


async def test_update_todo_rejects_empty_text(client, todos):
    resp = await client.patch(f"/todos/{todos[0]['_id']}", json={"text": "  "})

    assert resp.status_code == 400
    assert resp.json()["errors"]["text"]["kind"] == "required"


async def test_update_todo_not_found(client):
    resp = await client.patch(f"/todos/{ObjectId()}", json={"completed": True})

    assert resp.status_code == 404


async def test_update_todo_invalid_id(client):
    resp = await client.patch("/todos/123abc", json={"text": "abc", "completed": True})

    assert resp.status_code == 404


async def test_completed_round_trip(client):
    created = (await client.post("/todos", json={"text": "Buy milk"})).json()
    todo_url = f"/todos/{created['_id']}"

    fetched = await client.get(todo_url)
    assert fetched.json()["todo"]["text"] == "Buy milk"

    await client.patch(todo_url, json={"completed": True})
    assert isinstance((await client.get(todo_url)).json()["todo"]["completedAt"], int)

    await client.patch(todo_url, json={"completed": False})
    assert (await client.get(todo_url)).json()["todo"]["completedAt"] is None


async def test_repeated_complete_keeps_completed_at(client, db):
    created = (await client.post("/todos", json={"text": "Buy milk"})).json()
    todo_url = f"/todos/{created['_id']}"

    first = (await client.patch(todo_url, json={"completed": True})).json()["todo"]
    # 把时间戳改到很久以前，再次完成时如果被重写就一定会变
    await db[TODOS].update_one({"_id": ObjectId(created["_id"])}, {"$set": {"completedAt": 1000}})
    second = (await client.patch(todo_url, json={"completed": True, "text": "Buy oat milk"})).json()["todo"]

    assert isinstance(first["completedAt"], int)
    assert second["completed"] is True
    assert second["completedAt"] == 1000
    assert second["text"] == "Buy oat milk"


async def test_complete_on_already_completed_seed_keeps_timestamp(client, todos):
    resp = await client.patch(f"/todos/{todos[1]['_id']}", json={"completed": True})

    assert resp.json()["todo"]["completedAt"] == 333


async def test_completed_at_stored_as_float_or_date_is_rendered_as_int(client, db, todos):
    await db[TODOS].update_one({"_id": todos[1]["_id"]}, {"$set": {"completedAt": 1500.7}})
    as_float = await client.get(f"/todos/{todos[1]['_id']}")

    assert as_float.status_code == 200
    assert as_float.json()["todo"]["completedAt"] == 1500

    stamped = datetime(2024, 1, 1, tzinfo=timezone.utc)
    await db[TODOS].update_one({"_id": todos[1]["_id"]}, {"$set": {"completedAt": stamped}})
    as_date = await client.get(f"/todos/{todos[1]['_id']}")

    assert as_date.status_code == 200
    assert as_date.json()["todo"]["completedAt"] == int(stamped.timestamp() * 1000)
