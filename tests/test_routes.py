"""
HTTP 라우트 테스트 - 인증, 응답 봉투, 오류 매핑 (가짜 게이트웨이 주입)
"""

import psycopg
import pytest
from httpx import ASGITransport, AsyncClient

from conftest import NOW, TEST_API_KEY, account_row, folder_row, note_row
from notes_gateway.resources.database.postgresql import ExecuteResult


class TestAuthentication:
    async def test_root_is_public(self, anonymous_client):
        response = await anonymous_client.get("/")

        assert response.status_code == 200
        assert response.json()["secured"] is True

    async def test_health_is_public(self, anonymous_client):
        response = await anonymous_client.get("/api/raw/health")
        assert response.status_code == 200
        assert response.json()["data"] == {"healthy": True}

    async def test_missing_key(self, anonymous_client):
        response = await anonymous_client.get("/api/notes")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["type"] == "missing_api_key"
        assert body["instance"] == "/api/notes"

    async def test_wrong_key(self, anonymous_client):
        response = await anonymous_client.get("/api/notes", headers={"X-API-Key": "nope"})
        assert response.status_code == 403
        assert response.json()["type"] == "invalid_api_key"

    async def test_bearer_token_accepted(self, anonymous_client):
        response = await anonymous_client.get("/api/raw/status", headers={"Authorization": "Bearer test-api-key"})
        assert response.status_code == 200

    async def test_preflight_passes(self, anonymous_client):
        response = await anonymous_client.options(
            "/api/notes",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
        )
        assert response.status_code == 200


class TestEnvelope:
    async def test_entity_in_camel_case(self, client, fake_db):
        fake_db.respond("fetchrow", "FROM notes WHERE id", note_row(folder_id="f1", pinned=1))

        response = await client.get("/api/notes/note-1", headers={"X-Request-ID": "req-1"})

        body = response.json()
        assert body["success"] is True
        assert body["meta"]["requestId"] == "req-1"
        assert body["data"]["folderId"] == "f1"
        assert body["data"]["pinned"] is True
        assert body["data"]["ownerId"] == "u1"

    async def test_not_found(self, client):
        response = await client.get("/api/accounts/missing")

        assert response.status_code == 404
        assert response.json()["type"] == "account_not_found"

    async def test_paginated_result(self, client, fake_db):
        fake_db.respond("fetch", "FROM folders", [folder_row()])
        fake_db.respond("fetchval", "COUNT(*)", 3)

        response = await client.get("/api/folders", params={"ownerId": "u1", "limit": 1})

        data = response.json()["data"]
        assert data["total"] == 3
        assert data["limit"] == 1
        assert data["data"][0]["name"] == "Work"


class TestErrorMapping:
    async def test_body_validation_is_400(self, client):
        response = await client.post("/api/notes", json={"title": "no owner"})

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "invalid_body"
        assert any("ownerId" in (error["pointer"] or "") for error in body["errors"])

    async def test_unknown_sort_column_is_400(self, client):
        response = await client.get("/api/notes", params={"orderBy": "password; --"})
        assert response.status_code == 400
        assert response.json()["type"] == "invalid_options"

    async def test_bad_sort_direction_is_400(self, client):
        response = await client.get("/api/accounts", params={"orderDirection": "sideways"})
        assert response.status_code == 400

    async def test_database_error_is_500(self, client, fake_db):
        fake_db.respond("fetchrow", "FROM accounts", psycopg.errors.UndefinedTable("accounts"))

        response = await client.get("/api/accounts/acc-1")

        assert response.status_code == 500
        assert response.json()["type"] == "db_failed"

    async def test_oversized_body_is_413(self, gateway, monkeypatch):
        from main import create_app

        monkeypatch.setenv("BODY_LIMIT", "64")
        app = create_app(gateway=gateway, migrate_on_startup=False)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.post(
                "/api/raw/query",
                json={"sql": "SELECT 1", "params": ["x" * 128]},
                headers={"X-API-Key": TEST_API_KEY},
            )

        assert response.status_code == 413
        assert response.json()["type"] == "payload_too_large"


class TestAccounts:
    async def test_create_returns_201(self, client, fake_db):
        fake_db.respond("fetchrow", "FROM accounts WHERE id", account_row())

        response = await client.post(
            "/api/accounts",
            json={"email": "alice@example.com", "passwordHash": "h", "displayName": "Alice"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["username"] == "alice_ab12"

    async def test_suspend_without_body(self, client, fake_db):
        response = await client.post("/api/accounts/acc-1/suspend")

        assert response.json()["data"] == {"success": True}
        _, args = fake_db.last("execute")
        assert None in args

    async def test_password_update_rejects_unknown_algorithm(self, client):
        response = await client.post("/api/accounts/acc-1/password", json={"hash": "h", "algorithm": "md5"})
        assert response.status_code == 400

    async def test_bulk_upsert_summary(self, client, fake_db):
        fake_db.respond("fetchrow", "SELECT * FROM accounts WHERE id", account_row(), repeat=True)

        response = await client.post("/api/accounts/bulk-upsert", json=[{"id": "a1"}, {"email": "no id"}])

        assert response.json()["data"] == {"synced": 1, "total": 2, "failed": 1}


class TestNotes:
    async def test_owner_listing_with_null_folder(self, client, fake_db):
        await client.get("/api/notes/owner/u1", params={"folderId": "null", "tags": ["a", "b"]})

        query, args = fake_db.last("fetch")
        assert "folder_id IS NULL" in query
        assert "(tags @> %s OR tags @> %s)" in query
        assert args[0] == "u1"

    async def test_owner_listing_without_folder_param(self, client, fake_db):
        await client.get("/api/notes/owner/u1")
        query, _ = fake_db.last("fetch")
        assert "folder_id" not in query

    async def test_trash_requires_owner(self, client):
        response = await client.post("/api/notes/note-1/trash", json={})
        assert response.status_code == 400

    async def test_trash_and_restore(self, client, fake_db):
        response = await client.post("/api/notes/note-1/trash", json={"ownerId": "u1"})
        assert response.json()["data"] == {"success": True}

        fake_db.respond("execute", "is_deleted = 1", ExecuteResult(0))
        response = await client.post("/api/notes/note-1/restore", json={"ownerId": "u1"})
        assert response.json()["data"] == {"success": False}

    async def test_permanent_delete_requires_owner_query(self, client):
        response = await client.delete("/api/notes/note-1/permanent")
        assert response.status_code == 400

    async def test_add_version_to_missing_note_is_404(self, client, fake_db):
        fake_db.respond("execute", "versions", ExecuteResult(0))

        response = await client.post(
            "/api/notes/missing/versions",
            json={"id": "v1", "title": "T", "content": "C", "savedAt": NOW.isoformat()},
        )

        assert response.status_code == 404
        assert response.json()["type"] == "note_not_found"

    async def test_view_counter(self, client, fake_db):
        response = await client.post("/api/notes/note-1/view")
        assert response.json()["data"] == {"success": True}
        assert fake_db.last("execute")[0].startswith("UPDATE notes SET views")

    async def test_update_folder_reference(self, client, fake_db):
        fake_db.respond("execute", "SET folder_id", ExecuteResult(2))

        response = await client.post("/api/notes/update-folder", json={"folderId": "f1", "ownerId": "u1"})

        assert response.json()["data"] == {"updated": 2}


class TestRaw:
    async def test_invalid_count_table(self, client):
        response = await client.get("/api/raw/count/pg_user")

        assert response.status_code == 400
        assert response.json()["type"] == "invalid_table"

    async def test_count(self, client, fake_db):
        fake_db.respond("fetchval", "FROM folders", 4)
        response = await client.get("/api/raw/count/folders")
        assert response.json()["data"] == {"count": 4}

    async def test_execute(self, client, fake_db):
        fake_db.respond("execute", "DELETE", ExecuteResult(3))

        response = await client.post("/api/raw/execute", json={"sql": "DELETE FROM notes WHERE owner_id = %s", "params": ["u1"]})

        assert response.json()["data"] == {"affectedRows": 3, "insertId": None}
        assert fake_db.last("execute")[1] == ("u1",)

    async def test_unhealthy_is_503(self, client, fake_db):
        fake_db.healthy = False
        response = await client.get("/api/raw/health")
        assert response.status_code == 503
        assert response.json()["type"] == "db_unavailable"

    async def test_migrate(self, client, fake_db):
        response = await client.post("/api/raw/migrate")
        assert response.status_code == 200
        assert fake_db.transaction_log == ["begin", "commit"]


@pytest.mark.parametrize("path", ["/api/folders/folder-1", "/api/notes/short/abc"])
async def test_lookup_not_found(client, path):
    response = await client.get(path)
    assert response.status_code == 404
