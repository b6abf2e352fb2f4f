"""
AccountRepository 테스트 (기록용 가짜 DB)
"""

import re

import pytest

from conftest import NOW, account_row
from notes_gateway.resources.database.postgresql import ExecuteResult
from notes_gateway.schemas.models import AccountCreate, AccountQueryOptions, AccountRole, AccountUpdate
from notes_gateway.schemas.repositories import AccountRepository
from notes_gateway.schemas.repositories.account_repository import generate_username


def inserted_values(fake_db):
    query, args = fake_db.last("execute")
    assert query.startswith("INSERT INTO accounts")
    columns = re.search(r"\(([^)]*)\) VALUES", query).group(1).split(", ")
    return dict(zip(columns, args))


@pytest.fixture
def repo(fake_db):
    return AccountRepository(fake_db)


def test_generate_username_strips_symbols():
    assert re.fullmatch(r"alicesmithtag_[a-z0-9]{4}", generate_username("Alice.Smith+tag@example.com"))


class TestCreate:
    async def test_generates_username_and_stamps_activity(self, repo, fake_db):
        fake_db.respond("fetchrow", "FROM accounts WHERE id", account_row())
        dto = AccountCreate(email="bob@example.com", password_hash="h", display_name="Bob")

        account = await repo.create(dto)

        values = inserted_values(fake_db)
        assert re.fullmatch(r"bob_[a-z0-9]{4}", values["username"])
        assert values["role"] == "user"
        assert values["suspended"] == 0
        assert values["created_at"] == values["last_login_at"] == values["last_seen_at"] == values["notes_updated_at"]
        assert account.id == "acc-1"

    async def test_reads_back_after_insert(self, repo, fake_db):
        fake_db.respond("fetchrow", "FROM accounts WHERE id", account_row(username="given"))
        dto = AccountCreate(email="bob@example.com", password_hash="h", display_name="Bob", username="given")

        await repo.create(dto)

        assert [m for m, _, _ in fake_db.calls] == ["execute", "fetchrow"]
        assert inserted_values(fake_db)["username"] == "given"


class TestUpdate:
    async def test_empty_update_only_reads(self, repo, fake_db):
        fake_db.respond("fetchrow", "SELECT * FROM accounts WHERE id", account_row())

        account = await repo.update("acc-1", AccountUpdate())

        assert account is not None
        assert not any("UPDATE" in q for q in fake_db.queries())

    async def test_missing_account_returns_none(self, repo, fake_db):
        assert await repo.update("missing", AccountUpdate(display_name="X")) is None

    async def test_only_supplied_fields_and_updated_at(self, repo, fake_db):
        fake_db.respond("fetchrow", "UPDATE accounts", account_row(display_name="X"))

        await repo.update("acc-1", AccountUpdate(display_name="X"))

        query, args = fake_db.last("fetchrow")
        assert query.startswith("UPDATE accounts SET display_name = %s, updated_at = %s WHERE id = %s")
        assert args[0] == "X"
        assert args[-1] == "acc-1"

    async def test_unsuspend_clears_reason_and_timestamp(self, repo, fake_db):
        fake_db.respond("fetchrow", "UPDATE accounts", account_row())

        await repo.update("acc-1", AccountUpdate(suspended=False, suspended_reason="ignored"))

        query, args = fake_db.last("fetchrow")
        assert "suspended = %s" in query
        assert "suspended_at = NULL" in query
        assert "suspended_reason = NULL" in query
        assert "ignored" not in args

    async def test_suspend_sets_timestamp(self, repo, fake_db):
        fake_db.respond("fetchrow", "UPDATE accounts", account_row(suspended=1))

        await repo.update("acc-1", AccountUpdate(suspended=True, suspended_reason="spam"))

        query, args = fake_db.last("fetchrow")
        assert "suspended_at = COALESCE(suspended_at, %s)" in query
        assert "suspended_reason = %s" in query
        assert 1 in args and "spam" in args

    async def test_resuspend_keeps_first_suspension_time(self, repo, fake_db):
        await repo.update("acc-1", {"suspended": True})

        query, _ = fake_db.last("fetchrow")
        assert "suspended_at = COALESCE(suspended_at, %s)" in query

    async def test_explicit_suspension_time_is_written(self, repo, fake_db):
        await repo.update("acc-1", {"suspended": True, "suspended_at": NOW})

        query, args = fake_db.last("fetchrow")
        assert "suspended_at = %s" in query
        assert "COALESCE" not in query
        assert NOW in args

    async def test_reason_alone_applies_only_while_suspended(self, repo, fake_db):
        await repo.update("acc-1", AccountUpdate(suspended_reason="late"))

        query, _ = fake_db.last("fetchrow")
        assert "suspended_reason = CASE WHEN suspended = 1 THEN %s ELSE NULL END" in query


class TestQueries:
    async def test_filter_applies_role_then_search(self, repo, fake_db):
        fake_db.respond("fetch", "FROM accounts", [account_row()])
        fake_db.respond("fetchval", "COUNT(*)", 7)

        result = await repo.find_with_filter(AccountQueryOptions(role=AccountRole.admin, search="ali", limit=5))

        page_query, page_args = fake_db.last("fetch")
        count_query, count_args = fake_db.last("fetchval")
        where = "WHERE role = %s AND (username ILIKE %s OR email ILIKE %s OR display_name ILIKE %s)"
        assert where in page_query and where in count_query
        assert count_args == ("admin", "%ali%", "%ali%", "%ali%")
        assert page_args == count_args + (5, 0)
        assert result.total == 7
        assert result.limit == 5 and result.offset == 0

    async def test_has_admin_account(self, repo, fake_db):
        fake_db.respond("fetchrow", "role = %s", {"found": 1})
        assert await repo.has_admin_account() is True
        assert await repo.has_admin_account() is False

    async def test_count_with_camel_case_filter(self, repo, fake_db):
        fake_db.respond("fetchval", "COUNT(*)", 2)

        assert await repo.count({"displayName": "Alice", "suspended": True}) == 2

        query, args = fake_db.last("fetchval")
        assert query == "SELECT COUNT(*) AS total FROM accounts WHERE display_name = %s AND suspended = %s"
        assert args == ("Alice", 1)

    async def test_count_rejects_unknown_column(self, repo):
        with pytest.raises(ValueError):
            await repo.count({"1=1 OR role": "x"})

    async def test_find_all_has_no_deleted_filter(self, repo, fake_db):
        await repo.find_all()
        page_query, _ = fake_db.last("fetch")
        assert "is_deleted" not in page_query
        assert "ORDER BY created_at DESC" in page_query


class TestActivity:
    async def test_last_login_touches_login_and_seen(self, repo, fake_db):
        assert await repo.update_last_login("acc-1") is True
        query, args = fake_db.last("execute")
        assert query == "UPDATE accounts SET last_login_at = %s, last_seen_at = %s WHERE id = %s"
        assert args[0] == args[1]

    async def test_password_hash_validates_algorithm(self, repo):
        with pytest.raises(ValueError):
            await repo.update_password_hash("acc-1", "h", "md5")

    async def test_suspend_and_unsuspend(self, repo, fake_db):
        await repo.suspend("acc-1", "abuse")
        query, args = fake_db.last("execute")
        assert "suspended = 1" in query and "abuse" in args

        fake_db.respond("execute", "suspended = 0", ExecuteResult(0))
        assert await repo.unsuspend("missing") is False


class TestUpsert:
    async def test_existing_account_is_updated(self, repo, fake_db):
        fake_db.respond("fetchrow", "SELECT id FROM accounts", {"id": "acc-1"})
        fake_db.respond("fetchrow", "UPDATE accounts", account_row(display_name="New"))

        account = await repo.upsert("acc-1", {"display_name": "New"})

        assert account.display_name == "New"
        assert not any(q.startswith("INSERT") for q in fake_db.queries())

    async def test_existing_account_keeps_created_at(self, repo, fake_db):
        fake_db.respond("fetchrow", "SELECT id FROM accounts", {"id": "acc-1"})
        fake_db.respond("fetchrow", "UPDATE accounts", account_row(display_name="New"))

        await repo.upsert("acc-1", {"display_name": "New", "createdAt": NOW})

        query, args = fake_db.last("fetchrow")
        assert query.startswith("UPDATE accounts SET display_name = %s, updated_at = %s")
        assert "created_at" not in query
        assert NOW not in args

    async def test_missing_account_inserted_with_defaults(self, repo, fake_db):
        fake_db.respond("fetchrow", "SELECT * FROM accounts WHERE id", account_row(id="acc-9"))

        await repo.upsert("acc-9", {"email": "carol@example.com", "suspended_reason": "stale"})

        values = inserted_values(fake_db)
        assert values["id"] == "acc-9"
        assert values["username"] == "carol"
        assert values["password_hash"] == ""
        assert values["hash_algorithm"] == "pbkdf2"
        assert values["permissions"].obj == []
        # 정지되지 않은 계정은 정지 사유를 가질 수 없음
        assert values["suspended_reason"] is None
