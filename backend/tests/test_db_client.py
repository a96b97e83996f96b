"""
Table client tests over in-memory SQLite.
"""

import uuid
from datetime import date

import pytest

from carebase.db.client import INVALID_TEXT_REPRESENTATION, DatabaseError
from carebase.db.client import SqlTableClient
from carebase.db.postgres import Base

pytestmark = pytest.mark.anyio


def _offline_client():
    # Builder checks happen before any session is opened
    return SqlTableClient(None, Base.metadata)


def _staff_row(first_name, last_name, **overrides):
    row = {
        "first_name": first_name,
        "last_name": last_name,
        "role": "Doctor",
        "department": "Cardiology",
        "email": f"{first_name.lower()}@carebase.example",
        "status": "active",
    }
    row.update(overrides)
    return row


class TestInsertAndSelect:
    async def test_insert_returns_generated_id(self, db_client):
        result = await db_client.table("staff").insert(_staff_row("Ada", "Byron")).select().execute()

        assert result.error is None
        assert isinstance(result.data[0]["id"], uuid.UUID)
        assert result.data[0]["first_name"] == "Ada"

    async def test_insert_without_select_returns_no_data(self, db_client):
        result = await db_client.table("staff").insert(_staff_row("Ada", "Byron")).execute()

        assert result.error is None
        assert result.data is None

    async def test_select_columns_and_limit(self, db_client):
        await db_client.table("staff").insert([
            _staff_row("Ada", "Byron"),
            _staff_row("Alan", "Turing"),
        ]).execute()

        result = await db_client.table("staff").select("id, last_name").limit(1).execute()

        assert len(result.data) == 1
        assert set(result.data[0]) == {"id", "last_name"}

    async def test_range_and_exact_count(self, db_client):
        await db_client.table("staff").insert(
            [_staff_row(f"Name{i}", f"Last{i:02d}", email=f"n{i}@x.org") for i in range(7)]
        ).execute()

        result = await (
            db_client.table("staff")
            .select("last_name", count="exact")
            .order("last_name")
            .range(5, 9)
            .execute()
        )

        assert result.count == 7
        assert [row["last_name"] for row in result.data] == ["Last05", "Last06"]

    async def test_ilike_any(self, db_client):
        await db_client.table("staff").insert([
            _staff_row("Ada", "Byron"),
            _staff_row("Alan", "Turing", department="Neurology"),
            _staff_row("Grace", "Hopper", email="ghopper@navy.example"),
        ]).execute()

        result = await (
            db_client.table("staff")
            .select("first_name")
            .ilike_any(["last_name", "department"], "%NEURO%")
            .execute()
        )

        assert [row["first_name"] for row in result.data] == ["Alan"]

    async def test_string_date_and_uuid_accepted(self, db_client):
        staff_id = str(uuid.uuid4())
        await db_client.table("staff").insert(
            _staff_row("Ada", "Byron", id=staff_id, joining_date="2020-02-29")
        ).execute()

        result = await db_client.table("staff").select().eq("id", staff_id).execute()

        assert result.data[0]["joining_date"] == date(2020, 2, 29)


class TestUpdateAndDelete:
    async def test_update_by_id(self, db_client):
        inserted = await db_client.table("staff").insert([
            _staff_row("Ada", "Byron"),
            _staff_row("Alan", "Turing", email="alan@x.org"),
        ]).select().execute()
        by_name = {row["first_name"]: row for row in inserted.data}
        ada, alan = by_name["Ada"], by_name["Alan"]

        result = await (
            db_client.table("staff")
            .update({"status": "inactive"})
            .eq("id", ada["id"])
            .select()
            .execute()
        )

        assert [row["status"] for row in result.data] == ["inactive"]
        untouched = await db_client.table("staff").select("status").eq("id", alan["id"]).execute()
        assert untouched.data[0]["status"] == "active"

    async def test_delete_by_id(self, db_client):
        inserted = await db_client.table("staff").insert(_staff_row("Ada", "Byron")).select().execute()

        result = await db_client.table("staff").delete().eq("id", inserted.data[0]["id"]).execute()

        assert result.error is None
        assert result.data is None
        remaining = await db_client.table("staff").select().execute()
        assert remaining.data == []

    async def test_delete_requires_filter(self, db_client):
        with pytest.raises(ValueError):
            await db_client.table("staff").delete().execute()


class TestErrors:
    async def test_constraint_violation_returned_not_raised(self, db_client):
        row = _staff_row("Ada", "Byron")
        del row["first_name"]

        result = await db_client.table("staff").insert(row).select().execute()

        assert result.data is None
        assert isinstance(result.error, DatabaseError)
        assert "first_name" in result.error.message

    async def test_unique_violation(self, db_client):
        await db_client.table("staff").insert(_staff_row("Ada", "Byron")).execute()

        result = await db_client.table("staff").insert(_staff_row("Ada", "Lovelace")).execute()

        assert isinstance(result.error, DatabaseError)

    async def test_malformed_uuid(self, db_client):
        result = await db_client.table("staff").select().eq("id", "not-a-uuid").execute()

        assert result.error.code == INVALID_TEXT_REPRESENTATION

    def test_unknown_table(self):
        with pytest.raises(ValueError):
            _offline_client().table("wards")

    def test_unknown_column(self):
        with pytest.raises(ValueError):
            _offline_client().table("staff").select("salary")

    def test_operation_chosen_once(self):
        with pytest.raises(ValueError):
            _offline_client().table("staff").delete().update({"status": "inactive"})
