"""
Patient service tests — registration sequence, update and delete against the
recording fake client, plus a full pass over SQLite.
"""

import uuid
from datetime import date

import pytest

from carebase.db.client import DatabaseError
from carebase.services import patient_service
from carebase.services.patient_mapping import map_db_patient_to_patient
from carebase.services.patient_service import SeedRecordStatus

from tests.fakes import make_staff

pytestmark = pytest.mark.anyio

TODAY = date(2026, 10, 18)


def _add_staff(fake_client, count=1):
    ids = [uuid.uuid4() for _ in range(count)]
    fake_client.tables["staff"] = [{"id": staff_id} for staff_id in ids]
    return ids


class TestCreatePatient:
    async def test_creates_patient_and_seed_record(self, fake_client, form_values):
        [staff_id] = _add_staff(fake_client)

        result = await patient_service.create_patient(fake_client, form_values, today=TODAY)

        assert result.success is True
        assert result.error is None
        assert len(result.data) == 1
        patient_id = result.data[0]["id"]
        assert result.seed_record.status == SeedRecordStatus.CREATED

        [record] = fake_client.tables["medical_records"]
        assert record["patient_id"] == patient_id
        assert record["staff_id"] == staff_id
        assert record["record_date"] == TODAY
        assert result.seed_record.record["vital_signs"] == {
            "recorded": False,
            "note": "Vitals not recorded at registration",
        }

    async def test_no_staff_skips_seed_record(self, fake_client, form_values):
        result = await patient_service.create_patient(fake_client, form_values, today=TODAY)

        assert result.success is True
        assert len(fake_client.tables["patients"]) == 1
        assert result.seed_record.status == SeedRecordStatus.SKIPPED_NO_STAFF
        assert fake_client.calls_to("medical_records") == []

    async def test_patient_insert_failure_aborts(self, fake_client, form_values):
        _add_staff(fake_client)
        error = fake_client.fail("patients", "insert", "duplicate key value")

        result = await patient_service.create_patient(fake_client, form_values)

        assert result.success is False
        assert result.error is error
        assert result.data is None
        assert fake_client.calls_to("staff") == []
        assert fake_client.calls_to("medical_records") == []

    async def test_staff_lookup_failure_is_absorbed(self, fake_client, form_values):
        fake_client.fail("staff", "select", "permission denied for table staff")

        result = await patient_service.create_patient(fake_client, form_values)

        assert result.success is True
        assert result.seed_record.status == SeedRecordStatus.FAILED
        assert "permission denied" in result.seed_record.reason
        assert fake_client.calls_to("medical_records") == []

    async def test_seed_insert_failure_keeps_patient(self, fake_client, form_values):
        _add_staff(fake_client)
        fake_client.fail("medical_records", "insert", "foreign key violation")

        result = await patient_service.create_patient(fake_client, form_values)

        assert result.success is True
        assert result.seed_record.status == SeedRecordStatus.FAILED
        assert result.seed_record.reason == "foreign key violation"
        assert len(fake_client.tables["patients"]) == 1
        # No compensating delete
        assert fake_client.calls_to("patients", "delete") == []

    async def test_persisted_row_applies_flags(self, fake_client, form_values):
        form = form_values.model_copy(update={"has_insurance": False, "has_allergies": False})

        await patient_service.create_patient(fake_client, form)

        [row] = fake_client.tables["patients"]
        assert row["allergies"] is None
        assert row["insurance_provider"] is None
        assert row["policy_holder_name"] is None

    async def test_custom_staff_selector(self, fake_client, form_values):
        _add_staff(fake_client, count=3)
        chosen = uuid.uuid4()

        async def registering_clinician(client):
            return chosen

        result = await patient_service.create_patient(
            fake_client, form_values, staff_selector=registering_clinician
        )

        assert result.seed_record.status == SeedRecordStatus.CREATED
        assert fake_client.tables["medical_records"][0]["staff_id"] == chosen
        assert fake_client.calls_to("staff") == []


class TestUpdateAndDelete:
    async def _seed_two(self, fake_client, form_values):
        first = await patient_service.create_patient(fake_client, form_values)
        second_form = form_values.model_copy(update={"first_name": "Elena", "email": "elena@example.com"})
        second = await patient_service.create_patient(fake_client, second_form)
        return first.data[0], second.data[0]

    async def test_update_touches_only_that_row(self, fake_client, form_values):
        first, second = await self._seed_two(fake_client, form_values)
        patient = map_db_patient_to_patient(first).model_copy(update={"status": "Discharged"})

        result = await patient_service.update_patient(fake_client, patient)

        assert result.success is True
        assert [row["status"] for row in result.data] == ["Discharged"]
        statuses = {row["id"]: row["status"] for row in fake_client.tables["patients"]}
        assert statuses[first["id"]] == "Discharged"
        assert statuses[second["id"]] == "Admitted"

    async def test_update_failure(self, fake_client, form_values):
        first, _ = await self._seed_two(fake_client, form_values)
        fake_client.fail("patients", "update", "connection reset")

        result = await patient_service.update_patient(fake_client, map_db_patient_to_patient(first))

        assert result.success is False
        assert isinstance(result.error, DatabaseError)

    async def test_delete_removes_only_that_row(self, fake_client, form_values):
        first, second = await self._seed_two(fake_client, form_values)

        result = await patient_service.delete_patient(fake_client, first["id"])

        assert result.success is True
        assert result.data is None
        assert [row["id"] for row in fake_client.tables["patients"]] == [second["id"]]

    async def test_delete_failure(self, fake_client):
        fake_client.fail("patients", "delete")

        result = await patient_service.delete_patient(fake_client, uuid.uuid4())

        assert result.success is False
        assert result.error.message == "simulated failure"


class TestAgainstDatabase:
    """Same workflow over the real table client."""

    async def test_registration_round_trip(self, db_client, form_values):
        from carebase.services.staff_service import StaffService

        staff = await StaffService(db_client).create(make_staff("Grace", "Hopper"))

        result = await patient_service.create_patient(db_client, form_values, today=TODAY)
        assert result.success is True
        assert result.seed_record.status == SeedRecordStatus.CREATED
        patient_id = result.data[0]["id"]

        patient = await patient_service.get_patient(db_client, patient_id)
        assert patient.first_name == "Maria"
        assert patient.allergies == ["Penicillin", "Latex"]
        assert patient.insurance.insurance_id == "BC-778812"

        records = await patient_service.list_medical_records(db_client, patient_id)
        assert len(records) == 1
        assert records[0]["staff_id"] == staff.id
        assert records[0]["diagnosis"] == "Initial diagnosis: Hypertension"
        assert records[0]["vital_signs"]["recorded"] is False

    async def test_registration_without_staff(self, db_client, form_values):
        result = await patient_service.create_patient(db_client, form_values)

        assert result.success is True
        assert result.seed_record.status == SeedRecordStatus.SKIPPED_NO_STAFF
        records = await patient_service.list_medical_records(db_client, result.data[0]["id"])
        assert records == []

    async def test_update_missing_patient_returns_no_rows(self, db_client, form_values):
        created = await patient_service.create_patient(db_client, form_values)
        patient = map_db_patient_to_patient(created.data[0]).model_copy(update={"id": uuid.uuid4()})

        result = await patient_service.update_patient(db_client, patient)

        assert result.success is True
        assert result.data == []

    async def test_delete_then_get(self, db_client, form_values):
        created = await patient_service.create_patient(db_client, form_values)
        patient_id = created.data[0]["id"]

        result = await patient_service.delete_patient(db_client, patient_id)

        assert result.success is True
        assert await patient_service.get_patient(db_client, patient_id) is None

    async def test_list_patients_search_and_paging(self, db_client, form_values):
        for i, name in enumerate(["Maria", "Elena", "Marco"]):
            form = form_values.model_copy(update={"first_name": name, "email": f"p{i}@example.com"})
            await patient_service.create_patient(db_client, form)

        page = await patient_service.list_patients(db_client, search="mar", page=0, page_size=10)
        assert page.total_count == 2
        assert sorted(p.first_name for p in page.items) == ["Marco", "Maria"]

        first_page = await patient_service.list_patients(db_client, page=0, page_size=2)
        second_page = await patient_service.list_patients(db_client, page=1, page_size=2)
        assert first_page.total_count == 3
        assert len(first_page.items) == 2
        assert len(second_page.items) == 1
