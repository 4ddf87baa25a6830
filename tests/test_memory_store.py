"""
Tests for the in-memory salon store.
"""

import asyncio
import json

import pytest

from conftest import appointment, at, business_settings
from salonslots.adapters.memory_store import DEFAULT_MOCK_DATA, InMemorySalonStore, load_appointments
from salonslots.config import SalonConfig
from salonslots.domain.exceptions import AppointmentNotFound, OverlapDetected, StoreError
from salonslots.domain.models import AppointmentStatus


class TestInsertAppointment:
    """Storage-side overlap rejection."""

    def test_overlapping_insert_rejected(self, make_store):
        store = make_store(appointments=[appointment("anna", "2024-11-25", "10:00", "11:00")])

        with pytest.raises(OverlapDetected):
            asyncio.run(store.insert_appointment(appointment("anna", "2024-11-25", "10:30", "11:30")))

    def test_adjacent_and_other_staff_allowed(self, make_store):
        store = make_store(appointments=[appointment("anna", "2024-11-25", "10:00", "11:00")])

        asyncio.run(store.insert_appointment(appointment("anna", "2024-11-25", "11:00", "12:00")))
        asyncio.run(store.insert_appointment(appointment("sofia", "2024-11-25", "10:00", "11:00")))

        found = asyncio.run(store.get_appointments("anna", at("2024-11-25", "00:00"), at("2024-11-26", "00:00")))
        assert len(found) == 2

    def test_cancelled_appointments_do_not_block(self, make_store):
        store = make_store(
            appointments=[
                appointment("anna", "2024-11-25", "10:00", "11:00", status=AppointmentStatus.CANCELLED),
            ]
        )

        created = asyncio.run(store.insert_appointment(appointment("anna", "2024-11-25", "10:00", "11:00")))

        assert created.id

    def test_concurrent_inserts_only_one_wins(self, make_store):
        """Two requests racing for the same slot: exactly one is stored."""
        store = make_store()

        async def race():
            return await asyncio.gather(
                store.insert_appointment(appointment("anna", "2024-11-25", "14:00", "15:00")),
                store.insert_appointment(appointment("anna", "2024-11-25", "14:15", "15:15")),
                return_exceptions=True,
            )

        results = asyncio.run(race())

        assert sum(isinstance(result, OverlapDetected) for result in results) == 1
        found = asyncio.run(store.get_appointments("anna", at("2024-11-25", "00:00"), at("2024-11-26", "00:00")))
        assert len(found) == 1

    def test_reactivating_into_a_taken_slot_rejected(self, make_store):
        cancelled = appointment("anna", "2024-11-25", "10:00", "11:00", status=AppointmentStatus.CANCELLED)
        cancelled.id = "old"
        store = make_store(appointments=[cancelled, appointment("anna", "2024-11-25", "10:30", "11:30")])

        with pytest.raises(OverlapDetected):
            asyncio.run(store.update_status("old", AppointmentStatus.CONFIRMED))

    @pytest.mark.parametrize(
        "existing, incoming",
        [
            (("10:00", "11:15"), ("11:15", "12:30")),
            (("11:15", "12:30"), ("10:00", "11:15")),
        ],
    )
    def test_buffer_before_enforced_in_either_order(self, make_store, existing, incoming):
        store = make_store(
            settings=business_settings(buffer_before=15),
            appointments=[appointment("anna", "2024-11-25", *existing)],
        )

        with pytest.raises(OverlapDetected):
            asyncio.run(store.insert_appointment(appointment("anna", "2024-11-25", *incoming)))

    def test_update_unknown_appointment(self, make_store):
        with pytest.raises(AppointmentNotFound):
            asyncio.run(make_store().update_status("missing", AppointmentStatus.CANCELLED))


class TestGetAppointments:
    """Tests for the day query."""

    def test_filters_span_staff_and_status(self, make_store):
        store = make_store(
            appointments=[
                appointment("anna", "2024-11-25", "10:00", "11:00"),
                appointment("anna", "2024-11-25", "12:00", "13:00", status=AppointmentStatus.PENDING),
                appointment("anna", "2024-11-25", "14:00", "15:00", status=AppointmentStatus.CANCELLED),
                appointment("anna", "2024-11-26", "10:00", "11:00"),
                appointment("sofia", "2024-11-25", "10:00", "11:00"),
            ]
        )

        found = asyncio.run(store.get_appointments("anna", at("2024-11-25", "00:00"), at("2024-11-26", "00:00")))

        assert [appt.start_time for appt in found] == [at("2024-11-25", "10:00"), at("2024-11-25", "12:00")]

    def test_returned_records_are_copies(self, make_store):
        store = make_store(appointments=[appointment("anna", "2024-11-25", "10:00", "11:00")])
        found = asyncio.run(store.get_appointments("anna", at("2024-11-25", "00:00"), at("2024-11-26", "00:00")))

        found[0].status = AppointmentStatus.CANCELLED

        again = asyncio.run(store.get_appointments("anna", at("2024-11-25", "00:00"), at("2024-11-26", "00:00")))
        assert again[0].status is AppointmentStatus.CONFIRMED


class TestFromConfig:
    """Tests for building a store from configuration."""

    def test_qualifications_follow_staff_order(self):
        config = SalonConfig(
            services=[{"id": "gel", "duration_minutes": 60}, {"id": "art", "duration_minutes": 90}],
            staff=[
                {"id": "anna", "services": ["gel"]},
                {"id": "sofia", "services": ["art", "gel"]},
            ],
        )

        store = InMemorySalonStore.from_config(config)

        assert asyncio.run(store.get_qualified_staff("gel")) == ["anna", "sofia"]
        assert asyncio.run(store.get_qualified_staff("art")) == ["sofia"]
        assert asyncio.run(store.get_qualified_staff("waxing")) == []
        assert asyncio.run(store.get_service("art")).duration_minutes == 90


class TestLoadAppointments:
    """Tests for the JSON appointment loader."""

    def test_bundled_demo_data_loads(self):
        appointments = load_appointments(DEFAULT_MOCK_DATA)

        assert appointments
        assert {appt.status for appt in appointments} >= {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}

    def test_missing_field_raises_store_error(self, tmp_path):
        data_file = tmp_path / "appointments.json"
        data_file.write_text(json.dumps([{"staffId": "anna", "start": "2024-11-25T10:00:00+01:00"}]))

        with pytest.raises(StoreError, match="Invalid appointment entry"):
            load_appointments(data_file)

    def test_unreadable_file_raises_store_error(self, tmp_path):
        with pytest.raises(StoreError):
            load_appointments(tmp_path / "missing.json")
