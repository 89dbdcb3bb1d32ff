"""Tests for the record normalizer."""

from datetime import date, datetime, timedelta, timezone

import pytest

from appointment_report.exceptions import DataUnavailableError
from appointment_report.models import AppointmentStatus, FootEvaluation, Orthotic, Prescription
from appointment_report.normalizer import (
    InMemoryGateway,
    TableNormalizer,
    clinician_name,
    patient_name,
    resolve_status,
)


@pytest.fixture
def tables():
    return {
        "appointments": [
            {"id": 2, "start_time": "2026-10-19T11:00:00", "status_id": 1, "patient_id": 11, "clinician_id": 100},
            {"id": 1, "start_time": "2026-10-19T09:00:00", "status_id": 2, "patient_id": 10, "clinician_id": 100},
            {"id": 3, "start_time": "2026-10-20T23:30:00", "status_id": 9, "patient_id": 99, "clinician_id": None},
            {"id": 4, "start_time": "2026-10-21T08:00:00", "status_id": 2, "patient_id": 10, "clinician_id": 100},
        ],
        "patients": [
            {"id": 10, "first_names": "María José", "last_names": "Andrade Villacís"},
            {"id": 11, "first_names": "Carlos", "last_names": "Pérez"},
        ],
        "clinicians": [{"id": 100, "first_names": "Ana Cristina", "last_names": "Torres Ruiz"}],
        "statuses": [
            {"id": 1, "name": "Reservada"},
            {"id": 2, "name": "Completada"},
            {"id": 9, "name": "Archivada"},
        ],
        "prescriptions": [
            {"id": 50, "appointment_id": 1, "diagnosis": "Onicomicosis"},
            {"id": 51, "appointment_id": 1, "diagnosis": None},
        ],
        "medications": [
            {"prescription_id": 50, "name": "Terbinafina"},
            {"prescription_id": 50, "name": "Ciclopirox"},
            {"prescription_id": 51, "name": "Urea 40%"},
        ],
        "documents": [{"id": 90, "appointment_id": 2}],
        "evaluations": [{"id": 70, "appointment_id": 1, "left_foot_type": "Plano", "right_foot_type": None}],
        "orthotics": [{"id": 80, "appointment_id": 2, "type": "Plantilla"}],
    }


class TestTableNormalizer:
    """Test joining clinic tables into view records."""

    def test_records_in_range_ordered_by_start(self, tables):
        records = TableNormalizer(InMemoryGateway(tables)).fetch(date(2026, 10, 19), date(2026, 10, 20))

        assert [r.id for r in records] == [1, 2, 3]
        assert records[0].start_time == datetime(2026, 10, 19, 9, 0)

    def test_end_date_is_inclusive_to_end_of_day(self, tables):
        records = TableNormalizer(InMemoryGateway(tables)).fetch(date(2026, 10, 20), date(2026, 10, 20))
        assert [r.id for r in records] == [3]

    def test_joins_nested_detail(self, tables):
        record = TableNormalizer(InMemoryGateway(tables)).fetch(date(2026, 10, 19), date(2026, 10, 19))[0]

        assert record.patient_name == "María José Andrade Villacís"
        assert record.clinician_name == "Ana Torres"
        assert record.status is AppointmentStatus.COMPLETED
        assert record.prescriptions == (
            Prescription(diagnosis="Onicomicosis", medications=("Terbinafina", "Ciclopirox")),
            Prescription(diagnosis="", medications=("Urea 40%",)),
        )
        assert record.evaluation == FootEvaluation(left_foot_type="Plano", right_foot_type="")
        assert record.orthotic is None
        assert record.has_documents is False

    def test_documents_and_orthotics(self, tables):
        record = TableNormalizer(InMemoryGateway(tables)).fetch(date(2026, 10, 19), date(2026, 10, 19))[1]

        assert record.has_documents is True
        assert record.orthotic == Orthotic(type="Plantilla")
        assert record.prescriptions == ()
        assert record.evaluation is None
        assert record.status is AppointmentStatus.RESERVED

    def test_missing_relations_are_not_available(self, tables):
        record = TableNormalizer(InMemoryGateway(tables)).fetch(date(2026, 10, 20), date(2026, 10, 20))[0]

        assert record.patient_name == "N/A"
        assert record.clinician_name == "N/A"
        assert record.status is None

    @pytest.mark.parametrize("start_time", [
        "2026-10-19T12:00:00+00:00",
        datetime(2026, 10, 19, 7, 0, tzinfo=timezone(timedelta(hours=-5))),
    ])
    def test_offset_aware_start_times(self, start_time):
        gateway = InMemoryGateway({
            "appointments": [
                {"id": 1, "start_time": start_time, "status_id": 1, "patient_id": 10},
                {"id": 2, "start_time": "2026-10-19T13:00:00", "status_id": 1, "patient_id": 10},
            ],
        })
        local = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

        records = TableNormalizer(gateway).fetch(date(2026, 10, 18), date(2026, 10, 20))

        assert {r.id for r in records} == {1, 2}
        assert [r.start_time for r in records] == sorted(r.start_time for r in records)
        assert {r.id: r.start_time for r in records}[1] == local
        assert all(r.start_time.tzinfo is None for r in records)

    def test_no_appointments_skips_lookups(self, mocker):
        gateway = mocker.Mock()
        gateway.appointments.return_value = []

        assert TableNormalizer(gateway).fetch(date(2026, 10, 19), date(2026, 10, 19)) == []
        gateway.select.assert_not_called()

    def test_fans_out_every_lookup_before_medications(self, tables, mocker):
        gateway = InMemoryGateway(tables)
        select = mocker.spy(gateway, "select")

        TableNormalizer(gateway).fetch(date(2026, 10, 19), date(2026, 10, 19))

        queried = [c.args[0] for c in select.call_args_list]
        assert sorted(queried[:7]) == sorted(
            ["patients", "clinicians", "statuses", "prescriptions", "documents", "evaluations", "orthotics"]
        )
        assert queried[7] == "medications"

    def test_gateway_failure_is_data_unavailable(self, mocker):
        gateway = mocker.Mock()
        gateway.appointments.side_effect = ConnectionError("database offline")

        with pytest.raises(DataUnavailableError, match="database offline"):
            TableNormalizer(gateway).fetch(date(2026, 10, 19), date(2026, 10, 19))

    def test_lookup_failure_is_data_unavailable(self, tables, mocker):
        gateway = InMemoryGateway(tables)
        mocker.patch.object(gateway, "select", side_effect=TimeoutError("slow"))

        with pytest.raises(DataUnavailableError):
            TableNormalizer(gateway).fetch(date(2026, 10, 19), date(2026, 10, 19))


class TestInMemoryGateway:
    """Test the YAML-backed gateway."""

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "clinic.yaml"
        path.write_text(
            "appointments:\n"
            "  - {id: 1, start_time: 2026-10-19 09:00:00, status_id: 1, patient_id: 10}\n"
            "patients:\n"
            "  - {id: 10, first_names: Ana, last_names: Torres}\n",
            encoding="utf-8",
        )
        gateway = InMemoryGateway.from_yaml(path)

        rows = gateway.appointments(datetime(2026, 10, 19), datetime(2026, 10, 19, 23, 59, 59))
        assert [r["id"] for r in rows] == [1]
        assert gateway.select("patients", "id", [10])[0]["first_names"] == "Ana"
        assert gateway.select("orthotics", "appointment_id", [1]) == []

    def test_top_level_must_be_a_mapping(self, tmp_path):
        path = tmp_path / "rows.yaml"
        path.write_text("- {id: 1}\n- {id: 2}\n", encoding="utf-8")

        with pytest.raises(DataUnavailableError, match="must map table names"):
            InMemoryGateway.from_yaml(path)

    def test_unreadable_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("appointments: [unclosed", encoding="utf-8")

        with pytest.raises(DataUnavailableError):
            InMemoryGateway.from_yaml(path)


class TestNameHelpers:
    """Test display name composition."""

    def test_patient_full_name(self):
        assert patient_name({"first_names": "Lucía Fernanda", "last_names": "Mena"}) == "Lucía Fernanda Mena"

    def test_clinician_first_words(self):
        assert clinician_name({"first_names": "Ana Cristina", "last_names": "Torres Ruiz"}) == "Ana Torres"

    @pytest.mark.parametrize("row", [None, {}, {"first_names": "", "last_names": ""}])
    def test_missing_names(self, row):
        assert patient_name(row) == "N/A"
        assert clinician_name(row) == "N/A"

    def test_null_name_columns(self):
        assert patient_name({"first_names": None, "last_names": "Pérez"}) == "Pérez"
        assert clinician_name({"first_names": None, "last_names": "Pérez"}) == "Pérez"

    @pytest.mark.parametrize("name,expected", [
        ("Reservada", AppointmentStatus.RESERVED),
        ("completada", AppointmentStatus.COMPLETED),
        (" Cancelada ", AppointmentStatus.CANCELLED),
        ("cancelled", AppointmentStatus.CANCELLED),
        ("Archivada", None),
        (None, None),
    ])
    def test_resolve_status(self, name, expected):
        assert resolve_status(name) is expected
