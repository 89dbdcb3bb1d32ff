"""Record normalizer: joins raw clinic tables into appointment view records.

The report engine only depends on the RecordSource protocol. TableNormalizer
is the reference implementation: it loads the appointments in range, fans out
the related lookups in parallel, joins them at a barrier and emits typed,
fully resolved records ordered by start time.
"""

import logging
from collections import defaultdict
from collections.abc import Collection
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Protocol

import yaml

from appointment_report.exceptions import DataUnavailableError
from appointment_report.models import (
    AppointmentStatus,
    AppointmentViewRecord,
    FootEvaluation,
    Orthotic,
    Prescription,
)

log = logging.getLogger(__name__)

STATUS_NAMES = {
    "reservada": AppointmentStatus.RESERVED,
    "reserved": AppointmentStatus.RESERVED,
    "completada": AppointmentStatus.COMPLETED,
    "completed": AppointmentStatus.COMPLETED,
    "cancelada": AppointmentStatus.CANCELLED,
    "cancelled": AppointmentStatus.CANCELLED,
}


class RecordSource(Protocol):
    """Supplies ordered view records for an inclusive date range."""

    def fetch(self, start_date: date, end_date: date) -> list[AppointmentViewRecord]: ...


class TableGateway(Protocol):
    """Row-level access to the clinic tables."""

    def appointments(self, start: datetime, end: datetime) -> list[dict]: ...

    def select(self, table: str, column: str, values: Collection) -> list[dict]: ...


class InMemoryGateway:
    """TableGateway over plain lists of rows, e.g. loaded from a YAML dataset."""

    def __init__(self, tables: dict[str, list[dict]]):
        self.tables = tables

    @classmethod
    def from_yaml(cls, path: Path) -> "InMemoryGateway":
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise DataUnavailableError(f"Cannot read dataset {path}: {e}") from e
        if not isinstance(data, dict):
            raise DataUnavailableError(f"Dataset {path} must map table names to rows")
        return cls({name: list(rows or []) for name, rows in data.items()})

    def appointments(self, start: datetime, end: datetime) -> list[dict]:
        rows = [r for r in self.tables.get("appointments", []) if start <= _as_datetime(r["start_time"]) <= end]
        return sorted(rows, key=lambda r: _as_datetime(r["start_time"]))

    def select(self, table: str, column: str, values: Collection) -> list[dict]:
        wanted = set(values)
        return [r for r in self.tables.get(table, []) if r.get(column) in wanted]


class TableNormalizer:
    """RecordSource that joins appointment rows with their related tables."""

    def __init__(self, gateway: TableGateway, max_workers: int = 7):
        self.gateway = gateway
        self.max_workers = max_workers

    def fetch(self, start_date: date, end_date: date) -> list[AppointmentViewRecord]:
        try:
            return self._fetch(start_date, end_date)
        except DataUnavailableError:
            raise
        except Exception as e:
            log.error("[NORMALIZER] Fetch failed: %s", e)
            raise DataUnavailableError(f"Error getting appointments: {e}") from e

    def _fetch(self, start_date: date, end_date: date) -> list[AppointmentViewRecord]:
        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date, time(23, 59, 59))
        appointments = self.gateway.appointments(start, end)
        log.info("[NORMALIZER] Found %d appointments between %s and %s", len(appointments), start_date, end_date)
        if not appointments:
            return []

        appointment_ids = [a["id"] for a in appointments]
        patient_ids = _distinct(a.get("patient_id") for a in appointments)
        clinician_ids = _distinct(a.get("clinician_id") for a in appointments)
        status_ids = _distinct(a.get("status_id") for a in appointments)

        lookups = {
            "patients": ("patients", "id", patient_ids),
            "clinicians": ("clinicians", "id", clinician_ids),
            "statuses": ("statuses", "id", status_ids),
            "prescriptions": ("prescriptions", "appointment_id", appointment_ids),
            "documents": ("documents", "appointment_id", appointment_ids),
            "evaluations": ("evaluations", "appointment_id", appointment_ids),
            "orthotics": ("orthotics", "appointment_id", appointment_ids),
        }
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                name: executor.submit(self._select, table, column, values)
                for name, (table, column, values) in lookups.items()
            }
            # Barrier: every lookup must finish before the join
            results = {name: future.result() for name, future in futures.items()}

        prescription_ids = [p["id"] for p in results["prescriptions"]]
        medications = self._select("medications", "prescription_id", prescription_ids)

        patients = {p["id"]: p for p in results["patients"]}
        clinicians = {c["id"]: c for c in results["clinicians"]}
        statuses = {s["id"]: s.get("name", "") for s in results["statuses"]}
        documented = {d["appointment_id"] for d in results["documents"]}
        evaluations = {e["appointment_id"]: e for e in results["evaluations"]}
        orthotics = {o["appointment_id"]: o for o in results["orthotics"]}

        meds_by_prescription = defaultdict(list)
        for m in medications:
            meds_by_prescription[m["prescription_id"]].append(m.get("name") or "")
        prescriptions_by_appointment = defaultdict(list)
        for p in results["prescriptions"]:
            prescriptions_by_appointment[p["appointment_id"]].append(
                Prescription(
                    diagnosis=p.get("diagnosis") or "",
                    medications=tuple(meds_by_prescription[p["id"]]),
                )
            )

        records = []
        for a in appointments:
            evaluation = evaluations.get(a["id"])
            orthotic = orthotics.get(a["id"])
            records.append(
                AppointmentViewRecord(
                    id=a["id"],
                    start_time=_as_datetime(a["start_time"]),
                    patient_name=patient_name(patients.get(a.get("patient_id"))),
                    clinician_name=clinician_name(clinicians.get(a.get("clinician_id"))),
                    status=resolve_status(statuses.get(a.get("status_id"))),
                    prescriptions=tuple(prescriptions_by_appointment[a["id"]]),
                    evaluation=FootEvaluation(
                        left_foot_type=evaluation.get("left_foot_type") or "",
                        right_foot_type=evaluation.get("right_foot_type") or "",
                    ) if evaluation else None,
                    orthotic=Orthotic(type=orthotic.get("type") or "") if orthotic else None,
                    has_documents=a["id"] in documented,
                )
            )
        return sorted(records, key=lambda r: r.start_time)

    def _select(self, table: str, column: str, values: list) -> list[dict]:
        if not values:
            return []
        return self.gateway.select(table, column, values)


def patient_name(row: dict[str, Any] | None) -> str:
    if not row:
        return "N/A"
    return f"{row.get('first_names') or ''} {row.get('last_names') or ''}".strip() or "N/A"


def clinician_name(row: dict[str, Any] | None) -> str:
    """First given name and first surname."""
    if not row:
        return "N/A"
    first = (row.get("first_names") or "").split(" ")[0]
    last = (row.get("last_names") or "").split(" ")[0]
    return f"{first} {last}".strip() or "N/A"


def resolve_status(name: str | None) -> AppointmentStatus | None:
    if not name:
        return None
    return STATUS_NAMES.get(name.strip().lower())


def _distinct(values) -> list:
    return list(dict.fromkeys(v for v in values if v is not None))


def _as_datetime(value: Any) -> datetime:
    """Naive local time; aware timestamps are converted before the offset is dropped."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
