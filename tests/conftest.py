"""Shared fixtures for appointment report tests."""

import math
from datetime import datetime, timedelta

import pytest

from appointment_report.metrics import TextMetrics
from appointment_report.models import (
    AppointmentStatus,
    AppointmentViewRecord,
    FootEvaluation,
    MeasuredText,
    Orthotic,
    Prescription,
)
from appointment_report.settings import ReportSettings


class FakeMetrics:
    """Deterministic metrics: one character is 5pt wide, every line is 10pt tall."""

    CHAR_WIDTH = 5
    LINE_HEIGHT = 10

    def __init__(self):
        self.calls = []

    def line_height(self, font):
        return self.LINE_HEIGHT

    def wrap(self, text, max_width, font):
        self.calls.append((text, max_width, font))
        per_line = max(1, int(max_width // self.CHAR_WIDTH))
        count = math.ceil(len(text) / per_line) if text else 0
        lines = tuple(text[i * per_line:(i + 1) * per_line] for i in range(count))
        return MeasuredText(text=text, lines=lines, height=count * self.LINE_HEIGHT)

    def measure(self, text, max_width, font):
        return self.wrap(text, max_width, font).height


@pytest.fixture
def settings():
    return ReportSettings()


@pytest.fixture
def fake_metrics():
    return FakeMetrics()


@pytest.fixture
def text_metrics(settings):
    return TextMetrics(settings)


@pytest.fixture
def generated_at():
    return datetime(2026, 10, 19, 18, 30, 0)


@pytest.fixture
def make_record():
    """Factory for view records with sensible defaults."""
    base = datetime(2026, 10, 19, 8, 0)

    def _make(index=0, **overrides):
        data = {
            "id": index + 1,
            "start_time": base + timedelta(minutes=30 * index),
            "patient_name": "Ana Torres",
            "clinician_name": "Diego Mena",
            "status": AppointmentStatus.COMPLETED,
        }
        data.update(overrides)
        return AppointmentViewRecord(**data)

    return _make


@pytest.fixture
def detailed_record(make_record):
    """Record with every kind of clinical detail."""
    return make_record(
        patient_name="María José Andrade Villacís",
        clinician_name="Ana Torres",
        prescriptions=(
            Prescription(diagnosis="Onicomicosis", medications=("Terbinafina 250 mg", "Ciclopirox 8%")),
            Prescription(diagnosis="Hiperqueratosis plantar"),
        ),
        evaluation=FootEvaluation(left_foot_type="Pie plano", right_foot_type="Pie cavo"),
        orthotic=Orthotic(type="Plantilla termoconformada"),
        has_documents=True,
    )
