"""Row layout: turns one appointment view record into measured row geometry."""

from typing import Protocol

from appointment_report.constants import BULLET, EVALUATION_FALLBACK
from appointment_report.models import (
    AppointmentViewRecord,
    FootEvaluation,
    MeasuredText,
    Prescription,
    RowLayout,
)
from appointment_report.settings import FontSpec, ReportSettings


class Measurer(Protocol):
    """Anything that can wrap text to a width for a font."""

    def wrap(self, text: str, max_width: float, font: FontSpec) -> MeasuredText: ...


def prescription_text(prescription: Prescription) -> str:
    """Join "Dx: ..." and "Meds: ..." halves, omitting the empty one."""
    parts = []
    if prescription.diagnosis:
        parts.append(f"Dx: {prescription.diagnosis}")
    if prescription.medications:
        parts.append(f"Meds: {', '.join(prescription.medications)}")
    return " - ".join(parts)


def evaluation_text(evaluation: FootEvaluation) -> str:
    feet = []
    if evaluation.left_foot_type:
        feet.append(f"Izq: {evaluation.left_foot_type}")
    if evaluation.right_foot_type:
        feet.append(f"Der: {evaluation.right_foot_type}")
    return ", ".join(feet) if feet else EVALUATION_FALLBACK


def combine_columns(column1_height: float, column2_height: float, top_padding: float) -> float:
    """Extra height of the detail block: padding plus the taller column."""
    if column1_height <= 0 and column2_height <= 0:
        return 0
    return top_padding + max(column1_height, column2_height)


class RowLayoutCalculator:
    """Computes a RowLayout per record, exactly once, for reuse when painting."""

    def __init__(self, metrics: Measurer, settings: ReportSettings):
        self.metrics = metrics
        self.settings = settings

    def calculate(self, record: AppointmentViewRecord) -> RowLayout:
        columns = self.settings.columns
        spacing = self.settings.spacing
        body_font = self.settings.body_font

        patient = self.metrics.wrap(record.patient_name, columns.patient_width, body_font)
        clinician = self.metrics.wrap(record.clinician_name, columns.clinician_width, body_font)
        base_height = max(spacing.min_row_height, patient.height, clinician.height)

        prescription_lines, column1_height = self._prescriptions_column(record)
        evaluation_summary, orthotic_label, column2_height = self._evaluation_column(record)

        extra_height = combine_columns(column1_height, column2_height, spacing.detail_top_padding)
        total_height = base_height + extra_height + spacing.row_bottom_padding

        return RowLayout(
            base_height=base_height,
            column1_height=column1_height,
            column2_height=column2_height,
            extra_height=extra_height,
            total_height=total_height,
            patient=patient,
            clinician=clinician,
            prescription_lines=prescription_lines,
            evaluation_summary=evaluation_summary,
            orthotic_label=orthotic_label,
        )

    def _prescriptions_column(self, record: AppointmentViewRecord) -> tuple[tuple[MeasuredText, ...], float]:
        if not record.prescriptions:
            return (), 0

        spacing = self.settings.spacing
        width = self.settings.columns.detail_col1_width
        lines = tuple(
            self.metrics.wrap(BULLET + prescription_text(p), width, self.settings.detail_font)
            for p in record.prescriptions
        )
        height = spacing.section_title_height + sum(line.height + spacing.prescription_gap for line in lines)
        return lines, height

    def _evaluation_column(self, record: AppointmentViewRecord) -> tuple[MeasuredText | None, str | None, float]:
        spacing = self.settings.spacing
        height = 0.0
        summary = None
        orthotic_label = None

        if record.evaluation is not None:
            summary = self.metrics.wrap(
                BULLET + evaluation_text(record.evaluation),
                self.settings.columns.detail_col2_width,
                self.settings.detail_font,
            )
            height += spacing.section_title_height + summary.height + spacing.evaluation_gap

        # Single short label: fixed height, not measured
        if record.orthotic is not None and record.orthotic.type:
            orthotic_label = BULLET + record.orthotic.type
            height += spacing.section_title_height + spacing.orthotic_line_height + spacing.orthotic_gap

        return summary, orthotic_label, height
