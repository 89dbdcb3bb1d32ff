"""Pydantic models for report input and derived layout geometry."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AppointmentStatus(str, Enum):
    """Lifecycle state of an appointment."""

    RESERVED = "reserved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Prescription(BaseModel):
    """A prescription attached to an appointment."""

    model_config = ConfigDict(frozen=True)

    diagnosis: str = ""
    medications: tuple[str, ...] = ()


class FootEvaluation(BaseModel):
    """Foot evaluation sheet recorded during the appointment."""

    model_config = ConfigDict(frozen=True)

    left_foot_type: str = ""
    right_foot_type: str = ""


class Orthotic(BaseModel):
    """Orthotic management entry."""

    model_config = ConfigDict(frozen=True)

    type: str = ""


class AppointmentViewRecord(BaseModel):
    """Fully joined, read-only view of one appointment."""

    model_config = ConfigDict(frozen=True)

    id: int
    start_time: datetime
    patient_name: str = "N/A"
    clinician_name: str = "N/A"
    status: AppointmentStatus | None = None
    prescriptions: tuple[Prescription, ...] = ()
    evaluation: FootEvaluation | None = None
    orthotic: Orthotic | None = None
    has_documents: bool = False


class ReportRequest(BaseModel):
    """Parameters of one report generation."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    type: Literal["day", "week"]

    @model_validator(mode="after")
    def _check_range(self) -> "ReportRequest":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    @property
    def filename(self) -> str:
        return f"reporte-citas-{self.type}-{self.start_date.isoformat()}.pdf"


@dataclass(frozen=True)
class MeasuredText:
    """Text wrapped to a column width, with the height it occupies."""

    text: str
    lines: tuple[str, ...]
    height: float


@dataclass(frozen=True)
class RowLayout:
    """Computed geometry of one table row, independent of page position."""

    base_height: float
    column1_height: float
    column2_height: float
    extra_height: float
    total_height: float
    patient: MeasuredText
    clinician: MeasuredText
    prescription_lines: tuple[MeasuredText, ...] = ()
    evaluation_summary: MeasuredText | None = None
    orthotic_label: str | None = None

    @property
    def has_detail(self) -> bool:
        return self.extra_height > 0


@dataclass(frozen=True)
class ReportSummary:
    """Appointment counts shown above the table."""

    total: int = 0
    completed: int = 0
    reserved: int = 0
    cancelled: int = 0

    @classmethod
    def from_records(cls, records: list[AppointmentViewRecord]) -> "ReportSummary":
        statuses = [r.status for r in records]
        return cls(
            total=len(records),
            completed=statuses.count(AppointmentStatus.COMPLETED),
            reserved=statuses.count(AppointmentStatus.RESERVED),
            cancelled=statuses.count(AppointmentStatus.CANCELLED),
        )


@dataclass(frozen=True)
class ReportDocument:
    """A finished report ready for delivery."""

    content: bytes
    filename: str
    page_count: int
    row_count: int
    content_type: str = "application/pdf"
