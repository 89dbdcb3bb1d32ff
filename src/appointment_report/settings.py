"""Report configuration: fonts, page geometry and column layout.

All distances are PDF points (1/72 inch). The defaults reproduce the clinic's
A4 appointment report.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from appointment_report.exceptions import ReportError

log = logging.getLogger(__name__)


class FontSpec(BaseModel):
    """A font descriptor. `path` points at a TTF file for non-core families."""

    model_config = ConfigDict(frozen=True)

    family: str = "Helvetica"
    style: str = ""
    size: float = 10
    path: Path | None = None

    @property
    def is_core(self) -> bool:
        return self.path is None


class PageGeometry(BaseModel):
    """Page format and the vertical band rows may occupy."""

    model_config = ConfigDict(frozen=True)

    format: str = "A4"
    margin: float = 50
    content_top: float = 110  # first y below the header band on every page
    page_bottom: float = 750  # rows must end at or above this y
    table_header_height: float = 25
    table_rule_offset: float = 15


class ColumnLayout(BaseModel):
    """Horizontal positions and wrap widths of the table columns."""

    model_config = ConfigDict(frozen=True)

    table_left: float = 50
    table_width: float = 500
    time_x: float = 50
    patient_x: float = 100
    clinician_x: float = 220
    status_x: float = 320
    flags_x: float = 400
    patient_width: float = 110
    clinician_width: float = 90
    detail_col1_x: float = 100
    detail_col1_width: float = 230
    detail_col2_x: float = 350
    detail_col2_width: float = 180
    divider_right: float = 500


class RowSpacing(BaseModel):
    """Fixed paddings added around measured text."""

    model_config = ConfigDict(frozen=True)

    min_row_height: float = 20
    row_bottom_padding: float = 15
    detail_top_padding: float = 10
    section_title_height: float = 10
    prescription_gap: float = 2
    evaluation_gap: float = 5
    orthotic_line_height: float = 12
    orthotic_gap: float = 12
    zebra_offset: float = 5
    row_rule_offset: float = 8


class ReportSettings(BaseModel):
    """Complete report configuration."""

    model_config = ConfigDict(frozen=True)

    clinic_name: str = "PROSPERA DIGITAL"
    logo_path: Path | None = None
    logo_width: float = 100
    line_height_factor: float = 1.2

    body_font: FontSpec = FontSpec()
    header_font: FontSpec = FontSpec(style="B")
    detail_font: FontSpec = FontSpec(size=8)
    detail_title_font: FontSpec = FontSpec(style="B", size=8)
    banner_font: FontSpec = FontSpec(size=20)
    title_font: FontSpec = FontSpec(size=18)
    subtitle_font: FontSpec = FontSpec(size=12)
    legend_font: FontSpec = FontSpec(size=8)
    fallback_font: FontSpec = FontSpec()

    page: PageGeometry = PageGeometry()
    columns: ColumnLayout = ColumnLayout()
    spacing: RowSpacing = RowSpacing()


def load_settings(path: Path | None) -> ReportSettings:
    """Load settings from a YAML file; missing keys keep their defaults."""
    if path is None:
        return ReportSettings()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        settings = ReportSettings(**data)
    except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
        raise ReportError(f"Invalid settings file {path}: {e}") from e
    log.info("[SETTINGS] Loaded report settings from %s", path)
    return settings
