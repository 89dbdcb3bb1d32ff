"""Document renderer: paints placed rows into an in-memory fpdf2 document."""

import logging
from datetime import datetime

from fpdf import FPDF

from appointment_report.constants import (
    COLUMN_LABELS,
    EVALUATION_TITLE,
    GENERATED_AT_FORMAT,
    LEGEND,
    MISSING_LABEL,
    ORTHOTIC_TITLE,
    PRESCRIPTIONS_TITLE,
    REPORT_TYPE_LABELS,
    STATUS_LABELS,
    Color,
)
from appointment_report.metrics import CORE_ENCODING, TextMetrics, apply_font, printable
from appointment_report.models import (
    AppointmentViewRecord,
    MeasuredText,
    ReportRequest,
    ReportSummary,
    RowLayout,
)
from appointment_report.pagination import PageState, Placement
from appointment_report.settings import FontSpec, ReportSettings

log = logging.getLogger(__name__)


def flags_token(record: AppointmentViewRecord) -> str:
    """Compact presence flags: prescriptions, documents, evaluation, orthotic."""
    flags = [
        "R" if record.prescriptions else "-",
        "D" if record.has_documents else "-",
        "E" if record.evaluation is not None else "-",
        "O" if record.orthotic is not None else "-",
    ]
    return f"[ {' | '.join(flags)} ]"


def is_striped(index: int) -> bool:
    """Zebra fill keyed by the global row index, never reset per page."""
    return index % 2 == 0


class AppointmentReportPDF(FPDF):
    """A4 report document with the clinic header band on every page."""

    def __init__(self, settings: ReportSettings, generated_at: datetime):
        super().__init__(orientation="P", unit="pt", format=settings.page.format)
        self.settings = settings
        self.generated_at = generated_at
        self.core_fonts_encoding = CORE_ENCODING
        self._resolved: dict[FontSpec, FontSpec] = {}
        self.logo_path = settings.logo_path
        if self.logo_path is not None and not self.logo_path.is_file():
            log.warning("[RENDER] Logo not found at %s, using text header", self.logo_path)
            self.logo_path = None

        margin = settings.page.margin
        self.set_margins(margin, margin, margin)
        self.set_auto_page_break(auto=False)
        self.set_creation_date(generated_at.astimezone())

    def use_font(self, font: FontSpec) -> FontSpec:
        if font not in self._resolved:
            self._resolved[font] = apply_font(self, font, self.settings.fallback_font)
        used = self._resolved[font]
        self.set_font(used.family, used.style, used.size)
        return used

    def write_at(self, x: float, y: float, width: float, text: str, font: FontSpec, align: str = "L"):
        """Single line of text with its top at `y`."""
        used = self.use_font(font)
        self.set_xy(x, y)
        self.cell(width, used.size * self.settings.line_height_factor, printable(text, used), align=align)

    def header(self):
        margin = self.settings.page.margin
        self.set_text_color(*Color.TEXT)
        if self.logo_path is not None:
            try:
                self.image(str(self.logo_path), x=margin, y=45, w=self.settings.logo_width)
            except Exception as e:
                log.warning("[RENDER] Logo at %s unreadable, using text header: %s", self.logo_path, e)
                self.logo_path = None
        if self.logo_path is None:
            self.write_at(margin, 50, 0, self.settings.clinic_name, self.settings.banner_font)

        stamp = "Reporte Generado: " + self.generated_at.strftime(GENERATED_AT_FORMAT)
        self.write_at(200, 65, self.w - self.r_margin - 200, stamp, self.settings.body_font, align="R")

    def footer(self):
        self.set_text_color(*Color.MUTED)
        self.write_at(self.l_margin, self.h - 30, 0, f"Página {self.page_no()}", self.settings.legend_font, align="C")
        self.set_text_color(*Color.TEXT)


class DocumentRenderer:
    """Consumes placement decisions and row layouts and emits drawing operations.

    Heights are never recomputed here: rows are painted from the RowLayout
    the calculator produced, so layout and paint cannot diverge.
    """

    def __init__(self, settings: ReportSettings, metrics: TextMetrics, generated_at: datetime):
        self.settings = settings
        self.metrics = metrics
        self.pdf = AppointmentReportPDF(settings, generated_at)

    def begin(self, request: ReportRequest, summary: ReportSummary) -> float:
        """Open page 1 with the title block and table header; returns the table top."""
        pdf = self.pdf
        settings = self.settings
        margin = settings.page.margin
        pdf.add_page()

        y = settings.page.content_top
        title = f"Reporte de Citas - {REPORT_TYPE_LABELS[request.type]}"
        pdf.write_at(margin, y, 0, title, settings.title_font, align="C")
        y += self.metrics.line_height(settings.title_font) + 4
        period = f"Periodo: {request.start_date.isoformat()} al {request.end_date.isoformat()}"
        pdf.write_at(margin, y, 0, period, settings.subtitle_font, align="C")
        y += self.metrics.line_height(settings.subtitle_font) + 20

        stats = [
            f"Total Citas: {summary.total}",
            f"Completadas: {summary.completed}",
            f"Reservadas: {summary.reserved}",
            f"Canceladas: {summary.cancelled}",
        ]
        for i, text in enumerate(stats):
            pdf.write_at(margin + i * 100, y, 100, text, settings.body_font)
        y += self.metrics.line_height(settings.body_font) + 20

        self.draw_table_header(y)
        return y

    def draw_table_header(self, y: float):
        columns = self.settings.columns
        positions = {
            "time": columns.time_x,
            "patient": columns.patient_x,
            "clinician": columns.clinician_x,
            "status": columns.status_x,
            "flags": columns.flags_x,
        }
        self.pdf.set_text_color(*Color.TEXT)
        for key, x in positions.items():
            self.pdf.write_at(x, y, 0, COLUMN_LABELS[key], self.settings.header_font)

        rule_y = y + self.settings.page.table_rule_offset
        self.pdf.set_draw_color(*Color.TEXT)
        self.pdf.line(columns.table_left, rule_y, columns.table_left + columns.table_width, rule_y)

    def render_row(self, record: AppointmentViewRecord, layout: RowLayout, placement: Placement):
        pdf = self.pdf
        columns = self.settings.columns
        spacing = self.settings.spacing
        body_font = self.settings.body_font

        if placement.starts_new_page:
            pdf.add_page()
            self.draw_table_header(self.settings.page.content_top)

        y = placement.y
        if is_striped(placement.index):
            pdf.set_fill_color(*Color.ZEBRA)
            pdf.rect(columns.table_left, y - spacing.zebra_offset, columns.table_width, layout.total_height, style="F")

        pdf.set_text_color(*Color.TEXT)
        pdf.write_at(columns.time_x, y, columns.patient_x - columns.time_x, record.start_time.strftime("%H:%M"), body_font)
        self._draw_measured(columns.patient_x, y, columns.patient_width, layout.patient, body_font)
        self._draw_measured(columns.clinician_x, y, columns.clinician_width, layout.clinician, body_font)
        status = STATUS_LABELS.get(record.status, MISSING_LABEL)
        pdf.write_at(columns.status_x, y, columns.flags_x - columns.status_x, status, body_font)
        pdf.write_at(columns.flags_x, y, 0, flags_token(record), body_font)

        if layout.has_detail:
            self._draw_detail(layout, y + layout.base_height)

        rule_y = y + layout.total_height - spacing.row_rule_offset
        pdf.set_draw_color(*Color.ROW_RULE)
        pdf.line(columns.table_left, rule_y, columns.table_left + columns.table_width, rule_y)

    def finish(self, state: PageState) -> bytes:
        """Draw the legend on the current page and close the document."""
        self.pdf.set_text_color(*Color.MUTED)
        self.pdf.write_at(self.pdf.l_margin, state.cursor_y + 10, 0, LEGEND, self.settings.legend_font, align="C")
        self.pdf.set_text_color(*Color.TEXT)
        return bytes(self.pdf.output())

    def _draw_detail(self, layout: RowLayout, top: float):
        pdf = self.pdf
        columns = self.settings.columns
        spacing = self.settings.spacing
        detail_font = self.settings.detail_font
        title_font = self.settings.detail_title_font

        divider_y = top + spacing.detail_top_padding / 2
        pdf.set_draw_color(*Color.DIVIDER)
        pdf.line(columns.detail_col1_x, divider_y, columns.divider_right, divider_y)
        top += spacing.detail_top_padding

        y = top
        if layout.prescription_lines:
            pdf.write_at(columns.detail_col1_x, y, columns.detail_col1_width, PRESCRIPTIONS_TITLE, title_font)
            y += spacing.section_title_height
            for line in layout.prescription_lines:
                self._draw_measured(columns.detail_col1_x, y, columns.detail_col1_width, line, detail_font)
                y += line.height + spacing.prescription_gap

        y = top
        if layout.evaluation_summary is not None:
            pdf.write_at(columns.detail_col2_x, y, columns.detail_col2_width, EVALUATION_TITLE, title_font)
            y += spacing.section_title_height
            self._draw_measured(columns.detail_col2_x, y, columns.detail_col2_width, layout.evaluation_summary, detail_font)
            y += layout.evaluation_summary.height + spacing.evaluation_gap
        if layout.orthotic_label is not None:
            pdf.write_at(columns.detail_col2_x, y, columns.detail_col2_width, ORTHOTIC_TITLE, title_font)
            y += spacing.section_title_height
            pdf.write_at(columns.detail_col2_x, y, columns.detail_col2_width, layout.orthotic_label, detail_font)

    def _draw_measured(self, x: float, y: float, width: float, measured: MeasuredText, font: FontSpec):
        if not measured.lines:
            return
        line_height = measured.height / len(measured.lines)
        used = self.pdf.use_font(font)
        for i, line in enumerate(measured.lines):
            self.pdf.set_xy(x, y + i * line_height)
            self.pdf.cell(width, line_height, printable(line, used))
