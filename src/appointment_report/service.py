"""Report generation: validation, record fetch and the single render pass."""

import logging
import threading
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from appointment_report.constants import CONTENT_TYPE
from appointment_report.exceptions import (
    DataUnavailableError,
    InvalidReportRequest,
    ReportCancelled,
    ReportError,
    ReportRenderingError,
)
from appointment_report.layout import RowLayoutCalculator
from appointment_report.metrics import TextMetrics
from appointment_report.models import (
    AppointmentViewRecord,
    ReportDocument,
    ReportRequest,
    ReportSummary,
)
from appointment_report.normalizer import RecordSource
from appointment_report.pagination import Paginator
from appointment_report.renderer import DocumentRenderer
from appointment_report.settings import ReportSettings

log = logging.getLogger(__name__)


def parse_request(payload: ReportRequest | dict[str, Any]) -> ReportRequest:
    """Validate request fields; rejects before any other work starts."""
    if isinstance(payload, ReportRequest):
        return payload
    try:
        return ReportRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "request" for err in e.errors())
        raise InvalidReportRequest(f"Invalid report request: {fields}", errors=e.errors()) from e


def generate_appointment_report(
    payload: ReportRequest | dict[str, Any],
    source: RecordSource,
    settings: ReportSettings | None = None,
    *,
    cancel_event: threading.Event | None = None,
    generated_at: datetime | None = None,
) -> ReportDocument:
    """Generate the appointment report PDF for a date range.

    Raises InvalidReportRequest, DataUnavailableError, ReportRenderingError or
    ReportCancelled; a partial document is never returned.
    """
    request = parse_request(payload)
    settings = settings or ReportSettings()
    log.info("[REPORT] Generating %s report %s..%s", request.type, request.start_date, request.end_date)

    try:
        records = source.fetch(request.start_date, request.end_date)
    except DataUnavailableError:
        raise
    except Exception as e:
        log.error("[REPORT] Record source failed: %s", e)
        raise DataUnavailableError(f"Error getting appointments: {e}") from e

    return render_report(
        request,
        records,
        settings,
        cancel_event=cancel_event,
        generated_at=generated_at or datetime.now(),
    )


def render_report(
    request: ReportRequest,
    records: list[AppointmentViewRecord],
    settings: ReportSettings,
    *,
    cancel_event: threading.Event | None = None,
    generated_at: datetime,
) -> ReportDocument:
    """Run Layout -> Pagination -> Render over the records, in input order."""
    try:
        metrics = TextMetrics(settings)
        calculator = RowLayoutCalculator(metrics, settings)
        paginator = Paginator(settings.page)
        renderer = DocumentRenderer(settings, metrics, generated_at)

        table_top = renderer.begin(request, ReportSummary.from_records(records))
        state = paginator.start(table_top)
        for record in records:
            if cancel_event is not None and cancel_event.is_set():
                raise ReportCancelled("Report generation was cancelled")
            layout = calculator.calculate(record)
            placement, state = paginator.place(state, layout.total_height)
            renderer.render_row(record, layout, placement)

        state = paginator.finalize(state)
        content = renderer.finish(state)
    except ReportError:
        raise
    except Exception as e:
        log.error("[REPORT] Rendering failed: %s", e)
        raise ReportRenderingError(f"Error generando el reporte PDF: {e}") from e

    log.info("[REPORT] Rendered %d rows on %d pages", len(records), state.page_number)
    return ReportDocument(
        content=content,
        filename=request.filename,
        page_count=state.page_number,
        row_count=len(records),
        content_type=CONTENT_TYPE,
    )
