"""Constants for the appointment report."""

from appointment_report.models import AppointmentStatus


class Color:
    """Fill and stroke colors used by the renderer."""

    ZEBRA = (249, 249, 249)
    DIVIDER = (221, 221, 221)
    ROW_RULE = (238, 238, 238)
    TEXT = (0, 0, 0)
    MUTED = (128, 128, 128)


# Table header
COLUMN_LABELS = {
    "time": "Hora",
    "patient": "Paciente",
    "clinician": "Podólogo",
    "status": "Estado",
    "flags": "Extras",
}

STATUS_LABELS = {
    AppointmentStatus.RESERVED: "Reservada",
    AppointmentStatus.COMPLETED: "Completada",
    AppointmentStatus.CANCELLED: "Cancelada",
}
MISSING_LABEL = "N/A"

REPORT_TYPE_LABELS = {"day": "Diario", "week": "Semanal"}

# Detail block
PRESCRIPTIONS_TITLE = "MEDICACIÓN RECETADA:"
EVALUATION_TITLE = "EVALUACIÓN PIE:"
ORTHOTIC_TITLE = "ÓRTESIS:"
EVALUATION_FALLBACK = "Registrada"
BULLET = "• "

LEGEND = "Leyenda Extras: R=Receta, D=Documentos, E=Evaluación, O=Órtesis"
GENERATED_AT_FORMAT = "%d/%m/%Y %H:%M:%S"

CONTENT_TYPE = "application/pdf"
