"""
PDF output for registrations (reportlab).
  - render_certificate: one registration, field/value grid
  - render_report: many registrations, one row each
Callers pass records they have already authorized. Rendering errors are
logged and reported as None so no request fails with a traceback.
"""

from datetime import datetime
from io import BytesIO
from typing import Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from vehicle_portal.models.registration import Registration
from vehicle_portal.utils.logger import get_logger

logger = get_logger(__name__)

HEADER_BLUE = colors.Color(41 / 255, 128 / 255, 185 / 255)
REPORT_COLUMNS = ["Owner", "Email", "Vehicle", "VIN", "License Plate", "Status"]


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _grid_style(zebra: bool = False) -> TableStyle:
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BLUE),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    if zebra:
        commands.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]))
    return TableStyle(commands)


def certificate_rows(registration: Registration) -> list:
    return [
        ["Field", "Details"],
        ["Owner Name", registration.owner_name],
        ["Owner Contact", registration.owner_contact],
        ["Make & Model", f"{registration.make} {registration.model}"],
        ["Vehicle Type", registration.vehicle_type],
        ["Year", str(registration.year)],
        ["VIN", registration.vin],
        ["License Plate", registration.license_plate],
        ["Registration Date", _fmt_date(registration.registration_date)],
        ["Expiry Date", _fmt_date(registration.expiry_date)],
        ["Status", registration.display_status],
    ]


def report_rows(registrations: Sequence[Registration]) -> list:
    rows = [list(REPORT_COLUMNS)]
    for r in registrations:
        rows.append([
            r.owner_name,
            r.owner.email if r.owner is not None else "N/A",
            f"{r.make} {r.model}",
            r.vin,
            r.license_plate,
            r.display_status,
        ])
    return rows


def render_certificate(registration: Registration) -> Optional[bytes]:
    try:
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Vehicle Registration {registration.license_plate}")
        styles = getSampleStyleSheet()
        table = Table(certificate_rows(registration), colWidths=[160, 300])
        table.setStyle(_grid_style())
        doc.build([
            Paragraph("Vehicle Registration Certificate", styles["Title"]),
            Paragraph(f"Date Issued: {_fmt_date(datetime.utcnow())}", styles["Normal"]),
            Spacer(1, 18),
            table,
            Spacer(1, 36),
            Paragraph("This is a computer-generated document and needs no signature.", styles["Italic"]),
        ])
        return buffer.getvalue()
    except Exception as e:
        logger.error(f"[REPORT] Certificate for registration {registration.id} failed: {e}", exc_info=True)
        return None


def render_report(registrations: Sequence[Registration]) -> Optional[bytes]:
    try:
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), title="Vehicle Registration Report")
        styles = getSampleStyleSheet()
        now = datetime.utcnow()
        table = Table(report_rows(registrations), repeatRows=1)
        table.setStyle(_grid_style(zebra=True))
        doc.build([
            Paragraph("Vehicle Registration Report", styles["Title"]),
            Paragraph(f"Generated on: {now:%Y-%m-%d} at {now:%H:%M:%S} UTC | "
                      f"Total Records: {len(registrations)}", styles["Normal"]),
            Spacer(1, 12),
            table,
        ])
        return buffer.getvalue()
    except Exception as e:
        logger.error(f"[REPORT] Report over {len(registrations)} registrations failed: {e}", exc_info=True)
        return None
