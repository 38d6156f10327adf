"""
Excel workbook export of the attendance/productivity report.

Same fetch, same zeroed fallback and same metrics as the PDF; only the
layout differs. Four sheets:
1. Dashboard: staff and period, KPIs, productivity table, specialties
2. Appointments: every appointment of the month with a total row
3. Attendance: every attendance record (the PDF stops at 10)
4. Statistics: attendance and productivity summaries

Dates and times are written as display strings in the report timezone,
the same strings the PDF prints. Money and ratios are written as numbers
with an Excel number format, so the sheet can still be summed and sorted.
"""

import logging
import re
from datetime import datetime
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from app.config import settings
from app.models import DerivedMetrics, ProductivitySummary, ReportRunInput, StaffMember
from app.services.attendance_report import ReportArtifact, summary_or_empty
from app.services.formatters import (
    PLACEHOLDER,
    format_date,
    format_national_id,
    format_range_label,
    format_time,
    now_local,
)
from app.services.metrics import MetricAggregator
from app.services.report_sections import DETAIL_COLUMNS, detail_row, specialty_rows

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SHEET_DASHBOARD = "Dashboard"
SHEET_APPOINTMENTS = "Appointments"
SHEET_ATTENDANCE = "Attendance"
SHEET_STATISTICS = "Statistics"

# Appointment states as the appointments backend names them
STATUS_COMPLETED = "Completada"
STATUS_CONFIRMED = "Confirmada"
STATUS_MISSING = "Pending"

MONEY_FORMAT = '"$"#,##0'
PERCENT_FORMAT = "0.0%"
HOURS_FORMAT = "0.0"
RATIO_FORMAT = "0.00"

# --- Styles (ARGB) ---
COLOR_TEXT = "FF2C3E50"
COLOR_WHITE = "FFFFFFFF"
COLOR_HEADER = "FF3498DB"
COLOR_PURPLE = "FF9B59B6"
COLOR_GREEN = "FF27AE60"
COLOR_ORANGE = "FFF39C12"
COLOR_RED = "FFE74C3C"
COLOR_MUTED = "FF7F8C8D"

TIER_FILLS = {
    "Excellent": COLOR_GREEN,
    "Good": COLOR_HEADER,
    "Fair": COLOR_ORANGE,
    "Low": COLOR_RED,
}


def _fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


TITLE_FILL = _fill("FFECF0F1")
SHADE_FILL = _fill("FFF8F9FA")
HEADER_FILL = _fill(COLOR_HEADER)
HEADER_FONT = Font(name="Calibri", size=11, bold=True, color=COLOR_WHITE)
BODY_FONT = Font(name="Calibri", size=11)
THIN = Side(style="thin", color="FFD5DBDB")
CELL_BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)
CENTER = Alignment(horizontal="center", vertical="center")


def workbook_filename(staff: StaffMember, period: datetime) -> str:
    """Productivity_Report_<first>_<family>_<month>-<year>_BETA.xlsx"""
    name = "_".join(part for part in (staff.first_name, staff.family_name) if part)
    name = re.sub(r"[\\/\s]+", "_", name.strip()) or "staff"
    return f"Productivity_Report_{name}_{period.month}-{period.year}_BETA.xlsx"


# ------------------------------------------------------------------
# SHEET HELPERS
# ------------------------------------------------------------------

def _set_widths(ws: Worksheet, widths: list[float]):
    for index, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(index)].width = width


def _section_title(ws: Worksheet, row: int, text: str, last_column: str = "E"):
    ws.merge_cells(f"B{row}:{last_column}{row}")
    cell = ws[f"B{row}"]
    cell.value = text
    cell.font = Font(name="Calibri", size=14, bold=True, color=COLOR_TEXT)
    cell.fill = TITLE_FILL
    cell.alignment = Alignment(horizontal="left", vertical="center", indent=1)
    ws.row_dimensions[row].height = 25


def _write_table(ws: Worksheet, row: int, header: list[str], rows: list, first_column: int = 2) -> int:
    """Header row plus body rows with borders and shading on even rows.

    A body value may be a ``(value, number_format)`` pair. Returns the
    first row after the table.
    """
    for offset, title in enumerate(header):
        cell = ws.cell(row=row, column=first_column + offset, value=title)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = CENTER
        cell.border = CELL_BORDER

    for index, values in enumerate(rows, start=1):
        for offset, value in enumerate(values):
            number_format = None
            if isinstance(value, tuple):
                value, number_format = value
            cell = ws.cell(row=row + index, column=first_column + offset, value=value)
            cell.font = BODY_FONT
            cell.border = CELL_BORDER
            if number_format:
                cell.number_format = number_format
            if index % 2 == 0:
                cell.fill = SHADE_FILL

    return row + len(rows) + 1


# ------------------------------------------------------------------
# SHEETS
# ------------------------------------------------------------------

def _dashboard(ws: Worksheet, run_input: ReportRunInput, metrics: DerivedMetrics, generated_at: datetime):
    ws.title = SHEET_DASHBOARD
    ws.sheet_properties.tabColor = COLOR_PURPLE
    _set_widths(ws, [3, 22, 22, 25, 22, 3])

    ws.merge_cells("B1:E1")
    ws["B1"] = "PROFESSIONAL PRODUCTIVITY REPORT"
    ws["B1"].font = Font(name="Calibri", size=18, bold=True, color=COLOR_WHITE)
    ws["B1"].fill = _fill(COLOR_PURPLE)
    ws["B1"].alignment = CENTER
    ws.row_dimensions[1].height = 35
    ws["B2"] = f"{settings.CLINIC_NAME} - BETA v2.0"
    ws["B2"].font = Font(name="Calibri", size=10, italic=True, color=COLOR_MUTED)

    staff = run_input.staff
    details = [
        ("Professional", staff.full_name),
        ("RUT", format_national_id(staff.national_id)),
        ("Period", format_range_label(run_input.range_start, run_input.range_end)),
        ("Generated", f"{format_date(generated_at)} {format_time(generated_at)}"),
    ]
    for row, (label, value) in enumerate(details, start=4):
        ws.cell(row=row, column=2, value=label).font = Font(name="Calibri", size=11, bold=True)
        ws.cell(row=row, column=3, value=value).font = BODY_FONT

    # Executive summary: label row over value row
    _section_title(ws, 9, "EXECUTIVE SUMMARY")
    kpis = [
        ("Hours Worked", metrics.total_hours_worked, HOURS_FORMAT, COLOR_HEADER),
        ("Patients Attended", metrics.completed, "0", COLOR_GREEN),
        ("Revenue Generated", metrics.revenue, MONEY_FORMAT, COLOR_ORANGE),
    ]
    for column, (label, value, number_format, color) in enumerate(kpis, start=2):
        label_cell = ws.cell(row=10, column=column, value=label)
        label_cell.font = Font(name="Calibri", size=11, bold=True, color=COLOR_MUTED)
        label_cell.alignment = CENTER
        value_cell = ws.cell(row=11, column=column, value=value)
        value_cell.font = Font(name="Calibri", size=22, bold=True, color=color)
        value_cell.number_format = number_format
        value_cell.alignment = CENTER
    ws.row_dimensions[11].height = 35

    _section_title(ws, 13, "CLINICAL PRODUCTIVITY")
    tier = metrics.performance_tier.value
    next_row = _write_table(ws, 14, ["Metric", "Value", "Status"], [
        ("Attendance Rate", (metrics.attendance_rate / 100, PERCENT_FORMAT), tier),
        ("Patients/Hour", (metrics.patients_per_hour, RATIO_FORMAT), PLACEHOLDER),
        ("Revenue/Hour", (metrics.revenue_per_hour, MONEY_FORMAT), PLACEHOLDER),
        ("Revenue/Visit", (metrics.revenue_per_visit, MONEY_FORMAT), PLACEHOLDER),
        ("Scheduled Appts", metrics.scheduled, PLACEHOLDER),
        ("Completed Appts", metrics.completed, PLACEHOLDER),
    ])
    badge = ws.cell(row=15, column=4)
    badge.fill = _fill(TIER_FILLS[tier])
    badge.font = HEADER_FONT

    if metrics.specialties:
        title_row = next_row + 1
        _section_title(ws, title_row, "SPECIALTY DISTRIBUTION")
        _write_table(ws, title_row + 1, ["Specialty", "Appointments", "Share"], [
            (name, count, (percent / 100, PERCENT_FORMAT))
            for name, count, percent in specialty_rows(metrics)
        ])


def _appointments(ws: Worksheet, summary: ProductivitySummary):
    ws.sheet_properties.tabColor = COLOR_HEADER
    _set_widths(ws, [15, 10, 30, 25, 15, 15])

    rows = [
        (
            format_date(appointment.attended_at),
            format_time(appointment.attended_at),
            appointment.patient_name or "N/A",
            appointment.specialty or "N/A",
            appointment.status or STATUS_MISSING,
            (appointment.amount, MONEY_FORMAT),
        )
        for appointment in summary.appointments
    ]
    total_row = _write_table(
        ws, 1, ["Date", "Time", "Patient", "Specialty", "Status", "Amount"], rows, first_column=1,
    )

    for row in range(2, total_row):
        status_cell = ws.cell(row=row, column=5)
        color = {STATUS_COMPLETED: COLOR_GREEN, STATUS_CONFIRMED: COLOR_ORANGE}.get(status_cell.value, COLOR_RED)
        status_cell.font = Font(name="Calibri", size=11, bold=True, color=color)

    ws.cell(row=total_row, column=4, value="TOTAL")
    ws.cell(row=total_row, column=5, value=summary.completed)
    ws.cell(row=total_row, column=6, value=summary.revenue).number_format = MONEY_FORMAT
    for column in range(1, 7):
        cell = ws.cell(row=total_row, column=column)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL

    ws.freeze_panes = "A2"
    ws.auto_filter.ref = f"A1:F{total_row - 1}"


def _attendance(ws: Worksheet, run_input: ReportRunInput):
    ws.sheet_properties.tabColor = COLOR_ORANGE
    _set_widths(ws, [15, 12, 12, 10, 12])
    _write_table(
        ws, 1, [title for title, _ in DETAIL_COLUMNS],
        [detail_row(record) for record in run_input.attendance],
        first_column=1,
    )
    ws.freeze_panes = "A2"


def _most_productive_day(run_input: ReportRunInput) -> str:
    timed = [r for r in run_input.attendance if r.duration_hours is not None]
    if not timed:
        return PLACEHOLDER
    best = max(timed, key=lambda r: r.duration_hours)
    return format_date(best.started_at)


def _statistics(ws: Worksheet, run_input: ReportRunInput, metrics: DerivedMetrics):
    ws.sheet_properties.tabColor = COLOR_GREEN
    _set_widths(ws, [5, 34, 20, 5])

    ws.merge_cells("B2:C2")
    ws["B2"] = "STATISTICS"
    ws["B2"].font = Font(name="Calibri", size=18, bold=True, color=COLOR_WHITE)
    ws["B2"].fill = _fill(COLOR_GREEN)
    ws["B2"].alignment = CENTER

    days = len(run_input.attendance)
    hours = metrics.total_hours_worked
    _section_title(ws, 4, "ATTENDANCE SUMMARY", last_column="C")
    _write_table(ws, 5, ["Metric", "Value"], [
        ("Days worked", days),
        ("Total hours", (hours, HOURS_FORMAT)),
        ("Average hours per day", (hours / days if days else 0.0, RATIO_FORMAT)),
        ("Most productive day", _most_productive_day(run_input)),
    ])

    _section_title(ws, 11, "PRODUCTIVITY SUMMARY", last_column="C")
    _write_table(ws, 12, ["Metric", "Value"], [
        ("Scheduled appointments", metrics.scheduled),
        ("Completed appointments", metrics.completed),
        ("Attendance rate", (metrics.attendance_rate / 100, PERCENT_FORMAT)),
        ("Total revenue", (metrics.revenue, MONEY_FORMAT)),
        ("Average revenue per appointment", (metrics.revenue_per_visit, MONEY_FORMAT)),
    ])

    ws.merge_cells("B19:C19")
    ws["B19"] = f"NOTE: '{STATUS_CONFIRMED}' appointments are paid but not yet attended (follow-up required)."
    ws["B19"].font = Font(name="Calibri", size=10, italic=True, color=COLOR_MUTED)
    ws["B19"].alignment = Alignment(wrap_text=True, vertical="center")
    ws.row_dimensions[19].height = 30


def build_workbook(
    run_input: ReportRunInput,
    summary: ProductivitySummary,
    metrics: DerivedMetrics,
    generated_at: datetime,
) -> Workbook:
    """Lay out every sheet. Synchronous; no I/O."""
    workbook = Workbook()
    workbook.properties.creator = settings.CLINIC_NAME

    _dashboard(workbook.active, run_input, metrics, generated_at)
    _appointments(workbook.create_sheet(SHEET_APPOINTMENTS), summary)
    _attendance(workbook.create_sheet(SHEET_ATTENDANCE), run_input)
    _statistics(workbook.create_sheet(SHEET_STATISTICS), run_input, metrics)
    return workbook


class AttendanceWorkbookGenerator:
    """Generates the productivity workbook for one staff member.

    Usage:
        generator = AttendanceWorkbookGenerator()
        artifact = await generator.generate(run_input)
    """

    def __init__(self, aggregator: Optional[MetricAggregator] = None):
        self.aggregator = aggregator or MetricAggregator()

    async def generate(self, run_input: ReportRunInput, now: Optional[datetime] = None) -> ReportArtifact:
        generated_at = now_local(now)
        staff = run_input.staff
        warnings: list[str] = []

        outcome = await self.aggregator.fetch(staff.id, now=generated_at)
        summary = summary_or_empty(outcome, staff.id, warnings)
        metrics = self.aggregator.derive(summary, run_input.total_hours_worked)

        workbook = build_workbook(run_input, summary, metrics, generated_at)
        buffer = BytesIO()
        workbook.save(buffer)

        filename = workbook_filename(staff, generated_at)
        logger.info(
            "Generated %s (%d sheet(s), degraded=%s)", filename, len(workbook.sheetnames), not outcome.ok,
            extra={"staff_id": staff.id, "report_filename": filename},
        )
        return ReportArtifact(
            filename=filename,
            content=buffer.getvalue(),
            page_count=len(workbook.sheetnames),
            degraded=not outcome.ok,
            warnings=warnings,
            media_type=XLSX_MEDIA_TYPE,
        )
