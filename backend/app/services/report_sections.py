"""
Section renderers for the attendance report.

Each report section is one function that takes the pagination controller,
the current PageState and the data it needs, draws onto
``pager.surface`` and returns the PageState after the section. Nothing
here keeps state between calls, so any section can be rendered on its own
from an arbitrary PageState (which is how the tests exercise them).

Sections, in document order:
1. Header: clinic identity, staff, title block, date range
2. Executive summary: three KPI cards
3. Clinical productivity: six metrics + performance badge
4. Specialty distribution (only when there is data)
5. Schedule compliance: four metrics
6. Attendance detail: table with recurring headers, at most 10 rows
7. Footer: closing band with generation time

All coordinates are millimetres from the top-left corner (see
report_surface.py). Text y values are baselines.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from reportlab.lib import colors

from app.models import AttendanceRecord, DerivedMetrics, PageState, PerformanceTier
from app.services.formatters import (
    PLACEHOLDER,
    format_date,
    format_hours,
    format_money,
    format_national_id,
    format_percent,
    format_time,
)
from app.services.pagination import ROW_RESERVE, PaginationController


# --- Brand Colors ---
BRAND_PRIMARY = colors.HexColor("#2980b9")     # Blue: section bands
BRAND_SECONDARY = colors.HexColor("#34495e")   # Slate: metric labels
BRAND_TEXT = colors.HexColor("#2c3e50")        # Dark: body text
BRAND_CELESTE = colors.HexColor("#3498db")     # Light blue: top band, table header
BRAND_ACCENT = colors.HexColor("#27ae60")      # Green: values, "Complete"
BRAND_CAUTION = colors.HexColor("#f39c12")     # Orange: revenue, Fair tier
BRAND_PURPLE = colors.HexColor("#9b59b6")      # Purple: title block, bottom band
BRAND_DANGER = colors.HexColor("#e74c3c")      # Red: Low tier
BRAND_OPEN = colors.HexColor("#f1c40f")        # Yellow: "Open" shifts
BRAND_CARD_BG = colors.HexColor("#f5f7fa")
BRAND_ROW_SHADE = colors.HexColor("#f9fafb")
BRAND_MUTED = colors.HexColor("#787878")

TIER_COLORS = {
    PerformanceTier.EXCELLENT: BRAND_ACCENT,
    PerformanceTier.GOOD: BRAND_CELESTE,
    PerformanceTier.FAIR: BRAND_CAUTION,
    PerformanceTier.LOW: BRAND_DANGER,
}

REPORT_NAME = "Professional Attendance Report - BETA v2.0"

# --- Layout constants (mm) ---
MARGIN_X = 15
CONTENT_X = 17
RIGHT_COLUMN_X = 110
VALUE_OFFSET = 45
HEADER_TOP = 18
HEADER_SEPARATOR_Y = 60
SECTION_TITLE_HEIGHT = 12
METRIC_ROW_HEIGHT = 6
KPI_CARD_HEIGHT = 20
KPI_BLOCK_HEIGHT = 28
BADGE_HEIGHT = 8
SPECIALTY_ROW_HEIGHT = 5
TABLE_HEADER_HEIGHT = 8
TABLE_ROW_HEIGHT = 7
FOOTER_OFFSET = 25
PAGE_BAND_HEIGHT = 8

DETAIL_ROW_LIMIT = 10
DETAIL_COLUMNS = [
    ("DATE", 17),
    ("CLOCK IN", 50),
    ("CLOCK OUT", 80),
    ("HOURS", 110),
    ("STATUS", 140),
]
STATUS_COMPLETE = "Complete"
STATUS_OPEN = "Open"


@dataclass(frozen=True)
class HeaderInfo:
    """Static text for the header and footer of one report."""
    clinic_name: str
    clinic_address: str
    clinic_phone: str
    clinic_email: str
    staff_name: str
    staff_national_id: Optional[str]
    range_label: str
    logo: object = None        # ImageReader, or None when it failed to load


# ------------------------------------------------------------------
# SHARED BLOCKS
# ------------------------------------------------------------------

def draw_page_band(surface, geometry):
    """Decorative purple band at the bottom of every page."""
    surface.fill_rect(0, geometry.height - PAGE_BAND_HEIGHT, geometry.width, PAGE_BAND_HEIGHT, BRAND_PURPLE)


def render_section_title(pager: PaginationController, state: PageState, title: str,
                         block_height: float = 0) -> PageState:
    """Full-width blue band with a white title.

    ``block_height`` is the content expected right under the title; if
    title and block don't fit above the row reserve, both move to the
    next page.
    """
    state = pager.ensure_space(state, SECTION_TITLE_HEIGHT + block_height, ROW_RESERVE)
    surface, width = pager.surface, pager.geometry.width
    y = state.cursor

    surface.fill_rect(MARGIN_X, y - 2, width - 2 * MARGIN_X, 7, BRAND_PRIMARY)
    surface.text(CONTENT_X, y + 3, title, font="Helvetica-Bold", size=11, color=colors.white)
    return state.advance(SECTION_TITLE_HEIGHT)


def render_metric_pairs(pager: PaginationController, state: PageState,
                        items: Sequence[tuple[str, str]]) -> PageState:
    """Label/value pairs laid out two per row."""
    surface = pager.surface
    for index, (label, value) in enumerate(items):
        x = CONTENT_X if index % 2 == 0 else RIGHT_COLUMN_X
        y = state.cursor + (index // 2) * METRIC_ROW_HEIGHT
        surface.text(x, y, f"{label}:", font="Helvetica-Bold", size=9, color=BRAND_SECONDARY)
        surface.text(x + VALUE_OFFSET, y, value, size=9, color=BRAND_ACCENT)
    return state.advance(math.ceil(len(items) / 2) * METRIC_ROW_HEIGHT)


def render_table_header(surface, state: PageState, columns, width: float) -> PageState:
    """Column header row; drawn again at the top of each continuation page."""
    y = state.cursor
    surface.fill_rect(MARGIN_X, y - 5, width - 2 * MARGIN_X, TABLE_HEADER_HEIGHT, BRAND_CELESTE)
    for title, x in columns:
        surface.text(x, y, title, font="Helvetica-Bold", size=8, color=colors.white)
    return state.advance(TABLE_HEADER_HEIGHT)


def render_table(
    pager: PaginationController,
    state: PageState,
    columns,
    rows: Sequence[Sequence[str]],
    cell_color: Optional[Callable[[int, str], object]] = None,
) -> PageState:
    """Table with recurring headers and alternating row shading.

    Every row is checked against the row reserve before it is drawn; when
    it doesn't fit, the page breaks and the column headers are repeated.
    """
    width = pager.geometry.width

    def repeat_header(surface, new_state):
        return render_table_header(surface, new_state, columns, width)

    state = render_table_header(pager.surface, state, columns, width)

    for index, row in enumerate(rows):
        state = pager.ensure_space(state, TABLE_ROW_HEIGHT, ROW_RESERVE, repeat_header=repeat_header)
        surface, y = pager.surface, state.cursor

        if index % 2 == 0:
            surface.fill_rect(MARGIN_X, y - 4, width - 2 * MARGIN_X, TABLE_ROW_HEIGHT, BRAND_ROW_SHADE)

        for col_index, ((_, x), value) in enumerate(zip(columns, row)):
            color = cell_color(col_index, value) if cell_color else BRAND_TEXT
            surface.text(x, y, value, size=8, color=color)

        state = state.advance(TABLE_ROW_HEIGHT)

    return state


# ------------------------------------------------------------------
# SECTION RENDERERS
# ------------------------------------------------------------------

def render_header(pager: PaginationController, state: PageState, info: HeaderInfo) -> PageState:
    """Clinic identity, staff member, title block and date range.

    Always the first thing on page one, so it uses fixed positions.
    """
    surface, width = pager.surface, pager.geometry.width
    y = HEADER_TOP

    surface.fill_rect(0, 0, width, 8, BRAND_CELESTE)

    if info.logo is not None:
        surface.image(info.logo, MARGIN_X, y, 35, 35)

    # Clinic identity
    surface.text(55, y + 5, info.clinic_name, font="Helvetica-Bold", size=16, color=BRAND_PRIMARY)
    surface.text(55, y + 11, info.clinic_address, size=8, color=BRAND_TEXT)
    surface.text(55, y + 15, info.clinic_phone, size=8, color=BRAND_TEXT)
    surface.text(55, y + 19, info.clinic_email, size=8, color=BRAND_TEXT)

    # Staff member
    surface.text(55, y + 27, info.staff_name, font="Helvetica-Bold", size=9, color=BRAND_SECONDARY)
    surface.text(55, y + 31, f"RUT: {format_national_id(info.staff_national_id)}", size=8, color=BRAND_TEXT)

    # Title block
    surface.fill_round_rect(115, y, 80, 35, 2, BRAND_PURPLE)
    surface.text(155, y + 9, "PROFESSIONAL", font="Helvetica-Bold", size=11, color=colors.white, align="center")
    surface.text(155, y + 16, "ATTENDANCE REPORT", font="Helvetica-Bold", size=11, color=colors.white, align="center")
    surface.text(155, y + 23, "BETA v2.0", size=7, color=colors.white, align="center")
    surface.text(155, y + 30, info.range_label, size=8, color=colors.white, align="center")

    surface.line(MARGIN_X, HEADER_SEPARATOR_Y, width - MARGIN_X, HEADER_SEPARATOR_Y, BRAND_CELESTE, 0.5)
    return state.at(HEADER_SEPARATOR_Y + 10)


def kpi_cards(metrics: DerivedMetrics) -> list[tuple[str, str, object]]:
    """(label, value, color) for the three executive KPI cards."""
    return [
        ("Hours Worked", format_hours(metrics.total_hours_worked), BRAND_ACCENT),
        ("Patients Attended", str(metrics.completed), BRAND_CELESTE),
        ("Revenue Generated", format_money(metrics.revenue), BRAND_CAUTION),
    ]


def render_kpi_grid(pager: PaginationController, state: PageState, metrics: DerivedMetrics) -> PageState:
    """Three equal cards side by side: big value, small label."""
    state = render_section_title(pager, state, "EXECUTIVE SUMMARY", KPI_BLOCK_HEIGHT)
    surface = pager.surface
    card_width = (pager.geometry.width - 40) / 3
    y = state.cursor

    for index, (label, value, color) in enumerate(kpi_cards(metrics)):
        x = CONTENT_X + index * card_width
        center = x + (card_width - 3) / 2
        surface.fill_round_rect(x, y, card_width - 3, KPI_CARD_HEIGHT, 2, BRAND_CARD_BG)
        surface.text(center, y + 10, value, font="Helvetica-Bold", size=16, color=color, align="center")
        surface.text(center, y + 16, label, size=7, color=BRAND_SECONDARY, align="center")

    return state.advance(KPI_BLOCK_HEIGHT)


def productivity_items(metrics: DerivedMetrics) -> list[tuple[str, str]]:
    return [
        ("Scheduled Appts", str(metrics.scheduled)),
        ("Completed Appts", str(metrics.completed)),
        ("Attendance Rate", format_percent(metrics.attendance_rate)),
        ("Patients/Hour", f"{metrics.patients_per_hour:.2f}"),
        ("Revenue/Hour", format_money(metrics.revenue_per_hour)),
        ("Revenue/Visit", format_money(metrics.revenue_per_visit)),
    ]


def render_productivity(pager: PaginationController, state: PageState, metrics: DerivedMetrics) -> PageState:
    """Six productivity metrics, then the colour-coded performance badge."""
    items = productivity_items(metrics)
    rows_height = math.ceil(len(items) / 2) * METRIC_ROW_HEIGHT
    state = render_section_title(pager, state, "CLINICAL PRODUCTIVITY", rows_height + 8 + BADGE_HEIGHT)
    state = render_metric_pairs(pager, state, items).advance(8)

    tier = metrics.performance_tier
    y = state.cursor
    pager.surface.fill_round_rect(CONTENT_X, y, 50, BADGE_HEIGHT, 2, TIER_COLORS[tier])
    pager.surface.text(CONTENT_X + 2, y + 5, f"Performance: {tier.value}",
                       font="Helvetica-Bold", size=9, color=colors.white)
    return state.advance(15)


def specialty_rows(metrics: DerivedMetrics) -> list[tuple[str, int, float]]:
    """(name, count, percent of scheduled) sorted by count, then name."""
    ordered = sorted(metrics.specialties.items(), key=lambda item: (-item[1], item[0]))
    return [
        (name, count, (count / metrics.scheduled * 100) if metrics.scheduled else 0.0)
        for name, count in ordered
    ]


def render_specialties(pager: PaginationController, state: PageState, metrics: DerivedMetrics) -> PageState:
    """Consultations per specialty. Skipped entirely when there is no data."""
    if not metrics.specialties:
        return state

    state = render_section_title(pager, state, "SPECIALTY DISTRIBUTION", SPECIALTY_ROW_HEIGHT)
    for name, count, percent in specialty_rows(metrics):
        state = pager.ensure_space(state, SPECIALTY_ROW_HEIGHT, ROW_RESERVE)
        y = state.cursor
        pager.surface.text(CONTENT_X, y, f"{name}:", size=8, color=BRAND_TEXT)
        pager.surface.text(80, y, f"{count} appointments ({percent:.1f}%)", size=8, color=BRAND_ACCENT)
        state = state.advance(SPECIALTY_ROW_HEIGHT)

    return state.advance(5)


def compliance_items(metrics: DerivedMetrics) -> list[tuple[str, str]]:
    balance_label = "Overtime" if metrics.overtime_hours >= 0 else "Shortfall"
    return [
        ("Scheduled Hours", format_hours(metrics.scheduled_hours)),
        ("Worked Hours", format_hours(metrics.total_hours_worked)),
        ("Compliance", format_percent(metrics.compliance_rate)),
        (balance_label, format_hours(abs(metrics.overtime_hours))),
    ]


def render_compliance(pager: PaginationController, state: PageState, metrics: DerivedMetrics) -> PageState:
    """Scheduled vs worked hours, compliance % and overtime/shortfall."""
    items = compliance_items(metrics)
    rows_height = math.ceil(len(items) / 2) * METRIC_ROW_HEIGHT
    state = render_section_title(pager, state, "SCHEDULE COMPLIANCE", rows_height)
    return render_metric_pairs(pager, state, items).advance(10)


def detail_row(record: AttendanceRecord) -> list[str]:
    """[date, clock in, clock out, hours, status] for one attendance record."""
    started = record.started_at
    duration = record.duration_hours
    return [
        format_date(started),
        format_time(started),
        format_time(record.clock_out) if record.clock_out else PLACEHOLDER,
        f"{duration:.2f}" if duration is not None else PLACEHOLDER,
        STATUS_COMPLETE if record.is_complete else STATUS_OPEN,
    ]


def _status_color(col_index: int, value: str):
    if col_index != len(DETAIL_COLUMNS) - 1:
        return BRAND_TEXT
    return BRAND_ACCENT if value == STATUS_COMPLETE else BRAND_OPEN


def render_detail_table(pager: PaginationController, state: PageState,
                        records: Sequence[AttendanceRecord]) -> PageState:
    """The most recent attendance records (first 10 of the sequence)."""
    state = render_section_title(pager, state, "ATTENDANCE DETAIL", TABLE_HEADER_HEIGHT)
    rows = [detail_row(record) for record in records[:DETAIL_ROW_LIMIT]]
    return render_table(pager, state, DETAIL_COLUMNS, rows, cell_color=_status_color)


def render_overflow_note(pager: PaginationController, state: PageState, total: int) -> PageState:
    """Italic note when the table was truncated. No-op for 10 or fewer rows."""
    if total <= DETAIL_ROW_LIMIT:
        return state
    state = state.advance(3)
    pager.surface.text(
        CONTENT_X, state.cursor,
        f"Showing {DETAIL_ROW_LIMIT} of {total} asistencias. See the clinic system for full detail.",
        font="Helvetica-Oblique", size=7, color=BRAND_MUTED,
    )
    return state


def render_footer(pager: PaginationController, state: PageState, info: HeaderInfo,
                  generated_at: datetime) -> PageState:
    """Closing band at a fixed position near the bottom of the current page."""
    surface, geometry = pager.surface, pager.geometry
    y = geometry.height - FOOTER_OFFSET

    surface.line(MARGIN_X, y, geometry.width - MARGIN_X, y, BRAND_CELESTE, 0.5)
    surface.text(geometry.width / 2, y + 6, REPORT_NAME, size=8, color=BRAND_TEXT, align="center")
    surface.text(
        geometry.width / 2, y + 10,
        f"Generated: {format_date(generated_at)} {format_time(generated_at)} - {info.clinic_name} System",
        font="Helvetica-Oblique", size=8, color=BRAND_MUTED, align="center",
    )
    return state.at(y + 10)
