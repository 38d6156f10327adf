"""
Attendance report orchestrator.

Runs one report end to end:
1. Fetch this month's productivity summary and load the clinic logo
   (the only two awaits, done concurrently before any layout)
2. Derive the metrics (zeros if the fetch failed)
3. Render the sections in fixed order on a fresh surface
4. Return the PDF as a ReportArtifact with its derived filename

A report is always produced. A failed fetch or a missing logo is logged,
recorded on the artifact (``degraded`` / ``warnings``) and the run goes
on with zeros or without the image.

Each call builds its own surface, pagination controller and page state,
so concurrent runs share nothing.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from reportlab.lib.utils import ImageReader

from app.config import settings
from app.models import DerivedMetrics, ProductivitySummary, ReportRunInput, StaffMember
from app.services.errors import AssetLoadError
from app.services.formatters import format_range_label, now_local
from app.services.metrics import FetchOutcome, MetricAggregator
from app.services.pagination import COARSE_RESERVE, PaginationController
from app.services.report_sections import (
    REPORT_NAME,
    SECTION_TITLE_HEIGHT,
    TABLE_HEADER_HEIGHT,
    HeaderInfo,
    draw_page_band,
    render_compliance,
    render_detail_table,
    render_footer,
    render_header,
    render_kpi_grid,
    render_overflow_note,
    render_productivity,
    render_specialties,
)
from app.services.report_surface import CanvasSurface

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


@dataclass
class ReportArtifact:
    """A finished document plus what happened while making it.

    ``page_count`` is pages for a PDF and sheets for a workbook.
    """
    filename: str
    content: bytes
    page_count: int
    degraded: bool = False
    warnings: list[str] = field(default_factory=list)
    media_type: str = PDF_MEDIA_TYPE

    def save(self, directory) -> Path:
        """Write the document into ``directory`` (created if needed)."""
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_bytes(self.content)
        return path


def summary_or_empty(outcome: FetchOutcome, staff_id, warnings: list[str]) -> ProductivitySummary:
    """The fetched summary, or zeros (logged and added to ``warnings``) if the fetch failed."""
    if outcome.ok:
        return outcome.summary
    logger.warning(
        "Productivity data unavailable for staff %s, rendering with zeros: %s",
        staff_id, outcome.error, extra={"staff_id": staff_id},
    )
    warnings.append(f"productivity: {outcome.error}")
    return ProductivitySummary.empty()


def report_filename(staff: StaffMember, range_start: date, range_end: date) -> str:
    """Report_BETA_<family name>_<start>_<end>.pdf"""
    family_name = re.sub(r"[\\/]+", "_", staff.family_name.strip()) or "staff"
    return f"Report_BETA_{family_name}_{range_start.isoformat()}_{range_end.isoformat()}.pdf"


def read_logo(path: str) -> ImageReader:
    """Load the clinic logo. Blocking; run it in a thread.

    Raises:
        AssetLoadError: if the file is missing or not a readable image.
    """
    logo_path = Path(path)
    if not logo_path.is_file():
        raise AssetLoadError(f"Logo not found: {logo_path}")
    try:
        image = ImageReader(str(logo_path))
        image.getSize()  # forces the decode so a corrupt file fails here
    except Exception as e:
        raise AssetLoadError(f"Logo could not be read: {logo_path} ({e})") from e
    return image


class AttendanceReportGenerator:
    """Generates the paginated attendance/productivity PDF for one staff member.

    Usage:
        generator = AttendanceReportGenerator()
        artifact = await generator.generate(run_input)
        artifact.save("reports/")
    """

    def __init__(self, aggregator: Optional[MetricAggregator] = None, logo_path: Optional[str] = None):
        self.aggregator = aggregator or MetricAggregator()
        self.logo_path = logo_path if logo_path is not None else settings.CLINIC_LOGO_PATH

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    async def generate(self, run_input: ReportRunInput, now: Optional[datetime] = None) -> ReportArtifact:
        """Fetch, aggregate and render one report. Never fails on data problems."""
        generated_at = now_local(now)
        staff = run_input.staff
        warnings: list[str] = []

        outcome, (logo, logo_error) = await asyncio.gather(
            self.aggregator.fetch(staff.id, now=generated_at),
            self._load_logo(),
        )

        summary = summary_or_empty(outcome, staff.id, warnings)

        if logo_error:
            warnings.append(f"logo: {logo_error}")

        metrics = self.aggregator.derive(summary, run_input.total_hours_worked)
        content, page_count = self.render(run_input, metrics, logo=logo, generated_at=generated_at)

        filename = report_filename(staff, run_input.range_start, run_input.range_end)
        logger.info(
            "Generated %s (%d page(s), degraded=%s)", filename, page_count, not outcome.ok,
            extra={"staff_id": staff.id, "report_filename": filename, "page_count": page_count},
        )
        return ReportArtifact(
            filename=filename,
            content=content,
            page_count=page_count,
            degraded=not outcome.ok,
            warnings=warnings,
        )

    def render(
        self,
        run_input: ReportRunInput,
        metrics: DerivedMetrics,
        logo=None,
        generated_at: Optional[datetime] = None,
        surface=None,
    ) -> tuple[bytes, int]:
        """Lay out every section. Synchronous; no I/O.

        Returns the document bytes and the number of pages. Pass
        ``surface`` to draw somewhere other than a new PDF canvas.
        """
        staff = run_input.staff
        if surface is None:
            surface = CanvasSurface(
                title=f"{REPORT_NAME} - {staff.full_name}",
                author=settings.CLINIC_NAME,
            )
        pager = PaginationController(surface, decorate_page=draw_page_band)
        info = self._header_info(run_input, logo)

        state = pager.first_page()
        state = render_header(pager, state, info)
        state = render_kpi_grid(pager, state, metrics)
        state = render_productivity(pager, state, metrics)
        state = render_specialties(pager, state, metrics)
        state = render_compliance(pager, state, metrics)

        # Don't start the table if its title and header can't fit
        state = pager.ensure_space(state, SECTION_TITLE_HEIGHT + TABLE_HEADER_HEIGHT, COARSE_RESERVE)
        state = render_detail_table(pager, state, run_input.attendance)
        state = render_overflow_note(pager, state, len(run_input.attendance))
        render_footer(pager, state, info, generated_at or now_local())

        content = pager.finish()
        return content, pager.page_count

    # ------------------------------------------------------------------
    # HELPERS
    # ------------------------------------------------------------------

    def _header_info(self, run_input: ReportRunInput, logo) -> HeaderInfo:
        staff = run_input.staff
        return HeaderInfo(
            clinic_name=settings.CLINIC_NAME,
            clinic_address=settings.CLINIC_ADDRESS,
            clinic_phone=settings.CLINIC_PHONE,
            clinic_email=settings.CLINIC_EMAIL,
            staff_name=staff.full_name,
            staff_national_id=staff.national_id,
            range_label=format_range_label(run_input.range_start, run_input.range_end),
            logo=logo,
        )

    async def _load_logo(self) -> tuple[Optional[ImageReader], Optional[str]]:
        """(image, None) on success, (None, reason) on failure, (None, None) if unset."""
        if not self.logo_path:
            return None, None
        try:
            return await asyncio.to_thread(read_logo, self.logo_path), None
        except AssetLoadError as e:
            logger.warning("Rendering without clinic logo: %s", e)
            return None, str(e)
