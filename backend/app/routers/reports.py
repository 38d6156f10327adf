"""
Report API endpoints.

1. POST /reports/attendance/pdf: render an attendance report and download it
2. POST /reports/attendance/xlsx: the same report as an Excel workbook

Both documents are generated on the fly for each request and never
stored. The caller supplies the staff member, the attendance rows and
the worked hours; productivity figures are fetched from the appointments
backend during the request. If that fetch fails the document is still
returned, with zeroed productivity and ``X-Report-Degraded: true``.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.schemas.reports import AttendanceReportRequest
from app.services.attendance_report import AttendanceReportGenerator, ReportArtifact
from app.services.workbook_report import AttendanceWorkbookGenerator

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


def get_report_generator() -> AttendanceReportGenerator:
    """Dependency so tests can swap in a generator with a mock transport."""
    return AttendanceReportGenerator()


def get_workbook_generator() -> AttendanceWorkbookGenerator:
    return AttendanceWorkbookGenerator()


def _download(artifact: ReportArtifact, **headers) -> Response:
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "X-Report-Degraded": "true" if artifact.degraded else "false",
            **headers,
        },
    )


@router.post("/attendance/pdf")
async def download_attendance_report(
    request: AttendanceReportRequest,
    generator: AttendanceReportGenerator = Depends(get_report_generator),
):
    """Generate the attendance/productivity report for one staff member."""
    artifact = await generator.generate(request.to_run_input())
    return _download(artifact, **{"X-Report-Pages": str(artifact.page_count)})


@router.post("/attendance/xlsx")
async def download_attendance_workbook(
    request: AttendanceReportRequest,
    generator: AttendanceWorkbookGenerator = Depends(get_workbook_generator),
):
    """Generate the productivity workbook (dashboard, appointments, attendance, statistics)."""
    artifact = await generator.generate(request.to_run_input())
    return _download(artifact, **{"X-Report-Sheets": str(artifact.page_count)})
