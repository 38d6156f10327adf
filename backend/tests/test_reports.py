"""
Integration tests for the report endpoint.

Tests cover:
- PDF download with filename and report headers
- Degraded report when the productivity API is down
- Request validation (date range, negative hours, missing staff)
- Clock times with and without a UTC offset in the same row
- Workbook download through the sibling xlsx endpoint
"""

import pytest
from httpx import AsyncClient

from app.main import app
from app.routers.reports import get_report_generator, get_workbook_generator
from app.services.workbook_report import XLSX_MEDIA_TYPE


def report_request(**overrides):
    body = {
        "staff": {
            "id": 7,
            "first_name": "Ana",
            "family_name": "Perez",
            "second_family_name": "Soto",
            "national_id": "12345678-5",
        },
        "attendance": [
            {
                "clock_in": "2026-06-30T12:00:00Z",
                "clock_out": "2026-06-30T20:00:00Z",
            },
            {
                "shift_start": "2026-06-29T12:00:00Z",
                "minutes_worked": 240,
            },
        ],
        "range_start": "2026-06-01",
        "range_end": "2026-06-30",
        "total_hours_worked": 12,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_download_attendance_report(client: AsyncClient, productivity_api):
    """POST returns a PDF attachment with the report filename."""
    response = await client.post("/api/v1/reports/attendance/pdf", json=report_request())

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert response.headers["content-disposition"] == (
        'attachment; filename="Report_BETA_Perez_2026-06-01_2026-06-30.pdf"'
    )
    assert response.headers["x-report-pages"] == "1"
    assert response.headers["x-report-degraded"] == "false"
    assert len(productivity_api.requests) == 1


@pytest.mark.asyncio
async def test_report_degraded_when_productivity_api_down(client: AsyncClient, failing_productivity_api):
    """The report still downloads; the header says it's incomplete."""
    app.dependency_overrides[get_report_generator] = failing_productivity_api.generator

    response = await client.post("/api/v1/reports/attendance/pdf", json=report_request())

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")
    assert response.headers["x-report-degraded"] == "true"


@pytest.mark.asyncio
async def test_report_range_end_before_start(client: AsyncClient):
    """range_end before range_start → 422."""
    response = await client.post(
        "/api/v1/reports/attendance/pdf",
        json=report_request(range_start="2026-06-30", range_end="2026-06-01"),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_report_negative_hours(client: AsyncClient):
    """Negative worked hours → 422."""
    response = await client.post(
        "/api/v1/reports/attendance/pdf",
        json=report_request(total_hours_worked=-1),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_report_missing_staff(client: AsyncClient):
    """Staff member is required."""
    body = report_request()
    del body["staff"]

    response = await client.post("/api/v1/reports/attendance/pdf", json=body)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_report_without_attendance(client: AsyncClient):
    """Attendance may be empty; the table is just headers."""
    response = await client.post("/api/v1/reports/attendance/pdf", json=report_request(attendance=[]))

    assert response.status_code == 200
    assert response.headers["x-report-pages"] == "1"


@pytest.mark.asyncio
async def test_report_with_clock_out_missing_timezone(client: AsyncClient):
    """A clock-out sent without an offset is read as UTC instead of failing."""
    body = report_request(attendance=[
        {"clock_in": "2026-06-30T08:00:00Z", "clock_out": "2026-06-30T16:00:00"},
    ])

    response = await client.post("/api/v1/reports/attendance/pdf", json=body)

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


# --- Workbook ---

@pytest.mark.asyncio
async def test_download_attendance_workbook(client: AsyncClient, productivity_api):
    """POST returns an xlsx attachment named after the staff member and month."""
    response = await client.post("/api/v1/reports/attendance/xlsx", json=report_request())

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert response.content.startswith(b"PK")
    assert response.headers["content-disposition"].startswith(
        'attachment; filename="Productivity_Report_Ana_Perez_'
    )
    assert response.headers["content-disposition"].endswith('_BETA.xlsx"')
    assert response.headers["x-report-sheets"] == "4"
    assert response.headers["x-report-degraded"] == "false"
    assert len(productivity_api.requests) == 1


@pytest.mark.asyncio
async def test_workbook_degraded_when_productivity_api_down(client: AsyncClient, failing_productivity_api):
    """The workbook still downloads with zeroed productivity."""
    app.dependency_overrides[get_workbook_generator] = failing_productivity_api.workbook_generator

    response = await client.post("/api/v1/reports/attendance/xlsx", json=report_request())

    assert response.status_code == 200
    assert response.headers["x-report-degraded"] == "true"


@pytest.mark.asyncio
async def test_workbook_validates_like_the_pdf(client: AsyncClient):
    """Same request body, same validation."""
    body = report_request(range_start="2026-06-30", range_end="2026-06-01")

    response = await client.post("/api/v1/reports/attendance/xlsx", json=body)

    assert response.status_code == 422
