"""
Test fixtures shared across the test suite.

Architecture:
- No network: the productivity API is faked with httpx.MockTransport,
  which hands every request to a plain Python function.
- Layout tests draw onto a RecordingSurface instead of a real canvas. It
  stores every draw call with the page it landed on, so tests assert
  positions and texts without parsing PDFs.
- The HTTP test client uses the real FastAPI app through ASGITransport,
  with the report generator dependency pointed at the fake API.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.models import AttendanceRecord, ReportRunInput, StaffMember
from app.routers.reports import get_report_generator, get_workbook_generator
from app.services.attendance_report import AttendanceReportGenerator
from app.services.metrics import MetricAggregator
from app.services.pagination import PaginationController
from app.services.productivity_client import ProductivityClient
from app.services.workbook_report import AttendanceWorkbookGenerator

# July: Santiago is UTC-4, so 02:00Z is still June 30th locally
FIXED_NOW = datetime(2026, 7, 1, 2, 0, tzinfo=timezone.utc)


# --- Drawing surface double ---

@dataclass
class DrawCall:
    page: int
    name: str
    args: tuple
    kwargs: dict = field(default_factory=dict)


class RecordingSurface:
    """Stands in for CanvasSurface and remembers what was drawn where."""

    def __init__(self):
        self.calls: list[DrawCall] = []
        self.page = 0
        self.saved = False

    def _record(self, name, *args, **kwargs):
        self.calls.append(DrawCall(self.page, name, args, kwargs))

    def fill_rect(self, x, y, w, h, color):
        self._record("fill_rect", x, y, w, h, color)

    def fill_round_rect(self, x, y, w, h, radius, color):
        self._record("fill_round_rect", x, y, w, h, radius, color)

    def line(self, x1, y1, x2, y2, color, width=0.5):
        self._record("line", x1, y1, x2, y2, color, width)

    def text(self, x, y, text, **kwargs):
        self._record("text", x, y, text, **kwargs)

    def image(self, image, x, y, w, h):
        self._record("image", image, x, y, w, h)

    def show_page(self):
        self.page += 1

    def save(self) -> bytes:
        self.saved = True
        return b"%PDF-recording"

    # --- Query helpers ---

    def texts(self, page=None) -> list[str]:
        return [c.args[2] for c in self.text_calls(page)]

    def text_calls(self, page=None) -> list[DrawCall]:
        return [
            c for c in self.calls
            if c.name == "text" and (page is None or c.page == page)
        ]

    def calls_named(self, name) -> list[DrawCall]:
        return [c for c in self.calls if c.name == name]


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def pager(surface):
    return PaginationController(surface)


# --- Fake productivity API ---

def productivity_payload(total=20, completed=12, revenue=1_000_000, specialties=None, citas=None):
    """Response body in the appointments backend's own field names."""
    return {
        "citas": citas or [],
        "resumen": {
            "total_citas": total,
            "citas_completadas": completed,
            "total_ingresos": revenue,
            "especialidades": specialties or {},
        },
    }


class FakeProductivityAPI:
    """Answers every request with one canned response and keeps the requests."""

    base_url = "http://productivity.test"

    def __init__(self, payload=None, status_code=200):
        self.payload = payload if payload is not None else productivity_payload()
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> ProductivityClient:
        return ProductivityClient(base_url=self.base_url, transport=httpx.MockTransport(self.handler))

    def generator(self) -> AttendanceReportGenerator:
        return AttendanceReportGenerator(
            aggregator=MetricAggregator(client=self.client()),
            logo_path="",
        )

    def workbook_generator(self) -> AttendanceWorkbookGenerator:
        return AttendanceWorkbookGenerator(aggregator=MetricAggregator(client=self.client()))


@pytest.fixture
def productivity_api():
    return FakeProductivityAPI()


@pytest.fixture
def failing_productivity_api():
    return FakeProductivityAPI(payload={"error": "maintenance"}, status_code=503)


# --- Report inputs ---

@pytest.fixture
def staff():
    return StaffMember(
        id=7,
        first_name="Ana",
        family_name="Perez",
        second_family_name="Soto",
        national_id="12345678-5",
    )


def make_records(count, start=datetime(2026, 6, 30, 12, 0, tzinfo=timezone.utc)):
    """``count`` completed 8-hour shifts, most recent first."""
    return [
        AttendanceRecord(
            clock_in=start - timedelta(days=i),
            clock_out=start - timedelta(days=i) + timedelta(hours=8),
        )
        for i in range(count)
    ]


@pytest.fixture
def empty_run(staff):
    """No attendance, no hours."""
    return ReportRunInput(
        staff=staff,
        attendance=[],
        range_start=date(2026, 6, 1),
        range_end=date(2026, 6, 30),
        total_hours_worked=0.0,
    )


@pytest.fixture
def busy_run(staff):
    """15 attendance records, 160 hours worked."""
    return ReportRunInput(
        staff=staff,
        attendance=make_records(15),
        range_start=date(2026, 6, 1),
        range_end=date(2026, 6, 30),
        total_hours_worked=160.0,
    )


# --- HTTP client ---

@pytest_asyncio.fixture
async def client(productivity_api):
    """Async HTTP test client against the real app and the fake productivity API."""
    app.dependency_overrides[get_report_generator] = productivity_api.generator
    app.dependency_overrides[get_workbook_generator] = productivity_api.workbook_generator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
