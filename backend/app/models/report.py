"""
Domain types for the attendance/productivity report.

These are plain dataclasses, not database models: the report service
never persists anything. Each type states which fields are required and
what the fallback is when an optional one is missing, so renderers can
rely on the values without re-checking them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


@dataclass(frozen=True)
class StaffMember:
    """The clinician the report is about."""
    id: int
    first_name: str
    family_name: str                       # Paternal surname, used in the filename
    second_family_name: str = ""
    national_id: Optional[str] = None      # Chilean RUT, rendered "N/A" when absent

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.family_name, self.second_family_name]
        return " ".join(p for p in parts if p)


@dataclass(frozen=True)
class AttendanceRecord:
    """One shift instance.

    Fallback rules:
    - duration = clock_out - clock_in when both are present (negative
      values pass through; a time without timezone is taken as UTC),
      else minutes_worked / 60 when non-zero, else unknown.
    - the row date/entry time comes from clock_in, else shift_start.
    """
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    minutes_worked: Optional[float] = None
    shift_start: Optional[datetime] = None

    @property
    def started_at(self) -> Optional[datetime]:
        return self.clock_in or self.shift_start

    @property
    def duration_hours(self) -> Optional[float]:
        if self.clock_in and self.clock_out:
            return (_as_utc(self.clock_out) - _as_utc(self.clock_in)).total_seconds() / 3600
        if self.minutes_worked:
            return self.minutes_worked / 60
        return None

    @property
    def is_complete(self) -> bool:
        return self.clock_out is not None


@dataclass(frozen=True)
class ReportRunInput:
    """Everything the caller supplies for one report run.

    The reporting range only labels the document and names the file;
    productivity figures always cover the current calendar month.
    """
    staff: StaffMember
    attendance: list[AttendanceRecord]
    range_start: date
    range_end: date
    total_hours_worked: float = 0.0


@dataclass(frozen=True)
class Appointment:
    """One appointment of the month, as listed by the appointments backend.

    ``status`` is the backend's own value ("Completada", "Confirmada", ...).
    """
    attended_at: Optional[datetime] = None
    patient_name: Optional[str] = None
    specialty: Optional[str] = None
    status: Optional[str] = None
    amount: float = 0.0


@dataclass(frozen=True)
class ProductivitySummary:
    """Monthly appointment aggregate for one staff member."""
    scheduled: int = 0
    completed: int = 0
    revenue: float = 0.0
    specialties: dict[str, int] = field(default_factory=dict)
    appointments: list[Appointment] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ProductivitySummary":
        """Zeroed summary used when the fetch fails."""
        return cls()


class PerformanceTier(str, Enum):
    """Coarse bucket from the attendance rate (thresholds closed-above)."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    LOW = "Low"

    @classmethod
    def from_rate(cls, attendance_rate: float) -> "PerformanceTier":
        if attendance_rate >= 90:
            return cls.EXCELLENT
        if attendance_rate >= 75:
            return cls.GOOD
        if attendance_rate >= 60:
            return cls.FAIR
        return cls.LOW


@dataclass(frozen=True)
class DerivedMetrics:
    """Indicators computed fresh for each run, plus the inputs behind them."""
    total_hours_worked: float
    scheduled: int
    completed: int
    revenue: float
    specialties: dict[str, int]
    attendance_rate: float
    patients_per_hour: float
    revenue_per_hour: float
    revenue_per_visit: float
    scheduled_hours: float
    compliance_rate: float
    overtime_hours: float
    performance_tier: PerformanceTier


@dataclass(frozen=True)
class PageState:
    """Where the next block goes: millimetres from the top edge, 0-based page."""
    cursor: float
    page_index: int = 0

    def advance(self, height: float) -> "PageState":
        return PageState(cursor=self.cursor + height, page_index=self.page_index)

    def at(self, cursor: float) -> "PageState":
        return PageState(cursor=cursor, page_index=self.page_index)
