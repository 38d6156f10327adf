from app.models.report import (
    Appointment,
    AttendanceRecord,
    DerivedMetrics,
    PageState,
    PerformanceTier,
    ProductivitySummary,
    ReportRunInput,
    StaffMember,
)

__all__ = [
    "Appointment",
    "StaffMember",
    "AttendanceRecord",
    "ReportRunInput",
    "ProductivitySummary",
    "PerformanceTier",
    "DerivedMetrics",
    "PageState",
]
