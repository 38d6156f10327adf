"""
Metric aggregation for the attendance report.

Two steps:
1. ``MetricAggregator.fetch`` asks the productivity API for the current
   calendar month and returns a ``FetchOutcome`` (summary or error). It
   never raises; the caller decides what an error means.
2. ``derive_metrics`` is a pure function from (summary, worked hours) to
   ``DerivedMetrics``. Every ratio is guarded: a zero denominator gives 0.

Scheduled hours are not known yet; they are estimated from worked hours
by a scheduled-hours policy (any callable worked_hours -> scheduled_hours).
The default ``PlanningRatioPolicy`` adds 10% until real schedule data is
available.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.config import settings
from app.models import DerivedMetrics, PerformanceTier, ProductivitySummary
from app.services.errors import ProductivityFetchError
from app.services.formatters import now_local
from app.services.productivity_client import ProductivityClient


class PlanningRatioPolicy:
    """Scheduled hours = worked hours x ratio."""

    def __init__(self, ratio: float = 1.1):
        self.ratio = ratio

    def __call__(self, worked_hours: float) -> float:
        return worked_hours * self.ratio

    def __repr__(self):
        return f"PlanningRatioPolicy(ratio={self.ratio})"


def default_scheduled_hours_policy() -> PlanningRatioPolicy:
    return PlanningRatioPolicy(ratio=settings.SCHEDULED_HOURS_RATIO)


@dataclass
class FetchOutcome:
    """Result of the productivity fetch: exactly one of summary / error."""
    summary: Optional[ProductivitySummary] = None
    error: Optional[ProductivityFetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.summary is not None


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator * scale


def derive_metrics(
    summary: ProductivitySummary,
    total_hours_worked: float,
    scheduled_hours_policy=None,
) -> DerivedMetrics:
    """Compute every report indicator from one summary and the worked hours."""
    policy = scheduled_hours_policy or default_scheduled_hours_policy()
    hours = total_hours_worked or 0.0

    attendance_rate = _ratio(summary.completed, summary.scheduled, 100)
    scheduled_hours = policy(hours)

    return DerivedMetrics(
        total_hours_worked=hours,
        scheduled=summary.scheduled,
        completed=summary.completed,
        revenue=summary.revenue,
        specialties=dict(summary.specialties),
        attendance_rate=attendance_rate,
        patients_per_hour=_ratio(summary.completed, hours),
        revenue_per_hour=_ratio(summary.revenue, hours),
        revenue_per_visit=_ratio(summary.revenue, summary.completed),
        scheduled_hours=scheduled_hours,
        compliance_rate=_ratio(hours, scheduled_hours, 100),
        overtime_hours=hours - scheduled_hours,
        performance_tier=PerformanceTier.from_rate(attendance_rate),
    )


class MetricAggregator:
    """Fetches this month's productivity and turns it into DerivedMetrics.

    Usage:
        aggregator = MetricAggregator()
        outcome = await aggregator.fetch(staff_id=7)
        summary = outcome.summary if outcome.ok else ProductivitySummary.empty()
        metrics = aggregator.derive(summary, total_hours_worked=160)
    """

    def __init__(self, client: Optional[ProductivityClient] = None, scheduled_hours_policy=None):
        self.client = client or ProductivityClient()
        self.scheduled_hours_policy = scheduled_hours_policy or default_scheduled_hours_policy()

    async def fetch(self, staff_id, now: Optional[datetime] = None) -> FetchOutcome:
        """Fetch the current calendar month's summary. No retries.

        The month is taken in the report timezone, so a report generated
        at 22:00 on the 31st in Santiago still asks for that month.
        """
        today = now_local(now)
        try:
            summary = await self.client.get_monthly_summary(
                staff_id, month=today.month, year=today.year,
            )
        except ProductivityFetchError as e:
            return FetchOutcome(error=e)
        return FetchOutcome(summary=summary)

    def derive(self, summary: ProductivitySummary, total_hours_worked: float) -> DerivedMetrics:
        return derive_metrics(summary, total_hours_worked, self.scheduled_hours_policy)
