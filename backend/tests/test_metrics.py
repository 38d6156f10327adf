"""
Tests for metric derivation and the aggregator's fetch step.
"""

from datetime import datetime, timezone

import pytest

from app.models import PerformanceTier, ProductivitySummary
from app.services.errors import ProductivityFetchError
from app.services.metrics import MetricAggregator, PlanningRatioPolicy, derive_metrics

from conftest import FIXED_NOW, FakeProductivityAPI


def test_busy_month():
    summary = ProductivitySummary(scheduled=20, completed=12, revenue=1_000_000)

    metrics = derive_metrics(summary, 160, PlanningRatioPolicy(1.1))

    assert metrics.attendance_rate == pytest.approx(60.0)
    assert metrics.performance_tier is PerformanceTier.FAIR
    assert metrics.patients_per_hour == pytest.approx(0.075)
    assert metrics.revenue_per_hour == pytest.approx(6250)
    assert metrics.revenue_per_visit == pytest.approx(83333.33, rel=1e-6)
    assert metrics.scheduled_hours == pytest.approx(176.0)
    assert metrics.compliance_rate == pytest.approx(90.909, rel=1e-4)
    assert metrics.overtime_hours == pytest.approx(-16.0)


def test_empty_month_is_all_zeros():
    metrics = derive_metrics(ProductivitySummary.empty(), 0, PlanningRatioPolicy(1.1))

    assert metrics.attendance_rate == 0
    assert metrics.patients_per_hour == 0
    assert metrics.revenue_per_hour == 0
    assert metrics.revenue_per_visit == 0
    assert metrics.scheduled_hours == 0
    assert metrics.compliance_rate == 0
    assert metrics.overtime_hours == 0
    assert metrics.performance_tier is PerformanceTier.LOW


def test_hours_without_appointments():
    metrics = derive_metrics(ProductivitySummary.empty(), 40, PlanningRatioPolicy(1.1))

    assert metrics.patients_per_hour == 0
    assert metrics.revenue_per_hour == 0
    assert metrics.scheduled_hours == pytest.approx(44.0)


def test_scheduled_hours_policy_is_swappable():
    summary = ProductivitySummary(scheduled=10, completed=10, revenue=0)

    metrics = derive_metrics(summary, 100, scheduled_hours_policy=lambda hours: 80)

    assert metrics.scheduled_hours == 80
    assert metrics.compliance_rate == pytest.approx(125.0)
    assert metrics.overtime_hours == pytest.approx(20.0)


def test_specialties_are_copied():
    specialties = {"Cardiology": 3}
    summary = ProductivitySummary(scheduled=3, completed=3, specialties=specialties)

    metrics = derive_metrics(summary, 10)
    specialties["Dermatology"] = 1

    assert metrics.specialties == {"Cardiology": 3}


@pytest.mark.parametrize("rate, tier", [
    (100, PerformanceTier.EXCELLENT),
    (90, PerformanceTier.EXCELLENT),
    (89.99, PerformanceTier.GOOD),
    (75, PerformanceTier.GOOD),
    (74.99, PerformanceTier.FAIR),
    (60, PerformanceTier.FAIR),
    (59.99, PerformanceTier.LOW),
    (0, PerformanceTier.LOW),
])
def test_performance_tier_thresholds(rate, tier):
    assert PerformanceTier.from_rate(rate) is tier


def test_planning_ratio_policy():
    assert PlanningRatioPolicy(1.1)(160) == pytest.approx(176.0)
    assert PlanningRatioPolicy(1.0)(8) == 8


# --- Fetch step ---

@pytest.mark.asyncio
async def test_fetch_asks_for_current_month_in_report_timezone():
    api = FakeProductivityAPI()
    aggregator = MetricAggregator(client=api.client())

    # 02:00 UTC on July 1st is still June in Santiago
    outcome = await aggregator.fetch(7, now=FIXED_NOW)

    assert outcome.ok
    assert api.requests[0].url.params["mes"] == "6"
    assert api.requests[0].url.params["anio"] == "2026"


@pytest.mark.asyncio
async def test_fetch_mid_month():
    api = FakeProductivityAPI()
    aggregator = MetricAggregator(client=api.client())

    await aggregator.fetch(7, now=datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc))

    assert api.requests[0].url.params["mes"] == "10"


@pytest.mark.asyncio
async def test_fetch_failure_is_returned_not_raised(failing_productivity_api):
    aggregator = MetricAggregator(client=failing_productivity_api.client())

    outcome = await aggregator.fetch(7, now=FIXED_NOW)

    assert not outcome.ok
    assert outcome.summary is None
    assert isinstance(outcome.error, ProductivityFetchError)


@pytest.mark.asyncio
async def test_derive_uses_aggregator_policy(productivity_api):
    aggregator = MetricAggregator(
        client=productivity_api.client(),
        scheduled_hours_policy=PlanningRatioPolicy(1.25),
    )
    outcome = await aggregator.fetch(7, now=FIXED_NOW)

    metrics = aggregator.derive(outcome.summary, 160)

    assert metrics.completed == 12
    assert metrics.scheduled_hours == pytest.approx(200.0)
