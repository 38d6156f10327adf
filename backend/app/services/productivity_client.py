"""
Client for the appointments backend's monthly productivity summary.

Endpoint:
    GET {PRODUCTIVITY_API_URL}/Citas/doctor/{staff_id}/productividad-mensual
        ?mes=<1-12>&anio=<yyyy>

One call returns the whole month (totals + per-specialty counts), so a
report costs a single round trip regardless of how long its date range
is. Every failure mode (connection error, HTTP error status, bad JSON,
unexpected shape) is raised as ProductivityFetchError.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from app.config import settings
from app.models import ProductivitySummary
from app.schemas.reports import MonthlyProductivityResponse
from app.services.errors import ProductivityFetchError

logger = logging.getLogger(__name__)


class ProductivityClient:
    """Fetches monthly productivity summaries over HTTP.

    Usage:
        client = ProductivityClient()
        summary = await client.get_monthly_summary(staff_id=7, month=10, year=2026)

    Tests pass ``transport=httpx.MockTransport(handler)`` to avoid the
    network.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.PRODUCTIVITY_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.PRODUCTIVITY_API_TIMEOUT_SECONDS
        self.transport = transport

    async def get_monthly_summary(self, staff_id, month: int, year: int) -> ProductivitySummary:
        """Fetch the summary for one staff member and month.

        Raises:
            ProductivityFetchError: on any network, status or parse failure.
        """
        path = f"/Citas/doctor/{staff_id}/productividad-mensual"
        params = {"mes": month, "anio": year}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport,
            ) as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ProductivityFetchError(
                f"Productivity API returned {e.response.status_code} for staff {staff_id}",
                staff_id=staff_id,
            ) from e
        except httpx.HTTPError as e:
            raise ProductivityFetchError(
                f"Productivity API request failed: {e}", staff_id=staff_id,
            ) from e
        except ValueError as e:
            # response.json() on a non-JSON body
            raise ProductivityFetchError(
                f"Productivity API returned invalid JSON: {e}", staff_id=staff_id,
            ) from e

        try:
            parsed = MonthlyProductivityResponse.model_validate(payload)
        except ValidationError as e:
            raise ProductivityFetchError(
                f"Unexpected productivity payload: {e.error_count()} validation error(s)",
                staff_id=staff_id,
            ) from e

        summary = parsed.to_summary()
        logger.debug(
            "Fetched productivity for staff %s %02d/%d: %d scheduled, %d completed",
            staff_id, month, year, summary.scheduled, summary.completed,
        )
        return summary
