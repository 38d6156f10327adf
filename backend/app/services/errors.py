"""
Exceptions raised by the report services.

None of these abort a report run: the orchestrator catches them at the
two non-critical seams (productivity fetch, logo load), logs a warning
and renders a degraded document instead.
"""


class ReportError(Exception):
    """Base class for report service errors."""


class ProductivityFetchError(ReportError):
    """The monthly productivity summary could not be fetched or parsed."""

    def __init__(self, message: str, staff_id=None):
        super().__init__(message)
        self.staff_id = staff_id


class AssetLoadError(ReportError):
    """A decorative asset (the clinic logo) could not be loaded."""
