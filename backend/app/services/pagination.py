"""
Pagination controller for the attendance report.

Layout is a single forward pass: blocks are drawn strictly in section
order, and before each block the controller is asked whether it still
fits. If it doesn't, the current page is closed and the block goes to the
top of a new page. There is no reordering and no backtracking.

    state = pager.ensure_space(state, height=7, reserve=ROW_RESERVE,
                               repeat_header=draw_column_headers)

"Fits" means ``cursor + height <= page_height - reserve``. The reserve is
the space kept free at the bottom of the page (footer, decorative band).
Two reserves are used:

- COARSE_RESERVE (80mm) before *starting* the detail table, so we don't
  print a table title with no room for rows under it;
- ROW_RESERVE (40mm) before every table row, the check that actually
  decides the break.

The controller is the only place a page is created. Section renderers
take a PageState and return a new one; they never hold on to it.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from app.models import PageState

logger = logging.getLogger(__name__)

COARSE_RESERVE = 80
ROW_RESERVE = 40


@dataclass(frozen=True)
class PageGeometry:
    """A4 portrait in millimetres."""
    width: float = 210
    height: float = 297
    top_margin: float = 20

    def limit(self, reserve: float) -> float:
        """Lowest cursor a block may reach with ``reserve`` left free."""
        return self.height - reserve


# Draws recurring content (e.g. table column headers) at the given cursor
# on a fresh page and returns the cursor below it.
HeaderRenderer = Callable[[object, PageState], PageState]
PageDecorator = Callable[[object, PageGeometry], None]


class PaginationController:
    """Owns page breaks for one report run.

    Args:
        surface: Drawing surface (CanvasSurface or a test double).
        geometry: Page size and margins.
        decorate_page: Called on every page just before it is closed,
            used for the decorative bottom band.
    """

    def __init__(
        self,
        surface,
        geometry: Optional[PageGeometry] = None,
        decorate_page: Optional[PageDecorator] = None,
    ):
        self.surface = surface
        self.geometry = geometry or PageGeometry()
        self.decorate_page = decorate_page
        self.page_count = 1

    def first_page(self) -> PageState:
        return PageState(cursor=self.geometry.top_margin, page_index=0)

    def fits(self, state: PageState, height: float, reserve: float) -> bool:
        return state.cursor + height <= self.geometry.limit(reserve)

    def ensure_space(
        self,
        state: PageState,
        height: float,
        reserve: float,
        repeat_header: Optional[HeaderRenderer] = None,
    ) -> PageState:
        """Return ``state`` if the block fits, else the state on a new page.

        When ``repeat_header`` is given it is drawn at the top of the new
        page and the returned cursor is below it.
        """
        if self.fits(state, height, reserve):
            return state

        new_state = self.new_page(state)
        if repeat_header is not None:
            new_state = repeat_header(self.surface, new_state)
        return new_state

    def new_page(self, state: PageState) -> PageState:
        """Close the current page and return the top of the next one."""
        self._close_page()
        self.page_count += 1
        logger.debug("Page break at cursor %.1f -> page %d", state.cursor, self.page_count)
        return PageState(cursor=self.geometry.top_margin, page_index=state.page_index + 1)

    def finish(self) -> bytes:
        """Decorate the last page and return the finished document bytes."""
        if self.decorate_page is not None:
            self.decorate_page(self.surface, self.geometry)
        return self.surface.save()

    def _close_page(self):
        if self.decorate_page is not None:
            self.decorate_page(self.surface, self.geometry)
        self.surface.show_page()
