"""Pagination engine: assigns whole rows to pages.

The engine only decides where rows go. It works on an explicit PageState
value and never draws, so it can be exercised without a PDF backend. A page
break is decided before a row is committed, which is what guarantees that no
row is ever split by a page edge.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum

from appointment_report.exceptions import PaginationError
from appointment_report.settings import PageGeometry

log = logging.getLogger(__name__)


class PaginationState(Enum):
    ON_PAGE = "on_page"
    PAGE_BREAK_REQUIRED = "page_break_required"
    HEADER_DRAWN = "header_drawn"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class PageState:
    """Vertical cursor and page counter of a single render pass."""

    cursor_y: float
    page_number: int = 1
    rows_on_page: int = 0


@dataclass(frozen=True)
class Placement:
    """Where one row is committed."""

    index: int
    page_number: int
    y: float
    height: float
    starts_new_page: bool = False

    @property
    def bottom(self) -> float:
        return self.y + self.height


class Paginator:
    """State machine that places rows of known height on pages."""

    def __init__(self, geometry: PageGeometry):
        self.content_top = geometry.content_top
        self.page_bottom = geometry.page_bottom
        self.table_header_height = geometry.table_header_height
        self.state = PaginationState.ON_PAGE
        self._next_index = 0

    @property
    def page_capacity(self) -> float:
        """Height available to rows on a page that starts with a table header."""
        return self.page_bottom - self.content_top - self.table_header_height

    def start(self, table_top: float) -> PageState:
        """Initial state: page 1 with the table header drawn at `table_top`."""
        self.state = PaginationState.ON_PAGE
        self._next_index = 0
        return PageState(cursor_y=table_top + self.table_header_height)

    def fits(self, state: PageState, height: float) -> bool:
        return state.cursor_y + height <= self.page_bottom

    def place(self, state: PageState, height: float) -> tuple[Placement, PageState]:
        """Place the next row; returns its placement and the advanced state."""
        if self.state is PaginationState.FINALIZED:
            raise PaginationError("Cannot place rows after the report was finalized")

        index = self._next_index
        self._next_index += 1
        starts_new_page = False

        # An empty page is only abandoned when a fresh page would actually help
        if not self.fits(state, height) and (state.rows_on_page > 0 or height <= self.page_capacity):
            self.state = PaginationState.PAGE_BREAK_REQUIRED
            state = self._new_page(state)
            starts_new_page = True

        if not self.fits(state, height):
            log.warning(
                "[PAGINATION] Row %d (%.1f pt) exceeds the page capacity of %.1f pt",
                index, height, self.page_capacity,
            )

        placement = Placement(
            index=index,
            page_number=state.page_number,
            y=state.cursor_y,
            height=height,
            starts_new_page=starts_new_page,
        )
        self.state = PaginationState.ON_PAGE
        return placement, replace(state, cursor_y=state.cursor_y + height, rows_on_page=state.rows_on_page + 1)

    def finalize(self, state: PageState) -> PageState:
        """Terminal transition; no rows may be placed afterwards."""
        self.state = PaginationState.FINALIZED
        log.info("[PAGINATION] Finalized after %d rows on %d pages", self._next_index, state.page_number)
        return state

    def _new_page(self, state: PageState) -> PageState:
        new_state = PageState(
            cursor_y=self.content_top + self.table_header_height,
            page_number=state.page_number + 1,
        )
        self.state = PaginationState.HEADER_DRAWN
        return new_state
