"""Derived list state: status filter, search, pagination and stats."""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Literal

from jobtracker.schemas.application import (
    Application,
    ApplicationStats,
    ApplicationStatus,
)

ALL = "all"

StatusFilter = ApplicationStatus | Literal["all"]

SEARCH_FIELDS = ("company_name", "position_title", "location", "source")


def parse_status_filter(value: str | None) -> StatusFilter:
    """Parse a status filter; raises ValueError for unknown values."""
    if value is None or value == ALL:
        return ALL
    return ApplicationStatus(value)


def matches_status(application: Application, status: StatusFilter) -> bool:
    return status == ALL or application.status == status


def matches_query(application: Application, query: str) -> bool:
    """Case-insensitive substring match against the searchable fields."""
    needle = query.strip().lower()
    if not needle:
        return True
    return any(
        needle in (getattr(application, field) or "").lower()
        for field in SEARCH_FIELDS
    )


def filter_applications(
    applications: Iterable[Application],
    status: StatusFilter = ALL,
    query: str = "",
) -> list[Application]:
    return [
        app
        for app in applications
        if matches_status(app, status) and matches_query(app, query)
    ]


@dataclass(frozen=True)
class Page:
    """One page of a filtered list."""

    items: list[Application]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(items: Sequence[Application], page: int, page_size: int) -> Page:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    if page < 1:
        raise ValueError("page must be 1 or greater")
    total_pages = math.ceil(len(items) / page_size)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=total_pages,
    )


def compute_stats(applications: Sequence[Application]) -> ApplicationStats:
    """Counts per status over the full, unfiltered set."""
    counts = {status.value: 0 for status in ApplicationStatus}
    for app in applications:
        counts[app.status.value] += 1
    return ApplicationStats(
        total=len(applications),
        applied=counts[ApplicationStatus.APPLIED.value],
        interview=counts[ApplicationStatus.INTERVIEW.value],
        offer=counts[ApplicationStatus.OFFER.value],
        rejected=counts[ApplicationStatus.REJECTED.value],
        counts=counts,
    )


@dataclass(frozen=True)
class ListViewState:
    """Filter, search and page selection of the list view."""

    status: StatusFilter = ALL
    query: str = ""
    page: int = 1

    def with_status(self, status: StatusFilter) -> "ListViewState":
        return replace(self, status=status, page=1)

    def with_query(self, query: str) -> "ListViewState":
        return replace(self, query=query, page=1)

    def with_page(self, page: int) -> "ListViewState":
        return replace(self, page=page)

    def query_params(self) -> dict[str, str]:
        """URL parameters; defaults are left out."""
        params = {}
        if self.status != ALL:
            params["status"] = ApplicationStatus(self.status).value
        if self.query.strip():
            params["q"] = self.query
        if self.page != 1:
            params["page"] = str(self.page)
        return params


@dataclass(frozen=True)
class DerivedList:
    """Everything the list view renders, derived from one fetched record set."""

    state: ListViewState
    filtered: list[Application]
    page: Page
    stats: ApplicationStats


def derive_list(
    applications: Sequence[Application], state: ListViewState, page_size: int
) -> DerivedList:
    filtered = filter_applications(applications, state.status, state.query)
    return DerivedList(
        state=state,
        filtered=filtered,
        page=paginate(filtered, state.page, page_size),
        stats=compute_stats(applications),
    )
