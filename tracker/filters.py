"""Search and status filtering of the application list."""

from typing import Iterable, Union

from .models import ALL_STATUSES, Application, Status


def matches(app: Application, search: str = "", status_filter: Union[Status, str] = ALL_STATUSES) -> bool:
    """Check a single application against the search text and status filter."""
    by_company = search.strip().lower() in app.company_name.lower()
    by_status = status_filter == ALL_STATUSES or app.status == status_filter
    return by_company and by_status


def filter_applications(
    applications: Iterable[Application],
    search: str = "",
    status_filter: Union[Status, str] = ALL_STATUSES,
) -> list[Application]:
    """Return the applications to display, in store order."""
    return [app for app in applications if matches(app, search or "", status_filter)]
