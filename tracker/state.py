"""Application state: the record list and the operations that change it."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .filters import filter_applications
from .forms import ApplicationDraft
from .models import ALL_STATUSES, Application, Status, utc_now
from .notifier import NotificationResult, Notifier, NullNotifier
from .spreadsheet import DEFAULT_SHEET_NAME, ImportResult, export_workbook, import_workbook
from .store import ApplicationStore

logger = logging.getLogger(__name__)


class ApplicationNotFoundError(LookupError):
    """No application with the given id."""


@dataclass
class EditResult:
    record: Application
    notification: Optional[NotificationResult] = None


class ApplicationState:
    """Holds the current list plus view state.

    Every mutation goes through add/edit/delete/import_file and is saved to
    the store before returning.
    """

    def __init__(
        self,
        store: ApplicationStore,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.notifier = notifier or NullNotifier()
        self.clock = clock
        self._items: list[Application] = []
        self.search = ""
        self.status_filter: Union[Status, str] = ALL_STATUSES
        self.editing: Optional[Application] = None

    @property
    def items(self) -> tuple[Application, ...]:
        return tuple(self._items)

    def load(self) -> None:
        self._items = self.store.load()

    def get(self, app_id: str) -> Application:
        for app in self._items:
            if app.id == app_id:
                return app
        raise ApplicationNotFoundError(app_id)

    # View state

    def set_search(self, text: str) -> None:
        self.search = text or ""

    def set_status_filter(self, value: Union[Status, str]) -> None:
        self.status_filter = value or ALL_STATUSES

    def visible(self) -> list[Application]:
        return filter_applications(self._items, self.search, self.status_filter)

    def begin_edit(self, app_id: str) -> Application:
        self.editing = self.get(app_id)
        return self.editing

    def cancel_edit(self) -> None:
        self.editing = None

    # Mutations

    def _commit(self, items: list[Application]) -> None:
        self.store.save(items)
        self._items = items

    def add(self, draft: ApplicationDraft) -> Application:
        app = draft.to_record(self.clock())
        self._commit([app] + self._items)
        logger.info(f"Added application {app.id}: {app.company_name} - {app.job_title}")
        return app

    def edit(self, app_id: str, draft: ApplicationDraft) -> EditResult:
        previous = self.get(app_id)
        updated = draft.apply_to(previous, self.clock())
        self._commit([updated if app.id == app_id else app for app in self._items])
        self.editing = None
        logger.info(f"Updated application {app_id}")

        notification = None
        if previous.status != updated.status:
            notification = self._notify(previous, updated)
        return EditResult(record=updated, notification=notification)

    def _notify(self, previous: Application, updated: Application) -> NotificationResult:
        try:
            return self.notifier.notify(previous, updated)
        except Exception as e:
            logger.warning(f"Status-change notification for {updated.id} failed: {e}")
            return NotificationResult(sent=False, message=f"تعذر إرسال الإشعار: {e}")

    def delete(self, app_id: str) -> Application:
        app = self.get(app_id)
        self._commit([item for item in self._items if item.id != app_id])
        if self.editing is not None and self.editing.id == app_id:
            self.editing = None
        logger.info(f"Deleted application {app_id}")
        return app

    def import_file(self, path: Union[str, Path]) -> ImportResult:
        """Prepend the records of a workbook. Raises SpreadsheetImportError untouched."""
        result = import_workbook(path, self.clock())
        if result.applications:
            self._commit(result.applications + self._items)
        logger.info(f"Imported {result.imported} applications, dropped {result.dropped} rows")
        return result

    def export_file(self, path: Union[str, Path], sheet_name: str = DEFAULT_SHEET_NAME) -> int:
        return export_workbook(self._items, path, sheet_name=sheet_name)
