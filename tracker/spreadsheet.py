"""Excel import/export of job applications."""

import logging
import math
import zipfile
import zlib
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .dates import format_display_date, parse_date
from .models import Application, label_to_status, new_id, status_to_label

logger = logging.getLogger(__name__)

COL_COMPANY = "اسم الشركة"
COL_TITLE = "المسمى الوظيفي"
COL_APPLIED_AT = "تاريخ التقديم"
COL_SALARY = "الراتب المتوقع"
COL_STATUS = "الحالة"
COL_CONTACT_NAME = "الاسم"
COL_CONTACT_EMAIL = "البريد الإلكتروني"
COL_CONTACT_PHONE = "الهاتف"
COL_LINK = "رابط الإعلان"
COL_NOTES = "ملاحظات"

COLUMNS = [
    COL_COMPANY,
    COL_TITLE,
    COL_APPLIED_AT,
    COL_SALARY,
    COL_STATUS,
    COL_CONTACT_NAME,
    COL_CONTACT_EMAIL,
    COL_CONTACT_PHONE,
    COL_LINK,
    COL_NOTES,
]

DEFAULT_SHEET_NAME = "طلبات"


class SpreadsheetImportError(Exception):
    """The spreadsheet file could not be read at all."""


@dataclass
class ImportResult:
    """Records parsed from a sheet, in source order."""

    applications: list[Application] = field(default_factory=list)
    dropped: int = 0

    @property
    def imported(self) -> int:
        return len(self.applications)


def record_to_row(app: Application) -> dict[str, Any]:
    """Convert a record to a labelled spreadsheet row."""
    return {
        COL_COMPANY: app.company_name,
        COL_TITLE: app.job_title,
        COL_APPLIED_AT: format_display_date(app.applied_at),
        COL_SALARY: _salary_cell(app.expected_salary),
        COL_STATUS: status_to_label(app.status),
        COL_CONTACT_NAME: app.contact_name or "",
        COL_CONTACT_EMAIL: app.contact_email or "",
        COL_CONTACT_PHONE: app.contact_phone or "",
        COL_LINK: app.job_link or "",
        COL_NOTES: app.notes or "",
    }


def _salary_cell(value: Optional[float]) -> Union[int, float, str]:
    if value is None:
        return ""
    if float(value).is_integer():
        return int(value)
    return value


def export_workbook(
    applications: Iterable[Application],
    path: Union[str, Path],
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> int:
    """Write applications to a single-sheet workbook. Returns the row count."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.sheet_view.rightToLeft = True
    ws.append(COLUMNS)

    count = 0
    for app in applications:
        row = record_to_row(app)
        ws.append([row[label] if row[label] != "" else None for label in COLUMNS])
        # Text such as "=Acme" stays a literal string, never a formula.
        for cell in ws[ws.max_row]:
            if isinstance(cell.value, str):
                cell.data_type = "s"
        count += 1

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    logger.info(f"Exported {count} applications to {path}")
    return count


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _salary(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def _applied_at(value: Any, today: date) -> date:
    if _text(value) is None:
        return today
    parsed = parse_date(value)
    if parsed is None:
        logger.warning(f"Unparseable applied date {value!r}, using {today.isoformat()}")
        return today
    return parsed


def row_to_record(row: dict[str, Any], now: datetime) -> Optional[Application]:
    """Map a labelled row back to a record, or None if the row is dropped."""
    status = label_to_status(_text(row.get(COL_STATUS)) or "")
    if status is None:
        logger.debug(f"Dropping row with unknown status {row.get(COL_STATUS)!r}")
        return None

    company = _text(row.get(COL_COMPANY))
    title = _text(row.get(COL_TITLE))
    if company is None or title is None:
        logger.debug("Dropping row without company name or job title")
        return None

    return Application(
        id=new_id(),
        company_name=company,
        job_title=title,
        applied_at=_applied_at(row.get(COL_APPLIED_AT), now.date()),
        expected_salary=_salary(row.get(COL_SALARY)),
        status=status,
        contact_name=_text(row.get(COL_CONTACT_NAME)),
        contact_email=_text(row.get(COL_CONTACT_EMAIL)),
        contact_phone=_text(row.get(COL_CONTACT_PHONE)),
        job_link=_text(row.get(COL_LINK)),
        notes=_text(row.get(COL_NOTES)),
        created_at=now,
        updated_at=now,
    )


def _sheet_rows(ws) -> list[dict[str, Any]]:
    # Read-only sheets parse lazily; malformed XML raises ParseError (a SyntaxError) here.
    rows = ws.iter_rows(values_only=True)

    header = next(rows, None)
    if header is None:
        return []
    labels = [_text(cell) for cell in header]

    result = []
    for values in rows:
        if all(_text(cell) is None for cell in values):
            continue
        result.append(
            {label: cell for label, cell in zip(labels, values) if label is not None}
        )
    return result


def read_rows(path: Union[str, Path]) -> list[dict[str, Any]]:
    """Read the first sheet as a list of dicts keyed by the header row."""
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, SyntaxError, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise SpreadsheetImportError(f"Could not open spreadsheet {path}: {e}") from e

    try:
        if not wb.sheetnames:
            raise SpreadsheetImportError(f"Spreadsheet {path} has no sheets")
        ws = wb[wb.sheetnames[0]]
        return _sheet_rows(ws)
    except (SyntaxError, zipfile.BadZipFile, zlib.error, EOFError, KeyError, ValueError) as e:
        raise SpreadsheetImportError(f"Could not read spreadsheet {path}: {e}") from e
    finally:
        wb.close()


def import_workbook(path: Union[str, Path], now: datetime) -> ImportResult:
    """Parse a workbook into new records. Nothing is applied on failure."""
    result = ImportResult()
    for row in read_rows(path):
        app = row_to_record(row, now)
        if app is None:
            result.dropped += 1
            continue
        result.applications.append(app)

    logger.info(
        f"Parsed {result.imported} applications from {path} ({result.dropped} rows dropped)"
    )
    return result
