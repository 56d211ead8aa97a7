"""Data models for job application tracking."""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Status(str, Enum):
    """Stage of a job application."""

    NEW = "new"
    REVIEW = "review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WAITING = "waiting"


# Two aligned tables: STATUS_LABELS[i] is the display label of STATUS_CODES[i].
STATUS_CODES: tuple[Status, ...] = (
    Status.NEW,
    Status.REVIEW,
    Status.ACCEPTED,
    Status.REJECTED,
    Status.WAITING,
)

STATUS_LABELS: tuple[str, ...] = (
    "جديد",
    "قيد المراجعة",
    "مقبول",
    "مرفوض",
    "بانتظار الرد",
)

ALL_STATUSES = "all"


def _build_status_maps() -> tuple[dict[Status, str], dict[str, Status]]:
    if len(STATUS_CODES) != len(STATUS_LABELS):
        raise RuntimeError("Status code and label tables are not aligned")
    if set(STATUS_CODES) != set(Status):
        raise RuntimeError("Status code table does not cover every Status")

    to_label = dict(zip(STATUS_CODES, STATUS_LABELS))
    to_code = dict(zip(STATUS_LABELS, STATUS_CODES))
    if len(to_label) != len(STATUS_CODES) or len(to_code) != len(STATUS_LABELS):
        raise RuntimeError("Status labels must map one-to-one onto codes")
    return to_label, to_code


_LABEL_BY_STATUS, _STATUS_BY_LABEL = _build_status_maps()


def status_to_label(status: Status) -> str:
    """Get the Arabic display label for a status."""
    return _LABEL_BY_STATUS[Status(status)]


def label_to_status(label: str) -> Optional[Status]:
    """Look up a status by its display label, or None if unknown."""
    return _STATUS_BY_LABEL.get((label or "").strip())


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Application(BaseModel):
    """A tracked job application.

    Serialized with the camelCase names of the persistence slot
    (``companyName``, ``appliedAt``...), but populated by field name too.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    company_name: str = Field(min_length=1)
    job_title: str = Field(min_length=1)
    applied_at: date
    expected_salary: Optional[float] = Field(default=None, ge=0)
    status: Status
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    job_link: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def status_label(self) -> str:
        return status_to_label(self.status)

    def to_storage(self) -> dict:
        """Convert to the JSON object stored in the persistence slot."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def same_content(self, other: "Application") -> bool:
        """Compare everything except id and timestamps."""
        ignored = {"id", "created_at", "updated_at"}
        return self.model_dump(exclude=ignored) == other.model_dump(exclude=ignored)
