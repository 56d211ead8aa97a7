"""Validation of user-entered application fields."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .dates import parse_date
from .models import Application, Status, new_id

FIELD_MESSAGES = {
    "company_name": "اسم الشركة مطلوب",
    "job_title": "المسمى الوظيفي مطلوب",
    "applied_at": "تاريخ التقديم مطلوب",
    "expected_salary": "أدخل رقمًا صحيحًا",
    "status": "الحالة مطلوبة",
    "contact_email": "بريد إلكتروني غير صالح",
    "job_link": "رابط غير صالح",
}

INVALID_DATE_MESSAGE = "تاريخ غير صالح"

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(AnyUrl)


def _field_error(name: str, message: Optional[str] = None) -> PydanticCustomError:
    return PydanticCustomError("field_error", message or FIELD_MESSAGES[name])


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ApplicationDraft(BaseModel):
    """Validated form values, ready to become a record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    company_name: str
    job_title: str
    applied_at: date
    expected_salary: Optional[float] = None
    status: Status
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    job_link: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("company_name", "job_title", mode="before")
    @classmethod
    def _required_text(cls, value, info):
        if value is None or not str(value).strip():
            raise _field_error(info.field_name)
        return str(value)

    @field_validator("applied_at", mode="before")
    @classmethod
    def _applied_date(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise _field_error("applied_at")
        if isinstance(value, (date, datetime)):
            return parse_date(value)
        parsed = None
        if isinstance(value, str):
            try:
                parsed = datetime.fromisoformat(value.strip()).date()
            except ValueError:
                parsed = None
        if parsed is None:
            raise _field_error("applied_at", INVALID_DATE_MESSAGE)
        return parsed

    @field_validator("expected_salary", mode="before")
    @classmethod
    def _salary(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        if isinstance(value, bool):
            raise _field_error("expected_salary")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise _field_error("expected_salary")
        if not math.isfinite(number) or number < 0:
            raise _field_error("expected_salary")
        return number

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        try:
            return Status(value)
        except ValueError:
            raise _field_error("status")

    @field_validator("contact_email", mode="before")
    @classmethod
    def _email(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        try:
            return _email_adapter.validate_python(str(value))
        except ValidationError:
            raise _field_error("contact_email")

    @field_validator("job_link", mode="before")
    @classmethod
    def _link(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        try:
            _url_adapter.validate_python(str(value))
        except ValidationError:
            raise _field_error("job_link")
        return str(value)

    @field_validator("contact_name", "contact_phone", "notes", mode="before")
    @classmethod
    def _optional_text(cls, value):
        value = _blank_to_none(value)
        return None if value is None else str(value)

    def to_record(self, now: datetime) -> Application:
        """Build a new record with a fresh id."""
        return Application(
            id=new_id(),
            created_at=now,
            updated_at=now,
            **self.model_dump(),
        )

    def apply_to(self, existing: Application, now: datetime) -> Application:
        """Copy the draft over an existing record, keeping id and created_at."""
        return Application(
            id=existing.id,
            created_at=existing.created_at,
            updated_at=now,
            **self.model_dump(),
        )


@dataclass
class FormResult:
    """Either a valid draft or per-field error messages."""

    draft: Optional[ApplicationDraft] = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.draft is not None


def validate_form(values: Mapping[str, Any]) -> FormResult:
    """Validate raw form input (snake_case or camelCase keys)."""
    try:
        return FormResult(draft=ApplicationDraft.model_validate(dict(values)))
    except ValidationError as e:
        errors: dict[str, str] = {}
        for error in e.errors():
            name = _field_name(error["loc"])
            if name in errors:
                continue
            if error["type"] == "field_error":
                errors[name] = error["msg"]
            else:
                errors[name] = FIELD_MESSAGES.get(name, error["msg"])
        return FormResult(errors=errors)


def _field_name(loc: tuple) -> str:
    name = str(loc[0]) if loc else "__all__"
    for field_name, info in ApplicationDraft.model_fields.items():
        if name in (field_name, info.alias):
            return field_name
    return name


def draft_defaults(today: date) -> dict[str, Any]:
    """Values of a blank form."""
    return {
        "company_name": "",
        "job_title": "",
        "applied_at": today.isoformat(),
        "expected_salary": None,
        "status": Status.NEW.value,
        "contact_name": "",
        "contact_email": "",
        "contact_phone": "",
        "job_link": "",
        "notes": "",
    }


def draft_from_record(record: Application) -> dict[str, Any]:
    """Form values pre-filled from an existing record."""
    return {
        "company_name": record.company_name,
        "job_title": record.job_title,
        "applied_at": record.applied_at.isoformat(),
        "expected_salary": record.expected_salary,
        "status": record.status.value,
        "contact_name": record.contact_name or "",
        "contact_email": record.contact_email or "",
        "contact_phone": record.contact_phone or "",
        "job_link": record.job_link or "",
        "notes": record.notes or "",
    }
