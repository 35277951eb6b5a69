from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Union

from app.core.errors import (
    INVALID_FORMAT,
    MISSING_FIELD,
    CandidateValidationError,
    FieldError,
    InvalidFormat,
    MalformedInput,
    MissingField,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", re.IGNORECASE)

REQUIRED_CANDIDATE_FIELDS = ("firstName", "lastName", "email")

EDUCATION_REQUIRED = ("institution", "degree")
EDUCATION_TEXT = ("fieldOfStudy",)
WORK_EXPERIENCE_REQUIRED = ("company", "position")
WORK_EXPERIENCE_TEXT = ("description",)
DATE_FIELDS = ("startDate", "endDate")


@dataclass(frozen=True)
class RawString:
    """Nested list as submitted in a multipart form: a JSON document."""

    text: str


@dataclass(frozen=True)
class Structured:
    items: list[Any]


NestedInput = Union[RawString, Structured]


@dataclass
class CandidateInput:
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    educations: list[dict[str, Any]] = field(default_factory=list)
    work_experiences: list[dict[str, Any]] = field(default_factory=list)


def is_valid_email(value: str | None) -> bool:
    if not value:
        return False
    return EMAIL_RE.match(value.strip()) is not None


def as_nested_input(value: Any, *, field_name: str) -> NestedInput:
    if isinstance(value, (RawString, Structured)):
        return value
    if value is None:
        return Structured([])
    if isinstance(value, str):
        return RawString(value)
    if isinstance(value, (list, tuple)):
        return Structured(list(value))
    raise MalformedInput(f"{field_name} must be a list or a JSON-encoded list.")


def resolve_nested(value: Any, *, field_name: str) -> list[dict[str, Any]]:
    """Turn either representation of a nested list into a list of dicts."""
    nested = as_nested_input(value, field_name=field_name)
    if isinstance(nested, RawString):
        text = nested.text.strip()
        if not text:
            return []
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            raise MalformedInput(f"{field_name} must be a valid JSON array.")
        if decoded is None:
            return []
        if not isinstance(decoded, list):
            raise MalformedInput(f"{field_name} must be a valid JSON array.")
        items = decoded
    else:
        items = nested.items

    for item in items:
        if not isinstance(item, dict):
            raise MalformedInput(f"Each entry in {field_name} must be an object.")
    return items


def parse_date(value: Any) -> date | None:
    """Accepts YYYY-MM-DD or a full ISO timestamp; empty means absent."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _check_entry(
    entry: dict[str, Any],
    *,
    prefix: str,
    required: tuple[str, ...],
    text_fields: tuple[str, ...],
) -> list[FieldError]:
    errors: list[FieldError] = []
    for name in required:
        if _is_blank(entry.get(name)):
            errors.append(FieldError(f"{prefix}.{name}", MISSING_FIELD, f"{name} is required"))
    for name in text_fields:
        value = entry.get(name)
        if value is not None and not isinstance(value, str):
            errors.append(FieldError(f"{prefix}.{name}", INVALID_FORMAT, f"{name} must be text"))
    for name in DATE_FIELDS:
        try:
            parse_date(entry.get(name))
        except ValueError:
            errors.append(FieldError(f"{prefix}.{name}", INVALID_FORMAT, f"{name} must be a date (YYYY-MM-DD)"))
    return errors


def validate_candidate(data: CandidateInput) -> list[FieldError]:
    errors: list[FieldError] = []
    for name, value in zip(REQUIRED_CANDIDATE_FIELDS, (data.first_name, data.last_name, data.email)):
        if _is_blank(value):
            errors.append(FieldError(name, MISSING_FIELD, f"{name} is required"))

    if not _is_blank(data.email) and not is_valid_email(data.email):
        errors.append(FieldError("email", INVALID_FORMAT, "Invalid email format"))

    for index, entry in enumerate(data.educations):
        errors.extend(
            _check_entry(
                entry,
                prefix=f"educations[{index}]",
                required=EDUCATION_REQUIRED,
                text_fields=EDUCATION_TEXT,
            )
        )
    for index, entry in enumerate(data.work_experiences):
        errors.extend(
            _check_entry(
                entry,
                prefix=f"workExperiences[{index}]",
                required=WORK_EXPERIENCE_REQUIRED,
                text_fields=WORK_EXPERIENCE_TEXT,
            )
        )
    return errors


def validation_failure(errors: list[FieldError]) -> CandidateValidationError:
    missing = [error.field for error in errors if error.code == MISSING_FIELD]
    if missing:
        return MissingField(errors, f"Missing required fields: {', '.join(missing)}")
    return InvalidFormat(errors, "; ".join(error.message for error in errors))
