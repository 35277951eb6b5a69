from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import UploadFile
from pydantic import BaseModel, ValidationError

from app.core.errors import INVALID_FORMAT, FieldError, InvalidFormat
from app.core.uploads import has_upload
from app.core.validation import CandidateInput, resolve_nested, validate_candidate, validation_failure
from app.models.candidate import Candidate
from app.schemas.candidate import CandidateCreate, EducationIn, WorkExperienceIn
from app.services.candidate_repository import CandidateRepository
from app.services.cv_storage import CvStorage

logger = logging.getLogger("lti.intake")

CREATED_MESSAGE = "Candidate successfully added to the system"


@dataclass(frozen=True)
class IntakeForm:
    """Candidate fields exactly as they arrived; nested lists may still be JSON text."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    educations: Any = None
    work_experiences: Any = None


@dataclass(frozen=True)
class IntakeResult:
    message: str
    candidate: Candidate


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def normalize_form(form: IntakeForm) -> CandidateInput:
    email = _strip_optional(form.email)
    return CandidateInput(
        first_name=_strip_optional(form.first_name),
        last_name=_strip_optional(form.last_name),
        email=email.lower() if email else None,
        phone=_strip_optional(form.phone),
        address=_strip_optional(form.address),
        educations=resolve_nested(form.educations, field_name="educations"),
        work_experiences=resolve_nested(form.work_experiences, field_name="workExperiences"),
    )


def _text_entry(entry: dict[str, Any]) -> dict[str, Any]:
    return {key: (value.strip() or None) if isinstance(value, str) else value for key, value in entry.items()}


def _build_entries(model: type[BaseModel], entries: list[dict[str, Any]], *, prefix: str) -> list[Any]:
    """Second pass through the schema; it also reads snake_case keys the first pass skips."""
    built: list[Any] = []
    errors: list[FieldError] = []
    for index, entry in enumerate(entries):
        try:
            built.append(model.model_validate(_text_entry(entry)))
        except ValidationError as exc:
            for problem in exc.errors():
                location = ".".join(str(part) for part in problem.get("loc", ()))
                errors.append(
                    FieldError(f"{prefix}[{index}].{location}", INVALID_FORMAT, f"{location}: {problem.get('msg')}")
                )
    if errors:
        logger.info("candidate_rejected", extra={"fields": [error.field for error in errors]})
        raise InvalidFormat(errors, "; ".join(error.message for error in errors))
    return built


class IntakeWorkflow:
    def __init__(self, repository: CandidateRepository, storage: CvStorage) -> None:
        self.repository = repository
        self.storage = storage

    async def add_candidate(self, form: IntakeForm, cv: UploadFile | None = None) -> IntakeResult:
        data = normalize_form(form)
        errors = validate_candidate(data)
        if errors:
            logger.info("candidate_rejected", extra={"fields": [error.field for error in errors]})
            raise validation_failure(errors)

        educations = _build_entries(EducationIn, data.educations, prefix="educations")
        work_experiences = _build_entries(WorkExperienceIn, data.work_experiences, prefix="workExperiences")

        cv_path: str | None = None
        if has_upload(cv):
            stored = await self.storage.store(cv)
            cv_path = stored.url

        candidate = await self.repository.create(
            CandidateCreate(
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email,
                phone=data.phone,
                address=data.address,
                cv_path=cv_path,
            ),
            educations,
            work_experiences,
        )
        logger.info(
            "candidate_created",
            extra={
                "candidate_id": candidate.id,
                "educations": len(educations),
                "work_experiences": len(work_experiences),
                "has_cv": cv_path is not None,
            },
        )
        return IntakeResult(message=CREATED_MESSAGE, candidate=candidate)

    async def list_candidates(self) -> list[Candidate]:
        return await self.repository.list_all()

    async def get_candidate(self, candidate_id: int) -> Candidate:
        return await self.repository.get_by_id(candidate_id)
