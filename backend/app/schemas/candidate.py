from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from app.core.validation import parse_date


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class _DatedEntryIn(CamelModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return parse_date(value)


class EducationIn(_DatedEntryIn):
    institution: str
    degree: str
    field_of_study: Optional[str] = None


class WorkExperienceIn(_DatedEntryIn):
    company: str
    position: str
    description: Optional[str] = None


class CandidateCreate(CamelModel):
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    cv_path: Optional[str] = None


class EducationOut(CamelModel):
    id: int
    candidate_id: int
    institution: str
    degree: str
    field_of_study: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class WorkExperienceOut(CamelModel):
    id: int
    candidate_id: int
    company: str
    position: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CandidateOut(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    cv_path: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    educations: list[EducationOut] = []
    work_experiences: list[WorkExperienceOut] = []


class CandidateCreatedOut(BaseModel):
    message: str
    candidate: CandidateOut


class ErrorOut(BaseModel):
    error: str
