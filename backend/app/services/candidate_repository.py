from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import DuplicateEmail, IntakeError, NotFound, PersistenceError
from app.models.candidate import EMAIL_UNIQUE_CONSTRAINT, Candidate, Education, WorkExperience
from app.schemas.candidate import CandidateCreate, EducationIn, WorkExperienceIn

logger = logging.getLogger("lti.db")

# SQLite reports the column, PostgreSQL and MySQL report the constraint name.
_DUPLICATE_EMAIL_MARKERS = (EMAIL_UNIQUE_CONSTRAINT, "candidate.email")


def classify_storage_error(exc: SQLAlchemyError) -> IntakeError:
    """Maps a raw backend error to the API error taxonomy."""
    if isinstance(exc, IntegrityError):
        detail = str(exc.orig if exc.orig is not None else exc).lower()
        if any(marker in detail for marker in _DUPLICATE_EMAIL_MARKERS):
            return DuplicateEmail()
    return PersistenceError()


class CandidateRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _aggregate_query():
        return select(Candidate).options(
            selectinload(Candidate.educations),
            selectinload(Candidate.work_experiences),
        )

    async def find_by_email(self, email: str) -> Candidate | None:
        try:
            result = await self.session.execute(
                select(Candidate).where(func.lower(Candidate.email) == email.strip().lower()).limit(1)
            )
        except SQLAlchemyError as exc:
            raise classify_storage_error(exc) from exc
        return result.scalars().first()

    async def create(
        self,
        candidate: CandidateCreate,
        educations: list[EducationIn],
        work_experiences: list[WorkExperienceIn],
    ) -> Candidate:
        if await self.find_by_email(candidate.email) is not None:
            raise DuplicateEmail()

        now = datetime.utcnow()
        row = Candidate(
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            email=candidate.email,
            phone=candidate.phone,
            address=candidate.address,
            cv_path=candidate.cv_path,
            created_at=now,
            updated_at=now,
            educations=[
                Education(
                    institution=edu.institution,
                    degree=edu.degree,
                    field_of_study=edu.field_of_study,
                    start_date=edu.start_date,
                    end_date=edu.end_date,
                )
                for edu in educations
            ],
            work_experiences=[
                WorkExperience(
                    company=exp.company,
                    position=exp.position,
                    description=exp.description,
                    start_date=exp.start_date,
                    end_date=exp.end_date,
                )
                for exp in work_experiences
            ],
        )
        self.session.add(row)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            classified = classify_storage_error(exc)
            logger.warning(
                "candidate_create_failed",
                extra={"email": candidate.email, "error_type": type(classified).__name__},
            )
            raise classified from exc

        return await self.get_by_id(row.id)

    async def list_all(self) -> list[Candidate]:
        stmt = self._aggregate_query().order_by(Candidate.created_at.desc(), Candidate.id.desc())
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise classify_storage_error(exc) from exc
        return list(result.scalars().all())

    async def get_by_id(self, candidate_id: int) -> Candidate:
        stmt = (
            self._aggregate_query()
            .where(Candidate.id == candidate_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise classify_storage_error(exc) from exc
        candidate = result.scalars().one_or_none()
        if candidate is None:
            raise NotFound()
        return candidate
