from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import Database
from app.services.candidate_repository import CandidateRepository
from app.services.cv_storage import CvStorage
from app.services.intake import IntakeWorkflow


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_cv_storage(request: Request) -> CvStorage:
    return request.app.state.cv_storage


async def get_db_session(db: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    async with db.session() as session:
        yield session


def get_candidate_repository(session: AsyncSession = Depends(get_db_session)) -> CandidateRepository:
    return CandidateRepository(session)


def get_intake_workflow(
    repository: CandidateRepository = Depends(get_candidate_repository),
    storage: CvStorage = Depends(get_cv_storage),
) -> IntakeWorkflow:
    return IntakeWorkflow(repository, storage)
