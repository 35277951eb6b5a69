import os
import tempfile

os.environ.setdefault("LTI_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LTI_ENVIRONMENT", "test")
os.environ.setdefault("LTI_AUTO_CREATE_TABLES", "false")
os.environ.setdefault("LTI_UPLOAD_DIR", tempfile.mkdtemp(prefix="lti-uploads-"))

import io

import pytest
from fastapi import UploadFile
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers

from app.db.session import Database
from app.main import create_app
from app.services.cv_storage import CvStorage


def make_upload(filename: str, data: bytes, content_type: str = "application/pdf", *, size: int | None = None) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        size=size,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture()
async def database():
    db = Database(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.connect()
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture()
async def db_session(database):
    async with database.session() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def cv_storage(tmp_path):
    return CvStorage(tmp_path / "uploads", url_prefix="/uploads", max_bytes=5 * 1024 * 1024)


@pytest.fixture()
async def client(database, cv_storage):
    app = create_app(database=database, cv_storage=cv_storage)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture()
def upload_factory():
    return make_upload
