import os

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.paths import resolve_repo_path


def _env_files() -> list[str]:
    base = resolve_repo_path("backend/.env")
    env = os.getenv("LTI_ENVIRONMENT", "").strip().lower()
    files = [str(base)]
    if env and env != "development":
        files.append(str(resolve_repo_path(f"backend/.env.{env}")))
    else:
        files.append(str(resolve_repo_path("backend/.env.local")))
    return files


class Settings(BaseSettings):
    app_name: str = "LTI Candidates"
    environment: str = "development"

    database_url: str = Field(
        default="sqlite+aiosqlite:///./lti_candidates.db",
        validation_alias=AliasChoices("LTI_DATABASE_URL", "DATABASE_URL"),
    )
    database_echo: bool = False
    auto_create_tables: bool = True

    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    cv_max_bytes: int = 5 * 1024 * 1024

    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    model_config = SettingsConfigDict(env_prefix="LTI_", env_file=_env_files(), extra="ignore")

    @property
    def expose_error_details(self) -> bool:
        return self.environment.strip().lower() == "development"


settings = Settings()
