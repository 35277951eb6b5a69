from __future__ import annotations

from dataclasses import dataclass

from fastapi import status


@dataclass(frozen=True)
class FieldError:
    field: str
    code: str
    message: str


MISSING_FIELD = "missing_field"
INVALID_FORMAT = "invalid_format"


class IntakeError(Exception):
    """Base for every failure the API reports back to the caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"error": self.message}


class CandidateValidationError(IntakeError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid candidate data."

    def __init__(self, errors: list[FieldError], message: str | None = None) -> None:
        self.errors = list(errors)
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        return [error.field for error in self.errors]

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["fields"] = [
            {"field": error.field, "code": error.code, "message": error.message} for error in self.errors
        ]
        return payload


class MissingField(CandidateValidationError):
    default_message = "Missing required fields."


class InvalidFormat(CandidateValidationError):
    default_message = "Invalid email format."


class MalformedInput(IntakeError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed input."


class UnsupportedFileType(IntakeError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid file type. Only PDF, DOC and DOCX files are allowed."


class FileTooLarge(IntakeError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "File too large."


class DuplicateEmail(IntakeError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "A candidate with this email already exists"


class NotFound(IntakeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Candidate not found"


class PersistenceError(IntakeError):
    default_message = "An error occurred while saving data. Please try again later."
