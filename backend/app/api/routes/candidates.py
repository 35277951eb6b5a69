from typing import Any

from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile

from app.api import deps
from app.core.errors import MalformedInput
from app.schemas.candidate import CandidateCreatedOut, CandidateOut, ErrorOut
from app.services.intake import IntakeForm, IntakeResult, IntakeWorkflow

router = APIRouter(prefix="/candidates", tags=["candidates"])

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorOut},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorOut},
}

_TEXT_FIELDS = ("firstName", "lastName", "email", "phone", "address")

_CREATE_BODY_SCHEMA = {
    "type": "object",
    "properties": {
        "firstName": {"type": "string"},
        "lastName": {"type": "string"},
        "email": {"type": "string"},
        "phone": {"type": "string"},
        "address": {"type": "string"},
        "educations": {"type": "string", "description": "JSON array of education entries"},
        "workExperiences": {"type": "string", "description": "JSON array of work experience entries"},
        "cv": {"type": "string", "format": "binary"},
    },
    "required": ["firstName", "lastName", "email"],
}
_JSON_BODY_SCHEMA = {
    **_CREATE_BODY_SCHEMA,
    "properties": {
        **{name: prop for name, prop in _CREATE_BODY_SCHEMA["properties"].items() if name != "cv"},
        "educations": {"type": "array", "items": {"type": "object"}},
        "workExperiences": {"type": "array", "items": {"type": "object"}},
    },
}


def _text(payload: Any, name: str) -> str | None:
    value = payload.get(name)
    if value is None or isinstance(value, str):
        return value
    raise MalformedInput(f"{name} must be text.")


def _intake_form(payload: Any) -> IntakeForm:
    first_name, last_name, email, phone, address = (_text(payload, name) for name in _TEXT_FIELDS)
    return IntakeForm(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        address=address,
        educations=payload.get("educations"),
        work_experiences=payload.get("workExperiences"),
    )


async def _create_from_json(request: Request, workflow: IntakeWorkflow) -> IntakeResult:
    try:
        payload = await request.json()
    except ValueError:
        raise MalformedInput("Request body must be valid JSON.")
    if not isinstance(payload, dict):
        raise MalformedInput("Request body must be a JSON object.")
    return await workflow.add_candidate(_intake_form(payload))


@router.post(
    "",
    response_model=CandidateCreatedOut,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERROR_RESPONSES, status.HTTP_409_CONFLICT: {"model": ErrorOut}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "multipart/form-data": {"schema": _CREATE_BODY_SCHEMA},
                "application/json": {"schema": _JSON_BODY_SCHEMA},
            },
        }
    },
)
async def create_candidate(request: Request, workflow: IntakeWorkflow = Depends(deps.get_intake_workflow)):
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if content_type == "application/json":
        result = await _create_from_json(request, workflow)
    else:
        async with request.form() as form:
            cv = form.get("cv")
            result = await workflow.add_candidate(
                _intake_form(form),
                cv if isinstance(cv, UploadFile) else None,
            )
    return CandidateCreatedOut(
        message=result.message,
        candidate=CandidateOut.model_validate(result.candidate),
    )


@router.get("", response_model=list[CandidateOut], responses=_ERROR_RESPONSES)
async def list_candidates(workflow: IntakeWorkflow = Depends(deps.get_intake_workflow)):
    candidates = await workflow.list_candidates()
    return [CandidateOut.model_validate(candidate) for candidate in candidates]


@router.get(
    "/{candidate_id}",
    response_model=CandidateOut,
    responses={**_ERROR_RESPONSES, status.HTTP_404_NOT_FOUND: {"model": ErrorOut}},
)
async def get_candidate(candidate_id: int, workflow: IntakeWorkflow = Depends(deps.get_intake_workflow)):
    candidate = await workflow.get_candidate(candidate_id)
    return CandidateOut.model_validate(candidate)
