import json

import pytest

MIB = 1024 * 1024


def _form(**overrides):
    data = {"firstName": "Jane", "lastName": "Doe", "email": "jane@example.com"}
    data.update(overrides)
    return data


async def _count(client) -> int:
    response = await client.get("/api/candidates")
    assert response.status_code == 200
    return len(response.json())


@pytest.mark.asyncio
async def test_health_and_root(client):
    assert (await client.get("/health")).json()["status"] == "ok"
    root = await client.get("/")
    assert root.status_code == 200
    assert root.text == "Hola LTI!"


@pytest.mark.asyncio
async def test_create_with_cv_and_nested_entries(client):
    educations = [
        {"institution": "MIT", "degree": "BSc", "fieldOfStudy": "CS", "startDate": "2010-09-01", "endDate": "2014-06-30"},
        {"institution": "Stanford", "degree": "MSc", "fieldOfStudy": "AI", "startDate": "2015-09-01", "endDate": "2016-06-30"},
    ]
    work = [{"company": "ACME", "position": "Engineer", "description": "Built APIs", "startDate": "2016-07-01"}]
    response = await client.post(
        "/api/candidates",
        data=_form(
            phone="600000000",
            address="Calle Mayor 1",
            educations=json.dumps(educations),
            workExperiences=json.dumps(work),
        ),
        files={"cv": ("resume.pdf", b"%PDF-1.4\n" + b"x" * 1024, "application/pdf")},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["message"] == "Candidate successfully added to the system"
    candidate = body["candidate"]
    assert candidate["cvPath"].startswith("/uploads/cv-")
    assert candidate["cvPath"].endswith(".pdf")
    assert "createdAt" in candidate and "updatedAt" in candidate

    fetched = await client.get(f"/api/candidates/{candidate['id']}")
    assert fetched.status_code == 200
    detail = fetched.json()
    assert detail["email"] == "jane@example.com"
    assert detail["phone"] == "600000000"
    assert detail["address"] == "Calle Mayor 1"
    assert [
        {k: e[k] for k in ("institution", "degree", "fieldOfStudy", "startDate", "endDate")}
        for e in detail["educations"]
    ] == educations
    assert len(detail["workExperiences"]) == 1
    experience = detail["workExperiences"][0]
    assert experience["company"] == "ACME"
    assert experience["description"] == "Built APIs"
    assert experience["startDate"] == "2016-07-01"
    assert experience["endDate"] is None
    assert experience["candidateId"] == candidate["id"]

    stored = await client.get(candidate["cvPath"])
    assert stored.status_code == 200
    assert stored.content.startswith(b"%PDF-1.4")


@pytest.mark.asyncio
async def test_create_without_optional_parts(client):
    response = await client.post("/api/candidates", data=_form())
    assert response.status_code == 201
    candidate = response.json()["candidate"]
    assert candidate["cvPath"] is None
    assert candidate["educations"] == []
    assert candidate["workExperiences"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["firstName", "lastName", "email"])
async def test_missing_required_field(client, missing):
    data = _form(**{missing: "  "})
    response = await client.post("/api/candidates", data=data)
    assert response.status_code == 400
    assert missing in response.json()["error"]
    assert await _count(client) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["not-an-email", "a@b"])
async def test_invalid_email(client, email):
    response = await client.post("/api/candidates", data=_form(email=email))
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid email format"
    assert body["fields"][0]["code"] == "invalid_format"
    assert await _count(client) == 0


@pytest.mark.asyncio
async def test_malformed_nested_json(client):
    response = await client.post("/api/candidates", data=_form(educations="[{oops"))
    assert response.status_code == 400
    assert "educations" in response.json()["error"]


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(client):
    first = await client.post("/api/candidates", data=_form())
    second = await client.post("/api/candidates", data=_form(firstName="Janet"))
    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json() == {"error": "A candidate with this email already exists"}
    assert await _count(client) == 1


@pytest.mark.asyncio
async def test_unsupported_file_type(client, cv_storage):
    response = await client.post(
        "/api/candidates",
        data=_form(),
        files={"cv": ("setup.exe", b"MZ\x90\x00", "application/octet-stream")},
    )
    assert response.status_code == 400
    assert ".exe" in response.json()["error"]
    assert await _count(client) == 0
    assert not cv_storage.directory.exists() or not any(cv_storage.directory.iterdir())


@pytest.mark.asyncio
async def test_file_too_large(client, cv_storage):
    response = await client.post(
        "/api/candidates",
        data=_form(),
        files={"cv": ("resume.pdf", b"0" * (6 * MIB), "application/pdf")},
    )
    assert response.status_code == 400
    assert "too large" in response.json()["error"]
    assert await _count(client) == 0
    assert not cv_storage.directory.exists() or not any(cv_storage.directory.iterdir())


@pytest.mark.asyncio
async def test_list_is_newest_first(client):
    for name in ["A", "B", "C"]:
        response = await client.post("/api/candidates", data=_form(firstName=name, email=f"{name.lower()}@example.com"))
        assert response.status_code == 201

    listing = (await client.get("/api/candidates")).json()
    assert [c["firstName"] for c in listing] == ["C", "B", "A"]
    assert all("educations" in c and "workExperiences" in c for c in listing)


@pytest.mark.asyncio
async def test_unknown_candidate_is_404(client):
    created = (await client.post("/api/candidates", data=_form())).json()["candidate"]
    response = await client.get(f"/api/candidates/{created['id'] + 100}")
    assert response.status_code == 404
    assert response.json() == {"error": "Candidate not found"}


@pytest.mark.asyncio
async def test_non_numeric_id_is_400(client):
    response = await client.get("/api/candidates/abc")
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_bad_date_under_snake_case_key_is_400(client):
    response = await client.post(
        "/api/candidates",
        data=_form(educations=json.dumps([{"institution": "MIT", "degree": "BSc", "start_date": "not-a-date"}])),
    )
    assert response.status_code == 400
    body = response.json()
    assert body["fields"][0]["field"] == "educations[0].start_date"
    assert body["fields"][0]["code"] == "invalid_format"
    assert await _count(client) == 0


@pytest.mark.asyncio
async def test_create_from_json_body_with_structured_lists(client):
    response = await client.post(
        "/api/candidates",
        json={
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane@example.com",
            "educations": [{"institution": "MIT", "degree": "BSc", "startDate": "2010-09-01"}],
            "workExperiences": [{"company": "ACME", "position": "Engineer"}],
        },
    )
    assert response.status_code == 201, response.text
    candidate = response.json()["candidate"]
    assert candidate["cvPath"] is None
    assert candidate["educations"][0]["startDate"] == "2010-09-01"
    assert candidate["workExperiences"][0]["company"] == "ACME"


@pytest.mark.asyncio
async def test_json_body_still_accepts_string_encoded_lists(client):
    response = await client.post(
        "/api/candidates",
        json={**_form(), "educations": json.dumps([{"institution": "MIT", "degree": "BSc"}])},
    )
    assert response.status_code == 201
    assert len(response.json()["candidate"]["educations"]) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [b"{not json", b"[1, 2]", b'{"firstName": 5, "lastName": "Doe", "email": "jane@example.com"}'],
)
async def test_malformed_json_body_is_400(client, content):
    response = await client.post("/api/candidates", content=content, headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert "error" in response.json()
    assert await _count(client) == 0
