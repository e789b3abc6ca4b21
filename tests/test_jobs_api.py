"""
Tests for /v1/jobs: public listing, employer CRUD and the role/ownership
stages in front of it.
"""

from datetime import datetime, timedelta, timezone

import pytest

DESCRIPTION = "Build and run the services behind our marketplace."


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def job_body(**overrides):
    body = {
        "title": "Backend Engineer",
        "description": DESCRIPTION,
        "location": "Bengaluru",
        "salary": 120000,
        "job_type": "Full-time",
        "experience_level": "Mid-senior level",
        "skills_required": ["python", " sql ", ""],
    }
    body.update(overrides)
    return body


@pytest.fixture
def employer(register):
    return register("boss@x.com", role="employer", company_name="Acme")


@pytest.fixture
def other_employer(register):
    return register("rival@x.com", role="employer", company_name="Globex")


@pytest.fixture
def applicant(register):
    return register("a@x.com")


@pytest.fixture
def create_job(client):
    def _create(owner, **overrides):
        response = client.post("/v1/jobs", json=job_body(**overrides), headers=bearer(owner["access_token"]))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


# =============================================================================
# Create
# =============================================================================

def test_employer_creates_job(client, employer):
    response = client.post("/v1/jobs", json=job_body(), headers=bearer(employer["access_token"]))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Job created successfully"
    job = body["data"]
    assert job["company"] == "Acme"
    assert job["employer_id"] == employer["user"]["id"]
    assert job["employer"]["company_name"] == "Acme"
    assert job["skills_required"] == ["python", "sql"]
    assert job["is_active"] is True


def test_applicant_cannot_create_job(client, applicant):
    response = client.post("/v1/jobs", json=job_body(), headers=bearer(applicant["access_token"]))

    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"
    assert client.get("/v1/jobs").json()["results"] == 0


def test_create_requires_authentication(client):
    response = client.post("/v1/jobs", json=job_body())
    assert response.status_code == 401


def test_company_required_without_profile_company(client, register):
    employer = register("boss@x.com", role="employer")

    response = client.post("/v1/jobs", json=job_body(), headers=bearer(employer["access_token"]))
    assert response.status_code == 400
    assert response.json()["code"] == "validation_failed"

    response = client.post(
        "/v1/jobs",
        json=job_body(company="Initech"),
        headers=bearer(employer["access_token"]),
    )
    assert response.status_code == 201
    assert response.json()["data"]["company"] == "Initech"


def test_create_validates_payload(client, employer):
    response = client.post(
        "/v1/jobs",
        json=job_body(title="x", salary=-1, job_type="Gig"),
        headers=bearer(employer["access_token"]),
    )
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"title", "salary", "job_type"} <= fields


# =============================================================================
# Read
# =============================================================================

def test_list_is_public_and_newest_first(client, employer, create_job):
    create_job(employer, title="First job")
    create_job(employer, title="Second job")

    response = client.get("/v1/jobs")

    assert response.status_code == 200
    body = response.json()
    assert body["results"] == 2
    assert body["pagination"] == {"current_page": 1, "total_pages": 1, "total": 2}
    assert [j["title"] for j in body["data"]] == ["Second job", "First job"]
    assert "is_owner" not in body["data"][0]


def test_list_marks_owned_jobs(client, employer, other_employer, create_job):
    create_job(employer, title="Mine")
    create_job(other_employer, title="Theirs")

    response = client.get("/v1/jobs", headers=bearer(employer["access_token"]))

    owned = {j["title"]: j["is_owner"] for j in response.json()["data"]}
    assert owned == {"Mine": True, "Theirs": False}


def test_list_ignores_bad_token(client, employer, create_job):
    create_job(employer)

    response = client.get("/v1/jobs", headers=bearer("garbage"))

    assert response.status_code == 200
    assert response.json()["results"] == 1


def test_list_filters(client, employer, create_job):
    create_job(employer, title="Python Developer", location="Pune", salary=50000, job_type="Contract")
    create_job(employer, title="Data Analyst", location="Mumbai", salary=90000)
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    create_job(employer, title="Closed Role", application_deadline=past)

    def titles(**params):
        return sorted(j["title"] for j in client.get("/v1/jobs", params=params).json()["data"])

    assert titles() == ["Data Analyst", "Python Developer"]
    assert titles(search="python") == ["Python Developer"]
    assert titles(location="mumbai") == ["Data Analyst"]
    assert titles(job_type="Contract") == ["Python Developer"]
    assert titles(min_salary=60000) == ["Data Analyst"]
    assert titles(max_salary=60000) == ["Python Developer"]


def test_list_pagination(client, employer, create_job):
    for i in range(3):
        create_job(employer, title=f"Job number {i}")

    body = client.get("/v1/jobs", params={"page": 2, "limit": 2}).json()

    assert body["results"] == 1
    assert body["pagination"] == {"current_page": 2, "total_pages": 2, "total": 3}
    assert body["data"][0]["title"] == "Job number 0"


def test_get_job(client, employer, applicant, create_job):
    job = create_job(employer)

    response = client.get(f"/v1/jobs/{job['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Backend Engineer"

    response = client.get(f"/v1/jobs/{job['id']}", headers=bearer(applicant["access_token"]))
    assert response.json()["data"]["is_owner"] is False


def test_get_missing_or_inactive_job(client, employer, create_job):
    assert client.get("/v1/jobs/999").status_code == 404

    job = create_job(employer)
    client.put(f"/v1/jobs/{job['id']}", json={"is_active": False}, headers=bearer(employer["access_token"]))

    response = client.get(f"/v1/jobs/{job['id']}")
    assert response.status_code == 404
    assert response.json()["message"] == "Job not found or is no longer active"


def test_my_jobs(client, employer, other_employer, applicant, create_job):
    create_job(employer, title="Mine")
    create_job(other_employer, title="Theirs")

    response = client.get("/v1/jobs/my-jobs", headers=bearer(employer["access_token"]))
    assert response.status_code == 200
    assert [j["title"] for j in response.json()["data"]] == ["Mine"]

    response = client.get("/v1/jobs/my-jobs", headers=bearer(applicant["access_token"]))
    assert response.status_code == 403


# =============================================================================
# Update / delete
# =============================================================================

def test_owner_updates_job(client, employer, create_job):
    job = create_job(employer)

    response = client.put(
        f"/v1/jobs/{job['id']}",
        json={"title": "Senior Backend Engineer", "salary": None, "company": None},
        headers=bearer(employer["access_token"]),
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["title"] == "Senior Backend Engineer"
    assert updated["salary"] is None
    assert updated["company"] == "Acme"
    assert updated["location"] == "Bengaluru"


def test_other_employer_cannot_update_job(client, employer, other_employer, create_job):
    job = create_job(employer)

    response = client.put(
        f"/v1/jobs/{job['id']}",
        json={"title": "Hijacked title"},
        headers=bearer(other_employer["access_token"]),
    )

    assert response.status_code == 403
    assert client.get(f"/v1/jobs/{job['id']}").json()["data"]["title"] == "Backend Engineer"


def test_applicant_cannot_update_job(client, employer, applicant, create_job):
    job = create_job(employer)

    response = client.put(
        f"/v1/jobs/{job['id']}",
        json={"title": "Changed by applicant"},
        headers=bearer(applicant["access_token"]),
    )

    assert response.status_code == 403
    assert "employer" in response.json()["message"]


def test_update_missing_job(client, employer):
    response = client.put("/v1/jobs/999", json={"title": "Nothing here"}, headers=bearer(employer["access_token"]))
    assert response.status_code == 404


def test_oversized_job_id(client, employer):
    huge = "9" * 30

    assert client.get(f"/v1/jobs/{huge}").status_code in (400, 404)
    response = client.put(f"/v1/jobs/{huge}", json={"title": "Nothing here"}, headers=bearer(employer["access_token"]))
    assert response.status_code in (400, 404)


def test_delete_job(client, employer, other_employer, create_job):
    job = create_job(employer)

    response = client.delete(f"/v1/jobs/{job['id']}", headers=bearer(other_employer["access_token"]))
    assert response.status_code == 403

    response = client.delete(f"/v1/jobs/{job['id']}", headers=bearer(employer["access_token"]))
    assert response.status_code == 200
    assert response.json()["message"] == "Job deleted successfully"

    assert client.get(f"/v1/jobs/{job['id']}").status_code == 404
