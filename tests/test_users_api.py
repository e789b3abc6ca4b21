"""
Tests for /v1/users: profile, password, deactivation and uploads.
"""

import pytest

from jobmarket.core.repositories import UserRepository

PASSWORD = "Passw0rd"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def applicant(register):
    return register("a@x.com")


@pytest.fixture
def employer(register):
    return register("boss@x.com", role="employer", company_name="Acme")


# =============================================================================
# Profile
# =============================================================================

def test_profile_has_role_fields(client, applicant, employer):
    response = client.get("/v1/users/profile", headers=bearer(applicant["access_token"]))
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["email"] == "a@x.com"
    assert user["skills"] == []
    assert "company_name" not in user

    user = client.get("/v1/users/profile", headers=bearer(employer["access_token"])).json()["data"]["user"]
    assert user["company_name"] == "Acme"
    assert "skills" not in user


def test_applicant_updates_profile(client, applicant):
    response = client.put(
        "/v1/users/profile",
        json={
            "first_name": "  Grace ",
            "skills": "python, sql, ,docker",
            "experience": 3,
            "company_name": "Ignored Inc",
            "email": "new@x.com",
        },
        headers=bearer(applicant["access_token"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Profile updated successfully"
    user = body["data"]["user"]
    assert user["first_name"] == "Grace"
    assert user["skills"] == ["python", "sql", "docker"]
    assert user["experience"] == 3
    assert user["email"] == "a@x.com"
    assert "company_name" not in user


def test_employer_updates_company(client, employer):
    response = client.put(
        "/v1/users/profile",
        json={
            "company_description": "We make everything.",
            "website": "https://acme.example.com",
            "skills": ["ignored"],
        },
        headers=bearer(employer["access_token"]),
    )

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["company_description"] == "We make everything."
    assert user["website"].startswith("https://acme.example.com")


def test_profile_validation(client, applicant):
    response = client.put(
        "/v1/users/profile",
        json={"phone": "12345", "experience": -1},
        headers=bearer(applicant["access_token"]),
    )

    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"phone", "experience"} <= fields

    response = client.put(
        "/v1/users/profile",
        json={"experience": 10**30},
        headers=bearer(applicant["access_token"]),
    )
    assert response.status_code == 400


# =============================================================================
# Password / deactivation
# =============================================================================

def test_change_password(client, applicant):
    headers = bearer(applicant["access_token"])

    response = client.put(
        "/v1/users/change-password",
        json={"current_password": "Wr0ngpass", "new_password": "N3wPassword", "confirm_password": "N3wPassword"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"

    response = client.put(
        "/v1/users/change-password",
        json={"current_password": PASSWORD, "new_password": "N3wPassword", "confirm_password": "Different1"},
        headers=headers,
    )
    assert response.status_code == 400

    response = client.put(
        "/v1/users/change-password",
        json={"current_password": PASSWORD, "new_password": "N3wPassword", "confirm_password": "N3wPassword"},
        headers=headers,
    )
    assert response.status_code == 200

    login = client.post("/v1/auth/login", json={"email": "a@x.com", "password": "N3wPassword"})
    assert login.status_code == 200


def test_deactivate_revokes_sessions(client, applicant):
    response = client.put("/v1/users/deactivate", headers=bearer(applicant["access_token"]))
    assert response.status_code == 200

    response = client.post("/v1/auth/refresh-token", json={"refresh_token": applicant["refresh_token"]})
    assert response.status_code == 401

    response = client.post("/v1/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert response.status_code == 401
    assert response.json()["code"] == "account_deactivated"


# =============================================================================
# Uploads
# =============================================================================

def test_profile_picture_upload_and_replace(client, applicant, settings):
    headers = bearer(applicant["access_token"])

    response = client.post(
        "/v1/users/upload-profile-picture",
        files={"file": ("me.png", PNG, "image/png")},
        headers=headers,
    )
    assert response.status_code == 200
    first = response.json()["data"]["profile_picture"]
    assert first.startswith("profile_pictures/") and first.endswith(".png")
    assert (settings.upload_dir / first).read_bytes() == PNG

    served = client.get(f"/uploads/{first}")
    assert served.status_code == 200
    assert served.content == PNG

    response = client.post(
        "/v1/users/upload-profile-picture",
        files={"file": ("me2.png", PNG, "image/png")},
        headers=headers,
    )
    second = response.json()["data"]["profile_picture"]
    assert second != first
    assert not (settings.upload_dir / first).exists()

    response = client.delete("/v1/users/profile-picture", headers=headers)
    assert response.status_code == 200
    assert not (settings.upload_dir / second).exists()

    response = client.delete("/v1/users/profile-picture", headers=headers)
    assert response.status_code == 400


def test_failed_upload_leaves_no_file(client, applicant, settings, monkeypatch):
    async def broken_update(self, user_id, **fields):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(UserRepository, "update_user", broken_update)

    response = client.post(
        "/v1/users/upload-profile-picture",
        files={"file": ("me.png", PNG, "image/png")},
        headers=bearer(applicant["access_token"]),
    )

    assert response.status_code == 500
    assert list((settings.upload_dir / "profile_pictures").iterdir()) == []


def test_upload_rejects_wrong_type(client, applicant):
    response = client.post(
        "/v1/users/upload-profile-picture",
        files={"file": ("script.sh", b"echo hi", "text/x-sh")},
        headers=bearer(applicant["access_token"]),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "validation_failed"


def test_upload_rejects_large_file(make_client, register):
    client = make_client(max_upload_bytes=16)
    data = register("a@x.com", api=client)

    response = client.post(
        "/v1/users/upload-profile-picture",
        files={"file": ("me.png", PNG, "image/png")},
        headers=bearer(data["access_token"]),
    )

    assert response.status_code == 400
    assert "too large" in response.json()["message"]


def test_resume_is_applicant_only(client, applicant, employer, settings):
    response = client.post(
        "/v1/users/upload-resume",
        files={"file": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")},
        headers=bearer(applicant["access_token"]),
    )
    assert response.status_code == 200
    path = response.json()["data"]["resume"]
    assert (settings.upload_dir / path).exists()

    response = client.post(
        "/v1/users/upload-resume",
        files={"file": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")},
        headers=bearer(employer["access_token"]),
    )
    assert response.status_code == 403

    response = client.delete("/v1/users/resume", headers=bearer(applicant["access_token"]))
    assert response.status_code == 200
    assert not (settings.upload_dir / path).exists()
