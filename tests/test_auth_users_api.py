"""Login, admin-only registration and user management."""

import pytest

from county_portal.core.security import hash_password, meets_password_policy, verify_password

from tests.conftest import TEST_ADMIN_EMAIL, TEST_PASSWORD, auth_headers, create_county, create_user


@pytest.mark.api
async def test_login_returns_token_usable_for_me(client, admin):
    resp = await client.post("/api/auth/login", json={"email": "ADMIN@Test.com", "password": TEST_PASSWORD})

    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == TEST_ADMIN_EMAIL
    assert "hashed_password" not in body["user"]

    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert resp.status_code == 200
    assert resp.json()["id"] == str(admin.id)
    assert resp.json()["role"] == "admin"


@pytest.mark.api
async def test_login_rejects_bad_credentials_alike(client, admin):
    wrong_password = await client.post("/api/auth/login", json={"email": TEST_ADMIN_EMAIL, "password": "Wrong1!xx"})
    unknown_user = await client.post("/api/auth/login", json={"email": "ghost@test.com", "password": TEST_PASSWORD})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["error"]["message"] == "Invalid credentials"


@pytest.mark.api
async def test_register_county_user(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Pender", "PEN")

    resp = await client.post(
        "/api/auth/register",
        json={
            "username": "pender_clerk",
            "email": "Clerk@Pender.gov",
            "password": "Str0ng!pass",
            "role": "county_user",
            "county_id": str(county.id),
        },
        headers=admin_headers,
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["email"] == "clerk@pender.gov"
    assert body["user"]["county_id"] == str(county.id)
    assert "access_token" not in body

    resp = await client.post("/api/auth/login", json={"email": "clerk@pender.gov", "password": "Str0ng!pass"})
    assert resp.status_code == 200


@pytest.mark.api
async def test_admin_accounts_never_carry_a_county(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Dare", "DAR")

    resp = await client.post(
        "/api/auth/register",
        json={
            "username": "second_admin",
            "email": "second@test.com",
            "password": "Str0ng!pass",
            "role": "admin",
            "county_id": str(county.id),
        },
        headers=admin_headers,
    )

    assert resp.status_code == 201
    assert resp.json()["user"]["county_id"] is None


@pytest.mark.api
@pytest.mark.parametrize("password", ["short1!", "alllowercase1!", "NoDigits!!", "NoSpecial11"])
async def test_register_enforces_password_policy(client, admin_headers, password):
    resp = await client.post(
        "/api/auth/register",
        json={"username": "weak", "email": "weak@test.com", "password": password, "role": "admin"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


@pytest.mark.api
async def test_register_rejects_duplicates_and_missing_county(client, admin_headers):
    base = {"password": "Str0ng!pass", "role": "admin"}

    resp = await client.post(
        "/api/auth/register",
        json={**base, "username": "admin", "email": "other@test.com"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "conflict"

    resp = await client.post(
        "/api/auth/register",
        json={**base, "username": "someone", "email": TEST_ADMIN_EMAIL.upper()},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/api/auth/register",
        json={**base, "role": "county_user", "username": "nocounty", "email": "nocounty@test.com"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"

    resp = await client.post(
        "/api/auth/register",
        json={
            **base,
            "role": "county_user",
            "username": "ghostcounty",
            "email": "ghost@test.com",
            "county_id": "00000000-0000-0000-0000-000000000000",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 404


@pytest.mark.api
async def test_register_requires_admin(client, session_factory):
    county = await create_county(session_factory, "Camden", "CAM")
    member = await create_user(session_factory, "camden_member", "camden@test.com", county_id=county.id)

    resp = await client.post(
        "/api/auth/register",
        json={"username": "sneaky", "email": "sneaky@test.com", "password": "Str0ng!pass", "role": "admin"},
        headers=auth_headers(member),
    )

    assert resp.status_code == 403
    assert (await client.get("/api/users", headers=auth_headers(member))).status_code == 403


@pytest.mark.api
async def test_list_get_and_delete_users(client, session_factory, admin, admin_headers):
    county = await create_county(session_factory, "Tyrrell", "TYR")
    member = await create_user(session_factory, "tyrrell_member", "tyrrell@test.com", county_id=county.id)
    await create_user(session_factory, "other_admin", "otheradmin@test.com", role="admin")

    resp = await client.get("/api/users", headers=admin_headers)
    assert {user["username"] for user in resp.json()} == {"admin", "tyrrell_member", "other_admin"}

    resp = await client.get("/api/users/admins", headers=admin_headers)
    assert {user["username"] for user in resp.json()} == {"admin", "other_admin"}

    resp = await client.get(f"/api/users/{member.id}", headers=admin_headers)
    assert resp.json()["county_id"] == str(county.id)

    resp = await client.delete(f"/api/users/{admin.id}", headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.delete(f"/api/users/{member.id}", headers=admin_headers)
    assert resp.json() == {"message": "User deleted successfully"}
    assert (await client.get(f"/api/users/{member.id}", headers=admin_headers)).status_code == 404

    # A deleted account's token stops working
    assert (await client.get("/api/auth/me", headers=auth_headers(member))).status_code == 401


@pytest.mark.api
async def test_deleting_assigner_keeps_their_tasks(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Hyde", "HYD")
    other_admin = await create_user(session_factory, "leaving_admin", "leaving@test.com", role="admin")
    resp = await client.post(
        "/api/tasks",
        json={"title": "Ferry schedule", "county_id": str(county.id), "deadline": "2031-03-01T12:00:00Z"},
        headers=auth_headers(other_admin),
    )
    task_id = resp.json()["id"]

    resp = await client.delete(f"/api/users/{other_admin.id}", headers=admin_headers)
    assert resp.status_code == 200

    resp = await client.get(f"/api/tasks/{task_id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["assigned_by"] is None


@pytest.mark.unit
def test_password_helpers():
    hashed = hash_password("Str0ng!pass")
    assert hashed != "Str0ng!pass"
    assert verify_password("Str0ng!pass", hashed)
    assert not verify_password("str0ng!pass", hashed)
    assert meets_password_policy("Str0ng!pass")
    assert not meets_password_policy("")
