"""County contact sheets."""

import pytest

from county_portal.models.contact import DEFAULT_CONTACT_ROLES
from county_portal.services.contact_service import with_default_roles

from tests.conftest import auth_headers, create_county, create_user


@pytest.mark.api
async def test_first_read_seeds_default_roles(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Vance", "VAN")

    resp = await client.get(f"/api/contacts/{county.id}", headers=admin_headers)

    assert resp.status_code == 200
    contacts = resp.json()["contacts"]
    assert [entry["role"] for entry in contacts] == DEFAULT_CONTACT_ROLES
    assert len(contacts) == 18
    assert all(entry["name"] == entry["email"] == entry["phone"] == "" for entry in contacts)


@pytest.mark.api
async def test_missing_default_roles_are_restored_after_replace(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Warren", "WAR")
    await client.get(f"/api/contacts/{county.id}", headers=admin_headers)

    resp = await client.put(
        f"/api/contacts/{county.id}",
        json={
            "contacts": [
                {"role": "Budget Director", "name": " Jane Roe ", "email": "Jane.Roe@Warren.gov", "phone": "555-0100"},
                {"role": "Fire Marshal", "name": "Sam Poe"},
            ]
        },
        headers=admin_headers,
    )
    assert resp.status_code == 200
    saved = resp.json()["contacts"]
    assert saved == [
        {"role": "Budget Director", "name": "Jane Roe", "email": "jane.roe@warren.gov", "phone": "555-0100"},
        {"role": "Fire Marshal", "name": "Sam Poe", "email": "", "phone": ""},
    ]

    resp = await client.get(f"/api/contacts/{county.id}", headers=admin_headers)
    contacts = resp.json()["contacts"]
    assert contacts[:2] == saved
    roles = [entry["role"] for entry in contacts]
    assert set(DEFAULT_CONTACT_ROLES) <= set(roles)
    assert roles.count("Budget Director") == 1
    assert len(contacts) == 19


@pytest.mark.api
async def test_blank_role_is_rejected(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Yancey", "YAN")

    resp = await client.put(
        f"/api/contacts/{county.id}",
        json={"contacts": [{"role": "   ", "name": "Nobody"}]},
        headers=admin_headers,
    )

    assert resp.status_code == 422
    assert "detail" in resp.json()


@pytest.mark.api
async def test_county_user_edits_own_sheet_only(client, session_factory):
    home = await create_county(session_factory, "Stokes", "STO")
    other = await create_county(session_factory, "Swain", "SWA")
    member = await create_user(session_factory, "stokes_member", "stokes@test.com", county_id=home.id)
    headers = auth_headers(member)

    resp = await client.put(
        f"/api/contacts/{home.id}",
        json={"contacts": [{"role": "Registrar", "name": "Pat"}]},
        headers=headers,
    )
    assert resp.status_code == 200

    assert (await client.get(f"/api/contacts/{other.id}", headers=headers)).status_code == 403
    resp = await client.put(f"/api/contacts/{other.id}", json={"contacts": []}, headers=headers)
    assert resp.status_code == 403


@pytest.mark.api
async def test_unknown_county_is_404_for_admin(client, admin_headers):
    resp = await client.get("/api/contacts/00000000-0000-0000-0000-000000000000", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.unit
def test_with_default_roles_keeps_existing_entries_first():
    existing = [{"role": "Registrar", "name": "Pat", "email": "", "phone": ""}]

    completed = with_default_roles(existing)

    assert completed[0] == existing[0]
    assert len(completed) == len(DEFAULT_CONTACT_ROLES)
    assert [entry["role"] for entry in completed].count("Registrar") == 1
