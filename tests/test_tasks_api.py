"""Task endpoints: CRUD, scoping, bulk assignment, reminders and side effects."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from county_portal.db.session import session_scope
from county_portal.repositories.notification_repository import NotificationRepository
from county_portal.utils.time import utc_now

from tests.conftest import auth_headers, create_county, create_user

pytestmark = pytest.mark.api


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def task_payload(county_id, **overrides):
    payload = {
        "title": "Submit annual budget",
        "description": "FY budget packet",
        "county_id": str(county_id),
        "priority": "high",
        "status": "pending",
        "deadline": (utc_now() + timedelta(days=10)).replace(microsecond=0).isoformat(),
    }
    payload.update(overrides)
    return payload


async def notifications_for(session_factory, user_id):
    async with session_scope(session_factory) as session:
        return await NotificationRepository(session).list_for_user(user_id)


async def test_create_task_reads_back_identically(client, session_factory, admin_headers, admin):
    county = await create_county(session_factory, "Test", "TEST")
    deadline = datetime(2030, 1, 15, 17, 0, tzinfo=timezone.utc)

    resp = await client.post(
        "/api/tasks",
        json=task_payload(county.id, deadline=deadline.isoformat()),
        headers=admin_headers,
    )
    assert resp.status_code == 201
    created = resp.json()

    resp = await client.get(f"/api/tasks/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    task = resp.json()
    assert task["title"] == "Submit annual budget"
    assert task["priority"] == "high"
    assert task["status"] == "pending"
    assert parse_ts(task["deadline"]) == deadline
    assert task["county_id"] == str(county.id)
    assert task["county"]["code"] == "TEST"
    assert task["assigned_by"] == str(admin.id)
    assert task["reminders"] == []
    assert task["form_file"] is None


async def test_update_only_status_leaves_other_fields(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Lee", "LEE")
    created = (await client.post("/api/tasks", json=task_payload(county.id), headers=admin_headers)).json()

    resp = await client.put(
        f"/api/tasks/{created['id']}",
        json={"status": "in_progress"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["status"] == "in_progress"
    for field in ("title", "description", "priority", "deadline", "county_id"):
        assert updated[field] == created[field]


async def test_create_requires_existing_county_and_title(client, admin_headers):
    resp = await client.post("/api/tasks", json=task_payload(uuid.uuid4()), headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"

    resp = await client.post("/api/tasks", json=task_payload(uuid.uuid4(), title="   "), headers=admin_headers)
    assert resp.status_code == 422


async def test_county_user_gets_403_for_other_county_and_404_for_missing(client, session_factory, admin_headers):
    home = await create_county(session_factory, "Home", "HOM")
    other = await create_county(session_factory, "Other", "OTH")
    member = await create_user(session_factory, "home_user", "home@test.com", county_id=home.id)
    headers = auth_headers(member)

    foreign = (await client.post("/api/tasks", json=task_payload(other.id), headers=admin_headers)).json()
    own = (await client.post("/api/tasks", json=task_payload(home.id), headers=admin_headers)).json()

    resp = await client.get(f"/api/tasks/{foreign['id']}", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "access_denied"

    resp = await client.put(f"/api/tasks/{foreign['id']}", json={"status": "completed"}, headers=headers)
    assert resp.status_code == 403

    resp = await client.get(f"/api/tasks/{uuid.uuid4()}", headers=headers)
    assert resp.status_code == 404

    resp = await client.get(f"/api/tasks/{own['id']}", headers=headers)
    assert resp.status_code == 200

    # County users cannot delete even their own tasks
    resp = await client.delete(f"/api/tasks/{own['id']}", headers=headers)
    assert resp.status_code == 403


async def test_list_is_scoped_filtered_and_sorted(client, session_factory, admin_headers):
    home = await create_county(session_factory, "Polk", "POL")
    other = await create_county(session_factory, "Pike", "PIK")
    member = await create_user(session_factory, "polk_member", "polk@test.com", county_id=home.id)
    orphan = await create_user(session_factory, "orphan", "orphan@test.com", county_id=None)

    soon = (utc_now() + timedelta(days=1)).isoformat()
    later = (utc_now() + timedelta(days=20)).isoformat()
    await client.post("/api/tasks", json=task_payload(home.id, title="Later road audit", deadline=later), headers=admin_headers)
    await client.post("/api/tasks", json=task_payload(home.id, title="Soon payroll", priority="low", deadline=soon), headers=admin_headers)
    await client.post("/api/tasks", json=task_payload(other.id, title="Pike ROAD survey"), headers=admin_headers)

    resp = await client.get("/api/tasks", headers=admin_headers)
    assert len(resp.json()) == 3

    resp = await client.get("/api/tasks", headers=auth_headers(member))
    titles = [task["title"] for task in resp.json()]
    assert titles == ["Soon payroll", "Later road audit"]

    resp = await client.get("/api/tasks", params={"county_id": str(other.id)}, headers=auth_headers(member))
    assert [task["county_id"] for task in resp.json()] == []

    resp = await client.get("/api/tasks", params={"search": "road"}, headers=admin_headers)
    assert sorted(task["title"] for task in resp.json()) == ["Later road audit", "Pike ROAD survey"]

    resp = await client.get("/api/tasks", params={"priority": "low"}, headers=admin_headers)
    assert [task["title"] for task in resp.json()] == ["Soon payroll"]

    resp = await client.get(
        "/api/tasks",
        params={"deadline_to": (utc_now() + timedelta(days=5)).isoformat()},
        headers=admin_headers,
    )
    assert [task["title"] for task in resp.json()] == ["Soon payroll"]

    resp = await client.get("/api/tasks", headers=auth_headers(orphan))
    assert resp.json() == []


async def test_bulk_create_is_all_or_nothing(client, session_factory, admin_headers):
    first = await create_county(session_factory, "Ada", "ADA")
    second = await create_county(session_factory, "Bay", "BAY")
    payload = task_payload(first.id)
    payload.pop("county_id")

    resp = await client.post(
        "/api/tasks/bulk",
        json={**payload, "county_ids": [str(first.id), str(uuid.uuid4())]},
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert (await client.get("/api/tasks", headers=admin_headers)).json() == []

    resp = await client.post(
        "/api/tasks/bulk",
        json={**payload, "county_ids": [str(first.id), str(second.id)]},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["count"] == 2
    assert body["message"] == "Created 2 tasks successfully"
    assert {task["county_id"] for task in body["tasks"]} == {str(first.id), str(second.id)}


async def test_assignment_emails_and_notifies_county_users(client, session_factory, admin_headers, email_dispatcher):
    county = await create_county(session_factory, "Wake", "WAK", email="clerk@wake.gov")
    member = await create_user(session_factory, "wake_member", "wake@test.com", county_id=county.id)
    quiet = await create_county(session_factory, "Quiet", "QUI")

    resp = await client.post("/api/tasks", json=task_payload(county.id), headers=admin_headers)
    assert resp.status_code == 201
    resp = await client.post("/api/tasks", json=task_payload(quiet.id), headers=admin_headers)
    assert resp.status_code == 201

    assert [message.to for message in email_dispatcher.sent] == ["clerk@wake.gov"]
    assert email_dispatcher.sent[0].subject == "New Task Assigned: Submit annual budget"
    assert "admin" in email_dispatcher.sent[0].text

    notifications = await notifications_for(session_factory, member.id)
    assert len(notifications) == 1
    assert notifications[0].type == "task_assigned"
    assert notifications[0].title == "New Task Assigned"


async def test_email_failure_does_not_fail_creation(client, session_factory, admin_headers, email_dispatcher):
    county = await create_county(session_factory, "Nash", "NAS", email="nash@county.gov")
    email_dispatcher.fail = True

    resp = await client.post("/api/tasks", json=task_payload(county.id), headers=admin_headers)

    assert resp.status_code == 201
    assert len((await client.get("/api/tasks", headers=admin_headers)).json()) == 1


async def test_bulk_email_failure_for_one_county_keeps_the_rest(
    client, session_factory, admin_headers, email_dispatcher
):
    broken = await create_county(session_factory, "Pitt", "PIT", email="pitt@county.gov")
    healthy = await create_county(session_factory, "Wayne", "WAY", email="wayne@county.gov")
    broken_member = await create_user(session_factory, "pitt_member", "pitt@test.com", county_id=broken.id)
    healthy_member = await create_user(session_factory, "wayne_member", "wayne@test.com", county_id=healthy.id)
    email_dispatcher.fail_for.add("pitt@county.gov")

    payload = task_payload(broken.id)
    payload.pop("county_id")
    resp = await client.post(
        "/api/tasks/bulk",
        json={**payload, "county_ids": [str(broken.id), str(healthy.id)]},
        headers=admin_headers,
    )

    assert resp.status_code == 201
    assert resp.json()["count"] == 2
    assert len((await client.get("/api/tasks", headers=admin_headers)).json()) == 2
    assert [message.to for message in email_dispatcher.sent] == ["wayne@county.gov"]

    for member in (healthy_member, broken_member):
        notifications = await notifications_for(session_factory, member.id)
        assert [notification.type for notification in notifications] == ["task_assigned"]


async def test_manual_reminder_without_county_email(client, admin_headers, admin, session_factory, email_dispatcher):
    resp = await client.post("/api/counties", json={"name": "Test", "code": "TEST"}, headers=admin_headers)
    assert resp.status_code == 201
    county_id = resp.json()["id"]

    task = (await client.post("/api/tasks", json=task_payload(county_id), headers=admin_headers)).json()

    resp = await client.post(f"/api/tasks/{task['id']}/reminder", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Reminder sent successfully"
    assert len(body["task"]["reminders"]) == 1
    assert body["task"]["reminders"][0]["origin"] == "user"
    assert body["task"]["reminders"][0]["sent_by"] == str(admin.id)
    assert [message.to for message in email_dispatcher.sent] == ["fallback@test.com"]

    notifications = await notifications_for(session_factory, admin.id)
    assert [n.type for n in notifications] == ["reminder"]


async def test_manual_reminder_is_recorded_when_email_fails(client, session_factory, admin_headers, email_dispatcher):
    county = await create_county(session_factory, "Hoke", "HOK", email="hoke@county.gov")
    task = (await client.post("/api/tasks", json=task_payload(county.id), headers=admin_headers)).json()
    email_dispatcher.fail = True

    for _ in range(2):
        resp = await client.post(f"/api/tasks/{task['id']}/reminder", headers=admin_headers)
        assert resp.status_code == 200

    assert len(resp.json()["task"]["reminders"]) == 2


async def test_completing_task_notifies_assigner(client, session_factory, admin, admin_headers):
    county = await create_county(session_factory, "Duplin", "DUP")
    member = await create_user(session_factory, "duplin_member", "duplin@test.com", county_id=county.id)
    task = (await client.post("/api/tasks", json=task_payload(county.id), headers=admin_headers)).json()

    resp = await client.put(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=auth_headers(member))
    assert resp.status_code == 200
    await client.put(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=auth_headers(member))

    notifications = await notifications_for(session_factory, admin.id)
    assert [n.type for n in notifications] == ["task_completed"]
    assert "Duplin" in notifications[0].message


async def test_delete_task_removes_its_notifications(client, session_factory, admin_headers):
    county = await create_county(session_factory, "Gates", "GAT")
    member = await create_user(session_factory, "gates_member", "gates@test.com", county_id=county.id)
    task = (await client.post("/api/tasks", json=task_payload(county.id), headers=admin_headers)).json()
    assert len(await notifications_for(session_factory, member.id)) == 1

    resp = await client.delete(f"/api/tasks/{task['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Task deleted successfully"}

    assert (await client.get(f"/api/tasks/{task['id']}", headers=admin_headers)).status_code == 404
    assert await notifications_for(session_factory, member.id) == []


async def test_requests_without_token_are_rejected(client):
    resp = await client.get("/api/tasks")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"

    resp = await client.get("/api/tasks", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401
