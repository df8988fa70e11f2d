"""Email rendering and SMTP configuration."""

from datetime import datetime, timezone

import pytest

from county_portal.services.email_service import (
    EmailNotConfigured,
    OutgoingEmail,
    SmtpEmailDispatcher,
    format_deadline,
    render_email,
)

from tests.conftest import RecordingEmailDispatcher

DEADLINE = datetime(2031, 3, 5, 14, 30, tzinfo=timezone.utc)


@pytest.mark.unit
def test_format_deadline_is_utc():
    assert format_deadline(DEADLINE) == "March 05, 2031 02:30 PM UTC"
    assert format_deadline(DEADLINE.replace(tzinfo=None)) == "March 05, 2031 02:30 PM UTC"


@pytest.mark.unit
def test_render_escapes_html_but_not_text():
    html, text = render_email(
        "task_assigned",
        {
            "app_name": "County Task Portal",
            "task_title": "Roads <draft>",
            "county_name": "Wake",
            "deadline": format_deadline(DEADLINE),
            "assigned_by": "admin",
        },
    )

    assert "Roads &lt;draft&gt;" in html
    assert "Task Name: Roads <draft>" in text
    assert "Assigned By: admin" in text


async def test_dispatcher_builds_each_message():
    dispatcher = RecordingEmailDispatcher()

    await dispatcher.send_reminder_email("a@county.gov", "Wake", "Budget", DEADLINE)
    await dispatcher.send_task_assignment_email("a@county.gov", "Wake", "Budget", DEADLINE, "admin")
    await dispatcher.send_form_upload_email("a@county.gov", "Wake", "Budget", "budget.pdf")

    assert [message.subject for message in dispatcher.sent] == [
        "Wake Task Reminder",
        "New Task Assigned: Budget",
        "Form Available: Budget",
    ]
    assert "budget.pdf" in dispatcher.sent[2].text
    assert all("County Task Portal" in message.text for message in dispatcher.sent)


async def test_smtp_dispatcher_without_host_refuses_to_send():
    dispatcher = SmtpEmailDispatcher(host=None)

    with pytest.raises(EmailNotConfigured):
        await dispatcher.send(OutgoingEmail(to="a@county.gov", subject="s", html="<p>h</p>", text="t"))
