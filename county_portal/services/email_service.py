"""
Email dispatch for task assignment, form availability and reminders.

Sending is best-effort everywhere it is used: callers catch and log whatever
these methods raise. Message bodies are rendered from Jinja2 templates under
county_portal/templates/email.
"""

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, PackageLoader, select_autoescape

from county_portal.core.config import Settings
from county_portal.utils.time import as_utc

logger = logging.getLogger(__name__)

_templates = Environment(
    loader=PackageLoader("county_portal", "templates"),
    autoescape=select_autoescape(["html"]),
)


class EmailNotConfigured(RuntimeError):
    """Raised when a send is attempted without an SMTP host."""


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


def format_deadline(deadline: datetime) -> str:
    return as_utc(deadline).strftime("%B %d, %Y %I:%M %p UTC")


def render_email(template: str, context: Dict[str, Any]) -> Tuple[str, str]:
    """Render the html and plain-text variants of one template."""
    html = _templates.get_template(f"email/{template}.html").render(**context)
    text = _templates.get_template(f"email/{template}.txt").render(**context)
    return html, text


class EmailDispatcher:
    """
    Builds portal emails and hands them to a transport.

    Subclasses implement send(); tests substitute a recording dispatcher.
    """

    def __init__(self, app_name: str = "County Task Portal"):
        self.app_name = app_name

    async def send(self, message: OutgoingEmail) -> None:
        raise NotImplementedError

    async def _send_template(self, to: str, subject: str, template: str, **context: Any) -> OutgoingEmail:
        html, text = render_email(template, {"app_name": self.app_name, **context})
        message = OutgoingEmail(to=to, subject=subject, html=html, text=text)
        await self.send(message)
        logger.info("Sent %s email to %s", template, to)
        return message

    async def send_reminder_email(
        self,
        to: str,
        county_name: str,
        task_title: str,
        deadline: datetime,
    ) -> OutgoingEmail:
        return await self._send_template(
            to,
            f"{county_name} Task Reminder",
            "reminder",
            county_name=county_name,
            task_title=task_title,
            deadline=format_deadline(deadline),
        )

    async def send_task_assignment_email(
        self,
        to: str,
        county_name: str,
        task_title: str,
        deadline: datetime,
        assigned_by: str,
    ) -> OutgoingEmail:
        return await self._send_template(
            to,
            f"New Task Assigned: {task_title}",
            "task_assigned",
            county_name=county_name,
            task_title=task_title,
            deadline=format_deadline(deadline),
            assigned_by=assigned_by,
        )

    async def send_form_upload_email(
        self,
        to: str,
        county_name: str,
        task_title: str,
        form_name: str,
    ) -> OutgoingEmail:
        return await self._send_template(
            to,
            f"Form Available: {task_title}",
            "form_available",
            county_name=county_name,
            task_title=task_title,
            form_name=form_name,
        )


class SmtpEmailDispatcher(EmailDispatcher):
    """Delivers mail over SMTP; the blocking client runs in a worker thread."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender: Optional[str] = None,
        app_name: str = "County Task Portal",
        timeout: float = 30.0,
    ):
        super().__init__(app_name=app_name)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender or username
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpEmailDispatcher":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            sender=settings.EMAIL_FROM,
            app_name=settings.APP_NAME,
        )

    async def send(self, message: OutgoingEmail) -> None:
        if not self.host or not self.sender:
            raise EmailNotConfigured("SMTP_HOST and EMAIL_FROM (or SMTP_USERNAME) must be set to send email")
        await asyncio.to_thread(self._deliver, message)

    def _deliver(self, message: OutgoingEmail) -> None:
        mime = EmailMessage()
        mime["From"] = self.sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
            if self.use_tls:
                client.starttls()
            if self.username and self.password:
                client.login(self.username, self.password)
            client.send_message(mime)
