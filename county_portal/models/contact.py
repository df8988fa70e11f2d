"""
County contact document.

One row per county holding an ordered list of role/name/email/phone entries.
"""

import uuid
from typing import Any, Dict, List

from sqlalchemy import JSON, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from county_portal.models.base_model import TimestampedModel


DEFAULT_CONTACT_ROLES = [
    "County Manager / Administrator",
    "Assistant County Manager",
    "County Commission Chair / Board of Commissioners",
    "County Clerk / Clerk of the Board",
    "Chief Financial Officer (CFO) / Finance Director",
    "Budget Director",
    "Grants Manager / Grants Coordinator",
    "Procurement / Purchasing Director",
    "Accounts Payable / Receivable Manager",
    "County Attorney / Legal Counsel",
    "Compliance Officer",
    "Risk Management Director",
    "Insurance / Claims Manager",
    "Open Records / FOIA Officer",
    "Elections Supervisor",
    "Registrar",
    "Records Manager",
    "Deeds & Records Clerk",
]


class CountyContacts(TimestampedModel):
    """
    Contact document table.

    entries is stored as JSON; always assign a new list rather than mutating
    the loaded one so the change is tracked.
    """

    __tablename__ = "county_contacts"

    county_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("county.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    entries: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )
