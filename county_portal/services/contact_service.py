"""
County contact sheet service.
"""

from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.permissions import ensure_county_access
from county_portal.errors import NotFound
from county_portal.models.contact import DEFAULT_CONTACT_ROLES, CountyContacts
from county_portal.models.user import User
from county_portal.repositories.contact_repository import ContactRepository
from county_portal.repositories.county_repository import CountyRepository
from county_portal.schemas.contact import ContactEntry


def blank_entry(role: str) -> Dict[str, str]:
    return {"role": role, "name": "", "email": "", "phone": ""}


def with_default_roles(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Append any default role missing from entries.

    Existing entries keep their order and values.
    """
    present = {entry.get("role") for entry in entries}
    missing = [blank_entry(role) for role in DEFAULT_CONTACT_ROLES if role not in present]
    return list(entries) + missing


class ContactService:
    """Service for county contact documents."""

    def __init__(self, db: AsyncSession):
        self.repository = ContactRepository(db)
        self.counties = CountyRepository(db)

    async def get_contacts(self, user: User, county_id: UUID) -> CountyContacts:
        """Fetch the county's contact document, creating or completing it as needed."""
        await self._check_county(user, county_id)

        document = await self.repository.get_for_county(county_id)
        if document is None:
            return await self.repository.create(county_id, [blank_entry(role) for role in DEFAULT_CONTACT_ROLES])

        completed = with_default_roles(document.entries or [])
        if len(completed) != len(document.entries or []):
            await self.repository.save_entries(document, completed)
        return document

    async def replace_contacts(self, user: User, county_id: UUID, contacts: List[ContactEntry]) -> CountyContacts:
        await self._check_county(user, county_id)

        entries = [entry.model_dump() for entry in contacts]
        document = await self.repository.get_for_county(county_id)
        if document is None:
            return await self.repository.create(county_id, entries)
        return await self.repository.save_entries(document, entries)

    async def _check_county(self, user: User, county_id: UUID) -> None:
        ensure_county_access(user, county_id)
        if await self.counties.get_by_id(county_id) is None:
            raise NotFound("County not found")
