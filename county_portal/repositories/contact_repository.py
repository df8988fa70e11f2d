"""
Contact repository - database operations for county contact documents.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.models.contact import CountyContacts


class ContactRepository:
    """Repository for CountyContacts database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_county(self, county_id: UUID) -> Optional[CountyContacts]:
        result = await self.db.execute(
            select(CountyContacts).where(CountyContacts.county_id == county_id)
        )
        return result.scalar_one_or_none()

    async def create(self, county_id: UUID, entries: List[Dict[str, Any]]) -> CountyContacts:
        document = CountyContacts(county_id=county_id, entries=list(entries))
        self.db.add(document)
        await self.db.flush()
        return document

    async def save_entries(self, document: CountyContacts, entries: List[Dict[str, Any]]) -> CountyContacts:
        """Replace the entry list (a new list object so the JSON column is marked dirty)."""
        document.entries = [dict(entry) for entry in entries]
        await self.db.flush()
        return document

    async def delete_for_county(self, county_id: UUID) -> None:
        await self.db.execute(delete(CountyContacts).where(CountyContacts.county_id == county_id))
