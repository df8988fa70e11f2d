"""
Contact router - per-county contact sheets.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.dependencies import get_current_user, get_db
from county_portal.models.contact import CountyContacts
from county_portal.models.user import User
from county_portal.schemas.contact import ContactEntry, ContactsRead, ContactsUpdate
from county_portal.services.contact_service import ContactService

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _to_read(document: CountyContacts) -> ContactsRead:
    return ContactsRead(
        id=document.id,
        county_id=document.county_id,
        contacts=[ContactEntry(**entry) for entry in document.entries or []],
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


@router.get("/{county_id}", response_model=ContactsRead)
async def get_contacts(
    county_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Contact sheet for a county, seeded with the default roles on first access."""
    document = await ContactService(db).get_contacts(user, county_id)
    await db.commit()
    return _to_read(document)


@router.put("/{county_id}", response_model=ContactsRead)
async def update_contacts(
    county_id: UUID,
    data: ContactsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the county's contact entries."""
    document = await ContactService(db).replace_contacts(user, county_id, data.contacts)
    await db.commit()
    return _to_read(document)
