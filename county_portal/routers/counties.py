"""
County router - API endpoints for counties.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.config import Settings
from county_portal.core.dependencies import get_current_user, get_db, get_settings, require_admin
from county_portal.models.user import User
from county_portal.schemas.base import MessageResponse
from county_portal.schemas.county import (
    CountyCreate,
    CountyCreated,
    CountyRead,
    CountyUpdate,
    CountyWithStats,
    ProvisionedAccount,
    TaskStats,
)
from county_portal.services.county_service import CountyService

router = APIRouter(prefix="/counties", tags=["counties"])


def get_county_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CountyService:
    return CountyService(
        db,
        user_email_domain=settings.COUNTY_USER_EMAIL_DOMAIN,
        default_user_password=settings.COUNTY_USER_DEFAULT_PASSWORD,
    )


@router.get("", response_model=List[CountyWithStats])
async def list_counties(
    user: User = Depends(get_current_user),
    service: CountyService = Depends(get_county_service),
):
    """List counties with task statistics. County users only see their own."""
    rows = await service.list_counties(user)
    return [
        CountyWithStats(
            **CountyRead.model_validate(county).model_dump(),
            task_stats=TaskStats(**stats),
        )
        for county, stats in rows
    ]


@router.get("/{county_id}", response_model=CountyRead)
async def get_county(
    county_id: UUID,
    user: User = Depends(get_current_user),
    service: CountyService = Depends(get_county_service),
):
    return await service.get_county(user, county_id)


@router.post("", response_model=CountyCreated, status_code=status.HTTP_201_CREATED)
async def create_county(
    data: CountyCreate,
    user: User = Depends(require_admin),
    service: CountyService = Depends(get_county_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a county.

    A county user account is provisioned alongside it when the derived
    username and email are free; its initial password is only returned here.
    """
    result = await service.create_county(user, data)
    await db.commit()

    county, provisioned = result.value
    account = None
    if provisioned is not None:
        account = ProvisionedAccount(
            user_id=provisioned.user.id,
            username=provisioned.user.username,
            email=provisioned.user.email,
            initial_password=provisioned.initial_password,
        )
    return CountyCreated(**CountyRead.model_validate(county).model_dump(), provisioned_user=account)


@router.put("/{county_id}", response_model=CountyRead)
async def update_county(
    county_id: UUID,
    data: CountyUpdate,
    user: User = Depends(require_admin),
    service: CountyService = Depends(get_county_service),
    db: AsyncSession = Depends(get_db),
):
    county = await service.update_county(user, county_id, data)
    await db.commit()
    return county


@router.delete("/{county_id}", response_model=MessageResponse)
async def delete_county(
    county_id: UUID,
    user: User = Depends(require_admin),
    service: CountyService = Depends(get_county_service),
    db: AsyncSession = Depends(get_db),
):
    await service.delete_county(user, county_id)
    await db.commit()
    return MessageResponse(message="County deleted successfully")
