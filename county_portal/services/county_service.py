"""
County business logic service.
"""

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.permissions import Roles, ensure_admin, ensure_county_access, is_admin
from county_portal.errors import Conflict, NotFound
from county_portal.models.county import County
from county_portal.models.user import User
from county_portal.repositories.contact_repository import ContactRepository
from county_portal.repositories.county_repository import CountyRepository
from county_portal.repositories.task_repository import TaskRepository
from county_portal.repositories.user_repository import UserRepository
from county_portal.schemas.county import CountyCreate, CountyUpdate
from county_portal.services.side_effects import OperationResult, SideEffectOutcome, run_side_effect

logger = logging.getLogger(__name__)

EMPTY_STATS = {"total": 0, "pending": 0, "in_progress": 0, "completed": 0}


@dataclass(frozen=True)
class ProvisionedUser:
    user: User
    initial_password: str


def county_slug(name: str) -> str:
    """Lower-cased county name with all whitespace removed."""
    return re.sub(r"\s+", "", name).lower()


class CountyService:
    """Service for county business logic."""

    def __init__(
        self,
        db: AsyncSession,
        user_email_domain: str = "civisight.org",
        default_user_password: Optional[str] = None,
    ):
        self.db = db
        self.repository = CountyRepository(db)
        self.tasks = TaskRepository(db)
        self.users = UserRepository(db)
        self.contacts = ContactRepository(db)
        self.user_email_domain = user_email_domain
        self.default_user_password = default_user_password

    async def list_counties(self, user: User) -> List[Tuple[County, Dict[str, int]]]:
        """Counties visible to user, each paired with its task counts."""
        if is_admin(user):
            counties = await self.repository.list()
        elif user.county_id is None:
            return []
        else:
            counties = await self.repository.list(county_id=user.county_id)

        stats = await self.repository.task_stats([county.id for county in counties])
        return [(county, stats.get(county.id, dict(EMPTY_STATS))) for county in counties]

    async def get_county(self, user: User, county_id: UUID) -> County:
        county = await self.repository.get_by_id(county_id)
        if county is None:
            raise NotFound("County not found")
        ensure_county_access(user, county.id)
        return county

    async def create_county(self, user: User, data: CountyCreate) -> OperationResult[Tuple[County, Optional[ProvisionedUser]]]:
        """
        Create a county and, best-effort, its county user account.

        The account is <slug>_user / <slug>@<domain>. Its password is the
        configured default when set, otherwise a random token that is only
        ever returned here.
        """
        ensure_admin(user, "create counties")
        if await self.repository.find_duplicate(data.name, data.code) is not None:
            raise Conflict("County with this name or code already exists")

        county = await self.repository.create(
            name=data.name,
            code=data.code,
            description=data.description or "",
            email=(data.email or "").lower(),
        )
        logger.info("County %s (%s) created by %s", county.name, county.code, user.username)

        outcomes: List[SideEffectOutcome] = []
        provisioned: List[ProvisionedUser] = []
        await run_side_effect(
            outcomes,
            "provision_county_user",
            lambda: self._provision_user(county, provisioned),
        )
        return OperationResult((county, provisioned[0] if provisioned else None), outcomes)

    async def update_county(self, user: User, county_id: UUID, data: CountyUpdate) -> County:
        ensure_admin(user, "update counties")
        county = await self.repository.get_by_id(county_id)
        if county is None:
            raise NotFound("County not found")

        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in fields:
            fields["email"] = fields["email"].lower()
        if await self.repository.find_duplicate(fields.get("name"), fields.get("code"), exclude_id=county.id):
            raise Conflict("County with this name or code already exists")

        return await self.repository.update(county, fields)

    async def delete_county(self, user: User, county_id: UUID) -> None:
        """
        Delete a county with its tasks, their reminders and notifications, and
        its contact document. Member users stay and lose their county.
        """
        ensure_admin(user, "delete counties")
        county = await self.repository.get_by_id(county_id)
        if county is None:
            raise NotFound("County not found")

        task_ids = await self.tasks.ids_for_county(county.id)
        removed = await self.tasks.delete_many(task_ids)
        await self.contacts.delete_for_county(county.id)
        detached = await self.users.detach_from_county(county.id)
        await self.repository.delete(county.id)
        logger.info(
            "County %s deleted by %s (%d tasks removed, %d users detached)",
            county.name,
            user.username,
            removed,
            detached,
        )

    async def _provision_user(self, county: County, provisioned: List[ProvisionedUser]) -> None:
        slug = county_slug(county.name)
        username = f"{slug}_user"
        email = f"{slug}@{self.user_email_domain}"

        if await self.users.find_by_username_or_email(username, email) is not None:
            logger.info("County user %s already exists, skipping provisioning", username)
            return

        password = self.default_user_password or secrets.token_urlsafe(12)
        async with self.db.begin_nested():
            account = await self.users.create(
                username=username,
                email=email,
                password=password,
                role=Roles.COUNTY_USER,
                county_id=county.id,
            )
        provisioned.append(ProvisionedUser(user=account, initial_password=password))
        logger.info("Provisioned county user %s for %s", username, county.name)
