"""
County repository - database operations for County.
"""

from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.models.county import County
from county_portal.models.task import Task


class CountyRepository:
    """Repository for County database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, county_id: Optional[UUID] = None) -> List[County]:
        """List counties sorted by name, optionally restricted to one id."""
        query = select(County)
        if county_id is not None:
            query = query.where(County.id == county_id)
        result = await self.db.execute(query.order_by(County.name.asc()))
        return list(result.scalars().all())

    async def get_by_id(self, county_id: UUID) -> Optional[County]:
        """Get a county by ID."""
        result = await self.db.execute(select(County).where(County.id == county_id))
        return result.scalar_one_or_none()

    async def get_by_ids(self, county_ids: Sequence[UUID]) -> List[County]:
        if not county_ids:
            return []
        result = await self.db.execute(select(County).where(County.id.in_(list(county_ids))))
        return list(result.scalars().all())

    async def find_duplicate(
        self,
        name: Optional[str],
        code: Optional[str],
        exclude_id: Optional[UUID] = None,
    ) -> Optional[County]:
        """Find another county already using this name or code."""
        clauses = []
        if name:
            clauses.append(County.name == name)
        if code:
            clauses.append(County.code == code)
        if not clauses:
            return None
        query = select(County).where(or_(*clauses))
        if exclude_id is not None:
            query = query.where(County.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def create(self, name: str, code: str, description: str = "", email: str = "") -> County:
        """Create a new county."""
        county = County(name=name, code=code, description=description, email=email)
        self.db.add(county)
        await self.db.flush()
        return county

    async def update(self, county: County, fields: Dict[str, object]) -> County:
        """Apply field changes to a county."""
        for field, value in fields.items():
            setattr(county, field, value)
        await self.db.flush()
        return county

    async def delete(self, county_id: UUID) -> None:
        await self.db.execute(delete(County).where(County.id == county_id))

    async def task_stats(self, county_ids: Sequence[UUID]) -> Dict[UUID, Dict[str, int]]:
        """
        Count tasks per county and status.

        Returns {county_id: {"total", "pending", "in_progress", "completed"}};
        counties without tasks are absent from the result.
        """
        if not county_ids:
            return {}
        result = await self.db.execute(
            select(Task.county_id, Task.status, func.count(Task.id))
            .where(Task.county_id.in_(list(county_ids)))
            .group_by(Task.county_id, Task.status)
        )
        stats: Dict[UUID, Dict[str, int]] = {}
        for county_id, status, count in result.all():
            entry = stats.setdefault(county_id, {"total": 0, "pending": 0, "in_progress": 0, "completed": 0})
            entry["total"] += count
            if status in entry:
                entry[status] += count
        return stats
