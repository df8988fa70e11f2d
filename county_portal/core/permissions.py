"""
Role-based permission helpers for the county portal.

Two roles exist: admins see and change everything, county users are scoped
to the one county referenced by their county_id. Every check here is a pure
predicate over the request's user; callers confirm the target resource
exists before asking, so a denied county user gets 403 rather than 404.
"""

from typing import Any, Optional, Protocol
from uuid import UUID

from county_portal.errors import AccessDenied


class Roles:
    """Standard roles in the portal."""
    ADMIN = "admin"
    COUNTY_USER = "county_user"

    ALL = [ADMIN, COUNTY_USER]


class PortalPrincipal(Protocol):
    role: str
    county_id: Optional[UUID]


def is_admin(user: PortalPrincipal) -> bool:
    """Check if user is admin."""
    return user is not None and user.role == Roles.ADMIN


def can_access_county(user: PortalPrincipal, county_id: Any) -> bool:
    """
    Check whether user may view or mutate resources owned by county_id.

    Ids are compared as strings so UUID objects and path strings match.
    """
    if user is None:
        return False
    if is_admin(user):
        return True
    if user.role != Roles.COUNTY_USER or user.county_id is None or county_id is None:
        return False
    return str(user.county_id) == str(county_id)


def ensure_admin(user: PortalPrincipal, action: str = "perform this action") -> None:
    """
    Raise AccessDenied unless user is an admin.

    Args:
        user: Current user
        action: Description of action being blocked
    """
    if not is_admin(user):
        raise AccessDenied(f"Admin access required to {action}")


def ensure_county_access(user: PortalPrincipal, county_id: Any) -> None:
    """Raise AccessDenied unless user may access county_id."""
    if not can_access_county(user, county_id):
        raise AccessDenied("Access denied")


def scoped_county_id(user: PortalPrincipal) -> Optional[UUID]:
    """
    County filter to apply to list queries for this user.

    None for admins (no restriction); a county user's own county otherwise.
    """
    if is_admin(user):
        return None
    return user.county_id
