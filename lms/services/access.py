"""
Role hierarchy and permission checks.

Global roles are ordered: regular < business < admin < super-admin.
Regular users additionally carry a tier that unlocks dashboard sections
and gated content.
"""
from typing import Dict, Optional

from lms.models.schemas import User, UserPermissions

ROLE_LEVELS: Dict[str, int] = {
    "regular": 1,
    "business": 2,
    "admin": 3,
    "super-admin": 4,
}

# Content access level -> minimum tier rank of a regular user
TIER_RANKS: Dict[str, int] = {"basic": 1, "premium": 2, "pro": 3}
ACCESS_LEVEL_RANKS: Dict[str, int] = {"free": 0, "basic": 1, "premium": 2, "vip": 3}


def has_role(user: Optional[User], role: str) -> bool:
    return user is not None and role in user.roles


def is_super_admin(user: Optional[User]) -> bool:
    return has_role(user, "super-admin")


def is_admin_or_higher(user: Optional[User]) -> bool:
    return has_role(user, "super-admin") or has_role(user, "admin")


def has_lms_access(user: Optional[User]) -> bool:
    """Any recognised role grants access to the dashboard."""
    return user is not None and any(role in ROLE_LEVELS for role in user.roles)


def has_required_role(user: Optional[User], required_role: str) -> bool:
    """
    Check the user against the role hierarchy.

    Args:
        user: User to check, may be None
        required_role: Minimum role; unknown names count as level 1

    Returns:
        True when any known role of the user is at or above the required level
    """
    if user is None or not user.roles:
        return False
    if is_super_admin(user):
        return True

    required_level = ROLE_LEVELS.get(required_role, 1)
    return any(
        ROLE_LEVELS[role] >= required_level
        for role in user.roles
        if role in ROLE_LEVELS
    )


def get_user_tier(user: Optional[User]) -> Optional[str]:
    """Tier for regular users, basic when unset. None for everyone else."""
    if not has_role(user, "regular"):
        return None
    return user.tier or "basic"


def get_user_permissions(user: Optional[User]) -> UserPermissions:
    if user is None:
        return UserPermissions()

    if is_admin_or_higher(user):
        return UserPermissions(
            can_access_admin=True,
            can_access_programs=True,
            can_access_live_lessons=True,
            can_access_videos=True,
            can_access_achievements=True,
        )

    if has_role(user, "business"):
        return UserPermissions(
            can_access_programs=True,
            can_access_live_lessons=True,
            can_access_videos=True,
            can_access_achievements=True,
        )

    if has_role(user, "regular"):
        tier = get_user_tier(user)
        return UserPermissions(
            can_access_programs=tier in ("premium", "pro"),
            can_access_live_lessons=tier == "pro",
            can_access_videos=True,
            can_access_achievements=True,
            tier=tier,
        )

    return UserPermissions(can_access_videos=True, can_access_achievements=True)


def can_access_tenant(user: Optional[User], tenant_id: str) -> bool:
    if user is None:
        return False
    if is_super_admin(user):
        return True
    return user.membership(tenant_id) is not None


def is_tenant_admin(user: Optional[User], tenant_id: str) -> bool:
    if is_super_admin(user):
        return True
    membership = user.membership(tenant_id) if user is not None else None
    return membership is not None and "tenant-admin" in membership.roles


def can_view_content(user: Optional[User], access_level: str) -> bool:
    """Whether the user may watch content gated at ``access_level``."""
    required = ACCESS_LEVEL_RANKS.get(access_level, 0)
    if required == 0:
        return True
    if user is None:
        return False
    if has_required_role(user, "business"):
        return True
    tier = get_user_tier(user)
    return tier is not None and TIER_RANKS[tier] >= required
