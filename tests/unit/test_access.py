import pytest

from lms.models.schemas import TenantMembership, User
from lms.services.access import (
    can_access_tenant,
    can_view_content,
    get_user_permissions,
    get_user_tier,
    has_lms_access,
    has_required_role,
    is_admin_or_higher,
    is_tenant_admin,
)


def make_user(roles, tier=None, tenants=()):
    return User(
        email="someone@example.com",
        roles=roles,
        tier=tier,
        tenants=[TenantMembership(tenant_id=t, roles=r) for t, r in tenants],
    )


class TestRoleHierarchy:
    @pytest.mark.parametrize(
        "roles,required,expected",
        [
            (["regular"], "regular", True),
            (["regular"], "business", False),
            (["business"], "regular", True),
            (["business"], "admin", False),
            (["admin"], "business", True),
            (["admin"], "super-admin", False),
            (["super-admin"], "super-admin", True),
            (["regular", "admin"], "admin", True),
        ],
    )
    def test_has_required_role(self, roles, required, expected):
        assert has_required_role(make_user(roles), required) is expected

    def test_unknown_required_role_needs_any_known_role(self):
        assert has_required_role(make_user(["regular"]), "moderator") is True

    def test_no_user_or_roles_fails(self):
        assert has_required_role(None, "regular") is False
        assert has_required_role(make_user([]), "regular") is False

    def test_admin_or_higher(self):
        assert is_admin_or_higher(make_user(["admin"])) is True
        assert is_admin_or_higher(make_user(["super-admin"])) is True
        assert is_admin_or_higher(make_user(["business"])) is False
        assert is_admin_or_higher(None) is False

    def test_lms_access(self):
        assert has_lms_access(make_user(["regular"])) is True
        assert has_lms_access(make_user([])) is False
        assert has_lms_access(None) is False


class TestTiers:
    def test_regular_user_defaults_to_basic(self):
        assert get_user_tier(make_user(["regular"])) == "basic"
        assert get_user_tier(make_user(["regular"], tier="pro")) == "pro"

    def test_non_regular_users_have_no_tier(self):
        assert get_user_tier(make_user(["admin"], tier="pro")) is None
        assert get_user_tier(None) is None

    @pytest.mark.parametrize(
        "tier,programs,live",
        [
            ("basic", False, False),
            ("premium", True, False),
            ("pro", True, True),
        ],
    )
    def test_regular_permissions_follow_tier(self, tier, programs, live):
        perms = get_user_permissions(make_user(["regular"], tier=tier))

        assert perms.can_access_admin is False
        assert perms.can_access_videos is True
        assert perms.can_access_achievements is True
        assert perms.can_access_programs is programs
        assert perms.can_access_live_lessons is live
        assert perms.tier == tier

    def test_business_gets_everything_but_admin(self):
        perms = get_user_permissions(make_user(["business"]))
        assert perms.can_access_admin is False
        assert perms.can_access_programs is True
        assert perms.can_access_live_lessons is True
        assert perms.tier is None

    def test_admin_gets_everything(self):
        perms = get_user_permissions(make_user(["admin"]))
        assert perms.can_access_admin is True
        assert perms.can_access_live_lessons is True

    def test_anonymous_gets_nothing(self):
        perms = get_user_permissions(None)
        assert perms.can_access_videos is False
        assert perms.can_access_admin is False


class TestTenantAccess:
    def test_member_can_access_own_tenant_only(self):
        user = make_user(["regular"], tenants=[("tenant-a", ["tenant-viewer"])])
        assert can_access_tenant(user, "tenant-a") is True
        assert can_access_tenant(user, "tenant-b") is False

    def test_super_admin_can_access_any_tenant(self):
        assert can_access_tenant(make_user(["super-admin"]), "tenant-x") is True
        assert is_tenant_admin(make_user(["super-admin"]), "tenant-x") is True

    def test_tenant_admin_role(self):
        user = make_user(
            ["admin"],
            tenants=[("tenant-a", ["tenant-admin"]), ("tenant-b", ["tenant-viewer"])],
        )
        assert is_tenant_admin(user, "tenant-a") is True
        assert is_tenant_admin(user, "tenant-b") is False
        assert is_tenant_admin(None, "tenant-a") is False


class TestContentGating:
    @pytest.mark.parametrize(
        "tier,level,expected",
        [
            ("basic", "free", True),
            ("basic", "basic", True),
            ("basic", "premium", False),
            ("premium", "premium", True),
            ("premium", "vip", False),
            ("pro", "vip", True),
        ],
    )
    def test_regular_user_by_tier(self, tier, level, expected):
        assert can_view_content(make_user(["regular"], tier=tier), level) is expected

    def test_free_content_needs_no_user(self):
        assert can_view_content(None, "free") is True
        assert can_view_content(None, "basic") is False

    def test_staff_sees_all_content(self):
        assert can_view_content(make_user(["business"]), "vip") is True
        assert can_view_content(make_user(["admin"]), "vip") is True
