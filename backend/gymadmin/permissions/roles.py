# Overview: Default role to permission grants.
# Roles not listed here resolve to no permissions.

from .definitions import Permission, PERMISSION_DEFINITIONS


DEFAULT_ROLE_PERMISSIONS = {
    # Super admin: everything
    "super_admin": tuple(perm[0] for perm in PERMISSION_DEFINITIONS),

    # Branch manager: full control of their branch
    "manager": (
        Permission.MEMBERS_READ,
        Permission.MEMBERS_WRITE,
        Permission.MEMBERS_DELETE,
        Permission.MEMBERS_SEARCH,
        Permission.STAFF_READ,
        Permission.STAFF_WRITE,
        Permission.STAFF_MANAGE_PINS,
        Permission.STAFF_DELETE,
        Permission.PACKAGES_READ,
        Permission.PACKAGES_WRITE,
        Permission.PACKAGES_PRICING,
        Permission.PACKAGES_DELETE,
        Permission.BRANCHES_READ,
        Permission.ANALYTICS_READ,
        Permission.ANALYTICS_FINANCIAL,
        Permission.RENEWALS_PROCESS,
        Permission.RENEWALS_READ,
        Permission.PAYMENTS_READ,
        Permission.PAYMENTS_PROCESS,
    ),

    # Senior staff: most operations except staff management
    "senior_staff": (
        Permission.MEMBERS_READ,
        Permission.MEMBERS_WRITE,
        Permission.MEMBERS_SEARCH,
        Permission.STAFF_READ,
        Permission.PACKAGES_READ,
        Permission.PACKAGES_WRITE,
        Permission.PACKAGES_PRICING,
        Permission.BRANCHES_READ,
        Permission.PACKAGES_DELETE,
        Permission.ANALYTICS_READ,
        Permission.RENEWALS_PROCESS,
        Permission.RENEWALS_READ,
        Permission.PAYMENTS_READ,
    ),

    # Associate: basic operations only
    "associate": (
        Permission.MEMBERS_READ,
        Permission.MEMBERS_SEARCH,
        Permission.STAFF_READ,
        Permission.PACKAGES_READ,
        Permission.PACKAGES_WRITE,
        Permission.PACKAGES_PRICING,
        Permission.PACKAGES_DELETE,
        Permission.BRANCHES_READ,
        Permission.RENEWALS_READ,
    ),

    # Gym member (platform account without a staff profile)
    "member": (
        Permission.BRANCHES_READ,
        Permission.PACKAGES_READ,
    ),
}
