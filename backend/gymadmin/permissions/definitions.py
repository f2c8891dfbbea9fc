# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


class Permission:
    """Permission codes used by route guards."""
    MEMBERS_READ = "members:read"
    MEMBERS_WRITE = "members:write"
    MEMBERS_DELETE = "members:delete"
    MEMBERS_SEARCH = "members:search"

    STAFF_READ = "staff:read"
    STAFF_WRITE = "staff:write"
    STAFF_DELETE = "staff:delete"
    STAFF_MANAGE_PINS = "staff:manage_pins"

    PACKAGES_READ = "packages:read"
    PACKAGES_WRITE = "packages:write"
    PACKAGES_DELETE = "packages:delete"
    PACKAGES_PRICING = "packages:pricing"

    BRANCHES_READ = "branches:read"
    BRANCHES_WRITE = "branches:write"
    BRANCHES_DELETE = "branches:delete"
    BRANCHES_MANAGE_ALL = "branches:manage_all"

    ANALYTICS_READ = "analytics:read"
    ANALYTICS_FINANCIAL = "analytics:financial"
    ANALYTICS_EXPORT = "analytics:export"

    SYSTEM_ADMIN = "system:admin"
    SYSTEM_AUDIT_LOGS = "system:audit_logs"
    SYSTEM_BACKUP = "system:backup"

    RENEWALS_PROCESS = "renewals:process"
    RENEWALS_READ = "renewals:read"
    PAYMENTS_READ = "payments:read"
    PAYMENTS_PROCESS = "payments:process"


# -- MEMBERS --

MEMBER_PERMISSIONS = [
    (Permission.MEMBERS_READ, "View Members", "View member profiles and contact details", PermissionCategory.MEMBERS),
    (Permission.MEMBERS_WRITE, "Edit Members", "Create and update members", PermissionCategory.MEMBERS),
    (Permission.MEMBERS_DELETE, "Delete Members", "Remove members", PermissionCategory.MEMBERS),
    (Permission.MEMBERS_SEARCH, "Search Members", "Search members across the branch", PermissionCategory.MEMBERS),
]


# -- STAFF --

STAFF_PERMISSIONS = [
    (Permission.STAFF_READ, "View Staff", "View branch staff", PermissionCategory.STAFF),
    (Permission.STAFF_WRITE, "Edit Staff", "Create and update branch staff", PermissionCategory.STAFF),
    (Permission.STAFF_DELETE, "Delete Staff", "Remove branch staff", PermissionCategory.STAFF),
    (
        Permission.STAFF_MANAGE_PINS,
        "Manage Staff PINs",
        "Set, reset and clear staff PINs",
        PermissionCategory.STAFF,
    ),
]


# -- PACKAGES --

PACKAGE_PERMISSIONS = [
    (Permission.PACKAGES_READ, "View Packages", "View membership packages", PermissionCategory.PACKAGES),
    (Permission.PACKAGES_WRITE, "Edit Packages", "Create and update packages", PermissionCategory.PACKAGES),
    (Permission.PACKAGES_DELETE, "Delete Packages", "Remove packages", PermissionCategory.PACKAGES),
    (Permission.PACKAGES_PRICING, "Package Pricing", "Change package prices", PermissionCategory.PACKAGES),
]


# -- BRANCHES --

BRANCH_PERMISSIONS = [
    (Permission.BRANCHES_READ, "View Branches", "View branch details", PermissionCategory.BRANCHES),
    (Permission.BRANCHES_WRITE, "Edit Branches", "Create and update branches", PermissionCategory.BRANCHES),
    (Permission.BRANCHES_DELETE, "Delete Branches", "Remove branches", PermissionCategory.BRANCHES),
    (
        Permission.BRANCHES_MANAGE_ALL,
        "Manage All Branches",
        "Act on any branch regardless of assignment",
        PermissionCategory.BRANCHES,
    ),
]


# -- ANALYTICS --

ANALYTICS_PERMISSIONS = [
    (Permission.ANALYTICS_READ, "View Analytics", "Access branch analytics", PermissionCategory.ANALYTICS),
    (
        Permission.ANALYTICS_FINANCIAL,
        "Financial Analytics",
        "View revenue and payment figures",
        PermissionCategory.ANALYTICS,
    ),
    (Permission.ANALYTICS_EXPORT, "Export Analytics", "Export reports", PermissionCategory.ANALYTICS),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (Permission.SYSTEM_ADMIN, "System Admin", "Full system access (satisfies every check)", PermissionCategory.SYSTEM),
    (Permission.SYSTEM_AUDIT_LOGS, "Audit Logs", "View the audit trail", PermissionCategory.SYSTEM),
    (Permission.SYSTEM_BACKUP, "Backups", "Run and restore backups", PermissionCategory.SYSTEM),
]


# -- RENEWALS & PAYMENTS --

RENEWAL_PERMISSIONS = [
    (Permission.RENEWALS_PROCESS, "Process Renewals", "Renew member subscriptions", PermissionCategory.RENEWALS),
    (Permission.RENEWALS_READ, "View Renewals", "View renewal history", PermissionCategory.RENEWALS),
]

PAYMENT_PERMISSIONS = [
    (Permission.PAYMENTS_READ, "View Payments", "View payment records", PermissionCategory.PAYMENTS),
    (Permission.PAYMENTS_PROCESS, "Process Payments", "Take payments", PermissionCategory.PAYMENTS),
]


PERMISSION_DEFINITIONS = (
    MEMBER_PERMISSIONS
    + STAFF_PERMISSIONS
    + PACKAGE_PERMISSIONS
    + BRANCH_PERMISSIONS
    + ANALYTICS_PERMISSIONS
    + SYSTEM_PERMISSIONS
    + RENEWAL_PERMISSIONS
    + PAYMENT_PERMISSIONS
)
