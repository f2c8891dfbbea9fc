# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    MEMBERS = "MEMBERS"
    STAFF = "STAFF"
    PACKAGES = "PACKAGES"
    BRANCHES = "BRANCHES"
    ANALYTICS = "ANALYTICS"
    SYSTEM = "SYSTEM"
    RENEWALS = "RENEWALS"
    PAYMENTS = "PAYMENTS"
