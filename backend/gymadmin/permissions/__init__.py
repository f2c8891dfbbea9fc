# Overview: Permission system package.
# Re-exports all public APIs for shorter imports.

from .categories import PermissionCategory
from .definitions import Permission, PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS
from .registry import PermissionRegistry, build_default_registry, EMPTY_PERMISSIONS
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
)

__all__ = [
    "PermissionCategory",
    "Permission",
    "PERMISSION_DEFINITIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "PermissionRegistry",
    "build_default_registry",
    "EMPTY_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
]
