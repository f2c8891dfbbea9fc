# Overview: Immutable role -> permission registry shared by every request.

"""
Permission Registry

Built once by create_app() and stored on app.extensions; decorators and
services receive the same instance. There is no mutation path: the role table
is copied into a read-only mapping of frozensets at construction time, so
concurrent requests can read it without locking.

RULES:
- Unknown roles resolve to the empty set (fail closed)
- system:admin satisfies every permission check
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from .definitions import Permission, PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS

EMPTY_PERMISSIONS: frozenset[str] = frozenset()


class PermissionRegistry:
    def __init__(self, role_permissions: Mapping[str, Iterable[str]] | None = None):
        if role_permissions is None:
            role_permissions = DEFAULT_ROLE_PERMISSIONS

        known = {perm[0] for perm in PERMISSION_DEFINITIONS}
        ordered: dict[str, tuple[str, ...]] = {}
        for role, codes in role_permissions.items():
            codes = tuple(dict.fromkeys(codes))
            unknown = [code for code in codes if code not in known]
            if unknown:
                raise ValueError(f"Role {role!r} references unknown permissions: {', '.join(unknown)}")
            ordered[role] = codes

        self._ordered = MappingProxyType(ordered)
        self._sets = MappingProxyType({role: frozenset(codes) for role, codes in ordered.items()})

    @property
    def roles(self) -> tuple[str, ...]:
        return tuple(self._ordered)

    def permissions_for(self, role: str | None) -> frozenset[str]:
        if not role:
            return EMPTY_PERMISSIONS
        return self._sets.get(role, EMPTY_PERMISSIONS)

    @staticmethod
    def has(permissions: Iterable[str], required: str) -> bool:
        return required in permissions or Permission.SYSTEM_ADMIN in permissions

    @classmethod
    def has_any(cls, permissions: Iterable[str], required: Iterable[str]) -> bool:
        return any(cls.has(permissions, code) for code in required)

    @classmethod
    def has_all(cls, permissions: Iterable[str], required: Iterable[str]) -> bool:
        return all(cls.has(permissions, code) for code in required)

    def describe_roles(self) -> dict[str, list[str]]:
        """Role name -> permission codes in grant order (for display)."""
        return {role: list(codes) for role, codes in self._ordered.items()}


def build_default_registry() -> PermissionRegistry:
    return PermissionRegistry(DEFAULT_ROLE_PERMISSIONS)
