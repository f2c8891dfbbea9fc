# Overview: Lookups over the permission catalog (codes, categories, display definitions).

from types import MappingProxyType

from .definitions import PERMISSION_DEFINITIONS

_BY_CODE = MappingProxyType({perm[0]: perm for perm in PERMISSION_DEFINITIONS})


def get_all_permission_codes():
    """Every catalogued permission code, in catalog order."""
    return list(_BY_CODE)


def get_permissions_by_category(category):
    """Permission codes in one category; matching is case-insensitive."""
    wanted = str(category).strip().upper()
    return [code for code, _name, _desc, perm_category in PERMISSION_DEFINITIONS if perm_category == wanted]


def get_permission_definition(code):
    """Display definition for a code, or None when the code is not catalogued."""
    perm = _BY_CODE.get(code)
    if perm is None:
        return None
    code, name, description, category = perm
    return {"code": code, "name": name, "description": description, "category": category}


def validate_permission_code(code):
    return code in _BY_CODE
