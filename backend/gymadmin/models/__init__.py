from .branches import Branch, Package
from .staff import BranchStaff, UserProfile, StaffSession
from .security import StaffSecurityEvent
from .audit import AuditLog

__all__ = [
    'Branch', 'Package',
    'BranchStaff', 'UserProfile', 'StaffSession',
    'StaffSecurityEvent',
    'AuditLog',
]
