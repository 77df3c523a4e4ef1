"""
Closed value sets stored as plain strings in the database.
"""

from __future__ import annotations

import enum


class AbsenceStatus(str, enum.Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    DENIED = "denied"


class PersonType(str, enum.Enum):
    EMPLOYEE = "employee"
    CONTACT = "contact"


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    HR_MANAGER = "hr_manager"
    EMPLOYEE = "employee"
    READONLY = "readonly"
