"""
Capability checks for the absence workflow.

Roles are compared against configured sets instead of being hard-coded so
deployments can grant the manager capability to additional roles.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.core.config import settings
from app.models.user import User


class AbsencePolicy:
    def __init__(
        self,
        manager_roles: Iterable[str] | None = None,
        recipient_role: str | None = None,
    ) -> None:
        self.manager_roles = frozenset(
            settings.ABSENCE_MANAGER_ROLES if manager_roles is None else manager_roles
        )
        self.recipient_role = recipient_role or settings.NOTIFICATION_RECIPIENT_ROLE

    def can_manage_absences(self, user: User | None) -> bool:
        """True when *user* may approve, deny and delete absences."""
        if user is None or not user.is_active:
            return False
        return user.role in self.manager_roles

    def is_notification_recipient(self, user: User | None) -> bool:
        return user is not None and bool(user.is_active) and user.role == self.recipient_role


default_policy = AbsencePolicy()
