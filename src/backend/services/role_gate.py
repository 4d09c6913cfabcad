"""
Session/role gate for live channel connections.

Each connection starts unidentified and takes exactly one role with its first
``identify`` message; the role is held until the connection closes.

The admin role is self-declared by the client. How far that declaration is
trusted is a deployment decision made through ``LIVE_ADMIN_POLICY``:

- ``trust``: accepted as declared (trusted-LAN events).
- ``password``: the identify message must carry the admin password.
- ``deny``: admin actions are only available through the HTTP admin routes.
"""

import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog

from core.config import LiveAdminPolicy
from core.errors import AuthError, ValidationError

logger = structlog.get_logger(__name__)


class Role(str, Enum):
    """Roles a live connection may declare."""

    VOTER = "voter"
    PRESENTER = "presenter"
    ADMIN = "admin"


# Older display clients identify voters as "client"
ROLE_ALIASES = {"client": Role.VOTER}


def parse_role(raw: Any) -> Role:
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in ROLE_ALIASES:
            return ROLE_ALIASES[value]
        try:
            return Role(value)
        except ValueError:
            pass
    raise ValidationError(f"Unknown role: {raw!r}")


@dataclass
class LiveSession:
    """Per-connection identification state."""

    role: Optional[Role] = None

    @property
    def identified(self) -> bool:
        return self.role is not None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class RoleGate:
    """Assigns roles to sessions and guards privileged actions."""

    def __init__(self, policy: LiveAdminPolicy, admin_password: str):
        self.policy = LiveAdminPolicy(policy)
        self.admin_password = admin_password

    def identify(self, session: LiveSession, raw_role: Any, password: Any = None) -> Role:
        """
        Move an unidentified session to its declared role.

        Raises:
            ValidationError: if the session already has a role or the role is unknown.
            AuthError: if the admin role is refused by the configured policy.
        """
        if session.identified:
            raise ValidationError("Role already identified")

        role = parse_role(raw_role)
        if role is Role.ADMIN:
            self._check_admin(password)

        session.role = role
        return role

    def _check_admin(self, password: Any) -> None:
        if self.policy is LiveAdminPolicy.TRUST:
            return
        if self.policy is LiveAdminPolicy.DENY:
            logger.warning("live_admin_refused", policy=self.policy.value)
            raise AuthError("Admin role is not available on the live channel")

        if not isinstance(password, str) or not secrets.compare_digest(
            password.encode("utf-8"), self.admin_password.encode("utf-8")
        ):
            logger.warning("live_admin_refused", policy=self.policy.value)
            raise AuthError("Invalid admin credentials")

    def require_admin(self, session: LiveSession) -> None:
        if not session.is_admin:
            raise AuthError("Unauthorized")
