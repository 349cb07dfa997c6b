"""Identity of the caller, as supplied by the authentication gateway."""

from __future__ import annotations

from dataclasses import dataclass

from .core.enums import RoleName


@dataclass(frozen=True)
class Caller:
    """
    Authenticated user making a booking request.

    The engine trusts these values; credentials are verified upstream.
    """

    user_id: str
    role: RoleName = RoleName.USER

    @property
    def is_host(self) -> bool:
        return self.role in (RoleName.HOST, RoleName.ADMIN)
