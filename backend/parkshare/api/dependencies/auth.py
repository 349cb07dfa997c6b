# backend/parkshare/api/dependencies/auth.py
"""
Caller identity dependencies.

Credentials are verified by the upstream gateway, which forwards the
authenticated user id and role as headers. This module only reads them.
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from ...core.enums import RoleName
from ...principal import Caller

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


def get_current_caller(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
    x_user_role: Optional[str] = Header(None, alias=USER_ROLE_HEADER),
) -> Caller:
    """Build the Caller from gateway headers; 401 when the user id is absent."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Unauthorized", "code": "UNAUTHORIZED", "details": {}},
        )

    role_value = (x_user_role or RoleName.USER.value).strip().lower()
    try:
        role = RoleName(role_value)
    except ValueError:
        logger.warning(f"Unknown role header {role_value!r} for user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Unknown role", "code": "UNAUTHORIZED", "details": {"role": role_value}},
        )
    return Caller(user_id=user_id, role=role)
