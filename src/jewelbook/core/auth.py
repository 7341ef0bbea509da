# src/jewelbook/core/auth.py
"""
OPERATOR IDENTITY AND PERMISSIONS
- Operator is named by a header set by the trusted front end
- Role based permission system (owner, admin, staff)
"""

import logging
from typing import Dict, Any, Optional
from fastapi import HTTPException, Request, Depends

from jewelbook.core import config
from jewelbook.core.database import get_database_manager

logger = logging.getLogger(__name__)

DEV_USER = {
    "id": 0,
    "username": "dev_owner",
    "full_name": "Development Owner",
    "role": "owner",
    "is_active": True,
}


def validate_permission(user_role: str, required_permission: str) -> bool:
    """
    Check if user role has required permission.

    Args:
        user_role: User role
        required_permission: Required permission string

    Returns:
        True if user has permission
    """
    permissions = config.ROLES.get(user_role, {}).get("permissions", [])

    if "*" in permissions or required_permission in permissions:
        return True

    # Wildcard permissions ("expenses.*" grants "expenses.view")
    for perm in permissions:
        if perm.endswith(".*") and required_permission.startswith(perm[:-1]):
            return True

    return False


def _with_role_info(user: Dict[str, Any]) -> Dict[str, Any]:
    role_config = config.ROLES.get(user["role"], {})
    user = dict(user)
    user["is_active"] = bool(user.get("is_active", True))
    user["role_name"] = role_config.get("name", user["role"])
    user["permissions"] = role_config.get("permissions", [])
    return user


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


async def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Dependency resolving the acting operator from the identity header.

    Returns:
        Current user data with role permissions
    """
    username = request.headers.get(config.USER_HEADER)

    if not username:
        if config.IS_DEVELOPMENT:
            return _with_role_info(DEV_USER)
        raise HTTPException(status_code=401, detail="Operator not identified")

    try:
        db_manager = get_database_manager()
        with db_manager.get_cursor() as cursor:
            cursor.execute('''
                SELECT id, username, full_name, role, is_active
                FROM users
                WHERE username = ? AND is_active = 1
            ''', (username.strip().lower(),))
            user = cursor.fetchone()
    except Exception as e:
        logger.error(f"Error getting current user: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if not user:
        raise HTTPException(status_code=401, detail="Unknown or inactive operator")

    return _with_role_info(dict(user))


def require_permission(permission: str):
    """
    Dependency to require specific permission.

    Args:
        permission: Required permission string

    Returns:
        Dependency function
    """
    async def permission_dependency(current_user: Dict[str, Any] = Depends(get_current_user)):
        if not validate_permission(current_user["role"], permission):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions. Required: {permission}"
            )
        return current_user

    return permission_dependency
