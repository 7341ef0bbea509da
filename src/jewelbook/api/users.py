"""
USER MANAGEMENT API ENDPOINTS
"""

from fastapi import APIRouter, HTTPException, Depends, Query, Request
from pydantic import BaseModel, Field, validator
from typing import Dict, Any, Optional
import logging

from jewelbook.core.auth import require_permission, client_ip
from jewelbook.core.exceptions import DuplicateEntryError
from jewelbook.core.logger import audit_log
from jewelbook.repositories.user_repo import get_user_repository
from jewelbook.utils.validators import validate_user_data

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


class UserCreate(BaseModel):
    """User creation model"""
    username: str = Field(..., min_length=3, max_length=50)
    full_name: str = Field(..., min_length=2, max_length=100)
    role: str = Field(..., pattern="^(owner|admin|staff)$")

    @validator('username')
    def validate_username(cls, v):
        v = v.strip()
        if not v.replace('_', '').replace('.', '').isalnum():
            raise ValueError('Username can only contain letters, numbers, underscores and dots')
        return v.lower()


class UserUpdate(BaseModel):
    """User update model"""
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[str] = Field(None, pattern="^(owner|admin|staff)$")
    is_active: Optional[bool] = None


@router.get("/", dependencies=[Depends(require_permission("users.view"))])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    role: Optional[str] = Query(None)
):
    """Get all users."""
    try:
        result = get_user_repository().list_users(role=role, skip=skip, limit=limit)
        return {
            "success": True,
            "users": result["users"],
            "total": result["total"],
            "skip": skip,
            "limit": limit
        }
    except Exception as e:
        logger.error(f"Failed to list users: {e}")
        raise HTTPException(status_code=500, detail="Failed to list users")


@router.post("/")
async def create_user(
    user: UserCreate,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("users.manage"))
):
    """Create a new operator."""
    try:
        data = user.model_dump()
        validate_user_data(data)
        created = get_user_repository().create_user(data)

        audit_log(
            username=current_user["username"],
            role=current_user["role"],
            action="insert",
            table_name="users",
            row_id=created["id"],
            description=f"Created user {created['username']} ({created['role']})",
            new_values=created,
            ip_address=client_ip(request)
        )
        return {
            "success": True,
            "message": "User created successfully",
            "user_id": created["id"],
            "user": created
        }
    except DuplicateEntryError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create user: {e}")
        raise HTTPException(status_code=500, detail="Failed to create user")


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    changes: UserUpdate,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("users.manage"))
):
    """Change a user's name, role or active flag."""
    try:
        repo = get_user_repository()
        existing = repo.get_user_by_id(user_id)
        if not existing:
            raise HTTPException(status_code=404, detail="User not found")

        data = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not data:
            raise HTTPException(status_code=400, detail="No fields to update")

        if user_id == current_user["id"]:
            if data.get("is_active") is False:
                raise HTTPException(status_code=400, detail="Cannot deactivate your own account")
            if "role" in data and data["role"] != existing["role"]:
                raise HTTPException(status_code=400, detail="Cannot change your own role")

        updated = repo.update_user(user_id, data)

        audit_log(
            username=current_user["username"],
            role=current_user["role"],
            action="update",
            table_name="users",
            row_id=user_id,
            description=f"Updated user {updated['username']}",
            old_values=existing,
            new_values=updated,
            ip_address=client_ip(request)
        )
        return {
            "success": True,
            "message": "User updated successfully",
            "user": updated
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update user: {e}")
        raise HTTPException(status_code=500, detail="Failed to update user")
