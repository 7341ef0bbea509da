"""
EXPENSES MANAGEMENT API ENDPOINTS
"""

from fastapi import APIRouter, HTTPException, Depends, Query, Request
from pydantic import BaseModel, Field, validator
from typing import Dict, Any, Optional
import logging

from jewelbook.core.auth import require_permission, client_ip
from jewelbook.core.exceptions import DuplicateEntryError, RecordNotFoundError
from jewelbook.services.expense_service import get_expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])
logger = logging.getLogger(__name__)


class ExpenseCreate(BaseModel):
    """Expense entry"""
    asof_date: Optional[str] = None
    expense_type: str = Field(..., pattern="^(direct|indirect)$")
    item_name: str = Field(..., min_length=1, max_length=200)
    cost: float = Field(..., gt=0)
    udhaar: bool = False

    @validator('item_name')
    def item_name_not_empty(cls, v):
        if not v.strip():
            raise ValueError('Item name cannot be empty')
        return v.strip()


class ExpenseUpdate(BaseModel):
    asof_date: Optional[str] = None
    expense_type: Optional[str] = Field(None, pattern="^(direct|indirect)$")
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    cost: Optional[float] = Field(None, gt=0)
    udhaar: Optional[bool] = None


def _duplicate_detail(error: DuplicateEntryError) -> Dict[str, Any]:
    return {
        "message": str(error),
        "inserted_by": error.inserted_by,
        "existing_id": error.existing_id,
    }


@router.get("/", dependencies=[Depends(require_permission("expenses.view"))])
async def list_expenses(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    expense_type: Optional[str] = Query(None),
    udhaar: Optional[bool] = Query(None)
):
    """Get all expenses with filtering."""
    try:
        result = get_expense_service().list_expenses({
            "start_date": start_date,
            "end_date": end_date,
            "expense_type": expense_type,
            "udhaar": udhaar,
        }, skip=skip, limit=limit)
        return {
            "success": True,
            "expenses": result["expenses"],
            "total": result["total"],
            "skip": skip,
            "limit": limit
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to list expenses: {e}")
        raise HTTPException(status_code=500, detail="Failed to list expenses")


@router.get("/analytics/summary", dependencies=[Depends(require_permission("expenses.view"))])
async def expense_summary(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)
):
    """Totals by type and the udhaar total."""
    try:
        summary = get_expense_service().get_summary(start_date, end_date)
        return {"success": True, "summary": summary}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get expense summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to get expense summary")


@router.post("/")
async def create_expense(
    expense: ExpenseCreate,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("expenses.manage"))
):
    """Create new expense entry."""
    try:
        data = expense.model_dump(exclude_none=True)
        created = get_expense_service().create_expense(data, current_user, client_ip(request))
        return {
            "success": True,
            "message": "Expense created successfully",
            "expense_id": created["id"],
            "expense": created
        }
    except DuplicateEntryError as e:
        raise HTTPException(status_code=409, detail=_duplicate_detail(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create expense: {e}")
        raise HTTPException(status_code=500, detail="Failed to create expense")


@router.get("/{expense_id}", dependencies=[Depends(require_permission("expenses.view"))])
async def get_expense(expense_id: int):
    """Get expense details."""
    try:
        return {"success": True, "expense": get_expense_service().get_expense(expense_id)}
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get expense: {e}")
        raise HTTPException(status_code=500, detail="Failed to get expense")


@router.put("/{expense_id}")
async def update_expense(
    expense_id: int,
    changes: ExpenseUpdate,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("expenses.manage"))
):
    """Update expense entry."""
    try:
        data = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not data:
            raise HTTPException(status_code=400, detail="No fields to update")
        updated = get_expense_service().update_expense(expense_id, data, current_user, client_ip(request))
        return {
            "success": True,
            "message": "Expense updated successfully",
            "expense": updated
        }
    except HTTPException:
        raise
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateEntryError as e:
        raise HTTPException(status_code=409, detail=_duplicate_detail(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update expense: {e}")
        raise HTTPException(status_code=500, detail="Failed to update expense")


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("expenses.manage"))
):
    """Soft delete expense."""
    try:
        get_expense_service().delete_expense(expense_id, current_user, client_ip(request))
        return {"success": True, "message": "Expense deleted successfully"}
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete expense: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete expense")
