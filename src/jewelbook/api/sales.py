"""
SALES API ENDPOINTS
"""

from fastapi import APIRouter, HTTPException, Depends, Query, Request
from pydantic import BaseModel, Field, validator
from typing import Dict, Any, Optional
import logging

from jewelbook.core.auth import require_permission, client_ip, validate_permission
from jewelbook.core.exceptions import DuplicateEntryError, RecordNotFoundError, RateNotFoundError
from jewelbook.services.sales_service import get_sales_service, strip_profit

router = APIRouter(prefix="/sales", tags=["sales"])
logger = logging.getLogger(__name__)


class SaleBase(BaseModel):
    """Fields shared by sale quotes, entries and updates"""
    asof_date: Optional[str] = None
    customer_name: Optional[str] = Field(None, max_length=100)
    customer_phone: Optional[str] = Field(None, max_length=20)
    tag_no: Optional[str] = Field(None, max_length=50)
    item_name: Optional[str] = Field(None, max_length=200)
    material: Optional[str] = None
    type: Optional[str] = Field(None, max_length=50)
    karat: Optional[str] = Field(None, max_length=10)
    p_grams: Optional[float] = Field(None, gt=0)
    p_purity: Optional[float] = Field(None, gt=0, le=100)
    p_cost: Optional[float] = Field(None, ge=0)
    s_purity: Optional[float] = Field(None, gt=0, le=100)
    wastage: Optional[float] = None
    s_cost: Optional[float] = Field(None, ge=0)
    o_cost: Optional[float] = Field(None, ge=0)
    o1_gram: Optional[float] = Field(None, ge=0)
    o1_purity: Optional[float] = Field(None, gt=0, le=100)
    o2_gram: Optional[float] = Field(None, ge=0)
    o2_purity: Optional[float] = Field(None, gt=0, le=100)

    @validator('material')
    def material_lower(cls, v):
        return v.strip().lower() if v is not None else v


class SaleCreate(SaleBase):
    """Sale entry; required fields are checked by the service"""


class SaleUpdate(SaleBase):
    pass


def _duplicate_detail(error: DuplicateEntryError) -> Dict[str, Any]:
    return {
        "message": str(error),
        "inserted_by": error.inserted_by,
        "existing_id": error.existing_id,
    }


@router.post("/quote")
async def quote_sale(
    sale: SaleCreate,
    current_user: Dict[str, Any] = Depends(require_permission("sales.view"))
):
    """Price a sale without saving it."""
    try:
        quote = get_sales_service().quote_sale(sale.model_dump(exclude_none=True))
        return {
            "success": True,
            "sale": strip_profit(quote["sale"], current_user),
            "pricing": quote["pricing"]
        }
    except (RateNotFoundError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to quote sale: {e}")
        raise HTTPException(status_code=500, detail="Failed to quote sale")


@router.post("/")
async def create_sale(
    sale: SaleCreate,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("sales.manage"))
):
    """Record a new sale."""
    try:
        created = get_sales_service().create_sale(
            sale.model_dump(exclude_none=True), current_user, client_ip(request)
        )
        return {
            "success": True,
            "message": "Sale recorded successfully",
            "sale_id": created["id"],
            "sale": strip_profit(created, current_user)
        }
    except DuplicateEntryError as e:
        raise HTTPException(status_code=409, detail=_duplicate_detail(e))
    except (RateNotFoundError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create sale: {e}")
        raise HTTPException(status_code=500, detail="Failed to create sale")


@router.get("/")
async def list_sales(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    material: Optional[str] = Query(None),
    tag_no: Optional[str] = Query(None),
    customer: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(require_permission("sales.view"))
):
    """Get sales with filtering."""
    try:
        result = get_sales_service().list_sales({
            "start_date": start_date,
            "end_date": end_date,
            "material": material,
            "tag_no": tag_no,
            "customer": customer,
        }, skip=skip, limit=limit)
        return {
            "success": True,
            "sales": [strip_profit(sale, current_user) for sale in result["sales"]],
            "total": result["total"],
            "skip": skip,
            "limit": limit
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to list sales: {e}")
        raise HTTPException(status_code=500, detail="Failed to list sales")


@router.get("/analytics/summary")
async def sales_summary(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(require_permission("sales.view"))
):
    """Sales totals grouped by material."""
    try:
        summary = get_sales_service().get_summary(start_date, end_date)
        if not validate_permission(current_user["role"], "sales.profit"):
            summary = {
                "totals": strip_profit(summary["totals"], current_user),
                "by_material": [strip_profit(row, current_user) for row in summary["by_material"]],
            }
        return {"success": True, "summary": summary}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get sales summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to get sales summary")


@router.get("/{sale_id}")
async def get_sale(
    sale_id: int,
    current_user: Dict[str, Any] = Depends(require_permission("sales.view"))
):
    """Get sale details."""
    try:
        sale = get_sales_service().get_sale(sale_id)
        return {"success": True, "sale": strip_profit(sale, current_user)}
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get sale: {e}")
        raise HTTPException(status_code=500, detail="Failed to get sale")


@router.put("/{sale_id}")
async def update_sale(
    sale_id: int,
    changes: SaleUpdate,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("sales.manage"))
):
    """Update a sale and re-price it."""
    try:
        data = changes.model_dump(exclude_unset=True)
        if not data:
            raise HTTPException(status_code=400, detail="No fields to update")
        updated = get_sales_service().update_sale(sale_id, data, current_user, client_ip(request))
        return {
            "success": True,
            "message": "Sale updated successfully",
            "sale": strip_profit(updated, current_user)
        }
    except HTTPException:
        raise
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateEntryError as e:
        raise HTTPException(status_code=409, detail=_duplicate_detail(e))
    except (RateNotFoundError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update sale: {e}")
        raise HTTPException(status_code=500, detail="Failed to update sale")


@router.delete("/{sale_id}")
async def delete_sale(
    sale_id: int,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("sales.manage"))
):
    """Soft delete a sale."""
    try:
        get_sales_service().delete_sale(sale_id, current_user, client_ip(request))
        return {"success": True, "message": "Sale deleted successfully"}
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete sale: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete sale")
