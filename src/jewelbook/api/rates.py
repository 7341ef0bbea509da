"""
DAILY RATES API ENDPOINTS
"""

from datetime import date
from fastapi import APIRouter, HTTPException, Depends, Query, Request
from pydantic import BaseModel, Field, validator
from typing import List, Dict, Any, Optional
import logging

from jewelbook.core.auth import require_permission, client_ip
from jewelbook.core.exceptions import RateNotFoundError
from jewelbook.services.rate_service import get_rate_service

router = APIRouter(prefix="/rates", tags=["rates"])
logger = logging.getLogger(__name__)


class RateEntry(BaseModel):
    """One row of a daily rate sheet"""
    material: str = Field(..., min_length=1)
    karat: str = Field(..., min_length=1, max_length=10)
    n_price: float = Field(..., ge=0)
    o_price: float = Field(..., ge=0)

    @validator('material')
    def material_lower(cls, v):
        return v.strip().lower()

    @validator('karat')
    def karat_upper(cls, v):
        if not v.strip():
            raise ValueError('Karat cannot be empty')
        return v.strip().upper()


class RateSheetRequest(BaseModel):
    rates: List[RateEntry] = Field(..., min_length=1)


@router.get("/", dependencies=[Depends(require_permission("rates.view"))])
async def get_rates(
    date_: Optional[str] = Query(None, alias="date"),
    fallback: bool = Query(False)
):
    """Rate sheet for a date (today by default)."""
    try:
        sheet = get_rate_service().get_rates(date_ or date.today().isoformat(), fallback=fallback)
        return {"success": True, **sheet}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get rates: {e}")
        raise HTTPException(status_code=500, detail="Failed to get rates")


@router.get("/history", dependencies=[Depends(require_permission("rates.view"))])
async def rate_history(
    material: str = Query(...),
    karat: str = Query(...),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None)
):
    """Price history of one material and karat."""
    try:
        to_date = to_date or date.today().isoformat()
        from_date = from_date or "1900-01-01"
        history = get_rate_service().get_history(material, karat, from_date, to_date)
        return {"success": True, "history": history, "total": len(history)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get rate history: {e}")
        raise HTTPException(status_code=500, detail="Failed to get rate history")


@router.put("/{asof_date}")
async def save_rates(
    asof_date: str,
    payload: RateSheetRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_permission("rates.manage"))
):
    """Insert or update the rate sheet of a date."""
    try:
        rates = [entry.model_dump() for entry in payload.rates]
        sheet = get_rate_service().save_rates(asof_date, rates, current_user, client_ip(request))
        return {"success": True, "message": "Rates saved successfully", **sheet}
    except HTTPException:
        raise
    except (RateNotFoundError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to save rates for {asof_date}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save rates")
