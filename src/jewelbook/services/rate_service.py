# src/jewelbook/services/rate_service.py
"""
RATE SERVICE - daily gold and silver rate sheets
"""

from typing import List, Dict, Any, Optional
import logging

from jewelbook.core.logger import audit_log
from jewelbook.repositories.rates_repo import get_rates_repository
from jewelbook.services.pricing_service import get_pricing_service
from jewelbook.utils.validators import (
    parse_date,
    normalize_karat,
    validate_material,
    validate_rates_data,
    validate_date_range,
)

logger = logging.getLogger(__name__)


class RateService:
    """Business logic for the daily rate sheet"""

    def __init__(self):
        self.repo = get_rates_repository()

    def get_rates(self, asof_date: str, fallback: bool = False) -> Dict[str, Any]:
        asof_date = parse_date(asof_date, "date")
        return get_pricing_service().get_rate_sheet(asof_date, fallback=fallback).to_dict()

    def save_rates(
        self,
        asof_date: str,
        rates: List[Dict[str, Any]],
        user: Dict[str, Any],
        ip_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """Upsert a rate sheet and record the before/after state."""
        asof_date = parse_date(asof_date, "date")
        normalized = [
            {
                "material": str(rate.get("material") or "").strip().lower(),
                "karat": normalize_karat(rate.get("karat")),
                "n_price": rate.get("n_price"),
                "o_price": rate.get("o_price"),
            }
            for rate in rates
        ]
        validate_rates_data(normalized)

        previous = self.repo.get_rates_for_date(asof_date)
        self.repo.upsert_rates(asof_date, normalized, user["username"])
        current = self.repo.get_rates_for_date(asof_date)

        audit_log(
            username=user["username"],
            role=user["role"],
            action="upsert",
            table_name="daily_rates",
            row_id=None,
            description=f"Updated daily rates for {asof_date}",
            old_values={"rates": previous} if previous else None,
            new_values={"date": asof_date, "ratesCount": len(normalized), "rates": normalized},
            ip_address=ip_address
        )
        logger.info(f"{user['username']} saved {len(normalized)} rates for {asof_date}")

        return {"asof_date": asof_date, "rate_date": asof_date, "is_fallback": False, "rates": current}

    def get_history(self, material: str, karat: str, from_date: str, to_date: str) -> List[Dict[str, Any]]:
        material = validate_material(material)
        karat = normalize_karat(karat)
        if not karat:
            raise ValueError("Karat is required")
        from_date = parse_date(from_date, "from_date")
        to_date = parse_date(to_date, "to_date")
        validate_date_range(from_date, to_date)
        return self.repo.get_rate_history(material, karat, from_date, to_date)


# Singleton instance
_rate_service_instance = None


def get_rate_service() -> RateService:
    """Get singleton rate service instance."""
    global _rate_service_instance
    if _rate_service_instance is None:
        _rate_service_instance = RateService()
    return _rate_service_instance
