# src/jewelbook/services/pricing_service.py
"""
PRICING SERVICE - derives sale costs from the daily rate sheet
"""

from typing import Dict, Any, Optional, Tuple
import logging

from jewelbook.core import config
from jewelbook.core.exceptions import RateNotFoundError
from jewelbook.repositories.rates_repo import get_rates_repository
from jewelbook.utils.calculations import (
    calculate_purchase_cost,
    calculate_selling_cost,
    calculate_wastage,
    calculate_old_material_cost,
    calculate_profit,
)
from jewelbook.utils.validators import normalize_karat, validate_material

logger = logging.getLogger(__name__)


class RateSheet:
    """Rates for one day, indexed by (material, karat)."""

    def __init__(self, requested_date: str, rate_date: Optional[str], rates):
        self.requested_date = requested_date
        self.rate_date = rate_date
        self.rates = list(rates)
        self._index = {
            (rate['material'], normalize_karat(rate['karat'])): rate
            for rate in self.rates
        }

    @property
    def is_fallback(self) -> bool:
        return self.rate_date is not None and self.rate_date != self.requested_date

    def get(self, material: str, karat: str) -> Dict[str, Any]:
        rate = self._index.get((material, normalize_karat(karat)))
        if rate is None:
            raise RateNotFoundError(material, karat, self.requested_date)
        return rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asof_date": self.requested_date,
            "rate_date": self.rate_date,
            "is_fallback": self.is_fallback,
            "rates": self.rates,
        }


class PricingService:
    """Purchase, selling, old-material and profit figures for a sale"""

    def __init__(self):
        self.repo = get_rates_repository()

    def get_rate_sheet(self, asof_date: str, fallback: bool = True) -> RateSheet:
        """
        Rate sheet for a date. With fallback, a date without rates uses the
        most recent earlier sheet.
        """
        rates = self.repo.get_rates_for_date(asof_date)
        if rates:
            return RateSheet(asof_date, asof_date, rates)

        if fallback:
            latest = self.repo.get_latest_rate_date(asof_date)
            if latest:
                logger.info(f"No rates for {asof_date}, using sheet from {latest}")
                return RateSheet(asof_date, latest, self.repo.get_rates_for_date(latest))

        return RateSheet(asof_date, None, [])

    def price_sale(self, sale_data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """
        Fill in p_cost, s_cost/wastage, o_cost and profit.

        Values supplied by the caller are kept; missing ones are derived from
        the rate sheet of the sale date. Profit is always recomputed.

        Returns:
            (priced sale, pricing details with the rates used)
        """
        sale = dict(sale_data)
        material = validate_material(sale['material'])
        karat = normalize_karat(sale.get('karat'))
        base_karat = config.MATERIAL_BASE_KARAT[material]
        grams = float(sale['p_grams'])

        sheet = None
        rates_used = {}

        def rate_for(rate_karat: str) -> Dict[str, Any]:
            nonlocal sheet
            if sheet is None:
                sheet = self.get_rate_sheet(sale['asof_date'])
            return sheet.get(material, rate_karat)

        def selling_rate() -> float:
            if karat:
                return float(rate_for(karat)['n_price'])
            base_price = float(rate_for(base_karat)['n_price'])
            if sale.get('s_purity'):
                return base_price * float(sale['s_purity']) / 100.0
            return base_price

        # Purchase side
        if sale.get('p_cost') is None:
            purchase_rate = float(rate_for(base_karat)['n_price'])
            sale['p_cost'] = calculate_purchase_cost(purchase_rate, grams, sale['p_purity'])
            rates_used['purchase_rate'] = purchase_rate

        # Selling side: cost from wastage, or wastage from cost
        if sale.get('s_cost') is None:
            if sale.get('wastage') is None:
                raise ValueError("Either selling cost or wastage is required")
            rate = selling_rate()
            sale['s_cost'] = calculate_selling_cost(rate, grams, sale['wastage'])
            rates_used['selling_rate'] = round(rate, 2)
        elif sale.get('wastage') is None:
            try:
                rate = selling_rate()
            except RateNotFoundError:
                rate = None
            if rate:
                sale['wastage'] = calculate_wastage(sale['s_cost'], grams, rate)
                rates_used['selling_rate'] = round(rate, 2)

        # Old material trade-in
        pieces = [
            (sale.get('o1_gram'), sale.get('o1_purity')),
            (sale.get('o2_gram'), sale.get('o2_purity')),
        ]
        if sale.get('o_cost') is None and any(grams_ for grams_, _ in pieces):
            old_rate = float(rate_for(base_karat)['o_price'])
            sale['o_cost'] = calculate_old_material_cost(old_rate, pieces)
            rates_used['old_rate'] = old_rate

        sale['karat'] = karat
        sale['profit'] = calculate_profit(sale['s_cost'], sale['p_cost'], sale.get('o_cost'))

        pricing = {
            "rate_date": sheet.rate_date if sheet else None,
            "base_karat": base_karat,
            "rates_used": rates_used,
        }
        return sale, pricing


# Singleton instance
_pricing_service_instance = None


def get_pricing_service() -> PricingService:
    """Get singleton pricing service instance."""
    global _pricing_service_instance
    if _pricing_service_instance is None:
        _pricing_service_instance = PricingService()
    return _pricing_service_instance
