# src/jewelbook/services/sales_service.py
"""
SALES SERVICE - Business Logic Layer
"""

from typing import Dict, Any, Optional
from datetime import date
import logging

from jewelbook.core import config
from jewelbook.core.auth import validate_permission
from jewelbook.core.exceptions import RecordNotFoundError
from jewelbook.core.logger import audit_log
from jewelbook.repositories.sales_repo import get_sales_repository
from jewelbook.services.pricing_service import get_pricing_service
from jewelbook.utils.validators import parse_date, validate_sale_data, validate_material, validate_purity

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('customer_name', 'customer_phone', 'tag_no', 'item_name', 'type', 'karat')

# Derived field -> inputs it is computed from
PRICE_INPUTS = {
    'p_cost': ('asof_date', 'material', 'p_grams', 'p_purity'),
    's_cost': ('asof_date', 'material', 'karat', 'p_grams', 's_purity', 'wastage'),
    'wastage': ('asof_date', 'material', 'karat', 'p_grams', 's_purity', 's_cost'),
    'o_cost': ('asof_date', 'material', 'o1_gram', 'o1_purity', 'o2_gram', 'o2_purity'),
}


def _normalize(sale_data: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(sale_data)
    data.pop('profit', None)
    for field in TEXT_FIELDS:
        if isinstance(data.get(field), str):
            data[field] = data[field].strip()
    if data.get('material') is not None:
        data['material'] = str(data['material']).strip().lower()
    if data.get('asof_date') is not None:
        data['asof_date'] = parse_date(data['asof_date'], 'asof_date')
    return data


def strip_profit(sale: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """Hide profit from operators without the sales.profit permission."""
    if validate_permission(user['role'], 'sales.profit'):
        return sale
    return {key: value for key, value in sale.items() if key != 'profit'}


class SalesService:
    """Service for sales business logic"""

    def __init__(self):
        self.repo = get_sales_repository()
        self.pricing = get_pricing_service()

    def quote_sale(self, sale_data: Dict[str, Any]) -> Dict[str, Any]:
        """Price a sale without saving it."""
        data = _normalize(sale_data)
        if data.get('asof_date') is None:
            data['asof_date'] = date.today().isoformat()

        validate_material(data.get('material'))
        if data.get('p_grams') is None or float(data['p_grams']) <= 0:
            raise ValueError("p_grams must be positive")
        if data.get('p_purity') is None:
            raise ValueError("p_purity is required")
        for field in ('p_purity', 's_purity', 'o1_purity', 'o2_purity'):
            validate_purity(data.get(field), field)

        sale, pricing = self.pricing.price_sale(data)
        return {"sale": sale, "pricing": pricing}

    def create_sale(
        self,
        sale_data: Dict[str, Any],
        user: Dict[str, Any],
        ip_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Validate, price and record a sale.

        Raises:
            ValueError: invalid data or no rate to price with
            DuplicateEntryError: tag already sold on that date
        """
        data = _normalize(sale_data)
        if data.get('asof_date') is None:
            data['asof_date'] = date.today().isoformat()
        validate_sale_data(data)

        priced, pricing = self.pricing.price_sale(data)
        sale = self.repo.create_sale(priced, user['username'])

        audit_log(
            username=user['username'],
            role=user['role'],
            action="insert",
            table_name="sales_log",
            row_id=sale['id'],
            description=(
                f"Added sale: {sale['item_name']} to {sale['customer_name']} - "
                f"{config.CURRENCY_SYMBOL}{sale['s_cost']} "
                f"(Profit: {config.CURRENCY_SYMBOL}{sale['profit']:.2f})"
            ),
            new_values=sale,
            ip_address=ip_address
        )
        logger.info(f"Sale {sale['id']} recorded by {user['username']}")
        return sale

    def get_sale(self, sale_id: int) -> Dict[str, Any]:
        sale = self.repo.get_sale_by_id(sale_id)
        if not sale:
            raise RecordNotFoundError("Sale not found")
        return sale

    def list_sales(self, filters: Dict[str, Any], skip: int = 0, limit: int = 50) -> Dict[str, Any]:
        filters = dict(filters)
        for key in ('start_date', 'end_date'):
            if filters.get(key):
                filters[key] = parse_date(filters[key], key)
        if filters.get('material'):
            filters['material'] = validate_material(filters['material'])
        return self.repo.list_sales(filters, skip=skip, limit=limit)

    def update_sale(
        self,
        sale_id: int,
        changes: Dict[str, Any],
        user: Dict[str, Any],
        ip_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Merge changes into a sale and re-price it.

        Derived costs whose inputs changed are recomputed unless the caller
        supplied them in the same request.
        Wastage cannot be cleared on its own; send a new s_cost with it.
        """
        current = self.get_sale(sale_id)
        changes = _normalize(changes)

        if 'wastage' in changes and changes['wastage'] is None and changes.get('s_cost') is None:
            raise ValueError("Wastage can only be cleared together with a new selling cost")

        merged = dict(current)
        merged.update(changes)

        changed = {
            field for field, value in changes.items()
            if current.get(field) != value
        }
        for derived, inputs in PRICE_INPUTS.items():
            if derived not in changes and changed.intersection(inputs):
                merged[derived] = None
        if 's_cost' in changes and 'wastage' not in changes:
            merged['wastage'] = None
        if merged.get('s_cost') is None and merged.get('wastage') is None:
            merged['wastage'] = current.get('wastage')

        validate_sale_data(merged)
        priced, pricing = self.pricing.price_sale(merged)

        updated = self.repo.update_sale(sale_id, priced)
        if not updated:
            raise RecordNotFoundError("Sale not found")

        audit_log(
            username=user['username'],
            role=user['role'],
            action="update",
            table_name="sales_log",
            row_id=sale_id,
            description=f"Updated sale: {updated['item_name']} (tag {updated['tag_no']})",
            old_values=current,
            new_values=updated,
            ip_address=ip_address
        )
        return updated

    def delete_sale(self, sale_id: int, user: Dict[str, Any], ip_address: Optional[str] = None):
        current = self.get_sale(sale_id)
        if not self.repo.soft_delete_sale(sale_id):
            raise RecordNotFoundError("Sale not found")

        audit_log(
            username=user['username'],
            role=user['role'],
            action="delete",
            table_name="sales_log",
            row_id=sale_id,
            description=f"Deleted sale: {current['item_name']} (tag {current['tag_no']})",
            old_values=current,
            ip_address=ip_address
        )

    def get_summary(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Dict[str, Any]:
        if start_date:
            start_date = parse_date(start_date, 'start_date')
        if end_date:
            end_date = parse_date(end_date, 'end_date')

        by_material = self.repo.get_summary(start_date, end_date)
        totals = {"count": 0, "purchase_cost": 0.0, "selling_cost": 0.0, "old_cost": 0.0, "profit": 0.0}
        for row in by_material:
            for key in totals:
                totals[key] += row[key]
        for key in ("purchase_cost", "selling_cost", "old_cost", "profit"):
            totals[key] = round(totals[key], 2)

        return {"totals": totals, "by_material": by_material}


# Singleton instance
_sales_service_instance = None


def get_sales_service() -> SalesService:
    """Get singleton sales service instance."""
    global _sales_service_instance
    if _sales_service_instance is None:
        _sales_service_instance = SalesService()
    return _sales_service_instance
