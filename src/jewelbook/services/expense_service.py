# src/jewelbook/services/expense_service.py
"""
EXPENSE SERVICE - Business Logic Layer
"""

from typing import Dict, Any, Optional
from datetime import date
import logging

from jewelbook.core.exceptions import RecordNotFoundError
from jewelbook.core.logger import audit_log
from jewelbook.repositories.expense_repo import get_expense_repository
from jewelbook.utils.validators import parse_date, validate_expense_data

logger = logging.getLogger(__name__)


def _normalize(expense_data: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(expense_data)
    if 'asof_date' in data:
        data['asof_date'] = parse_date(data['asof_date'], 'asof_date')
    if data.get('expense_type') is not None:
        data['expense_type'] = str(data['expense_type']).strip().lower()
    if data.get('item_name') is not None:
        data['item_name'] = str(data['item_name']).strip()
    return data


class ExpenseService:
    """Service for expense business logic"""

    def __init__(self):
        self.repo = get_expense_repository()

    def create_expense(
        self,
        expense_data: Dict[str, Any],
        user: Dict[str, Any],
        ip_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """Validate, reject duplicates and record an expense."""
        data = _normalize(expense_data)
        data.setdefault('asof_date', date.today().isoformat())
        data.setdefault('udhaar', False)
        validate_expense_data(data)

        expense = self.repo.create_expense(data, user['username'])

        audit_log(
            username=user['username'],
            role=user['role'],
            action="insert",
            table_name="expense_log",
            row_id=expense['id'],
            description=f"Added expense: {expense['expense_type']} - {expense['item_name']} - {expense['cost']}"
                        + (" (udhaar)" if expense['udhaar'] else ""),
            new_values=expense,
            ip_address=ip_address
        )
        return expense

    def get_expense(self, expense_id: int) -> Dict[str, Any]:
        expense = self.repo.get_expense_by_id(expense_id)
        if not expense:
            raise RecordNotFoundError("Expense not found")
        return expense

    def list_expenses(self, filters: Dict[str, Any], skip: int = 0, limit: int = 50) -> Dict[str, Any]:
        filters = dict(filters)
        for key in ('start_date', 'end_date'):
            if filters.get(key):
                filters[key] = parse_date(filters[key], key)
        return self.repo.list_expenses(filters, skip=skip, limit=limit)

    def update_expense(
        self,
        expense_id: int,
        changes: Dict[str, Any],
        user: Dict[str, Any],
        ip_address: Optional[str] = None
    ) -> Dict[str, Any]:
        current = self.get_expense(expense_id)
        data = _normalize(changes)
        validate_expense_data({**current, **data})

        updated = self.repo.update_expense(expense_id, data)
        if not updated:
            raise RecordNotFoundError("Expense not found")

        audit_log(
            username=user['username'],
            role=user['role'],
            action="update",
            table_name="expense_log",
            row_id=expense_id,
            description=f"Updated expense: {updated['expense_type']} - {updated['item_name']}",
            old_values=current,
            new_values=updated,
            ip_address=ip_address
        )
        return updated

    def delete_expense(self, expense_id: int, user: Dict[str, Any], ip_address: Optional[str] = None):
        current = self.get_expense(expense_id)
        if not self.repo.soft_delete_expense(expense_id):
            raise RecordNotFoundError("Expense not found")

        audit_log(
            username=user['username'],
            role=user['role'],
            action="delete",
            table_name="expense_log",
            row_id=expense_id,
            description=f"Deleted expense: {current['expense_type']} - {current['item_name']}",
            old_values=current,
            ip_address=ip_address
        )

    def get_summary(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Dict[str, Any]:
        if start_date:
            start_date = parse_date(start_date, 'start_date')
        if end_date:
            end_date = parse_date(end_date, 'end_date')
        return self.repo.get_summary(start_date, end_date)


# Singleton instance
_expense_service_instance = None


def get_expense_service() -> ExpenseService:
    """Get singleton expense service instance."""
    global _expense_service_instance
    if _expense_service_instance is None:
        _expense_service_instance = ExpenseService()
    return _expense_service_instance
