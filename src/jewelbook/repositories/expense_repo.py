# src/jewelbook/repositories/expense_repo.py
"""
EXPENSE REPOSITORY - Data Access Layer
"""

from typing import List, Dict, Any, Optional
import logging

from jewelbook.core.database import get_database_manager
from jewelbook.core.exceptions import DuplicateEntryError

logger = logging.getLogger(__name__)

EXPENSE_FIELDS = ['asof_date', 'expense_type', 'item_name', 'cost', 'udhaar']


def _row_to_expense(row) -> Dict[str, Any]:
    expense = dict(row)
    expense['udhaar'] = bool(expense.get('udhaar'))
    return expense


class ExpenseRepository:
    """Repository for expense_log rows"""

    @property
    def db_manager(self):
        return get_database_manager()

    @staticmethod
    def _find_duplicate(cursor, asof_date: str, expense_type: str, item_name: str,
                        exclude_id: Optional[int] = None):
        query = '''
            SELECT id, inserted_by FROM expense_log
            WHERE asof_date = ? AND expense_type = ? AND item_name = ?
              AND deleted_at IS NULL
        '''
        params = [asof_date, expense_type, item_name]
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        cursor.execute(query, params)
        return cursor.fetchone()

    def create_expense(self, expense_data: Dict[str, Any], inserted_by: str) -> Dict[str, Any]:
        """
        Insert an expense unless the same date/type/item already exists.

        Raises:
            DuplicateEntryError: naming the operator who entered the original
        """
        with self.db_manager.get_cursor(immediate=True) as cursor:
            duplicate = self._find_duplicate(
                cursor,
                expense_data['asof_date'],
                expense_data['expense_type'],
                expense_data['item_name']
            )
            if duplicate:
                raise DuplicateEntryError(
                    f"Duplicate expense detected! This expense ({expense_data['expense_type']} - "
                    f"{expense_data['item_name']}) for {expense_data['asof_date']} was already "
                    f"entered by {duplicate['inserted_by']}.",
                    inserted_by=duplicate['inserted_by'],
                    existing_id=duplicate['id']
                )

            cursor.execute('''
                INSERT INTO expense_log
                (asof_date, expense_type, item_name, cost, udhaar, inserted_by)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                expense_data['asof_date'],
                expense_data['expense_type'],
                expense_data['item_name'],
                float(expense_data['cost']),
                1 if expense_data.get('udhaar') else 0,
                inserted_by
            ))
            expense_id = cursor.lastrowid

        return self.get_expense_by_id(expense_id)

    def get_expense_by_id(self, expense_id: int) -> Optional[Dict[str, Any]]:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                "SELECT * FROM expense_log WHERE id = ? AND deleted_at IS NULL",
                (expense_id,)
            )
            row = cursor.fetchone()
            return _row_to_expense(row) if row else None

    def list_expenses(
        self,
        filters: Dict[str, Any],
        skip: int = 0,
        limit: int = 50
    ) -> Dict[str, Any]:
        """List expenses with filtering and paging."""
        where = ["deleted_at IS NULL"]
        params = []

        if filters.get('start_date'):
            where.append("asof_date >= ?")
            params.append(filters['start_date'])
        if filters.get('end_date'):
            where.append("asof_date <= ?")
            params.append(filters['end_date'])
        if filters.get('expense_type'):
            where.append("expense_type = ?")
            params.append(filters['expense_type'])
        if filters.get('udhaar') is not None:
            where.append("udhaar = ?")
            params.append(1 if filters['udhaar'] else 0)

        where_sql = " AND ".join(where)

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                f"SELECT * FROM expense_log WHERE {where_sql} "
                f"ORDER BY asof_date DESC, id DESC LIMIT ? OFFSET ?",
                params + [limit, skip]
            )
            expenses = [_row_to_expense(row) for row in cursor.fetchall()]

            cursor.execute(f"SELECT COUNT(*) FROM expense_log WHERE {where_sql}", params)
            total = cursor.fetchone()[0]

        return {"expenses": expenses, "total": total}

    def update_expense(self, expense_id: int, expense_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply changes to an expense. The merged row must still be unique.
        """
        with self.db_manager.get_cursor(immediate=True) as cursor:
            cursor.execute(
                "SELECT * FROM expense_log WHERE id = ? AND deleted_at IS NULL",
                (expense_id,)
            )
            current = cursor.fetchone()
            if not current:
                return None

            merged = {**dict(current), **expense_data}
            duplicate = self._find_duplicate(
                cursor,
                merged['asof_date'],
                merged['expense_type'],
                merged['item_name'],
                exclude_id=expense_id
            )
            if duplicate:
                raise DuplicateEntryError(
                    f"Another {merged['expense_type']} expense for {merged['item_name']} on "
                    f"{merged['asof_date']} was already entered by {duplicate['inserted_by']}.",
                    inserted_by=duplicate['inserted_by'],
                    existing_id=duplicate['id']
                )

            updates = []
            params = []
            for field in EXPENSE_FIELDS:
                if field in expense_data:
                    value = expense_data[field]
                    if field == 'udhaar':
                        value = 1 if value else 0
                    updates.append(f"{field} = ?")
                    params.append(value)

            if updates:
                updates.append("updated_at = CURRENT_TIMESTAMP")
                params.append(expense_id)
                cursor.execute(
                    f"UPDATE expense_log SET {', '.join(updates)} WHERE id = ?",
                    params
                )

        return self.get_expense_by_id(expense_id)

    def soft_delete_expense(self, expense_id: int) -> bool:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                "UPDATE expense_log SET deleted_at = CURRENT_TIMESTAMP WHERE id = ? AND deleted_at IS NULL",
                (expense_id,)
            )
            return cursor.rowcount > 0

    def get_summary(self, start_date: Optional[str], end_date: Optional[str]) -> Dict[str, Any]:
        """Totals by expense type plus the udhaar total."""
        where = ["deleted_at IS NULL"]
        params = []
        if start_date:
            where.append("asof_date >= ?")
            params.append(start_date)
        if end_date:
            where.append("asof_date <= ?")
            params.append(end_date)
        where_sql = " AND ".join(where)

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f'''
                SELECT expense_type, COUNT(*) AS count, COALESCE(SUM(cost), 0) AS amount
                FROM expense_log WHERE {where_sql}
                GROUP BY expense_type ORDER BY amount DESC
            ''', params)
            by_type = [dict(row) for row in cursor.fetchall()]

            cursor.execute(f'''
                SELECT COALESCE(SUM(cost), 0) AS total,
                       COALESCE(SUM(CASE WHEN udhaar = 1 THEN cost ELSE 0 END), 0) AS udhaar_total
                FROM expense_log WHERE {where_sql}
            ''', params)
            totals = cursor.fetchone()

        return {
            "total_expenses": round(totals['total'], 2),
            "udhaar_total": round(totals['udhaar_total'], 2),
            "by_type": by_type
        }


# Singleton instance
_expense_repo_instance = None


def get_expense_repository() -> ExpenseRepository:
    """Get singleton expense repository instance."""
    global _expense_repo_instance
    if _expense_repo_instance is None:
        _expense_repo_instance = ExpenseRepository()
    return _expense_repo_instance
