# src/jewelbook/repositories/sales_repo.py
"""
SALES REPOSITORY - Data Access Layer
"""

from typing import List, Dict, Any, Optional
import logging

from jewelbook.core.database import get_database_manager
from jewelbook.core.exceptions import DuplicateEntryError

logger = logging.getLogger(__name__)

SALE_FIELDS = [
    'asof_date', 'customer_name', 'customer_phone', 'tag_no', 'item_name',
    'material', 'type', 'karat',
    'p_grams', 'p_purity', 'p_cost',
    's_purity', 'wastage', 's_cost',
    'o_cost', 'o1_gram', 'o1_purity', 'o2_gram', 'o2_purity',
    'profit',
]


class SalesRepository:
    """Repository for sales_log rows"""

    @property
    def db_manager(self):
        return get_database_manager()

    @staticmethod
    def _find_duplicate(cursor, asof_date: str, tag_no: str, exclude_id: Optional[int] = None):
        query = '''
            SELECT id, inserted_by, customer_name FROM sales_log
            WHERE asof_date = ? AND tag_no = ? AND deleted_at IS NULL
        '''
        params = [asof_date, tag_no]
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        cursor.execute(query, params)
        return cursor.fetchone()

    @staticmethod
    def _duplicate_error(sale: Dict[str, Any], duplicate) -> DuplicateEntryError:
        return DuplicateEntryError(
            f"Duplicate sale detected! Tag {sale['tag_no']} was already sold on "
            f"{sale['asof_date']} to {duplicate['customer_name']} "
            f"(entered by {duplicate['inserted_by']}).",
            inserted_by=duplicate['inserted_by'],
            existing_id=duplicate['id']
        )

    def create_sale(self, sale_data: Dict[str, Any], inserted_by: str) -> Dict[str, Any]:
        """
        Insert a priced sale unless the tag was already sold on that date.

        Raises:
            DuplicateEntryError: naming the operator who entered the original
        """
        with self.db_manager.get_cursor(immediate=True) as cursor:
            duplicate = self._find_duplicate(cursor, sale_data['asof_date'], sale_data['tag_no'])
            if duplicate:
                raise self._duplicate_error(sale_data, duplicate)

            columns = SALE_FIELDS + ['inserted_by']
            values = [sale_data.get(field) for field in SALE_FIELDS] + [inserted_by]
            placeholders = ", ".join("?" for _ in columns)
            cursor.execute(
                f"INSERT INTO sales_log ({', '.join(columns)}) VALUES ({placeholders})",
                values
            )
            sale_id = cursor.lastrowid

        return self.get_sale_by_id(sale_id)

    def get_sale_by_id(self, sale_id: int) -> Optional[Dict[str, Any]]:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                "SELECT * FROM sales_log WHERE id = ? AND deleted_at IS NULL",
                (sale_id,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def list_sales(
        self,
        filters: Dict[str, Any],
        skip: int = 0,
        limit: int = 50
    ) -> Dict[str, Any]:
        """List sales with filtering and paging."""
        where = ["deleted_at IS NULL"]
        params = []

        if filters.get('start_date'):
            where.append("asof_date >= ?")
            params.append(filters['start_date'])
        if filters.get('end_date'):
            where.append("asof_date <= ?")
            params.append(filters['end_date'])
        if filters.get('material'):
            where.append("material = ?")
            params.append(filters['material'])
        if filters.get('tag_no'):
            where.append("tag_no = ?")
            params.append(filters['tag_no'])
        if filters.get('customer'):
            where.append("(customer_name LIKE ? OR customer_phone LIKE ?)")
            term = f"%{filters['customer']}%"
            params.extend([term, term])

        where_sql = " AND ".join(where)

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                f"SELECT * FROM sales_log WHERE {where_sql} "
                f"ORDER BY asof_date DESC, id DESC LIMIT ? OFFSET ?",
                params + [limit, skip]
            )
            sales = [dict(row) for row in cursor.fetchall()]

            cursor.execute(f"SELECT COUNT(*) FROM sales_log WHERE {where_sql}", params)
            total = cursor.fetchone()[0]

        return {"sales": sales, "total": total}

    def update_sale(self, sale_id: int, sale_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Write a re-priced sale back. The date/tag pair must stay unique."""
        with self.db_manager.get_cursor(immediate=True) as cursor:
            duplicate = self._find_duplicate(
                cursor, sale_data['asof_date'], sale_data['tag_no'], exclude_id=sale_id
            )
            if duplicate:
                raise self._duplicate_error(sale_data, duplicate)

            assignments = [f"{field} = ?" for field in SALE_FIELDS] + ["updated_at = CURRENT_TIMESTAMP"]
            params = [sale_data.get(field) for field in SALE_FIELDS]
            params.append(sale_id)
            cursor.execute(
                f"UPDATE sales_log SET {', '.join(assignments)} "
                f"WHERE id = ? AND deleted_at IS NULL",
                params
            )
            if cursor.rowcount == 0:
                return None

        return self.get_sale_by_id(sale_id)

    def soft_delete_sale(self, sale_id: int) -> bool:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                "UPDATE sales_log SET deleted_at = CURRENT_TIMESTAMP WHERE id = ? AND deleted_at IS NULL",
                (sale_id,)
            )
            return cursor.rowcount > 0

    def get_summary(self, start_date: Optional[str], end_date: Optional[str]) -> List[Dict[str, Any]]:
        """Sales totals grouped by material."""
        query = '''
            SELECT material,
                   COUNT(*) AS count,
                   COALESCE(SUM(p_grams), 0) AS grams,
                   COALESCE(SUM(p_cost), 0) AS purchase_cost,
                   COALESCE(SUM(s_cost), 0) AS selling_cost,
                   COALESCE(SUM(o_cost), 0) AS old_cost,
                   COALESCE(SUM(profit), 0) AS profit
            FROM sales_log WHERE deleted_at IS NULL
        '''
        params = []
        if start_date:
            query += " AND asof_date >= ?"
            params.append(start_date)
        if end_date:
            query += " AND asof_date <= ?"
            params.append(end_date)
        query += " GROUP BY material ORDER BY material"

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]


# Singleton instance
_sales_repo_instance = None


def get_sales_repository() -> SalesRepository:
    """Get singleton sales repository instance."""
    global _sales_repo_instance
    if _sales_repo_instance is None:
        _sales_repo_instance = SalesRepository()
    return _sales_repo_instance
