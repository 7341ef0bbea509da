# src/jewelbook/repositories/report_repo.py
"""
REPORT REPOSITORY - read-only queries across the logs
"""

from typing import List, Dict, Any
import json
import logging

from jewelbook.core import config
from jewelbook.core.database import get_database_manager

logger = logging.getLogger(__name__)

JSON_COLUMNS = ('old_values', 'new_values')


class ReportRepository:
    """Date-range reads for reporting"""

    @property
    def db_manager(self):
        return get_database_manager()

    def fetch_table(self, table_name: str, from_date: str, to_date: str) -> List[Dict[str, Any]]:
        """
        Rows of one reportable table within [from_date, to_date], newest first.

        Args:
            table_name: One of config.REPORT_TABLES
            from_date: Inclusive start (YYYY-MM-DD)
            to_date: Inclusive end (YYYY-MM-DD)
        """
        if table_name not in config.REPORT_TABLES:
            raise ValueError(f"Unknown report table: {table_name}")

        if table_name == 'activity_log':
            query = '''
                SELECT * FROM activity_log
                WHERE DATE(created_at) BETWEEN ? AND ?
                ORDER BY created_at DESC, id DESC
            '''
        else:
            query = f"SELECT * FROM {table_name} WHERE asof_date BETWEEN ? AND ?"
            if table_name != 'daily_rates':
                query += " AND deleted_at IS NULL"
            query += " ORDER BY asof_date DESC, id DESC"

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(query, (from_date, to_date))
            rows = [dict(row) for row in cursor.fetchall()]

        if table_name == 'activity_log':
            for row in rows:
                for column in JSON_COLUMNS:
                    if row.get(column):
                        row[column] = json.loads(row[column])
        elif table_name == 'expense_log':
            for row in rows:
                row['udhaar'] = bool(row['udhaar'])

        return rows

    def get_sales_totals(self, from_date: str, to_date: str) -> Dict[str, Any]:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute('''
                SELECT COUNT(*) AS count,
                       COALESCE(SUM(s_cost), 0) AS revenue,
                       COALESCE(SUM(p_cost), 0) AS purchase_cost,
                       COALESCE(SUM(o_cost), 0) AS old_cost,
                       COALESCE(SUM(profit), 0) AS profit
                FROM sales_log
                WHERE deleted_at IS NULL AND asof_date BETWEEN ? AND ?
            ''', (from_date, to_date))
            return dict(cursor.fetchone())

    def get_expense_totals(self, from_date: str, to_date: str) -> Dict[str, Any]:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute('''
                SELECT COALESCE(SUM(cost), 0) AS total,
                       COALESCE(SUM(CASE WHEN expense_type = 'direct' THEN cost ELSE 0 END), 0) AS direct,
                       COALESCE(SUM(CASE WHEN expense_type = 'indirect' THEN cost ELSE 0 END), 0) AS indirect,
                       COALESCE(SUM(CASE WHEN udhaar = 1 THEN cost ELSE 0 END), 0) AS udhaar
                FROM expense_log
                WHERE deleted_at IS NULL AND asof_date BETWEEN ? AND ?
            ''', (from_date, to_date))
            return dict(cursor.fetchone())

    def get_daily_breakdown(self, from_date: str, to_date: str) -> List[Dict[str, Any]]:
        """Per-day sales and expense totals, newest first."""
        with self.db_manager.get_cursor() as cursor:
            cursor.execute('''
                SELECT asof_date, COUNT(*) AS sales_count,
                       SUM(s_cost) AS revenue, SUM(profit) AS profit
                FROM sales_log
                WHERE deleted_at IS NULL AND asof_date BETWEEN ? AND ?
                GROUP BY asof_date
            ''', (from_date, to_date))
            sales_by_day = {row['asof_date']: dict(row) for row in cursor.fetchall()}

            cursor.execute('''
                SELECT asof_date, SUM(cost) AS expenses
                FROM expense_log
                WHERE deleted_at IS NULL AND asof_date BETWEEN ? AND ?
                GROUP BY asof_date
            ''', (from_date, to_date))
            expenses_by_day = {row['asof_date']: row['expenses'] for row in cursor.fetchall()}

        days = []
        for day in sorted(set(sales_by_day) | set(expenses_by_day), reverse=True):
            sales = sales_by_day.get(day, {})
            days.append({
                "date": day,
                "sales_count": sales.get('sales_count', 0),
                "revenue": round(sales.get('revenue') or 0, 2),
                "profit": round(sales.get('profit') or 0, 2),
                "expenses": round(expenses_by_day.get(day) or 0, 2),
            })
        return days


# Singleton instance
_report_repo_instance = None


def get_report_repository() -> ReportRepository:
    """Get singleton report repository instance."""
    global _report_repo_instance
    if _report_repo_instance is None:
        _report_repo_instance = ReportRepository()
    return _report_repo_instance
