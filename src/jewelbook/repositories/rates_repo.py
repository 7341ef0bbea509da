# src/jewelbook/repositories/rates_repo.py
"""
DAILY RATES REPOSITORY - Data Access Layer
"""

from typing import List, Dict, Any, Optional
import logging

from jewelbook.core.database import get_database_manager

logger = logging.getLogger(__name__)


class RatesRepository:
    """Repository for daily metal rates"""

    @property
    def db_manager(self):
        return get_database_manager()

    def get_rates_for_date(self, asof_date: str) -> List[Dict[str, Any]]:
        """All rates recorded for exactly this date."""
        with self.db_manager.get_cursor() as cursor:
            cursor.execute('''
                SELECT * FROM daily_rates
                WHERE asof_date = ?
                ORDER BY material, karat
            ''', (asof_date,))
            return [dict(row) for row in cursor.fetchall()]

    def get_latest_rate_date(self, on_or_before: str) -> Optional[str]:
        """Most recent date with a rate sheet, not later than the given date."""
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                "SELECT MAX(asof_date) FROM daily_rates WHERE asof_date <= ?",
                (on_or_before,)
            )
            row = cursor.fetchone()
            return row[0] if row else None

    def upsert_rates(self, asof_date: str, rates: List[Dict[str, Any]], inserted_by: str):
        """Insert or update every rate on (asof_date, material, karat)."""
        try:
            with self.db_manager.get_cursor() as cursor:
                for rate in rates:
                    cursor.execute('''
                        INSERT INTO daily_rates
                        (asof_date, material, karat, n_price, o_price, inserted_by)
                        VALUES (?, ?, ?, ?, ?, ?)
                        ON CONFLICT(asof_date, material, karat) DO UPDATE SET
                            n_price = excluded.n_price,
                            o_price = excluded.o_price,
                            inserted_by = excluded.inserted_by,
                            updated_at = CURRENT_TIMESTAMP
                    ''', (
                        asof_date,
                        rate['material'],
                        rate['karat'],
                        float(rate['n_price']),
                        float(rate['o_price']),
                        inserted_by
                    ))
        except Exception as e:
            logger.error(f"Failed to upsert rates for {asof_date}: {e}")
            raise

    def get_rate_history(
        self,
        material: str,
        karat: str,
        from_date: str,
        to_date: str
    ) -> List[Dict[str, Any]]:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute('''
                SELECT asof_date, n_price, o_price, inserted_by
                FROM daily_rates
                WHERE material = ? AND karat = ? AND asof_date BETWEEN ? AND ?
                ORDER BY asof_date
            ''', (material, karat, from_date, to_date))
            return [dict(row) for row in cursor.fetchall()]


# Singleton instance
_rates_repo_instance = None


def get_rates_repository() -> RatesRepository:
    """Get singleton rates repository instance."""
    global _rates_repo_instance
    if _rates_repo_instance is None:
        _rates_repo_instance = RatesRepository()
    return _rates_repo_instance
