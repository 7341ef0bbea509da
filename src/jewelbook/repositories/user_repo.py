# src/jewelbook/repositories/user_repo.py
"""
USER REPOSITORY - Data Access Layer
"""

from typing import Dict, Any, Optional
import sqlite3
import logging

from jewelbook.core.database import get_database_manager
from jewelbook.core.exceptions import DuplicateEntryError

logger = logging.getLogger(__name__)


def _row_to_user(row) -> Dict[str, Any]:
    user = dict(row)
    user['is_active'] = bool(user.get('is_active'))
    return user


class UserRepository:
    """Repository for operator accounts"""

    @property
    def db_manager(self):
        return get_database_manager()

    def list_users(self, role: Optional[str] = None, skip: int = 0, limit: int = 50) -> Dict[str, Any]:
        query = "SELECT id, username, full_name, role, is_active, created_at, updated_at FROM users"
        count_query = "SELECT COUNT(*) FROM users"
        params = []
        if role:
            query += " WHERE role = ?"
            count_query += " WHERE role = ?"
            params.append(role)

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(query + " ORDER BY username LIMIT ? OFFSET ?", params + [limit, skip])
            users = [_row_to_user(row) for row in cursor.fetchall()]
            cursor.execute(count_query, params)
            total = cursor.fetchone()[0]

        return {"users": users, "total": total}

    def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(
                "SELECT id, username, full_name, role, is_active, created_at, updated_at "
                "FROM users WHERE id = ?",
                (user_id,)
            )
            row = cursor.fetchone()
            return _row_to_user(row) if row else None

    def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with self.db_manager.get_cursor() as cursor:
                cursor.execute('''
                    INSERT INTO users (username, full_name, role, is_active)
                    VALUES (?, ?, ?, ?)
                ''', (
                    user_data['username'],
                    user_data.get('full_name'),
                    user_data['role'],
                    1 if user_data.get('is_active', True) else 0
                ))
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError:
            raise DuplicateEntryError(f"Username {user_data['username']} already exists")

        return self.get_user_by_id(user_id)

    def update_user(self, user_id: int, user_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = []
        params = []
        for field in ['full_name', 'role', 'is_active']:
            if field in user_data:
                value = user_data[field]
                if field == 'is_active':
                    value = 1 if value else 0
                updates.append(f"{field} = ?")
                params.append(value)

        if updates:
            updates.append("updated_at = CURRENT_TIMESTAMP")
            params.append(user_id)
            with self.db_manager.get_cursor() as cursor:
                cursor.execute(f"UPDATE users SET {', '.join(updates)} WHERE id = ?", params)

        return self.get_user_by_id(user_id)


# Singleton instance
_user_repo_instance = None


def get_user_repository() -> UserRepository:
    """Get singleton user repository instance."""
    global _user_repo_instance
    if _user_repo_instance is None:
        _user_repo_instance = UserRepository()
    return _user_repo_instance
