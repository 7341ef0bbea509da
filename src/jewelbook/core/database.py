# src/jewelbook/core/database.py
"""
DATABASE MANAGER FOR THE JEWELLERY BACK OFFICE
- Auto-creates database on first run
- Rates, expenses, sales, users and activity tables
- Connection pooling
"""

import sqlite3
import logging
import threading
import time
from pathlib import Path
from contextlib import contextmanager
from typing import Optional, Generator

from jewelbook.core import config

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    SQLite database manager.
    Auto-creates the schema and pools connections.
    """

    def __init__(self, app_data_path: Optional[Path] = None):
        """
        Initialize database manager.

        Args:
            app_data_path: Path to store database files (default: JEWELBOOK_DATA_DIR)
        """
        self.app_data_path = Path(app_data_path) if app_data_path else config.DATA_DIR

        self.create_directories()

        self.db_path = self.app_data_path / 'database' / 'jewelbook.db'

        # Connection pool
        self.connection_pool = []
        self.max_connections = 10
        self.pool_lock = threading.Lock()
        self.initialized = False
        self.init_lock = threading.Lock()

        logger.info(f"Database Manager initialized. Data path: {self.app_data_path}")

    def create_directories(self):
        """Create all required directories."""
        directories = [
            self.app_data_path,
            self.app_data_path / 'database',
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> sqlite3.Connection:
        """
        Get a database connection from pool or create new one.

        Returns:
            SQLite connection object
        """
        # Retry loop to handle transient 'database is locked' situations
        attempts = 5
        delay = 0.2
        for attempt in range(attempts):
            with self.pool_lock:
                if self.connection_pool:
                    conn = self.connection_pool.pop()
                    try:
                        conn.execute("SELECT 1").fetchone()
                        return conn
                    except sqlite3.Error:
                        conn.close()
                        continue
            try:
                return self.create_new_connection()
            except sqlite3.OperationalError as e:
                if 'locked' in str(e).lower() and attempt < attempts - 1:
                    logger.warning(f"Database locked, retrying (attempt {attempt+1}/{attempts})")
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise
        return self.create_new_connection()

    def create_new_connection(self) -> sqlite3.Connection:
        """
        Create a new database connection with optimal settings.

        Returns:
            SQLite connection
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False
            )

            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA busy_timeout = 10000")
            conn.execute("PRAGMA temp_store = MEMORY")

            conn.row_factory = sqlite3.Row

            return conn

        except Exception as e:
            logger.error(f"Failed to create database connection: {e}")
            raise

    def return_connection(self, conn: sqlite3.Connection):
        """
        Return connection to pool.

        Args:
            conn: SQLite connection to return
        """
        with self.pool_lock:
            if len(self.connection_pool) < self.max_connections:
                self.connection_pool.append(conn)
            else:
                conn.close()

    @contextmanager
    def get_cursor(self, immediate: bool = False) -> Generator[sqlite3.Cursor, None, None]:
        """
        Context manager for database operations.
        Everything inside the block runs in one transaction.

        Args:
            immediate: Take the write lock up front so a read-then-write
                check cannot interleave with another writer

        Yields:
            SQLite cursor
        """
        conn = self.get_connection()
        cursor = conn.cursor()
        try:
            if immediate:
                cursor.execute("BEGIN IMMEDIATE")
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            self.return_connection(conn)

    def initialize_database(self):
        """
        Initialize database with all tables and default data.
        This runs automatically on first launch.
        """
        if self.initialized:
            return

        with self.init_lock:
            if self.initialized:
                return

            logger.info("Initializing database...")

            try:
                with self.get_cursor() as cursor:
                    # 1. USERS (operators who record entries)
                    cursor.execute('''
                    CREATE TABLE IF NOT EXISTS users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username VARCHAR(50) UNIQUE NOT NULL,
                        full_name VARCHAR(100),
                        role VARCHAR(20) NOT NULL CHECK(role IN ('owner', 'admin', 'staff')),
                        is_active BOOLEAN DEFAULT 1,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                    ''')

                    # 2. DAILY RATES (per gram, per material and karat)
                    cursor.execute('''
                    CREATE TABLE IF NOT EXISTS daily_rates (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        asof_date TEXT NOT NULL,
                        material VARCHAR(20) NOT NULL CHECK(material IN ('gold', 'silver')),
                        karat VARCHAR(10) NOT NULL,
                        n_price DECIMAL(15,2) NOT NULL,
                        o_price DECIMAL(15,2) NOT NULL,
                        inserted_by VARCHAR(50) NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE(asof_date, material, karat)
                    )
                    ''')

                    # 3. EXPENSE LOG
                    cursor.execute('''
                    CREATE TABLE IF NOT EXISTS expense_log (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        asof_date TEXT NOT NULL,
                        expense_type VARCHAR(20) NOT NULL CHECK(expense_type IN ('direct', 'indirect')),
                        item_name VARCHAR(200) NOT NULL,
                        cost DECIMAL(15,2) NOT NULL,
                        udhaar BOOLEAN DEFAULT 0,
                        inserted_by VARCHAR(50) NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        deleted_at TIMESTAMP
                    )
                    ''')

                    # 4. SALES LOG
                    cursor.execute('''
                    CREATE TABLE IF NOT EXISTS sales_log (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        asof_date TEXT NOT NULL,
                        customer_name VARCHAR(200) NOT NULL,
                        customer_phone VARCHAR(20) NOT NULL,
                        tag_no VARCHAR(50) NOT NULL,
                        item_name VARCHAR(200) NOT NULL,
                        material VARCHAR(20) NOT NULL CHECK(material IN ('gold', 'silver')),
                        type VARCHAR(50) NOT NULL,
                        karat VARCHAR(10),

                        -- Purchase side
                        p_grams DECIMAL(15,3) NOT NULL,
                        p_purity DECIMAL(5,2) NOT NULL,
                        p_cost DECIMAL(15,2) NOT NULL,

                        -- Selling side
                        s_purity DECIMAL(5,2),
                        wastage DECIMAL(8,3),
                        s_cost DECIMAL(15,2) NOT NULL,

                        -- Old material trade-in
                        o_cost DECIMAL(15,2),
                        o1_gram DECIMAL(15,3),
                        o1_purity DECIMAL(5,2),
                        o2_gram DECIMAL(15,3),
                        o2_purity DECIMAL(5,2),

                        profit DECIMAL(15,2) NOT NULL,
                        inserted_by VARCHAR(50) NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        deleted_at TIMESTAMP
                    )
                    ''')

                    # 5. ACTIVITY LOG (audit trail)
                    cursor.execute('''
                    CREATE TABLE IF NOT EXISTS activity_log (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username VARCHAR(50),
                        role VARCHAR(20),
                        action VARCHAR(50) NOT NULL,
                        table_name VARCHAR(50),
                        row_id INTEGER,
                        description TEXT,
                        old_values TEXT,
                        new_values TEXT,
                        ip_address VARCHAR(50),
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                    ''')

                    # ==================== INDEXES ====================
                    indexes = [
                        "CREATE INDEX IF NOT EXISTS idx_rates_date ON daily_rates(asof_date)",
                        "CREATE INDEX IF NOT EXISTS idx_expense_date ON expense_log(asof_date)",
                        "CREATE INDEX IF NOT EXISTS idx_expense_key ON expense_log(asof_date, expense_type, item_name)",
                        "CREATE INDEX IF NOT EXISTS idx_sales_date ON sales_log(asof_date)",
                        "CREATE INDEX IF NOT EXISTS idx_sales_tag ON sales_log(tag_no)",
                        "CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at)",
                    ]
                    for index_sql in indexes:
                        cursor.execute(index_sql)

                    # ==================== DEFAULT DATA ====================
                    cursor.execute("SELECT COUNT(*) FROM users")
                    if cursor.fetchone()[0] == 0:
                        cursor.execute('''
                            INSERT INTO users (username, full_name, role)
                            VALUES (?, ?, 'owner')
                        ''', (config.DEFAULT_OWNER_USERNAME, 'Shop Owner'))
                        logger.info(f"Default owner '{config.DEFAULT_OWNER_USERNAME}' created")

                self.initialized = True
                logger.info("Database initialized successfully")

            except Exception as e:
                logger.error(f"Failed to initialize database: {e}")
                raise

    def close_all_connections(self):
        """Close all database connections."""
        with self.pool_lock:
            for conn in self.connection_pool:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    logger.warning(f"Error closing connection: {e}")
            self.connection_pool.clear()
            logger.info("All database connections closed")


# Singleton instance
_db_instance = None


def get_database_manager(app_data_path: Optional[Path] = None) -> DatabaseManager:
    """
    Get singleton database manager instance.

    Args:
        app_data_path: Optional custom data path

    Returns:
        DatabaseManager instance
    """
    global _db_instance
    if _db_instance is None:
        _db_instance = DatabaseManager(app_data_path)
        _db_instance.initialize_database()
    return _db_instance


def reset_database_manager():
    """Close and forget the singleton so the next call opens a fresh database."""
    global _db_instance
    if _db_instance is not None:
        _db_instance.close_all_connections()
    _db_instance = None
