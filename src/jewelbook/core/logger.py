# src/jewelbook/core/logger.py
"""
LOGGING SYSTEM FOR AUDIT TRAILS AND DEBUGGING
"""

import logging
import logging.handlers
import sys
import json
from pathlib import Path
from typing import Optional, Dict, Any

from jewelbook.core import config


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO):
    """
    Setup logging system.

    Args:
        log_dir: Directory to store log files
        level: Root log level
    """
    if log_dir is None:
        log_dir = config.LOG_DIR

    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(console_handler)

    # Main application log (daily rotation)
    app_format = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    app_log_handler = logging.handlers.TimedRotatingFileHandler(
        log_dir / "app.log",
        when="midnight",
        interval=1,
        backupCount=30
    )
    app_log_handler.setLevel(level)
    app_log_handler.setFormatter(app_format)
    logger.addHandler(app_log_handler)

    # Error log
    error_handler = logging.FileHandler(log_dir / "errors.log")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(app_format)
    logger.addHandler(error_handler)

    # Audit log handler
    audit_handler = logging.FileHandler(log_dir / "audit.log")
    audit_handler.setLevel(logging.INFO)
    audit_handler.setFormatter(logging.Formatter('%(asctime)s - AUDIT - %(message)s'))
    audit_handler.addFilter(lambda record: record.name == 'audit')
    logger.addHandler(audit_handler)

    # Security log handler
    security_handler = logging.FileHandler(log_dir / "security.log")
    security_handler.setLevel(logging.INFO)
    security_handler.setFormatter(logging.Formatter('%(asctime)s - SECURITY - %(message)s'))
    security_handler.addFilter(lambda record: record.name == 'security')
    logger.addHandler(security_handler)


def audit_log(
    username: Optional[str],
    role: Optional[str],
    action: str,
    table_name: Optional[str],
    row_id: Optional[int],
    description: str,
    old_values: Optional[Dict] = None,
    new_values: Optional[Dict] = None,
    ip_address: Optional[str] = None
):
    """
    Record an activity_log row and an audit log line.
    Failures are logged and never propagate to the caller.

    Args:
        username: Operator performing the action
        role: Operator role
        action: Action performed (insert, update, delete, upsert)
        table_name: Table affected
        row_id: Row affected
        description: Human readable summary
        old_values: Row state before the change
        new_values: Row state after the change
        ip_address: Client IP address
    """
    try:
        from jewelbook.core.database import get_database_manager

        db_manager = get_database_manager()

        with db_manager.get_cursor() as cursor:
            cursor.execute('''
                INSERT INTO activity_log
                (username, role, action, table_name, row_id, description,
                 old_values, new_values, ip_address)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                username,
                role,
                action,
                table_name,
                row_id,
                description,
                json.dumps(old_values, default=str) if old_values else None,
                json.dumps(new_values, default=str) if new_values else None,
                ip_address
            ))

        audit_logger = logging.getLogger('audit')
        audit_logger.info(
            f"User:{username or 'System'} | "
            f"Action:{action} | "
            f"Table:{table_name or 'N/A'} | "
            f"Row:{row_id or 'N/A'} | "
            f"{description}"
        )

    except Exception as e:
        logging.getLogger(__name__).error(f"Failed to log audit trail: {e}")


def security_log(event: str, details: Dict[str, Any], ip_address: Optional[str] = None):
    """
    Log security-related events.

    Args:
        event: Security event type
        details: Event details
        ip_address: Client IP address
    """
    security_logger = logging.getLogger('security')
    log_message = f"Event:{event} | Details:{json.dumps(details, default=str)}"
    if ip_address:
        log_message += f" | IP:{ip_address}"
    security_logger.info(log_message)
