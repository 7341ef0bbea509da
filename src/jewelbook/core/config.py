# src/jewelbook/core/config.py
"""
APPLICATION CONFIGURATION
Values come from environment variables with sensible shop defaults.
"""

import os
from pathlib import Path

APP_NAME = "Jewelbook"
APP_VERSION = "1.0.0"
SERVICE_NAME = "jewelbook"

ENV = os.getenv("JEWELBOOK_ENV", "production")
IS_DEVELOPMENT = ENV == "development"

# ==================== PATHS ====================

DATA_DIR = Path(os.getenv("JEWELBOOK_DATA_DIR", str(Path.home() / ".jewelbook")))
LOG_DIR = Path(os.getenv("JEWELBOOK_LOG_DIR", str(DATA_DIR / "logs")))

# ==================== SERVER ====================

HOST = os.getenv("JEWELBOOK_HOST", "127.0.0.1")
PORT = int(os.getenv("JEWELBOOK_PORT", "8000"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("JEWELBOOK_CORS_ORIGINS", "").split(",")
    if origin.strip()
]

# Rate limiting (requests per window per client IP)
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("JEWELBOOK_RATE_LIMIT", "200"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("JEWELBOOK_RATE_WINDOW", "60"))

# ==================== OPERATOR IDENTITY ====================

USER_HEADER = os.getenv("JEWELBOOK_USER_HEADER", "X-Username")
DEFAULT_OWNER_USERNAME = os.getenv("JEWELBOOK_DEFAULT_OWNER", "owner").strip().lower()

ROLES = {
    "owner": {
        "name": "Owner",
        "permissions": ["*"],
    },
    "admin": {
        "name": "Administrator",
        "permissions": ["*"],
    },
    "staff": {
        "name": "Shop Staff",
        "permissions": [
            "rates.view",
            "rates.manage",
            "expenses.*",
            "sales.view",
            "sales.manage",
        ],
    },
}

# ==================== DOMAIN ====================

MATERIALS = ("gold", "silver")

# Karat row whose rates price fine metal for each material
MATERIAL_BASE_KARAT = {
    "gold": "24K",
    "silver": "999",
}

EXPENSE_TYPES = ("direct", "indirect")

REPORT_TABLES = ("daily_rates", "expense_log", "sales_log", "activity_log")
REPORT_DEFAULT_DAYS = 30

SHOP_NAME = os.getenv("JEWELBOOK_SHOP_NAME", "Jewelbook Jewellers")
CURRENCY_SYMBOL = "₹"
CURRENCY_CODE = "INR"
