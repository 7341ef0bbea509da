"""
Shared fixtures: a fresh SQLite database per test and HTTP clients acting
as the seeded owner and as a staff member.
"""

import os
import tempfile

# Must be set before jewelbook.core.config is imported
os.environ["JEWELBOOK_ENV"] = "test"
os.environ["JEWELBOOK_DATA_DIR"] = tempfile.mkdtemp(prefix="jewelbook-tests-")
os.environ["JEWELBOOK_RATE_LIMIT"] = "100000"

import pytest
from fastapi.testclient import TestClient

from jewelbook.core.database import get_database_manager, reset_database_manager
from jewelbook.repositories.rates_repo import get_rates_repository
from jewelbook.repositories.user_repo import get_user_repository

RATE_DATE = "2024-05-01"

OWNER_HEADERS = {"X-Username": "owner"}
STAFF_HEADERS = {"X-Username": "meena"}

SAMPLE_RATES = [
    {"material": "gold", "karat": "24K", "n_price": 6000, "o_price": 5800},
    {"material": "gold", "karat": "22K", "n_price": 5600, "o_price": 5400},
    {"material": "silver", "karat": "999", "n_price": 80, "o_price": 75},
]


@pytest.fixture
def db(tmp_path):
    reset_database_manager()
    manager = get_database_manager(tmp_path)
    yield manager
    reset_database_manager()


@pytest.fixture
def rates(db):
    get_rates_repository().upsert_rates(RATE_DATE, SAMPLE_RATES, "owner")
    return SAMPLE_RATES


@pytest.fixture
def staff_user(db):
    return get_user_repository().create_user({
        "username": "meena",
        "full_name": "Meena Staff",
        "role": "staff",
    })


@pytest.fixture
def client(db):
    from jewelbook.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def owner(client):
    client.headers.update(OWNER_HEADERS)
    return client


@pytest.fixture
def staff(db, staff_user):
    from jewelbook.main import app

    with TestClient(app, headers=STAFF_HEADERS) as test_client:
        yield test_client


@pytest.fixture
def make_sale():
    """Factory for a valid 22K gold sale payload."""
    def _make_sale(**overrides):
        sale = {
            "asof_date": RATE_DATE,
            "customer_name": "Lakshmi Iyer",
            "customer_phone": "9876543210",
            "tag_no": "G-1001",
            "item_name": "Bangle",
            "material": "gold",
            "type": "bangle",
            "karat": "22K",
            "p_grams": 10,
            "p_purity": 91.6,
            "wastage": 10,
        }
        sale.update(overrides)
        return sale

    return _make_sale
