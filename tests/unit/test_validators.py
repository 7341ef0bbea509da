from datetime import date

import pytest

from jewelbook.utils.validators import (
    parse_date,
    validate_date_range,
    normalize_karat,
    validate_material,
    validate_rates_data,
    validate_expense_data,
    validate_sale_data,
    validate_user_data,
)


def valid_sale(**overrides):
    sale = {
        "asof_date": "2024-05-01",
        "customer_name": "Lakshmi",
        "customer_phone": "9876543210",
        "tag_no": "G-1",
        "item_name": "Ring",
        "material": "gold",
        "type": "ring",
        "p_grams": 4.2,
        "p_purity": 91.6,
    }
    sale.update(overrides)
    return sale


def test_parse_date_accepts_iso_strings_and_dates():
    assert parse_date("2024-05-01") == "2024-05-01"
    assert parse_date("2024-05-01T10:30:00") == "2024-05-01"
    assert parse_date(date(2024, 5, 1)) == "2024-05-01"


@pytest.mark.parametrize("value", ["", None, "01/05/2024", "2024-13-01"])
def test_parse_date_rejects_bad_values(value):
    with pytest.raises(ValueError):
        parse_date(value)


def test_date_range_order():
    validate_date_range("2024-05-01", "2024-05-01")
    with pytest.raises(ValueError):
        validate_date_range("2024-05-02", "2024-05-01")


def test_normalize_karat():
    assert normalize_karat(" 22k ") == "22K"
    assert normalize_karat("") is None
    assert normalize_karat(None) is None


def test_validate_material():
    assert validate_material(" Gold ") == "gold"
    with pytest.raises(ValueError):
        validate_material("platinum")


def test_rates_require_unique_material_karat():
    rates = [
        {"material": "gold", "karat": "22K", "n_price": 1, "o_price": 1},
        {"material": "gold", "karat": "22k", "n_price": 2, "o_price": 2},
    ]
    with pytest.raises(ValueError, match="Duplicate rate"):
        validate_rates_data(rates)


def test_rates_reject_negative_and_missing_prices():
    with pytest.raises(ValueError):
        validate_rates_data([{"material": "gold", "karat": "24K", "n_price": -1, "o_price": 1}])
    with pytest.raises(ValueError):
        validate_rates_data([{"material": "gold", "karat": "24K", "n_price": 1}])
    with pytest.raises(ValueError):
        validate_rates_data([])


def test_expense_validation():
    expense = {"asof_date": "2024-05-01", "expense_type": "direct", "item_name": "Polish", "cost": 120}
    validate_expense_data(expense)
    with pytest.raises(ValueError):
        validate_expense_data({**expense, "cost": 0})
    with pytest.raises(ValueError):
        validate_expense_data({**expense, "expense_type": "other"})
    with pytest.raises(ValueError):
        validate_expense_data({**expense, "item_name": "  "})


def test_sale_validation_lists_missing_fields():
    with pytest.raises(ValueError) as exc:
        validate_sale_data(valid_sale(customer_phone="", tag_no=None))
    assert "customer_phone" in str(exc.value)
    assert "tag_no" in str(exc.value)


def test_sale_validation_checks_ranges():
    validate_sale_data(valid_sale())
    with pytest.raises(ValueError):
        validate_sale_data(valid_sale(p_grams=0))
    with pytest.raises(ValueError):
        validate_sale_data(valid_sale(p_purity=120))
    with pytest.raises(ValueError):
        validate_sale_data(valid_sale(s_cost=-5))


def test_user_validation():
    validate_user_data({"username": "meena", "role": "staff"})
    with pytest.raises(ValueError):
        validate_user_data({"username": "meena", "role": "manager"})


def test_parse_date_rejects_trailing_text():
    with pytest.raises(ValueError):
        parse_date("2024-05-01garbage")
    with pytest.raises(ValueError):
        parse_date("2024-05-01 junk")


def test_parse_date_accepts_datetimes():
    from datetime import datetime

    assert parse_date(datetime(2024, 5, 1, 18, 45)) == "2024-05-01"
