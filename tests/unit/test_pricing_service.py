import pytest

from jewelbook.core.exceptions import RateNotFoundError
from jewelbook.services.pricing_service import get_pricing_service

BASE_SALE = {
    "asof_date": "2024-05-01",
    "material": "gold",
    "p_grams": 10,
    "p_purity": 91.6,
}


def price(**fields):
    return get_pricing_service().price_sale({**BASE_SALE, **fields})


def test_prices_from_karat_rate(rates):
    sale, pricing = price(karat="22k", wastage=10)

    assert sale["karat"] == "22K"
    assert sale["p_cost"] == pytest.approx(54960.0)
    assert sale["s_cost"] == pytest.approx(61600.0)
    assert sale["profit"] == pytest.approx(6640.0)
    assert pricing["rate_date"] == "2024-05-01"
    assert pricing["rates_used"]["purchase_rate"] == 6000
    assert pricing["rates_used"]["selling_rate"] == 5600


def test_selling_rate_from_selling_purity(rates):
    sale, pricing = price(s_purity=91.6, wastage=0)

    assert pricing["rates_used"]["selling_rate"] == pytest.approx(5496.0)
    assert sale["s_cost"] == pytest.approx(54960.0)
    assert sale["profit"] == pytest.approx(0.0)


def test_selling_rate_defaults_to_base_rate(rates):
    sale, _ = price(wastage=5)
    assert sale["s_cost"] == pytest.approx(63000.0)


def test_wastage_derived_from_selling_cost(rates):
    sale, _ = price(karat="22K", s_cost=61600)
    assert sale["wastage"] == pytest.approx(10.0)
    assert sale["s_cost"] == 61600


def test_supplied_costs_are_kept_and_profit_recomputed(rates):
    sale, _ = price(p_cost=50000, s_cost=60000, wastage=3, profit=999999)
    assert sale["p_cost"] == 50000
    assert sale["s_cost"] == 60000
    assert sale["wastage"] == 3
    assert sale["profit"] == pytest.approx(10000.0)


def test_old_material_trade_in(rates):
    sale, pricing = price(karat="22K", wastage=10, o1_gram=5, o1_purity=75)

    assert pricing["rates_used"]["old_rate"] == 5800
    assert sale["o_cost"] == pytest.approx(21750.0)
    assert sale["profit"] == pytest.approx(61600 - 54960 - 21750)


def test_falls_back_to_latest_earlier_rates(rates):
    sale, pricing = price(asof_date="2024-05-03", karat="22K", wastage=10)
    assert pricing["rate_date"] == "2024-05-01"
    assert sale["s_cost"] == pytest.approx(61600.0)


def test_missing_rate_raises(rates):
    with pytest.raises(RateNotFoundError):
        price(asof_date="2024-04-01", wastage=10)
    with pytest.raises(RateNotFoundError):
        price(karat="18K", wastage=10)


def test_selling_cost_or_wastage_required(rates):
    with pytest.raises(ValueError, match="selling cost or wastage"):
        price(karat="22K")


def test_rate_sheet_without_fallback(rates):
    sheet = get_pricing_service().get_rate_sheet("2024-05-03", fallback=False)
    assert sheet.rates == []
    assert sheet.rate_date is None

    sheet = get_pricing_service().get_rate_sheet("2024-05-03")
    assert sheet.is_fallback
    assert len(sheet.rates) == 3
