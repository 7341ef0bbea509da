import pytest

from jewelbook.utils.calculations import (
    calculate_purchase_cost,
    calculate_selling_cost,
    calculate_wastage,
    calculate_old_material_cost,
    calculate_profit,
)


def test_purchase_cost_uses_purity_percentage():
    assert calculate_purchase_cost(6000, 10, 91.6) == pytest.approx(54960.0)
    assert calculate_purchase_cost(6000, 10, 100) == pytest.approx(60000.0)


def test_selling_cost_applies_wastage_markup():
    assert calculate_selling_cost(5600, 10, 10) == pytest.approx(61600.0)


def test_selling_cost_without_wastage_is_metal_value():
    assert calculate_selling_cost(5600, 10, None) == pytest.approx(56000.0)
    assert calculate_selling_cost(5600, 10, 0) == pytest.approx(56000.0)


def test_wastage_inverts_selling_cost():
    s_cost = calculate_selling_cost(5600, 7.5, 12.5)
    assert calculate_wastage(s_cost, 7.5, 5600) == pytest.approx(12.5, abs=0.001)


def test_wastage_is_negative_for_discounted_sale():
    assert calculate_wastage(50400, 10, 5600) == pytest.approx(-10.0)


def test_wastage_rejects_zero_base():
    with pytest.raises(ValueError):
        calculate_wastage(1000, 0, 5600)
    with pytest.raises(ValueError):
        calculate_wastage(1000, 10, 0)


def test_old_material_cost_sums_pieces():
    pieces = [(5, 75), (2, 91.6)]
    expected = 5800 * 5 * 0.75 + 5800 * 2 * 0.916
    assert calculate_old_material_cost(5800, pieces) == pytest.approx(round(expected, 2))


def test_old_material_cost_skips_empty_pieces():
    assert calculate_old_material_cost(5800, [(5, 75), (None, None)]) == pytest.approx(21750.0)
    assert calculate_old_material_cost(5800, []) == 0


def test_old_material_piece_needs_purity():
    with pytest.raises(ValueError):
        calculate_old_material_cost(5800, [(5, None)])


def test_profit():
    assert calculate_profit(61600, 54960) == pytest.approx(6640.0)
    assert calculate_profit(61600, 54960, 21750) == pytest.approx(-15110.0)
    assert calculate_profit(100.005, 0) == pytest.approx(100.0, abs=0.01)
