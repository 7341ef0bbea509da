"""
Pricing formulas for gold and silver sales.

Purity is a percentage of fine metal (91.6 for 22K gold) and rates are per gram.
"""
from typing import Iterable, Optional, Tuple, Union

Number = Union[float, int]

MONEY_PLACES = 2
WASTAGE_PLACES = 3


def purity_factor(purity: Number) -> float:
	return float(purity) / 100.0


def calculate_purchase_cost(rate: Number, grams: Number, purity: Number) -> float:
	"""Fine-metal value of the piece: rate x grams x purity%."""
	return round(float(rate) * float(grams) * purity_factor(purity), MONEY_PLACES)


def calculate_selling_cost(rate: Number, grams: Number, wastage: Optional[Number]) -> float:
	"""Selling price with wastage applied as a markup on the metal value."""
	markup = 1 + (float(wastage or 0) / 100.0)
	return round(float(grams) * float(rate) * markup, MONEY_PLACES)


def calculate_wastage(selling_cost: Number, grams: Number, rate: Number) -> float:
	"""Inverse of calculate_selling_cost: the wastage % implied by a selling price."""
	base = float(grams) * float(rate)
	if base == 0:
		raise ValueError("Cannot derive wastage when grams or rate is zero")
	return round(((float(selling_cost) / base) - 1) * 100, WASTAGE_PLACES)


def calculate_old_material_cost(rate: Number, pieces: Iterable[Tuple[Optional[Number], Optional[Number]]]) -> float:
	"""Trade-in value of old pieces given as (grams, purity) pairs."""
	total = 0.0
	for grams, purity in pieces:
		if not grams:
			continue
		if purity is None:
			raise ValueError("Purity is required for every old material piece")
		total += float(rate) * float(grams) * purity_factor(purity)
	return round(total, MONEY_PLACES)


def calculate_profit(selling_cost: Number, purchase_cost: Number, old_cost: Optional[Number] = None) -> float:
	return round(float(selling_cost) - float(purchase_cost) - float(old_cost or 0), MONEY_PLACES)
