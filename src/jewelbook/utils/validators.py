"""
Validators used by services before anything is written.

They raise ValueError on invalid input.
"""
from datetime import date, datetime
from typing import Dict, Any, List, Optional

from jewelbook.core import config


def parse_date(value: Any, field: str = "date") -> str:
	"""Return an ISO date string (YYYY-MM-DD) or raise ValueError."""
	if isinstance(value, datetime):
		return value.date().isoformat()
	if isinstance(value, date):
		return value.isoformat()
	if not value:
		raise ValueError(f"{field} is required")
	text = str(value).strip()
	try:
		if len(text) == 10:
			return date.fromisoformat(text).isoformat()
		# full ISO timestamps only, no trailing text
		return datetime.fromisoformat(text).date().isoformat()
	except ValueError:
		raise ValueError(f"{field} must be a date in YYYY-MM-DD format")


def validate_date_range(from_date: str, to_date: str):
	if from_date > to_date:
		raise ValueError("from_date must not be after to_date")


def normalize_karat(karat: Optional[str]) -> Optional[str]:
	if karat is None:
		return None
	karat = str(karat).strip().upper()
	return karat or None


def validate_material(material: Any) -> str:
	material = str(material or "").strip().lower()
	if material not in config.MATERIALS:
		raise ValueError(f"Material must be one of: {', '.join(config.MATERIALS)}")
	return material


def validate_purity(purity: Any, field: str = "purity"):
	if purity is None:
		return
	if float(purity) <= 0 or float(purity) > 100:
		raise ValueError(f"{field} must be between 0 and 100")


def validate_rates_data(rates: List[Dict[str, Any]]):
	"""Validate a daily rate sheet."""
	if not rates:
		raise ValueError("At least one rate is required")

	seen = set()
	for rate in rates:
		material = validate_material(rate.get("material"))
		karat = normalize_karat(rate.get("karat"))
		if not karat:
			raise ValueError("Karat is required for every rate")
		if (material, karat) in seen:
			raise ValueError(f"Duplicate rate for {material} {karat}")
		seen.add((material, karat))
		for field in ("n_price", "o_price"):
			if rate.get(field) is None:
				raise ValueError(f"{field} is required for {material} {karat}")
			if float(rate[field]) < 0:
				raise ValueError(f"{field} must be non-negative")


def validate_expense_data(data: Dict[str, Any]):
	"""Validate expense data."""
	if not isinstance(data, dict):
		raise ValueError("Expense data must be an object")
	parse_date(data.get("asof_date"), "asof_date")
	if data.get("expense_type") not in config.EXPENSE_TYPES:
		raise ValueError(f"Expense type must be one of: {', '.join(config.EXPENSE_TYPES)}")
	if not str(data.get("item_name") or "").strip():
		raise ValueError("Item name is required")
	if data.get("cost") is None or float(data["cost"]) <= 0:
		raise ValueError("Expense cost must be positive")


SALE_REQUIRED_FIELDS = [
	"customer_name", "customer_phone", "tag_no", "item_name",
	"material", "type", "p_grams", "p_purity",
]


def validate_sale_data(data: Dict[str, Any]):
	"""Validate sale data before pricing."""
	if not isinstance(data, dict):
		raise ValueError("Sale data must be an object")
	parse_date(data.get("asof_date"), "asof_date")

	missing = [
		field for field in SALE_REQUIRED_FIELDS
		if data.get(field) is None or str(data.get(field)).strip() == ""
	]
	if missing:
		raise ValueError(f"Missing required fields: {', '.join(missing)}")

	validate_material(data["material"])
	if float(data["p_grams"]) <= 0:
		raise ValueError("p_grams must be positive")
	validate_purity(data.get("p_purity"), "p_purity")
	validate_purity(data.get("s_purity"), "s_purity")
	validate_purity(data.get("o1_purity"), "o1_purity")
	validate_purity(data.get("o2_purity"), "o2_purity")

	for field in ("p_cost", "s_cost", "o_cost", "o1_gram", "o2_gram"):
		if data.get(field) is not None and float(data[field]) < 0:
			raise ValueError(f"{field} must be non-negative")


def validate_user_data(data: Dict[str, Any]):
	"""Validate user data."""
	if not isinstance(data, dict):
		raise ValueError("User data must be an object")
	if not str(data.get("username") or "").strip():
		raise ValueError("Username is required")
	if data.get("role") not in config.ROLES:
		raise ValueError(f"Role must be one of: {', '.join(config.ROLES)}")
