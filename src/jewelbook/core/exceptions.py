"""
Domain errors raised by the service layer and mapped to HTTP codes by the routers.
"""

from typing import Optional


class RecordNotFoundError(LookupError):
    """Requested row does not exist or was deleted."""


class RateNotFoundError(ValueError):
    """No daily rate is available for the material/karat needed by a calculation."""

    def __init__(self, material: str, karat: str, asof_date: str):
        self.material = material
        self.karat = karat
        self.asof_date = asof_date
        super().__init__(f"No {material} {karat} rate found on or before {asof_date}")


class DuplicateEntryError(ValueError):
    """An equivalent entry was already recorded."""

    def __init__(self, message: str, inserted_by: Optional[str] = None, existing_id: Optional[int] = None):
        self.inserted_by = inserted_by
        self.existing_id = existing_id
        super().__init__(message)
