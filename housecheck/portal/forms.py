"""
Create/edit form gates. Each returns a payload ready for the data access
client or raises FormValidationError before anything reaches the backend.
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional, Union

from pydantic import ValidationError

from ..schemas import (
    HouseCreate,
    HouseUpdate,
    Inspection,
    InspectionCreate,
    InspectionUpdate,
)
from .errors import FormValidationError

DateInput = Union[str, date, None]


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def date_to_timestamp(value: DateInput) -> datetime:
    """A date-only input (YYYY-MM-DD) becomes midnight UTC of that day."""
    if isinstance(value, datetime):
        value = value.date()
    elif isinstance(value, str):
        try:
            value = date.fromisoformat(value.strip())
        except ValueError:
            raise FormValidationError("Inspection date must be YYYY-MM-DD")
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def house_form(name: Optional[str], address: Optional[str] = None, mode: str = "create"):
    if not _clean(name):
        raise FormValidationError("House name is required")
    model = HouseCreate if mode == "create" else HouseUpdate
    try:
        return model(name=name, address=address)
    except ValidationError as e:
        raise FormValidationError(str(e))


def inspection_form(
    title: Optional[str],
    inspection_date: DateInput,
    notes: Optional[str] = None,
    mode: str = "create",
):
    if not _clean(title):
        raise FormValidationError("Inspection title is required")
    if inspection_date is None or (isinstance(inspection_date, str) and not inspection_date.strip()):
        raise FormValidationError("Inspection date is required")
    model = InspectionCreate if mode == "create" else InspectionUpdate
    try:
        return model(title=title, notes=notes, inspection_date=date_to_timestamp(inspection_date))
    except ValidationError as e:
        raise FormValidationError(str(e))


def inspection_defaults(inspection: Optional[Inspection] = None, today: Optional[date] = None) -> dict:
    """Values to pre-populate the inspection form with."""
    if inspection is not None:
        return {
            "title": inspection.title,
            "notes": inspection.notes or "",
            "inspection_date": inspection.inspection_date.date().isoformat(),
        }
    return {"title": "", "notes": "", "inspection_date": (today or date.today()).isoformat()}
