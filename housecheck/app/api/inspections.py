# Inspection endpoints
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...paths import inspection_prefix
from ...schemas import Inspection as InspectionOut, InspectionCreate, InspectionUpdate, InspectionWithCount
from ..auth import get_current_user
from ..database import get_db
from ..models import Inspection, User
from ..storage import StorageError, get_storage
from .houses import get_owned_house

logger = logging.getLogger(__name__)

# Mounted twice: nested under /api/houses and standalone under /api/inspections
house_router = APIRouter()
router = APIRouter()

def _as_utc_naive(value: datetime) -> datetime:
    """Columns hold naive UTC timestamps."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def get_owned_inspection(db: Session, user: User, inspection_id: str, house_id: Optional[str] = None) -> Inspection:
    query = db.query(Inspection).filter(Inspection.id == inspection_id, Inspection.user_id == user.id)
    if house_id is not None:
        query = query.filter(Inspection.house_id == house_id)
    inspection = query.first()
    if not inspection:
        raise HTTPException(status_code=404, detail="Inspection not found")
    return inspection

# ---------- Nested under a house ----------

@house_router.get("/{house_id}/inspections", response_model=List[InspectionWithCount])
def list_inspections(
    house_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    """Inspections of one house, most recent inspection date first, with image counts."""
    get_owned_house(db, current_user, house_id)
    rows = (
        db.query(Inspection)
        .filter(Inspection.house_id == house_id, Inspection.user_id == current_user.id)
        .order_by(Inspection.inspection_date.desc())
        .all()
    )
    return [
        InspectionWithCount(
            **InspectionOut.model_validate(row).model_dump(),
            image_count=len(storage.list_objects(inspection_prefix(row.id))),
        )
        for row in rows
    ]

@house_router.post(
    "/{house_id}/inspections",
    response_model=InspectionOut,
    status_code=status.HTTP_201_CREATED,
)
def create_inspection(
    house_id: str,
    payload: InspectionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    house = get_owned_house(db, current_user, house_id)
    inspection = Inspection(
        house_id=house.id,
        user_id=house.user_id,
        title=payload.title,
        notes=payload.notes,
        inspection_date=_as_utc_naive(payload.inspection_date),
    )
    db.add(inspection)
    db.commit()
    db.refresh(inspection)
    logger.info(f"Created inspection {inspection.id} for house {house.id}")
    return inspection

# ---------- By id ----------

@router.get("/{inspection_id}", response_model=InspectionOut)
def get_inspection(
    inspection_id: str,
    house_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_owned_inspection(db, current_user, inspection_id, house_id)

@router.patch("/{inspection_id}", response_model=InspectionOut)
def update_inspection(
    inspection_id: str,
    payload: InspectionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    inspection = get_owned_inspection(db, current_user, inspection_id)
    changes = payload.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is None:
        raise HTTPException(status_code=422, detail="Inspection title is required")
    if "inspection_date" in changes:
        if changes["inspection_date"] is None:
            raise HTTPException(status_code=422, detail="Inspection date is required")
        changes["inspection_date"] = _as_utc_naive(changes["inspection_date"])
    for field, value in changes.items():
        setattr(inspection, field, value)
    db.commit()
    db.refresh(inspection)
    return inspection

@router.delete("/{inspection_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inspection(
    inspection_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    inspection = get_owned_inspection(db, current_user, inspection_id)
    db.delete(inspection)
    db.commit()
    try:
        storage.delete_prefix(inspection_prefix(inspection_id))
    except StorageError as e:
        logger.warning(f"Images for inspection {inspection_id} were not fully removed: {e}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
