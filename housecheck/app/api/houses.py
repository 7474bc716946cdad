# House endpoints
from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...paths import inspection_prefix
from ...schemas import House as HouseOut, HouseCreate, HouseUpdate, HouseWithCount
from ..auth import get_current_user
from ..database import get_db
from ..models import House, Inspection, User
from ..storage import StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()

def get_owned_house(db: Session, user: User, house_id: str) -> House:
    """Load a house the caller owns; anything else is reported as missing."""
    house = db.query(House).filter(House.id == house_id, House.user_id == user.id).first()
    if not house:
        raise HTTPException(status_code=404, detail="House not found")
    return house

@router.get("", response_model=List[HouseWithCount])
def list_houses(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Houses for the caller, newest first, with their inspection counts."""
    counts = (
        db.query(Inspection.house_id, func.count(Inspection.id).label("n"))
        .group_by(Inspection.house_id)
        .subquery()
    )
    rows = (
        db.query(House, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.house_id == House.id)
        .filter(House.user_id == current_user.id)
        .order_by(House.created_at.desc())
        .all()
    )
    return [
        HouseWithCount(**HouseOut.model_validate(house).model_dump(), inspection_count=n)
        for house, n in rows
    ]

@router.get("/{house_id}", response_model=HouseOut)
def get_house(house_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_owned_house(db, current_user, house_id)

@router.post("", response_model=HouseOut, status_code=status.HTTP_201_CREATED)
def create_house(payload: HouseCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    house = House(user_id=current_user.id, name=payload.name, address=payload.address)
    db.add(house)
    db.commit()
    db.refresh(house)
    logger.info(f"Created house {house.id} for user {current_user.id}")
    return house

@router.patch("/{house_id}", response_model=HouseOut)
def update_house(
    house_id: str,
    payload: HouseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    house = get_owned_house(db, current_user, house_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name", "") is None:
        raise HTTPException(status_code=422, detail="House name is required")
    for field, value in changes.items():
        setattr(house, field, value)
    db.commit()
    db.refresh(house)
    return house

@router.delete("/{house_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_house(
    house_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    house = get_owned_house(db, current_user, house_id)
    inspection_ids = [i.id for i in house.inspections]
    db.delete(house)  # inspections go with it (ORM cascade)
    db.commit()

    removed = 0
    try:
        for inspection_id in inspection_ids:
            removed += storage.delete_prefix(inspection_prefix(inspection_id))
    except StorageError as e:
        logger.warning(f"Images for house {house_id} were not fully removed: {e}")
    logger.info(f"Deleted house {house_id} with {len(inspection_ids)} inspections and {removed} images")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
