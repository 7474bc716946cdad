# Pydantic schemas shared by the service and the portal client
from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime

# ---------- Base ----------

class ORMModel(BaseModel):
    """Base with orm_mode for SQLAlchemy compatibility."""
    model_config = {"from_attributes": True}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# ---------- Identity ----------

class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)

class Identity(ORMModel):
    id: str
    email: str

class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Identity


# ---------- Houses ----------

class House(ORMModel):
    id: str
    user_id: str
    name: str
    address: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class HouseWithCount(House):
    """A persisted house plus the view-only inspection count."""
    inspection_count: int = 0

class HouseCreate(BaseModel):
    name: str
    address: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("address")
    @classmethod
    def check_address(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

class HouseUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _required_text(v)

    @field_validator("address")
    @classmethod
    def check_address(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


# ---------- Inspections ----------

class Inspection(ORMModel):
    id: str
    house_id: str
    user_id: str
    title: str
    notes: Optional[str] = None
    inspection_date: datetime
    created_at: datetime
    updated_at: datetime

class InspectionWithCount(Inspection):
    """A persisted inspection plus the view-only image count."""
    image_count: int = 0

class InspectionCreate(BaseModel):
    title: str
    notes: Optional[str] = None
    inspection_date: datetime

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("notes")
    @classmethod
    def check_notes(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

class InspectionUpdate(BaseModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    inspection_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _required_text(v)

    @field_validator("notes")
    @classmethod
    def check_notes(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


# ---------- Storage ----------

class StoredObject(BaseModel):
    path: str

class PublicUrl(BaseModel):
    url: str

class UploadedImage(BaseModel):
    id: str
    url: str
    path: str
    created_at: Optional[datetime] = None

class ImageList(BaseModel):
    items: List[UploadedImage] = Field(default_factory=list)
