from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session
from starlette.responses import FileResponse

from ...config import settings
from ...paths import IMG_EXTS, content_type_for, parse_image_path, parse_inspection_prefix
from ...schemas import ImageList, PublicUrl, StoredObject, UploadedImage
from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..storage import LocalStorageService, ObjectExistsError, StorageError, get_storage
from .inspections import get_owned_inspection

logger = logging.getLogger(__name__)

router = APIRouter()

def _check_bucket(storage, bucket: str) -> None:
    if bucket != storage.bucket:
        raise HTTPException(status_code=404, detail="Bucket not found")

def _authorize_path(db: Session, user: User, path: str) -> str:
    """
    Object keys double as the image -> inspection relation, so the key itself
    decides who may touch it. Returns the file name part of the key.
    """
    parsed = parse_image_path(path)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Invalid path")
    inspection_id, name = parsed
    get_owned_inspection(db, user, inspection_id)
    return name

def _storage_failure(e: StorageError) -> HTTPException:
    logger.error(f"Storage error: {e}")
    return HTTPException(status_code=502, detail="Storage backend error")

@router.post("/{bucket}/object/{path:path}", response_model=StoredObject)
async def upload_object(
    bucket: str,
    path: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    _check_bucket(storage, bucket)
    name = _authorize_path(db, current_user, path)
    if Path(name).suffix.lower() not in IMG_EXTS:
        raise HTTPException(status_code=415, detail="Unsupported image type")

    data = await file.read()
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        storage.upload_bytes(data, path, content_type=content_type_for(name))
    except ObjectExistsError:
        raise HTTPException(status_code=409, detail="Object already exists")
    except StorageError as e:
        raise _storage_failure(e)
    return StoredObject(path=path)

@router.get("/{bucket}/public-url/{path:path}", response_model=PublicUrl)
def public_url(bucket: str, path: str, storage=Depends(get_storage)):
    _check_bucket(storage, bucket)
    return PublicUrl(url=storage.get_public_url(path))

@router.get("/{bucket}/list", response_model=ImageList)
def list_objects(
    bucket: str,
    prefix: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    """List the images stored under one inspection's prefix."""
    _check_bucket(storage, bucket)
    inspection_id = parse_inspection_prefix(prefix)
    if inspection_id is None:
        raise HTTPException(status_code=400, detail="Invalid prefix")
    get_owned_inspection(db, current_user, inspection_id)
    try:
        objects = storage.list_objects(prefix)
    except StorageError as e:
        raise _storage_failure(e)
    items = [
        UploadedImage(id=obj.name, url=obj.url, path=obj.key, created_at=obj.last_modified)
        for obj in objects
    ]
    return ImageList(items=items)

@router.delete("/{bucket}/object/{path:path}", status_code=status.HTTP_204_NO_CONTENT)
def delete_object(
    bucket: str,
    path: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    _check_bucket(storage, bucket)
    _authorize_path(db, current_user, path)
    try:
        storage.delete_object(path)
    except StorageError as e:
        raise _storage_failure(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/{bucket}/public/{path:path}")
def serve_object(bucket: str, path: str, storage=Depends(get_storage)):
    """
    Serves an object kept by the local storage backend.
    """
    _check_bucket(storage, bucket)
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=404, detail="Not served here")
    try:
        file_path = storage.path_for(path)
    except StorageError:
        raise HTTPException(status_code=400, detail="Invalid path")
    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="Image not found")

    # Let Starlette guess the media type from the file extension
    return FileResponse(str(file_path))
