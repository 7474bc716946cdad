# Object storage services
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import ClientError

from ..config import settings
from ..paths import content_type_for

logger = logging.getLogger(__name__)

class StorageError(RuntimeError):
    pass


class ObjectExistsError(StorageError):
    pass


@dataclass
class ObjectInfo:
    key: str
    url: str
    last_modified: Optional[datetime] = None

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1]


class S3StorageService:
    """
    Thin wrapper around an S3-compatible client (AWS S3, Cloudflare R2, Backblaze B2, MinIO).
    """

    def __init__(self, access_key: str, secret_key: str, bucket_name: str,
                 endpoint_url: Optional[str] = None, region: Optional[str] = None):
        self.bucket = bucket_name
        self.s3 = boto3.client(
            "s3",
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            endpoint_url=endpoint_url or None,
            region_name=region,
        )

    def exists(self, key: str) -> bool:
        try:
            self.s3.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to stat s3://{self.bucket}/{key}: {e}")

    def upload_bytes(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        if self.exists(key):
            raise ObjectExistsError(key)
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl='max-age=31536000',
            )
        except ClientError as e:
            raise StorageError(f"Failed to upload s3://{self.bucket}/{key}: {e}")
        logger.info(f"Uploaded {key} ({len(data)} bytes)")
        return key

    def get_public_url(self, key: str) -> str:
        """
        Returns a URL that works for public buckets or S3-compatible endpoints.
        """
        endpoint = self.s3.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{quote(key)}"

    def list_objects(self, prefix: str) -> List[ObjectInfo]:
        items: List[ObjectInfo] = []
        try:
            paginator = self.s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    items.append(ObjectInfo(
                        key=obj["Key"],
                        url=self.get_public_url(obj["Key"]),
                        last_modified=obj.get("LastModified"),
                    ))
        except ClientError as e:
            raise StorageError(f"Failed to list s3://{self.bucket}/{prefix}: {e}")
        return items

    def delete_object(self, key: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise StorageError(f"Failed to delete s3://{self.bucket}/{key}: {e}")
        logger.info(f"Deleted {key}")

    def delete_prefix(self, prefix: str) -> int:
        """Delete every object under prefix; returns the number removed."""
        objects = [{'Key': info.key} for info in self.list_objects(prefix)]
        if not objects:
            return 0
        try:
            for start in range(0, len(objects), 1000):
                self.s3.delete_objects(Bucket=self.bucket, Delete={'Objects': objects[start:start + 1000]})
        except ClientError as e:
            raise StorageError(f"Failed to delete s3://{self.bucket}/{prefix}: {e}")
        logger.info(f"Deleted {len(objects)} files under {prefix}")
        return len(objects)


class LocalStorageService:
    """
    Keeps objects in a directory on disk. Objects are served back by the
    /api/storage/{bucket}/public/{path} route.
    """

    def __init__(self, root: str | Path, bucket_name: str, public_base_url: str):
        self.bucket = bucket_name
        self.root = (Path(root).expanduser() / bucket_name).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def path_for(self, key: str) -> Path:
        """Resolve key under the bucket root, refusing anything that escapes it."""
        candidate = (self.root / key).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError:
            raise StorageError(f"Invalid key: {key}")
        return candidate

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def upload_bytes(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        target = self.path_for(key)
        if target.exists():
            raise ObjectExistsError(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info(f"Stored {key} ({len(data)} bytes)")
        return key

    def get_public_url(self, key: str) -> str:
        return f"{self.public_base_url}/api/storage/{self.bucket}/public/{quote(key)}"

    def list_objects(self, prefix: str) -> List[ObjectInfo]:
        base = self.path_for(prefix) if prefix else self.root
        if not base.is_dir():
            return []
        items = []
        for f in sorted(base.rglob("*")):
            if not f.is_file():
                continue
            key = f.relative_to(self.root).as_posix()
            items.append(ObjectInfo(
                key=key,
                url=self.get_public_url(key),
                last_modified=datetime.utcfromtimestamp(f.stat().st_mtime),
            ))
        return items

    def delete_object(self, key: str) -> None:
        target = self.path_for(key)
        if target.is_file():
            target.unlink()
            logger.info(f"Deleted {key}")

    def delete_prefix(self, prefix: str) -> int:
        removed = 0
        for info in self.list_objects(prefix):
            self.delete_object(info.key)
            removed += 1
        return removed


_storage = None

def get_storage():
    """Get or create the storage service configured by settings."""
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND == "s3":
            _storage = S3StorageService(
                settings.S3_ACCESS_KEY,
                settings.S3_SECRET_KEY,
                settings.IMAGE_BUCKET,
                settings.S3_ENDPOINT_URL,
                settings.AWS_REGION,
            )
        else:
            _storage = LocalStorageService(
                settings.LOCAL_STORAGE_DIR,
                settings.IMAGE_BUCKET,
                settings.PUBLIC_BASE_URL,
            )
        logger.info(f"Storage backend '{settings.STORAGE_BACKEND}' using bucket {settings.IMAGE_BUCKET}")
    return _storage
