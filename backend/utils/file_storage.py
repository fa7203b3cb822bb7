# backend/utils/file_storage.py
import io
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Optional

import boto3
from PIL import Image

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (500, 500)


def _object_key(prefix: str, file_name: str) -> str:
    # Keep only the final path component of client-supplied names
    safe_name = PurePosixPath(file_name.replace("\\", "/")).name or "file"
    return f"{prefix}/{uuid.uuid4()}-{safe_name}"


def render_thumbnail(data: bytes) -> bytes:
    """Downscale an image to fit a 500x500 box and encode it as JPEG."""
    with Image.open(io.BytesIO(data)) as image:
        image = image.convert("RGB")
        image.thumbnail(THUMBNAIL_SIZE)
        out = io.BytesIO()
        image.save(out, format="JPEG", quality=85)
    return out.getvalue()


class FileService(ABC):
    """Object storage used for product photos, thumbnails and digital assets."""

    @abstractmethod
    def upload_file(self, file_name: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store a file and return its public URL."""

    @abstractmethod
    def create_thumbnail(self, file_name: str, data: bytes) -> str:
        """Store a JPEG thumbnail of an image and return its public URL."""

    @abstractmethod
    def delete_file(self, url: str) -> None:
        """Remove a previously stored file."""


class LocalFileService(FileService):
    """Stores files on disk; the app serves ``root`` under ``/media``."""

    def __init__(self, root: Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _write(self, key: str, data: bytes) -> str:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as buffer:
            buffer.write(data)
        return f"{self.public_base_url}/media/{key}"

    def upload_file(self, file_name: str, data: bytes, content_type: Optional[str] = None) -> str:
        return self._write(_object_key("uploads", file_name), data)

    def create_thumbnail(self, file_name: str, data: bytes) -> str:
        stem = PurePosixPath(file_name).stem or "thumbnail"
        return self._write(_object_key("thumbnails", f"{stem}.jpg"), render_thumbnail(data))

    def delete_file(self, url: str) -> None:
        marker = "/media/"
        if marker not in url:
            logger.warning("Refusing to delete %s: not a local upload URL", url)
            return
        key = url.split(marker, 1)[1]
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            logger.warning("Refusing to delete %s: outside upload directory", url)
            return
        path.unlink(missing_ok=True)


class S3FileService(FileService):
    def __init__(self, bucket: str, client=None, region: Optional[str] = None):
        self.bucket = bucket
        self.client = client or boto3.client("s3", region_name=region)

    def _url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def upload_file(self, file_name: str, data: bytes, content_type: Optional[str] = None) -> str:
        key = _object_key("uploads", file_name)
        self.client.put_object(
            Bucket=self.bucket, Key=key, Body=data,
            ContentType=content_type or "application/octet-stream",
        )
        return self._url(key)

    def create_thumbnail(self, file_name: str, data: bytes) -> str:
        stem = PurePosixPath(file_name).stem or "thumbnail"
        key = _object_key("thumbnails", f"{stem}.jpg")
        self.client.put_object(
            Bucket=self.bucket, Key=key, Body=render_thumbnail(data), ContentType="image/jpeg",
        )
        return self._url(key)

    def delete_file(self, url: str) -> None:
        key = url.split(".amazonaws.com/", 1)[-1]
        self.client.delete_object(Bucket=self.bucket, Key=key)
