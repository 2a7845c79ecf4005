"""Media store for submission uploads.

A media store takes raw bytes plus a destination hint (folder + unique key)
and returns a stable public reference and the stored size. Two backends:
local disk for development and S3-compatible object storage.
"""

from __future__ import annotations

import os
import secrets
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import quote, unquote

from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings
from app.services.storage_client import get_s3_client, normalize_endpoint

MEDIA_ROOT_FOLDER = "ai-forms"
_KEY_ALPHABET = string.ascii_lowercase + string.digits


class MediaStoreError(Exception):
    """The backend could not store or delete an object."""

    pass


@dataclass(frozen=True)
class StoredMedia:
    """Result of a successful upload."""

    reference: str
    bytes: int
    storage_key: str


def submission_folder(form_id: object, field_name: str) -> str:
    """Folder that holds one field's uploads for a form."""
    return f"{MEDIA_ROOT_FOLDER}/{form_id}/{field_name}"


def generate_media_key() -> str:
    """Unique object key: epoch milliseconds plus a short random suffix."""
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}"


def _extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    ext = filename.rsplit(".", 1)[-1].lower()
    if not ext.isalnum():
        return ""
    return f".{ext}"


class MediaStore(ABC):
    """Abstract media backend."""

    @abstractmethod
    def upload(
        self,
        data: bytes,
        *,
        folder: str,
        key: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> StoredMedia:
        """Store bytes and return their reference. Raises MediaStoreError."""
        pass

    @abstractmethod
    def delete(self, reference: str) -> None:
        """Remove a previously stored object. Raises MediaStoreError."""
        pass


class LocalMediaStore(MediaStore):
    """Writes uploads under a directory served at `public_base_url`."""

    def __init__(self, root_path: str, public_base_url: str):
        self.root_path = root_path
        self.public_base_url = public_base_url.rstrip("/")

    def upload(
        self,
        data: bytes,
        *,
        folder: str,
        key: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> StoredMedia:
        storage_key = f"{folder.strip('/')}/{key}{_extension(filename)}"
        path = self._path_for(storage_key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as exc:
            raise MediaStoreError(f"Could not write {storage_key}: {exc}") from exc
        return StoredMedia(
            reference=f"{self.public_base_url}/{quote(storage_key)}",
            bytes=len(data),
            storage_key=storage_key,
        )

    def delete(self, reference: str) -> None:
        storage_key = self.storage_key_for(reference)
        if not storage_key:
            raise MediaStoreError(f"Not a local media reference: {reference}")
        path = self._path_for(storage_key)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as exc:
            raise MediaStoreError(f"Could not delete {storage_key}: {exc}") from exc

    def storage_key_for(self, reference: str) -> str | None:
        prefix = f"{self.public_base_url}/"
        if not reference.startswith(prefix):
            return None
        return unquote(reference[len(prefix):])

    def _path_for(self, storage_key: str) -> str:
        root = os.path.abspath(self.root_path)
        path = os.path.abspath(os.path.join(root, storage_key))
        if os.path.commonpath([root, path]) != root:
            raise MediaStoreError(f"Storage key escapes media root: {storage_key}")
        return path


class S3MediaStore(MediaStore):
    """Stores uploads in an S3 (or S3-compatible) bucket."""

    def __init__(self, client: BaseClient, bucket: str, public_base_url: str):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def upload(
        self,
        data: bytes,
        *,
        folder: str,
        key: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> StoredMedia:
        storage_key = f"{folder.strip('/')}/{key}{_extension(filename)}"
        params = {"Bucket": self.bucket, "Key": storage_key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            self.client.put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            raise MediaStoreError(f"S3 upload failed for {storage_key}: {exc}") from exc
        return StoredMedia(
            reference=f"{self.public_base_url}/{quote(storage_key)}",
            bytes=len(data),
            storage_key=storage_key,
        )

    def delete(self, reference: str) -> None:
        prefix = f"{self.public_base_url}/"
        if not reference.startswith(prefix):
            raise MediaStoreError(f"Not a reference to bucket {self.bucket}: {reference}")
        storage_key = unquote(reference[len(prefix):])
        try:
            self.client.delete_object(Bucket=self.bucket, Key=storage_key)
        except (BotoCoreError, ClientError) as exc:
            raise MediaStoreError(f"S3 delete failed for {storage_key}: {exc}") from exc


def _s3_public_base_url(settings: Settings) -> str:
    if settings.S3_PUBLIC_BASE_URL:
        return settings.S3_PUBLIC_BASE_URL
    endpoint = normalize_endpoint(settings.S3_ENDPOINT_URL)
    if endpoint:
        # Path style: <endpoint>/<bucket>/<key>
        return f"{endpoint}/{settings.S3_BUCKET}"
    # Virtual-hosted style: <bucket>.s3.<region>.amazonaws.com/<key>
    return f"https://{settings.S3_BUCKET}.s3.{settings.S3_REGION}.amazonaws.com"


def build_media_store(settings: Settings) -> MediaStore:
    """Return the media backend selected by STORAGE_BACKEND."""
    backend = (settings.STORAGE_BACKEND or "local").strip().lower()
    if backend == "s3":
        return S3MediaStore(
            client=get_s3_client(settings),
            bucket=settings.S3_BUCKET,
            public_base_url=_s3_public_base_url(settings),
        )
    if backend == "local":
        return LocalMediaStore(settings.LOCAL_STORAGE_PATH, settings.MEDIA_PUBLIC_BASE_URL)
    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
