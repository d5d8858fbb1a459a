"""
Object storage adapter for snapshot blobs and media objects.

Wraps an S3-compatible bucket through the MinIO client. Snapshots and
media may live in different buckets; every call takes an optional bucket
and defaults to the versions bucket.
"""
import io
import json
from typing import Any, Iterator, Optional

from flask import current_app
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from ebook_service.domain.exceptions import DependencyUnavailable

_STORAGE_ERRORS = (S3Error, HTTPError, OSError)


class StorageError(Exception):
    """An object-storage call failed. `code` is the S3 error code when known."""

    def __init__(self, message: str, *, key: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.code = code


def _wrap(exc: Exception, key: str) -> StorageError:
    if isinstance(exc, S3Error):
        return StorageError(f"{exc.code}: {exc.message}", key=key, code=exc.code)
    code = "Timeout" if "timeout" in str(exc).lower() or "timed out" in str(exc).lower() else None
    return StorageError(str(exc) or type(exc).__name__, key=key, code=code)


class ObjectStorage:
    def __init__(self, client: Optional[Minio], *, versions_bucket: Optional[str], media_bucket: Optional[str] = None):
        self.client = client
        self.versions_bucket = versions_bucket
        self.media_bucket = media_bucket or versions_bucket

    @property
    def enabled(self) -> bool:
        return self.client is not None and bool(self.versions_bucket)

    def _bucket(self, bucket: Optional[str]) -> str:
        if not self.enabled:
            raise StorageError("object storage not configured")
        return bucket or self.versions_bucket

    def put_json(self, key: str, obj: Any, *, bucket: Optional[str] = None) -> str:
        data = json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        target = self._bucket(bucket)
        try:
            self.client.put_object(
                target,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type="application/json",
            )
        except _STORAGE_ERRORS as exc:
            raise _wrap(exc, key) from exc
        return f"s3://{target}/{key}"

    def get_json(self, key: str, *, bucket: Optional[str] = None) -> Any:
        target = self._bucket(bucket)
        response = None
        try:
            response = self.client.get_object(target, key)
            raw = response.read()
        except _STORAGE_ERRORS as exc:
            raise _wrap(exc, key) from exc
        finally:
            if response is not None:
                response.close()
                response.release_conn()
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"blob is not valid JSON: {exc}", key=key) from exc

    def delete(self, key: str, *, bucket: Optional[str] = None) -> None:
        target = self._bucket(bucket)
        try:
            self.client.remove_object(target, key)
        except _STORAGE_ERRORS as exc:
            raise _wrap(exc, key) from exc

    def exists(self, key: str, *, bucket: Optional[str] = None) -> bool:
        target = self._bucket(bucket)
        try:
            self.client.stat_object(target, key)
        except S3Error as exc:
            if exc.code in ("NoSuchKey", "NotFound", "NoSuchObject"):
                return False
            raise _wrap(exc, key) from exc
        except (HTTPError, OSError) as exc:
            raise _wrap(exc, key) from exc
        return True

    def list_keys(self, prefix: str, *, bucket: Optional[str] = None) -> Iterator[str]:
        target = self._bucket(bucket)
        try:
            for obj in self.client.list_objects(target, prefix=prefix, recursive=True):
                if not obj.is_dir:
                    yield obj.object_name
        except _STORAGE_ERRORS as exc:
            raise _wrap(exc, prefix) from exc


def build_storage(config) -> ObjectStorage:
    endpoint = config.get("STORAGE_ENDPOINT")
    access_key = config.get("STORAGE_ACCESS_KEY")
    secret_key = config.get("STORAGE_SECRET_KEY")
    bucket = config.get("EBOOK_VERSIONS_BUCKET")

    client = None
    if endpoint and access_key and secret_key and bucket:
        client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=config.get("STORAGE_USE_SSL", True),
            region=config.get("STORAGE_REGION"),
        )

    return ObjectStorage(
        client,
        versions_bucket=bucket,
        media_bucket=config.get("MEDIA_BUCKET"),
    )


def get_storage() -> ObjectStorage:
    """The app's storage adapter, built lazily from config and cached on the app."""
    storage = current_app.extensions.get("ebook_storage")
    if storage is None:
        storage = build_storage(current_app.config)
        current_app.extensions["ebook_storage"] = storage
    return storage


def require_storage(storage: Optional[ObjectStorage] = None) -> ObjectStorage:
    storage = storage or get_storage()
    if not storage.enabled:
        raise DependencyUnavailable("object storage not configured")
    return storage
