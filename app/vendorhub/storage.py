from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO


class StorageError(RuntimeError):
    pass


class ObjectNotFound(StorageError):
    pass


def _clean_key(key: str) -> str:
    safe_key = key.lstrip("/").replace("\\", "/")
    parts = [p for p in safe_key.split("/") if p not in ("", ".")]
    if not parts or any(p == ".." for p in parts):
        raise ObjectNotFound(key)
    return "/".join(parts)


class Storage:
    def put_bytes(self, bucket: str, key: str, data: bytes, *, content_type: str | None = None) -> None:
        raise NotImplementedError

    def open(self, bucket: str, key: str) -> BinaryIO:
        """Raises ObjectNotFound when the object does not exist."""
        raise NotImplementedError

    def exists(self, bucket: str, key: str) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path

    def _path(self, bucket: str, key: str) -> Path:
        return self.root / _clean_key(bucket) / _clean_key(key)

    def put_bytes(self, bucket: str, key: str, data: bytes, *, content_type: str | None = None) -> None:
        p = self._path(bucket, key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)

    def open(self, bucket: str, key: str) -> BinaryIO:
        p = self._path(bucket, key)
        if not p.is_file():
            raise ObjectNotFound(f"{bucket}/{key}")
        return p.open("rb")

    def exists(self, bucket: str, key: str) -> bool:
        try:
            return self._path(bucket, key).is_file()
        except ObjectNotFound:
            return False


@dataclass(frozen=True)
class S3Storage(Storage):
    endpoint: str
    region: str
    access_key_id: str
    secret_access_key: str

    def _client(self):
        try:
            import boto3  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise StorageError("boto3 required for S3 storage. Install boto3.") from e
        endpoint = self.endpoint
        if endpoint and not endpoint.startswith(("http://", "https://")):
            endpoint = f"https://{endpoint}"
        return boto3.client(
            "s3",
            endpoint_url=endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
        )

    def put_bytes(self, bucket: str, key: str, data: bytes, *, content_type: str | None = None) -> None:
        extra: dict[str, object] = {}
        if content_type:
            extra["ContentType"] = content_type
        self._client().put_object(Bucket=bucket, Key=_clean_key(key), Body=data, **extra)

    def open(self, bucket: str, key: str) -> BinaryIO:
        from botocore.exceptions import ClientError

        try:
            obj = self._client().get_object(Bucket=bucket, Key=_clean_key(key))
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            if code in ("NoSuchKey", "NoSuchBucket", "404"):
                raise ObjectNotFound(f"{bucket}/{key}") from e
            raise StorageError(f"S3 get_object failed for {bucket}/{key}: {code}") from e
        return obj["Body"]  # type: ignore[return-value]

    def exists(self, bucket: str, key: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self._client().head_object(Bucket=bucket, Key=_clean_key(key))
            return True
        except (ClientError, ObjectNotFound):
            return False


def storage_from_config(config: dict) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "local").strip().lower()
    if backend == "s3":
        return S3Storage(
            endpoint=(config.get("S3_ENDPOINT") or "").strip(),
            region=(config.get("S3_REGION") or "us-east-1").strip(),
            access_key_id=(config.get("S3_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(config.get("S3_SECRET_ACCESS_KEY") or "").strip(),
        )
    # default local
    root = (config.get("LOCAL_STORAGE_ROOT") or "").strip()
    return LocalStorage(root=Path(root) if root else Path(os.getcwd()) / "storage")


def get_storage() -> Storage:
    from flask import current_app

    storage = current_app.extensions.get("storage")
    if storage is None:
        storage = storage_from_config(current_app.config)
        current_app.extensions["storage"] = storage
    return storage
