"""Object storage for analysis photos.

Two backends share one interface:
- LocalObjectStore: files under STORAGE_DIR, HMAC-signed ``local://`` URLs
- S3ObjectStore: boto3 uploads and presigned GET URLs

Photos are private. The only way to read one back is through a signed URL
that expires after ``ttl_seconds``.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import mimetypes
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urlparse

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError

from config import (
    FETCH_TIMEOUT_SECONDS,
    S3_BUCKET_PREFIX,
    STORAGE_BACKEND,
    STORAGE_DIR,
    STORAGE_SIGNING_SECRET,
)

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    pass


class SignedUrlError(StorageError):
    pass


def split_object_url(object_url: str) -> Tuple[str, str, str]:
    """``scheme://bucket/key`` -> (scheme, bucket, key)."""
    parsed = urlparse(object_url)
    key = parsed.path.lstrip("/")
    if not parsed.scheme or not parsed.netloc or not key:
        raise StorageError(f"Not an object URL: {object_url}")
    return parsed.scheme, parsed.netloc, key


class ObjectStore:
    scheme = ""

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        raise NotImplementedError

    def create_signed_url(self, bucket: str, key: str, ttl_seconds: int) -> Optional[str]:
        raise NotImplementedError

    def fetch(self, url: str) -> Tuple[bytes, str]:
        raise NotImplementedError

    def object_url(self, bucket: str, key: str) -> str:
        return f"{self.scheme}://{bucket}/{key}"

    def sign_object_url(self, object_url: str, ttl_seconds: int) -> Optional[str]:
        _, bucket, key = split_object_url(object_url)
        return self.create_signed_url(bucket, key, ttl_seconds)


class LocalObjectStore(ObjectStore):
    scheme = "local"

    def __init__(self, root: Path = STORAGE_DIR, secret: str = STORAGE_SIGNING_SECRET, clock=time.time) -> None:
        self.root = Path(root)
        self._secret = secret.encode("utf-8")
        self._clock = clock

    def _path(self, bucket: str, key: str) -> Path:
        path = (self.root / bucket / key).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    def _signature(self, bucket: str, key: str, expires: int) -> str:
        msg = f"{bucket}/{key}:{expires}".encode("utf-8")
        return hmac.new(self._secret, msg, hashlib.sha256).hexdigest()

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        path = self._path(bucket, key)
        if path.exists():
            raise StorageError(f"Object already exists: {bucket}/{key}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Could not write {bucket}/{key}: {exc}") from exc

    def create_signed_url(self, bucket: str, key: str, ttl_seconds: int) -> Optional[str]:
        if not self._path(bucket, key).exists():
            logger.warning("Cannot sign missing object %s/%s", bucket, key)
            return None
        expires = int(self._clock()) + int(ttl_seconds)
        query = urlencode({"expires": expires, "signature": self._signature(bucket, key, expires)})
        return f"{self.object_url(bucket, key)}?{query}"

    def fetch(self, url: str) -> Tuple[bytes, str]:
        parsed = urlparse(url)
        if parsed.scheme != self.scheme:
            raise SignedUrlError(f"Unsupported URL scheme: {parsed.scheme}")
        bucket, key = parsed.netloc, parsed.path.lstrip("/")
        params = parse_qs(parsed.query)
        try:
            expires = int(params["expires"][0])
            signature = params["signature"][0]
        except (KeyError, IndexError, ValueError) as exc:
            raise SignedUrlError("Signed URL is missing its signature.") from exc

        if not hmac.compare_digest(signature, self._signature(bucket, key, expires)):
            raise SignedUrlError("Signed URL signature mismatch.")
        if self._clock() > expires:
            raise SignedUrlError("Signed URL has expired.")

        path = self._path(bucket, key)
        if not path.exists():
            raise StorageError(f"Object not found: {bucket}/{key}")
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return path.read_bytes(), content_type


def _build_s3_client():
    """Create an S3 client using environment credentials."""
    region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
    kwargs: Dict[str, Any] = {
        "service_name": "s3",
        "region_name": region,
    }
    if os.environ.get("AWS_ENDPOINT_URL"):
        kwargs["endpoint_url"] = os.environ["AWS_ENDPOINT_URL"]
    if os.environ.get("AWS_ACCESS_KEY_ID") and os.environ.get("AWS_SECRET_ACCESS_KEY"):
        kwargs.update(
            aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY"),
        )
    return boto3.client(**kwargs)


class S3ObjectStore(ObjectStore):
    scheme = "s3"

    def __init__(self, client=None, bucket_prefix: str = S3_BUCKET_PREFIX) -> None:
        self._client = client or _build_s3_client()
        self.bucket_prefix = bucket_prefix

    def _bucket(self, bucket: str) -> str:
        return f"{self.bucket_prefix}{bucket}"

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket(bucket),
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Could not upload {bucket}/{key}: {exc}") from exc

    def create_signed_url(self, bucket: str, key: str, ttl_seconds: int) -> Optional[str]:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket(bucket), "Key": key},
                ExpiresIn=int(ttl_seconds),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Could not presign %s/%s: %s", bucket, key, exc)
            return None

    def fetch(self, url: str) -> Tuple[bytes, str]:
        try:
            r = requests.get(url, timeout=FETCH_TIMEOUT_SECONDS)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise StorageError(f"Could not fetch signed URL: {exc}") from exc
        return r.content, r.headers.get("Content-Type", "")


def build_object_store(backend: str = STORAGE_BACKEND) -> ObjectStore:
    backend = (backend or "local").strip().lower()
    if backend == "s3":
        return S3ObjectStore()
    if backend == "local":
        return LocalObjectStore()
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")
