"""
Blob Store Module for the ProxyHost gateway

This module defines the storage interface the gateway reads from and the
backends that implement it.

BACKENDS:
- InMemoryBlobStore: dictionary-backed, for tests and local development
- FilesystemBlobStore: one file per key beneath a root directory
- R2BlobStore: Cloudflare R2 through its S3-compatible API (boto3)

KEYS:
Keys are opaque strings built by keys.resolve(); stores never interpret them
beyond mapping them onto their own namespace.

DIRECTORY STRUCTURE (filesystem backend):
site_files/
├── objects/sites/u1/0b6f.../index.html      object bytes
├── meta/sites/u1/0b6f.../index.html         {"content_type": ...}
└── tmp/                                     in-flight writes
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .models import StoredObject

logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS
# =============================================================================

class ObjectNotFound(KeyError):
    """Raised when no object exists at the requested key."""


class BackingStoreUnavailable(RuntimeError):
    """Raised when the backend could not be reached or failed mid-request."""


# =============================================================================
# INTERFACE
# =============================================================================

class BlobStore(ABC):
    """
    Abstract key -> bytes store with atomic put/get.

    Durability and consistency belong to the implementation.
    """

    name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> StoredObject:
        """
        Retrieve an object.

        Raises:
            ObjectNotFound: If the key holds no object
            BackingStoreUnavailable: If the backend failed
        """
        ...

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store an object, replacing anything already at the key."""
        ...


# =============================================================================
# IN-MEMORY BACKEND
# =============================================================================

class InMemoryBlobStore(BlobStore):
    """Dictionary-backed store. Each put replaces the whole entry."""

    name = "memory"

    def __init__(self) -> None:
        self._objects: Dict[str, Tuple[bytes, str]] = {}

    async def get(self, key: str) -> StoredObject:
        try:
            data, content_type = self._objects[key]
        except KeyError:
            raise ObjectNotFound(key) from None
        return StoredObject(data=data, content_type=content_type)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self._objects[key] = (bytes(data), content_type)

    def __len__(self) -> int:
        return len(self._objects)


# =============================================================================
# FILESYSTEM BACKEND
# =============================================================================

class FilesystemBlobStore(BlobStore):
    """
    Stores each key as a file beneath a root directory.

    Objects, their content-type sidecars and in-flight temp files live in
    three separate trees, so no key can address an internal file.

    Key segments map one-to-one onto path components. Keys with empty,
    '.' or '..' segments (including leading or trailing '/') have no
    file of their own: reads treat them as missing, writes reject them.
    """

    name = "filesystem"
    OBJECTS_DIR = "objects"
    META_DIR = "meta"
    TMP_DIR = "tmp"

    def __init__(self, root: str) -> None:
        self.root = Path(root).resolve()
        self.objects_root = self.root / self.OBJECTS_DIR
        self.meta_root = self.root / self.META_DIR
        self.tmp_root = self.root / self.TMP_DIR
        for directory in (self.objects_root, self.meta_root, self.tmp_root):
            directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _segments(key: str) -> Optional[List[str]]:
        segments = key.split("/")
        if any(s in ("", ".", "..") for s in segments):
            return None
        return segments

    def _paths_for(self, key: str) -> Optional[Tuple[Path, Path]]:
        segments = self._segments(key)
        if segments is None:
            return None
        return self.objects_root.joinpath(*segments), self.meta_root.joinpath(*segments)

    def _replace_atomically(self, path: Path, data: bytes) -> None:
        # Readers see either the old file or the new one, never a partial write
        fd, tmp_name = tempfile.mkstemp(dir=self.tmp_root)
        try:
            with os.fdopen(fd, "wb") as tmp_file:
                tmp_file.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _read(self, key: str) -> StoredObject:
        paths = self._paths_for(key)
        if paths is None:
            raise ObjectNotFound(key)
        path, meta_path = paths
        if not path.is_file():
            raise ObjectNotFound(key)

        try:
            data = path.read_bytes()
            content_type = None
            if meta_path.is_file():
                content_type = json.loads(meta_path.read_text(encoding="utf-8")).get("content_type")
        except FileNotFoundError:
            # deleted between the existence check and the read
            raise ObjectNotFound(key) from None
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise BackingStoreUnavailable(str(e)) from e

        return StoredObject(data=data, content_type=content_type)

    def _write(self, key: str, data: bytes, content_type: str) -> None:
        paths = self._paths_for(key)
        if paths is None:
            raise ValueError(f"Key has empty or dot segments: {key!r}")
        path, meta_path = paths

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            meta_path.parent.mkdir(parents=True, exist_ok=True)
            self._replace_atomically(path, data)
            meta = json.dumps({"content_type": content_type}).encode("utf-8")
            self._replace_atomically(meta_path, meta)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise BackingStoreUnavailable(str(e)) from e

    async def get(self, key: str) -> StoredObject:
        return await run_in_threadpool(self._read, key)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        await run_in_threadpool(self._write, key, data, content_type)


# =============================================================================
# CLOUDFLARE R2 BACKEND
# =============================================================================

class R2BlobStore(BlobStore):
    """
    Client for Cloudflare R2 (S3-compatible) storage.

    Credentials are read from environment variables at construction time:
        PROXYHOST_R2_ACCESS_KEY_ID
        PROXYHOST_R2_SECRET_ACCESS_KEY

    Attributes:
        bucket: R2 bucket name
        endpoint_url: R2 endpoint URL
        region: R2 region (typically "auto")
    """

    name = "r2"
    MISSING_CODES = {"NoSuchKey", "404", "NotFound"}

    def __init__(self, bucket: str, endpoint_url: str, region: str = "auto", client=None):
        """
        Initialize the R2 client.

        Args:
            bucket: R2 bucket name
            endpoint_url: R2 endpoint URL
            region: R2 region
            client: Pre-built S3 client (skips credential lookup)

        Raises:
            ValueError: If either credential environment variable is unset
        """
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region

        if client is not None:
            self._client = client
            return

        access_key = os.environ.get("PROXYHOST_R2_ACCESS_KEY_ID")
        secret_key = os.environ.get("PROXYHOST_R2_SECRET_ACCESS_KEY")

        if not access_key or not secret_key:
            raise ValueError(
                "R2 credentials not set. "
                "Set PROXYHOST_R2_ACCESS_KEY_ID and PROXYHOST_R2_SECRET_ACCESS_KEY environment variables."
            )

        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def _get(self, key: str) -> StoredObject:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in self.MISSING_CODES:
                raise ObjectNotFound(key) from None
            logger.error(f"R2 get failed for {key}: {code}")
            raise BackingStoreUnavailable(code or "R2 error") from e
        except BotoCoreError as e:
            logger.error(f"R2 unreachable for {key}: {e}")
            raise BackingStoreUnavailable(str(e)) from e

        return StoredObject(data=data, content_type=response.get("ContentType"))

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"R2 put failed for {key}: {e}")
            raise BackingStoreUnavailable(str(e)) from e

    async def get(self, key: str) -> StoredObject:
        return await run_in_threadpool(self._get, key)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        await run_in_threadpool(self._put, key, data, content_type)


# =============================================================================
# FACTORY
# =============================================================================

def create_blob_store(settings: Settings) -> BlobStore:
    """
    Build the blob store selected by PROXYHOST_STORAGE_BACKEND.

    Raises:
        ValueError: Unknown backend or incomplete R2 settings
    """
    backend = settings.storage_backend

    if backend == "memory":
        return InMemoryBlobStore()

    if backend == "filesystem":
        logger.info(f"Using filesystem blob store at {settings.storage_root}")
        return FilesystemBlobStore(settings.storage_root)

    if backend == "r2":
        if not settings.r2_bucket or not settings.r2_endpoint:
            raise ValueError("R2 backend needs PROXYHOST_R2_BUCKET and PROXYHOST_R2_ENDPOINT")
        logger.info(f"Using R2 bucket {settings.r2_bucket}")
        return R2BlobStore(settings.r2_bucket, settings.r2_endpoint, settings.r2_region)

    raise ValueError(f"Unknown storage backend: {backend}")
