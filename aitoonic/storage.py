"""Storage backends for the catalog's collection documents.

Each collection is kept as a single JSON document (``tools.json``,
``agents.json``, ``categories.json``) either in a MinIO bucket or in a local
directory for development.
"""

from __future__ import annotations

import json
import logging
import os
from io import BytesIO
from pathlib import Path
from typing import Any
from typing import Dict
from typing import Optional

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from aitoonic.errors import FetchError

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT: Dict[str, Any] = {"items": [], "last_updated": ""}


def _empty_document() -> Dict[str, Any]:
    return json.loads(json.dumps(EMPTY_DOCUMENT))


def _backend_name() -> str:
    return os.getenv("AITOONIC_STORAGE_BACKEND", "minio").lower()


def use_local_storage() -> bool:
    return _backend_name() == "local"


def local_data_dir() -> Path:
    base = Path(os.getenv("AITOONIC_LOCAL_DATA_DIR", "dev_cache"))
    base.mkdir(parents=True, exist_ok=True)
    return base


def _decode(raw: bytes, key: str) -> Dict[str, Any]:
    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise FetchError(f"{key} is not valid JSON: {e}") from e
    if not isinstance(payload, dict) or not isinstance(payload.get("items", []), list):
        raise FetchError(f"{key} is not a collection document")
    payload.setdefault("items", [])
    if not all(isinstance(item, dict) for item in payload["items"]):
        raise FetchError(f"{key} holds items that are not objects")
    return payload


class LocalBackend:
    """Collection documents stored as JSON files in a directory."""

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir else local_data_dir()

    def _path(self, key: str) -> Path:
        return self.data_dir / key

    def read_document(self, key: str) -> Dict[str, Any]:
        path = self._path(key)
        if not path.exists():
            return _empty_document()
        try:
            raw = path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise FetchError(f"Failed to read {key}: {e}") from e
        return _decode(raw, key)

    def write_document(self, key: str, payload: Dict[str, Any]) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2))
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise FetchError(f"Failed to write {key}: {e}") from e
        logger.info(f"Saved {len(payload.get('items', []))} items to {path}")


class MinioBackend:
    """Collection documents stored as objects in a MinIO bucket."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket_name: str,
        secure: bool = True,
    ) -> None:
        self.bucket_name = bucket_name
        self.client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
        )
        self._bucket_checked = False

    @classmethod
    def from_env(cls) -> "MinioBackend":
        return cls(
            endpoint=os.environ["MINIO_ENDPOINT"],
            access_key=os.environ["MINIO_ACCESS_KEY"],
            secret_key=os.environ["MINIO_SECRET_KEY"],
            bucket_name=os.environ["MINIO_BUCKET_NAME"],
            secure=os.getenv("MINIO_SECURE", "true").lower() != "false",
        )

    def _ensure_bucket(self) -> None:
        """Ensure the bucket exists, create if it doesn't."""
        if self._bucket_checked:
            return
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created bucket: {self.bucket_name}")
        except (S3Error, HTTPError) as e:
            logger.error(f"Failed to ensure bucket exists: {e}")
            raise FetchError(f"Bucket {self.bucket_name} unavailable: {e}") from e
        self._bucket_checked = True

    def read_document(self, key: str) -> Dict[str, Any]:
        self._ensure_bucket()
        response = None
        try:
            response = self.client.get_object(self.bucket_name, key)
            raw = response.read()
        except S3Error as e:
            if e.code == "NoSuchKey":
                logger.info(f"No {key} found, treating as empty collection")
                return _empty_document()
            logger.error(f"Failed to get {key}: {e}")
            raise FetchError(f"Failed to get {key}: {e}") from e
        except HTTPError as e:
            logger.error(f"MinIO unreachable while reading {key}: {e}")
            raise FetchError(f"MinIO unreachable: {e}") from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()
        return _decode(raw, key)

    def write_document(self, key: str, payload: Dict[str, Any]) -> None:
        self._ensure_bucket()
        data = BytesIO(json.dumps(payload, indent=2).encode())
        try:
            self.client.put_object(
                self.bucket_name,
                key,
                data,
                length=data.getbuffer().nbytes,
                content_type="application/json",
            )
        except S3Error as e:
            logger.error(f"Failed to update {key}: {e}")
            raise FetchError(f"Failed to update {key}: {e}") from e
        except HTTPError as e:
            logger.error(f"MinIO unreachable while writing {key}: {e}")
            raise FetchError(f"MinIO unreachable: {e}") from e
        logger.info(f"Successfully saved {len(payload.get('items', []))} items to {key}")


def backend_from_env():
    """Build the backend selected by AITOONIC_STORAGE_BACKEND."""
    if use_local_storage():
        return LocalBackend()
    return MinioBackend.from_env()
