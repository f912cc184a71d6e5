"""
Object storage client for coaching media.

Exercise demo videos, recipe photos and progress photos live in public
buckets on Supabase Storage. Supabase exposes an S3-compatible endpoint,
so we talk to it with boto3 and build public URLs ourselves:
    {public_base}/{bucket}/{path}

Mock mode stores objects in memory, enabling API testing without
provisioning buckets.
"""

import logging
import mimetypes
import re
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


class InvalidMediaPathError(StorageError):
    """Raised when a path doesn't belong to the object it's used with."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    Using a dataclass instead of raw parameters means:
    - Configuration is explicit and documented
    - Simple to create test configurations
    """
    access_key_id: str
    secret_access_key: str
    endpoint_url: str
    public_base_url: str
    region: str = "us-east-1"


# ---------------------------------------------------------------------------
# Path layout
# ---------------------------------------------------------------------------

_EXTENSION_RE = re.compile(r"^[a-z0-9]{1,8}$")


def file_extension(filename: str, default: str) -> str:
    """Lower-cased extension of `filename`, or `default` if it isn't a plain token."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return ext if _EXTENSION_RE.match(ext) else default


def guess_content_type(filename: str, fallback: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or fallback


def exercise_video_path(exercise_id: str, filename: str) -> str:
    return f"exercises/{exercise_id}/{uuid.uuid4()}.{file_extension(filename, 'mp4')}"


def recipe_image_path(recipe_id: str, filename: str) -> str:
    return f"recipes/{recipe_id}/{uuid.uuid4()}.{file_extension(filename, 'png')}"


def recipe_album_prefix(recipe_id: str) -> str:
    return f"recipes/{recipe_id}/album/"


def recipe_album_path(recipe_id: str, filename: str) -> str:
    return f"{recipe_album_prefix(recipe_id)}{uuid.uuid4()}.{file_extension(filename, 'png')}"


def progress_photo_path(trainee_id: str, filename: str) -> str:
    return f"progress/{trainee_id}/{uuid.uuid4()}.{file_extension(filename, 'jpg')}"


def ensure_album_path(recipe_id: str, path: str) -> None:
    """Refuse to touch objects outside this recipe's album."""
    if not path.startswith(recipe_album_prefix(recipe_id)) or ".." in path:
        raise InvalidMediaPathError("Invalid image path for recipe")


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Upload an object and return its path."""
        ...

    def public_url(self, bucket: str, path: str) -> str:
        """Public URL of an object in a public bucket."""
        ...

    async def list_paths(self, bucket: str, prefix: str) -> list[str]:
        """Paths of objects under a prefix."""
        ...

    async def delete(self, bucket: str, paths: list[str]) -> int:
        """Delete objects. Returns count deleted."""
        ...


class S3StorageClient:
    """
    Supabase Storage client over its S3-compatible API.

    All methods are async to match the Protocol even though boto3 is
    synchronous. This keeps the interface consistent with truly async
    storage clients.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize the S3 client with boto3.

        We import boto3 here (not at module level) because mock mode
        doesn't need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for object storage. Install with: pip install boto3"
            )

        self._config = config

        # Supabase's S3 endpoint needs v4 signatures and path-style addressing
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={"endpoint": config.endpoint_url}
        )

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        try:
            self._s3_client.put_object(
                Bucket=bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"bucket": bucket, "path": path, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

        logger.debug(
            "Uploaded object",
            extra={"bucket": bucket, "path": path, "size_bytes": len(data)}
        )
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._config.public_base_url.rstrip('/')}/{bucket}/{path}"

    async def list_paths(self, bucket: str, prefix: str) -> list[str]:
        try:
            response = self._s3_client.list_objects_v2(Bucket=bucket, Prefix=prefix)
        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"bucket": bucket, "prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"List failed: {e}")

        return [
            obj["Key"] for obj in response.get("Contents", [])
            if not obj["Key"].endswith("/")
        ]

    async def delete(self, bucket: str, paths: list[str]) -> int:
        if not paths:
            return 0
        try:
            self._s3_client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": path} for path in paths]},
            )
        except Exception as e:
            logger.error(
                "Failed to delete objects",
                extra={"bucket": bucket, "count": len(paths), "error": str(e)}
            )
            raise StorageError(f"Delete failed: {e}")

        logger.info("Deleted objects", extra={"bucket": bucket, "count": len(paths)})
        return len(paths)


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects are stored in a dict keyed by (bucket, path) and URLs are
    mock URIs. Not suitable for production, but perfect for development
    and testing.
    """

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str], bytes] = {}
        logger.info("Initialized mock storage client (in-memory)")

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        self._objects[(bucket, path)] = data
        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": bucket, "path": path, "size_bytes": len(data)}
        )
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return f"mock://storage/{bucket}/{path}"

    async def list_paths(self, bucket: str, prefix: str) -> list[str]:
        return [
            path for (b, path) in self._objects
            if b == bucket and path.startswith(prefix)
        ]

    async def delete(self, bucket: str, paths: list[str]) -> int:
        deleted = 0
        for path in paths:
            if self._objects.pop((bucket, path), None) is not None:
                deleted += 1
        return deleted

    def get(self, bucket: str, path: str) -> Optional[bytes]:
        """Read back an object (for test assertions)."""
        return self._objects.get((bucket, path))


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
