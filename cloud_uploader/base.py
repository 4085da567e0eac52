"""
Base uploader interface for cloud-uploader package.

This module defines the generic records exchanged with callers and the
abstract base class that every backend uploader must implement.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, BinaryIO, Dict, Any, List, Tuple, Union
import logging

FILE_TYPE_FILE = "file"
FILE_TYPE_DIR = "dir"


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Raised when connection to storage backend fails."""
    pass


class StorageOperationError(StorageError):
    """Raised when a storage operation fails."""
    pass


class StorageNotFoundError(StorageError):
    """Raised when a requested object or bucket doesn't exist."""
    pass


class StoragePermissionError(StorageError):
    """Raised when operation is not permitted due to permissions."""
    pass


@dataclass
class Bucket:
    """A named storage container as reported by the provider."""
    name: str
    driver: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BucketObject:
    """
    One listing entry: a real object or a synthetic directory.

    Directory records (common prefixes) carry no size, timestamp or
    extension.
    """
    id: str
    path: str
    file_type: str = FILE_TYPE_FILE
    last_modified: Optional[datetime] = None
    size: Optional[int] = None
    file_ext: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_dir(self) -> bool:
        return self.file_type == FILE_TYPE_DIR


@dataclass
class BucketTreeObject(BucketObject):
    """A listing entry with its expanded children."""
    children: List["BucketTreeObject"] = field(default_factory=list)


@dataclass
class PresignedUrl:
    """Represents a presigned URL for temporary access."""
    url: str
    expires_at: datetime
    method: str = "GET"


@dataclass
class DeleteResult:
    """Outcome of a best-effort delete over many objects."""
    deleted: int = 0
    failed: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def record_failure(self, key: str, message: str) -> None:
        self.failed += 1
        self.errors.append((key, message))

    def merge(self, other: "DeleteResult") -> None:
        self.deleted += other.deleted
        self.failed += other.failed
        self.errors.extend(other.errors)


class BaseUploader(ABC):
    """
    Abstract base class for uploaders.

    Concrete uploaders translate these generic operations into calls
    against one provider's SDK, bound to a single bucket. Operations on a
    single object raise a StorageError subclass on failure. Operations that
    walk paginated listings log errors and return what was gathered.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        credentials: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize uploader.

        Args:
            config: Backend-specific configuration (bucket name, region, etc.)
            credentials: Authentication credentials (access keys, tokens, etc.)
            logger: Logger to report through; defaults to the module logger.

        Note:
            Credentials should never be logged or stored in plain text.
        """
        self.config = config
        self.credentials = credentials or {}
        self.logger = logger or logging.getLogger(type(self).__module__)
        self._validate_config()

    @abstractmethod
    def _validate_config(self) -> None:
        """
        Validate that required configuration parameters are present.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        pass

    @abstractmethod
    def name(self) -> str:
        """Name of the bound bucket."""
        pass

    @abstractmethod
    def driver(self) -> str:
        """Fixed identifier of the backend."""
        pass

    @abstractmethod
    def test_connection(self) -> bool:
        """
        Test connection to the bound bucket.

        Returns:
            True if connection successful.

        Raises:
            StorageConnectionError: If connection fails.
        """
        pass

    @abstractmethod
    def list_buckets(self) -> List[Bucket]:
        """
        List buckets visible to the credentials.

        Returns:
            List of Bucket records, empty if the provider call fails.
        """
        pass

    @abstractmethod
    def get(self, key: str, options: Any = None) -> bytes:
        """
        Read an object fully into memory.

        Raises:
            StorageNotFoundError: If object doesn't exist.
            StorageOperationError: If download fails.
        """
        pass

    @abstractmethod
    def get_to_file(self, key: str, local_path: Union[str, Path], options: Any = None) -> None:
        """Stream an object to a local path."""
        pass

    @abstractmethod
    def put(self, key: str, data: Union[BinaryIO, bytes], options: Any = None) -> None:
        """
        Upload object content.

        Args:
            key: Destination key in the bucket.
            data: Binary file-like object or bytes.
            options: Backend-specific upload options.

        Raises:
            StorageOperationError: If upload fails.
        """
        pass

    def put_string(self, key: str, content: str, options: Any = None) -> None:
        """Upload a text payload (e.g. base64 encoded content) as UTF-8."""
        self.put(key, content.encode("utf-8"), options)

    @abstractmethod
    def put_from_file(self, key: str, local_path: Union[str, Path], options: Any = None) -> None:
        """Upload the content of a local file."""
        pass

    @abstractmethod
    def list_objects(
        self,
        prefix: str = "",
        cursor: str = "",
        limit: int = 1000,
        exclude_files: bool = False,
    ) -> Tuple[List[BucketObject], str]:
        """
        List one level of the key hierarchy under a prefix.

        Args:
            prefix: Filter results to keys starting with this prefix.
            cursor: Marker returned by a previous call, "" to start over.
            limit: Maximum number of records to return.
            exclude_files: Only return directory records.

        Returns:
            Records and the cursor to resume from ("" when exhausted).
        """
        pass

    @abstractmethod
    def count(self, prefix: str, files_only: bool = False) -> int:
        """Count objects (and, unless files_only, sub-directories) under prefix."""
        pass

    @abstractmethod
    def delete(self, key: str, options: Any = None) -> None:
        """
        Delete one object.

        Raises:
            StorageOperationError: If deletion fails.
        """
        pass

    @abstractmethod
    def delete_all(self, prefix: str) -> DeleteResult:
        """Best-effort recursive delete of everything under prefix."""
        pass

    @abstractmethod
    def delete_multiple(self, records: List[BucketObject]) -> DeleteResult:
        """Delete file records in one batch and directory records recursively."""
        pass

    @abstractmethod
    def exists(self, key: str, *version_ids: str) -> bool:
        """Check whether an object (or each of the given versions) exists."""
        pass

    @abstractmethod
    def copy(self, dest: str, source: str, options: Any = None) -> None:
        """Server-side copy of source to dest within the bound bucket."""
        pass

    def move(self, dest: str, source: str, options: Any = None) -> None:
        """
        Copy source to dest, then delete source.

        If the copy fails its error propagates and source is untouched. A
        failure to delete source after a successful copy is logged only.
        """
        self.copy(dest, source, options)
        try:
            self.delete(source)
        except StorageError as e:
            self.logger.warning(
                f"[{self.driver()},{self.name()}] moved {source} to {dest} "
                f"but could not delete source: {e}"
            )

    def rename(self, dest: str, source: str, options: Any = None) -> None:
        """Alias of move."""
        self.move(dest, source, options)

    @abstractmethod
    def tree(
        self,
        prefix: str = "",
        cursor: str = "",
        limit: int = 1000,
        depth: int = 0,
        max_depth: int = 1,
        exclude_leaves: bool = False,
        count_children: bool = False,
    ) -> List[BucketTreeObject]:
        """Expand the key hierarchy under prefix down to max_depth."""
        pass

    @abstractmethod
    def append(
        self,
        key: str,
        position: int,
        data: Union[BinaryIO, bytes],
        options: Any = None,
    ) -> int:
        """
        Append data to an appendable object at a byte offset.

        Returns:
            The offset to use for the next append.
        """
        pass

    def append_string(self, key: str, position: int, content: str, options: Any = None) -> int:
        """Append a text payload encoded as UTF-8."""
        return self.append(key, position, content.encode("utf-8"), options)

    @abstractmethod
    def stat(self, key: str) -> BucketObject:
        """
        Metadata of a single object as a file record.

        Raises:
            StorageNotFoundError: If object doesn't exist.
        """
        pass

    @abstractmethod
    def generate_presigned_url(
        self,
        key: str,
        expiration: int = 3600,
        method: str = "GET"
    ) -> PresignedUrl:
        """
        Generate a presigned URL for temporary access.

        Args:
            key: Object key
            expiration: URL expiration time in seconds
            method: HTTP method (GET, PUT, etc.)
        """
        pass

    def get_public_url(self, key: str) -> Optional[str]:
        """
        Get public URL for an object (if supported by backend).

        Returns:
            Public URL string or None if not publicly accessible.
        """
        return None

    def __repr__(self) -> str:
        """String representation without exposing credentials."""
        backend_type = self.__class__.__name__
        config_keys = list(self.config.keys())
        return f"<{backend_type} config_keys={config_keys}>"
