"""
Tencent Cloud COS uploader implementation.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Optional, BinaryIO, Dict, Any, List, Tuple, Union
import logging
import posixpath

try:
    from qcloud_cos import CosConfig, CosS3Client
    from qcloud_cos.cos_exception import CosException, CosClientError, CosServiceError
except ImportError:
    raise ImportError(
        "cos-python-sdk-v5 is required for COS uploader. "
        "Install with: pip install cos-python-sdk-v5"
    )

from ..base import (
    FILE_TYPE_DIR,
    FILE_TYPE_FILE,
    BaseUploader,
    Bucket,
    BucketObject,
    BucketTreeObject,
    DeleteResult,
    PresignedUrl,
    StorageError,
    StorageConnectionError,
    StorageOperationError,
    StorageNotFoundError,
    StoragePermissionError
)

logger = logging.getLogger(__name__)

COS_DOMAIN = "myqcloud.com"
DELIMITER = "/"
# Upper bound COS accepts for MaxKeys and for keys per batch delete.
MAX_KEYS = 1000


def _compact(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


@dataclass
class CosGetOptions:
    """Optional parameters for reading an object."""
    range: Optional[str] = None
    version_id: Optional[str] = None
    if_modified_since: Optional[str] = None
    response_content_type: Optional[str] = None
    response_content_disposition: Optional[str] = None
    traffic_limit: Optional[int] = None

    def to_kwargs(self) -> Dict[str, Any]:
        return _compact({
            'Range': self.range,
            'VersionId': self.version_id,
            'IfModifiedSince': self.if_modified_since,
            'ResponseContentType': self.response_content_type,
            'ResponseContentDisposition': self.response_content_disposition,
            'TrafficLimit': str(self.traffic_limit) if self.traffic_limit else None,
        })


@dataclass
class CosPutOptions:
    """
    Optional parameters for uploads and appends.

    Metadata keys are sent as ``x-cos-meta-<key>`` headers.
    """
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None
    cache_control: Optional[str] = None
    acl: Optional[str] = None
    storage_class: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    traffic_limit: Optional[int] = None
    enable_md5: bool = False

    def to_kwargs(self) -> Dict[str, Any]:
        metadata = {
            k if k.lower().startswith('x-cos-meta-') else f"x-cos-meta-{k}": v
            for k, v in self.metadata.items()
        }
        return _compact({
            'ContentType': self.content_type,
            'ContentDisposition': self.content_disposition,
            'CacheControl': self.cache_control,
            'ACL': self.acl,
            'StorageClass': self.storage_class,
            'Metadata': metadata or None,
            'TrafficLimit': str(self.traffic_limit) if self.traffic_limit else None,
            'EnableMD5': self.enable_md5 or None,
        })


@dataclass
class CosDeleteOptions:
    """Optional parameters for deleting an object."""
    version_id: Optional[str] = None

    def to_kwargs(self) -> Dict[str, Any]:
        return _compact({'VersionId': self.version_id})


@dataclass
class CosCopyOptions:
    """Optional parameters for server-side copies."""
    metadata_directive: str = "Copy"
    storage_class: Optional[str] = None
    acl: Optional[str] = None

    def to_kwargs(self) -> Dict[str, Any]:
        if self.metadata_directive not in ("Copy", "Replaced"):
            raise ValueError(
                f"metadata_directive must be 'Copy' or 'Replaced', got {self.metadata_directive!r}"
            )
        return _compact({
            'CopyStatus': self.metadata_directive,
            'StorageClass': self.storage_class,
            'ACL': self.acl,
        })


def _as_list(value: Any) -> List[Any]:
    # Single-element XML collections may come back as a bare dict.
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    return list(value)


def _parse_listing_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"Unparseable COS LastModified value: {value!r}")
        return None


def _basename(key: str) -> str:
    return posixpath.basename(key.rstrip('/'))


class CosUploader(BaseUploader):
    """
    Tencent Cloud COS uploader bound to one bucket.

    Configuration required:
        - bucket_name: COS bucket name including the APPID suffix
        - region: COS region (e.g. ap-guangzhou)
        - scheme: http or https (optional, defaults to https)
        - timeout: Request timeout in seconds (optional, defaults to 60)
        - endpoint: Custom endpoint (optional)

    Credentials required:
        - secret_id: Tencent Cloud SecretId
        - secret_key: Tencent Cloud SecretKey
        - token: Session token (optional, for temporary credentials)
    """

    def __init__(
        self,
        config: Dict[str, Any],
        credentials: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize COS uploader."""
        super().__init__(config, credentials, logger)
        self._client = None
        self._initialize_client()

    def _validate_config(self) -> None:
        """Validate COS configuration."""
        missing = [f for f in ('bucket_name', 'region') if not self.config.get(f)]
        if missing:
            raise ValueError(f"COS uploader requires: {', '.join(missing)}")

        missing = [f for f in ('secret_id', 'secret_key') if not self.credentials.get(f)]
        if missing:
            raise ValueError(f"COS uploader requires credentials: {', '.join(missing)}")

    def _initialize_client(self) -> None:
        """Initialize qcloud_cos client."""
        try:
            cos_config = CosConfig(
                Region=self.region,
                SecretId=self.credentials['secret_id'],
                SecretKey=self.credentials['secret_key'],
                Token=self.credentials.get('token'),
                Scheme=self.config.get('scheme', 'https'),
                Timeout=self.config.get('timeout', 60),
                Endpoint=self.config.get('endpoint'),
            )
            self._client = CosS3Client(cos_config)

        except Exception as e:
            self.logger.error(f"Failed to initialize COS client: {e}")
            raise StorageConnectionError(f"COS client initialization failed: {e}") from e

    @property
    def bucket_name(self) -> str:
        return self.config['bucket_name']

    @property
    def region(self) -> str:
        return self.config['region']

    @property
    def bucket_url(self) -> str:
        scheme = self.config.get('scheme', 'https')
        return f"{scheme}://{self.bucket_name}.cos.{self.region}.{COS_DOMAIN}"

    @property
    def service_url(self) -> str:
        scheme = self.config.get('scheme', 'https')
        return f"{scheme}://cos.{self.region}.{COS_DOMAIN}"

    def name(self) -> str:
        return self.bucket_name

    def driver(self) -> str:
        return "cos"

    def _translate_error(self, e: CosException, action: str, key: str) -> StorageError:
        if isinstance(e, CosServiceError):
            status = e.get_status_code()
            try:
                code = e.get_error_code()
            except (KeyError, TypeError):
                # Unparseable error bodies leave no code behind.
                code = None
            if status == 404 or code in ('NoSuchKey', 'NoSuchBucket'):
                return StorageNotFoundError(f"Not found in COS while trying to {action}: {key}")
            if status == 403 or code == 'AccessDenied':
                return StoragePermissionError(f"Permission denied trying to {action} in COS: {key}")
        return StorageOperationError(f"COS {action} failed for {key}: {e}")

    def test_connection(self) -> bool:
        """Test COS connection by heading the bucket."""
        try:
            self._client.head_bucket(Bucket=self.bucket_name)
            self.logger.info(f"Successfully connected to COS bucket: {self.bucket_name}")
            return True

        except CosServiceError as e:
            status = e.get_status_code()
            if status == 404:
                raise StorageConnectionError(f"COS bucket '{self.bucket_name}' does not exist") from e
            if status == 403:
                raise StoragePermissionError(f"Access denied to COS bucket '{self.bucket_name}'") from e
            raise StorageConnectionError(f"COS connection failed: {e}") from e
        except CosClientError as e:
            raise StorageConnectionError(f"COS connection failed: {e}") from e

    def list_buckets(self) -> List[Bucket]:
        """List buckets owned by the credentials, empty on failure."""
        try:
            response = self._client.list_buckets()
        except CosException as e:
            self.logger.warning(f"[{self.driver()},{self.name()}] get remote bucket err = {e}")
            return []

        buckets = []
        for item in _as_list((response.get('Buckets') or {}).get('Bucket')):
            buckets.append(Bucket(
                name=item['Name'],
                driver=self.driver(),
                params=_compact({
                    'location': item.get('Location'),
                    'creation_date': item.get('CreationDate'),
                }),
            ))
        return buckets

    def get(self, key: str, options: Optional[CosGetOptions] = None) -> bytes:
        """Download object content from COS."""
        kwargs = options.to_kwargs() if options else {}
        try:
            response = self._client.get_object(Bucket=self.bucket_name, Key=key, **kwargs)
            stream = response['Body'].get_raw_stream()
            try:
                data = stream.read()
            finally:
                stream.close()
            self.logger.info(f"Downloaded COS object: cos://{self.bucket_name}/{key}")
            return data

        except CosException as e:
            raise self._translate_error(e, 'get', key) from e
        except Exception as e:
            raise StorageOperationError(f"COS get failed for {key}: {e}") from e

    def get_to_file(
        self,
        key: str,
        local_path: Union[str, Path],
        options: Optional[CosGetOptions] = None
    ) -> None:
        """Stream a COS object to a local file."""
        kwargs = options.to_kwargs() if options else {}
        try:
            response = self._client.get_object(Bucket=self.bucket_name, Key=key, **kwargs)
            response['Body'].get_stream_to_file(str(local_path))
            self.logger.info(f"Downloaded COS object to: {local_path}")

        except CosException as e:
            raise self._translate_error(e, 'get', key) from e
        except Exception as e:
            raise StorageOperationError(f"COS get failed for {key}: {e}") from e

    def put(
        self,
        key: str,
        data: Union[BinaryIO, bytes],
        options: Optional[CosPutOptions] = None
    ) -> None:
        """Upload object content to COS."""
        kwargs = options.to_kwargs() if options else {}
        try:
            self._client.put_object(Bucket=self.bucket_name, Body=data, Key=key, **kwargs)
            self.logger.info(f"Uploaded object to COS: cos://{self.bucket_name}/{key}")

        except CosException as e:
            raise self._translate_error(e, 'put', key) from e
        except Exception as e:
            raise StorageOperationError(f"COS put failed for {key}: {e}") from e

    def put_from_file(
        self,
        key: str,
        local_path: Union[str, Path],
        options: Optional[CosPutOptions] = None
    ) -> None:
        """Upload a local file to COS."""
        kwargs = options.to_kwargs() if options else {}
        try:
            self._client.put_object_from_local_file(
                Bucket=self.bucket_name,
                LocalFilePath=str(local_path),
                Key=key,
                **kwargs
            )
            self.logger.info(f"Uploaded {local_path} to COS: cos://{self.bucket_name}/{key}")

        except CosException as e:
            raise self._translate_error(e, 'put', key) from e
        except Exception as e:
            raise StorageOperationError(f"COS put failed for {key}: {e}") from e

    def _list_page(
        self,
        prefix: str,
        marker: str,
        max_keys: int,
        delimiter: str = DELIMITER
    ) -> Optional[Dict[str, Any]]:
        """Fetch one listing page, or None after logging a failure."""
        try:
            return self._client.list_objects(
                Bucket=self.bucket_name,
                Prefix=prefix,
                Delimiter=delimiter,
                Marker=marker,
                MaxKeys=max_keys,
            )
        except CosException as e:
            self.logger.warning(
                f"[{self.driver()},{self.name()}] list {prefix!r} from marker {marker!r} failed: {e}"
            )
            return None

    @staticmethod
    def _page_entries(page: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], List[str]]:
        contents = _as_list(page.get('Contents'))
        prefixes = [p['Prefix'] for p in _as_list(page.get('CommonPrefixes'))]
        return contents, prefixes

    @staticmethod
    def _is_truncated(page: Dict[str, Any]) -> bool:
        return str(page.get('IsTruncated', 'false')).lower() == 'true'

    def _next_marker(self, page: Dict[str, Any]) -> str:
        if not self._is_truncated(page):
            return ""
        marker = page.get('NextMarker')
        if marker:
            return marker
        # Without NextMarker, resume after the greatest key seen on the page.
        contents, prefixes = self._page_entries(page)
        keys = [c['Key'] for c in contents] + prefixes
        return max(keys) if keys else ""

    def _file_record(self, content: Dict[str, Any], record_cls: type = BucketObject) -> BucketObject:
        key = content['Key']
        return record_cls(
            id=key,
            path=key,
            file_type=FILE_TYPE_FILE,
            last_modified=_parse_listing_time(content.get('LastModified')),
            size=int(content.get('Size', 0)),
            file_ext=posixpath.splitext(key)[1],
            params={
                'owner': content.get('Owner'),
                'restore_status': content.get('RestoreStatus'),
                'version_id': content.get('VersionId'),
                'storage_tier': content.get('StorageTier'),
                'storage_class': content.get('StorageClass'),
                'part_number': content.get('PartNumber'),
                'etag': (content.get('ETag') or '').strip('"'),
                'filename': _basename(key),
            },
        )

    def list_objects(
        self,
        prefix: str = "",
        cursor: str = "",
        limit: int = 1000,
        exclude_files: bool = False,
    ) -> Tuple[List[BucketObject], str]:
        """
        List files and directories one level below prefix.

        Every request asks for no more entries than are still needed, so
        the limit is always met on a page boundary and the returned cursor
        resumes exactly after the last record. A listing failure ends the
        walk; the records gathered so far are returned together with the
        cursor of the request that failed.
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        records: List[BucketObject] = []
        marker = cursor
        while len(records) < limit:
            page = self._list_page(prefix, marker, min(limit - len(records), MAX_KEYS))
            if page is None:
                break

            contents, prefixes = self._page_entries(page)
            if not exclude_files:
                records.extend(self._file_record(c) for c in contents)
            for common_prefix in prefixes:
                records.append(BucketObject(
                    id=common_prefix,
                    path=common_prefix,
                    file_type=FILE_TYPE_DIR,
                    params={'filename': _basename(common_prefix)},
                ))

            marker = self._next_marker(page)
            if not marker:
                break

        self.logger.debug(f"Listed {len(records)} records from COS with prefix: {prefix}")
        return records, marker

    def count(self, prefix: str, files_only: bool = False) -> int:
        """Count objects below prefix, plus sub-directories unless files_only."""
        stripped = prefix.strip('/')
        normalized = f"{stripped}/" if stripped else ""

        total = 0
        marker = ""
        while True:
            page = self._list_page(normalized, marker, MAX_KEYS)
            if page is None:
                break

            contents, prefixes = self._page_entries(page)
            total += sum(1 for c in contents if c['Key'] != normalized)
            if not files_only:
                total += len(prefixes)

            marker = self._next_marker(page)
            if not marker:
                break

        return total

    def delete(self, key: str, options: Optional[CosDeleteOptions] = None) -> None:
        """Delete an object from COS."""
        kwargs = options.to_kwargs() if options else {}
        try:
            self._client.delete_object(Bucket=self.bucket_name, Key=key, **kwargs)
            self.logger.info(f"Deleted COS object: cos://{self.bucket_name}/{key}")

        except CosException as e:
            raise self._translate_error(e, 'delete', key) from e

    def delete_all(self, prefix: str) -> DeleteResult:
        """
        Delete every object below prefix, continuing past failures.

        A failed listing request ends the walk at that level and is counted
        as one failure keyed by the prefix.
        """
        result = DeleteResult()
        marker = ""
        while True:
            page = self._list_page(prefix, marker, MAX_KEYS, delimiter="")
            if page is None:
                result.record_failure(prefix, "listing failed")
                break

            contents, prefixes = self._page_entries(page)
            for content in contents:
                key = content['Key']
                try:
                    self._client.delete_object(Bucket=self.bucket_name, Key=key)
                    result.deleted += 1
                except CosException as e:
                    self.logger.warning(f"[{self.driver()},{self.name()}] delete {key} failed: {e}")
                    result.record_failure(key, str(e))
            for common_prefix in prefixes:
                result.merge(self.delete_all(common_prefix))

            marker = self._next_marker(page)
            if not marker:
                break

        self.logger.info(
            f"Deleted {result.deleted} COS objects under {prefix!r} ({result.failed} failures)"
        )
        return result

    def delete_multiple(self, records: List[BucketObject]) -> DeleteResult:
        """
        Delete directory records recursively and file records in batches.

        Failures inside directory recursion and per-key batch errors are
        only reported in the result. A failed batch request raises.
        """
        result = DeleteResult()
        keys = []
        for record in records:
            if record.file_type == FILE_TYPE_DIR:
                result.merge(self.delete_all(record.path))
            elif record.file_type == FILE_TYPE_FILE:
                keys.append(record.path)

        for start in range(0, len(keys), MAX_KEYS):
            batch = keys[start:start + MAX_KEYS]
            try:
                response = self._client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={
                        'Object': [{'Key': key} for key in batch],
                        'Quiet': 'false',
                    },
                )
            except CosException as e:
                raise self._translate_error(e, 'delete', ', '.join(batch)) from e

            result.deleted += len(_as_list(response.get('Deleted')))
            for error in _as_list(response.get('Error')):
                result.record_failure(error.get('Key', ''), error.get('Message', error.get('Code', '')))

        return result

    def exists(self, key: str, *version_ids: str) -> bool:
        """
        Check whether an object exists in COS.

        With version ids, every listed version must exist.
        """
        if not version_ids:
            try:
                return self._client.object_exists(Bucket=self.bucket_name, Key=key)
            except CosException as e:
                raise self._translate_error(e, 'check existence of', key) from e

        for version_id in version_ids:
            try:
                self._client.head_object(Bucket=self.bucket_name, Key=key, VersionId=version_id)
            except CosServiceError as e:
                if e.get_status_code() == 404:
                    return False
                raise self._translate_error(e, 'check existence of', key) from e
            except CosClientError as e:
                raise self._translate_error(e, 'check existence of', key) from e
        return True

    def copy(self, dest: str, source: str, options: Optional[CosCopyOptions] = None) -> None:
        """Copy an object within the bucket on the server side."""
        kwargs = options.to_kwargs() if options else {}
        copy_source = {
            'Bucket': self.bucket_name,
            'Key': source,
            'Region': self.region,
        }
        source_url = posixpath.join(f"{self.bucket_name}.cos.{self.region}.{COS_DOMAIN}", source)
        try:
            self._client.copy_object(
                Bucket=self.bucket_name,
                Key=dest,
                CopySource=copy_source,
                **kwargs
            )
            self.logger.info(f"Copied {source_url} to cos://{self.bucket_name}/{dest}")

        except CosException as e:
            raise self._translate_error(e, 'copy', source) from e

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
        """
        Expand the hierarchy below prefix, depth first.

        ``limit`` is the page size for each listing request. ``cursor``
        applies to this level only; sub-directories are listed from their
        start. Directories found at ``max_depth`` are returned without
        children.
        """
        if depth > max_depth:
            return []
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        records: List[BucketTreeObject] = []
        marker = cursor
        while True:
            page = self._list_page(prefix, marker, min(limit, MAX_KEYS))
            if page is None:
                break

            contents, prefixes = self._page_entries(page)
            if not exclude_leaves:
                for content in contents:
                    if content['Key'] == prefix:
                        continue
                    records.append(self._file_record(content, BucketTreeObject))

            for common_prefix in prefixes:
                count = self.count(common_prefix) if count_children else 0
                children = []
                if depth < max_depth:
                    children = self.tree(
                        common_prefix, "", limit, depth + 1, max_depth,
                        exclude_leaves, count_children,
                    )
                records.append(BucketTreeObject(
                    id=common_prefix,
                    path=common_prefix,
                    file_type=FILE_TYPE_DIR,
                    params={'count': count, 'filename': _basename(common_prefix)},
                    children=children,
                ))

            marker = self._next_marker(page)
            if not marker:
                break

        return records

    def append(
        self,
        key: str,
        position: int,
        data: Union[BinaryIO, bytes],
        options: Optional[CosPutOptions] = None,
    ) -> int:
        """Append to an appendable COS object and return the next position."""
        if position < 0:
            raise ValueError(f"position must not be negative, got {position}")

        kwargs = options.to_kwargs() if options else {}
        kwargs.pop('EnableMD5', None)
        try:
            response = self._client.append_object(
                Bucket=self.bucket_name,
                Key=key,
                Position=position,
                Data=data,
                **kwargs
            )
        except CosException as e:
            raise self._translate_error(e, 'append', key) from e

        next_position = int(response['x-cos-next-append-position'])
        self.logger.info(f"Appended to COS object cos://{self.bucket_name}/{key}, next position {next_position}")
        return next_position

    def stat(self, key: str) -> BucketObject:
        """Get object metadata from COS."""
        try:
            response = self._client.head_object(Bucket=self.bucket_name, Key=key)
        except CosException as e:
            raise self._translate_error(e, 'stat', key) from e

        last_modified = response.get('Last-Modified')
        return BucketObject(
            id=key,
            path=key,
            file_type=FILE_TYPE_FILE,
            last_modified=parsedate_to_datetime(last_modified) if last_modified else None,
            size=int(response.get('Content-Length', 0)),
            file_ext=posixpath.splitext(key)[1],
            params={
                'etag': (response.get('ETag') or '').strip('"'),
                'content_type': response.get('Content-Type'),
                'version_id': response.get('x-cos-version-id'),
                'storage_class': response.get('x-cos-storage-class'),
                'filename': _basename(key),
            },
        )

    def generate_presigned_url(
        self,
        key: str,
        expiration: int = 3600,
        method: str = "GET"
    ) -> PresignedUrl:
        """Generate presigned URL for COS object."""
        method = method.upper()
        if method not in ('GET', 'PUT', 'DELETE', 'HEAD'):
            raise ValueError(f"Unsupported HTTP method: {method}")

        try:
            url = self._client.get_presigned_url(
                Method=method,
                Bucket=self.bucket_name,
                Key=key,
                Expired=expiration,
            )
        except CosException as e:
            raise self._translate_error(e, 'presign', key) from e

        return PresignedUrl(
            url=url,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expiration),
            method=method,
        )

    def get_public_url(self, key: str) -> Optional[str]:
        """Get object URL on the bucket endpoint (readable if the object is public)."""
        return f"{self.bucket_url}/{key.lstrip('/')}"
