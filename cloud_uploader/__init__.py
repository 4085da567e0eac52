"""
Cloud Uploader - one uploader interface over multiple cloud storage backends.

Every uploader is bound to a single bucket and exposes the same operations:
get/put, paginated listing, counting, recursive delete, copy/move, tree
expansion and append uploads. Available backends:
- Tencent Cloud COS

Usage:
    >>> from cloud_uploader import get_uploader
    >>>
    >>> config = {'bucket_name': 'examplebucket-1250000000', 'region': 'ap-guangzhou'}
    >>> credentials = {'secret_id': 'xxx', 'secret_key': 'yyy'}
    >>>
    >>> uploader = get_uploader('cos', config, credentials)
    >>> uploader.put_string('notes/hello.txt', 'hello')
    >>> records, cursor = uploader.list_objects('notes/', limit=100)
"""

__version__ = '0.1.0'
__license__ = 'MIT'

from .base import (
    FILE_TYPE_FILE,
    FILE_TYPE_DIR,
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
    StoragePermissionError,
)

from .factory import (
    get_uploader,
    register_uploader,
    list_available_drivers,
    get_uploader_info,
    UploaderFactoryError,
)

from .adapters.cos import (
    CosUploader,
    CosGetOptions,
    CosPutOptions,
    CosDeleteOptions,
    CosCopyOptions,
)

__all__ = [
    # Version
    '__version__',

    # Records and base class
    'FILE_TYPE_FILE',
    'FILE_TYPE_DIR',
    'BaseUploader',
    'Bucket',
    'BucketObject',
    'BucketTreeObject',
    'DeleteResult',
    'PresignedUrl',

    # Exceptions
    'StorageError',
    'StorageConnectionError',
    'StorageOperationError',
    'StorageNotFoundError',
    'StoragePermissionError',
    'UploaderFactoryError',

    # Factory functions
    'get_uploader',
    'register_uploader',
    'list_available_drivers',
    'get_uploader_info',

    # Uploaders
    'CosUploader',
    'CosGetOptions',
    'CosPutOptions',
    'CosDeleteOptions',
    'CosCopyOptions',
]
