"""
Factory for creating uploader instances.
"""
from typing import Dict, Any, Optional
import logging

from .base import BaseUploader
from .adapters.cos import CosUploader

logger = logging.getLogger(__name__)


# Registry of available uploaders, keyed by driver name
UPLOADER_REGISTRY = {
    'cos': CosUploader,
}


class UploaderFactoryError(Exception):
    """Raised when uploader creation fails."""
    pass


def get_uploader(
    driver: str,
    config: Dict[str, Any],
    credentials: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> BaseUploader:
    """
    Factory function to create uploader instances.

    Args:
        driver: Driver name (e.g. 'cos')
        config: Backend-specific configuration dictionary
        credentials: Optional credentials dictionary
        logger: Optional logger handed to the uploader

    Returns:
        Initialized uploader instance

    Raises:
        UploaderFactoryError: If driver is unknown or initialization fails

    Example:
        >>> config = {'bucket_name': 'examplebucket-1250000000', 'region': 'ap-guangzhou'}
        >>> credentials = {'secret_id': 'xxx', 'secret_key': 'yyy'}
        >>> uploader = get_uploader('cos', config, credentials)
        >>> uploader.driver()
        'cos'
    """
    driver = driver.lower().strip()

    if driver not in UPLOADER_REGISTRY:
        available = ', '.join(UPLOADER_REGISTRY.keys())
        raise UploaderFactoryError(
            f"Unknown uploader driver: '{driver}'. "
            f"Available drivers: {available}"
        )

    uploader_class = UPLOADER_REGISTRY[driver]
    # The logger argument shadows the module logger here.
    log = logging.getLogger(__name__)

    try:
        log.info(f"Creating {driver} uploader")
        return uploader_class(config=config, credentials=credentials, logger=logger)

    except Exception as e:
        log.error(f"Failed to create {driver} uploader: {e}")
        raise UploaderFactoryError(
            f"Failed to initialize {driver} uploader: {e}"
        ) from e


def register_uploader(driver: str, uploader_class: type) -> None:
    """
    Register a custom uploader.

    Raises:
        ValueError: If uploader_class doesn't inherit from BaseUploader
    """
    if not issubclass(uploader_class, BaseUploader):
        raise ValueError(
            f"Uploader class must inherit from BaseUploader, "
            f"got {uploader_class.__name__}"
        )

    driver = driver.lower().strip()
    UPLOADER_REGISTRY[driver] = uploader_class
    logger.info(f"Registered custom uploader: {driver}")


def list_available_drivers() -> list:
    """Get list of registered driver names."""
    return list(UPLOADER_REGISTRY.keys())


def get_uploader_info(driver: str) -> Dict[str, Any]:
    """
    Get information about a specific uploader.

    Raises:
        UploaderFactoryError: If driver is unknown
    """
    driver = driver.lower().strip()

    if driver not in UPLOADER_REGISTRY:
        raise UploaderFactoryError(f"Unknown uploader driver: '{driver}'")

    uploader_class = UPLOADER_REGISTRY[driver]

    return {
        'driver': driver,
        'class_name': uploader_class.__name__,
        'module': uploader_class.__module__,
        'docstring': uploader_class.__doc__,
    }
