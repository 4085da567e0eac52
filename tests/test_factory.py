"""
Unit tests for uploader factory.
"""
import logging

import pytest
from cloud_uploader import (
    get_uploader,
    register_uploader,
    list_available_drivers,
    get_uploader_info,
    UploaderFactoryError,
    BaseUploader,
    CosUploader,
)
from cloud_uploader.factory import UPLOADER_REGISTRY


@pytest.fixture
def restore_registry():
    """Undo registrations made by a test."""
    saved = dict(UPLOADER_REGISTRY)
    yield
    UPLOADER_REGISTRY.clear()
    UPLOADER_REGISTRY.update(saved)


class TestGetUploader:
    """Test get_uploader factory function."""

    def test_create_cos_uploader(self, patched_sdk, cos_config, cos_credentials):
        """Test creating COS uploader."""
        uploader = get_uploader('cos', cos_config, cos_credentials)

        assert isinstance(uploader, CosUploader)
        assert uploader.driver() == 'cos'
        assert uploader.name() == cos_config['bucket_name']

    def test_case_and_whitespace_insensitive(self, patched_sdk, cos_config, cos_credentials):
        """Test that driver name is normalized."""
        for driver in ('COS', ' cos ', 'Cos'):
            assert isinstance(get_uploader(driver, cos_config, cos_credentials), CosUploader)

    def test_injected_logger(self, patched_sdk, cos_config, cos_credentials):
        """Test that a logger is handed to the uploader."""
        custom = logging.getLogger('app.storage')
        uploader = get_uploader('cos', cos_config, cos_credentials, logger=custom)
        assert uploader.logger is custom

    def test_unknown_driver(self):
        """Test that unknown driver raises error."""
        with pytest.raises(UploaderFactoryError) as exc_info:
            get_uploader('unknown', {})

        assert 'Unknown uploader driver' in str(exc_info.value)
        assert 'unknown' in str(exc_info.value)

    def test_invalid_config_raises_error(self, patched_sdk, cos_credentials):
        """Test that invalid config raises error."""
        with pytest.raises(UploaderFactoryError):
            # Missing required bucket_name and region
            get_uploader('cos', {}, cos_credentials)

    def test_missing_credentials_raises_error(self, patched_sdk, cos_config):
        """Test that missing credentials raise error."""
        with pytest.raises(UploaderFactoryError) as exc_info:
            get_uploader('cos', cos_config)

        assert 'secret_id' in str(exc_info.value)


class TestRegisterUploader:
    """Test register_uploader function."""

    def test_register_custom_uploader(self, restore_registry, patched_sdk, cos_config, cos_credentials):
        """Test registering a custom uploader."""
        class CustomCos(CosUploader):
            pass

        register_uploader('custom', CustomCos)

        uploader = get_uploader('custom', cos_config, cos_credentials)
        assert isinstance(uploader, CustomCos)
        assert 'custom' in list_available_drivers()

    def test_register_non_uploader_class(self):
        """Test that registering non-uploader class raises error."""
        class NotAnUploader:
            pass

        with pytest.raises(ValueError) as exc_info:
            register_uploader('invalid', NotAnUploader)

        assert 'must inherit from BaseUploader' in str(exc_info.value)

    def test_override_existing_uploader(self, restore_registry, patched_sdk, cos_config, cos_credentials):
        """Test that registering can override an existing driver."""
        class PatchedCos(CosUploader):
            pass

        register_uploader('COS', PatchedCos)

        assert isinstance(get_uploader('cos', cos_config, cos_credentials), PatchedCos)
        assert issubclass(UPLOADER_REGISTRY['cos'], BaseUploader)


class TestListAvailableDrivers:
    """Test list_available_drivers function."""

    def test_list_drivers(self):
        """Test listing available drivers."""
        drivers = list_available_drivers()

        assert isinstance(drivers, list)
        assert 'cos' in drivers


class TestGetUploaderInfo:
    """Test get_uploader_info function."""

    def test_get_cos_info(self):
        """Test getting COS uploader info."""
        info = get_uploader_info('cos')

        assert info['driver'] == 'cos'
        assert info['class_name'] == 'CosUploader'
        assert info['module'] == 'cloud_uploader.adapters.cos'
        assert 'Tencent Cloud COS' in info['docstring']

    def test_unknown_driver_raises_error(self):
        """Test that unknown driver raises error."""
        with pytest.raises(UploaderFactoryError) as exc_info:
            get_uploader_info('nonexistent')

        assert 'Unknown uploader driver' in str(exc_info.value)
