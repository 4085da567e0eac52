"""
Shared fixtures: a CosUploader wired to an in-memory fake COS client.
"""
import pytest

from cloud_uploader import CosUploader
from fake_cos import FakeCosClient


@pytest.fixture
def cos_config():
    return {'bucket_name': 'examplebucket-1250000000', 'region': 'ap-guangzhou'}


@pytest.fixture
def cos_credentials():
    return {'secret_id': 'AKIDEXAMPLE', 'secret_key': 'secret'}


@pytest.fixture
def fake_client(cos_config):
    """Create an empty fake COS client."""
    return FakeCosClient(bucket=cos_config['bucket_name'])


@pytest.fixture
def patched_sdk(mocker, fake_client):
    """Patch the SDK so constructing an uploader hands out the fake client."""
    mocker.patch('cloud_uploader.adapters.cos.CosConfig')
    return mocker.patch('cloud_uploader.adapters.cos.CosS3Client', return_value=fake_client)


@pytest.fixture
def uploader(patched_sdk, cos_config, cos_credentials):
    """Create a COS uploader backed by the fake client."""
    return CosUploader(cos_config, cos_credentials)
