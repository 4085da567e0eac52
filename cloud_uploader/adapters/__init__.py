"""Uploader implementations."""

from .cos import (
    CosUploader,
    CosGetOptions,
    CosPutOptions,
    CosDeleteOptions,
    CosCopyOptions,
)

__all__ = [
    'CosUploader',
    'CosGetOptions',
    'CosPutOptions',
    'CosDeleteOptions',
    'CosCopyOptions',
]
