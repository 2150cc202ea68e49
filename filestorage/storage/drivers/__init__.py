"""
Storage drivers package for filestorage.

This package contains the driver implementations for the different
storage backends. Drivers depending on optional libraries (``s3`` needs
boto3) are imported lazily by the driver registry.
"""

from .base import Driver, translate_errors
from .local import LocalDriver

__all__ = [
    "Driver",
    "LocalDriver",
    "translate_errors",
]
