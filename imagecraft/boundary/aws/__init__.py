"""
AWS boundary modules.

Exports: S3ImageClient
"""

from .s3_client import S3ImageClient

__all__ = ["S3ImageClient"]
