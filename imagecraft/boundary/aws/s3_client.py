"""
S3 client for generated-image bucket operations.

Uploads generated images, issues presigned download URLs for the image
redirect route and deletes expired objects.

boto3 is synchronous; the async wrappers run each call in a worker thread
so the event loop driving the fan-out is never blocked.

Dependencies: boto3
System role: Blob storage for generated images
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from imagecraft.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class S3ImageClient:
    """S3 client for the generated-images bucket."""

    def __init__(self, bucket: str, region: str = "us-east-1", s3_client=None) -> None:
        """
        Initialize S3 client for the images bucket.

        Args:
            bucket: S3 bucket name for image storage
            region: AWS region for S3 bucket
            s3_client: Optional pre-built boto3 client (tests)
        """
        self._bucket = bucket
        self._region = region
        self._s3_client = s3_client or boto3.client("s3", region_name=region)

    @property
    def bucket(self) -> str:
        return self._bucket

    @staticmethod
    def build_key(user_id: str, image_id: str, extension: str) -> str:
        """Object key layout: images/{user_id}/{image_id}.{ext}"""
        return f"images/{user_id}/{image_id}.{extension}"

    def upload_image(
        self,
        s3_key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """
        Upload image bytes with server-side encryption.

        Args:
            s3_key: S3 object key
            data: Image bytes
            content_type: MIME type of the image
            metadata: Optional object metadata (string values only)

        Returns:
            str: The object key

        Raises:
            StorageError: If the upload fails
        """
        try:
            self._s3_client.put_object(
                Bucket=self._bucket,
                Key=s3_key,
                Body=data,
                ContentType=content_type,
                ServerSideEncryption="AES256",
                Metadata=metadata or {},
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"S3 upload failed: {e}",
                operation="put_object",
                details={"bucket": self._bucket, "key": s3_key},
            ) from e
        return s3_key

    async def upload_image_async(
        self,
        s3_key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Async wrapper around upload_image."""
        return await asyncio.to_thread(
            self.upload_image, s3_key, data, content_type, metadata
        )

    def generate_presigned_download_url(
        self,
        s3_key: str,
        expires_in: int = 3600,
    ) -> tuple[str, datetime]:
        """
        Generate presigned URL for viewing an S3 object.

        Args:
            s3_key: S3 object key (path in bucket)
            expires_in: URL expiry in seconds (default 1 hour)

        Returns:
            tuple[str, datetime]: (presigned_url, expires_at)

        Raises:
            ClientError: If presigned URL generation fails
        """
        presigned_url = self._s3_client.generate_presigned_url(
            ClientMethod="get_object",
            Params={
                "Bucket": self._bucket,
                "Key": s3_key,
            },
            ExpiresIn=expires_in,
        )
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return presigned_url, expires_at

    def delete_object(self, s3_key: str) -> bool:
        """
        Delete an object, treating a missing object as already deleted.

        Args:
            s3_key: S3 object key

        Returns:
            bool: True on success, False if the delete failed
        """
        try:
            self._s3_client.delete_object(Bucket=self._bucket, Key=s3_key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey"):
                return True
            logger.warning(
                f"{__name__}:delete_object - Failed to delete {s3_key}: {e}"
            )
            return False

    async def delete_object_async(self, s3_key: str) -> bool:
        """Async wrapper around delete_object."""
        return await asyncio.to_thread(self.delete_object, s3_key)
