"""
S3 Image Storage

Production image storage. boto3 is synchronous, so uploads run in a worker
thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from tableside.services.storage.base import BaseImageStorage, StoredImage

logger = logging.getLogger(__name__)


class S3ImageStorage(BaseImageStorage):

    def __init__(self, bucket: Optional[str], region: str, client=None):
        self.bucket = bucket
        self.region = region
        self.client = client or boto3.client("s3", region_name=region)
        if not bucket:
            logger.warning("S3 bucket not configured")
        logger.info("S3ImageStorage initialized")

    @property
    def provider_name(self) -> str:
        return "s3"

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def upload(self, key: str, content: bytes, content_type: Optional[str] = None) -> StoredImage:
        if not self.bucket:
            return StoredImage(success=False, key=key, error_message="S3 bucket not configured")

        extra = {"ContentType": content_type} if content_type else {}
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=content,
                **extra,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload failed for {key}: {e}")
            return StoredImage(success=False, key=key, error_message=str(e))

        logger.info(f"Uploaded s3://{self.bucket}/{key}")
        return StoredImage(success=True, key=key, url=self.public_url(key))

    async def health_check(self) -> bool:
        if not self.bucket:
            return False
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 health check failed: {e}")
            return False
