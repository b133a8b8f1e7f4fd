"""S3 implementation of ObjectStoragePort.

boto3 is synchronous; every call runs in the default executor.
"""
import asyncio
import logging
from functools import partial

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.exceptions import NotFoundError, StorageError
from app.core.ports.object_storage import ObjectStoragePort

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class S3ObjectStore(ObjectStoragePort):
    """Document binaries in a single S3 bucket.

    Args:
        bucket: Bucket name
        region: AWS region
        client: Optional preconfigured boto3 S3 client (tests inject a mock)
    """

    def __init__(self, bucket: str, region: str = "us-east-1", client=None):
        self._bucket = bucket
        if client is None:
            boto_config = Config(retries={"max_attempts": 3, "mode": "standard"})
            client = boto3.Session().client("s3", region_name=region, config=boto_config)
        self._client = client

    async def _run(self, func, **kwargs):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, partial(func, **kwargs))

    async def upload(self, key: str, content: bytes, content_type: str) -> None:
        try:
            await self._run(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 upload failed for {key}: {e}") from e
        logger.info(f"Uploaded {len(content):,} bytes to s3://{self._bucket}/{key}")

    async def fetch(self, key: str) -> bytes:
        try:
            response = await self._run(self._client.get_object, Bucket=self._bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _MISSING_KEY_CODES:
                raise NotFoundError(f"No object at s3://{self._bucket}/{key}") from e
            raise StorageError(f"S3 fetch failed for {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"S3 fetch failed for {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._run(self._client.delete_object, Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 delete failed for {key}: {e}") from e

    async def signed_url(self, key: str, expires_in: int = 3600) -> str:
        try:
            return await self._run(
                self._client.generate_presigned_url,
                ClientMethod="get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not sign URL for {key}: {e}") from e

    @property
    def bucket(self) -> str:
        return self._bucket
