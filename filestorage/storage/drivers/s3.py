"""
Amazon S3 storage driver implementation
Uses boto3 to interact with S3 or any S3 compatible endpoint
"""
import asyncio
import logging
from typing import Any, BinaryIO, Dict, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError, PartialCredentialsError

from ...models.disk import DriverName, S3DiskConfig
from ..errors import MoveFailedError, StorageError, StorageFileNotFoundError, UnauthenticatedError
from ..sources import PutData
from .base import Driver

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}
UNAUTHENTICATED_CODES = {
    "AccessDenied",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "InvalidToken",
    "403",
}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3Driver(Driver):
    """
    S3 bucket implementation of Driver.

    Uploaded objects get the configured canned ACL (``public-read`` by
    default) so that ``url()`` points to a readable object.
    """

    driver_name = DriverName.S3.value
    config_model = S3DiskConfig

    def __init__(self, config: S3DiskConfig, client=None):
        """
        Initialize S3 storage driver

        Args:
            config: S3 disk configuration
            client: Optional pre-built boto3 S3 client
        """
        super().__init__(config)
        self.bucket_name = self.config.bucket_name
        self.public_url = self.config.public_url

        self.s3_client = client or boto3.client(
            "s3",
            region_name=self.config.region_name,
            endpoint_url=self.config.endpoint_url,
            aws_access_key_id=self.config.aws_access_key_id,
            aws_secret_access_key=self.config.aws_secret_access_key,
        )

        logger.info(f"[S3_STORAGE] Disk '{self.name}' initialized with bucket: {self.bucket_name}")

    def translate_error(self, error: Exception) -> Optional[StorageError]:
        if isinstance(error, ClientError):
            code = _error_code(error)
            if code in NOT_FOUND_CODES:
                return StorageFileNotFoundError(str(error))
            if code in UNAUTHENTICATED_CODES:
                return UnauthenticatedError(str(error))
        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return UnauthenticatedError(str(error))
        return None

    async def stats(self, path: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self.s3_client.head_object, Bucket=self.bucket_name, Key=path)

    def url(self, path: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{path}"
        return f"https://{self.bucket_name}.s3.amazonaws.com/{path}"

    async def exists(self, path: str) -> bool:
        try:
            await self.stats(path)
            return True
        except StorageFileNotFoundError:
            return False

    async def size(self, path: str) -> int:
        data = await self.stats(path)
        return data["ContentLength"]

    async def last_modified(self, path: str) -> int:
        data = await self.stats(path)
        return int(data["LastModified"].timestamp() * 1000)

    async def put(self, data: PutData, path: str) -> Dict[str, Any]:
        """Upload to S3"""
        source = self.source(data)
        extra_args = {"ACL": self.config.acl} if self.config.acl else None

        await asyncio.to_thread(
            self.s3_client.upload_fileobj,
            source.as_file(),
            self.bucket_name,
            path,
            ExtraArgs=extra_args
        )
        logger.info(f"[S3_STORAGE] Uploaded: {path}")
        return {
            "success": True,
            "message": "Uploading success!",
            "Bucket": self.bucket_name,
            "Key": path,
            "Location": self.url(path),
        }

    async def get(self, path: str) -> BinaryIO:
        """Get a file from the bucket"""
        response = await asyncio.to_thread(self.s3_client.get_object, Bucket=self.bucket_name, Key=path)
        return response["Body"]

    async def delete(self, path: str) -> bool:
        """Delete a file from the bucket"""
        await asyncio.to_thread(self.s3_client.delete_object, Bucket=self.bucket_name, Key=path)
        logger.info(f"[S3_STORAGE] Deleted: {path}")
        return True

    async def copy(self, path: str, new_path: str) -> None:
        await asyncio.to_thread(
            self.s3_client.copy_object,
            CopySource={"Bucket": self.bucket_name, "Key": path},
            Bucket=self.bucket_name,
            Key=new_path
        )

    async def move(self, path: str, new_path: str) -> None:
        try:
            await self.copy(path, new_path)
        except (StorageFileNotFoundError, UnauthenticatedError):
            raise
        except (StorageError, ClientError) as ex:
            raise MoveFailedError(f"Cannot move {path} to {new_path}: {ex}") from ex
        await self.delete(path)

    async def make_dir(self, dir: str) -> str:
        await asyncio.to_thread(
            self.s3_client.put_object,
            Bucket=self.bucket_name,
            Key=dir.rstrip("/") + "/"
        )
        return dir

    async def remove_dir(self, dir: str) -> str:
        prefix = dir.rstrip("/") + "/"

        def _remove():
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                keys = [{"Key": item["Key"]} for item in page.get("Contents", [])]
                if keys:
                    self.s3_client.delete_objects(Bucket=self.bucket_name, Delete={"Objects": keys})

        await asyncio.to_thread(_remove)
        return dir

    async def ensure_bucket(self) -> None:
        """Create the bucket when it does not exist (local or mock S3 setups)."""

        def _ensure():
            try:
                self.s3_client.head_bucket(Bucket=self.bucket_name)
            except ClientError as e:
                if _error_code(e) not in NOT_FOUND_CODES | {"NoSuchBucket"}:
                    raise
                logger.info(f"[S3_STORAGE] Creating bucket: {self.bucket_name}")
                self.s3_client.create_bucket(Bucket=self.bucket_name)

        await asyncio.to_thread(_ensure)
