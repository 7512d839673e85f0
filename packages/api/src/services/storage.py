# This project was developed with assistance from AI tools.
"""S3-compatible object storage service backed by MinIO.

Uses boto3 synchronous client run in a thread-pool executor for async
compatibility. One instance is built at app startup and exposed to routes
through ``app.state`` (see ``get_storage_service``).
"""

import asyncio
import logging
import os
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from ..core.config import Settings

logger = logging.getLogger(__name__)


class StorageUploadError(Exception):
    """Raised when an object could not be written after all retry attempts."""


class StorageService:
    """Thin wrapper around a boto3 S3 client."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: str = "us-east-1",
        *,
        max_attempts: int = 3,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        ensure_bucket: bool = True,
    ):
        self._bucket = bucket
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(
                signature_version="s3v4",
                s3={
                    "addressing_style": "path",
                    "use_accelerate_endpoint": False,
                },
                retries={"max_attempts": max_attempts, "mode": "standard"},
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
            ),
        )
        if ensure_bucket:
            self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        """Create the bucket if it doesn't already exist (dev convenience)."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            logger.info("Creating S3 bucket: %s", self._bucket)
            self._client.create_bucket(Bucket=self._bucket)

    async def upload_file(
        self,
        file_data: bytes,
        object_key: str,
        content_type: str,
    ) -> str:
        """Upload bytes to S3 and return the object key (the stable reference)."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(
                    self._client.put_object,
                    Bucket=self._bucket,
                    Key=object_key,
                    Body=file_data,
                    ContentType=content_type,
                ),
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageUploadError(f"Upload of {object_key} failed: {exc}") from exc
        return object_key

    @staticmethod
    def build_object_key(application_id, document_id, filename: str) -> str:
        """Build the S3 object key: {application_id}/{document_id}/{filename}.

        Strips path components from filename to prevent path traversal attacks.
        """
        safe_name = os.path.basename(filename) or f"doc-{document_id}"
        return f"{application_id}/{document_id}/{safe_name}"


def build_storage_service(cfg: Settings) -> StorageService:
    """Construct the storage client from settings (called once from app lifespan)."""
    service = StorageService(
        endpoint=cfg.S3_ENDPOINT,
        access_key=cfg.S3_ACCESS_KEY,
        secret_key=cfg.S3_SECRET_KEY,
        bucket=cfg.S3_BUCKET,
        region=cfg.S3_REGION,
        max_attempts=cfg.UPLOAD_MAX_ATTEMPTS,
        connect_timeout=cfg.UPLOAD_CONNECT_TIMEOUT,
        read_timeout=cfg.UPLOAD_READ_TIMEOUT,
    )
    logger.info(
        "StorageService initialised (bucket=%s, max_attempts=%d)",
        cfg.S3_BUCKET,
        cfg.UPLOAD_MAX_ATTEMPTS,
    )
    return service


def get_storage_service(request: Request) -> StorageService:
    """FastAPI dependency: the StorageService built at startup."""
    service = getattr(request.app.state, "storage", None)
    if service is None:
        raise RuntimeError("StorageService not initialised -- app lifespan did not run")
    return service
