"""
Object storage service for report PDFs.

Wraps an S3-compatible bucket. boto3 is blocking, so every call runs in
the threadpool.
"""
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from planpdf.config import settings
from planpdf.errors import ObjectNotFound, StorageError
from planpdf.logging_config import logger


PDF_CONTENT_TYPE = "application/pdf"
MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def full_report_key(user_id: str, report_id: str) -> str:
    """Bucket key of the full report PDF."""
    return f"private/{user_id}/{report_id}.pdf"


def preview_key(report_id: str) -> str:
    """Bucket key of the derived 2-page preview."""
    return f"previews/{report_id}-preview2.pdf"


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class StorageService:
    """Async facade over an S3-compatible bucket."""

    def __init__(self, client=None, bucket: str | None = None):
        self.bucket = bucket or settings.STORAGE_BUCKET
        self._client = client

    @property
    def client(self):
        if self._client is None:
            settings.require("STORAGE_ACCESS_KEY", "STORAGE_SECRET_KEY")
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.STORAGE_ENDPOINT_URL,
                aws_access_key_id=settings.STORAGE_ACCESS_KEY,
                aws_secret_access_key=settings.STORAGE_SECRET_KEY,
                region_name=settings.STORAGE_REGION,
                config=Config(
                    signature_version="s3v4",
                    retries={"max_attempts": 3, "mode": "standard"}
                )
            )
        return self._client

    async def exists(self, key: str) -> bool:
        """
        Check if an object exists.

        Raises:
            StorageError: on any failure other than "not found"
        """
        try:
            await run_in_threadpool(self.client.head_object, Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in MISSING_CODES:
                return False
            logger.error("storage_head_failed", key=key, error=str(e))
            raise StorageError(f"Failed to check {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to check {key}: {e}") from e

    async def download(self, key: str) -> bytes:
        """
        Download an object's bytes.

        Raises:
            ObjectNotFound: if the key does not exist
            StorageError: on any other failure
        """
        try:
            response = await run_in_threadpool(self.client.get_object, Bucket=self.bucket, Key=key)
            return await run_in_threadpool(response["Body"].read)
        except ClientError as e:
            if _error_code(e) in MISSING_CODES:
                raise ObjectNotFound(f"Object not found: {key}") from e
            logger.error("storage_download_failed", key=key, error=str(e))
            raise StorageError(f"Failed to download {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to download {key}: {e}") from e

    async def upload(self, key: str, data: bytes, content_type: str = PDF_CONTENT_TYPE) -> None:
        """
        Upload bytes, overwriting any existing object (upsert).

        Raises:
            StorageError: if the upload fails
        """
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("storage_upload_failed", key=key, error=str(e))
            raise StorageError(f"Failed to upload {key}: {e}") from e
        logger.info("storage_uploaded", key=key, size=len(data))

    async def create_signed_url(
        self,
        key: str,
        expires_in: int,
        download_filename: str | None = None
    ) -> str:
        """
        Create a time-limited GET URL for an object.

        Args:
            key: Bucket key
            expires_in: Lifetime in seconds; the store rejects the URL afterwards
            download_filename: Force an attachment disposition with this name

        Raises:
            StorageError: if signing fails
        """
        params = {"Bucket": self.bucket, "Key": key}
        if download_filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{download_filename}"'
        try:
            return await run_in_threadpool(
                self.client.generate_presigned_url,
                "get_object",
                Params=params,
                ExpiresIn=expires_in
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("storage_sign_failed", key=key, error=str(e))
            raise StorageError(f"Failed to sign {key}: {e}") from e


_storage: StorageService | None = None


def get_storage() -> StorageService:
    """Dependency returning the shared storage service."""
    global _storage
    if _storage is None:
        _storage = StorageService()
    return _storage
