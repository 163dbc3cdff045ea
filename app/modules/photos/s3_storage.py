import boto3
from botocore.exceptions import BotoCoreError, ClientError
from app.config.settings import settings
from datetime import datetime, timedelta, timezone
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import quote
import logging

logger = logging.getLogger(__name__)


def build_photo_key(file_name: str, now: Optional[datetime] = None) -> str:
    """Storage key namespaced by upload time: {prefix}/{epoch-millis}-{file_name}"""
    now = now or datetime.now(timezone.utc)
    epoch_millis = int(now.timestamp()) * 1000 + now.microsecond // 1000
    return f"{settings.photo_key_prefix}/{epoch_millis}-{file_name}"


def safe_file_name(file_name: Optional[str]) -> str:
    """Last path segment of a client-supplied name, or "" if nothing usable is left"""
    name = PurePosixPath((file_name or "").replace("\\", "/")).name.strip()
    return "" if name in (".", "..") else name


def public_url(bucket: str, region: str, key: str) -> str:
    return f"https://{bucket}.s3.{region}.amazonaws.com/{quote(key)}"


class S3Storage:
    def __init__(self, s3_client=None, bucket_name: Optional[str] = None, region: Optional[str] = None):
        self.bucket_name = bucket_name or settings.s3_bucket_name
        self.region = region or settings.aws_region
        if s3_client is None:
            if not all([settings.aws_access_key_id, settings.aws_secret_access_key, self.bucket_name]):
                raise ValueError("AWS S3 credentials and bucket name must be configured")
            s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=self.region
            )
        self.s3_client = s3_client

    def upload_file(self, file_content: bytes, key: str, content_type: str = "image/jpeg") -> str:
        """Upload file to S3 and return its URL"""
        expires_at = datetime.now(timezone.utc) + timedelta(days=settings.photo_retention_days)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type or "image/jpeg",
                Expires=expires_at,
                Metadata={
                    "expires-at": expires_at.isoformat(),
                    "auto-delete": "true"
                }
            )
            return public_url(self.bucket_name, self.region, key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise

    def delete_file(self, key: str) -> bool:
        """Delete file from S3"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete file from S3: {str(e)}")
            return False

    def presigned_url(self, key: str, ttl_seconds: Optional[int] = None) -> str:
        """Time-limited GET URL; falls back to the bucket's public URL pattern"""
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=ttl_seconds or settings.presigned_url_ttl_seconds
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Presigning {key} failed, using public URL: {str(e)}")
            return public_url(self.bucket_name, self.region, key)


def get_s3_storage() -> S3Storage:
    return S3Storage()
