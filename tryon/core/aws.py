"""AWS S3 Service for try-on images."""

import logging
import re
from io import BytesIO
from typing import Optional
from urllib.parse import urlparse, unquote

import boto3
from botocore.exceptions import ClientError

from tryon.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class S3Service:
    """Handles S3 interactions for product, user and result images."""

    def __init__(self, settings: Optional[Settings] = None, client=None):
        self.settings = settings or get_settings()
        self._s3_client = client
        if self._s3_client is None:
            try:
                self._s3_client = boto3.client(
                    "s3",
                    aws_access_key_id=self.settings.AWS_ACCESS_KEY_ID or None,
                    aws_secret_access_key=self.settings.AWS_SECRET_ACCESS_KEY or None,
                    region_name=self.settings.AWS_REGION,
                    config=boto3.session.Config(s3={'addressing_style': 'path'})
                )
            except Exception as e:
                logger.error(f"Failed to initialize S3 client: {e}")
                self._s3_client = None

    @property
    def client(self):
        """Get S3 client."""
        return self._s3_client

    def _validated_bucket_name(self) -> str:
        bucket = (self.settings.AWS_S3_BUCKET or "").strip()
        if not bucket:
            raise ValueError("AWS_S3_BUCKET is not configured.")
        # https://docs.aws.amazon.com/AmazonS3/latest/userguide/bucketnamingrules.html
        if not re.fullmatch(r"[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]", bucket):
            raise ValueError(f"Invalid AWS_S3_BUCKET value '{bucket}'.")
        return bucket

    def _require_client(self):
        if not self.client:
            raise ValueError("AWS S3 credentials not configured.")
        return self.client

    def upload_bytes(self, object_name: str, data: bytes, content_type: str = "image/jpeg") -> None:
        """Upload raw bytes to S3."""
        client = self._require_client()
        try:
            client.put_object(
                Bucket=self._validated_bucket_name(),
                Key=object_name,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            logger.error(f"Error uploading {object_name} to S3: {e}")
            raise

    def download_bytes(self, object_name: str) -> bytes:
        """Download an object into memory."""
        client = self._require_client()
        try:
            file_stream = BytesIO()
            client.download_fileobj(self._validated_bucket_name(), object_name, file_stream)
            return file_stream.getvalue()
        except ClientError as e:
            logger.error(f"Error downloading {object_name} from S3: {e}")
            raise

    def delete_object(self, object_name: str) -> None:
        """Delete an object from S3."""
        client = self._require_client()
        try:
            client.delete_object(Bucket=self._validated_bucket_name(), Key=object_name)
        except ClientError as e:
            logger.error(f"Error deleting {object_name} from S3: {e}")
            raise

    def object_exists(self, object_name: str) -> bool:
        """HEAD the object; a 404 means it does not exist."""
        client = self._require_client()
        try:
            client.head_object(Bucket=self._validated_bucket_name(), Key=object_name)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in {"404", "NoSuchKey", "NotFound"}:
                return False
            raise

    def generate_presigned_get_url(self, object_name: str, expiration=300):
        """Generate a presigned URL for reading private objects."""
        client = self._require_client()
        try:
            return client.generate_presigned_url(
                ClientMethod='get_object',
                Params={
                    'Bucket': self._validated_bucket_name(),
                    'Key': object_name
                },
                ExpiresIn=expiration
            )
        except ClientError as e:
            logger.error(f"Error generating presigned GET URL: {e}")
            raise

    def get_public_url(self, object_name: str) -> str:
        """
        Get the public URL for an S3 object.
        Assumes bucket has public read access or CloudFront is configured.
        """
        bucket = self._validated_bucket_name()
        return f"https://{bucket}.s3.{self.settings.AWS_REGION}.amazonaws.com/{object_name}"

    def object_key(self, value: Optional[str]) -> Optional[str]:
        """
        Normalize a stored image reference into an object key.

        Accepts raw keys (`products/a.jpg`, `/products/a.jpg`), `s3://bucket/key`
        and virtual-hosted or path style S3 URLs. Returns None for empty values,
        other buckets and non-S3 URLs.
        """
        if not value or not value.strip():
            return None
        raw = value.strip()
        bucket = self._validated_bucket_name()

        if not raw.startswith(("http://", "https://", "s3://")):
            key = raw.lstrip("/")
            if key.startswith(f"{bucket}/"):
                key = key[len(bucket) + 1:]
            return key or None

        if raw.startswith("s3://"):
            maybe_bucket, _, key = raw[len("s3://"):].partition("/")
            if maybe_bucket != bucket or not key:
                return None
            return unquote(key.lstrip("/"))

        parsed = urlparse(raw)
        host = (parsed.hostname or "").lower()
        path = unquote(parsed.path or "").lstrip("/")
        if "amazonaws.com" not in host:
            return None
        if host.startswith(f"{bucket}.s3"):
            return path or None
        if host.startswith("s3") and path.startswith(f"{bucket}/"):
            return path[len(bucket) + 1:] or None
        return None
