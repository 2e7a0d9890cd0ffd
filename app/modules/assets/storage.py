import boto3
from supabase import Client
from app.config.settings import settings
from app.core.errors import DependencyFailure
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class S3Storage:
    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=file_content,
            ContentType=content_type
        )
        return key

    def delete_file(self, key: str) -> None:
        self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)

    def signed_url(self, key: str, ttl_seconds: int) -> Optional[str]:
        return self.s3_client.generate_presigned_url(
            'get_object',
            Params={'Bucket': self.bucket_name, 'Key': key},
            ExpiresIn=ttl_seconds
        )


class SupabaseBucketStorage:
    def __init__(self, supabase: Client, bucket: Optional[str] = None):
        self.supabase = supabase
        self.bucket_name = bucket or settings.assets_bucket

    def _bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        self._bucket().upload(key, file_content, file_options={"content-type": content_type})
        return key

    def delete_file(self, key: str) -> None:
        self._bucket().remove([key])

    def signed_url(self, key: str, ttl_seconds: int) -> Optional[str]:
        data = self._bucket().create_signed_url(key, ttl_seconds)
        if not data:
            return None
        # storage3 has returned both spellings across releases
        return data.get("signedURL") or data.get("signedUrl")


class AssetStorage:
    """Blob storage for project assets: S3 when configured, otherwise the Supabase Storage bucket."""

    def __init__(self, supabase: Client):
        self.backend = None
        if settings.s3_configured:
            try:
                self.backend = S3Storage()
                logger.info("S3 storage initialized successfully")
            except Exception as e:
                logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
        if self.backend is None:
            self.backend = SupabaseBucketStorage(supabase)

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        try:
            return self.backend.upload_file(content, path, content_type)
        except Exception as e:
            logger.error(f"Asset upload to {path} failed: {str(e)}")
            raise DependencyFailure("Failed to upload file", dependency="storage")

    def delete(self, path: str) -> bool:
        try:
            self.backend.delete_file(path)
            return True
        except Exception as e:
            logger.error(f"Failed to delete {path} from storage: {str(e)}")
            return False

    def signed_url(self, path: str, ttl_seconds: Optional[int] = None) -> Optional[str]:
        """Time-limited read URL, or None when signing fails."""
        try:
            return self.backend.signed_url(path, ttl_seconds or settings.signed_url_ttl_seconds)
        except Exception as e:
            logger.warning(f"Error creating signed URL for {path}: {str(e)}")
            return None
