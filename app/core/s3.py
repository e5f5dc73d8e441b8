import aioboto3
from botocore.exceptions import BotoCoreError, ClientError
import logging

from app.core.errors import DependencyError
from app.core.storage import BlobStorage

logger = logging.getLogger(__name__)

class S3Storage(BlobStorage):
    def __init__(self, bucket_name: str, region: str, access_key_id: str, secret_access_key: str):
        self.session = aioboto3.Session(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region
        )
        self.bucket_name = bucket_name
        self.region = region

    def public_url(self, file_key: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{file_key}"

    async def save(self, data: bytes, key: str, content_type: str) -> str:
        """
        Upload a file to S3 and return its URL.
        """
        try:
            async with self.session.client('s3') as s3_client:
                await s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=key,
                    Body=data,
                    ContentType=content_type
                )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading file to S3: {e}")
            raise DependencyError("Could not store the uploaded file") from e
        return self.public_url(key)

