from functools import lru_cache
import logging

from fastapi.concurrency import run_in_threadpool
from supabase import create_client, Client

from app.core.errors import DependencyError
from app.core.storage import BlobStorage

logger = logging.getLogger(__name__)

@lru_cache
def get_supabase_client(url: str, key: str) -> Client:
    if not url or not key:
        raise DependencyError("Supabase is not configured")
    # Service role key: uploads bypass row level security
    return create_client(url, key)

class SupabaseStorage(BlobStorage):
    """Photos kept in a public Supabase Storage bucket."""

    def __init__(self, bucket: str, url: str, key: str):
        self.bucket = bucket
        self.url = url
        self.key = key

    def _upload(self, data: bytes, key: str, content_type: str) -> str:
        bucket = get_supabase_client(self.url, self.key).storage.from_(self.bucket)
        bucket.upload(key, data, {"content-type": content_type})
        return bucket.get_public_url(key)

    async def save(self, data: bytes, key: str, content_type: str) -> str:
        # supabase-py is synchronous
        try:
            return await run_in_threadpool(self._upload, data, key, content_type)
        except DependencyError:
            raise
        except Exception as e:
            logger.error(f"Supabase storage upload failed for {key}: {e}")
            raise DependencyError("Could not store the uploaded file") from e
