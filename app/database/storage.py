"""Supabase Storage access for selfies and the group photo pool."""
import logging
from typing import List, Optional
from urllib.parse import unquote, urlparse

from supabase import Client

from app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class SupabaseStorage:
    def __init__(self, supabase: Client, bucket_name: str):
        self.supabase = supabase
        self.bucket_name = bucket_name

    @property
    def _bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def ensure_bucket(self, public: bool = True, file_size_limit: Optional[int] = None) -> None:
        """Create the bucket if missing and make sure it is publicly readable."""
        try:
            buckets = self.supabase.storage.list_buckets()
            existing = next((b for b in buckets if b.name == self.bucket_name), None)
            if existing is None:
                options = {"public": public}
                if file_size_limit:
                    options["file_size_limit"] = file_size_limit
                self.supabase.storage.create_bucket(self.bucket_name, options=options)
                logger.info("Created storage bucket %s", self.bucket_name)
            elif public and not existing.public:
                self.supabase.storage.update_bucket(self.bucket_name, options={"public": True})
                logger.info("Made storage bucket %s public", self.bucket_name)
        except Exception as e:
            logger.error("Failed to prepare bucket %s: %s", self.bucket_name, e)
            raise ExternalServiceError(f"Storage bucket {self.bucket_name} unavailable")

    def upload_file(self, file_content: bytes, key: str, content_type: str = "image/jpeg") -> str:
        """Upload file and return its public URL"""
        try:
            self._bucket.upload(key, file_content, {"content-type": content_type})
        except Exception as e:
            logger.error(f"Failed to upload {key} to {self.bucket_name}: {str(e)}")
            raise ExternalServiceError("Failed to upload image")
        return self.get_public_url(key)

    def get_public_url(self, key: str) -> str:
        return self._bucket.get_public_url(key)

    def delete_file(self, key: str) -> None:
        try:
            self._bucket.remove([key])
        except Exception as e:
            logger.error(f"Failed to delete {key} from {self.bucket_name}: {str(e)}")
            raise ExternalServiceError("Failed to delete image from storage")

    def download_file(self, key: str) -> bytes:
        try:
            return self._bucket.download(key)
        except Exception as e:
            logger.error(f"Failed to download {key} from {self.bucket_name}: {str(e)}")
            raise ExternalServiceError("Failed to fetch image from storage")

    def list_files(self, prefix: str) -> List[str]:
        """File names directly under prefix, sorted by name. Folders are skipped."""
        try:
            items = self._bucket.list(prefix, {"sortBy": {"column": "name", "order": "asc"}})
        except Exception as e:
            logger.error(f"Failed to list {self.bucket_name}/{prefix}: {str(e)}")
            raise ExternalServiceError("Failed to list images in storage")
        # Folders come back without an id; the placeholder keeps empty folders alive
        return [
            item["name"] for item in items or []
            if item.get("id") and not item["name"].startswith(".")
        ]

    def key_from_public_url(self, url: str) -> Optional[str]:
        """Map .../object/public/<bucket>/<key> back to <key>."""
        marker = f"/object/public/{self.bucket_name}/"
        path = urlparse(url).path
        if marker not in path:
            return None
        return unquote(path.split(marker, 1)[1]) or None
