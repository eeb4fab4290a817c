"""Group photo pool with per-run claims persisted in image_claims."""
import logging
import random
from typing import List, Optional

from supabase import Client

from app.config import settings
from app.core.exceptions import AllocationError
from app.database.storage import SupabaseStorage

logger = logging.getLogger(__name__)


class ImagePool:
    def __init__(self, supabase: Client, storage: Optional[SupabaseStorage] = None, prefix: Optional[str] = None):
        self.supabase = supabase
        self.storage = storage or SupabaseStorage(supabase, settings.group_photos_bucket)
        self.prefix = prefix if prefix is not None else settings.group_photos_prefix

    def _key(self, name: str) -> str:
        return f"{self.prefix}/{name}" if self.prefix else name

    def claimed_names(self, run_id: str) -> List[str]:
        result = self.supabase.table("image_claims")\
            .select("image_name")\
            .eq("game_run_id", run_id)\
            .execute()
        return [r["image_name"] for r in result.data or []]

    def available_names(self, run_id: str) -> List[str]:
        names = self.storage.list_files(self.prefix)
        if not names:
            raise AllocationError(f"No images found in {self.storage.bucket_name}/{self.prefix}")
        claimed = set(self.claimed_names(run_id))
        return [n for n in names if n not in claimed]

    def claim(self, run_id: str, count: int, rng: Optional[random.Random] = None) -> List[str]:
        """
        Claim `count` distinct unclaimed images for the run.

        Returns the claimed file names in allocation order. Raises
        AllocationError when the pool is too small or another session
        claimed the same images first.
        """
        available = self.available_names(run_id)
        if len(available) < count:
            raise AllocationError(f"Not enough images ({len(available)}) for all groups ({count})")

        chosen = (rng or random.Random()).sample(available, count)
        try:
            self.supabase.table("image_claims").insert([
                {"game_run_id": run_id, "image_name": name} for name in chosen
            ]).execute()
        except Exception as e:
            logger.error(f"Failed to claim images for run {run_id}: {str(e)}")
            raise AllocationError("Images were claimed concurrently, try again")

        logger.info(f"Claimed {count} image(s) for run {run_id}")
        return chosen

    def public_url(self, name: str) -> str:
        return self.storage.get_public_url(self._key(name))

    def release(self, run_id: str, names: Optional[List[str]] = None) -> None:
        """Drop claims for the run (all of them when names is None)"""
        query = self.supabase.table("image_claims")\
            .delete()\
            .eq("game_run_id", run_id)
        if names is not None:
            if not names:
                return
            query = query.in_("image_name", names)
        query.execute()
