from supabase import Client
from app.core.exceptions import InputValidationError, NotFoundError
from app.modules.groups.models import MAX_SLOTS, user_id_column
from app.modules.groups.schemas import GroupRecord, GroupResponse, GroupMemberResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging
import uuid

logger = logging.getLogger(__name__)


class GroupService:
    """Point lookups and field-level patches on the shared groups table."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_group_by_member(self, user_id: str) -> Optional[GroupRecord]:
        """Group whose slots contain user_id, or None"""
        try:
            member_id = str(uuid.UUID(str(user_id)))
        except ValueError:
            raise InputValidationError("user_id must be a UUID")
        member_filter = ",".join(
            f"{user_id_column(n)}.eq.{member_id}" for n in range(1, MAX_SLOTS + 1)
        )
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .or_(member_filter)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            return None
        if len(result.data) > 1:
            logger.warning(f"User {user_id} found in {len(result.data)} groups, using the newest")
            rows = sorted(result.data, key=lambda r: r.get("id") or 0, reverse=True)
            return GroupRecord.from_row(rows[0])
        return GroupRecord.from_row(result.data[0])

    def get_group(self, group_id: int) -> GroupRecord:
        """Get group by ID"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("id", group_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise NotFoundError("Group not found")
        return GroupRecord.from_row(result.data[0])

    def list_groups(self) -> List[GroupRecord]:
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .order("id")\
                .execute()
            return [GroupRecord.from_row(row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def insert_groups(self, groups: List[GroupRecord]) -> List[GroupRecord]:
        """Bulk insert; returns the rows with their generated ids"""
        if not groups:
            return []
        try:
            result = self.supabase.table("groups")\
                .insert([g.to_row() for g in groups])\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data or len(result.data) != len(groups):
            raise HTTPException(status_code=500, detail="Failed to create groups")
        return [GroupRecord.from_row(row) for row in result.data]

    def delete_all_groups(self) -> int:
        """Clear the previous generation of groups"""
        try:
            result = self.supabase.table("groups")\
                .delete()\
                .not_.is_("id", "null")\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_run_groups(self, run_id: str) -> int:
        """Remove the groups of one game run, leaving other runs alone"""
        try:
            result = self.supabase.table("groups")\
                .delete()\
                .eq("game_run_id", run_id)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_groups(self, group_ids: List[int]) -> None:
        if not group_ids:
            return
        try:
            self.supabase.table("groups")\
                .delete()\
                .in_("id", group_ids)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def patch_group(
        self,
        group_id: int,
        fields: Dict[str, Any],
        expect: Optional[Dict[str, Any]] = None
    ) -> Optional[GroupRecord]:
        """
        Single-statement update of the given columns only.

        `expect` adds equality guards to the WHERE clause, turning the update
        into a compare-and-set: None comes back when a guard no longer holds
        (another member already wrote), otherwise the patched row.
        """
        try:
            query = self.supabase.table("groups")\
                .update(fields)\
                .eq("id", group_id)
            for column, value in (expect or {}).items():
                query = query.eq(column, value)
            result = query.execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            return None
        return GroupRecord.from_row(result.data[0])

    def set_flag_once(self, group_id: int, flag: str) -> bool:
        """Flip a group-level flag false -> true. True only for the writer that flipped it."""
        patched = self.patch_group(group_id, {flag: True}, expect={flag: False})
        if patched is None:
            logger.debug(f"Group {group_id} {flag} already set, nothing written")
            return False
        logger.info(f"Group {group_id} {flag} set")
        return True

    def build_response(self, group: GroupRecord, names: Optional[Dict[str, str]] = None) -> GroupResponse:
        names = names or {}
        return GroupResponse(
            id=group.id,
            size=group.size,
            photo_url=group.photo_url,
            found=group.found,
            location_is_solved=group.location_is_solved,
            final_is_solved=group.final_is_solved,
            qr_is_solved=group.qr_is_solved,
            members=[
                GroupMemberResponse(
                    slot=s.slot,
                    user_id=s.user_id,
                    name=names.get(s.user_id),
                    question_count=len(s.question_ids),
                    solved=s.solved,
                )
                for s in group.slots
            ],
            created_at=group.created_at,
        )
