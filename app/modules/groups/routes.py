from fastapi import APIRouter, Depends
from app.core.exceptions import NotFoundError
from app.database.supabase_client import get_supabase
from app.modules.groups.schemas import GroupRecord, GroupResponse
from app.modules.groups.service import GroupService
from app.modules.users.service import UserService
from supabase import Client
from typing import Dict, List
from uuid import UUID

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


def _member_names(groups: List[GroupRecord], supabase: Client) -> Dict[str, str]:
    user_ids = [uid for g in groups for uid in g.member_ids]
    users = UserService(supabase).get_users_by_ids(user_ids)
    return {u.id: u.name for u in users}


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """All groups of the current run with member names"""
    groups = service.list_groups()
    names = _member_names(groups, supabase)
    return [service.build_response(g, names) for g in groups]


@router.get("/by-user/{user_id}", response_model=GroupResponse)
async def get_group_for_user(
    user_id: UUID,
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """The group a participant was sorted into"""
    group = service.find_group_by_member(str(user_id))
    if group is None:
        raise NotFoundError("User is not in a group")
    return service.build_response(group, _member_names([group], supabase))


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: int,
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    group = service.get_group(group_id)
    return service.build_response(group, _member_names([group], supabase))
