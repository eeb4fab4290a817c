from supabase import Client
from app.config import settings
from app.core.exceptions import AllocationError, PreconditionError
from app.modules.game.allocator import QuestionPolicy, allocate_questions, form_teams
from app.modules.game.image_pool import ImagePool
from app.modules.game.schemas import GameProgress, GameState, GameToggleResponse
from app.modules.groups.schemas import GroupRecord, MemberSlot
from app.modules.groups.service import GroupService
from app.modules.hints.service import HintService
from app.modules.users.service import UserService
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime
import logging
import random
import uuid

logger = logging.getLogger(__name__)


class GameService:
    def __init__(
        self,
        supabase: Client,
        image_pool: Optional[ImagePool] = None,
        rng: Optional[random.Random] = None
    ):
        self.supabase = supabase
        self.image_pool = image_pool or ImagePool(supabase)
        self.rng = rng or random.Random()
        self.groups = GroupService(supabase)
        self.users = UserService(supabase)
        self.hints = HintService(supabase)
        self.row_id = settings.globals_row_id

    def get_state(self) -> GameState:
        """Singleton globals row; created (not started) when missing"""
        try:
            result = self.supabase.table("globals")\
                .select("*")\
                .eq("id", self.row_id)\
                .execute()
            if result.data:
                return GameState(**result.data[0])

            logger.info(f"No globals row {self.row_id}, creating initial row")
            created = self.supabase.table("globals").insert({
                "id": self.row_id,
                "game_has_started": False,
                "game_run_id": str(uuid.uuid4()),
            }).execute()
            if not created.data:
                raise HTTPException(status_code=500, detail="Failed to initialize game state")
            return GameState(**created.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _update_state(self, fields: dict, expect_started: bool, expect_run_id: Optional[str] = None) -> Optional[GameState]:
        """Guarded update: None when another admin session got there first."""
        query = self.supabase.table("globals")\
            .update(fields)\
            .eq("id", self.row_id)\
            .eq("game_has_started", expect_started)
        if expect_run_id is not None:
            query = query.eq("game_run_id", expect_run_id)
        result = query.execute()
        if not result.data:
            return None
        return GameState(**result.data[0])

    def build_groups(self, run_id: str, teams: List[List[str]], question_ids: List[int], photo_urls: List[str]) -> List[GroupRecord]:
        """Teams -> GroupRecords with photo and per-slot questions, nothing persisted yet"""
        policy = QuestionPolicy(settings.question_policy)
        if len(photo_urls) < len(teams):
            raise AllocationError(f"Not enough images ({len(photo_urls)}) for all groups ({len(teams)})")

        groups = []
        for team, photo_url in zip(teams, photo_urls):
            blocks = allocate_questions(len(team), question_ids, policy)
            groups.append(GroupRecord(
                game_run_id=run_id,
                photo_url=photo_url,
                slots=[
                    MemberSlot(slot=n, user_id=user_id, question_ids=block)
                    for n, (user_id, block) in enumerate(zip(team, blocks), start=1)
                ],
            ))
        return groups

    def _take_run(self, state: GameState) -> str:
        """
        Move globals to a fresh run id while the game is still stopped.

        Only one session can move away from the run id it read, and only the
        session whose run id is current can flip the flag later, so a losing
        concurrent start fails before it touches another session's groups.
        """
        run_id = str(uuid.uuid4())
        query = self.supabase.table("globals")\
            .update({"game_run_id": run_id})\
            .eq("id", self.row_id)\
            .eq("game_has_started", False)
        if state.game_run_id:
            query = query.eq("game_run_id", state.game_run_id)
        else:
            query = query.is_("game_run_id", "null")
        if not query.execute().data:
            raise PreconditionError("Game is being started by another session")
        return run_id

    def start_game(self) -> GameToggleResponse:
        """
        Run the allocation and start the game.

        Everything is computed before the first write; any failure leaves
        game_has_started false and undoes the claims and groups written so far.
        """
        state = self.get_state()
        if state.game_has_started:
            raise PreconditionError("Game has already started")

        users = self.users.list_users()
        if not users:
            raise AllocationError("No users found to distribute into teams")
        teams = form_teams([u.id for u in users], rng=self.rng)
        hints = self.hints.require_pool(minimum=max(len(t) for t in teams))
        question_ids = [h.id for h in hints]

        run_id = self._take_run(state)
        claimed = self.image_pool.claim(run_id, len(teams), rng=self.rng)
        inserted: List[GroupRecord] = []
        try:
            groups = self.build_groups(
                run_id,
                teams,
                question_ids,
                [self.image_pool.public_url(name) for name in claimed],
            )
            if state.game_run_id:
                removed = self.groups.delete_run_groups(state.game_run_id)
                if removed:
                    logger.info(f"Cleared {removed} group(s) left from run {state.game_run_id}")
            inserted = self.groups.insert_groups(groups)

            started = self._update_state({
                "game_has_started": True,
                "started_at": datetime.utcnow().isoformat(),
            }, expect_started=False, expect_run_id=run_id)
            if started is None:
                raise PreconditionError("Game was started by another session")
        except Exception:
            logger.exception(f"Start of run {run_id} failed, rolling back allocation")
            self.groups.delete_groups([g.id for g in inserted if g.id is not None])
            self.image_pool.release(run_id, claimed)
            raise

        sizes = [g.size for g in inserted]
        logger.info(f"Game started, run {run_id}: {len(sizes)} team(s) of sizes {sizes}")
        return GameToggleResponse(
            game_has_started=True,
            game_run_id=run_id,
            group_sizes=sizes,
            message=f"Successfully created {len(sizes)} teams: {', '.join(map(str, sizes))} members per team",
        )

    def stop_game(self) -> GameToggleResponse:
        """Stop the game, clear groups and rotate the run so image claims reset"""
        state = self.get_state()
        if not state.game_has_started:
            raise PreconditionError("Game is not running")

        next_run_id = str(uuid.uuid4())
        stopped = self._update_state({
            "game_has_started": False,
            "game_run_id": next_run_id,
            "started_at": None,
        }, expect_started=True)
        if stopped is None:
            raise PreconditionError("Game was stopped by another session")

        self.groups.delete_all_groups()
        if state.game_run_id:
            self.image_pool.release(state.game_run_id)
        logger.info(f"Game stopped, next run {next_run_id}")
        return GameToggleResponse(
            game_has_started=False,
            game_run_id=next_run_id,
            message="Game stopped successfully",
        )

    def toggle_game(self) -> GameToggleResponse:
        if self.get_state().game_has_started:
            return self.stop_game()
        return self.start_game()

    def get_progress(self) -> GameProgress:
        state = self.get_state()
        groups = self.groups.list_groups()
        return GameProgress(
            game_has_started=state.game_has_started,
            total_groups=len(groups),
            checkpoint1_completed=sum(1 for g in groups if g.found),
            checkpoint2_completed=sum(1 for g in groups if g.location_is_solved),
            checkpoint3_completed=sum(1 for g in groups if g.final_is_solved),
            finished=sum(1 for g in groups if g.qr_is_solved),
        )
