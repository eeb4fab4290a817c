from supabase import Client
from app.config import settings
from app.core.exceptions import InputValidationError, MembersMissingError, PreconditionError
from app.core.images import decode_image
from app.database.storage import SupabaseStorage
from app.modules.checkpoints.answers import answers_match
from app.modules.checkpoints.schemas import (
    AnswerOutcome, CheckpointView, CurrentQuestion, FaceMatchOutcome,
    SubmissionOutcome, TeammateMatch
)
from app.modules.checkpoints.state_machine import CheckpointState, resolve_state
from app.modules.facematch.service import FaceMatcher
from app.modules.game.schemas import GameState
from app.modules.game.service import GameService
from app.modules.groups.models import progress_column, solved_column
from app.modules.groups.schemas import GroupRecord, MemberSlot
from app.modules.groups.service import GroupService
from app.modules.hints.service import HintService
from app.modules.users.schemas import TeamMember, UserResponse
from app.modules.users.service import UserService
from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Walks one player through the checkpoints of their group.

    Every operation reads the group fresh, checks that the player is on the
    checkpoint the submission belongs to, and only then writes, always as a
    guarded single-field patch. Wrong answers and failed verifications never
    write anything.
    """

    def __init__(
        self,
        supabase: Client,
        matcher: Optional[FaceMatcher] = None,
        selfie_storage: Optional[SupabaseStorage] = None
    ):
        self.supabase = supabase
        self.matcher = matcher
        self.selfies = selfie_storage or SupabaseStorage(supabase, settings.selfies_bucket)
        self.game = GameService(supabase)
        self.groups = GroupService(supabase)
        self.users = UserService(supabase)
        self.hints = HintService(supabase)

    def _load(self, user_id: str) -> Tuple[GameState, Optional[GroupRecord], CheckpointState]:
        self.users.get_user_by_id(user_id)
        game = self.game.get_state()
        group = self.groups.find_group_by_member(user_id) if game.game_has_started else None
        return game, group, resolve_state(game, group, user_id)

    def _require(self, user_id: str, expected: CheckpointState) -> Tuple[GroupRecord, MemberSlot]:
        _, group, state = self._load(user_id)
        if state is CheckpointState.NO_GROUP:
            raise PreconditionError("You are not in a group yet", state=state.value)
        if state is not expected:
            raise PreconditionError(
                f"This checkpoint is not available, current state is {state.value}",
                state=state.value
            )
        return group, group.slot_for(user_id)

    def _state_after(self, group_id: int, user_id: str) -> CheckpointState:
        return resolve_state(self.game.get_state(), self.groups.get_group(group_id), user_id)

    def _members(self, group: GroupRecord) -> Dict[str, UserResponse]:
        return {u.id: u for u in self.users.get_users_by_ids(group.member_ids)}

    def _final_solution(self, group: GroupRecord) -> List[str]:
        """Expected final assembly: configured override, else the group's hint answers in id order"""
        configured = settings.get_final_assembly_solution()
        if configured:
            return configured
        hint_ids = sorted({qid for s in group.slots for qid in s.question_ids})
        hints = self.hints.get_hints_by_ids(hint_ids)
        missing = [qid for qid in hint_ids if qid not in hints]
        if missing or not hint_ids:
            raise PreconditionError("Questions for this group could not be loaded")
        return [hints[qid].answer for qid in hint_ids]

    def get_view(self, user_id: str) -> CheckpointView:
        _, group, state = self._load(user_id)
        view = CheckpointView(state=state)
        if group is None or state is CheckpointState.NO_GROUP:
            return view

        members = self._members(group)
        view.group_id = group.id
        view.photo_url = group.photo_url
        view.teammates = [
            TeamMember(id=uid, name=members[uid].name)
            for uid in group.member_ids if uid != user_id and uid in members
        ]

        if state is CheckpointState.RIDDLES:
            slot = group.slot_for(user_id)
            qid = slot.current_question_id
            hint = self.hints.get_hints_by_ids([qid]).get(qid) if qid is not None else None
            if hint is None:
                raise PreconditionError("No question assigned to you", state=state.value)
            view.question = CurrentQuestion(
                id=hint.id,
                question=hint.question,
                number=slot.progress + 1,
                total=len(slot.question_ids),
            )
        elif state is CheckpointState.WAITING_FOR_TEAM:
            view.waiting_for = [
                TeamMember(id=s.user_id, name=members[s.user_id].name)
                for s in group.slots if not s.solved and s.user_id in members
            ]
        elif state is CheckpointState.FINAL_ASSEMBLY:
            solution = self._final_solution(group)
            view.answer_pool = sorted(solution, key=str.casefold)
            view.field_count = len(solution)
        return view

    def submit_face_match(self, user_id: str, image: str) -> FaceMatchOutcome:
        """Verify every teammate's selfie appears in the group photo, then set found"""
        if self.matcher is None:
            raise PreconditionError("Face matching is not configured")
        photo, _ = decode_image(image, field="image")
        group, _ = self._require(user_id, CheckpointState.FACE_MATCH)

        members = self._members(group)
        matches = []
        for teammate_id in group.member_ids:
            if teammate_id == user_id:
                continue
            teammate = members.get(teammate_id)
            if teammate is None:
                raise PreconditionError("A teammate could not be found")
            key = self.selfies.key_from_public_url(teammate.selfie_url) if teammate.selfie_url else None
            if key is None:
                raise PreconditionError(f"{teammate.name} has no selfie on file")

            selfie = self.selfies.download_file(key)
            result = self.matcher.compare(selfie, photo)
            matches.append(TeammateMatch(
                user_id=teammate_id,
                name=teammate.name,
                score=result.score,
                matched=result.is_match,
            ))

        missing = [m.name for m in matches if not m.matched]
        if missing:
            logger.warning(f"Face match for group {group.id} missing {len(missing)} member(s)")
            raise MembersMissingError(missing)

        self.groups.set_flag_once(group.id, "found")
        return FaceMatchOutcome(state=self._state_after(group.id, user_id), matches=matches)

    def submit_answer(self, user_id: str, answer: str) -> AnswerOutcome:
        if not answer or not answer.strip():
            raise InputValidationError("Answer is required")
        group, slot = self._require(user_id, CheckpointState.RIDDLES)

        qid = slot.current_question_id
        if qid is None:
            raise PreconditionError("No question assigned to you", state=CheckpointState.RIDDLES.value)
        hint = self.hints.get_hints_by_ids([qid]).get(qid)
        if hint is None:
            raise PreconditionError("Question not found", state=CheckpointState.RIDDLES.value)

        if not answers_match(answer, hint.answer):
            return AnswerOutcome(
                correct=False,
                state=CheckpointState.RIDDLES,
                message="Incorrect answer. Try again!"
            )

        progress = slot.progress + 1
        solved = progress >= len(slot.question_ids)
        fields = {progress_column(slot.slot): progress}
        if solved:
            fields[solved_column(slot.slot)] = True
        patched = self.groups.patch_group(
            group.id, fields, expect={progress_column(slot.slot): slot.progress}
        )
        if patched is None:
            # Same answer submitted twice, the first one already advanced the slot
            logger.info(f"Duplicate answer for group {group.id} slot {slot.slot} ignored")

        converged = self.check_convergence(group.id) if solved else False
        return AnswerOutcome(
            correct=True,
            state=self._state_after(group.id, user_id),
            member_solved=solved,
            group_converged=converged,
            message="Correct answer!" if not solved else "All your questions are solved!"
        )

    def check_convergence(self, group_id: int) -> bool:
        """
        Set location_is_solved once every filled slot is solved.

        Returns True only for the call that performed the write. Calls that
        find the flag already set, or a slot still open, write nothing.
        """
        group = self.groups.get_group(group_id)
        if group.location_is_solved or not group.all_solved:
            return False
        return self.groups.set_flag_once(group_id, "location_is_solved")

    def submit_final_assembly(self, user_id: str, fields: List[str]) -> SubmissionOutcome:
        group, _ = self._require(user_id, CheckpointState.FINAL_ASSEMBLY)
        solution = self._final_solution(group)
        if len(fields) != len(solution):
            raise InputValidationError(f"Expected {len(solution)} fields, got {len(fields)}")
        if any(not f or not f.strip() for f in fields):
            raise InputValidationError("Every field must be filled in")

        if not all(answers_match(f, expected) for f, expected in zip(fields, solution)):
            return SubmissionOutcome(
                correct=False,
                state=CheckpointState.FINAL_ASSEMBLY,
                message="That combination is not right yet"
            )

        self.groups.set_flag_once(group.id, "final_is_solved")
        return SubmissionOutcome(
            correct=True,
            state=self._state_after(group.id, user_id),
            message="Correct! Find and scan the final QR code"
        )

    def submit_qr(self, user_id: str, payload: str) -> SubmissionOutcome:
        group, _ = self._require(user_id, CheckpointState.QR_SCAN)
        if payload != settings.qr_expected_payload:
            logger.info(f"Wrong QR payload from group {group.id}")
            return SubmissionOutcome(
                correct=False,
                state=CheckpointState.QR_SCAN,
                message="Wrong QR code, keep scanning"
            )

        self.groups.set_flag_once(group.id, "qr_is_solved")
        return SubmissionOutcome(
            correct=True,
            state=self._state_after(group.id, user_id),
            message="Congratulations, you found the final checkpoint!"
        )
