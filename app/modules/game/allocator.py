"""
Team formation and question allocation for one allocation run.

Pure functions only: the game service feeds them the roster and the hint
pool and persists whatever comes back.
"""
import random
from enum import Enum
from typing import List, Optional, Sequence, TypeVar

from app.core.exceptions import AllocationError

T = TypeVar("T")

MIN_GROUP_SIZE = 2
MAX_GROUP_SIZE = 4


class QuestionPolicy(str, Enum):
    FIRST = "first"  # leading slots take the extra questions
    LAST = "last"


def choose_group_size(total_users: int) -> int:
    """Prefer a size that divides the roster, else the one leaving the smaller remainder."""
    if total_users % 3 == 0:
        return 3
    if total_users % 4 == 0:
        return 4
    if total_users % 4 <= total_users % 3 and total_users // 4 > 0:
        return 4
    return 3


def form_teams(users: Sequence[T], rng: Optional[random.Random] = None) -> List[List[T]]:
    """Shuffle the roster and cut it into groups of 2-4."""
    if len(users) < MIN_GROUP_SIZE:
        raise AllocationError(f"At least {MIN_GROUP_SIZE} users are needed to form teams, got {len(users)}")

    rng = rng or random.Random()
    shuffled = list(users)
    rng.shuffle(shuffled)

    size = choose_group_size(len(shuffled))
    teams = [shuffled[i:i + size] for i in range(0, len(shuffled), size)]

    if len(teams) > 1 and len(teams[-1]) == 1:
        straggler = teams.pop()
        if size == 3:
            teams[-1].extend(straggler)
        else:
            # 4 + 1 becomes 3 + 2
            straggler.insert(0, teams[-1].pop())
            teams.append(straggler)
    return teams


def allocate_questions(
    group_size: int,
    question_ids: Sequence[int],
    policy: QuestionPolicy = QuestionPolicy.FIRST,
) -> List[List[int]]:
    """
    Split the question pool into one contiguous block per member slot.

    Every question lands in exactly one slot and every slot gets at least
    one. With the usual pool of four: a group of 4 gets one each, a group of
    3 gets [2, 1, 1] (or [1, 1, 2] under the "last" policy) and a group of 2
    gets two each.
    """
    if not MIN_GROUP_SIZE <= group_size <= MAX_GROUP_SIZE:
        raise AllocationError(f"Unsupported group size {group_size}")
    if len(question_ids) < group_size:
        raise AllocationError(
            f"Not enough questions ({len(question_ids)}) for a group of {group_size}"
        )

    base, extra = divmod(len(question_ids), group_size)
    counts = [base + 1] * extra + [base] * (group_size - extra)
    if QuestionPolicy(policy) is QuestionPolicy.LAST:
        counts.reverse()

    blocks = []
    start = 0
    for count in counts:
        blocks.append(list(question_ids[start:start + count]))
        start += count
    return blocks
