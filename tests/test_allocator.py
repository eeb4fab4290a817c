import random
from collections import Counter

import pytest

from app.core.exceptions import AllocationError
from app.modules.game.allocator import (
    QuestionPolicy, allocate_questions, choose_group_size, form_teams
)


class TestChooseGroupSize:
    @pytest.mark.parametrize("total,expected", [
        (3, 3), (6, 3), (12, 3),   # divisible by 3 wins first
        (4, 4), (8, 4), (16, 4),   # then divisible by 4
        (5, 4), (13, 4),           # remainder 1 for size 4 beats remainder 2 / ties
        (7, 3), (10, 3), (11, 3),  # size 3 leaves the smaller remainder
        (2, 3),                    # no full group of 4 possible
    ])
    def test_policy(self, total, expected):
        assert choose_group_size(total) == expected


class TestFormTeams:
    @pytest.mark.parametrize("total", range(2, 61))
    def test_every_user_in_exactly_one_group_of_2_to_4(self, total):
        users = [f"u{i}" for i in range(total)]
        teams = form_teams(users, rng=random.Random(total))

        assert all(2 <= len(team) <= 4 for team in teams)
        members = [u for team in teams for u in team]
        assert Counter(members) == Counter(users)

    def test_seven_users_make_a_three_and_a_four(self):
        teams = form_teams(list("abcdefg"), rng=random.Random(7))
        assert sorted(len(t) for t in teams) == [3, 4]

    def test_four_plus_one_is_rebalanced(self):
        teams = form_teams(list("abcde"), rng=random.Random(5))
        assert [len(t) for t in teams] == [3, 2]

    def test_thirteen_users_never_leave_a_single(self):
        teams = form_teams([str(i) for i in range(13)], rng=random.Random(0))
        assert [len(t) for t in teams] == [4, 4, 3, 2]

    def test_roster_is_shuffled(self):
        users = [f"u{i:02d}" for i in range(24)]
        teams = form_teams(users, rng=random.Random(99))
        assert [u for team in teams for u in team] != users

    def test_input_is_not_mutated(self):
        users = ["a", "b", "c", "d"]
        form_teams(users, rng=random.Random(1))
        assert users == ["a", "b", "c", "d"]

    @pytest.mark.parametrize("users", [[], ["solo"]])
    def test_too_few_users(self, users):
        with pytest.raises(AllocationError):
            form_teams(users)


class TestAllocateQuestions:
    POOL = [11, 12, 13, 14]

    @pytest.mark.parametrize("size", [2, 3, 4])
    def test_every_question_exactly_once_and_no_empty_slot(self, size):
        blocks = allocate_questions(size, self.POOL)

        assert len(blocks) == size
        assert all(blocks)
        assert sorted(q for block in blocks for q in block) == self.POOL

    def test_group_of_four_one_each(self):
        assert allocate_questions(4, self.POOL) == [[11], [12], [13], [14]]

    def test_group_of_three_first_slot_doubles_up(self):
        assert allocate_questions(3, self.POOL) == [[11, 12], [13], [14]]

    def test_group_of_three_last_policy(self):
        assert allocate_questions(3, self.POOL, QuestionPolicy.LAST) == [[11], [12], [13, 14]]

    def test_group_of_two_two_each(self):
        assert allocate_questions(2, self.POOL) == [[11, 12], [13, 14]]

    def test_policy_accepts_plain_string(self):
        assert allocate_questions(3, self.POOL, "last") == [[11], [12], [13, 14]]

    def test_pool_smaller_than_group(self):
        with pytest.raises(AllocationError):
            allocate_questions(4, [1, 2, 3])

    @pytest.mark.parametrize("size", [1, 5])
    def test_unsupported_size(self, size):
        with pytest.raises(AllocationError):
            allocate_questions(size, self.POOL + [15])
