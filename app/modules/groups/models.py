# Supabase table: groups
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: bigint (primary key, generated)
- game_run_id: uuid (nullable) - run that created the group
- user_id_1 .. user_id_4: uuid (nullable, references users.id)
  filled contiguously from slot 1; group size = number of non-null slots
- user1_questions .. user4_questions: int[] (default '{}') - hint ids per slot
- user1_progress .. user4_progress: int (default 0) - answered questions per slot
- user1_solved .. user4_solved: bool (default false)
- photo_url: text (nullable)
- found: bool (default false) - face match done
- location_is_solved: bool (default false) - every filled slot solved
- final_is_solved: bool (default false) - final assembly submitted
- qr_is_solved: bool (default false) - final QR scanned
- created_at: timestamp (default: now())

Every slot keeps its own columns so two members finishing at the same time
patch different fields. Each group-level flag only ever goes false -> true
through a guarded update (eq(flag, false)).
"""

MAX_SLOTS = 4


def user_id_column(slot: int) -> str:
    return f"user_id_{slot}"


def questions_column(slot: int) -> str:
    return f"user{slot}_questions"


def progress_column(slot: int) -> str:
    return f"user{slot}_progress"


def solved_column(slot: int) -> str:
    return f"user{slot}_solved"
