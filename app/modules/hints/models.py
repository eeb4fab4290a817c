# Supabase table: hints
# Static reference data, read-only at runtime. Seeded by app/scripts/seed_hints.py

"""
Expected Supabase table structure:

hints:
- id: int (primary key)
- question: text (not null)
- answer: text (not null) - integer answers are stored as digits, e.g. "21"

The pool is small (four riddles by default) and every group gets all of it.
Groups store hint ids in user{n}_questions.
"""
