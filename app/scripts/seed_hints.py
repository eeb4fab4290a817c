"""
Seed Hints Script
Populates the hints table with the riddle pool every group works through.
Run manually before the first game; existing rows are updated in place.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import SupabaseClient
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Answers, in id order, are also the final assembly combination
DEFAULT_HINTS = [
    {
        "id": 1,
        "question": "I have pages but I am not a tree, and shelves but no kitchen. Which building?",
        "answer": "Library",
    },
    {
        "id": 2,
        "question": "Which floor? Count the legs on a bird.",
        "answer": "2",
    },
    {
        "id": 3,
        "question": "Which aisle? Players on a soccer team, plus ten.",
        "answer": "21",
    },
    {
        "id": 4,
        "question": "Which section? The third letter of the alphabet.",
        "answer": "C",
    },
]


def seed_hints(supabase: Client, hints=DEFAULT_HINTS):
    """Insert or update each hint by id"""
    logger.info("Seeding hints...")
    created_count = 0
    updated_count = 0

    for hint in hints:
        try:
            existing = supabase.table("hints")\
                .select("id")\
                .eq("id", hint["id"])\
                .execute()

            if existing.data:
                supabase.table("hints")\
                    .update({"question": hint["question"], "answer": hint["answer"]})\
                    .eq("id", hint["id"])\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated hint: {hint['id']}")
            else:
                supabase.table("hints").insert(hint).execute()
                created_count += 1
                logger.debug(f"Created hint: {hint['id']}")
        except Exception as e:
            logger.error(f"Error seeding hint {hint['id']}: {e}")
            raise

    logger.info(f"Hints seeded: {created_count} created, {updated_count} updated")
    return created_count, updated_count


def main():
    supabase = SupabaseClient.get_service_client()
    seed_hints(supabase)


if __name__ == "__main__":
    main()
