# Supabase tables: globals, image_claims
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and image_pool.py

"""
Expected Supabase table structure:

globals:
- id: int (primary key) - singleton row, settings.globals_row_id
- game_has_started: bool (default false)
- game_run_id: uuid (nullable) - current allocation run, rotated on stop
- started_at: timestamp (nullable)

image_claims:
- id: bigint (primary key, generated)
- game_run_id: uuid (not null)
- image_name: text (not null)
- created_at: timestamp (default: now())
- unique constraint on (game_run_id, image_name)

The unique constraint makes an image claim transactional: two admin
sessions allocating in the same run cannot both take one picture.
Checkpoint completion counts are derived from groups on read.
"""
