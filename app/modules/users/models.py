# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, default: gen_random_uuid())
- email: text (unique, not null)
- name: text (not null)
- major: text (nullable)
- selfie_url: text (nullable) - public URL in the selfies bucket
- created_at: timestamp (default: now())

Rows are written once at registration and never edited afterwards.
Groups reference users by id only.
"""
