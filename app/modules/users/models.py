# Supabase tables: users, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- name: text (nullable) - display name, set by the "set name" flow
- created_at: timestamp (default: now())

This row is the only place the display name lives. A user without a row, or
with a null name, still needs to pick one (SessionContext.needs_name).
"""
