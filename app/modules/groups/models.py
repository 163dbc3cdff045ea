# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key, default: gen_random_uuid())
- join_code: text (not null, unique) - 6 chars, stored upper-case
- group_name: text (not null)
- created_at: timestamp (default: now())

group_members:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (foreign key to users.id, not null)
- group_id: uuid (foreign key to groups.id on delete cascade, not null)
- created_at: timestamp (default: now())
- unique constraint on (user_id, group_id)

The unique constraint on groups.join_code is what makes code issuance safe:
GroupService inserts directly and retries with a fresh code on a 23505
violation instead of probing for the code first.
"""
