# Supabase tables: photos
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Photo bytes live in the S3 bucket under s3_key (see s3_storage.py)

"""
Expected Supabase table structure:

photos:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id on delete cascade, not null)
- user_id: uuid (foreign key to users.id on delete set null, nullable)
- s3_key: text (not null) - photos/{epoch-millis}-{file name}
- uploaded_at: timestamp (not null, default: now())
- expires_at: timestamp (not null) - uploaded_at + 7 days unless given

Rows are never updated. Nothing in this service removes expired rows;
expires_at is informational for clients and bucket lifecycle rules.
"""
