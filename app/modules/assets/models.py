# Supabase table: project_assets
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL: supabase/migrations/20250601000000_teams_projects_invitations.sql

"""
Expected Supabase table structure:

project_assets:
- id: uuid (primary key)
- project_id: uuid (foreign key to projects.id, on delete cascade)
- uploaded_by_user_id: uuid
- file_name: text (name as uploaded)
- file_path: text (object key: {project_id}/{category}/{uuid}{ext})
- file_type: text (content type)
- size_bytes: bigint
- asset_category: asset_category_enum
- created_at, updated_at: timestamp

Objects live in S3 when AWS settings are complete, otherwise in the
Supabase Storage bucket named by ASSETS_BUCKET (default project-assets).
"""
