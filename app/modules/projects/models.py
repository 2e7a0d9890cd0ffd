# Supabase table: projects
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL: supabase/migrations/20250601000000_teams_projects_invitations.sql

"""
Expected Supabase table structure:

projects:
- id: uuid (primary key)
- name: text (not null, non-blank)
- owner_team_id: uuid (foreign key to teams.id, on delete restrict)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Every project document table (project_treatments, project_plot_points,
project_assets, ...) references projects.id with on delete cascade.
"""
