# Supabase tables: teams, team_memberships
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL: supabase/migrations/20250601000000_teams_projects_invitations.sql

"""
Expected Supabase table structure:

teams:
- id: uuid (primary key)
- name: text (not null, non-blank)
- owner_user_id: uuid (foreign key to auth.users.id, nullable) - exactly one owner at a time
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

team_memberships:
- team_id: uuid (foreign key to teams.id, on delete cascade)
- user_id: uuid (foreign key to auth.users.id)
- role: team_role enum (owner, admin, member) - same enum as team_invitations.role
- created_at: timestamp (default: now())
- primary key (team_id, user_id)

projects.owner_team_id references teams.id ON DELETE RESTRICT, so a team that
still owns projects cannot be deleted.

RPC create_team_with_owner(p_name, p_owner_user_id) inserts the team and the
owner's membership in one transaction and returns the team row.
"""
