# Supabase table: team_invitations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL: supabase/migrations/20250601000000_teams_projects_invitations.sql

"""
Expected Supabase table structure:

team_invitations:
- id: uuid (primary key)
- team_id: uuid (foreign key to teams.id, on delete cascade)
- invited_by_user_id: uuid (foreign key to auth.users.id)
- invited_user_email: text (stored lower case)
- role: team_role enum (admin, member; owner is never invited)
- status: text (pending, accepted, declined, revoked, expired)
- token: text (unique, secrets.token_urlsafe(32))
- created_at: timestamp (default: now())
- expires_at: timestamp
- accepted_at: timestamp (nullable)
- accepted_by_user_id: uuid (nullable)

At most one pending row per (team_id, lower(invited_user_email)).

RPC transition_team_invitation(p_invitation_id, p_from_status, p_to_status,
p_acting_user_id) locks the row and moves it from p_from_status to
p_to_status only if it still holds p_from_status. For p_to_status='accepted'
it also requires expires_at > now() and inserts the membership in the same
transaction. Returns one row (applied, current_status, membership_created).
"""
