# Supabase tables: project_treatments, project_business_details, project_design_specs,
# project_functional_specs, project_tech_specs, project_plot_points,
# project_user_scenarios, project_feedback_log
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL: supabase/migrations/20250601000000_teams_projects_invitations.sql

"""
Expected Supabase table structure:

One row per project (unique project_id, on delete cascade), written by upsert
on project_id:

project_treatments:
- tagline, backstory_context, synopsis, characterization_attitude: text (nullable)

project_business_details:
- goals_user, goals_creative, goals_economic, success_indicators,
  target_audience, user_need, business_models: text (nullable)

project_design_specs:
- aesthetic, branding, style_guide, media_styles, assets_list,
  branding_guidelines_intro: text (nullable)

project_functional_specs, project_tech_specs:
- no content columns yet; the row existing means the section was started

Ordered lists (many rows per project):

project_plot_points, project_user_scenarios:
- id: uuid (primary key)
- project_id: uuid
- description: text (not null)
- order_index: integer (number of items when the row was added)

project_feedback_log:
- id: uuid (primary key)
- project_id: uuid
- logged_by_user_id: uuid
- shared_item_description, platform_source, feedback_received: text (not null)
- logged_at: timestamp (default: now())
"""
