# Supabase Auth
# This module uses Supabase's built-in authentication system.
# Identity is external: the application only ever stores auth.users.id
# (as user_id / owner_user_id / invited_by_user_id / accepted_by_user_id)
# and compares e-mail addresses when an invitation is accepted.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (full_name kept in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user(jwt) - Resolve the caller from a Bearer token
- auth.sign_out() - Logout users
"""
