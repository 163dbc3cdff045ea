# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - User login and session management
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users
- auth.on_auth_state_change() - (event, session) notifications

The display name is NOT kept in user_metadata. Its single source of truth
is the public users table (see app/modules/users/models.py); sign-up writes
the name there.
"""
