"""
Database helpers for media tracker scripts/services.
"""

from media_tracker.db.supabase import create_supabase_admin_client, create_supabase_user_client

__all__ = [
    "create_supabase_admin_client",
    "create_supabase_user_client",
]
