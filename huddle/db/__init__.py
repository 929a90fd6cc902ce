"""Store interface and its Supabase implementation."""

from huddle.db.store import Store
from huddle.db.supabase import SupabaseClient, SupabaseStore, get_supabase_client

__all__ = ["Store", "SupabaseClient", "SupabaseStore", "get_supabase_client"]
