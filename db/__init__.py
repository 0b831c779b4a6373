"""Supabase access to bookings, transactions, accounts, employees and logs."""

from .supabase_client import SupabaseClient, get_db_client

__all__ = ["SupabaseClient", "get_db_client"]
