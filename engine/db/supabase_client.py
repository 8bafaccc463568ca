"""
Supabase Client
Connection management for the Supabase database
"""

from typing import Optional

from supabase import Client, create_client


class SupabaseClient:
    """
    Wrapper for Supabase client with connection management.
    """

    def __init__(self, url: str, key: str):
        """
        Initialize Supabase client.

        Args:
            url: Supabase project URL
            key: Supabase API key
        """
        if not url or not key:
            raise ValueError(
                "Supabase URL and key are required. "
                "Set SUPABASE_URL and SUPABASE_KEY environment variables."
            )

        self.url = url
        self._client: Client = create_client(url, key)

    @property
    def client(self) -> Client:
        """Get the Supabase client"""
        return self._client

    def table(self, name: str):
        """Get a table reference"""
        return self._client.table(name)

    def rpc(self, func_name: str, params: Optional[dict] = None):
        """Call a database function"""
        return self._client.rpc(func_name, params or {})


# Global client instance
_supabase_client: Optional[SupabaseClient] = None


def get_supabase_client(url: str, key: str, force_new: bool = False) -> SupabaseClient:
    """
    Get or create Supabase client singleton.

    Args:
        url: Supabase URL
        key: Supabase key
        force_new: Force create new client

    Returns:
        SupabaseClient instance
    """
    global _supabase_client

    if _supabase_client is None or force_new:
        _supabase_client = SupabaseClient(url, key)

    return _supabase_client
