"""
Database Module
Supabase client and repository implementations for game persistence
"""

from engine.db.gateway import RepositoryGateway
from engine.db.supabase_client import SupabaseClient, get_supabase_client
from engine.db.repositories import (
    GameRepository,
    InMemoryGameRepository,
    SupabaseGameRepository,
)

__all__ = [
    "RepositoryGateway",
    "SupabaseClient",
    "get_supabase_client",
    "GameRepository",
    "InMemoryGameRepository",
    "SupabaseGameRepository",
]
