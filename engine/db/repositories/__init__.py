"""
Repository Pattern Implementations
"""

from engine.db.repositories.base import GameRepository
from engine.db.repositories.memory import InMemoryGameRepository
from engine.db.repositories.supabase import SupabaseGameRepository

__all__ = ["GameRepository", "InMemoryGameRepository", "SupabaseGameRepository"]
