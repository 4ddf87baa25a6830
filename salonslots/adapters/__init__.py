"""
Adapters layer - Salon data stores and notification sinks.
"""

from .log_notifier import LogNotifier
from .memory_store import InMemorySalonStore, load_appointments
from .supabase_store import SupabaseSalonStore

__all__ = ["InMemorySalonStore", "LogNotifier", "SupabaseSalonStore", "load_appointments"]
