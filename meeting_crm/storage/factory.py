"""Select the storage backend from settings."""

from __future__ import annotations

from meeting_crm.config import Settings, StorageBackend
from meeting_crm.storage.base import Storage
from meeting_crm.storage.memory import InMemoryStorage


def build_storage(settings: Settings) -> Storage:
    if settings.storage_backend == StorageBackend.SUPABASE:
        # Imported lazily so the memory backend works without a Supabase project
        from meeting_crm.storage.supabase import SupabaseStorage

        return SupabaseStorage.from_settings(settings)
    return InMemoryStorage()
