from ridersbud.storage.backends import FileStorage, MemoryStorage, StorageBackend
from ridersbud.storage.database import (
    BusinessRuleError,
    ChangeEvent,
    DatabaseStore,
    RecordNotFoundError,
    SlotUnavailableError,
    StoreError,
)
from ridersbud.storage.seed import get_seed_data

__all__ = [
    "DatabaseStore",
    "ChangeEvent",
    "StorageBackend",
    "FileStorage",
    "MemoryStorage",
    "StoreError",
    "RecordNotFoundError",
    "BusinessRuleError",
    "SlotUnavailableError",
    "get_seed_data",
]
