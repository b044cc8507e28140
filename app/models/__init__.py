from .base import Base
from .client_storage import StorageEntry

__all__ = [
    "Base",
    "StorageEntry",
]
