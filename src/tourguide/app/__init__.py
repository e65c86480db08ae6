"""Application layer: settings, completion persistence and tour bootstrap."""

from .settings import TourSettings  # noqa: F401
from .completion_store import (  # noqa: F401
    CompletionStore,
    JsonCompletionStore,
    MemoryCompletionStore,
)

__all__ = [
    "TourSettings",
    "CompletionStore",
    "JsonCompletionStore",
    "MemoryCompletionStore",
]
