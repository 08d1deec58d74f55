"""Session memory and mastery forecasting."""

from memory.schema import MemoryUpdate, MasteryForecast, SessionMemoryRecord
from memory.service import (
    InvalidMemoryInput,
    InvalidMemoryUpdate,
    InvalidSessionId,
    MemoryService,
    get_service,
)

__all__ = [
    "InvalidMemoryInput",
    "InvalidMemoryUpdate",
    "InvalidSessionId",
    "MasteryForecast",
    "MemoryService",
    "MemoryUpdate",
    "SessionMemoryRecord",
    "get_service",
]
