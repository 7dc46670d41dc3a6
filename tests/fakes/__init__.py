"""Shared test doubles: re-export memory backends."""

from __future__ import annotations

from ddbexport.persistence.memory_backend import (
    MemoryBackupLocator,
    MemoryCacheBackend,
    MemoryExporter,
)

__all__ = ["MemoryBackupLocator", "MemoryCacheBackend", "MemoryExporter"]
