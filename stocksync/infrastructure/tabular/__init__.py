"""
Adaptadores de hoja de calculo (Tabular Store).
"""
from .memory_store import InMemoryTabularStore
from .workbook_store import WorkbookTabularStore

__all__ = ["InMemoryTabularStore", "WorkbookTabularStore"]
