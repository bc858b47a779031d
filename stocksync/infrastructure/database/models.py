"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from stocksync.infrastructure.database.session import Base


class SyncRunStateModel(Base):
    """
    Estado key-value de corridas de sync.

    Claves tipicas (prefijadas con el run key):
    - push_cursor_row
    - push_target_rows_json
    - push_counts_json
    - push_stop_requested
    """

    __tablename__ = "sync_run_state"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SyncRunState(key={self.key})>"
