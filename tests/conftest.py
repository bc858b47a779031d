"""
Configuracion de fixtures para pytest.

Sin red: Notion se reemplaza por un fake en memoria y el scheduler por
uno que solo registra las continuaciones pedidas.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from stocksync.application.interfaces.remote_api import QueryPage
from stocksync.domain.entities import FieldMap, FieldMapping, FieldType
from stocksync.infrastructure.external.notion.notion_client import NotionApiError
from stocksync.infrastructure.repositories.run_state_repository import (
    InMemoryRunStateStore,
    PushRunStateRepository,
)
from stocksync.infrastructure.tabular.memory_store import InMemoryTabularStore


class FakeNotionClient:
    """Base Notion en memoria con registro de llamadas."""

    def __init__(self, schema: Optional[dict[str, str]] = None) -> None:
        self.schema: dict[str, str] = dict(schema or {})
        self.pages: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.schema_error: Optional[Exception] = None
        # Decide si un create/update falla, a partir de las propiedades enviadas.
        self.fail_when: Optional[Callable[[dict[str, Any]], bool]] = None
        self._next_id = 1

    def get_schema(self, database_id: str) -> dict[str, str]:
        self.calls.append(("get_schema", database_id))
        if self.schema_error:
            raise self.schema_error
        return dict(self.schema)

    def patch_schema(self, database_id: str, fields: dict[str, str]) -> None:
        self.calls.append(("patch_schema", dict(fields)))
        self.schema.update(fields)

    def create_page(self, database_id: str, properties: dict[str, Any]) -> str:
        self.calls.append(("create_page", properties))
        self._maybe_fail(properties)
        page_id = f"page-{self._next_id}"
        self._next_id += 1
        self.pages[page_id] = properties
        return page_id

    def update_page(self, page_id: str, properties: dict[str, Any]) -> None:
        self.calls.append(("update_page", page_id))
        self._maybe_fail(properties)
        self.pages.setdefault(page_id, {}).update(properties)

    def query_database(
        self,
        database_id: str,
        *,
        page_size: int = 100,
        start_cursor: Optional[str] = None,
    ) -> QueryPage:
        self.calls.append(("query_database", start_cursor))
        items = [{"id": pid, "properties": props} for pid, props in self.pages.items()]
        start = int(start_cursor or 0)
        chunk = items[start : start + page_size]
        end = start + len(chunk)
        has_more = end < len(items)
        return QueryPage(results=chunk, has_more=has_more, next_cursor=str(end) if has_more else None)

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def _maybe_fail(self, properties: dict[str, Any]) -> None:
        if self.fail_when and self.fail_when(properties):
            raise NotionApiError("Notion POST /pages fallo 400: validation_error", status_code=400)


class RecordingScheduler:
    """ContinuationScheduler que solo registra lo pedido."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[float, str]] = []
        self.cancelled: list[str] = []
        self.pending: set[str] = set()

    def schedule(self, delay_s: float, operation_id: str) -> None:
        self.scheduled.append((delay_s, operation_id))
        self.pending.add(operation_id)

    def cancel(self, operation_id: str) -> bool:
        self.cancelled.append(operation_id)
        if operation_id in self.pending:
            self.pending.discard(operation_id)
            return True
        return False


@pytest.fixture
def widget_map() -> FieldMap:
    """Mapeo chico: title + texto + numero + booleano."""
    return FieldMap(
        table_name="Widgets",
        mappings=(
            FieldMapping("title", "Name", FieldType.TITLE),
            FieldMapping("sku", "SKU", FieldType.TEXT),
            FieldMapping("cost", "Cost", FieldType.NUMBER),
            FieldMapping("active", "Active", FieldType.BOOLEAN),
        ),
    )


@pytest.fixture
def remote_schema() -> dict[str, str]:
    return {"Name": "title", "SKU": "rich_text", "Cost": "number", "Active": "checkbox"}


@pytest.fixture
def fake_client(remote_schema) -> FakeNotionClient:
    return FakeNotionClient(remote_schema)


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def run_state() -> PushRunStateRepository:
    return PushRunStateRepository(InMemoryRunStateStore(), "Widgets:db-1")


@pytest.fixture
def widget_store(widget_map) -> Callable[..., InMemoryTabularStore]:
    """Factory: hoja con encabezados del mapeo y las filas dadas."""
    def build(rows: list[dict[str, Any]]) -> InMemoryTabularStore:
        return InMemoryTabularStore(widget_map.sheet_headers(), rows)

    return build
