"""
Tests unitarios para la cola de ediciones sobre la hoja de productos.
"""
from __future__ import annotations

import pytest

from stocksync.application.services.canonicalizer import Canonicalizer
from stocksync.application.services.edits_applier import EditsApplier
from stocksync.domain.entities import Edit, EditOutcome
from stocksync.infrastructure.external.notion.table_mappings import (
    CANONICAL_COLUMNS,
    MANUFACTURER_ALIASES,
    products_field_map,
)
from stocksync.infrastructure.tabular.memory_store import InMemoryTabularStore


@pytest.fixture
def products_store() -> InMemoryTabularStore:
    field_map = products_field_map()
    return InMemoryTabularStore(
        field_map.sheet_headers(),
        [
            {"Item ID": "1001", "Item Name": "Pantalla iPhone 12", "SKU": "SCR-IP12", "UPC": "111", "Manufacturer": "Apple",
             "__page_id": "p-1", "__status": "updated", "__last_pushed_at": "2025-01-01T00:00:00+00:00"},
            {"Item ID": "1002", "Item Name": "Bateria S21", "SKU": "BAT-S21", "UPC": "222", "Retail Price": "49"},
            {"Item ID": "SCR-IP12", "Item Name": "Duplicado por Item ID", "SKU": "", "UPC": "333"},
        ],
    )


@pytest.fixture
def applier(products_store) -> EditsApplier:
    return EditsApplier(
        store=products_store,
        field_map=products_field_map(),
        canonicalizer=Canonicalizer(MANUFACTURER_ALIASES),
        canonical_columns=CANONICAL_COLUMNS,
    )


def test_set_by_sku_marks_row_dirty(applier, products_store) -> None:
    report = applier.apply([Edit(key="SCR-IP12", column="Retail Price", new_value="89")])

    assert report.results[0].outcome is EditOutcome.APPLIED
    assert report.results[0].position == 1
    row = products_store.read_row(1)
    assert row["Retail Price"] == "89"
    assert row["__status"] == "dirty"
    assert row["__last_pushed_at"] == ""


def test_key_resolution_order(applier) -> None:
    """SKU gana sobre Item ID; luego UPC; al final la columna titulo."""
    report = applier.apply(
        [
            Edit(key="SCR-IP12", column="Color", new_value="Negro"),
            Edit(key="222", column="Color", new_value="Azul"),
            Edit(key="1002", column="Size", new_value="M"),
        ]
    )

    assert [r.position for r in report.results] == [1, 2, 2]


def test_canonical_columns_are_normalized(applier, products_store) -> None:
    report = applier.apply([Edit(key="BAT-S21", column="Manufacturer", new_value="  samsung   electronics ")])

    assert report.results[0].outcome is EditOutcome.APPLIED
    assert products_store.read_row(2)["Manufacturer"] == "Samsung"


def test_outcomes(applier) -> None:
    report = applier.apply(
        [
            Edit(key="", column="Color", new_value="x"),
            Edit(key="BAT-S21", column="No Existe", new_value="x"),
            Edit(key="ZZZ", column="Color", new_value="x"),
            Edit(key="BAT-S21", column="Color", new_value="x", action="delete"),
            Edit(key="BAT-S21", column="Retail Price", new_value=49),
            Edit(key="BAT-S21", column="__status", new_value="created"),
        ]
    )

    assert [r.outcome for r in report.results] == [
        EditOutcome.ERROR,
        EditOutcome.BAD_COLUMN,
        EditOutcome.NO_MATCH,
        EditOutcome.ERROR,
        EditOutcome.NO_CHANGE,
        EditOutcome.BAD_COLUMN,
    ]
    assert report.count(EditOutcome.ERROR) == 2
    assert "errors 2" in report.summary()


def test_only_blank_or_ready_edits_are_processed(applier, products_store) -> None:
    report = applier.apply(
        [
            Edit(key="BAT-S21", column="Color", new_value="Rojo", status="applied"),
            Edit(key="BAT-S21", column="Size", new_value="L", status=" READY "),
        ]
    )

    assert report.ignored == 1
    assert len(report.results) == 1
    row = products_store.read_row(2)
    assert row["Color"] == ""
    assert row["Size"] == "L"
