"""
Conversion bidireccional fila local <-> propiedades tipadas de Notion.

El FieldMap es la unica fuente de verdad para la coercion de tipos.
Solo se emiten propiedades que existen en el esquema remoto vivo: los
campos aun no reconciliados se omiten en silencio (no es error).
"""

from __future__ import annotations

import math
from typing import Any, Collection, Mapping, Optional

from stocksync.domain.entities import FieldMap, FieldMapping, FieldType
from stocksync.shared.exceptions.sync import MappingError

# Valores de celda que cuentan como falso en columnas booleanas (dropdowns Yes/No).
_FALSY_TOKENS = frozenset({"", "false", "no", "n", "0", "off"})


class RowMapper:
    def __init__(self, field_map: FieldMap) -> None:
        self._field_map = field_map

    @property
    def field_map(self) -> FieldMap:
        return self._field_map

    def to_remote(
        self,
        values: Mapping[str, Any],
        remote_fields: Optional[Collection[str]] = None,
    ) -> dict[str, Any]:
        """
        Construye el dict de propiedades Notion para una fila.

        Args:
            values: columna local -> valor escalar
            remote_fields: nombres de propiedades existentes en Notion; None = sin filtro

        Raises:
            MappingError: si un valor no puede convertirse (p.ej. numero invalido)
        """
        props: dict[str, Any] = {}
        for m in self._field_map:
            if remote_fields is not None and m.remote_name not in remote_fields:
                continue
            props[m.remote_name] = _to_property(m, values.get(m.local_name))
        return props

    def from_remote(self, properties: Mapping[str, Any]) -> dict[str, Any]:
        """
        Convierte propiedades de una pagina Notion en valores de fila.

        Propiedades ausentes se leen como vacio (o False para booleanos).
        """
        row: dict[str, Any] = {}
        for m in self._field_map:
            row[m.local_name] = _from_property(m, properties.get(m.remote_name))
        return row


def _to_property(m: FieldMapping, value: Any) -> dict[str, Any]:
    if m.type is FieldType.TITLE:
        return {"title": [_text_run(_stringify(value))]}

    if m.type is FieldType.TEXT:
        text = _stringify(value)
        return {"rich_text": [_text_run(text)] if text else []}

    if m.type is FieldType.NUMBER:
        return {"number": _to_number(m, value)}

    if m.type is FieldType.BOOLEAN:
        return {"checkbox": _to_bool(value)}

    if m.type is FieldType.SINGLE_CHOICE:
        text = _stringify(value).strip()
        return {"select": {"name": text} if text else None}

    if m.type is FieldType.MULTI_CHOICE:
        names = [token.strip() for token in _stringify(value).split(",")]
        return {"multi_select": [{"name": name} for name in names if name]}

    raise MappingError(m.local_name, value, m.type.value)


def _from_property(m: FieldMapping, prop: Optional[Mapping[str, Any]]) -> Any:
    prop = prop or {}

    if m.type is FieldType.TITLE:
        return _join_runs(prop.get("title"))

    if m.type is FieldType.TEXT:
        return _join_runs(prop.get("rich_text"))

    if m.type is FieldType.NUMBER:
        number = prop.get("number")
        return "" if number is None else number

    if m.type is FieldType.BOOLEAN:
        return bool(prop.get("checkbox"))

    if m.type is FieldType.SINGLE_CHOICE:
        selected = prop.get("select")
        return str(selected.get("name") or "") if selected else ""

    if m.type is FieldType.MULTI_CHOICE:
        return ", ".join(str(opt.get("name") or "") for opt in prop.get("multi_select") or [])

    return ""


def _text_run(content: str) -> dict[str, Any]:
    return {"type": "text", "text": {"content": content}}


def _join_runs(runs: Any) -> str:
    """Concatena los fragmentos de texto (plain_text o text.content)."""
    parts = []
    for run in runs or []:
        if "plain_text" in run:
            parts.append(str(run.get("plain_text") or ""))
        else:
            parts.append(str((run.get("text") or {}).get("content") or ""))
    return "".join(parts)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    # 5.0 leido de la hoja se escribe como "5", no "5.0".
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_number(m: FieldMapping, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MappingError(m.local_name, value, "numero")
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            raise MappingError(m.local_name, value, "numero") from None
    if isinstance(number, float):
        if not math.isfinite(number):
            raise MappingError(m.local_name, value, "numero finito")
        if number.is_integer():
            return int(number)
    return number


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY_TOKENS
    return bool(value)
