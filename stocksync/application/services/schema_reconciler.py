"""
Reconciliacion de esquema: Notion debe tener una propiedad por cada columna local.

Reglas:
- Una lectura de esquema y como maximo un PATCH por llamada.
- Campos faltantes se crean como rich_text, o checkbox si el mapeo los
  declara booleanos.
- Idempotente: sin cambios locales, la segunda ejecucion no escribe nada.
- Cualquier error de API aborta (SchemaError); el caller no debe sincronizar
  con un esquema posiblemente incompleto.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from loguru import logger

from stocksync.application.interfaces.remote_api import RemoteApiError, RemoteDocumentApi
from stocksync.domain.entities import FieldMap, FieldType
from stocksync.shared.exceptions.sync import SchemaError


def plan_missing_fields(
    local_field_names: Iterable[str],
    remote_schema: Mapping[str, str],
    field_map: FieldMap,
) -> dict[str, str]:
    """
    Calcula las propiedades a agregar: {nombre_remoto: tipo_notion}.

    Excluye el title y las columnas de metadatos. Columnas no mapeadas
    conservan su propio nombre.
    """
    excluded = {field_map.title.local_name, *field_map.meta.names()}
    missing: dict[str, str] = {}
    for local_name in local_field_names:
        if not local_name or local_name in excluded:
            continue
        mapping = field_map.by_local_name(local_name)
        remote_name = mapping.remote_name if mapping else local_name
        if remote_name in remote_schema or remote_name in missing:
            continue
        is_boolean = mapping is not None and mapping.type is FieldType.BOOLEAN
        missing[remote_name] = FieldType.BOOLEAN.remote_type if is_boolean else FieldType.TEXT.remote_type
    return missing


@dataclass(frozen=True)
class MappingCheck:
    """Resultado de validar el mapeo contra el esquema remoto."""

    found: list[str]
    missing: list[str]
    title_ok: bool

    @property
    def ok(self) -> bool:
        return self.title_ok and not self.missing


class SchemaReconciler:
    def __init__(self, *, client: RemoteDocumentApi, database_id: str, field_map: FieldMap) -> None:
        self._client = client
        self._database_id = database_id
        self._field_map = field_map

    def read_schema(self) -> dict[str, str]:
        try:
            return self._client.get_schema(self._database_id)
        except RemoteApiError as e:
            raise SchemaError(f"No se pudo leer el esquema de Notion: {e}", self._database_id) from e

    def reconcile(self, local_field_names: Iterable[str]) -> list[str]:
        """
        Agrega en Notion las propiedades faltantes.

        Returns:
            Nombres remotos agregados (vacio si no hubo cambios).
        """
        remote_schema = self.read_schema()
        missing = plan_missing_fields(local_field_names, remote_schema, self._field_map)
        if not missing:
            logger.info(f"Esquema Notion al dia para '{self._field_map.table_name}'")
            return []

        try:
            self._client.patch_schema(self._database_id, missing)
        except RemoteApiError as e:
            raise SchemaError(f"No se pudieron agregar propiedades en Notion: {e}", self._database_id) from e

        added = list(missing)
        logger.info(f"Propiedades agregadas en Notion ({len(added)}): {', '.join(added)}")
        return added

    def check_mapping(self) -> MappingCheck:
        """
        Valida que cada propiedad mapeada exista en Notion (solo lectura).
        """
        remote_names = set(self.read_schema())
        found: list[str] = []
        missing: list[str] = []
        for m in self._field_map:
            (found if m.remote_name in remote_names else missing).append(m.remote_name)
        title_ok = self._field_map.title.remote_name in remote_names
        if missing:
            logger.warning(f"Propiedades mapeadas ausentes en Notion: {', '.join(missing)}")
        return MappingCheck(found=found, missing=missing, title_ok=title_ok)
