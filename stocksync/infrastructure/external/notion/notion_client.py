"""
Cliente minimo de Notion REST API (sin SDKs externos).

Requisitos cubiertos:
- requests
- bearer token + header Notion-Version fijo
- paginacion por start_cursor / next_cursor
- intervalo minimo entre requests consecutivos (RequestThrottle)
- rate-limit: solo 429 se reintenta (respeta Retry-After)
- errores no-2xx con cuerpo JSON parseado a NotionApiError
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import requests
from loguru import logger

from stocksync.application.interfaces.remote_api import QueryPage, RemoteApiError
from stocksync.shared.utils.throttle import RequestThrottle


DEFAULT_NOTION_VERSION = "2022-06-28"


@dataclass(frozen=True)
class NotionCredentials:
    token: str
    notion_version: str = DEFAULT_NOTION_VERSION


class NotionApiError(RemoteApiError):
    """Error de integracion con Notion (respuesta no-2xx o fallo de transporte)."""


class NotionClient:
    """
    Cliente HTTP de Notion.

    Importante:
    - No convierte tipos de propiedades: eso lo decide el RowMapper.
    - Todo request (esquema, paginas, consultas y reintentos) pasa por el
      throttle, asi dos llamadas consecutivas nunca salen pegadas.
    """

    def __init__(
        self,
        credentials: NotionCredentials,
        *,
        session: Optional[requests.Session] = None,
        throttle: Optional[RequestThrottle] = None,
        base_url: str = "https://api.notion.com/v1",
        timeout_s: int = 30,
        max_retries: int = 3,
        min_backoff_s: float = 1.0,
        max_backoff_s: float = 20.0,
    ) -> None:
        self._creds = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._session = session or requests.Session()
        self._throttle = throttle or RequestThrottle(0)

    # ------------------------------------------------------------------
    # Esquema
    # ------------------------------------------------------------------

    def get_schema(self, database_id: str) -> dict[str, str]:
        """
        Retorna {nombre_propiedad: tipo} de la base de datos.
        """
        payload = self._request_json("GET", f"/databases/{database_id}")
        props = payload.get("properties") or {}
        return {name: str((prop or {}).get("type") or "") for name, prop in props.items()}

    def patch_schema(self, database_id: str, fields: dict[str, str]) -> None:
        """
        Agrega propiedades a la base de datos.

        fields: {nombre: tipo_notion}, p.ej. {"SKU": "rich_text", "Activo": "checkbox"}
        """
        body = {"properties": {name: {remote_type: {}} for name, remote_type in fields.items()}}
        self._request_json("PATCH", f"/databases/{database_id}", body=body)

    # ------------------------------------------------------------------
    # Paginas
    # ------------------------------------------------------------------

    def create_page(self, database_id: str, properties: dict[str, Any]) -> str:
        """Crea una pagina en la base de datos y retorna su id."""
        body = {"parent": {"database_id": database_id}, "properties": properties}
        payload = self._request_json("POST", "/pages", body=body)
        page_id = payload.get("id")
        if not page_id:
            # Sin id no se puede escribir el remote id de vuelta en la hoja.
            raise NotionApiError("Notion devolvio una pagina creada sin 'id'")
        return str(page_id)

    def update_page(self, page_id: str, properties: dict[str, Any]) -> None:
        self._request_json("PATCH", f"/pages/{page_id}", body={"properties": properties})

    def query_database(
        self,
        database_id: str,
        *,
        page_size: int = 100,
        start_cursor: Optional[str] = None,
    ) -> QueryPage:
        body: dict[str, Any] = {"page_size": page_size}
        if start_cursor:
            body["start_cursor"] = start_cursor
        payload = self._request_json("POST", f"/databases/{database_id}/query", body=body)
        return QueryPage(
            results=list(payload.get("results") or []),
            has_more=bool(payload.get("has_more")),
            next_cursor=payload.get("next_cursor"),
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        body: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Request HTTP con backoff solo para 429.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial simple.
        - Cualquier otro no-2xx: error inmediato (el caller decide si es fatal
          o un error de fila).
        - Fallo de transporte (timeout, conexion): NotionApiError sin status.
        """
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._creds.token}",
            "Notion-Version": self._creds.notion_version,
            "Content-Type": "application/json",
        }

        for attempt in range(self._max_retries + 1):
            self._throttle.wait()
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    json=body,
                    headers=headers,
                    timeout=self._timeout_s,
                )
            except requests.RequestException as e:
                raise NotionApiError(f"Fallo de transporte en {method} {path}: {e}") from e

            if 200 <= resp.status_code < 300:
                return _json_body(method, path, resp)

            if resp.status_code == 429 and attempt < self._max_retries:
                sleep_s = self._retry_after(resp, attempt)
                logger.warning(f"Notion rate limit (429) en {method} {path}; reintento en {sleep_s:.1f}s")
                time.sleep(sleep_s)
                continue

            raise _error_from_response(method, path, resp)

        # Inalcanzable: el loop retorna o lanza.
        raise NotionApiError(f"Notion {method} {path}: reintentos agotados")

    def _retry_after(self, resp: requests.Response, attempt: int) -> float:
        retry_after = resp.headers.get("Retry-After")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                return self._min_backoff_s
        return min(self._max_backoff_s, self._min_backoff_s * (2**attempt))


def _error_from_response(method: str, path: str, resp: requests.Response) -> NotionApiError:
    """Construye NotionApiError desde el cuerpo de error JSON de Notion."""
    code: Optional[str] = None
    message = resp.text
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        code = data.get("code")
        message = data.get("message") or message
    return NotionApiError(
        f"Notion {method} {path} fallo {resp.status_code}: {message}",
        status_code=resp.status_code,
        code=code,
    )


def _json_body(method: str, path: str, resp: requests.Response) -> dict[str, Any]:
    """Cuerpo JSON de una respuesta 2xx; vacio -> {}."""
    if not resp.content:
        return {}
    try:
        data = resp.json()
    except ValueError as e:
        raise NotionApiError(
            f"Notion {method} {path} respondio {resp.status_code} sin JSON valido",
            status_code=resp.status_code,
        ) from e
    if not isinstance(data, dict):
        raise NotionApiError(
            f"Notion {method} {path} respondio {resp.status_code} con un cuerpo inesperado",
            status_code=resp.status_code,
        )
    return data
