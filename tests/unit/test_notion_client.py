"""
Tests unitarios para NotionClient con una sesion HTTP falsa (sin red).
"""
from __future__ import annotations

from typing import Any, Optional
from unittest.mock import patch

import pytest
import requests

from stocksync.application.interfaces.remote_api import RemoteApiError
from stocksync.application.use_cases.sync_use_cases import SyncUseCases
from stocksync.infrastructure.external.notion.notion_client import (
    NotionApiError,
    NotionClient,
    NotionCredentials,
)
from stocksync.shared.utils.throttle import RequestThrottle


class _FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, headers: Optional[dict] = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = text
        self.content = b"" if payload is None and not text else b"x"

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    def __init__(self, responses: list) -> None:
        self._responses = list(responses)
        self.requests: list[dict] = []

    def request(self, **kwargs):
        self.requests.append(kwargs)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _client(session: _FakeSession, **kwargs) -> NotionClient:
    return NotionClient(
        NotionCredentials(token="secret_abc"),
        session=session,
        base_url="https://api.notion.test/v1/",
        **kwargs,
    )


class TestRequests:
    def test_sends_auth_and_version_headers(self) -> None:
        session = _FakeSession([_FakeResponse(200, {"properties": {}})])

        _client(session).get_schema("db-1")

        sent = session.requests[0]
        assert sent["method"] == "GET"
        assert sent["url"] == "https://api.notion.test/v1/databases/db-1"
        assert sent["headers"]["Authorization"] == "Bearer secret_abc"
        assert sent["headers"]["Notion-Version"] == "2022-06-28"

    def test_get_schema_returns_property_types(self) -> None:
        payload = {"properties": {"Name": {"type": "title"}, "SKU": {"type": "rich_text"}}}
        session = _FakeSession([_FakeResponse(200, payload)])

        assert _client(session).get_schema("db-1") == {"Name": "title", "SKU": "rich_text"}

    def test_patch_schema_body(self) -> None:
        session = _FakeSession([_FakeResponse(200, {})])

        _client(session).patch_schema("db-1", {"SKU": "rich_text", "Active": "checkbox"})

        assert session.requests[0]["method"] == "PATCH"
        assert session.requests[0]["json"] == {"properties": {"SKU": {"rich_text": {}}, "Active": {"checkbox": {}}}}

    def test_create_page_returns_id(self) -> None:
        session = _FakeSession([_FakeResponse(200, {"id": "page-123"})])

        page_id = _client(session).create_page("db-1", {"Name": {"title": []}})

        assert page_id == "page-123"
        assert session.requests[0]["json"]["parent"] == {"database_id": "db-1"}

    def test_create_page_without_id_raises(self) -> None:
        session = _FakeSession([_FakeResponse(200, {"object": "page"})])

        with pytest.raises(NotionApiError):
            _client(session).create_page("db-1", {})

    def test_query_database_cursor(self) -> None:
        payload = {"results": [{"id": "p1"}], "has_more": True, "next_cursor": "abc"}
        session = _FakeSession([_FakeResponse(200, payload)])

        page = _client(session).query_database("db-1", page_size=50, start_cursor="xyz")

        assert session.requests[0]["json"] == {"page_size": 50, "start_cursor": "xyz"}
        assert page.results == [{"id": "p1"}]
        assert page.has_more is True
        assert page.next_cursor == "abc"


class TestErrors:
    def test_non_2xx_parses_error_body(self) -> None:
        body = {"object": "error", "code": "validation_error", "message": "Cost is expected to be number."}
        session = _FakeSession([_FakeResponse(400, body)])

        with pytest.raises(NotionApiError) as exc:
            _client(session).update_page("page-1", {})

        assert exc.value.status_code == 400
        assert exc.value.code == "validation_error"
        assert "Cost is expected to be number." in str(exc.value)
        assert len(session.requests) == 1

    def test_server_errors_are_not_retried(self) -> None:
        session = _FakeSession([_FakeResponse(503, None, text="unavailable"), _FakeResponse(200, {})])

        with pytest.raises(NotionApiError) as exc:
            _client(session).update_page("page-1", {})

        assert exc.value.status_code == 503
        assert len(session.requests) == 1

    def test_transport_error_is_wrapped(self) -> None:
        session = _FakeSession([requests.ConnectionError("reset")])

        with pytest.raises(NotionApiError) as exc:
            _client(session).get_schema("db-1")

        assert exc.value.status_code is None

    @patch("stocksync.infrastructure.external.notion.notion_client.time.sleep")
    def test_rate_limit_retries_with_retry_after(self, mock_sleep) -> None:
        session = _FakeSession(
            [
                _FakeResponse(429, {"code": "rate_limited"}, headers={"Retry-After": "2"}),
                _FakeResponse(200, {"id": "page-1"}),
            ]
        )

        assert _client(session).create_page("db-1", {}) == "page-1"
        mock_sleep.assert_called_once_with(2.0)
        assert len(session.requests) == 2

    @patch("stocksync.infrastructure.external.notion.notion_client.time.sleep")
    def test_rate_limit_gives_up_after_max_retries(self, mock_sleep) -> None:
        session = _FakeSession([_FakeResponse(429, {"code": "rate_limited"}) for _ in range(3)])

        with pytest.raises(NotionApiError) as exc:
            _client(session, max_retries=2, min_backoff_s=0.5).update_page("page-1", {})

        assert exc.value.status_code == 429
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]


class _LoggingSession(_FakeSession):
    """Sesion falsa que registra cada request en un log compartido."""

    def __init__(self, responses: list, log: list[str]) -> None:
        super().__init__(responses)
        self._log = log

    def request(self, **kwargs):
        path = kwargs["url"].replace("https://api.notion.test/v1", "")
        self._log.append(f"{kwargs['method']} {path}")
        return super().request(**kwargs)


def _spaced_client(responses: list, log: list[str]) -> NotionClient:
    throttle = RequestThrottle(0.35, clock=lambda: 100.0, sleep=lambda s: log.append(f"WAIT {s}"))
    return _client(_LoggingSession(responses, log), throttle=throttle)


class TestRequestSpacing:
    def test_every_request_is_spaced(self) -> None:
        log: list[str] = []
        client = _spaced_client(
            [
                _FakeResponse(200, {"properties": {}}),
                _FakeResponse(200, {}),
                _FakeResponse(200, {"properties": {}}),
                _FakeResponse(200, {"id": "page-1"}),
                _FakeResponse(200, {"results": [], "has_more": False, "next_cursor": None}),
            ],
            log,
        )

        client.get_schema("db-1")
        client.patch_schema("db-1", {"SKU": "rich_text"})
        client.get_schema("db-1")
        client.create_page("db-1", {})
        client.query_database("db-1")

        assert log == [
            "GET /databases/db-1",
            "WAIT 0.35",
            "PATCH /databases/db-1",
            "WAIT 0.35",
            "GET /databases/db-1",
            "WAIT 0.35",
            "POST /pages",
            "WAIT 0.35",
            "POST /databases/db-1/query",
        ]

    @patch("stocksync.infrastructure.external.notion.notion_client.time.sleep")
    def test_retry_after_429_is_also_spaced(self, mock_sleep) -> None:
        log: list[str] = []
        client = _spaced_client(
            [_FakeResponse(429, {"code": "rate_limited"}, headers={"Retry-After": "1"}), _FakeResponse(200, {})],
            log,
        )

        client.update_page("page-1", {})

        assert log == ["PATCH /pages/page-1", "WAIT 0.35", "PATCH /pages/page-1"]

    def test_fresh_push_spaces_schema_and_page_requests(
        self, widget_map, widget_store, run_state, scheduler
    ) -> None:
        log: list[str] = []
        schema = {
            "properties": {
                "Name": {"type": "title"},
                "SKU": {"type": "rich_text"},
                "Cost": {"type": "number"},
            }
        }
        client = _spaced_client(
            [
                _FakeResponse(200, schema),
                _FakeResponse(200, {}),
                _FakeResponse(200, {"properties": {**schema["properties"], "Active": {"type": "checkbox"}}}),
                _FakeResponse(200, {"id": "page-1"}),
            ],
            log,
        )
        use_cases = SyncUseCases(
            store=widget_store([{"title": "a"}]),
            client=client,
            database_id="db-1",
            field_map=widget_map,
            run_state=run_state,
            scheduler=scheduler,
        )

        assert use_cases.push_fresh().startswith("Push completado (1 fila(s))")
        assert log == [
            "GET /databases/db-1",
            "WAIT 0.35",
            "PATCH /databases/db-1",
            "WAIT 0.35",
            "GET /databases/db-1",
            "WAIT 0.35",
            "POST /pages",
        ]


class TestResponseBodies:
    def test_2xx_without_json_is_a_notion_error(self) -> None:
        session = _FakeSession([_FakeResponse(200, None, text="<html>gateway</html>")])

        with pytest.raises(NotionApiError) as exc:
            _client(session).get_schema("db-1")

        assert exc.value.status_code == 200

    def test_2xx_with_non_object_json_is_a_notion_error(self) -> None:
        session = _FakeSession([_FakeResponse(200, ["no", "es", "objeto"])])

        with pytest.raises(NotionApiError):
            _client(session).get_schema("db-1")

    def test_2xx_empty_body_is_empty_payload(self) -> None:
        session = _FakeSession([_FakeResponse(200)])

        _client(session).update_page("page-1", {})

        assert len(session.requests) == 1

    def test_notion_errors_are_remote_api_errors(self) -> None:
        assert issubclass(NotionApiError, RemoteApiError)
