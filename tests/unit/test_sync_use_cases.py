"""
Tests unitarios para SyncUseCases y su construccion desde Settings.
"""
from __future__ import annotations

import pytest

from stocksync.application.interfaces.scheduler import PUSH_RESUME_OPERATION
from stocksync.application.use_cases.sync_use_cases import SyncUseCases, build_from_settings
from stocksync.core.config import Settings
from stocksync.domain.entities import Edit, EditOutcome
from stocksync.shared.exceptions.sync import ConfigurationError


@pytest.fixture
def make_use_cases(fake_client, widget_map, run_state, scheduler):
    def build(store, **kwargs) -> SyncUseCases:
        params = dict(
            store=store,
            client=fake_client,
            database_id="db-1",
            field_map=widget_map,
            run_state=run_state,
            scheduler=scheduler,
        )
        params.update(kwargs)
        return SyncUseCases(**params)

    return build


class TestPush:
    def test_push_fresh_summary(self, make_use_cases, widget_store) -> None:
        use_cases = make_use_cases(widget_store([{"title": "a"}, {"title": "b"}]))

        assert use_cases.push_fresh() == "Push completado (2 fila(s)): created=2, updated=0, errors=0, skipped=0"

    def test_push_fresh_reconciles_schema_first(self, make_use_cases, widget_store, fake_client) -> None:
        fake_client.schema = {"Name": "title"}
        store = widget_store([{"title": "a", "sku": "S-1"}])

        make_use_cases(store).push_fresh()

        assert fake_client.calls[0][0] == "get_schema"
        assert fake_client.calls[1] == ("patch_schema", {"SKU": "rich_text", "Cost": "rich_text", "Active": "checkbox"})
        assert "SKU" in fake_client.pages["page-1"]

    def test_push_without_reconcile(self, make_use_cases, widget_store, fake_client) -> None:
        fake_client.schema = {"Name": "title"}

        make_use_cases(widget_store([{"title": "a"}]), reconcile_on_push=False).push_fresh()

        assert fake_client.count("patch_schema") == 0

    def test_suspended_push_and_status(self, make_use_cases, widget_store) -> None:
        use_cases = make_use_cases(widget_store([{"title": f"r{i}"} for i in range(3)]), batch_size=2)

        summary = use_cases.push_fresh()

        assert summary.startswith("Push en progreso 2/3")
        assert use_cases.push_status().startswith("Push pendiente: 2/3")
        assert use_cases.push_resume().startswith("Push completado (3 fila(s))")
        assert use_cases.push_status() == "Sin corrida de push activa"

    def test_stop_push(self, make_use_cases, widget_store, scheduler) -> None:
        use_cases = make_use_cases(widget_store([{"title": f"r{i}"} for i in range(3)]), batch_size=1)
        use_cases.push_fresh()

        assert use_cases.stop_push().startswith("Stop solicitado")
        assert PUSH_RESUME_OPERATION not in scheduler.pending
        assert "(detenida)" in use_cases.push_status()

    def test_continuation_after_stop_does_not_push(self, make_use_cases, widget_store, fake_client, scheduler) -> None:
        use_cases = make_use_cases(widget_store([{"title": f"r{i}"} for i in range(10)]), batch_size=4)
        use_cases.push_fresh()
        scheduler.pending.clear()
        use_cases.stop_push()

        summary = use_cases.push_continue()

        assert summary == "Push detenido en 4/10: created=4, updated=0, errors=0, skipped=0"
        assert fake_client.count("create_page") == 4
        assert use_cases.push_resume().startswith("Push en progreso 8/10")

    def test_continuation_without_run(self, make_use_cases, widget_store, fake_client) -> None:
        use_cases = make_use_cases(widget_store([{"title": "a"}]))

        assert use_cases.push_continue() == "Sin corrida de push pendiente"
        assert fake_client.calls == []

    def test_stop_push_without_run(self, make_use_cases, widget_store) -> None:
        assert make_use_cases(widget_store([])).stop_push() == "Sin corrida de push activa"


class TestPullAndSchema:
    def test_pull_discards_pending_push(self, make_use_cases, widget_store, fake_client, run_state) -> None:
        use_cases = make_use_cases(widget_store([{"title": f"r{i}"} for i in range(3)]), batch_size=1)
        use_cases.push_fresh()
        assert run_state.load() is not None

        summary = use_cases.pull()

        assert summary == "Pull completado: 1 fila(s) escritas"
        assert run_state.load() is None

    def test_reconcile_schema_summary(self, make_use_cases, widget_store, fake_client) -> None:
        use_cases = make_use_cases(widget_store([]))

        assert use_cases.reconcile_schema() == "Esquema al dia: 0 propiedades agregadas"

        fake_client.schema = {"Name": "title", "SKU": "rich_text", "Cost": "number"}
        assert use_cases.reconcile_schema() == "Esquema reconciliado: 1 propiedad(es) agregadas (Active)"

    def test_apply_edits_resolves_by_title(self, make_use_cases, widget_store) -> None:
        store = widget_store([{"title": "a", "sku": "S-1", "__page_id": "p-1", "__status": "updated"}])

        report = make_use_cases(store).apply_edits([Edit(key="a", column="cost", new_value="7")])

        assert report.results[0].outcome is EditOutcome.APPLIED
        assert store.read_row(1)["__status"] == "dirty"


class TestBuildFromSettings:
    @pytest.mark.parametrize("missing", ["NOTION_API_KEY", "NOTION_DATABASE_ID", "SHEET_PATH"])
    def test_missing_setting_raises_configuration_error(self, missing, tmp_path, scheduler) -> None:
        values = {
            "NOTION_API_KEY": "secret_x",
            "NOTION_DATABASE_ID": "db-1",
            "SHEET_PATH": str(tmp_path / "inv.xlsx"),
        }
        values[missing] = ""

        with pytest.raises(ConfigurationError) as exc:
            build_from_settings(Settings(_env_file=None, **values), scheduler)

        assert exc.value.details == {"setting": missing}

    def test_unknown_table_raises_configuration_error(self, tmp_path, scheduler) -> None:
        settings = Settings(
            _env_file=None,
            NOTION_API_KEY="secret_x",
            NOTION_DATABASE_ID="db-1",
            SHEET_PATH=str(tmp_path / "inv.xlsx"),
            SYNC_TABLE="Invoices",
        )

        with pytest.raises(ConfigurationError):
            build_from_settings(settings, scheduler)

    def test_builds_with_real_adapters(self, tmp_path, scheduler) -> None:
        settings = Settings(
            _env_file=None,
            NOTION_API_KEY="secret_x",
            NOTION_DATABASE_ID="db-1",
            SHEET_PATH=str(tmp_path / "inv.xlsx"),
            STATE_DATABASE_URL=f"sqlite:///{tmp_path / 'state.db'}",
        )

        use_cases = build_from_settings(settings, scheduler)

        assert use_cases.push_status() == "Sin corrida de push activa"
        assert settings.run_key == "Products:db-1"
