# tests/e2e/test_module_lifecycle_e2e.py
"""
Teste E2E — ciclo de vida de módulos sobre storage local.

Este teste valida, de ponta a ponta e com colaboradores reais
(PandasDataset, LocalDatabase, LocalPostProcessor, catálogo de schemas
em YAML, configuração carregada de arquivo), que:

1) uma primeira run grava o destino, agenda optimize e persiste SUCCESS
2) uma segunda run lê o histórico do status log, avança a janela
   incremental e carrega `last_optimized_ts`
3) uma origem vazia persiste EMPTY sem tocar no destino
4) uma escrita sem sucesso é revertida e persiste FAILED

Decisões arquiteturais:
    - Nada de fakes: o status log é o arquivo JSON-lines real
    - O relógio é fixo para tornar as janelas determinísticas

Limites explícitos:
    - Não valida engines distribuídas
    - Não sequencia módulos (cada módulo é processado explicitamente)
"""

from pathlib import Path

import pytest

try:
    from etl_kernel.adapters.pandas_dataset import PandasDataset
    from etl_kernel.core.config.settings import load_pipeline_config
    from etl_kernel.core.pipeline import (
        AppendWriter,
        EtlDefinition,
        ExecutionContext,
        Module,
        ModuleStatus,
        PipelineTarget,
        StatusReporter,
        initiate_post_processing,
        load_last_run_detail,
        status_log_target,
    )
    from etl_kernel.core.schema.registry import CatalogSchemaRegistry
    from etl_kernel.persistence import LocalDatabase, LocalPostProcessor
except Exception as e:  # noqa: BLE001
    EtlDefinition = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None

from tests._helpers import DAY_MS, FIXED_NOW_MS


DEFAULTS_YAML = """\
pipeline:
  organization_id: org-e2e
  primordial_date: "2024-03-10"
  never_advance_when_empty: [1005]
session:
  initial:
    shuffle.partitions: 200
  hints:
    max_write_partitions: 4
"""

SCHEMAS_YAML = """\
catalog_version: "1.0"
modules:
  1010:
    columns:
      - {name: organization_id, dtype: string, nullable: false}
      - {name: timestamp, dtype: int, nullable: false}
"""


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing kernel components for E2E.\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _setup(tmp_path: Path, *, run: int, db_cls=None):
    (tmp_path / "defaults.yaml").write_text(DEFAULTS_YAML, encoding="utf-8")
    (tmp_path / "schemas.yaml").write_text(SCHEMAS_YAML, encoding="utf-8")

    db = (db_cls or LocalDatabase)(tmp_path / "lake")
    config = load_pipeline_config(
        defaults_path=str(tmp_path / "defaults.yaml"),
        snapshot_ts=FIXED_NOW_MS + run * DAY_MS,
    )
    history = load_last_run_detail(db, status_log_target(config.status_log), config.organization_id)
    config = config.with_history(history)

    ctx = ExecutionContext(config=config, clock=lambda: FIXED_NOW_MS + run * DAY_MS)
    return ctx, db


def _process(tmp_path: Path, ctx, db, rows, target):
    pp = LocalPostProcessor(db)
    reporter = StatusReporter(ctx, db)
    definition = EtlDefinition(
        source_df=PandasDataset.from_records(rows, partitions=2),
        transforms=[lambda ds: ds.frame.assign(source="audit")],
        write=AppendWriter(ctx, db, pp, reporter, target),
        module=Module(module_id=1010, module_name="audit_log_bronze"),
        ctx=ctx,
        schemas=CatalogSchemaRegistry.from_file(tmp_path / "schemas.yaml"),
        reporter=reporter,
    )
    outcome = definition.process()
    optimized = initiate_post_processing(ctx, pp, temp_paths=[])
    return outcome, optimized


def _audit_rows(day_offset: int):
    base = FIXED_NOW_MS + day_offset * DAY_MS
    return [
        {"organization_id": "org-e2e", "timestamp": base - 1000, "actionName": "create"},
        {"organization_id": "org-e2e", "timestamp": base - 500, "actionName": "delete"},
    ]


@pytest.fixture
def audit_target():
    return PipelineTarget(name="audit_log_bronze", incremental_columns=("timestamp",))


def test_two_runs_advance_window_and_carry_optimize(tmp_path: Path, audit_target):
    _require_imports()

    # run 1: sem histórico -> primeira run, optimize agendado
    ctx, db = _setup(tmp_path, run=0)
    assert ctx.config.is_first_run is True
    outcome, optimized = _process(tmp_path, ctx, db, _audit_rows(0), audit_target)

    assert outcome.status is ModuleStatus.SUCCESS
    assert optimized == ["etl.audit_log_bronze"]
    first = outcome.report
    assert first.records_appended == 2
    assert first.from_ts == ctx.config.primordial_ts
    assert first.until_ts == FIXED_NOW_MS
    assert first.last_optimized_ts == FIXED_NOW_MS

    # run 2: histórico lido do status log
    ctx2, db2 = _setup(tmp_path, run=1)
    assert ctx2.config.is_first_run is False
    assert ctx2.config.from_time(1010) == FIXED_NOW_MS
    outcome2, optimized2 = _process(tmp_path, ctx2, db2, _audit_rows(1), audit_target)

    assert outcome2.status is ModuleStatus.SUCCESS
    assert optimized2 == []
    second = outcome2.report
    assert second.from_ts == FIXED_NOW_MS
    assert second.until_ts == FIXED_NOW_MS + DAY_MS
    assert second.last_optimized_ts == FIXED_NOW_MS

    stored = db2.read_table(audit_target).to_records()
    assert len(stored) == 4
    assert {r["source"] for r in stored} == {"audit"}

    history = load_last_run_detail(db2, status_log_target(ctx2.config.status_log), "org-e2e")
    assert [r.status for r in history] == ["SUCCESS", "SUCCESS"]
    assert history[0].run_id != history[1].run_id


def test_empty_source_persists_empty_without_touching_target(tmp_path: Path, audit_target):
    _require_imports()
    ctx, db = _setup(tmp_path, run=0)

    outcome, _ = _process(tmp_path, ctx, db, [], audit_target)

    assert outcome.status is ModuleStatus.EMPTY
    assert not db.table_path(audit_target).exists()
    [report] = load_last_run_detail(db, status_log_target(ctx.config.status_log), "org-e2e")
    assert report.status == "EMPTY"
    assert report.vacuum_retention_hours == 168


def test_refused_write_is_rolled_back_and_reported(tmp_path: Path, audit_target):
    _require_imports()

    class _RefusingDatabase(LocalDatabase):
        """Grava o destino de auditoria e depois reporta a escrita como sem sucesso."""

        def write(self, dataset, target):
            ok = super().write(dataset, target)
            return ok and target.name != "audit_log_bronze"

    ctx, db = _setup(tmp_path, run=0, db_cls=_RefusingDatabase)

    outcome, optimized = _process(tmp_path, ctx, db, _audit_rows(0), audit_target)

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.summary == "FAILED --> ROLLBACK SUCCESSFUL: ERROR:PIPELINE FAILURE"
    assert optimized == []
    assert not db.table_path(audit_target).exists()

    [report] = load_last_run_detail(db, status_log_target(ctx.config.status_log), "org-e2e")
    assert report.is_failed
    assert report.records_appended == 0
    assert report.vacuum_retention_hours == 0
