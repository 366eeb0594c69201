# tests/core/pipeline/test_etl_definition.py
"""
Testes do executor de módulo (`EtlDefinition.process()`).

Este módulo valida o ciclo de vida completo de um módulo sobre colaboradores
fake, garantindo que:
- origem vazia persiste EMPTY e NUNCA chama a escrita
- origem não vazia é validada, sondada, transformada em ordem e escrita
- falhas de schema e de transformação terminam em FAILED com rollback
- origens streaming adiam o ajuste de partições sem falhar
- o desfecho é devolvido (não relançado) e `raise_for_status` sinaliza FAILED

Invariantes:
    - Exatamente um StatusReport por execução
    - validação < transformações < escrita < persistência do report

Limites explícitos:
    - Não valida storage real (ver tests/e2e)
"""

import pytest

try:
    from etl_kernel.core.errors import SCHEMA_VALIDATION_ERROR, UNHANDLED_EXCEPTION
    from etl_kernel.core.exceptions import ModuleFailed
    from etl_kernel.core.pipeline.definition import EtlDefinition
    from etl_kernel.core.pipeline.report import StatusReporter
    from etl_kernel.core.pipeline.types import ModuleStatus
    from etl_kernel.core.pipeline.writer import AppendWriter
    from etl_kernel.core.schema.registry import RequiredColumn, RequiredSchema
except Exception as e:  # noqa: BLE001
    EtlDefinition = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None

from tests._helpers import STATUS_LOG_TABLE

TARGET_TABLE = "etl.audit_log_bronze"

ROWS = [
    {"organization_id": "org-001", "request_id": "r1", "serviceName": "clusters"},
    {"organization_id": "org-001", "request_id": "r2", "serviceName": "jobs"},
]


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing module executor. Implement:\n"
            "- src/etl_kernel/core/pipeline/definition.py (EtlDefinition)\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def kernel(dummy_ctx, RecordingDatabase, RecordingPostProcessor, StaticSchemaRegistry, module_1010, audit_target):
    """Monta uma EtlDefinition sobre fakes; retorna (factory, db)."""
    db = RecordingDatabase()
    pp = RecordingPostProcessor()
    reporter = StatusReporter(dummy_ctx, db)
    writer = AppendWriter(dummy_ctx, db, pp, reporter, audit_target)

    def _make(source, transforms=None, schemas=None):
        return EtlDefinition(
            source_df=source,
            transforms=transforms,
            write=writer,
            module=module_1010,
            ctx=dummy_ctx,
            schemas=StaticSchemaRegistry(schemas),
            reporter=reporter,
        )

    return _make, db


def _messages(ctx):
    return [e["message"] for e in ctx.events]


def test_empty_source_skips_write(kernel, dummy_ctx, ListDataset):
    _require_imports()
    make, db = kernel

    outcome = make(ListDataset([])).process()

    assert outcome.status is ModuleStatus.EMPTY
    assert db.calls == [("write", STATUS_LOG_TABLE)]
    assert [r.status for r in db.reports()] == ["EMPTY"]
    messages = _messages(dummy_ctx)
    assert "ALERT: No New Data Retrieved for Module 1010-audit_log_bronze! Skipping" in messages
    assert messages[-1] == "EMPTY: 1010-audit_log_bronze Module: SKIPPING"
    assert "Validating Input Schemas" not in messages


def test_success_applies_transforms_in_order(kernel, dummy_ctx, ListDataset):
    _require_imports()
    make, db = kernel
    order = []

    def add_source(ds):
        order.append("add_source")
        return ListDataset([dict(r, source="audit") for r in ds.rows], partitions=ds.partitions)

    def upper_service(ds):
        order.append("upper_service")
        return ListDataset([dict(r, serviceName=r["serviceName"].upper()) for r in ds.rows], partitions=ds.partitions)

    outcome = make(ListDataset(ROWS), transforms=[add_source, upper_service]).process()

    assert outcome.status is ModuleStatus.SUCCESS
    assert order == ["add_source", "upper_service"]
    assert [r["serviceName"] for r in db.tables[TARGET_TABLE]] == ["CLUSTERS", "JOBS"]
    assert all(r["source"] == "audit" for r in db.tables[TARGET_TABLE])
    assert [r.status for r in db.reports()] == ["SUCCESS"]

    messages = _messages(dummy_ctx)
    assert messages.index("Beginning: audit_log_bronze") < messages.index("Validating Input Schemas")
    assert messages.index("Validating Input Schemas") < messages.index("Beginning append to etl.audit_log_bronze")


def test_no_transforms_writes_source(kernel, ListDataset):
    _require_imports()
    make, db = kernel
    outcome = make(ListDataset(ROWS), transforms=None).process()
    assert outcome.report.records_appended == 2
    assert db.tables[TARGET_TABLE] == ROWS


def test_missing_required_column_fails(kernel, dummy_ctx, ListDataset):
    _require_imports()
    make, db = kernel
    schema = RequiredSchema(module_id=1010, columns=(RequiredColumn("actionName", dtype="string"),))
    called = []

    outcome = make(ListDataset(ROWS), transforms=[lambda ds: called.append(1) or ds], schemas={1010: schema}).process()

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.error.type == SCHEMA_VALIDATION_ERROR
    assert called == []
    assert db.calls == [("rollback", TARGET_TABLE), ("write", STATUS_LOG_TABLE)]
    assert db.reports()[0].status.startswith("FAILED --> ROLLBACK SUCCESSFUL: ERROR:")
    assert _messages(dummy_ctx)[-1] == "FAILED: 1010-audit_log_bronze Module"


def test_null_in_non_nullable_column_fails(kernel, ListDataset):
    _require_imports()
    make, _ = kernel
    schema = RequiredSchema(module_id=1010, columns=(RequiredColumn("request_id", nullable=False),))
    rows = ROWS + [{"organization_id": "org-001", "request_id": None, "serviceName": "jobs"}]

    outcome = make(ListDataset(rows), schemas={1010: schema}).process()

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.error.type == SCHEMA_VALIDATION_ERROR


def test_emptiness_check_error_persists_failed_report(kernel, ListDataset):
    _require_imports()
    make, db = kernel

    class _BrokenSource(ListDataset):
        def is_empty(self):
            raise RuntimeError("source unreachable")

    outcome = make(_BrokenSource(ROWS)).process()

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.error.type == UNHANDLED_EXCEPTION
    assert db.calls == [("rollback", TARGET_TABLE), ("write", STATUS_LOG_TABLE)]
    assert db.reports()[0].status == "FAILED --> ROLLBACK SUCCESSFUL: ERROR:source unreachable"


def test_transform_exception_fails(kernel, ListDataset):
    _require_imports()
    make, db = kernel

    def broken(ds):
        raise KeyError("requestParams")

    outcome = make(ListDataset(ROWS), transforms=[broken]).process()

    assert outcome.error.type == UNHANDLED_EXCEPTION
    assert TARGET_TABLE not in db.tables
    assert db.call_names(TARGET_TABLE) == ["rollback"]


def test_partition_count_sets_source_partitions(kernel, dummy_ctx, ListDataset):
    _require_imports()
    make, _ = kernel
    make(ListDataset(ROWS, partitions=4)).process()

    assert dummy_ctx.source_partitions == 4
    assert any(e.get("write_partitions") == 4 for e in dummy_ctx.events)


def test_streaming_source_delays_partition_count(kernel, dummy_ctx, ListDataset):
    _require_imports()
    make, _ = kernel

    outcome = make(ListDataset(ROWS, streaming=True)).process()

    assert outcome.status is ModuleStatus.SUCCESS
    assert dummy_ctx.source_partitions == 200
    assert "Delaying source shuffle partition set since input is stream" in _messages(dummy_ctx)


def test_failed_outcome_is_returned_then_signalled(kernel, ListDataset):
    """
    `process()` devolve o desfecho; `raise_for_status()` sinaliza a falha
    somente depois que o report FAILED está persistido.
    """
    _require_imports()
    make, db = kernel
    schema = RequiredSchema(module_id=1010, columns=(RequiredColumn("actionName"),))

    outcome = make(ListDataset(ROWS), schemas={1010: schema}).process()

    assert len(db.reports()) == 1
    with pytest.raises(ModuleFailed):
        outcome.raise_for_status()
