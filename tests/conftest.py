# tests/conftest.py
"""
Fixtures compartilhados para testes do ETL Kernel.

Este módulo define fixtures reutilizáveis que fornecem:
- configuração mínima e determinística do pipeline
- contexto de execução controlado (ExecutionContext com relógio fixo)
- fábricas de StatusReport para simular o histórico do status log
- colaboradores fake (dataset, storage, post-processor, schema registry)

O objetivo destas fixtures é permitir testes do core
(config, pipeline, handlers, status log) sem depender de:
- filesystem
- pandas ou engines reais de datasets
- relógio de parede

Decisões arquiteturais:
    - Fakes utilizam duck typing em vez de herança
    - Fakes registram chamadas em ordem (`calls`) para validar protocolos
      como rollback → persistência → sinal
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - "Agora" é sempre FIXED_NOW_MS (2024-03-15T00:00:00Z)
    - Nenhuma fixture realiza I/O
    - Nenhuma fixture contém lógica de domínio

Limites explícitos:
    - Não substituir testes de integração (ver tests/e2e)
    - Não acoplar testes a implementações concretas de storage
"""

from typing import Any, Dict, List, Optional

import pytest

from tests._helpers import DAY_MS, FIXED_NOW_MS, STATUS_LOG_TABLE, WINDOW_FROM_MS, WINDOW_UNTIL_MS


# =====================================================
# Fakes (duck-typed)
# =====================================================

class _ListDataset:
    """Dataset em memória sobre uma lista de dicts."""

    def __init__(self, rows=None, *, partitions: int = 4, streaming: bool = False):
        self.rows = [dict(r) for r in (rows or [])]
        self.partitions = partitions
        self.streaming = streaming

    def is_empty(self) -> bool:
        return not self.rows

    def verify_minimum_schema(self, required, *, enforce_non_null=True, debug=False):
        from etl_kernel.core.exceptions import SchemaValidationError

        missing = [c for c in required.required_names if any(c not in r for r in self.rows)]
        if missing:
            raise SchemaValidationError(
                message=f"missing columns {missing}",
                details={"missing_columns": missing},
            )
        if enforce_non_null:
            nulls = [c for c in required.non_null_names if any(r.get(c) is None for r in self.rows)]
            if nulls:
                raise SchemaValidationError(message=f"null values in {nulls}", details={"columns": nulls})
        return self

    def try_partition_count(self) -> Optional[int]:
        return None if self.streaming else self.partitions

    def transform(self, stage):
        return stage(self)

    def count(self) -> int:
        return len(self.rows)

    def repartition(self, n: int):
        return _ListDataset(self.rows, partitions=n, streaming=self.streaming)

    def to_records(self) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.rows]


class _RecordingDatabase:
    """
    Storage fake que registra chamadas em ordem.

    `write_failures` mapeia `table_full_name` → `False` (escrita sem sucesso)
    ou uma exceção (escrita levanta). `rollback_error`, quando definido, é
    levantado por `rollback_target`.
    """

    def __init__(self, *, write_failures=None, rollback_error=None):
        self.write_failures = dict(write_failures or {})
        self.rollback_error = rollback_error
        self.calls: List[tuple] = []
        self.tables: Dict[str, List[Dict[str, Any]]] = {}

    def write(self, dataset, target) -> bool:
        name = target.table_full_name
        self.calls.append(("write", name))
        failure = self.write_failures.get(name)
        if isinstance(failure, BaseException):
            raise failure
        if failure is False:
            return False
        self.tables.setdefault(name, []).extend(dataset.to_records())
        return True

    def rollback_target(self, target) -> None:
        self.calls.append(("rollback", target.table_full_name))
        if self.rollback_error is not None:
            raise self.rollback_error

    def commit_target(self, target) -> None:
        self.calls.append(("commit", target.table_full_name))

    def read_window(self, target, *, column, from_ts, until_ts):
        self.calls.append(("read_window", target.table_full_name, column, from_ts, until_ts))
        rows = [r for r in self.tables.get(target.table_full_name, []) if from_ts <= r[column] < until_ts]
        return _ListDataset(rows)

    def read_table(self, target):
        return _ListDataset(self.tables.get(target.table_full_name, []))

    def frame_to_dataset(self, rows):
        return _ListDataset(rows)

    # -----------------------------
    # Helpers de inspeção
    # -----------------------------
    def reports(self):
        from etl_kernel.core.pipeline.report import StatusReport

        return [StatusReport.from_dict(r) for r in self.tables.get(STATUS_LOG_TABLE, [])]

    def call_names(self, table: Optional[str] = None) -> List[str]:
        return [c[0] for c in self.calls if table is None or c[1] == table]


class _RecordingPostProcessor:
    def __init__(self):
        self.marked: List[str] = []
        self.optimize_calls = 0

    def mark_optimize(self, target) -> None:
        self.marked.append(target.table_full_name)

    def optimize(self) -> List[str]:
        self.optimize_calls += 1
        done, self.marked = list(self.marked), []
        return done


class _StaticSchemaRegistry:
    def __init__(self, schemas=None):
        self.schemas = dict(schemas or {})
        self.requested: List[int] = []

    def get(self, module):
        from etl_kernel.core.schema.registry import RequiredSchema

        self.requested.append(module.module_id)
        return self.schemas.get(module.module_id, RequiredSchema(module_id=module.module_id))


# =====================================================
# Config + contexto
# =====================================================

@pytest.fixture
def pipeline_config_dict() -> dict:
    """
    Configuração mínima e válida do pipeline, já resolvida.

    Decisões arquiteturais:
        - `run_id` fixo para determinismo
        - `first_run` e `local_testing` explícitos (false)
        - módulo 1010 com janela explícita de um dia

    Returns:
        dict: Configuração efetiva do pipeline.
    """
    return {
        "pipeline": {
            "organization_id": "org-001",
            "run_id": "run-test-001",
            "primordial_date": "2024-01-01",
            "first_run": False,
            "local_testing": False,
            "debug": False,
        },
        "modules": {
            1010: {"from": "2024-03-14", "until": "2024-03-15"},
        },
        "session": {
            "initial": {"shuffle.partitions": 200},
            "hints": {},
        },
    }


@pytest.fixture
def make_report():
    """
    Fábrica de StatusReport para compor o histórico do status log.

    Defaults representam um SUCCESS do módulo 1010 em run anterior.
    """
    from etl_kernel.core.pipeline.report import StatusReport

    def _make(**overrides):
        values = dict(
            organization_id="org-001",
            run_id="run-prev",
            module_id=1010,
            module_name="audit_log_bronze",
            primordial_date_string="2024-01-01",
            run_start_ts=WINDOW_FROM_MS,
            run_end_ts=WINDOW_FROM_MS,
            from_ts=WINDOW_FROM_MS - DAY_MS,
            until_ts=WINDOW_FROM_MS,
            data_frequency="milestone",
            status="SUCCESS",
            records_appended=10,
            last_optimized_ts=FIXED_NOW_MS - 1 * DAY_MS,
            vacuum_retention_hours=168,
            pipeline_snap_ts=WINDOW_FROM_MS,
        )
        values.update(overrides)
        return StatusReport(**values)

    return _make


@pytest.fixture
def make_ctx(pipeline_config_dict):
    """
    Fábrica de ExecutionContext determinístico.

    Args (da fábrica):
        overrides: dict aplicado via deep-merge sobre a config base
        history: reports prévios (do mais antigo ao mais recente)
        now: leitura fixa do relógio (epoch millis)

    Returns:
        Callable[..., ExecutionContext]
    """
    from etl_kernel.core.config.merge import deep_merge
    from etl_kernel.core.config.settings import PipelineConfig
    from etl_kernel.core.pipeline.context import ExecutionContext

    def _make(*, overrides=None, history=(), now=FIXED_NOW_MS):
        cfg = deep_merge(pipeline_config_dict, overrides or {})
        config = PipelineConfig.from_dict(cfg, last_run_detail=history, snapshot_ts=FIXED_NOW_MS)
        return ExecutionContext(config=config, clock=lambda: now)

    return _make


@pytest.fixture
def dummy_ctx(make_ctx, make_report):
    """Contexto padrão: histórico com um SUCCESS do módulo 1010 otimizado há 1 dia."""
    return make_ctx(history=[make_report()])


# =====================================================
# Fakes expostos como fixtures (classes, não instâncias)
# =====================================================

@pytest.fixture
def ListDataset():
    return _ListDataset


@pytest.fixture
def RecordingDatabase():
    return _RecordingDatabase


@pytest.fixture
def RecordingPostProcessor():
    return _RecordingPostProcessor


@pytest.fixture
def StaticSchemaRegistry():
    return _StaticSchemaRegistry


@pytest.fixture
def module_1010():
    from etl_kernel.core.pipeline.types import Module

    return Module(module_id=1010, module_name="audit_log_bronze")


@pytest.fixture
def audit_target():
    from etl_kernel.core.pipeline.types import DataFrequency, PipelineTarget

    return PipelineTarget(
        name="audit_log_bronze",
        database="etl",
        keys=("organization_id", "request_id"),
        incremental_columns=("timestamp",),
        data_frequency=DataFrequency.MILESTONE,
    )
