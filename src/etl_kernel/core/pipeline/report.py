# src/etl_kernel/core/pipeline/report.py
"""
StatusReport e persistência no status log.

O `StatusReport` é o único registro persistido de uma execução de módulo.
Todo desfecho (SUCCESS, EMPTY, FAILED) termina em exatamente um report,
gravado append-only no status log (`pipeline_report`), chaveado por
`(organization_id, run_id)` e com `pipeline_snap_ts` como coluna incremental.

O status log é também a única interface que o kernel expõe para consumidores
posteriores: dashboards, alertas e a próxima run (via `load_last_run_detail`,
que alimenta `get_last_optimized` e a janela incremental).

Invariantes:
    - `status` nunca fica vazio
    - Status FAILED segue o formato
      `FAILED --> <ROLLBACK SUCCESSFUL|ROLLBACK FAILED>: ERROR:<mensagem>`
    - Ecos de configuração são gravados como JSON canônico

Limites explícitos:
    - `finalize_module` não protege contra chamadas duplicadas na mesma run
    - Falhas ao persistir o report não são capturadas aqui (são defeitos)
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping

from etl_kernel.core.exceptions import WriteFailure

from .context import ExecutionContext
from .dataset import Database
from .types import PipelineTarget

STATUS_SUCCESS = "SUCCESS"
STATUS_EMPTY = "EMPTY"
STATUS_FAILED_PREFIX = "FAILED"

ROLLBACK_SUCCESSFUL = "ROLLBACK SUCCESSFUL"
ROLLBACK_FAILED = "ROLLBACK FAILED"

DEFAULT_VACUUM_RETENTION_HOURS = 24 * 7

_JSON_FIELDS = ("input_config", "parsed_config")


def failed_status(rollback_status: str, message: str) -> str:
    return f"{STATUS_FAILED_PREFIX} --> {rollback_status}: ERROR:{message}"


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


def _load(value: Any) -> Dict[str, Any]:
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


@dataclass(frozen=True)
class StatusReport:
    """
    Registro imutável do desfecho de uma execução de módulo.

    Tempos em epoch millis (UTC). `from_ts`/`until_ts` representam a janela
    incremental efetivamente processada.
    """

    organization_id: str
    run_id: str
    module_id: int
    module_name: str
    primordial_date_string: str
    run_start_ts: int
    run_end_ts: int
    from_ts: int
    until_ts: int
    data_frequency: str
    status: str
    records_appended: int
    last_optimized_ts: int
    vacuum_retention_hours: int
    input_config: Dict[str, Any] = field(default_factory=dict)
    parsed_config: Dict[str, Any] = field(default_factory=dict)
    pipeline_snap_ts: int = 0

    def __post_init__(self) -> None:
        if not self.status:
            raise ValueError("StatusReport.status must be set")

    @property
    def is_success(self) -> bool:
        return self.status == STATUS_SUCCESS

    @property
    def is_empty(self) -> bool:
        return self.status == STATUS_EMPTY

    @property
    def is_failed(self) -> bool:
        return self.status.startswith(STATUS_FAILED_PREFIX)

    def to_dict(self) -> Dict[str, Any]:
        """Linha do status log (ecos de configuração serializados em JSON)."""
        row = asdict(self)
        for name in _JSON_FIELDS:
            row[name] = _dump(row[name])
        return row

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "StatusReport":
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        for name in _JSON_FIELDS:
            data[name] = _load(data.get(name))
        for name in (
            "module_id",
            "run_start_ts",
            "run_end_ts",
            "from_ts",
            "until_ts",
            "records_appended",
            "last_optimized_ts",
            "vacuum_retention_hours",
            "pipeline_snap_ts",
        ):
            if data.get(name) is not None:
                data[name] = int(data[name])
        for name in ("organization_id", "run_id", "module_name", "primordial_date_string", "data_frequency", "status"):
            if data.get(name) is not None:
                data[name] = str(data[name])
        return cls(**data)


def status_log_target(status_log: Mapping[str, str]) -> PipelineTarget:
    """Destino append-only do status log (`pipeline_report` por padrão)."""
    return PipelineTarget(
        name=status_log["name"],
        database=status_log["database"],
        keys=("organization_id", "run_id"),
        incremental_columns=("pipeline_snap_ts",),
    )


class StatusReporter:
    """Persiste reports no status log, um dataset de uma linha por chamada."""

    def __init__(self, ctx: ExecutionContext, database: Database):
        self.ctx = ctx
        self.database = database
        self.target = status_log_target(ctx.config.status_log)

    def finalize_module(self, report: StatusReport) -> StatusReport:
        rows = self.database.frame_to_dataset([report.to_dict()])
        if not self.database.write(rows, self.target):
            raise WriteFailure(
                message=f"status report not persisted for module {report.module_id}",
                details={"target": self.target.table_full_name, "status": report.status},
            )
        self.ctx.log(
            step_id=f"{report.module_id}-{report.module_name}",
            level="info",
            message=f"Status report persisted: {report.status}",
            status=report.status,
            records_appended=report.records_appended,
        )
        return report


def load_last_run_detail(
    database: Database,
    target: PipelineTarget,
    organization_id: str,
) -> List[StatusReport]:
    """
    Lê o histórico do status log para uma organização.

    Retorna os reports do mais antigo ao mais recente
    (`pipeline_snap_ts`, depois `run_end_ts`).
    """
    rows = database.read_table(target).to_records()
    reports = [StatusReport.from_dict(r) for r in rows if str(r.get("organization_id")) == str(organization_id)]
    reports.sort(key=lambda r: (r.pipeline_snap_ts, r.run_end_ts))
    return reports
