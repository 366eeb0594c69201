# src/etl_kernel/core/pipeline/types.py
"""
Tipos canônicos do kernel de execução de módulos.

Este módulo define as estruturas e enums que padronizam a comunicação
entre o executor (EtlDefinition), o writer, os handlers e o status log.

Os tipos aqui definidos representam:
    - identidade de um módulo (Module)
    - descrição do destino durável (PipelineTarget)
    - política de contagem de registros (RecordCountPolicy)
    - desfecho tipado da execução de um módulo (ModuleOutcome)

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Valores textuais dos enums são canônicos
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - Module e PipelineTarget são imutáveis durante a run
    - ModuleOutcome é imutável e sempre carrega exatamente um status

Limites explícitos:
    - Não executa módulos
    - Não persiste reports
    - Não resolve janelas incrementais (ver `PipelineConfig`)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from etl_kernel.core.errors import ErrorPayload
from etl_kernel.core.exceptions import ModuleFailed

if TYPE_CHECKING:  # pragma: no cover
    from .report import StatusReport


@dataclass(frozen=True)
class Module:
    """Estágio numerado do pipeline, com janela incremental própria."""

    module_id: int
    module_name: str

    @property
    def label(self) -> str:
        return f"{self.module_id}-{self.module_name}"


class DataFrequency(str, Enum):
    MILESTONE = "milestone"
    DAILY = "daily"


class RecordCountPolicy(str, Enum):
    """
    Origem da contagem autoritativa de registros após a escrita.

    Valores:
        - DIRECT: conta o dataset escrito
        - TARGET_WINDOW: re-deriva a contagem do destino já materializado,
          filtrado pela janela incremental (com lookback em dias)

    TARGET_WINDOW existe para destinos cuja origem é custosa demais para
    ser re-escaneada. A política é declarada por destino.
    """

    DIRECT = "direct"
    TARGET_WINDOW = "target_window"


@dataclass(frozen=True)
class PipelineTarget:
    """
    Descrição imutável do destino durável de um módulo.

    Campos:
        - name / database: identidade da tabela
        - keys: chaves primárias
        - incremental_columns: colunas usadas como watermark
        - data_frequency: frequência dos dados (milestone/daily)
        - optimize_frequency_hours: metadado informativo; o optimize segue o limiar fixo de 7 dias
        - shuffle_factor: dica de dimensionamento de partições na escrita
        - count_policy / count_window_column / count_lookback_days:
          como `records_appended` é calculado
    """

    name: str
    database: str = "etl"
    keys: Tuple[str, ...] = ()
    incremental_columns: Tuple[str, ...] = ()
    data_frequency: DataFrequency = DataFrequency.MILESTONE
    optimize_frequency_hours: Optional[int] = None
    shuffle_factor: float = 1.0
    count_policy: RecordCountPolicy = RecordCountPolicy.DIRECT
    count_window_column: Optional[str] = None
    count_lookback_days: int = 0

    def __post_init__(self) -> None:
        if not self.name or not str(self.name).strip():
            raise ValueError("PipelineTarget.name is required")
        if self.shuffle_factor <= 0:
            raise ValueError("PipelineTarget.shuffle_factor must be positive")
        if self.count_lookback_days < 0:
            raise ValueError("PipelineTarget.count_lookback_days must be >= 0")
        if self.count_policy is RecordCountPolicy.TARGET_WINDOW:
            column = self.count_window_column or (self.incremental_columns[0] if self.incremental_columns else None)
            if column is None:
                raise ValueError(
                    f"target {self.name}: TARGET_WINDOW count policy requires count_window_column"
                )

    @property
    def table_full_name(self) -> str:
        return f"{self.database}.{self.name}"

    @property
    def window_column(self) -> Optional[str]:
        if self.count_window_column:
            return self.count_window_column
        return self.incremental_columns[0] if self.incremental_columns else None


class ModuleStatus(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class ModuleOutcome:
    """
    Desfecho imutável da execução de um módulo.

    Substitui exceções como fluxo de controle: o executor inspeciona
    `status` em vez de capturar sinais tipados.

    Campos:
        - status: SUCCESS, EMPTY ou FAILED
        - summary: resumo textual (mesmo texto logado)
        - report: StatusReport persistido para este desfecho (quando houver)
        - error: payload estruturado para EMPTY/FAILED

    Invariantes:
        - Um desfecho FAILED só é construído depois do report persistido
        - `raise_for_status()` é o único ponto que levanta `ModuleFailed`
    """

    status: ModuleStatus
    summary: str
    report: Optional["StatusReport"] = None
    error: Optional[ErrorPayload] = None

    @classmethod
    def success(cls, report: "StatusReport", *, summary: str = "SUCCESS") -> "ModuleOutcome":
        return cls(status=ModuleStatus.SUCCESS, summary=summary, report=report)

    @classmethod
    def empty_input(cls, reason: ErrorPayload, report: Optional["StatusReport"] = None) -> "ModuleOutcome":
        return cls(status=ModuleStatus.EMPTY, summary=reason.message, report=report, error=reason)

    @classmethod
    def failure(cls, error: ErrorPayload, report: Optional["StatusReport"] = None) -> "ModuleOutcome":
        summary = report.status if report is not None else error.message
        return cls(status=ModuleStatus.FAILED, summary=summary, report=report, error=error)

    @property
    def ok(self) -> bool:
        return self.status is not ModuleStatus.FAILED

    def raise_for_status(self) -> "ModuleOutcome":
        """Levanta `ModuleFailed` para desfechos FAILED; caso contrário retorna self."""
        if self.status is ModuleStatus.FAILED:
            err = self.error
            raise ModuleFailed(
                message=err.message if err is not None else self.summary,
                details={"status": self.summary, "error": err.to_dict() if err is not None else None},
            )
        return self
