# src/etl_kernel/core/pipeline/dataset.py
"""
Contratos de capacidade consumidos pelo kernel.

O kernel orquestra colaboradores externos (engine de datasets, storage,
otimização física, catálogo de schemas) exclusivamente por meio destes
protocolos. Nenhuma implementação concreta é importada pelo core.

Protocolos:
    - Dataset         → dataset opaco (vazio?, schema mínimo, partições, transform, count)
    - Transform       → estágio `Dataset -> Dataset` da cadeia de transformações
    - ModuleWriter    → função de escrita do módulo (AppendWriter)
    - Database        → escrita, rollback e leitura do destino durável
    - PostProcessor   → marcação e execução de optimize
    - SchemaRegistry  → schema mínimo exigido por módulo

Decisões arquiteturais:
    - Conformidade por duck typing (`@runtime_checkable`)
    - `try_partition_count` retorna `None` para origens streaming, sem
      levantar exceção; o caso "operação não suportada" não passa pelo
      caminho de erro

Limites explícitos:
    - Não define engine distribuída
    - Não define mecânica de compactação
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .types import Module, ModuleOutcome, PipelineTarget

if TYPE_CHECKING:  # pragma: no cover
    from etl_kernel.core.schema.registry import RequiredSchema


@runtime_checkable
class Dataset(Protocol):
    def is_empty(self) -> bool:
        ...

    def verify_minimum_schema(
        self,
        required: "RequiredSchema",
        *,
        enforce_non_null: bool = True,
        debug: bool = False,
    ) -> "Dataset":
        """Retorna o dataset validado; levanta `SchemaValidationError` se não conformar."""
        ...

    def try_partition_count(self) -> Optional[int]:
        """Contagem de partições, ou `None` quando a origem é streaming."""
        ...

    def transform(self, stage: "Transform") -> "Dataset":
        ...

    def count(self) -> int:
        ...

    def repartition(self, n: int) -> "Dataset":
        ...

    def to_records(self) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class Transform(Protocol):
    def __call__(self, dataset: Dataset) -> Dataset:
        ...


@runtime_checkable
class ModuleWriter(Protocol):
    """
    Função de escrita de um módulo.

    `__call__` escreve e persiste o report SUCCESS; `fail` é o caminho único
    até um report FAILED (rollback → persistência → desfecho FAILED).
    """

    target: PipelineTarget

    def __call__(self, dataset: Dataset, module: Module) -> ModuleOutcome:
        ...

    def fail(self, module: Module, message: str, kind: Optional[str] = None) -> ModuleOutcome:
        ...


@runtime_checkable
class Database(Protocol):
    def write(self, dataset: Dataset, target: PipelineTarget) -> bool:
        ...

    def rollback_target(self, target: PipelineTarget) -> None:
        """Reverte o destino ao estado anterior à escrita; levanta `RollbackFailure`."""
        ...

    def commit_target(self, target: PipelineTarget) -> None:
        """Confirma a última escrita do destino; depois disso ela não é mais revertida."""
        ...

    def read_window(
        self,
        target: PipelineTarget,
        *,
        column: str,
        from_ts: int,
        until_ts: int,
    ) -> Dataset:
        ...

    def read_table(self, target: PipelineTarget) -> Dataset:
        ...

    def frame_to_dataset(self, rows: Sequence[Dict[str, Any]]) -> Dataset:
        ...


@runtime_checkable
class PostProcessor(Protocol):
    def mark_optimize(self, target: PipelineTarget) -> None:
        ...

    def optimize(self) -> List[str]:
        ...


@runtime_checkable
class SchemaRegistry(Protocol):
    def get(self, module: Module) -> "RequiredSchema":
        ...
