# src/etl_kernel/core/pipeline/definition.py
"""
Executor de um módulo: `EtlDefinition.process()`.

Uma EtlDefinition liga um dataset de origem, uma cadeia opcional de
transformações, uma função de escrita e o módulo dono. É consumida uma
única vez via `process()`.

Fluxo:
    - origem vazia → write NÃO é chamado; EmptyInputHandler persiste EMPTY
    - origem não vazia → schema mínimo (com enforcement de não-nulos) →
      sondagem de partições → transformações em ordem → write

Ordenação garantida: validação < transformações < escrita < persistência do report.

Falhas na sondagem de vazio, na validação ou nas transformações são convertidas em ErrorPayload e
roteadas por `write.fail(...)`, o mesmo caminho do FailureHandler (rollback
tentado, report FAILED persistido). Um desfecho FAILED é logado como erro e
não é relançado; `process()` devolve o `ModuleOutcome`.

Limites explícitos:
    - Não decide quais dados buscar
    - Não implementa lógica de negócio das transformações
    - Não sequencia módulos do pipeline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from etl_kernel.core.errors import exception_to_error, no_new_data

from .context import ExecutionContext
from .dataset import Dataset, ModuleWriter, SchemaRegistry, Transform
from .handlers import EmptyInputHandler
from .report import StatusReporter
from .types import Module, ModuleOutcome, ModuleStatus


@dataclass
class EtlDefinition:
    """
    Unidade de execução de um módulo.

    Campos:
        - source_df: dataset de origem
        - transforms: estágios `Dataset -> Dataset`, aplicados em ordem
        - write: função de escrita do módulo (ex.: `AppendWriter`)
        - module: módulo dono
        - ctx / schemas / reporter: colaboradores explícitos
    """

    source_df: Dataset
    transforms: Optional[Sequence[Transform]]
    write: ModuleWriter
    module: Module
    ctx: ExecutionContext
    schemas: SchemaRegistry
    reporter: StatusReporter

    def _prepare(self) -> Dataset:
        ctx = self.ctx
        module = self.module

        ctx.log(step_id=module.label, level="info", message="Validating Input Schemas")
        verified = self.source_df.verify_minimum_schema(
            self.schemas.get(module),
            enforce_non_null=True,
            debug=ctx.config.debug,
        )

        parts = verified.try_partition_count()
        if parts is None:
            ctx.log(
                step_id=module.label,
                level="info",
                message="Delaying source shuffle partition set since input is stream",
            )
        else:
            ctx.source_partitions = int(parts)

        dataset = verified
        for stage in self.transforms or ():
            dataset = dataset.transform(stage)
        return dataset

    def _fail(self, exc: Exception) -> ModuleOutcome:
        module = self.module
        error = exception_to_error(exc)
        self.ctx.log(
            step_id=module.label,
            level="error",
            message=f"{module.module_name} FAILED --> Message: {error.message}",
            error=error.to_dict(),
        )
        return self.write.fail(module, error.message, error.type)

    def process(self) -> ModuleOutcome:
        ctx = self.ctx
        module = self.module
        ctx.log(step_id=module.label, level="info", message=f"Beginning: {module.module_name}")

        try:
            empty = self.source_df.is_empty()
            final = None if empty else self._prepare()
        except Exception as e:
            outcome = self._fail(e)
        else:
            if empty:
                reason = no_new_data(module_id=module.module_id, module_name=module.module_name)
                ctx.log(step_id=module.label, level="warning", message=reason.message)
                outcome = EmptyInputHandler(ctx, self.reporter).handle(module, reason)
            else:
                outcome = self.write(final, module)

        if outcome.status is ModuleStatus.EMPTY:
            ctx.log(step_id=module.label, level="error", message=f"EMPTY: {module.label} Module: SKIPPING")
        elif outcome.status is ModuleStatus.FAILED:
            ctx.log(
                step_id=module.label,
                level="error",
                message=f"FAILED: {module.label} Module",
                status=outcome.summary,
            )
        return outcome
