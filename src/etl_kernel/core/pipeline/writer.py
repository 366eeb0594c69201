# src/etl_kernel/core/pipeline/writer.py
"""
AppendWriter: caminho de escrita e verificação de um módulo.

Sequência (sucesso):
    1. dimensionar partições de escrita (override de sessão)
    2. escrever no destino (escrita sem sucesso é fatal)
    3. contar registros conforme a `RecordCountPolicy` do destino
    4. decidir optimize; se devido, marcar o destino e avançar
       `last_optimized_ts` para o fim da janela
    5. restaurar a conf de sessão inicial
    6. persistir o report SUCCESS
    7. confirmar a escrita no destino (`commit_target`): a partir daqui uma
       falha posterior não reverte mais estes registros

Qualquer exceção em 1–4 é logada (mensagem e causa) e roteada ao
FailureHandler, único caminho até um report FAILED. Nenhum report SUCCESS
é produzido depois de uma falha capturada.

Limites explícitos:
    - Falhas ao persistir o report SUCCESS não são capturadas (são defeitos)
    - Em falha, a sessão não é restaurada aqui (ver `postprocess`)
"""

from __future__ import annotations

from typing import Optional

from etl_kernel.core.clock import DAY_MS
from etl_kernel.core.errors import exception_to_error
from etl_kernel.core.exceptions import WriteFailure

from .context import ExecutionContext
from .dataset import Database, Dataset, PostProcessor
from .handlers import FailureHandler
from .optimize import OptimizeScheduler
from .partitions import optimize_write_partitions
from .postprocess import restore_session_conf
from .report import DEFAULT_VACUUM_RETENTION_HOURS, STATUS_SUCCESS, StatusReport, StatusReporter
from .types import Module, ModuleOutcome, PipelineTarget, RecordCountPolicy


class AppendWriter:
    """Função de escrita append de um destino; chamada como `writer(dataset, module)`."""

    def __init__(
        self,
        ctx: ExecutionContext,
        database: Database,
        post_processor: PostProcessor,
        reporter: StatusReporter,
        target: PipelineTarget,
        *,
        scheduler: Optional[OptimizeScheduler] = None,
    ):
        self.ctx = ctx
        self.database = database
        self.post_processor = post_processor
        self.reporter = reporter
        self.target = target
        self.scheduler = scheduler or OptimizeScheduler(ctx)
        self.failure_handler = FailureHandler(ctx, database, reporter, self.scheduler)

    def count_records(self, dataset: Dataset, module: Module) -> int:
        target = self.target
        if target.count_policy is RecordCountPolicy.TARGET_WINDOW:
            config = self.ctx.config
            from_ts = config.from_time(module.module_id) - target.count_lookback_days * DAY_MS
            window = self.database.read_window(
                target,
                column=target.window_column,
                from_ts=from_ts,
                until_ts=config.until_time(module.module_id),
            )
            return int(window.count())
        return int(dataset.count())

    def fail(self, module: Module, message: str, kind: Optional[str] = None) -> ModuleOutcome:
        return self.failure_handler.fail(module, self.target, message, kind)

    def __call__(self, dataset: Dataset, module: Module) -> ModuleOutcome:
        ctx = self.ctx
        config = ctx.config
        target = self.target
        start = ctx.now()

        try:
            final = optimize_write_partitions(ctx, dataset, target, module)

            ctx.log(step_id=module.label, level="info", message=f"Beginning append to {target.table_full_name}")
            if not self.database.write(final, target):
                raise WriteFailure(message="PIPELINE FAILURE", details={"target": target.table_full_name})

            records = self.count_records(final, module)
            ctx.log(
                step_id=module.label,
                level="info",
                message=f"SUCCESS! {module.module_name}: {records} records appended.",
                records_appended=records,
            )

            last_optimized = self.scheduler.get_last_optimized(module.module_id)
            if self.scheduler.needs_optimize(module.module_id):
                self.post_processor.mark_optimize(target)
                last_optimized = config.until_time(module.module_id)
        except Exception as e:
            error = exception_to_error(e)
            ctx.log(
                step_id=module.label,
                level="error",
                message=f"{module.module_name} FAILED --> Message: {error.message} Cause: {e.__cause__}",
                error=error.to_dict(),
            )
            return self.failure_handler.fail(module, target, error.message, error.type)

        restore_session_conf(ctx)

        report = StatusReport(
            organization_id=config.organization_id,
            run_id=config.run_id,
            module_id=module.module_id,
            module_name=module.module_name,
            primordial_date_string=config.primordial_date_string,
            run_start_ts=start,
            run_end_ts=ctx.now(),
            from_ts=config.from_time(module.module_id),
            until_ts=config.until_time(module.module_id),
            data_frequency=target.data_frequency.value,
            status=STATUS_SUCCESS,
            records_appended=records,
            last_optimized_ts=last_optimized,
            vacuum_retention_hours=DEFAULT_VACUUM_RETENTION_HOURS,
            input_config=config.input_config,
            parsed_config=config.parsed_config,
            pipeline_snap_ts=config.snapshot_ts,
        )
        self.reporter.finalize_module(report)
        self.database.commit_target(target)
        return ModuleOutcome.success(report, summary=f"SUCCESS! {module.module_name}: {records} records appended.")
