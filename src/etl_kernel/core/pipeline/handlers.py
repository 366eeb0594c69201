# src/etl_kernel/core/pipeline/handlers.py
"""
Handlers de desfecho não-SUCCESS: falha (com rollback) e entrada vazia.

FailureHandler segue um protocolo estrito, nunca reordenado:
    1. tentar rollback do destino (falha de rollback é logada, nunca escalada)
    2. construir e persistir o report FAILED
    3. devolver o desfecho FAILED (sinal terminal)

O report precisa estar durável mesmo que o chamador nunca observe o sinal.

EmptyInputHandler persiste um report EMPTY sem tocar no destino.

Alguns módulos nunca avançam no tempo enquanto vazios ou com falha
(`pipeline.never_advance_when_empty`): seus reports gravam
`until_ts = from_ts`, para que a próxima run reprocesse a mesma janela.
"""

from __future__ import annotations

from typing import Optional

from etl_kernel.core.errors import ErrorPayload, UNHANDLED_EXCEPTION, no_new_data

from .context import ExecutionContext
from .dataset import Database
from .optimize import OptimizeScheduler
from .report import (
    ROLLBACK_FAILED,
    ROLLBACK_SUCCESSFUL,
    STATUS_EMPTY,
    DEFAULT_VACUUM_RETENTION_HOURS,
    StatusReport,
    StatusReporter,
    failed_status,
)
from .types import Module, ModuleOutcome, PipelineTarget


def verified_until_ts(ctx: ExecutionContext, module_id: int) -> int:
    config = ctx.config
    if module_id in config.never_advance_when_empty:
        return config.from_time(module_id)
    return config.until_time(module_id)


class FailureHandler:
    def __init__(
        self,
        ctx: ExecutionContext,
        database: Database,
        reporter: StatusReporter,
        scheduler: Optional[OptimizeScheduler] = None,
    ):
        self.ctx = ctx
        self.database = database
        self.reporter = reporter
        self.scheduler = scheduler or OptimizeScheduler(ctx)

    def _rollback(self, module: Module, target: PipelineTarget) -> str:
        self.ctx.log(
            step_id=module.label,
            level="warning",
            message=f"ROLLBACK: Attempting Roll back {module.module_name}.",
            target=target.table_full_name,
        )
        try:
            self.database.rollback_target(target)
        except Exception as e:
            self.ctx.log(
                step_id=module.label,
                level="error",
                message=f"ROLLBACK FAILED: {module.module_name} --> Message: {e} Cause: {e.__cause__}",
                exception_class=e.__class__.__name__,
            )
            return ROLLBACK_FAILED
        return ROLLBACK_SUCCESSFUL

    def fail(
        self,
        module: Module,
        target: PipelineTarget,
        message: str,
        kind: Optional[str] = None,
    ) -> ModuleOutcome:
        rollback_status = self._rollback(module, target)

        config = self.ctx.config
        report = StatusReport(
            organization_id=config.organization_id,
            run_id=config.run_id,
            module_id=module.module_id,
            module_name=module.module_name,
            primordial_date_string=config.primordial_date_string,
            run_start_ts=0,
            run_end_ts=0,
            from_ts=config.from_time(module.module_id),
            until_ts=verified_until_ts(self.ctx, module.module_id),
            data_frequency=target.data_frequency.value,
            status=failed_status(rollback_status, message),
            records_appended=0,
            last_optimized_ts=self.scheduler.get_last_optimized(module.module_id),
            vacuum_retention_hours=0,
            input_config=config.input_config,
            parsed_config=config.parsed_config,
            pipeline_snap_ts=config.snapshot_ts,
        )
        self.reporter.finalize_module(report)

        error = ErrorPayload(
            type=kind or UNHANDLED_EXCEPTION,
            message=message,
            details={
                "module_id": module.module_id,
                "target": target.table_full_name,
                "rollback_status": rollback_status,
            },
            hint="O destino foi revertido quando possível; reexecute o módulo após corrigir a causa.",
        )
        return ModuleOutcome.failure(error, report)


class EmptyInputHandler:
    def __init__(
        self,
        ctx: ExecutionContext,
        reporter: StatusReporter,
        scheduler: Optional[OptimizeScheduler] = None,
    ):
        self.ctx = ctx
        self.reporter = reporter
        self.scheduler = scheduler or OptimizeScheduler(ctx)

    def handle(self, module: Module, reason: Optional[ErrorPayload] = None) -> ModuleOutcome:
        config = self.ctx.config
        start = self.ctx.now()
        report = StatusReport(
            organization_id=config.organization_id,
            run_id=config.run_id,
            module_id=module.module_id,
            module_name=module.module_name,
            primordial_date_string=config.primordial_date_string,
            run_start_ts=start,
            run_end_ts=start,
            from_ts=config.from_time(module.module_id),
            until_ts=verified_until_ts(self.ctx, module.module_id),
            data_frequency="",
            status=STATUS_EMPTY,
            records_appended=0,
            last_optimized_ts=self.scheduler.get_last_optimized(module.module_id),
            vacuum_retention_hours=DEFAULT_VACUUM_RETENTION_HOURS,
            input_config=config.input_config,
            parsed_config=config.parsed_config,
            pipeline_snap_ts=config.snapshot_ts,
        )
        self.reporter.finalize_module(report)
        if reason is None:
            reason = no_new_data(module_id=module.module_id, module_name=module.module_name)
        return ModuleOutcome.empty_input(reason, report)
