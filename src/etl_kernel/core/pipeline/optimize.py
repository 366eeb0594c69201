# src/etl_kernel/core/pipeline/optimize.py
"""
Agendamento de optimize (compactação física) por módulo.

Decisão pura: optimize é devido quando
    (último optimize do módulo é mais antigo que o limiar OU primeira run)
    E a run não está em modo de teste local.

O limiar é fixo em 7 dias; `PipelineTarget.optimize_frequency_hours` é apenas
metadado do destino e não altera a decisão. O "agora" vem do relógio do
contexto, então entradas idênticas produzem a mesma resposta.
"""

from __future__ import annotations

from typing import Optional

from etl_kernel.core.clock import WEEK_MS

from .context import ExecutionContext


class OptimizeScheduler:
    def __init__(self, ctx: ExecutionContext):
        self.ctx = ctx

    def get_last_optimized(self, module_id: int) -> int:
        """`last_optimized_ts` do report mais recente do módulo; 0 na primeira run ou sem histórico."""
        config = self.ctx.config
        history = config.module_history(module_id)
        if config.is_first_run or not history:
            return 0
        return int(history[-1].last_optimized_ts)

    def needs_optimize(
        self,
        module_id: int,
        *,
        threshold_ms: int = WEEK_MS,
        now: Optional[int] = None,
    ) -> bool:
        config = self.ctx.config
        now_ms = self.ctx.now() if now is None else now
        stale = self.get_last_optimized(module_id) < now_ms - threshold_ms
        return (stale or config.is_first_run) and not config.is_local_testing
