# src/etl_kernel/core/pipeline/partitions.py
"""Dimensionamento de partições na escrita."""

from __future__ import annotations

import math
from typing import Any, Mapping

from .context import SHUFFLE_PARTITIONS_KEY, ExecutionContext
from .dataset import Dataset
from .types import Module, PipelineTarget

DEFAULT_MIN_WRITE_PARTITIONS = 1


def compute_write_partitions(
    source_partitions: int,
    shuffle_factor: float,
    hints: Mapping[str, Any],
) -> int:
    """
    Função pura: partições de escrita a partir da origem, do destino e das dicas.

    `ceil(source_partitions * shuffle_factor)`, limitado por
    `min_write_partitions` / `max_write_partitions` quando informados.
    """
    n = max(1, int(math.ceil(max(source_partitions, 1) * shuffle_factor)))

    lower = int(hints.get("min_write_partitions") or DEFAULT_MIN_WRITE_PARTITIONS)
    n = max(n, lower)

    upper = hints.get("max_write_partitions")
    if upper is not None:
        n = min(n, max(int(upper), lower))
    return n


def optimize_write_partitions(
    ctx: ExecutionContext,
    dataset: Dataset,
    target: PipelineTarget,
    module: Module,
) -> Dataset:
    n = compute_write_partitions(ctx.source_partitions, target.shuffle_factor, ctx.config.session_hints)
    ctx.set_session_conf(SHUFFLE_PARTITIONS_KEY, n)
    ctx.log(
        step_id=module.label,
        level="debug",
        message=f"Write partitions for {target.table_full_name}: {n}",
        source_partitions=ctx.source_partitions,
        write_partitions=n,
    )
    return dataset.repartition(n)
