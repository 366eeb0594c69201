# src/etl_kernel/persistence/post_processor.py
"""Otimização física dos destinos marcados durante a run (compactação local)."""

from __future__ import annotations

import logging
from typing import Dict, List

from etl_kernel.core.pipeline.types import PipelineTarget

from .local_database import LocalDatabase

logger = logging.getLogger(__name__)


class LocalPostProcessor:
    def __init__(self, database: LocalDatabase):
        self.database = database
        self._marked: Dict[str, PipelineTarget] = {}

    @property
    def marked(self) -> List[str]:
        return list(self._marked)

    def mark_optimize(self, target: PipelineTarget) -> None:
        self._marked[target.table_full_name] = target

    def optimize(self) -> List[str]:
        optimized: List[str] = []
        for name, target in self._marked.items():
            rows = self.database.compact(target)
            logger.info("optimized %s (%s rows)", name, rows)
            optimized.append(name)
        self._marked.clear()
        return optimized
