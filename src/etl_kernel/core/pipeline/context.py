# src/etl_kernel/core/pipeline/context.py
"""
Contexto de execução explícito do kernel.

Este módulo define o `ExecutionContext`, a estrutura canônica passada a todos
os componentes do kernel (executor, writer, handlers, scheduler, reporter).

O ExecutionContext substitui singletons implícitos e concentra:
    - o acessor de configuração (`PipelineConfig`)
    - o logger e os eventos estruturados da run
    - o mapa de overrides de sessão (estado mutável compartilhado)
    - o relógio injetável (epoch millis)
    - a última contagem de partições observada na origem

Princípios fundamentais:
    - Nenhum estado global mutável
    - Tempo sempre lido do relógio do contexto (decisões reproduzíveis)
    - Logs estruturados e também encaminhados ao `logging` padrão

Invariantes:
    - Eventos sempre incluem `run_id` e `step_id`
    - Warnings são agrupados por `step_id`
    - O mapa de sessão nasce da conf inicial da configuração

Limites explícitos:
    - Não executa módulos
    - Não persiste eventos
    - Não restaura a sessão por conta própria (ver `postprocess`)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from etl_kernel.core.clock import Clock, from_epoch_ms, system_clock_ms
from etl_kernel.core.config.settings import PipelineConfig

DEFAULT_SOURCE_PARTITIONS = 200
SHUFFLE_PARTITIONS_KEY = "shuffle.partitions"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "INFO") -> None:
    """Configura o handler raiz no formato usado pelos runners do pipeline."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@dataclass
class ExecutionContext:
    """
    Contexto de execução de uma run do pipeline.

    Decisões arquiteturais:
        - Componentes recebem o contexto explicitamente
        - O relógio é injetável para testes determinísticos
        - `log()` registra o evento e o encaminha ao logger

    Limites explícitos:
        - Não decide políticas de execução
        - Não valida semântica de domínio
    """

    config: PipelineConfig
    clock: Clock = system_clock_ms
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("etl_kernel.pipeline"))
    session: Dict[str, Any] = field(default_factory=dict)
    source_partitions: int = DEFAULT_SOURCE_PARTITIONS

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        if not self.session:
            self.session = dict(self.config.initial_session_conf)

    @property
    def run_id(self) -> str:
        return self.config.run_id

    def now(self) -> int:
        return int(self.clock())

    # -----------------------------
    # Sessão
    # -----------------------------
    def set_session_conf(self, key: str, value: Any) -> None:
        self.session[key] = value

    def get_session_conf(self, key: str, default: Optional[Any] = None) -> Any:
        return self.session.get(key, default)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": from_epoch_ms(self.now()).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

        self.logger.log(_LEVELS.get(level.lower(), logging.INFO), "[%s] %s", step_id, message)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)
        self.logger.warning("[%s] %s", step_id, message)
