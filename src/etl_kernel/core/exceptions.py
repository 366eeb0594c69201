"""
ETL Kernel — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do kernel de execução.

Objetivo:
- Permitir que colaboradores (dataset, storage) levantem falhas semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload
- Expor um único sinal terminal (`ModuleFailed`) para quem orquestra módulos

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- `ModuleFailed` só é levantada depois que o report FAILED já foi persistido.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True, eq=False)
class KernelException(Exception):
    """Base class para exceções internas do kernel.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Dataset / Schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class SchemaValidationError(KernelException):
    """Dataset de origem não satisfaz o schema mínimo exigido pelo módulo."""


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class WriteFailure(KernelException):
    """O colaborador de storage reportou escrita sem sucesso."""


@dataclass(frozen=True, eq=False)
class RollbackFailure(KernelException):
    """O rollback do destino falhou (capturado e registrado, nunca escalado)."""


# ---------------------------------------------------------------------------
# Sinal terminal
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ModuleFailed(KernelException):
    """Módulo falhou; o StatusReport FAILED já está persistido."""
