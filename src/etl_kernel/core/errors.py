"""
ETL Kernel — Canonical Error Payloads (v1)

Este módulo define o padrão canônico de payloads de erro do kernel de execução
de módulos. Um payload acompanha todo desfecho que não é SUCCESS e deve ser:

- explícito
- serializável

O payload não substitui o StatusReport persistido; ele descreve, de forma
estruturada, por que o módulo terminou como EMPTY ou FAILED.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .exceptions import KernelException, RollbackFailure, SchemaValidationError, WriteFailure


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do kernel.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
NO_NEW_DATA = "NO_NEW_DATA"
WRITE_FAILURE = "WRITE_FAILURE"
ROLLBACK_FAILURE = "ROLLBACK_FAILURE"
UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def no_new_data(*, module_id: int, module_name: str) -> ErrorPayload:
    return ErrorPayload(
        type=NO_NEW_DATA,
        message=f"ALERT: No New Data Retrieved for Module {module_id}-{module_name}! Skipping",
        details={"module_id": module_id, "module_name": module_name},
        hint="Nenhuma ação necessária: a janela incremental não trouxe registros novos.",
    )


def write_failure(
    *,
    message: str,
    target: Optional[str] = None,
    hint: str = "Verifique o destino e o estado do rollback no status log antes de reexecutar o módulo.",
) -> ErrorPayload:
    return ErrorPayload(
        type=WRITE_FAILURE,
        message=message,
        details={"target": target},
        hint=hint,
    )


def unhandled_exception(
    *,
    message: str,
    exc_type: Optional[str] = None,
    hint: str = "Verifique o log técnico do módulo. Nenhum fallback é aplicado automaticamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=UNHANDLED_EXCEPTION,
        message=message,
        details={"exception_class": exc_type},
        hint=hint,
    )


_KIND_BY_EXCEPTION = (
    (SchemaValidationError, SCHEMA_VALIDATION_ERROR),
    (WriteFailure, WRITE_FAILURE),
    (RollbackFailure, ROLLBACK_FAILURE),
)


def exception_to_error(exc: BaseException, *, message: Optional[str] = None) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável, acionável).

    Regras:
    - Exceções tipadas do kernel mantêm details/hint e recebem o código do catálogo.
    - Outras exceções são encapsuladas como UNHANDLED_EXCEPTION, sem stack trace.
    """
    text = message or str(exc) or exc.__class__.__name__

    if isinstance(exc, KernelException):
        kind = UNHANDLED_EXCEPTION
        for exc_type, code in _KIND_BY_EXCEPTION:
            if isinstance(exc, exc_type):
                kind = code
                break
        details = dict(exc.details or {})
        details.setdefault("exception_class", exc.__class__.__name__)
        return ErrorPayload(type=kind, message=text, details=details, hint=exc.hint)

    return unhandled_exception(message=text, exc_type=exc.__class__.__name__)
