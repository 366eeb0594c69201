"""
Utilitários de tempo do kernel.

Todas as marcas de tempo persistidas no status log são epoch millis em UTC.
Este módulo concentra a normalização de valores de configuração (datas ISO,
datetimes, inteiros) para esse formato e o relógio padrão do contexto de
execução, que é injetável para testes determinísticos.
"""

from __future__ import annotations

import time
from datetime import date, datetime, timezone
from typing import Any, Callable

DAY_MS = 1000 * 60 * 60 * 24
WEEK_MS = DAY_MS * 7

Clock = Callable[[], int]


def system_clock_ms() -> int:
    """Relógio de parede em epoch millis."""
    return int(time.time() * 1000)


def ensure_tzaware_utc(dt: datetime) -> datetime:
    """
    Normaliza um timestamp para timezone-aware em UTC.

    Timestamps timezone-naive são assumidos como UTC; timestamps com
    timezone são convertidos para UTC preservando o instante.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_ms(value: Any) -> int:
    """
    Converte um valor de configuração em epoch millis (UTC).

    Aceita:
        - int (já em millis)
        - datetime / date
        - string ISO 8601 (`2024-01-01` ou `2024-01-01T10:00:00+00:00`)

    Raises:
        ValueError: Se o valor não puder ser interpretado.
    """
    if isinstance(value, bool):
        raise ValueError(f"Valor temporal inválido: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        return int(ensure_tzaware_utc(value).timestamp() * 1000)
    if isinstance(value, date):
        return to_epoch_ms(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_epoch_ms(datetime.fromisoformat(text))
        except ValueError as e:
            raise ValueError(f"Valor temporal inválido: {value!r}") from e
    raise ValueError(f"Valor temporal inválido: {value!r}")


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
