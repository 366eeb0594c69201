# src/etl_kernel/adapters/pandas_dataset.py
"""
Adapter: capacidade `Dataset` sobre um `pandas.DataFrame`.

Implementação de referência do engine de datasets consumido pelo kernel.
Não é distribuída: partições são um valor lógico, usado apenas para que o
dimensionamento de escrita e a sondagem de partições tenham efeito observável.

Decisões (v1):
    - `streaming=True` simula uma origem sem contagem estática de partições
      (`try_partition_count()` devolve `None`)
    - `verify_minimum_schema` exige as colunas declaradas, aplica
      enforcement de não-nulos e coage os dtypes declarados
    - estágios de transformação podem devolver `PandasDataset` ou `DataFrame`

Limites explícitos:
    - Não executa nada em paralelo
    - Não remove colunas extras da origem
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from etl_kernel.core.exceptions import SchemaValidationError
from etl_kernel.core.schema.registry import RequiredSchema

logger = logging.getLogger(__name__)

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def _coerce_bool(v: Any) -> Any:
    if v is None or v is pd.NA or (isinstance(v, float) and pd.isna(v)):
        return None
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"not a boolean: {v!r}")


def _coerce_column(series: pd.Series, dtype: str) -> pd.Series:
    if dtype == "any":
        return series
    if dtype == "string":
        return series.where(series.isna(), series.astype(str))
    if dtype == "int":
        numeric = pd.to_numeric(series, errors="raise")
        if not (numeric.dropna() % 1 == 0).all():
            raise ValueError("non-integer values")
        return numeric.astype("Int64")
    if dtype == "float":
        return pd.to_numeric(series, errors="raise").astype(float)
    if dtype == "bool":
        return series.map(_coerce_bool)
    if dtype == "datetime":
        return pd.to_datetime(series, utc=True, errors="raise")
    raise ValueError(f"unsupported dtype: {dtype}")


class PandasDataset:
    """Dataset em memória sobre pandas."""

    def __init__(
        self,
        frame: pd.DataFrame,
        *,
        partitions: int = 1,
        streaming: bool = False,
    ):
        if not isinstance(frame, pd.DataFrame):
            raise TypeError("PandasDataset requires a pandas DataFrame")
        self.frame = frame
        self.partitions = max(1, int(partitions))
        self.streaming = streaming

    @classmethod
    def from_records(cls, rows: Sequence[Dict[str, Any]], **kwargs: Any) -> "PandasDataset":
        return cls(pd.DataFrame.from_records(list(rows)), **kwargs)

    def _derive(self, frame: pd.DataFrame, *, partitions: Optional[int] = None) -> "PandasDataset":
        return PandasDataset(
            frame,
            partitions=self.partitions if partitions is None else partitions,
            streaming=self.streaming,
        )

    def __repr__(self) -> str:
        return f"PandasDataset(rows={len(self.frame)}, partitions={self.partitions}, streaming={self.streaming})"

    # -----------------------------
    # Capacidades
    # -----------------------------
    def is_empty(self) -> bool:
        return len(self.frame.index) == 0

    def verify_minimum_schema(
        self,
        required: RequiredSchema,
        *,
        enforce_non_null: bool = True,
        debug: bool = False,
    ) -> "PandasDataset":
        if debug:
            logger.debug("Verifying minimum schema for module %s: %s", required.module_id, required.to_dict())

        columns = list(self.frame.columns)
        missing = [name for name in required.required_names if name not in columns]
        if missing:
            raise SchemaValidationError(
                message=f"Minimum schema not met for module {required.module_id}: missing columns {missing}",
                details={"module_id": required.module_id, "missing_columns": missing},
                hint="Verifique a origem ou o catálogo de schemas mínimos do módulo.",
            )

        if enforce_non_null:
            nulls = {
                name: int(self.frame[name].isna().sum())
                for name in required.non_null_names
                if self.frame[name].isna().any()
            }
            if nulls:
                raise SchemaValidationError(
                    message=f"Null values in required non-null columns for module {required.module_id}: {sorted(nulls)}",
                    details={"module_id": required.module_id, "null_counts": nulls},
                )

        frame = self.frame.copy()
        for col in required.columns:
            try:
                frame[col.name] = _coerce_column(frame[col.name], col.dtype)
            except (TypeError, ValueError) as e:
                raise SchemaValidationError(
                    message=f"Column {col.name} cannot be read as {col.dtype} for module {required.module_id}",
                    details={"module_id": required.module_id, "column": col.name, "dtype": col.dtype},
                ) from e
        return self._derive(frame)

    def try_partition_count(self) -> Optional[int]:
        if self.streaming:
            return None
        return self.partitions

    def transform(self, stage: Callable[[Any], Any]) -> "PandasDataset":
        result = stage(self)
        if isinstance(result, PandasDataset):
            return result
        if isinstance(result, pd.DataFrame):
            return self._derive(result)
        raise TypeError(f"transform stage must return a PandasDataset or DataFrame, got {type(result).__name__}")

    def count(self) -> int:
        return int(len(self.frame.index))

    def repartition(self, n: int) -> "PandasDataset":
        return self._derive(self.frame, partitions=n)

    def to_records(self) -> List[Dict[str, Any]]:
        frame = self.frame.astype(object)
        return frame.where(frame.notna(), None).to_dict(orient="records")
