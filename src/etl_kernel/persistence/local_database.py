# src/etl_kernel/persistence/local_database.py
"""
Storage local (JSON-lines) para o kernel de execução.

Implementação de referência do colaborador `Database`: cada destino é um
arquivo `<root>/<database>/<name>.jsonl`, escrito em modo append.

Decisões (v1):
    - Antes de cada escrita, o tamanho do arquivo é registrado como snapshot;
      `rollback_target` trunca o arquivo de volta a esse snapshot
    - `commit_target` descarta o snapshot depois que o report SUCCESS foi
      persistido; escritas confirmadas nunca são revertidas
    - Sem snapshot vivo (nada escrito ou já confirmado), rollback é no-op
    - Leitura via pandas sem inferência de datas/dtypes
      (`convert_dates=False`, `dtype=False`): epoch millis permanecem inteiros
    - Janelas incrementais são semiabertas: `[from_ts, until_ts)`

Limites explícitos:
    - Não é transacional entre destinos
    - Não oferece controle de concorrência
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import pandas as pd

from etl_kernel.adapters.pandas_dataset import PandasDataset
from etl_kernel.core.clock import to_epoch_ms
from etl_kernel.core.exceptions import RollbackFailure
from etl_kernel.core.pipeline.dataset import Dataset
from etl_kernel.core.pipeline.types import PipelineTarget

logger = logging.getLogger(__name__)

# arquivo ainda não existia antes da escrita
_ABSENT = -1


def _to_frame(dataset: Dataset) -> pd.DataFrame:
    if isinstance(dataset, PandasDataset):
        return dataset.frame
    return pd.DataFrame.from_records(dataset.to_records())


class LocalDatabase:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self._snapshots: Dict[str, int] = {}

    def table_path(self, target: PipelineTarget) -> Path:
        return self.root / target.database / f"{target.name}.jsonl"

    # -----------------------------
    # Escrita / rollback
    # -----------------------------
    def write(self, dataset: Dataset, target: PipelineTarget) -> bool:
        path = self.table_path(target)
        frame = _to_frame(dataset)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._snapshots[target.table_full_name] = path.stat().st_size if path.exists() else _ABSENT
            if len(frame.index) == 0:
                path.touch()
                return True

            text = frame.to_json(orient="records", lines=True, date_format="iso")
            with path.open("a", encoding="utf-8") as f:
                f.write(text.rstrip("\n") + "\n")
        except OSError as e:
            logger.error("write to %s failed: %s", target.table_full_name, e)
            return False
        return True

    def rollback_target(self, target: PipelineTarget) -> None:
        key = target.table_full_name
        if key not in self._snapshots:
            logger.info("rollback of %s: no uncommitted write", key)
            return

        snapshot = self._snapshots.pop(key)
        path = self.table_path(target)
        try:
            if snapshot == _ABSENT:
                if path.exists():
                    path.unlink()
            else:
                with path.open("r+b") as f:
                    f.truncate(snapshot)
        except OSError as e:
            raise RollbackFailure(
                message=f"rollback of {key} failed",
                details={"target": key, "snapshot_bytes": snapshot},
            ) from e

    def commit_target(self, target: PipelineTarget) -> None:
        self._snapshots.pop(target.table_full_name, None)

    # -----------------------------
    # Leitura
    # -----------------------------
    def _read_frame(self, target: PipelineTarget) -> pd.DataFrame:
        path = self.table_path(target)
        if not path.exists() or path.stat().st_size == 0:
            return pd.DataFrame()
        return pd.read_json(path, orient="records", lines=True, convert_dates=False, dtype=False)

    def read_table(self, target: PipelineTarget) -> PandasDataset:
        return PandasDataset(self._read_frame(target))

    def read_window(
        self,
        target: PipelineTarget,
        *,
        column: str,
        from_ts: int,
        until_ts: int,
    ) -> PandasDataset:
        frame = self._read_frame(target)
        if frame.empty:
            return PandasDataset(frame)
        if column not in frame.columns:
            raise KeyError(f"column {column!r} not found in {target.table_full_name}")

        values = frame[column]
        if pd.api.types.is_numeric_dtype(values):
            ts = values.astype("int64")
        else:
            ts = values.map(to_epoch_ms)
        mask = (ts >= from_ts) & (ts < until_ts)
        return PandasDataset(frame[mask].reset_index(drop=True))

    def frame_to_dataset(self, rows: Sequence[Dict[str, Any]]) -> PandasDataset:
        return PandasDataset.from_records(rows)

    # -----------------------------
    # Manutenção
    # -----------------------------
    def compact(self, target: PipelineTarget) -> Optional[int]:
        """Reescreve o destino em um único arquivo normalizado; devolve o nº de linhas."""
        path = self.table_path(target)
        if not path.exists():
            return None
        frame = self._read_frame(target)
        tmp = path.with_suffix(".jsonl.tmp")
        text = frame.to_json(orient="records", lines=True, date_format="iso") if len(frame.index) else ""
        tmp.write_text(text.rstrip("\n") + "\n" if text else "", encoding="utf-8")
        tmp.replace(path)
        self._snapshots.pop(target.table_full_name, None)
        return int(len(frame.index))
