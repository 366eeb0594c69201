# src/etl_kernel/core/config/settings.py
"""
Acessor canônico da configuração do pipeline.

Este módulo interpreta a configuração resolvida (defaults + local) junto com o
histórico do status log e expõe exatamente o que o kernel de execução consome:

    - identidade da run (`organization_id`, `run_id`, `primordial_date_string`)
    - janelas incrementais por módulo (`from_time`, `until_time`)
    - flags de execução (`is_first_run`, `is_local_testing`, `debug`)
    - histórico (`last_run_detail`) usado pelo agendamento de optimize
    - ecos de auditoria (`input_config`, `parsed_config`)
    - conf de sessão inicial e dicas de dimensionamento

Resolução da janela incremental:
    - from:  janela explícita do módulo → `until_ts` do último report
             SUCCESS/EMPTY do módulo → data primordial do pipeline
    - until: janela explícita do módulo → `pipeline.until` → snapshot da run

Exemplo de configuração:

    pipeline:
      organization_id: "org-001"
      primordial_date: "2024-01-01"
      local_testing: false
      never_advance_when_empty: [1005]
    modules:
      1010: {from: "2024-03-01", until: "2024-03-02"}
    session:
      initial: {shuffle.partitions: 200}
      hints: {max_write_partitions: 400}
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from etl_kernel.core.clock import from_epoch_ms, system_clock_ms, to_epoch_ms

from .errors import InvalidPipelineConfigError
from .hashing import compute_config_hash
from .loader import load_config_sources

if TYPE_CHECKING:  # pragma: no cover
    from etl_kernel.core.pipeline.report import StatusReport


DEFAULT_STATUS_LOG_NAME = "pipeline_report"
DEFAULT_STATUS_LOG_DATABASE = "etl_status"
DEFAULT_NEVER_ADVANCE_WHEN_EMPTY: Tuple[int, ...] = (1005,)

# status que avançam a janela incremental (FAILED sofreu rollback)
_ADVANCING_STATUSES = ("SUCCESS", "EMPTY")


def _section(config: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = config.get(key) or {}
    if not isinstance(value, dict):
        raise InvalidPipelineConfigError(f"'{key}' must be a mapping")
    return value


def _module_windows(config: Mapping[str, Any]) -> Dict[int, Dict[str, int]]:
    windows: Dict[int, Dict[str, int]] = {}
    for raw_id, spec in _section(config, "modules").items():
        try:
            module_id = int(raw_id)
        except (TypeError, ValueError) as e:
            raise InvalidPipelineConfigError(f"module id must be an integer: {raw_id!r}") from e

        spec = spec or {}
        if not isinstance(spec, dict):
            raise InvalidPipelineConfigError(f"modules.{raw_id} must be a mapping")

        window: Dict[str, int] = {}
        for bound in ("from", "until"):
            if spec.get(bound) is None:
                continue
            try:
                window[bound] = to_epoch_ms(spec[bound])
            except ValueError as e:
                raise InvalidPipelineConfigError(f"modules.{raw_id}.{bound}: {e}") from e

        if "from" in window and "until" in window and window["from"] > window["until"]:
            raise InvalidPipelineConfigError(f"modules.{raw_id}: 'from' is after 'until'")

        windows[module_id] = window
    return windows


@dataclass(frozen=True)
class PipelineConfig:
    """
    Configuração interpretada de uma run do pipeline (somente leitura).

    Campos:
        - parsed: configuração efetiva resolvida (dict puro)
        - input_config: entradas brutas por origem, ecoadas nos reports
        - last_run_detail: histórico do status log, do mais antigo ao mais recente
        - snapshot_ts: instante (epoch millis) que identifica a run
    """

    parsed: Dict[str, Any]
    input_config: Dict[str, Any] = field(default_factory=dict)
    last_run_detail: Tuple["StatusReport", ...] = ()
    snapshot_ts: int = 0
    config_hash: str = ""
    _windows: Dict[int, Dict[str, int]] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(
        cls,
        config: Dict[str, Any],
        *,
        input_config: Optional[Dict[str, Any]] = None,
        last_run_detail: Sequence["StatusReport"] = (),
        snapshot_ts: Optional[int] = None,
    ) -> "PipelineConfig":
        """
        Valida e materializa a configuração do pipeline.

        Raises:
            InvalidPipelineConfigError: se campos obrigatórios estiverem ausentes
                ou não puderem ser interpretados.
        """
        if not isinstance(config, dict):
            raise InvalidPipelineConfigError("config root must be a mapping")

        pipeline = _section(config, "pipeline")
        org = pipeline.get("organization_id")
        if org is None or not str(org).strip():
            raise InvalidPipelineConfigError("pipeline.organization_id is required")

        if pipeline.get("primordial_date") is None:
            raise InvalidPipelineConfigError("pipeline.primordial_date is required")
        try:
            to_epoch_ms(pipeline["primordial_date"])
            if pipeline.get("until") is not None:
                to_epoch_ms(pipeline["until"])
        except ValueError as e:
            raise InvalidPipelineConfigError(str(e)) from e

        _section(config, "session")
        _section(config, "status_log")

        snap = snapshot_ts
        if snap is None:
            raw_snap = pipeline.get("snapshot_time")
            try:
                snap = to_epoch_ms(raw_snap) if raw_snap is not None else system_clock_ms()
            except ValueError as e:
                raise InvalidPipelineConfigError(f"pipeline.snapshot_time: {e}") from e

        parsed = dict(config)
        if not pipeline.get("run_id"):
            parsed["pipeline"] = dict(pipeline, run_id=uuid.uuid4().hex)

        return cls(
            parsed=parsed,
            input_config=dict(input_config if input_config is not None else {"defaults": config}),
            last_run_detail=tuple(last_run_detail),
            snapshot_ts=int(snap),
            config_hash=compute_config_hash(config),
            _windows=_module_windows(config),
        )

    def with_history(self, last_run_detail: Sequence["StatusReport"]) -> "PipelineConfig":
        """Mesma run (mesmo `run_id`), com o histórico do status log anexado."""
        return replace(self, last_run_detail=tuple(last_run_detail))

    # -----------------------------
    # Identidade
    # -----------------------------
    @property
    def _pipeline(self) -> Dict[str, Any]:
        return self.parsed.get("pipeline") or {}

    @property
    def organization_id(self) -> str:
        return str(self._pipeline["organization_id"])

    @property
    def run_id(self) -> str:
        return str(self._pipeline["run_id"])

    @property
    def primordial_ts(self) -> int:
        return to_epoch_ms(self._pipeline["primordial_date"])

    @property
    def primordial_date_string(self) -> str:
        return from_epoch_ms(self.primordial_ts).date().isoformat()

    # -----------------------------
    # Flags
    # -----------------------------
    @property
    def debug(self) -> bool:
        return bool(self._pipeline.get("debug", False))

    @property
    def is_local_testing(self) -> bool:
        return bool(self._pipeline.get("local_testing", False))

    @property
    def is_first_run(self) -> bool:
        """Primeira run da instalação: explícito em config ou ausência de histórico."""
        explicit = self._pipeline.get("first_run")
        if isinstance(explicit, bool):
            return explicit
        return len(self.last_run_detail) == 0

    @property
    def never_advance_when_empty(self) -> Tuple[int, ...]:
        ids = self._pipeline.get("never_advance_when_empty")
        if ids is None:
            return DEFAULT_NEVER_ADVANCE_WHEN_EMPTY
        return tuple(int(i) for i in ids)

    # -----------------------------
    # Janelas incrementais
    # -----------------------------
    def module_history(self, module_id: int) -> List["StatusReport"]:
        return [r for r in self.last_run_detail if r.module_id == module_id]

    def from_time(self, module_id: int) -> int:
        explicit = self._windows.get(module_id, {}).get("from")
        if explicit is not None:
            return explicit
        advancing = [r for r in self.module_history(module_id) if r.status in _ADVANCING_STATUSES]
        if advancing:
            return advancing[-1].until_ts
        return self.primordial_ts

    def until_time(self, module_id: int) -> int:
        explicit = self._windows.get(module_id, {}).get("until")
        if explicit is not None:
            return explicit
        if self._pipeline.get("until") is not None:
            return to_epoch_ms(self._pipeline["until"])
        return self.snapshot_ts

    # -----------------------------
    # Sessão e auditoria
    # -----------------------------
    @property
    def initial_session_conf(self) -> Dict[str, Any]:
        session = self.parsed.get("session") or {}
        return dict(session.get("initial") or {})

    @property
    def session_hints(self) -> Dict[str, Any]:
        session = self.parsed.get("session") or {}
        return dict(session.get("hints") or {})

    @property
    def temp_paths(self) -> List[str]:
        return [str(p) for p in (self._pipeline.get("temp_paths") or [])]

    @property
    def status_log(self) -> Dict[str, str]:
        section = self.parsed.get("status_log") or {}
        return {
            "name": str(section.get("name") or DEFAULT_STATUS_LOG_NAME),
            "database": str(section.get("database") or DEFAULT_STATUS_LOG_DATABASE),
        }

    @property
    def parsed_config(self) -> Dict[str, Any]:
        """Configuração efetiva + hash canônico (eco de auditoria)."""
        parsed = dict(self.parsed)
        parsed["config_hash"] = self.config_hash or compute_config_hash(self.parsed)
        return parsed


def load_pipeline_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
    last_run_detail: Sequence["StatusReport"] = (),
    snapshot_ts: Optional[int] = None,
) -> PipelineConfig:
    """Carrega arquivos de configuração e materializa o `PipelineConfig`."""
    inputs, effective = load_config_sources(defaults_path=defaults_path, local_path=local_path)
    return PipelineConfig.from_dict(
        effective,
        input_config=inputs,
        last_run_detail=last_run_detail,
        snapshot_ts=snapshot_ts,
    )
