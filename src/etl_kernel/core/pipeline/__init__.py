"""
# Pipeline Core — ETL Kernel

Este pacote define o **ciclo de vida de execução de um módulo** de um
pipeline ETL incremental: validar a origem, aplicar a cadeia de
transformações, escrever no destino e registrar sempre um StatusReport.

## Componentes

- **types**
  - `Module`, `PipelineTarget`, `DataFrequency`, `RecordCountPolicy`
  - `ModuleStatus` / `ModuleOutcome`: desfecho tipado (SUCCESS, EMPTY, FAILED)

- **dataset**
  - Protocolos de capacidade: `Dataset`, `Transform`, `ModuleWriter`,
    `Database`, `PostProcessor`, `SchemaRegistry`

- **context**
  - `ExecutionContext`: configuração, logger, sessão e relógio explícitos

- **definition** / **writer** / **handlers**
  - `EtlDefinition.process()`, `AppendWriter`, `FailureHandler`, `EmptyInputHandler`

- **optimize** / **report** / **partitions** / **postprocess**
  - `OptimizeScheduler`, `StatusReport`/`StatusReporter`, dimensionamento de
    partições, pós-processamento e restauração de sessão

## Invariantes

- Exatamente um StatusReport persistido por execução de módulo
- Rollback → persistência do report → sinal de falha, nunca reordenado
- `last_optimized_ts` só avança quando optimize foi agendado na run

## Limites Explícitos

- Não sequencia módulos
- Não implementa engine de datasets nem de storage
"""

from .context import ExecutionContext, configure_logging  # noqa: F401
from .dataset import (  # noqa: F401
    Database,
    Dataset,
    ModuleWriter,
    PostProcessor,
    SchemaRegistry,
    Transform,
)
from .definition import EtlDefinition  # noqa: F401
from .handlers import EmptyInputHandler, FailureHandler, verified_until_ts  # noqa: F401
from .optimize import OptimizeScheduler  # noqa: F401
from .partitions import compute_write_partitions, optimize_write_partitions  # noqa: F401
from .postprocess import initiate_post_processing, restore_session_conf  # noqa: F401
from .report import (  # noqa: F401
    StatusReport,
    StatusReporter,
    failed_status,
    load_last_run_detail,
    status_log_target,
)
from .types import (  # noqa: F401
    DataFrequency,
    Module,
    ModuleOutcome,
    ModuleStatus,
    PipelineTarget,
    RecordCountPolicy,
)
from .writer import AppendWriter  # noqa: F401
