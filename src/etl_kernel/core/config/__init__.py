# src/etl_kernel/core/config/__init__.py

"""
Camada de configuração do kernel de execução de módulos.

Este pacote carrega, mescla, identifica (hash) e interpreta a configuração
do pipeline consumida pelo kernel.

A configuração é:
    - declarativa
    - determinística
    - separada do catálogo de schemas

Componentes:
    - loader   → leitura de YAML/JSON (defaults + overrides locais)
    - merge    → deep-merge determinístico
    - hashing  → identidade estrutural da configuração
    - settings → `PipelineConfig`, o acessor lido pelo kernel

Limites explícitos:
    - Não executa módulos
    - Não persiste configuração (o eco de auditoria vai no StatusReport)
"""

from .errors import (  # noqa: F401
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidPipelineConfigError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash  # noqa: F401
from .loader import load_config, load_config_sources  # noqa: F401
from .merge import deep_merge  # noqa: F401
from .settings import PipelineConfig, load_pipeline_config  # noqa: F401
