# src/etl_kernel/core/config/loader.py
"""
Leitura dos arquivos de configuração do pipeline.

Duas origens são aceitas:
    - `defaults` (obrigatório): configuração versionada da organização
    - `local` (opcional): override do ambiente; ausente não é erro

As entradas brutas são preservadas por origem porque os status reports
gravam `input_config` exatamente como foi lido, antes do merge.

Limites explícitos:
    - Não interpreta semântica do pipeline (ver `settings.PipelineConfig`)
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO, Tuple

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge

_PARSERS: Dict[str, Callable[[TextIO], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def _read_mapping(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo de configuração; arquivo vazio vale como `{}`.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não tiver parser.
        InvalidConfigRootTypeError: Se a raiz não for um mapping.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    with path.open("r", encoding="utf-8") as fh:
        data = parser(fh)

    data = {} if data is None else data
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )
    return data


def load_config_sources(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Carrega defaults e override local.

    Returns:
        `(inputs, effective)`: entradas brutas por origem
        (`{"defaults": ..., "local": ...}`) e a configuração já resolvida.

    Raises:
        ConfigTypeConflictError: Se o override mudar o tipo de alguma chave.
    """
    defaults = _read_mapping(Path(defaults_path))
    inputs: Dict[str, Any] = {"defaults": defaults}

    if local_path is None or not Path(local_path).exists():
        return inputs, defaults

    local = _read_mapping(Path(local_path))
    inputs["local"] = local
    return inputs, deep_merge(defaults, local)


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Configuração efetiva do pipeline (override local tem prioridade)."""
    _, effective = load_config_sources(defaults_path=defaults_path, local_path=local_path)
    return effective
