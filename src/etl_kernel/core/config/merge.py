# src/etl_kernel/core/config/merge.py
"""
Deep-merge de configuração do pipeline (defaults + override local).

O override local é o mecanismo usado para ambientes isolados: ligar
`pipeline.local_testing`, fixar janelas de um módulo em `modules.<id>` ou
apontar o status log para outra base, sem editar os defaults versionados.

Política (v1):
    - mapping × mapping → merge recursivo por chave
    - lista no override → substitui a lista base inteira
    - número × número → aceito (int ↔ float), bool nunca conta como número
    - demais escalares → exigem o mesmo tipo do valor base
    - chaves novas → copiadas como estão

Invariantes:
    - Os dicionários de entrada nunca são mutados
    - Conflitos reportam o caminho completo da chave (ex.: `pipeline.debug`)
"""

from copy import deepcopy
from typing import Any, Dict, Tuple

from .errors import ConfigTypeConflictError


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _dotted(path: Tuple[str, ...]) -> str:
    return ".".join(path) or "<root>"


def _merge_value(base_value: Any, override_value: Any, path: Tuple[str, ...]) -> Any:
    if isinstance(base_value, dict) and isinstance(override_value, dict):
        return _merge_mapping(base_value, override_value, path)

    if isinstance(override_value, list) or (_is_number(base_value) and _is_number(override_value)):
        return deepcopy(override_value)

    # `modules: null` no override não apaga a seção inteira dos defaults
    if type(base_value) is not type(override_value):
        raise ConfigTypeConflictError(
            f"Conflito de tipo em '{_dotted(path)}': "
            f"{type(base_value).__name__} vs {type(override_value).__name__}"
        )

    return deepcopy(override_value)


def _merge_mapping(base: Dict[Any, Any], override: Dict[Any, Any], path: Tuple[str, ...]) -> Dict[Any, Any]:
    merged = deepcopy(base)
    for key, override_value in override.items():
        key_path = path + (str(key),)
        if key in merged:
            merged[key] = _merge_value(merged[key], override_value, key_path)
        else:
            merged[key] = deepcopy(override_value)
    return merged


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combina a configuração base com overrides explícitos, sem mutar as entradas.

    Raises:
        ConfigTypeConflictError: Se as raízes não forem dicts ou se uma chave
            mudar de tipo entre base e override.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )
    return _merge_mapping(base, override, ())
