"""Loader canônico do catálogo de schemas (YAML/JSON).

Notas:
- YAML é preferencial, JSON é alternativo.
- O formato é inferido pela extensão do arquivo.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .errors import (
    SchemaCatalogFileNotFoundError,
    SchemaCatalogParseError,
    UnsupportedSchemaCatalogFormatError,
)


def load_schema_catalog(*, path: Union[str, Path]) -> Dict[str, Any]:
    """Carrega o catálogo bruto a partir de YAML/JSON.

    Raises:
        SchemaCatalogFileNotFoundError: se arquivo não existir.
        UnsupportedSchemaCatalogFormatError: se extensão não suportada.
        SchemaCatalogParseError: se parsing falhar ou a raiz não for mapping.
    """
    p = Path(path)
    if not p.exists():
        raise SchemaCatalogFileNotFoundError(f"schema catalog not found: {p}")

    suffix = p.suffix.lower()
    raw = p.read_text(encoding="utf-8")

    try:
        if suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(raw)
        elif suffix == ".json":
            data = json.loads(raw)
        else:
            raise UnsupportedSchemaCatalogFormatError(f"unsupported schema catalog format: {suffix}")
    except UnsupportedSchemaCatalogFormatError:
        raise
    except Exception as e:
        raise SchemaCatalogParseError(str(e) or "failed to parse schema catalog") from e

    if data is None:
        raise SchemaCatalogParseError("schema catalog file is empty")

    if not isinstance(data, dict):
        raise SchemaCatalogParseError("schema catalog root must be a mapping/dict")

    return data
