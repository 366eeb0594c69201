"""
Catálogo canônico de schemas mínimos por módulo (v1).

Cada módulo declara as colunas que a origem deve conter para ser processada.
Colunas com `nullable: false` são verificadas com enforcement de não-nulos
quando o kernel valida a origem (`Dataset.verify_minimum_schema`).

Formato (v1):

    catalog_version: "1.0"
    modules:
      1010:
        columns:
          - {name: organization_id, dtype: string, nullable: false}
          - {name: timestamp, dtype: int, nullable: false}
          - {name: requestParams, dtype: any}

Esta implementação evita dependências externas (ex.: Pydantic): a validação é
estrutural e explícita, no mesmo estilo dos demais loaders do core.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from etl_kernel.core.pipeline.types import Module

from .errors import SchemaCatalogValidationError
from .loader import load_schema_catalog


ALLOWED_DTYPES = {"string", "int", "float", "bool", "datetime", "any"}


def _is_non_empty_str(x: Any) -> bool:
    return isinstance(x, str) and bool(x.strip())


def _expect(cond: bool, msg: str) -> None:
    if not cond:
        raise SchemaCatalogValidationError(msg)


@dataclass(frozen=True)
class RequiredColumn:
    name: str
    dtype: str = "any"
    nullable: bool = True


@dataclass(frozen=True)
class RequiredSchema:
    """Schema mínimo exigido da origem de um módulo."""

    module_id: int
    columns: Tuple[RequiredColumn, ...] = ()

    @property
    def required_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    @property
    def non_null_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns if not c.nullable)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_id": self.module_id,
            "columns": [
                {"name": c.name, "dtype": c.dtype, "nullable": c.nullable} for c in self.columns
            ],
        }


def validate_schema_catalog(data: Any) -> Dict[int, RequiredSchema]:
    """Valida e materializa o catálogo de schemas (v1)."""
    _expect(isinstance(data, dict), "schema catalog must be a mapping/dict")

    version = data.get("catalog_version")
    _expect(_is_non_empty_str(version), "catalog_version is required")
    _expect(str(version) == "1.0", "catalog_version must be '1.0' in v1")

    modules = data.get("modules")
    _expect(isinstance(modules, dict), "modules must be a mapping")

    schemas: Dict[int, RequiredSchema] = {}
    for raw_id, spec in modules.items():
        try:
            module_id = int(raw_id)
        except (TypeError, ValueError):
            raise SchemaCatalogValidationError(f"module id must be an integer: {raw_id!r}")

        _expect(isinstance(spec, dict), f"modules.{raw_id} must be a mapping")
        columns = spec.get("columns")
        _expect(isinstance(columns, list), f"modules.{raw_id}.columns must be a list")

        seen: set[str] = set()
        parsed = []
        for i, col in enumerate(columns):
            where = f"modules.{raw_id}.columns[{i}]"
            _expect(isinstance(col, dict), f"{where} must be a mapping")
            name = col.get("name")
            _expect(_is_non_empty_str(name), f"{where}.name is required")
            _expect(name not in seen, f"duplicate column in module {raw_id}: {name}")
            seen.add(name)

            dtype = col.get("dtype", "any")
            _expect(dtype in ALLOWED_DTYPES, f"{where}.dtype must be one of {sorted(ALLOWED_DTYPES)}")

            nullable = col.get("nullable", True)
            _expect(isinstance(nullable, bool), f"{where}.nullable must be boolean")

            parsed.append(RequiredColumn(name=name, dtype=dtype, nullable=nullable))

        schemas[module_id] = RequiredSchema(module_id=module_id, columns=tuple(parsed))

    return schemas


class CatalogSchemaRegistry:
    """Registro de schemas mínimos indexado por `module_id`.

    Módulos sem entrada no catálogo recebem um schema vazio (nenhuma
    coluna obrigatória), a menos que `strict=True`.
    """

    def __init__(self, schemas: Dict[int, RequiredSchema], *, strict: bool = False):
        self._schemas = dict(schemas)
        self.strict = strict

    @classmethod
    def from_file(cls, path: Union[str, Path], *, strict: bool = False) -> "CatalogSchemaRegistry":
        return cls(validate_schema_catalog(load_schema_catalog(path=path)), strict=strict)

    def get(self, module: Module) -> RequiredSchema:
        schema = self._schemas.get(module.module_id)
        if schema is not None:
            return schema
        if self.strict:
            raise KeyError(f"no minimum schema registered for module {module.module_id}")
        return RequiredSchema(module_id=module.module_id)
