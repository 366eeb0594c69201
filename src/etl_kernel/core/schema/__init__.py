"""ETL Kernel — Schema catalog (core).

Componentes canônicos do catálogo de schemas mínimos:
 - parsing (YAML/JSON)
 - validação estrutural
 - registro por módulo (`SchemaRegistry.get(module)`)
"""

from .errors import (  # noqa: F401
    SchemaCatalogError,
    SchemaCatalogFileNotFoundError,
    SchemaCatalogParseError,
    SchemaCatalogValidationError,
    UnsupportedSchemaCatalogFormatError,
)
from .loader import load_schema_catalog  # noqa: F401
from .registry import (  # noqa: F401
    CatalogSchemaRegistry,
    RequiredColumn,
    RequiredSchema,
    validate_schema_catalog,
)
