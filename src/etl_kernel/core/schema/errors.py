"""Erros canônicos do catálogo de schemas mínimos.

O catálogo declara, por módulo, as colunas obrigatórias da origem.
Falhas de carregamento/validação do catálogo devem produzir erros explícitos
e estáveis, antes que qualquer módulo execute.
"""


class SchemaCatalogError(Exception):
    """Erro base do catálogo de schemas."""


class SchemaCatalogFileNotFoundError(SchemaCatalogError):
    """Arquivo de catálogo não existe no caminho informado."""


class UnsupportedSchemaCatalogFormatError(SchemaCatalogError):
    """Formato de catálogo não suportado (v1: YAML/JSON)."""


class SchemaCatalogParseError(SchemaCatalogError):
    """Falha ao parsear YAML/JSON."""


class SchemaCatalogValidationError(SchemaCatalogError):
    """Catálogo não é estruturalmente válido."""
