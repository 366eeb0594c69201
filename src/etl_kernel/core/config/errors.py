# src/etl_kernel/core/config/errors.py
"""
Exceções canônicas da camada de configuração do kernel.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento, o merge e a interpretação da configuração do pipeline.

As exceções aqui definidas representam **violações estruturais
explícitas** da configuração, e não falhas de execução de módulos:
nenhuma delas produz StatusReport, pois são levantadas antes que qualquer
módulo comece a executar.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa erro de domínio ou de escrita

Limites explícitos:
    - Não realiza fallback ou recovery
    - Não depende do kernel de execução
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do pipeline.

    Todas as exceções levantadas durante carregamento, merge e resolução
    da configuração devem herdar desta classe, permitindo captura genérica
    e distinção clara entre falhas estruturais e falhas de execução.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    O arquivo de defaults é obrigatório: sem ele não existe configuração
    efetiva válida e o loader não tenta inferir uma.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz da configuração não é um dicionário (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"pipeline": {"local_testing": false}}
        - override: {"pipeline": "local"}

    Nenhum merge parcial é produzido em caso de conflito.
    """


class InvalidPipelineConfigError(ConfigError):
    """
    Configuração resolvida carece de campos obrigatórios do pipeline
    ou contém valores que não podem ser interpretados.

    Exemplos:
        - `pipeline.organization_id` ausente
        - `pipeline.primordial_date` não interpretável como data
        - janela de módulo com `from` posterior a `until`
    """
