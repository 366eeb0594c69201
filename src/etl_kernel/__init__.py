# src/etl_kernel/__init__.py
"""
ETL Kernel — kernel de execução de módulos de pipelines ETL incrementais.

Este pacote raiz define o namespace público do kernel, que executa uma
unidade ("módulo") de um pipeline incremental: puxa um dataset de origem,
valida seu schema mínimo, aplica uma cadeia ordenada de transformações,
escreve em um destino durável e registra sempre o desfecho como um
StatusReport auditável.

Arquitetura em alto nível:
    - core.config   → carregamento, merge, hashing e acessor de configuração
    - core.schema   → catálogo de schemas mínimos por módulo
    - core.pipeline → ciclo de vida do módulo (executor, writer, handlers, status log)
    - adapters      → Dataset sobre pandas
    - persistence   → Database e PostProcessor locais (arquivos JSON-lines)

Limites explícitos:
    - Não decide quais dados buscar
    - Não sequencia módulos do pipeline
    - Não implementa engine de storage distribuída
"""

__version__ = "0.1.0"
