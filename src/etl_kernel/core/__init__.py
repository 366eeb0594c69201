# src/etl_kernel/core/__init__.py
"""
Core do ETL Kernel.

Este pacote contém a implementação canônica e independente de adapters do
kernel de execução de módulos.

O core é projetado para ser:
    - determinístico (relógio injetável, decisões puras)
    - testável de forma isolada
    - orientado a protocolos de capacidade explícitos

Componentes principais:
    - config     → resolução de configuração e acessor `PipelineConfig`
    - schema     → catálogo de schemas mínimos
    - pipeline   → executor, writer, handlers, agendamento de optimize, status log
    - errors     → payloads de erro serializáveis
    - exceptions → exceções tipadas e o sinal terminal `ModuleFailed`

Limites explícitos:
    - Não importa implementações concretas de dataset ou storage
"""
