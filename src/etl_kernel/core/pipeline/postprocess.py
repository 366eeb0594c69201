# src/etl_kernel/core/pipeline/postprocess.py
"""
Pós-processamento da run e restauração da conf de sessão.

- `restore_session_conf`: devolve o mapa de sessão do contexto aos valores
  informados (padrão: conf inicial da configuração). O AppendWriter chama
  no caminho de sucesso; após uma falha, cabe a quem orquestra os módulos
  chamar antes do próximo módulo.
- `initiate_post_processing`: executa o optimize dos destinos marcados
  durante a run e remove os diretórios temporários do pipeline.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .context import ExecutionContext
from .dataset import PostProcessor


def restore_session_conf(ctx: ExecutionContext, values: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    restored = dict(ctx.config.initial_session_conf if values is None else values)
    ctx.session.clear()
    ctx.session.update(restored)
    if ctx.config.debug:
        ctx.log(step_id="pipeline", level="debug", message="Session conf restored", session=dict(restored))
    return restored


def initiate_post_processing(
    ctx: ExecutionContext,
    post_processor: PostProcessor,
    temp_paths: Optional[Sequence[str]] = None,
) -> List[str]:
    """Retorna os destinos otimizados (`table_full_name`)."""
    optimized = post_processor.optimize()
    ctx.log(
        step_id="pipeline",
        level="info",
        message=f"Post processing: {len(optimized)} target(s) optimized",
        optimized=list(optimized),
    )

    paths = ctx.config.temp_paths if temp_paths is None else list(temp_paths)
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
    return list(optimized)
