"""
Executor paralelo do Atlas TaskFlow.

Executa os níveis topológicos do grafo em ordem estrita; os Steps de um
mesmo nível rodam concorrentemente em um `ThreadPoolExecutor`.

Política de concorrência:
    - `max_concurrency=None`: o nível inteiro roda de uma vez, uma thread
      por Step
    - `max_concurrency=n`: o nível é particionado em lotes sequenciais de
      até n Steps; cada lote roda concorrentemente e é aguardado antes do
      próximo
    - nenhum trabalho cruza a fronteira de nível: o nível k é totalmente
      concluído antes de o nível k+1 ser despachado

Estado compartilhado:
    - saídas, resultados e o registro da primeira falha são protegidos
      por um único `threading.Lock`; toda leitura de saídas para montar
      input e toda escrita de resultado acontece sob o lock

Falhas:
    - a primeira falha registrada vence (corrida aceita entre falhas
      concorrentes do mesmo nível)
    - Steps já despachados terminam normalmente (sem cancelamento) e os
      lotes restantes do mesmo nível ainda são executados; nenhum nível
      posterior é iniciado
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from atlas_taskflow.core.pipeline.context import RunContext
from atlas_taskflow.core.pipeline.graph import StepGraph
from atlas_taskflow.core.pipeline.step import Step
from atlas_taskflow.core.pipeline.types import StepResult

from .base import BaseExecutor
from .inputs import resolve_input
from .policy import PolicyEngine


class _RunState:
    """Estado mutável de uma run paralela; todo acesso passa por `lock`."""

    def __init__(self, step_results: Dict[str, StepResult], initial_input: Any):
        self.lock = threading.Lock()
        self.outputs: Dict[str, Any] = {}
        self.step_results = step_results
        self.initial_input = initial_input
        self.failure: Optional[str] = None


class ParallelExecutor(BaseExecutor):
    name = "parallel"

    def __init__(
        self,
        graph: StepGraph,
        max_concurrency: Optional[int] = None,
        *,
        ctx: Optional[RunContext] = None,
    ):
        if max_concurrency is not None and (
            isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1
        ):
            raise ValueError(f"max_concurrency must be a positive int or None, got: {max_concurrency!r}")
        super().__init__(graph, ctx=ctx)
        self.max_concurrency = max_concurrency

    def _batches(self, level: List[Step]) -> List[List[Step]]:
        if self.max_concurrency is None:
            return [level]
        size = self.max_concurrency
        return [level[i:i + size] for i in range(0, len(level), size)]

    def _run(self, policy: PolicyEngine, step_results: Dict[str, StepResult], initial_input: Any) -> Optional[str]:
        state = _RunState(step_results, initial_input)

        for index, level in enumerate(self.graph.levels()):
            if policy.ctx is not None:
                policy.ctx.log(step_id=None, level="DEBUG", message="level dispatched", level_index=index,
                               steps=[s.name for s in level])

            for batch in self._batches(level):
                self._run_batch(policy, batch, state)

            # o nível da falha é concluído por inteiro; só níveis posteriores são descartados
            if state.failure is not None:
                return state.failure

        return None

    def _run_batch(self, policy: PolicyEngine, batch: List[Step], state: _RunState) -> None:
        fatal: Optional[BaseException] = None

        with ThreadPoolExecutor(max_workers=len(batch), thread_name_prefix="atlas-taskflow") as pool:
            futures = {pool.submit(self._run_step, policy, step, state): step.name for step in batch}

            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None and fatal is None:
                    fatal = exc

        # o lote inteiro já terminou (saída do `with`); só então propaga
        if fatal is not None:
            raise fatal

    def _run_step(self, policy: PolicyEngine, step: Step, state: _RunState) -> None:
        with state.lock:
            step_input = resolve_input(step, state.outputs, state.initial_input)

        result = policy.execute(step, step_input)

        with state.lock:
            state.step_results[step.name] = result
            if result.failed:
                if state.failure is None:
                    state.failure = step.name
            elif not result.skipped:
                state.outputs[step.name] = result.output
