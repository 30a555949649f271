"""
Base comum dos executores do Atlas TaskFlow.

Concentra o que é idêntico entre os executores sequencial e paralelo:
    - validação do grafo antes da execução
    - criação do RunContext da run (quando não fornecido)
    - resolução de input + policy engine por Step
    - montagem de RunResult e de StepError com resultados parciais

Contrato de `execute(initial_input=None)`:
    - retorna RunResult quando todos os Steps terminam SUCCESS/SKIPPED
    - levanta StepError (com `partial_results`) na primeira falha de Step
    - retorna RunResult com `error` preenchido quando algo fora do loop de
      tentativas levanta (ex.: predicado de condição ou de retry)
    - erros de validação (MissingDependencyError, CycleError) propagam
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from atlas_taskflow.core.exceptions import StepError
from atlas_taskflow.core.pipeline.context import RunContext
from atlas_taskflow.core.pipeline.graph import StepGraph
from atlas_taskflow.core.pipeline.step import Step
from atlas_taskflow.core.pipeline.types import RunResult, StepResult

from .inputs import resolve_input
from .policy import PolicyEngine


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseExecutor:
    """Executor abstrato; subclasses implementam `_run`."""

    name = "base"

    def __init__(self, graph: StepGraph, *, ctx: Optional[RunContext] = None):
        self.graph = graph
        self.ctx = ctx

    def execute(self, initial_input: Any = None) -> RunResult:
        self.graph.validate()

        ctx = self.ctx if self.ctx is not None else RunContext()
        policy = PolicyEngine(ctx)
        started_at = utcnow()
        step_results: Dict[str, StepResult] = {}

        ctx.log(step_id=None, level="INFO", message="run started", executor=self.name, steps=len(self.graph))
        try:
            failure = self._run(policy, step_results, initial_input)
        except Exception as exc:  # noqa: BLE001 - erro fatal de run vira RunResult.error
            ctx.log(step_id=None, level="ERROR", message="run aborted", error=f"{exc.__class__.__name__}: {exc}")
            return self._result(ctx, step_results, started_at, error=exc)

        if failure is not None:
            failed = step_results[failure]
            ctx.log(step_id=failure, level="ERROR", message="run failed")
            raise StepError(
                failure,
                failed.error,
                partial_results=self._result(ctx, step_results, started_at),
            ) from failed.error

        ctx.log(step_id=None, level="INFO", message="run finished")
        return self._result(ctx, step_results, started_at)

    def _run(self, policy: PolicyEngine, step_results: Dict[str, StepResult], initial_input: Any) -> Optional[str]:
        """Executa os Steps; retorna o nome do Step que falhou, ou None."""
        raise NotImplementedError("Subclasses must implement _run")

    def _execute_step(
        self,
        policy: PolicyEngine,
        step: Step,
        outputs: Mapping[str, Any],
        initial_input: Any,
    ) -> StepResult:
        return policy.execute(step, resolve_input(step, outputs, initial_input))

    def _result(
        self,
        ctx: RunContext,
        step_results: Mapping[str, StepResult],
        started_at: datetime,
        error: Optional[BaseException] = None,
    ) -> RunResult:
        return RunResult(
            step_results=dict(step_results),
            started_at=started_at,
            finished_at=utcnow(),
            error=error,
            run_id=ctx.run_id,
            events=tuple(ctx.snapshot_events()),
        )
