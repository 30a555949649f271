"""
Executor sequencial do Atlas TaskFlow.

Percorre a ordem topológica do grafo um Step por vez, na thread do
chamador. Para cada Step resolve o input a partir das saídas correntes,
aplica o policy engine e registra a StepResult. Na primeira falha, a
iteração para imediatamente: dependentes do Step falho nunca são tentados
e ficam ausentes do resultado (não são marcados SKIPPED).

Steps pulados não publicam saída; dependentes leem None.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from atlas_taskflow.core.pipeline.types import StepResult

from .base import BaseExecutor
from .policy import PolicyEngine


class SequentialExecutor(BaseExecutor):
    name = "sequential"

    def _run(self, policy: PolicyEngine, step_results: Dict[str, StepResult], initial_input: Any) -> Optional[str]:
        outputs: Dict[str, Any] = {}

        for step in self.graph.sorted_steps():
            result = self._execute_step(policy, step, outputs, initial_input)
            step_results[step.name] = result

            if result.failed:
                return step.name
            if not result.skipped:
                outputs[step.name] = result.output

        return None
