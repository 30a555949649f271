"""
Grafo estrutural de Steps do pipeline.

Este módulo define o `StepGraph`, responsável por registrar Steps,
preservar a ordem canônica de inserção e expor as consultas topológicas
usadas pelos executores.

O grafo atua como uma camada de proteção antecipada, garantindo que:
    - cada Step possua um nome único (verificado no `add`)
    - toda dependência referenciada exista (verificado no `validate`)
    - não existam ciclos (verificado no `validate`)

Decisões arquiteturais:
    - Unicidade é imposta imediatamente; as demais invariantes são
      verificadas de forma lazy, na primeira consulta topológica ou execução
    - A ordem de inserção é preservada para desempates determinísticos
      em diagnósticos
    - O algoritmo de validação/ordenação vive no planner do engine

Invariantes:
    - Cada Step registrado possui um nome único
    - Após validado, o grafo é somente leitura durante a execução

Limites explícitos:
    - Não executa pipeline
    - Não interage com RunContext
    - Não contém lógica de domínio
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from atlas_taskflow.core.engine.planner import compute_levels, topological_order, validate_graph
from atlas_taskflow.core.exceptions import DuplicateStepError

from .step import Step


class StepGraph:
    """
    Grafo (DAG) de Steps do Atlas TaskFlow.

    `add` é encadeável e O(1). `validate`, `sorted_steps` e `levels`
    delegam ao planner; a validação é memorizada até o próximo `add`.
    """

    def __init__(self) -> None:
        self._steps: Dict[str, Step] = {}
        self._validated = False

    def add(self, step: Step) -> "StepGraph":
        if step.name in self._steps:
            raise DuplicateStepError(step.name)

        self._steps[step.name] = step
        self._validated = False
        return self

    def get(self, name: str) -> Optional[Step]:
        return self._steps.get(name)

    def __getitem__(self, name: str) -> Optional[Step]:
        return self._steps.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __iter__(self) -> Iterator[Step]:
        return iter(list(self._steps.values()))

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def steps(self) -> List[Step]:
        return list(self._steps.values())

    @property
    def step_names(self) -> List[str]:
        return list(self._steps.keys())

    @property
    def is_empty(self) -> bool:
        return not self._steps

    # -----------------------------
    # Consultas topológicas
    # -----------------------------
    def validate(self) -> bool:
        if not self._validated:
            validate_graph(self._steps)
            self._validated = True
        return True

    def sorted_steps(self) -> List[Step]:
        self.validate()
        return [self._steps[name] for name in topological_order(self._steps)]

    def levels(self) -> List[List[Step]]:
        self.validate()
        return [[self._steps[name] for name in level] for level in compute_levels(self._steps)]

    def to_mermaid(self) -> str:
        """Diagrama Mermaid (`graph TD`) do grafo validado."""
        lines = ["graph TD"]

        if self.is_empty:
            lines.append("  empty[Empty Pipeline]")
            return "\n".join(lines)

        for step in self.sorted_steps():
            if not step.depends_on:
                lines.append(f"  {step.name}")
                continue
            for dep in dict.fromkeys(step.depends_on):
                lines.append(f"  {dep} --> {step.name}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"StepGraph(steps={self.step_names!r})"
