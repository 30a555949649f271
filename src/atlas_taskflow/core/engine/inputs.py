"""
Resolução do input de um Step a partir das saídas já produzidas.

Regras (idênticas para todos os executores):
    - zero dependências → input inicial da run como argumento posicional,
      ou nenhum argumento quando o input inicial é None
    - uma dependência → saída dessa dependência como argumento posicional
    - duas ou mais → mapa nome → saída passado como argumentos nomeados

Saídas ausentes (ex.: dependência pulada) resolvem para None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from atlas_taskflow.core.pipeline.step import Step


class InputKind(str, Enum):
    NONE = "none"
    SINGLE = "single"
    KEYED = "keyed"


@dataclass(frozen=True)
class StepInput:
    """Variante etiquetada do input: NONE | SINGLE(value) | KEYED(mapping)."""
    kind: InputKind
    value: Any = None
    keyed: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def none(cls) -> "StepInput":
        return cls(InputKind.NONE)

    @classmethod
    def single(cls, value: Any) -> "StepInput":
        return cls(InputKind.SINGLE, value=value)

    @classmethod
    def of_keys(cls, keyed: Mapping[str, Any]) -> "StepInput":
        return cls(InputKind.KEYED, keyed=dict(keyed))

    def apply(self, fn: Callable[..., Any]) -> Any:
        if self.kind == InputKind.SINGLE:
            return fn(self.value)
        if self.kind == InputKind.KEYED:
            return fn(**self.keyed)
        return fn()


def resolve_input(step: Step, outputs: Mapping[str, Any], initial_input: Optional[Any] = None) -> StepInput:
    deps = list(dict.fromkeys(step.depends_on))

    if not deps:
        return StepInput.none() if initial_input is None else StepInput.single(initial_input)

    if len(deps) == 1:
        return StepInput.single(outputs.get(deps[0]))

    return StepInput.of_keys({dep: outputs.get(dep) for dep in deps})
