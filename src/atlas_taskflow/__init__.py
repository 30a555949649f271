"""
Atlas TaskFlow — executor in-process de Steps com dependências.

Usuários declaram Steps nomeados que dependem das saídas de outros Steps;
o Atlas TaskFlow valida o grafo, resolve a ordem de execução, executa os
Steps de forma sequencial ou concorrente (com retry, backoff, timeout e
condições por Step) e agrega os resultados.

Arquitetura em alto nível:
    - pipeline          → builder fino (`Pipeline`)
    - core.pipeline     → Step, StepGraph, RunContext, StepResult/RunResult
    - core.engine       → planner, policy engine e executores
    - core.config       → carregamento, merge e hashing de configuração

Limites explícitos:
    - Não persiste estado entre execuções do processo
    - Não distribui execução entre máquinas
    - Não contém lógica de negócio dos Steps
"""

from .core.engine.parallel import ParallelExecutor
from .core.engine.sequential import SequentialExecutor
from .core.exceptions import (
    CycleError,
    DuplicateStepError,
    EngineConfigurationError,
    GraphError,
    MissingDependencyError,
    StepError,
    StepTimeoutError,
    TaskflowError,
)
from .core.pipeline.context import RunContext
from .core.pipeline.graph import StepGraph
from .core.pipeline.step import Step, StepPolicy
from .core.pipeline.types import Backoff, RunResult, StepResult, StepStatus
from .pipeline import Pipeline

__all__ = [
    "Pipeline",
    "Step",
    "StepPolicy",
    "StepGraph",
    "RunContext",
    "SequentialExecutor",
    "ParallelExecutor",
    "StepResult",
    "RunResult",
    "StepStatus",
    "Backoff",
    "TaskflowError",
    "GraphError",
    "DuplicateStepError",
    "MissingDependencyError",
    "CycleError",
    "StepTimeoutError",
    "StepError",
    "EngineConfigurationError",
]
