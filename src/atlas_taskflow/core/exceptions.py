"""
Atlas TaskFlow — Canonical Exceptions (v1)

Este módulo define a hierarquia de exceções tipadas do Atlas TaskFlow.

Objetivo:
- Permitir que grafo, policy engine e executores levantem exceções
  semânticas tipadas, com contexto estruturado para diagnóstico
- Facilitar o mapeamento determinístico para ErrorPayload
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Hierarquia:
    TaskflowError
        GraphError
            DuplicateStepError      (add)
            MissingDependencyError  (validate)
            CycleError              (validate)
        StepTimeoutError            (tentativa que excede o timeout)
        StepError                   (falha final de um Step; encerra a run)
        EngineConfigurationError    (configuração inválida para a run)

Regras:
- Exceções carregam apenas dados estruturados em `details`.
- Mensagem deve ser curta e humana.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from .errors import (
    ENGINE_CONFIGURATION_ERROR,
    ENGINE_EXECUTION_ERROR,
    GRAPH_CYCLE,
    GRAPH_DUPLICATE_STEP,
    GRAPH_MISSING_DEPENDENCY,
    STEP_FAILED,
    STEP_TIMEOUT,
    ErrorPayload,
)

if TYPE_CHECKING:  # pragma: no cover
    from .pipeline.types import RunResult


class TaskflowError(Exception):
    """Base class para exceções internas do Atlas TaskFlow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    """

    code: str = ENGINE_EXECUTION_ERROR
    hint: Optional[str] = None

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(
            type=self.code,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Grafo / Validação estrutural
# ---------------------------------------------------------------------------

class GraphError(TaskflowError):
    """Violação estrutural do grafo de Steps."""


class DuplicateStepError(GraphError):
    """
    Exceção levantada quando um Step com nome já registrado é adicionado
    ao grafo.

    Decisões arquiteturais:
        - Nomes de Step são a chave primária do grafo
        - A duplicidade é detectada imediatamente no `add`, não no `validate`

    Invariantes:
        - O grafo não é alterado quando esta exceção é levantada
    """

    code = GRAPH_DUPLICATE_STEP
    hint = "Renomeie um dos Steps; nomes devem ser únicos no pipeline."

    def __init__(self, step_name: str, message: Optional[str] = None):
        self.step_name = step_name
        super().__init__(
            message or f"Step '{step_name}' already exists",
            details={"step_name": step_name},
        )


class MissingDependencyError(GraphError):
    """
    Exceção levantada quando um Step referencia uma dependência inexistente.

    Carrega exatamente um par (step, dependência ausente): o primeiro
    encontrado na ordem de inserção dos Steps e, dentro do Step, na ordem
    declarada de `depends_on`.
    """

    code = GRAPH_MISSING_DEPENDENCY
    hint = "Declare o Step ausente ou remova a dependência."

    def __init__(self, step_name: str, missing_dependency: str, message: Optional[str] = None):
        self.step_name = step_name
        self.missing_dependency = missing_dependency
        super().__init__(
            message or f"Step '{step_name}' depends on '{missing_dependency}' which does not exist",
            details={"step_name": step_name, "missing_dependency": missing_dependency},
        )


class CycleError(GraphError):
    """
    Exceção levantada quando o grafo de dependências contém um ciclo.

    `cycle` é um caminho válido no grafo (cada nó depende do seguinte),
    com o primeiro nó repetido no final. Não é canônico: qualquer ciclo
    existente satisfaz o contrato.
    """

    code = GRAPH_CYCLE
    hint = "Remova a dependência circular entre os Steps listados."

    def __init__(self, cycle: Sequence[str], message: Optional[str] = None):
        self.cycle: List[str] = list(cycle)
        super().__init__(
            message or f"Circular dependency detected: {' -> '.join(self.cycle)}",
            details={"cycle": list(self.cycle)},
        )


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

class StepTimeoutError(TaskflowError):
    """
    Erro de tentativa produzido pelo policy engine quando o timeout expira.

    É tratado como qualquer outro erro de Step para fins de retry, mas é
    distinguível via `isinstance(err, StepTimeoutError)` ou pela flag
    `timed_out` da StepResult.
    A callable não é interrompida: o trabalho subjacente pode continuar em
    background.
    """

    code = STEP_TIMEOUT
    hint = "Aumente o timeout do Step ou reduza o trabalho executado por tentativa."

    def __init__(self, step_name: str, timeout_seconds: float, message: Optional[str] = None):
        self.step_name = step_name
        self.timeout_seconds = timeout_seconds
        super().__init__(
            message or f"Step '{step_name}' timed out after {timeout_seconds} seconds",
            details={"step_name": step_name, "timeout_seconds": timeout_seconds},
        )


class StepError(TaskflowError):
    """
    Falha fatal da run causada pela tentativa final de um Step.

    Esta é a única forma pela qual uma falha de Step chega ao chamador.
    Carrega o nome do Step, o erro original e um snapshot (`RunResult`)
    de tudo o que completou antes da falha, incluindo o próprio Step falho.
    """

    code = STEP_FAILED
    hint = "Inspecione `partial_results` e o erro original do Step."

    def __init__(
        self,
        step_name: str,
        original_error: BaseException,
        partial_results: "RunResult",
        message: Optional[str] = None,
    ):
        self.step_name = step_name
        self.original_error = original_error
        self.partial_results = partial_results
        super().__init__(
            message or f"Step '{step_name}' failed: {original_error}",
            details={
                "step_name": step_name,
                "original_error": original_error.__class__.__name__,
                "completed_steps": list(partial_results.completed_steps),
            },
        )


class EngineConfigurationError(TaskflowError):
    """Configuração inválida ou inconsistente para execução."""

    code = ENGINE_CONFIGURATION_ERROR
    hint = "Revise a configuração do engine/steps antes de reexecutar."
