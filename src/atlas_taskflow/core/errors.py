"""
Atlas TaskFlow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de representação de erros do
Atlas TaskFlow. Erros fazem parte do contrato operacional do engine e,
quando expostos em resultados (`to_dict`), devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do Atlas TaskFlow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Grafo / Validação estrutural
GRAPH_DUPLICATE_STEP = "GRAPH_DUPLICATE_STEP"
GRAPH_MISSING_DEPENDENCY = "GRAPH_MISSING_DEPENDENCY"
GRAPH_CYCLE = "GRAPH_CYCLE"

# Execução de Steps
STEP_TIMEOUT = "STEP_TIMEOUT"
STEP_FAILED = "STEP_FAILED"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Conversão exceção -> payload
# ---------------------------------------------------------------------------

def engine_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o stacktrace e a StepResult correspondente. Nenhum fallback é aplicado automaticamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=exc_message or "Falha inesperada durante a execução do pipeline",
        details={
            "step": step,
            "exc_type": exc_type,
        },
        hint=hint,
    )


def error_payload(exc: Optional[BaseException], *, step: Optional[str] = None) -> Optional[ErrorPayload]:
    """
    Converte uma exceção em `ErrorPayload` serializável.

    Regras:
    - Exceções do Atlas TaskFlow já carregam código, detalhes e hint
      (`to_payload`), que são usados diretamente.
    - Qualquer outra exceção (ex.: erro levantado pela callable do usuário)
      é encapsulada como ENGINE_EXECUTION_ERROR, sem stack trace.
    - `None` produz `None`, para simplificar dumps de resultados sem erro.
    """
    if exc is None:
        return None

    to_payload = getattr(exc, "to_payload", None)
    if callable(to_payload):
        return to_payload()

    return engine_execution_error(
        step=step,
        exc_type=exc.__class__.__name__,
        exc_message=str(exc) or None,
    )
