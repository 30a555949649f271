"""
Tipos canônicos do pipeline do Atlas TaskFlow.

Este módulo define as estruturas e enums fundamentais que padronizam
a comunicação entre Steps, policy engine e executores.

Os tipos aqui definidos representam:
    - estados finais de execução de Steps
    - políticas de backoff e de condição
    - resultado imutável de um Step (StepResult)
    - resultado imutável de uma run completa (RunResult)

Componentes principais:
    - StepStatus    → enum de estados finais (SUCCESS, SKIPPED, FAILED)
    - Backoff       → enum de funções de atraso entre tentativas
    - ConditionKind → enum de tipos de condição (NONE, IF, UNLESS)
    - StepResult    → snapshot imutável do desfecho de um Step
    - RunResult     → snapshot imutável de uma run

Princípios fundamentais:
    - Tipos são estáveis e serializáveis (`to_dict`)
    - Resultados são construídos uma única vez e nunca mutados
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - Enums possuem valores textuais canônicos
    - `StepResult.status` é derivado de `error` salvo SKIPPED explícito
    - `RunResult.success` ⟺ sem erro de run e nenhum Step FAILED

Limites explícitos:
    - Não executa Steps
    - Não planeja pipelines
    - Não decide políticas de execução

Este módulo existe para garantir consistência
e clareza semântica dos resultados de execução.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from atlas_taskflow.core.errors import error_payload


class StepStatus(str, Enum):
    """
    Estados finais possíveis da execução de um Step.

    Estados definidos:
        - SUCCESS: execução concluída com sucesso
        - SKIPPED: execução pulada pela condição do Step (`run_if`/`run_unless`)
        - FAILED: tentativa final terminou em erro

    Decisões arquiteturais:
        - O status é um valor final, não transitório
        - Estados intermediários (ex.: running) não pertencem a este enum
        - Dependentes de um Step FAILED nunca recebem status: ficam ausentes
          do resultado, pois nunca são tentados
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class Backoff(str, Enum):
    """
    Função que mapeia o número da retentativa (1-based) para o atraso.

        - NONE:        delay
        - LINEAR:      delay × n
        - EXPONENTIAL: delay × 2^(n-1)
    """
    NONE = "none"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class ConditionKind(str, Enum):
    """Tipo de condição configurada em um Step (`IF` prevalece sobre `UNLESS`)."""
    NONE = "none"
    IF = "if"
    UNLESS = "unless"


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável da execução de um Step.

    Esta classe representa o snapshot canônico do desfecho de um Step em
    uma run, produzido pelo policy engine a partir da tentativa final
    (retentativas intermediárias nunca geram StepResult).

    Campos:
        - step_name: nome do Step
        - output: valor produzido pela callable (opaco; None quando pulado)
        - duration: tempo de parede em segundos desde o início do loop de tentativas
        - started_at: timestamp UTC de início
        - error: erro da tentativa final (None em caso de sucesso)
        - retries: número de retentativas efetivamente consumidas
        - timed_out: se a tentativa final excedeu o timeout
        - explicit_status: status explícito (apenas SKIPPED é usado)

    Invariantes:
        - Uma instância de StepResult nunca é alterada após criada
        - `status` é FAILED se houver erro, senão SUCCESS, salvo SKIPPED explícito
    """
    step_name: str
    output: Any = None
    duration: Optional[float] = None
    started_at: Optional[datetime] = None
    error: Optional[BaseException] = None
    retries: int = 0
    timed_out: bool = False
    explicit_status: Optional[StepStatus] = None

    @property
    def status(self) -> StepStatus:
        if self.explicit_status is not None:
            return self.explicit_status
        return StepStatus.FAILED if self.error is not None else StepStatus.SUCCESS

    @property
    def success(self) -> bool:
        return self.status == StepStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status == StepStatus.FAILED

    failure = failed

    @property
    def skipped(self) -> bool:
        return self.status == StepStatus.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        payload = error_payload(self.error, step=self.step_name)
        return {
            "step_name": self.step_name,
            "output": self.output,
            "duration": self.duration,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "error": payload.to_dict() if payload else None,
            "status": self.status.value,
            "retries": self.retries,
            "timed_out": self.timed_out,
            "skipped": self.skipped,
        }

    def __repr__(self) -> str:
        duration = round(self.duration, 4) if self.duration is not None else None
        return f"StepResult(step={self.step_name!r}, status={self.status.value}, duration={duration})"


@dataclass(frozen=True)
class RunResult:
    """
    Resultado agregado e imutável de uma execução de pipeline.

    Construído incrementalmente pelo executor e congelado ao ser retornado
    ao chamador ou embutido em `StepError.partial_results`.

    Campos:
        - step_results: mapa nome → StepResult (ordem de conclusão)
        - started_at / finished_at: timestamps UTC da run
        - error: erro de run (ex.: predicado de condição/retry que levantou);
          distinto de qualquer erro de Step
        - run_id: identificador da run (RunContext)
        - events: eventos de log estruturado registrados durante a run

    Invariantes:
        - `success` ⟺ `error is None` e nenhum Step com status FAILED
        - Steps SKIPPED não contam como falha
        - `hash()` considera apenas run_id, timestamps e error; o conteúdo
          de step_results e events é mutável e fica fora do hash
    """
    step_results: Mapping[str, StepResult] = field(default_factory=dict, hash=False)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[BaseException] = None
    run_id: Optional[str] = None
    events: Tuple[Dict[str, Any], ...] = field(default=(), hash=False)

    def __post_init__(self) -> None:
        # snapshot: o executor continua mutando o próprio dict
        object.__setattr__(self, "step_results", MappingProxyType(dict(self.step_results)))
        object.__setattr__(self, "events", tuple(self.events))

    def __getitem__(self, step_name: str) -> Optional[StepResult]:
        return self.step_results.get(step_name)

    def get(self, step_name: str) -> Optional[StepResult]:
        return self.step_results.get(step_name)

    def __contains__(self, step_name: object) -> bool:
        return step_name in self.step_results

    @property
    def success(self) -> bool:
        return self.error is None and not any(r.failed for r in self.step_results.values())

    @property
    def failed(self) -> bool:
        return not self.success

    failure = failed

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def outputs(self) -> Dict[str, Any]:
        return {name: r.output for name, r in self.step_results.items()}

    def output(self, step_name: str) -> Any:
        result = self.step_results.get(step_name)
        return result.output if result is not None else None

    @property
    def completed_steps(self) -> List[str]:
        return list(self.step_results.keys())

    def to_dict(self) -> Dict[str, Any]:
        payload = error_payload(self.error)
        return {
            "run_id": self.run_id,
            "success": self.success,
            "duration": self.duration,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": payload.to_dict() if payload else None,
            "steps": {name: r.to_dict() for name, r in self.step_results.items()},
        }

    def __repr__(self) -> str:
        status = "success" if self.success else "failed"
        duration = round(self.duration, 4) if self.duration is not None else None
        return f"RunResult(status={status}, steps={len(self.step_results)}, duration={duration})"
