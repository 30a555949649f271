"""
Contrato canônico de Step do Atlas TaskFlow.

Este módulo define o descritor imutável de um Step e a sua política de
execução (retry, backoff, timeout e condição).

Um Step é a menor unidade executável do pipeline: um nome único,
uma lista ordenada de dependências (nomes de outros Steps) e uma
callable opaca fornecida pelo chamador, cuja lógica de negócio não é
conhecida pelo engine.

Responsabilidades do módulo:
    - normalizar dependências uma única vez, na construção
    - validar que uma callable foi fornecida
    - validar limites da política (retries >= 0, retry_delay >= 0)
    - expor a invocação da callable com o input resolvido

Princípios fundamentais:
    - Steps não conhecem o engine nem o planner
    - Steps não controlam ordem de execução
    - Steps são imutáveis e podem ser compartilhados entre threads

Invariantes:
    - `name` é uma string não vazia (igualdade sensível a caixa)
    - `depends_on` é uma tupla de strings, imutável
    - Um Step nunca é alterado após construído; overrides de configuração
      produzem um novo Step (`dataclasses.replace`)

Limites explícitos:
    - Não executa retry nem timeout (responsabilidade do policy engine)
    - Não resolve inputs (responsabilidade do engine)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Protocol, Tuple, Union, runtime_checkable

from .types import Backoff, ConditionKind


@runtime_checkable
class StepCallable(Protocol):
    """Interface mínima de uma callable de Step (qualquer objeto chamável)."""

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        ...


Predicate = Callable[..., Any]
RetryPredicate = Callable[[BaseException], Any]


def normalize_dependencies(depends_on: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    """Normaliza `depends_on` para uma tupla de nomes (str único ou iterável)."""
    if depends_on is None:
        return ()
    if isinstance(depends_on, str):
        return (depends_on,)
    deps = tuple(depends_on)
    for dep in deps:
        if not isinstance(dep, str) or not dep:
            raise ValueError(f"dependency names must be non-empty strings, got: {dep!r}")
    return deps


@dataclass(frozen=True)
class StepPolicy:
    """
    Política de execução de um Step.

    Campos:
        - retries: retentativas permitidas após a primeira tentativa (>= 0)
        - retry_delay: atraso base em segundos entre tentativas (>= 0)
        - backoff: função de atraso (NONE, LINEAR, EXPONENTIAL)
        - retry_if: predicado erro → bool; None significa "sempre retentar"
        - timeout: limite por tentativa em segundos; None ou <= 0 desabilita
        - run_if: executa somente se o predicado for truthy
        - run_unless: executa somente se o predicado for falsy

    Decisões arquiteturais:
        - `run_if` prevalece sobre `run_unless` quando ambos existem
        - O timeout não é reduzido entre tentativas: cada tentativa tem
          sua própria janela
    """
    retries: int = 0
    retry_delay: float = 0.0
    backoff: Backoff = Backoff.NONE
    retry_if: Optional[RetryPredicate] = None
    timeout: Optional[float] = None
    run_if: Optional[Predicate] = None
    run_unless: Optional[Predicate] = None

    def __post_init__(self) -> None:
        if isinstance(self.retries, bool) or not isinstance(self.retries, int) or self.retries < 0:
            raise ValueError(f"retries must be an int >= 0, got: {self.retries!r}")
        if self.retry_delay is None or self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got: {self.retry_delay!r}")
        # aceita o valor textual do enum ("linear", "exponential"...)
        object.__setattr__(self, "backoff", Backoff(self.backoff or Backoff.NONE))

    @property
    def has_timeout(self) -> bool:
        return self.timeout is not None and self.timeout > 0

    @property
    def condition_kind(self) -> ConditionKind:
        if self.run_if is not None:
            return ConditionKind.IF
        if self.run_unless is not None:
            return ConditionKind.UNLESS
        return ConditionKind.NONE


@dataclass(frozen=True)
class Step:
    """
    Descritor imutável de um Step do Atlas TaskFlow.

    Atributos:
        - name: identificador único e estável do Step
        - depends_on: nomes dos Steps dos quais depende (ordem preservada)
        - fn: callable opaca invocada com o input resolvido
        - policy: política de retry/timeout/condição

    Decisões arquiteturais:
        - Dependências duplicadas são mantidas na ordem declarada, mas
          tratadas como conjunto em lookups
        - A ausência de callable é um erro de construção (`ValueError`)

    Invariantes:
        - A instância é congelada; qualquer alteração gera um novo Step
    """
    name: str
    fn: StepCallable
    depends_on: Tuple[str, ...] = ()
    policy: StepPolicy = field(default_factory=StepPolicy)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("step name must be a non-empty string")
        if self.fn is None:
            raise ValueError(f"Step '{self.name}' must have a callable")
        if not callable(self.fn):
            raise ValueError(f"Step '{self.name}' callable must be callable, got: {type(self.fn).__name__}")
        object.__setattr__(self, "depends_on", normalize_dependencies(self.depends_on))

    @property
    def dependency_set(self) -> frozenset:
        return frozenset(self.depends_on)

    def call(self, *args: Any, **kwargs: Any) -> Any:
        return self.fn(*args, **kwargs)

    def __str__(self) -> str:
        return f"Step({self.name})"

    def __repr__(self) -> str:
        return f"Step(name={self.name!r}, depends_on={list(self.depends_on)!r})"
