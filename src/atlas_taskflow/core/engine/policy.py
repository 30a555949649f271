"""
Policy engine: condição, retry, backoff e timeout por Step.

Este módulo implementa o loop de tentativas compartilhado por todos os
executores. Para cada Step:

    1. Avalia a condição (`run_if` / `run_unless`) contra o input resolvido.
       Se o Step não deve rodar, produz uma StepResult SKIPPED (sem
       tentativas, duração zero, zero retentativas, sem timeout).
    2. Executa até `1 + retries` tentativas:
        - com timeout configurado (> 0), a callable roda em uma thread
          daemon e a espera é limitada; perder a corrida gera
          `StepTimeoutError` e marca a tentativa como timed-out
        - erros levantados pela callable são capturados como erro da
          tentativa (não relançados)
        - sucesso encerra o loop imediatamente
        - falha é retentada enquanto houver retentativas e `retry_if`
          (padrão: sempre) aceitar o erro, após o atraso do backoff
    3. Exceções levantadas pelos próprios predicados (condição ou
       `retry_if`) não são capturadas: propagam para o executor, que as
       trata como erro fatal da run (distinto de falha de Step).

Decisões arquiteturais:
    - Timeout e retry são ortogonais: cada tentativa tem janela própria
    - O timeout não interrompe a callable; o trabalho subjacente pode
      continuar em background (limpeza best-effort, não contratual)
    - O atraso de retry bloqueia apenas a thread que retenta

Invariantes:
    - Apenas a tentativa final produz StepResult
    - `retries` na StepResult conta retentativas efetivamente consumidas
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from atlas_taskflow.core.exceptions import StepTimeoutError
from atlas_taskflow.core.pipeline.context import RunContext
from atlas_taskflow.core.pipeline.step import Step, StepPolicy
from atlas_taskflow.core.pipeline.types import Backoff, ConditionKind, StepResult, StepStatus

from .inputs import StepInput


def compute_delay(policy: StepPolicy, retry_number: int) -> float:
    """Atraso antes da retentativa `retry_number` (1-based)."""
    base = float(policy.retry_delay or 0.0)
    if base <= 0:
        return 0.0
    if policy.backoff == Backoff.LINEAR:
        return base * retry_number
    if policy.backoff == Backoff.EXPONENTIAL:
        return base * (2 ** (retry_number - 1))
    return base


def should_run(policy: StepPolicy, step_input: StepInput) -> bool:
    kind = policy.condition_kind
    if kind == ConditionKind.IF:
        return bool(step_input.apply(policy.run_if))
    if kind == ConditionKind.UNLESS:
        return not step_input.apply(policy.run_unless)
    return True


def skipped_result(step: Step, started_at: Optional[datetime] = None) -> StepResult:
    return StepResult(
        step_name=step.name,
        output=None,
        duration=0.0,
        started_at=started_at or datetime.now(timezone.utc),
        error=None,
        retries=0,
        timed_out=False,
        explicit_status=StepStatus.SKIPPED,
    )


def call_with_timeout(step: Step, step_input: StepInput, timeout: float) -> Any:
    """
    Executa a callable em uma thread daemon, aguardando no máximo `timeout`.

    Se a espera expirar, levanta `StepTimeoutError`; a thread não é
    interrompida e seu resultado tardio é descartado.
    """
    future: Future = Future()

    def _target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(step_input.apply(step.fn))
        except BaseException as exc:  # noqa: BLE001 - repassado ao chamador via Future
            future.set_exception(exc)

    worker = threading.Thread(target=_target, name=f"atlas-taskflow-{step.name}", daemon=True)
    worker.start()

    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        if not future.done():
            raise StepTimeoutError(step.name, timeout) from None
        # concluiu no limite, ou a própria callable levantou TimeoutError
        return future.result()


class PolicyEngine:
    """
    Executor de políticas por Step (condição + loop de tentativas).

    Args:
        ctx: RunContext para eventos estruturados (opcional).
        sleep: função de espera entre tentativas; injetável em testes.
    """

    def __init__(self, ctx: Optional[RunContext] = None, *, sleep: Callable[[float], None] = time.sleep):
        self.ctx = ctx
        self.sleep = sleep

    def _log(self, step: Step, level: str, message: str, **extra: Any) -> None:
        if self.ctx is not None:
            self.ctx.log(step_id=step.name, level=level, message=message, **extra)

    def _attempt(self, step: Step, step_input: StepInput) -> Any:
        if step.policy.has_timeout:
            return call_with_timeout(step, step_input, step.policy.timeout)
        return step_input.apply(step.fn)

    def _retry_allowed(self, policy: StepPolicy, error: BaseException) -> bool:
        if policy.retry_if is None:
            return True
        return bool(policy.retry_if(error))

    def execute(self, step: Step, step_input: StepInput) -> StepResult:
        """
        Avalia a condição e executa o loop de tentativas de um Step.

        Returns:
            StepResult: SKIPPED, SUCCESS ou FAILED (tentativa final).

        Raises:
            Exception: qualquer erro levantado por `run_if`, `run_unless`
                ou `retry_if` (não capturado).
        """
        policy = step.policy
        started_at = datetime.now(timezone.utc)

        if not should_run(policy, step_input):
            self._log(step, "INFO", "step skipped by condition", condition=policy.condition_kind.value)
            return skipped_result(step, started_at)

        self._log(step, "DEBUG", "step started")
        clock = time.perf_counter()
        retries_remaining = policy.retries
        retries = 0

        while True:
            error: Optional[BaseException] = None
            timed_out = False
            output: Any = None

            try:
                output = self._attempt(step, step_input)
            except StepTimeoutError as exc:
                error, timed_out = exc, True
                self._log(step, "WARNING", str(exc), attempt=retries + 1)
                if self.ctx is not None:
                    self.ctx.add_warning(step_id=step.name, message="timed-out attempt may still be running in background")
            except Exception as exc:  # noqa: BLE001 - erro da callable é dado, não fluxo
                error = exc

            if error is None:
                self._log(step, "INFO", "step succeeded", retries=retries)
                return StepResult(
                    step_name=step.name,
                    output=output,
                    duration=time.perf_counter() - clock,
                    started_at=started_at,
                    retries=retries,
                )

            if retries_remaining > 0 and self._retry_allowed(policy, error):
                retries_remaining -= 1
                retries += 1
                delay = compute_delay(policy, retries)
                self._log(
                    step,
                    "WARNING",
                    "attempt failed, retrying",
                    attempt=retries,
                    delay=delay,
                    error=f"{error.__class__.__name__}: {error}",
                )
                if delay > 0:
                    self.sleep(delay)
                continue

            self._log(step, "ERROR", "step failed", retries=retries, error=f"{error.__class__.__name__}: {error}")
            return StepResult(
                step_name=step.name,
                output=None,
                duration=time.perf_counter() - clock,
                started_at=started_at,
                error=error,
                retries=retries,
                timed_out=timed_out,
            )
