# tests/core/engine/test_policy_timeout.py
"""
Testes de timeout por tentativa no policy engine.

Os testes asseguram que:
- uma tentativa que excede o timeout produz StepTimeoutError
- a StepResult final é marcada como `timed_out`
- timeout e retry são ortogonais (cada tentativa tem janela própria)
- um TimeoutError levantado pela própria callable não é confundido
  com timeout do engine
- o timeout registra warning no RunContext

Decisões arquiteturais:
    - Callables bloqueantes usam `threading.Event` e são liberadas ao fim
      do teste, evitando threads penduradas

Limites explícitos:
    - Não valida interrupção da callable (não é contratual)
"""

import threading
import time

import pytest

try:
    from atlas_taskflow.core.engine.inputs import StepInput
    from atlas_taskflow.core.engine.policy import PolicyEngine, call_with_timeout
    from atlas_taskflow.core.exceptions import StepTimeoutError
except Exception as e:  # noqa: BLE001
    StepInput = PolicyEngine = call_with_timeout = StepTimeoutError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing timeout support. Implement:\n"
            "- src/atlas_taskflow/core/engine/policy.py (call_with_timeout)\n"
            "- src/atlas_taskflow/core/exceptions.py (StepTimeoutError)\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def release():
    event = threading.Event()
    yield event
    event.set()


def test_slow_attempt_times_out(make_step, dummy_ctx, release):
    """
    Verifica que uma tentativa lenta termina como FAILED por timeout.

    Invariantes:
        - O erro é StepTimeoutError com o nome do Step e o limite
        - `timed_out` é True na StepResult
        - O chamador não espera a callable terminar
    """
    _require_imports()
    step = make_step("slow", fn=lambda: release.wait(5), timeout=0.05)

    started = time.perf_counter()
    result = PolicyEngine(dummy_ctx).execute(step, StepInput.none())
    elapsed = time.perf_counter() - started

    assert result.failed
    assert result.timed_out is True
    assert isinstance(result.error, StepTimeoutError)
    assert result.error.step_name == "slow"
    assert result.error.timeout_seconds == 0.05
    assert "timed out after 0.05 seconds" in str(result.error)
    assert elapsed < 2.0
    assert "slow" in dummy_ctx.warnings


def test_fast_attempt_within_timeout_succeeds(make_step):
    _require_imports()
    result = PolicyEngine().execute(make_step("fast", fn=lambda x: x + 1, timeout=2.0), StepInput.single(1))
    assert result.success
    assert result.output == 2
    assert result.timed_out is False


def test_each_retry_gets_its_own_window(make_step, release):
    """
    Verifica que timeout e retry se compõem: a primeira tentativa estoura
    o timeout e a segunda, rápida, tem sucesso.
    """
    _require_imports()
    calls = []

    def _fn():
        calls.append(1)
        if len(calls) == 1:
            release.wait(5)
        return "second"

    result = PolicyEngine(sleep=lambda _: None).execute(
        make_step("flaky", fn=_fn, timeout=0.05, retries=1),
        StepInput.none(),
    )

    assert result.success
    assert result.output == "second"
    assert result.retries == 1
    assert result.timed_out is False


def test_all_attempts_time_out(make_step, release):
    _require_imports()
    result = PolicyEngine(sleep=lambda _: None).execute(
        make_step("stuck", fn=lambda: release.wait(5), timeout=0.02, retries=2),
        StepInput.none(),
    )
    assert result.failed and result.timed_out and result.retries == 2


def test_timeout_error_raised_by_callable_is_not_engine_timeout(make_step):
    _require_imports()

    def _fn():
        raise TimeoutError("remote side timed out")

    result = PolicyEngine().execute(make_step("remote", fn=_fn, timeout=2.0), StepInput.none())

    assert result.failed
    assert result.timed_out is False
    assert type(result.error) is TimeoutError


def test_call_with_timeout_propagates_callable_errors(make_step):
    _require_imports()

    def _fn(x):
        raise ValueError(f"bad {x}")

    with pytest.raises(ValueError, match="bad 3"):
        call_with_timeout(make_step("a", fn=_fn), StepInput.single(3), 1.0)
