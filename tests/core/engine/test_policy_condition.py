# tests/core/engine/test_policy_condition.py
"""
Testes de execução condicional (`run_if` / `run_unless`).

Os testes asseguram que:
- a condição recebe o mesmo input resolvido que a callable
- Steps pulados produzem StepResult SKIPPED sem tentativas
- `run_if` prevalece sobre `run_unless`
- exceções levantadas pela condição propagam do policy engine
"""

import pytest

try:
    from atlas_taskflow.core.engine.inputs import StepInput
    from atlas_taskflow.core.engine.policy import PolicyEngine
    from atlas_taskflow.core.pipeline.types import StepStatus
except Exception as e:  # noqa: BLE001
    StepInput = PolicyEngine = StepStatus = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing policy engine. Implement:\n"
            "- src/atlas_taskflow/core/engine/policy.py (PolicyEngine)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_run_if_false_skips_step(make_step, recorder, dummy_ctx):
    """
    Verifica que `run_if` falsy pula o Step sem chamar a callable.

    Invariantes:
        - status SKIPPED, saída None, duração zero
        - nenhuma tentativa, nenhuma retentativa, sem timeout
    """
    _require_imports()
    step = make_step("load", fn=lambda data: recorder.record("load"), run_if=lambda data: len(data) > 5, retries=3)

    result = PolicyEngine(dummy_ctx).execute(step, StepInput.single([1, 2]))

    assert result.status is StepStatus.SKIPPED
    assert result.skipped and not result.failed
    assert result.output is None
    assert result.duration == 0.0
    assert result.retries == 0 and result.timed_out is False
    assert recorder.calls == []
    assert dummy_ctx.events[-1]["message"] == "step skipped by condition"
    assert dummy_ctx.events[-1]["condition"] == "if"


def test_run_if_true_executes(make_step):
    _require_imports()
    step = make_step("load", fn=lambda data: sum(data), run_if=lambda data: bool(data))
    result = PolicyEngine().execute(step, StepInput.single([1, 2]))
    assert result.success and result.output == 3


def test_run_unless_truthy_skips(make_step):
    _require_imports()
    step = make_step("notify", fn=lambda: "sent", run_unless=lambda: True)
    assert PolicyEngine().execute(step, StepInput.none()).skipped


def test_run_unless_falsy_executes(make_step):
    _require_imports()
    step = make_step("notify", fn=lambda: "sent", run_unless=lambda: 0)
    assert PolicyEngine().execute(step, StepInput.none()).output == "sent"


def test_run_if_wins_over_run_unless(make_step):
    _require_imports()
    step = make_step("a", fn=lambda: "ran", run_if=lambda: True, run_unless=lambda: True)
    assert PolicyEngine().execute(step, StepInput.none()).output == "ran"


def test_condition_receives_keyed_input(make_step):
    _require_imports()
    seen = {}

    def _cond(left, right):
        seen.update(left=left, right=right)
        return False

    step = make_step("join", ["left", "right"], fn=lambda left, right: left + right, run_if=_cond)
    result = PolicyEngine().execute(step, StepInput.of_keys({"left": 1, "right": 2}))

    assert result.skipped
    assert seen == {"left": 1, "right": 2}


def test_raising_condition_propagates(make_step):
    _require_imports()

    def _boom(*_):
        raise RuntimeError("condition exploded")

    with pytest.raises(RuntimeError, match="condition exploded"):
        PolicyEngine().execute(make_step("a", fn=lambda: 1, run_if=_boom), StepInput.none())
