# tests/core/engine/test_inputs.py
"""
Testes de resolução de input de Steps.

Regras validadas:
    - zero dependências → input inicial (posicional) ou nenhum argumento
    - uma dependência → saída da dependência (posicional)
    - duas ou mais → argumentos nomeados (nome → saída)
    - saídas ausentes resolvem para None
    - dependências duplicadas contam uma única vez
"""

import pytest

try:
    from atlas_taskflow.core.engine.inputs import InputKind, StepInput, resolve_input
except Exception as e:  # noqa: BLE001
    InputKind = StepInput = resolve_input = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing input resolution. Implement:\n"
            "- src/atlas_taskflow/core/engine/inputs.py (StepInput, resolve_input)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_root_without_initial_input_gets_no_argument(make_step):
    _require_imports()
    step_input = resolve_input(make_step("a"), {}, None)
    assert step_input.kind is InputKind.NONE
    assert step_input.apply(lambda: "called") == "called"


def test_root_with_initial_input_gets_it_positionally(make_step):
    _require_imports()
    step_input = resolve_input(make_step("a"), {}, [1, 2])
    assert step_input.kind is InputKind.SINGLE
    assert step_input.apply(lambda data: sum(data)) == 3


def test_initial_input_is_not_given_to_dependent_steps(make_step):
    _require_imports()
    step_input = resolve_input(make_step("b", ["a"]), {"a": "out-a"}, "initial")
    assert step_input.apply(lambda x: x) == "out-a"


def test_single_dependency_is_positional(make_step):
    _require_imports()
    step_input = resolve_input(make_step("b", "a"), {"a": [2, 4]}, None)
    assert step_input == StepInput.single([2, 4])


def test_multiple_dependencies_are_keyword_arguments(make_step):
    """
    Verifica que Steps com várias dependências recebem argumentos nomeados.

    A callable do usuário declara os nomes das dependências como
    parâmetros; a ordem de `depends_on` não importa.
    """
    _require_imports()
    step_input = resolve_input(make_step("join", ["left", "right"]), {"left": 1, "right": 10}, None)

    assert step_input.kind is InputKind.KEYED
    assert step_input.apply(lambda right, left: right - left) == 9


def test_missing_output_resolves_to_none(make_step):
    _require_imports()
    assert resolve_input(make_step("b", ["a"]), {}, None).apply(lambda x: x) is None
    keyed = resolve_input(make_step("c", ["a", "b"]), {"b": 2}, None)
    assert keyed.keyed == {"a": None, "b": 2}


def test_duplicate_dependency_counts_once(make_step):
    _require_imports()
    step_input = resolve_input(make_step("b", ["a", "a"]), {"a": 7}, None)
    assert step_input.kind is InputKind.SINGLE
    assert step_input.apply(lambda x: x * 2) == 14
