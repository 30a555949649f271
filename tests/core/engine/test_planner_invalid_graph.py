# tests/core/engine/test_planner_invalid_graph.py
"""
Testes de detecção de grafos inválidos no planner.

Os testes asseguram que:
- dependências inexistentes são reportadas pelo primeiro par (step, dep)
- ciclos (inclusive auto-dependência) levantam CycleError
- o caminho do ciclo é um caminho real do grafo, fechado no primeiro nó
- dependências ausentes têm prioridade sobre ciclos
- a execução nunca começa com grafo inválido

Limites explícitos:
    - Não valida ordenação de grafos válidos (test_planner_toposort.py)
"""

import pytest

try:
    from atlas_taskflow.core.engine.planner import find_cycle
    from atlas_taskflow.core.engine.sequential import SequentialExecutor
    from atlas_taskflow.core.exceptions import CycleError, MissingDependencyError
except Exception as e:  # noqa: BLE001
    find_cycle = SequentialExecutor = CycleError = MissingDependencyError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing planner validation. Implement:\n"
            "- src/atlas_taskflow/core/engine/planner.py (validate_graph, find_cycle)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _assert_valid_cycle(graph, cycle):
    assert len(cycle) >= 2
    assert cycle[0] == cycle[-1]
    for node, nxt in zip(cycle, cycle[1:]):
        assert nxt in graph[node].depends_on


def test_missing_dependency_reports_first_pair(make_graph):
    """
    Verifica que a dependência ausente reportada é a primeira encontrada.

    A varredura segue a ordem de inserção dos Steps e, dentro de cada
    Step, a ordem declarada de `depends_on`.
    """
    _require_imports()
    graph = make_graph(("a", []), ("b", ["a", "ghost"]), ("c", ["phantom"]))

    with pytest.raises(MissingDependencyError) as exc_info:
        graph.validate()

    err = exc_info.value
    assert err.step_name == "b"
    assert err.missing_dependency == "ghost"
    assert "'b'" in str(err) and "'ghost'" in str(err)
    assert err.to_payload().details == {"step_name": "b", "missing_dependency": "ghost"}


def test_self_dependency_is_a_cycle(make_graph):
    _require_imports()
    graph = make_graph(("a", ["a"]))

    with pytest.raises(CycleError) as exc_info:
        graph.validate()

    assert exc_info.value.cycle == ["a", "a"]


def test_two_node_cycle(make_graph):
    _require_imports()
    graph = make_graph(("a", ["b"]), ("b", ["a"]))

    with pytest.raises(CycleError) as exc_info:
        graph.sorted_steps()

    cycle = exc_info.value.cycle
    _assert_valid_cycle(graph, cycle)
    assert set(cycle) == {"a", "b"}
    assert "Circular dependency detected" in str(exc_info.value)


def test_cycle_behind_valid_prefix(make_graph):
    """
    Verifica a extração do ciclo quando ele não contém as raízes do grafo.

    `root` é válido; o ciclo é c → d → e → c.
    """
    _require_imports()
    graph = make_graph(
        ("root", []),
        ("c", ["root", "e"]),
        ("d", ["c"]),
        ("e", ["d"]),
    )

    with pytest.raises(CycleError) as exc_info:
        graph.validate()

    cycle = exc_info.value.cycle
    _assert_valid_cycle(graph, cycle)
    assert "root" not in cycle
    assert set(cycle) == {"c", "d", "e"}


def test_missing_dependency_checked_before_cycles(make_graph):
    _require_imports()
    graph = make_graph(("a", ["b"]), ("b", ["a"]), ("c", ["ghost"]))

    with pytest.raises(MissingDependencyError):
        graph.validate()


def test_find_cycle_returns_empty_for_dag(make_step):
    _require_imports()
    steps = {"a": make_step("a"), "b": make_step("b", ["a"])}
    assert find_cycle(steps) == []


def test_invalid_graph_executes_nothing(make_step, recorder):
    _require_imports()
    from atlas_taskflow.core.pipeline.graph import StepGraph

    graph = StepGraph()
    graph.add(make_step("a", fn=lambda: recorder.record("a")))
    graph.add(make_step("b", ["a", "c"], fn=lambda **kw: recorder.record("b")))
    graph.add(make_step("c", ["b"], fn=lambda x: recorder.record("c")))

    with pytest.raises(CycleError):
        SequentialExecutor(graph).execute()

    assert recorder.calls == []
