"""
Planejador de execução do pipeline (DAG).

Este módulo é responsável por validar a estrutura do grafo de Steps e
produzir as duas formas de plano consumidas pelos executores:

    - ordem topológica linear (executor sequencial)
    - níveis topológicos, lotes de Steps mutuamente independentes
      (executor paralelo)

O planner opera exclusivamente em nível estrutural, analisando:
    - nomes de Steps
    - dependências declaradas
    - formação de ciclos

Decisões arquiteturais:
    - Validação em duas fases, nesta ordem: dependências existentes, ciclos
    - Dependências ausentes são reportadas pelo primeiro par (step, dep)
      na ordem de inserção dos Steps e, em seguida, de `depends_on`
    - Ciclos são detectados por ordenação topológica (Kahn); o caminho do
      ciclo é extraído por uma DFS secundária com pilha de recursão
      (branco/cinza/preto)
    - Auto-dependência é verificada antes da varredura genérica
    - Empates são resolvidos pela ordem de inserção, nunca por ordem lexicográfica

Invariantes:
    - Nenhum Step aparece antes de suas dependências
    - Todos os Steps aparecem exatamente uma vez na ordem final
    - Nível de um Step = 1 + max(nível das dependências); raízes no nível 0

Limites explícitos:
    - Não executa Steps
    - Não interage com RunContext
    - Não decide políticas de execução
"""

from __future__ import annotations

from collections import deque
from typing import Dict, List, Mapping, Optional, Set

from atlas_taskflow.core.exceptions import CycleError, MissingDependencyError
from atlas_taskflow.core.pipeline.step import Step

_WHITE, _GRAY, _BLACK = 0, 1, 2


def validate_dependencies(steps: Mapping[str, Step]) -> None:
    """Levanta `MissingDependencyError` para o primeiro par (step, dep) inexistente."""
    for name, step in steps.items():
        for dep in step.depends_on:
            if dep not in steps:
                raise MissingDependencyError(name, dep)


def _self_dependency(steps: Mapping[str, Step]) -> Optional[str]:
    for name, step in steps.items():
        if name in step.dependency_set:
            return name
    return None


def find_cycle(steps: Mapping[str, Step]) -> List[str]:
    """
    Encontra um ciclo concreto no grafo via DFS com pilha de recursão.

    Quando um nó cinza (na pilha) é revisitado, o ciclo é o trecho da pilha
    entre esse nó e o nó corrente, fechado com a repetição do primeiro nó.
    Cada elemento do caminho depende do elemento seguinte.

    Returns:
        List[str]: caminho do ciclo (vazio se o grafo for acíclico).
    """
    color: Dict[str, int] = {name: _WHITE for name in steps}

    for root in steps:
        if color[root] != _WHITE:
            continue

        # DFS iterativa: pilha de (nó, iterador de dependências)
        path: List[str] = [root]
        stack = [(root, iter(steps[root].depends_on))]
        color[root] = _GRAY

        while stack:
            node, deps = stack[-1]
            advanced = False
            for dep in deps:
                if dep not in steps:
                    continue
                if color[dep] == _GRAY:
                    start = path.index(dep)
                    return path[start:] + [dep]
                if color[dep] == _WHITE:
                    color[dep] = _GRAY
                    path.append(dep)
                    stack.append((dep, iter(steps[dep].depends_on)))
                    advanced = True
                    break
            if not advanced:
                color[node] = _BLACK
                path.pop()
                stack.pop()

    return []


def topological_order(steps: Mapping[str, Step]) -> List[str]:
    """
    Ordenação topológica (Kahn) com desempate pela ordem de inserção.

    Raises:
        CycleError: se nem todos os Steps puderem ser ordenados.
    """
    incoming: Dict[str, int] = {}
    outgoing: Dict[str, List[str]] = {name: [] for name in steps}

    for name, step in steps.items():
        deps = [d for d in dict.fromkeys(step.depends_on) if d in steps]
        incoming[name] = len(deps)
        for dep in deps:
            outgoing[dep].append(name)

    ready = deque(name for name, count in incoming.items() if count == 0)
    order: List[str] = []

    while ready:
        name = ready.popleft()
        order.append(name)
        for child in outgoing[name]:
            incoming[child] -= 1
            if incoming[child] == 0:
                ready.append(child)

    if len(order) != len(steps):
        raise CycleError(find_cycle(steps))

    return order


def validate_graph(steps: Mapping[str, Step]) -> None:
    """
    Valida a estrutura do grafo: dependências existentes e ausência de ciclos.

    Raises:
        MissingDependencyError: primeira dependência inexistente encontrada.
        CycleError: se houver ciclo (incluindo auto-dependência).
    """
    validate_dependencies(steps)

    looped = _self_dependency(steps)
    if looped is not None:
        raise CycleError([looped, looped])

    topological_order(steps)


def compute_levels(steps: Mapping[str, Step]) -> List[List[str]]:
    """
    Agrupa Steps em níveis topológicos.

    O nível 0 contém exatamente os Steps sem dependências; o nível k contém
    os Steps cujas dependências estão todas em níveis < k e cujo nível
    máximo de dependência é k-1. Steps de um mesmo nível são independentes
    entre si e podem executar concorrentemente.

    Pressupõe grafo já validado.
    """
    level_of: Dict[str, int] = {}

    for name in topological_order(steps):
        deps: Set[str] = steps[name].dependency_set
        level_of[name] = 1 + max((level_of[d] for d in deps), default=-1)

    levels: List[List[str]] = [[] for _ in range(max(level_of.values(), default=-1) + 1)]
    # ordem de inserção preservada dentro de cada nível
    for name in steps:
        levels[level_of[name]].append(name)

    return levels
