"""
Fixtures compartilhados para testes do Atlas TaskFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações YAML mínimas e determinísticas
- contexto de execução controlado (RunContext)
- fábrica de Steps e de grafos para testes estruturais
- um registrador de chamadas seguro entre threads

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas
    - Steps de teste usam callables triviais e determinísticas

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica condicional complexa
"""

import threading
from datetime import datetime, timezone

import pytest


# =====================================================
# Config Loader fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de configuração padrão (defaults) semelhante ao uso real.

    Representa a base canônica sobre a qual configurações locais são
    aplicadas via deep-merge.
    """
    return """\
engine:
  executor: sequential
  log_level: INFO
steps:
  fetch:
    retries: 0
  load:
    retries: 1
    retry_delay: 0.0
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de overrides locais (apenas o que muda em relação aos defaults)."""
    return """\
engine:
  executor: parallel
  max_concurrency: 2
steps:
  load:
    retries: 3
"""


# =====================================================
# Pipeline fixtures (Step + RunContext)
# =====================================================

@pytest.fixture
def dummy_ctx():
    """
    RunContext determinístico para testes.

    `run_id` e `created_at` são fixos; o contexto inicia sem eventos.
    """
    from atlas_taskflow.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config={},
        meta={"source": "pytest"},
    )


@pytest.fixture
def make_step():
    """
    Fábrica de Steps para testes estruturais.

    `make_step("b", ["a"])` cria um Step cuja callable retorna o próprio
    nome; opções de política (`retries`, `timeout`, `run_if`...) são
    repassadas para `StepPolicy`.
    """
    from atlas_taskflow.core.pipeline.step import Step, StepPolicy

    def _make(name, depends_on=(), fn=None, **policy):
        return Step(name, fn or (lambda *a, **k: name), depends_on, StepPolicy(**policy))

    return _make


@pytest.fixture
def make_graph(make_step):
    """Fábrica de StepGraph a partir de pares (nome, dependências)."""
    from atlas_taskflow.core.pipeline.graph import StepGraph

    def _make(*pairs):
        graph = StepGraph()
        for name, deps in pairs:
            graph.add(make_step(name, deps))
        return graph

    return _make


class CallRecorder:
    """Registra chamadas de forma segura entre threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self.calls = []

    def record(self, item):
        with self._lock:
            self.calls.append(item)

    def count(self, item):
        with self._lock:
            return self.calls.count(item)


@pytest.fixture
def recorder():
    return CallRecorder()
