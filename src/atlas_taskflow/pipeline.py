"""
Builder de pipeline do Atlas TaskFlow.

Camada fina sobre o core: monta Steps em um `StepGraph` e expõe `run`.
Toda a semântica (validação, ordem, políticas, resultados) vive em
`atlas_taskflow.core`.

Exemplo:

    pipeline = Pipeline()
    pipeline.step("fetch", lambda: [1, 2, 3])
    pipeline.step("transform", lambda data: [n * 2 for n in data], depends_on="fetch")

    @pipeline.step("load", depends_on="transform", retries=2, retry_delay=0.1)
    def load(data):
        return sum(data)

    result = pipeline.run()
    result.outputs  # {"fetch": [1, 2, 3], "transform": [2, 4, 6], "load": 12}
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Type, Union

from atlas_taskflow.core.config.hashing import compute_config_hash
from atlas_taskflow.core.config.loader import PathLike, load_config
from atlas_taskflow.core.config.settings import apply_step_overrides, engine_settings
from atlas_taskflow.core.engine.base import BaseExecutor
from atlas_taskflow.core.engine.parallel import ParallelExecutor
from atlas_taskflow.core.engine.sequential import SequentialExecutor
from atlas_taskflow.core.pipeline.context import RunContext
from atlas_taskflow.core.pipeline.graph import StepGraph
from atlas_taskflow.core.pipeline.step import Predicate, RetryPredicate, Step, StepPolicy
from atlas_taskflow.core.pipeline.types import Backoff, RunResult

ExecutorChoice = Union[str, Type[BaseExecutor], None]


class Pipeline:
    """
    Builder encadeável de pipelines.

    Args:
        config: configuração resolvida (ver `core.config.settings`); opcional.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.graph = StepGraph()
        self.config: Dict[str, Any] = dict(config or {})

    @classmethod
    def from_config_files(cls, defaults_path: PathLike, local_path: Optional[PathLike] = None) -> "Pipeline":
        return cls(config=load_config(defaults_path=defaults_path, local_path=local_path))

    # -----------------------------
    # Definição
    # -----------------------------
    def step(
        self,
        name: str,
        fn: Optional[Callable[..., Any]] = None,
        *,
        depends_on: Union[str, Iterable[str], None] = (),
        retries: int = 0,
        retry_delay: float = 0.0,
        backoff: Union[Backoff, str, None] = Backoff.NONE,
        retry_if: Optional[RetryPredicate] = None,
        timeout: Optional[float] = None,
        run_if: Optional[Predicate] = None,
        run_unless: Optional[Predicate] = None,
    ):
        """
        Declara um Step.

        Com `fn`, adiciona o Step e retorna o pipeline (encadeável). Sem
        `fn`, retorna um decorator que registra a função decorada.
        """
        policy = StepPolicy(
            retries=retries,
            retry_delay=retry_delay,
            backoff=backoff,
            retry_if=retry_if,
            timeout=timeout,
            run_if=run_if,
            run_unless=run_unless,
        )

        if fn is None:
            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                self.graph.add(Step(name, func, depends_on, policy))
                return func

            return decorator

        self.graph.add(Step(name, fn, depends_on, policy))
        return self

    def add(self, step: Step) -> "Pipeline":
        self.graph.add(step)
        return self

    # -----------------------------
    # Execução
    # -----------------------------
    def _configured_graph(self) -> StepGraph:
        if not self.config.get("steps"):
            return self.graph

        graph = StepGraph()
        for step in apply_step_overrides(self.graph.steps, self.config):
            graph.add(step)
        return graph

    def _build_executor(
        self,
        executor: ExecutorChoice,
        max_concurrency: Optional[int],
        graph: StepGraph,
        ctx: RunContext,
    ) -> BaseExecutor:
        if executor == "sequential":
            return SequentialExecutor(graph, ctx=ctx)
        if executor == "parallel":
            return ParallelExecutor(graph, max_concurrency, ctx=ctx)
        if isinstance(executor, type) and issubclass(executor, BaseExecutor):
            if issubclass(executor, ParallelExecutor):
                return executor(graph, max_concurrency, ctx=ctx)
            return executor(graph, ctx=ctx)
        raise ValueError(f"Unknown executor: {executor!r}. Use 'sequential', 'parallel' or a BaseExecutor subclass.")

    def run(
        self,
        initial_input: Any = None,
        *,
        executor: ExecutorChoice = None,
        max_concurrency: Optional[int] = None,
        ctx: Optional[RunContext] = None,
    ) -> RunResult:
        """
        Executa o pipeline.

        `executor` e `max_concurrency` explícitos prevalecem sobre a seção
        `engine` da configuração.

        Raises:
            StepError: na primeira falha de Step (com resultados parciais).
            MissingDependencyError, CycleError: grafo inválido.
            EngineConfigurationError: configuração inválida.
        """
        settings = engine_settings(self.config)
        executor = executor or settings.executor
        if max_concurrency is None:
            max_concurrency = settings.max_concurrency

        graph = self._configured_graph()
        if ctx is None:
            ctx = RunContext(
                config=self.config,
                meta={"config_hash": compute_config_hash(self.config)},
                log_level=settings.log_level,
            )

        return self._build_executor(executor, max_concurrency, graph, ctx).execute(initial_input)

    # -----------------------------
    # Inspeção
    # -----------------------------
    def validate(self) -> bool:
        return self.graph.validate()

    def to_mermaid(self) -> str:
        return self.graph.to_mermaid()

    @property
    def steps(self) -> List[Step]:
        return self.graph.steps

    def __getitem__(self, name: str) -> Optional[Step]:
        return self.graph.get(name)

    def __len__(self) -> int:
        return len(self.graph)

    @property
    def is_empty(self) -> bool:
        return self.graph.is_empty
