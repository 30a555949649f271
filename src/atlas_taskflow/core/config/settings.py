"""
Interpretação da configuração resolvida pelo engine.

Esquema consumido:

    engine:
      executor: sequential | parallel
      max_concurrency: 4
      log_level: INFO
    steps:
      <nome do step>:
        enabled: true
        retries: 2
        retry_delay: 0.1
        backoff: exponential
        timeout: 5

Decisões arquiteturais:
    - Overrides de Step produzem novos Steps (`dataclasses.replace`);
      os Steps declarados nunca são mutados
    - `enabled: false` instala um `run_if` que sempre retorna False: o Step
      é pulado como qualquer Step condicional (dependentes leem None)
    - Nomes de Step ou chaves desconhecidas são erro explícito, nunca
      ignorados silenciosamente
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from atlas_taskflow.core.exceptions import EngineConfigurationError
from atlas_taskflow.core.pipeline.step import Step
from atlas_taskflow.core.pipeline.types import Backoff

STEP_KEYS = frozenset({"enabled", "retries", "retry_delay", "backoff", "timeout"})
EXECUTORS = frozenset({"sequential", "parallel"})


@dataclass(frozen=True)
class EngineSettings:
    executor: str = "sequential"
    max_concurrency: Optional[int] = None
    log_level: str = "INFO"


def _section(config: Mapping[str, Any], key: str) -> Dict[str, Any]:
    section = (config or {}).get(key) or {}
    if not isinstance(section, dict):
        raise EngineConfigurationError(
            f"config section '{key}' must be a mapping",
            details={"section": key, "received": type(section).__name__},
        )
    return section


def engine_settings(config: Mapping[str, Any]) -> EngineSettings:
    engine_cfg = _section(config, "engine")
    executor = engine_cfg.get("executor", "sequential")
    if executor not in EXECUTORS:
        raise EngineConfigurationError(
            f"Unknown executor in config: {executor!r}",
            details={"executor": executor, "allowed": sorted(EXECUTORS)},
        )
    max_concurrency = engine_cfg.get("max_concurrency")
    if max_concurrency is not None and (
        isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1
    ):
        raise EngineConfigurationError(
            f"Invalid max_concurrency in config: {max_concurrency!r}",
            details={"max_concurrency": max_concurrency, "expected": "positive integer or null"},
        )
    return EngineSettings(
        executor=executor,
        max_concurrency=max_concurrency,
        log_level=str(engine_cfg.get("log_level", "INFO")).upper(),
    )


def _never(*args: Any, **kwargs: Any) -> bool:
    return False


def _override_step(step: Step, overrides: Mapping[str, Any]) -> Step:
    unknown = set(overrides) - STEP_KEYS
    if unknown:
        raise EngineConfigurationError(
            f"Unknown keys for step '{step.name}': {sorted(unknown)}",
            details={"step": step.name, "unknown_keys": sorted(unknown), "allowed": sorted(STEP_KEYS)},
        )

    changes: Dict[str, Any] = {k: overrides[k] for k in ("retries", "retry_delay", "timeout") if k in overrides}
    if "backoff" in overrides:
        try:
            changes["backoff"] = Backoff(overrides["backoff"] or Backoff.NONE)
        except ValueError as exc:
            raise EngineConfigurationError(
                f"Invalid backoff for step '{step.name}': {overrides['backoff']!r}",
                details={"step": step.name, "backoff": overrides["backoff"]},
            ) from exc
    if overrides.get("enabled", True) is False:
        changes["run_if"] = _never
        changes["run_unless"] = None

    if not changes:
        return step
    return replace(step, policy=replace(step.policy, **changes))


def apply_step_overrides(steps: Iterable[Step], config: Mapping[str, Any]) -> List[Step]:
    """
    Aplica a seção `steps` da configuração, preservando a ordem de entrada.

    Raises:
        EngineConfigurationError: nome de Step desconhecido, chave
            desconhecida ou valor inválido.
    """
    steps = list(steps)
    steps_cfg = _section(config, "steps")

    known = {s.name for s in steps}
    unknown = [name for name in steps_cfg if name not in known]
    if unknown:
        raise EngineConfigurationError(
            f"Config references unknown steps: {unknown}",
            details={"unknown_steps": unknown},
        )

    result: List[Step] = []
    for step in steps:
        overrides = steps_cfg.get(step.name) or {}
        if not isinstance(overrides, dict):
            raise EngineConfigurationError(
                f"Config for step '{step.name}' must be a mapping",
                details={"step": step.name, "received": type(overrides).__name__},
            )
        try:
            result.append(_override_step(step, overrides))
        except ValueError as exc:
            raise EngineConfigurationError(
                f"Invalid config for step '{step.name}': {exc}",
                details={"step": step.name},
            ) from exc
    return result
