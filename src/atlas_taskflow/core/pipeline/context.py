"""
Contexto de execução de uma run do pipeline.

Este módulo define o `RunContext`, a estrutura canônica que identifica
uma run e concentra o log estruturado de execução produzido pelos
executores.

O RunContext atua como:
    - identidade da execução (run_id, created_at)
    - portador da configuração resolvida e de metadados
    - log estruturado de eventos (start/skip/retry/timeout/fail/finish)
    - coletor de warnings não fatais associados a Steps

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Comunicação explícita e rastreável
    - Ausência de estado global compartilhado

Invariantes:
    - Logs sempre incluem `run_id` e `step_id`
    - Warnings são agrupados por `step_id`
    - Registro de eventos é seguro entre threads (executor paralelo)

Limites explícitos:
    - Não executa Steps
    - Não planeja nem coordena execução
    - Não persiste dados

Cada evento também é encaminhado ao logger `atlas_taskflow`, de modo que
aplicações podem configurar handlers com o módulo `logging` padrão.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger("atlas_taskflow")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


@dataclass
class RunContext:
    """
    Contexto de execução de uma run do pipeline.

    Decisões arquiteturais:
        - Um contexto novo é criado por `execute` quando o chamador não
          fornece um
        - Eventos são dicionários simples, adequados para inspeção e testes
        - `log_level` filtra apenas o registro em `events`; o logger padrão
          aplica seus próprios níveis

    Invariantes:
        - Cada evento contém run_id, step_id, level, message e timestamp UTC
    """
    run_id: str = field(default_factory=new_run_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    config: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    log_level: str = "DEBUG"

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: Optional[str], level: str, message: str, **extra: Any) -> None:
        levelno = _LEVELS.get(level.upper(), logging.INFO)
        logger.log(levelno, "[%s] %s: %s", self.run_id, step_id or "-", message)

        if levelno < _LEVELS.get(self.log_level.upper(), logging.DEBUG):
            return

        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level.upper(),
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(step_id, []).append(message)

    def snapshot_events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(e) for e in self.events]
