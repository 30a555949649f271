"""
Hash canônico da configuração efetiva.

O hash identifica estruturalmente a configuração usada por uma run e é
registrado em `RunContext.meta["config_hash"]` para rastreabilidade.

Política (v1): JSON com chaves ordenadas, separadores compactos, UTF-8,
SHA-256. Configurações equivalentes produzem o mesmo hash,
independentemente da ordem original das chaves.
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash SHA-256 (64 caracteres hex) da configuração.

    Raises:
        TypeError: se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(f"config to hash must be a dict, got: {type(config).__name__}")

    canonical = json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
