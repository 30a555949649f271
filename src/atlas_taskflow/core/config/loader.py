"""
Loader canônico de configuração do Atlas TaskFlow.

A configuração efetiva é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional; ignorado se não existir)

Formatos suportados: YAML (.yaml, .yml) e JSON (.json). Arquivos vazios
são tratados como `{}`; qualquer raiz que não seja um mapa é rejeitada.

Invariantes:
    - O resultado é sempre um `dict` puro
    - Overrides locais nunca mutam os defaults
    - A mesma entrada sempre produz a mesma configuração final
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge

PathLike = Union[str, Path]


def _load_file(path: Path) -> Dict[str, Any]:
    """Lê um arquivo YAML/JSON e garante que a raiz seja um dicionário."""
    if not path.exists():
        raise DefaultsNotFoundError(f"Config file not found: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        raise UnsupportedConfigFormatError(f"Unsupported config format: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(f"Config root must be a dict, got: {type(data).__name__}")

    return data


def load_config(*, defaults_path: PathLike, local_path: Optional[PathLike] = None) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva.

    Args:
        defaults_path: arquivo base obrigatório.
        local_path: overrides opcionais; têm prioridade sobre os defaults.

    Returns:
        Dict[str, Any]: configuração resolvida.

    Raises:
        DefaultsNotFoundError: se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: se a extensão não for suportada.
        InvalidConfigRootTypeError: se a raiz não for um dicionário.
        ConfigTypeConflictError: se houver conflito de tipos no merge.
    """
    effective = _load_file(Path(defaults_path))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return effective
