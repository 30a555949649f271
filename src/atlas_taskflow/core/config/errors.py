"""
Exceções da camada de configuração do Atlas TaskFlow.

Todas herdam de `ConfigError`, permitindo captura genérica de falhas de
carregamento e merge, distintas de falhas de grafo ou de execução.

Limites explícitos:
    - Não representam erro de Step
    - Não realizam fallback ou recovery
"""


class ConfigError(Exception):
    """Exceção base para erros de configuração."""


class DefaultsNotFoundError(ConfigError):
    """
    O arquivo de configuração base (defaults) não existe.

    O arquivo de defaults é obrigatório; o arquivo local é opcional e
    simplesmente ignorado quando ausente.
    """


class UnsupportedConfigFormatError(ConfigError):
    """Extensão de arquivo não suportada (aceitos: .yaml, .yml, .json)."""


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo não é um mapa chave-valor."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo:
        - base:     {"engine": {"max_concurrency": 4}}
        - override: {"engine": "parallel"}
    """
