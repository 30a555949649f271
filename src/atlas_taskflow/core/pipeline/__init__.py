"""
Estruturas fundamentais do pipeline do Atlas TaskFlow.

## Componentes

- **types**
  - `StepStatus`, `Backoff`, `ConditionKind`
  - `StepResult` / `RunResult`: snapshots imutáveis de execução

- **step**
  - `Step`: descritor imutável (nome, dependências, callable, política)
  - `StepPolicy`: retry, backoff, timeout e condição

- **graph**
  - `StepGraph`: registro com unicidade de nomes e consultas topológicas

- **context**
  - `RunContext`: identidade da run e log estruturado de eventos

## Limites Explícitos

- Não executa pipeline (responsabilidade de `core.engine`)
- Não contém lógica de negócio dos Steps
"""
