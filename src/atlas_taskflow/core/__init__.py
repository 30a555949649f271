"""
Core do Atlas TaskFlow.

Este pacote contém a implementação canônica do engine de dependências,
independente do builder de pipeline e de qualquer interface externa.

Componentes principais:
    - config   → carregamento, merge, hashing e interpretação de configuração
    - pipeline → Step, StepGraph, RunContext e tipos de resultado
    - engine   → planner (validação/ordem/níveis), resolução de input,
                 policy engine e executores sequencial e paralelo
    - errors / exceptions → catálogo de erros e hierarquia de exceções

Princípios fundamentais:
    - Nenhuma decisão silenciosa: toda falha produz erro tipado ou
      resultado marcado como não bem-sucedido
    - Separação estrita entre estrutura (grafo), política e execução

Limites explícitos:
    - Não persiste estado entre processos
    - Não distribui execução entre máquinas
    - Não isola recursos de Steps
"""
