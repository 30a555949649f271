"""
Engine do Atlas TaskFlow.

Este pacote contém a implementação responsável por **planejar** e
**executar** o grafo de Steps.

Componentes principais:
    - planner    → validação estrutural, ordem topológica e níveis
    - inputs     → resolução do input de cada Step
    - policy     → condição, retry/backoff e timeout por Step
    - base       → contrato comum de `execute`
    - sequential → um Step por vez, em ordem topológica
    - parallel   → níveis em ordem, Steps de um nível em paralelo

Invariantes:
    - Steps só são executados após suas dependências
    - Cada Step é executado (ou pulado) no máximo uma vez por run
    - A primeira falha de Step encerra a run com StepError
"""
