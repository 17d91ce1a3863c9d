"""
LEARNING NOTE: Estado do workflow de análise por loja
TypedDict define a estrutura do estado que passa entre os nós
"""

from typing import TypedDict, List, Dict, Any, Optional
from datetime import datetime

from backend.domain.models.analytics import AnalysisInput, AnalysisOutput

class AnalysisState(TypedDict):
    """
    Estado do workflow de análise inteligente

    LEARNING NOTE: Cada nó devolve só as chaves que mudou
    """

    # Inputs iniciais
    store_id: str
    reference_date: datetime
    explain: bool

    # Dados carregados
    data_fetched: bool
    not_found: bool
    analysis_input: Optional[AnalysisInput]

    # Análise
    analysis: Optional[AnalysisOutput]

    # Explicação LLM
    explanation: Optional[str]

    # Resultado final
    result: Dict[str, Any]

    # Controle
    processing_stage: str
    start_time: datetime
    end_time: Optional[datetime]
    processing_time: Optional[float]

    # Erros
    errors: List[str]
