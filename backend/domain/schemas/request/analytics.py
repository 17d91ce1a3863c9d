"""
LEARNING NOTE: Schemas de request da análise inteligente
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict

from backend.domain.models.analytics import CurrentData, HistoricalData

class AnalysisRequest(BaseModel):
    """Análise sobre dados já agregados pelo cliente"""

    historico: HistoricalData
    dados_atual: CurrentData

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "historico": {
                    "semanas": 8,
                    "pedidos": [50, 52, 48, 51, 49, 50, 53, 51],
                    "cancelamentos": [2, 3, 2, 1, 2, 3, 2, 2],
                    "abandonos": [10, 11, 9, 10, 12, 10, 11, 9],
                    "conversao": [4.1, 4.0, 3.8, 4.2, 4.0, 3.9, 4.1, 4.0],
                    "produtos": {
                        "mais_vendidos": [{"produto": "X-Burger", "vendas": [20, 22, 21, 19, 20, 21, 22, 20]}],
                        "menos_vendidos": []
                    }
                },
                "dados_atual": {
                    "pedidos_total": 50,
                    "cancelamentos": 2,
                    "abandonos": 30,
                    "conversao": 4.0,
                    "produtos_mais_vendidos": [{"produto": "X-Burger", "vendas": 21}],
                    "produtos_menos_vendidos": []
                }
            }
        }
    )

class StoreAnalysisRequest(BaseModel):
    """Análise de uma loja a partir dos registros do warehouse"""

    explain: bool = Field(False, description="Gerar resumo executivo com o LLM")
    persist: bool = Field(False, description="Gravar predições e alertas no BigQuery")

class ChatRequest(BaseModel):
    """Pergunta para o assistente de analytics"""

    message: str = Field(..., min_length=1, description="Pergunta do dono do restaurante")
    analytics_data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Métricas exibidas no dashboard, usadas como contexto"
    )
