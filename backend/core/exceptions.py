"""
LEARNING NOTE: Exceções custom para erros específicos do negócio.
Melhor que usar Exception genérica porque são mais descritivas.
"""

from fastapi import HTTPException
from typing import Any, Dict, Optional

class BusinessException(HTTPException):
    """Base para todas as exceções de negócio"""
    def __init__(
        self,
        status_code: int = 400,
        detail: str = "Business logic error",
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

class DataNotFoundException(BusinessException):
    """Quando a loja não tem pedidos nem carrinhos no período"""
    def __init__(self, store_id: str):
        super().__init__(
            status_code=404,
            detail=f"Nenhum dado encontrado para a loja {store_id}"
        )

class AnalysisException(BusinessException):
    """Quando a análise inteligente falha"""
    def __init__(self, detail: str):
        super().__init__(
            status_code=500,
            detail=f"Erro na análise: {detail}"
        )

class PersistenceException(BusinessException):
    """Quando falha a gravação no BigQuery"""
    def __init__(self, detail: str):
        super().__init__(
            status_code=500,
            detail=f"Erro ao salvar resultados: {detail}"
        )

class VertexAIException(BusinessException):
    """Quando falha o Vertex AI"""
    def __init__(self, detail: str):
        super().__init__(
            status_code=503,
            detail=f"Erro com Vertex AI: {detail}"
        )
