"""
LEARNING NOTE: Schemas de response da análise inteligente
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from backend.domain.models.analytics import AnalysisOutput, Prediction

class AnalysisResponse(BaseModel):
    """Response da análise"""

    success: bool = Field(..., description="Se a análise foi concluída")
    analysis: AnalysisOutput

    # Metadata
    processing_time: float = Field(..., description="Tempo de processamento em segundos")
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: Dict[str, Any] = Field(default_factory=dict)

class StoreAnalysisResponse(BaseModel):
    success: bool
    store_id: str
    analysis: Optional[AnalysisOutput] = None
    explanation: Optional[str] = None
    persistence_scheduled: bool = Field(False, description="Gravação no BigQuery agendada em background")
    processing_time: float = 0
    errors: List[str] = Field(default_factory=list)

class PredictionsResponse(BaseModel):
    success: bool
    predicoes: List[Prediction]

class ChatResponse(BaseModel):
    reply: str
    timestamp: datetime = Field(default_factory=datetime.now)
