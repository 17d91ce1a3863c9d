"""
LEARNING NOTE: Endpoints da análise inteligente
"""

from fastapi import APIRouter, BackgroundTasks, HTTPException
import logging
import time

from backend.application.services.intelligent_analysis_service import (
    IntelligentAnalysisService,
    analisar_dados_inteligente,
)
from backend.application.workflows.graphs import run_analysis_workflow
from backend.core.config import settings
from backend.core.exceptions import AnalysisException
from backend.domain.models.analytics import HistoricalData
from backend.domain.schemas.request.analytics import (
    AnalysisRequest,
    ChatRequest,
    StoreAnalysisRequest,
)
from backend.domain.schemas.response.analytics import (
    AnalysisResponse,
    ChatResponse,
    PredictionsResponse,
    StoreAnalysisResponse,
)
from backend.infrastructure.external.vertex_ai import VertexAIClient
from backend.infrastructure.ml.models.prediction_engine import gerar_predicoes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    responses={404: {"description": "Not found"}}
)

# Instâncias dos serviços
analysis_service = IntelligentAnalysisService()
vertex_client = VertexAIClient()

@router.post("/analyze", response_model=AnalysisResponse)
async def analyze(request: AnalysisRequest) -> AnalysisResponse:
    """
    Análise inteligente sobre dados já agregados

    LEARNING NOTE: Não toca no warehouse - útil para o dashboard que já
    tem as séries em memória
    """
    start_time = time.time()

    try:
        analysis = analisar_dados_inteligente(request.historico, request.dados_atual)
    except Exception as e:
        logger.error(f"Erro na análise: {str(e)}", exc_info=True)
        raise AnalysisException(str(e))

    return AnalysisResponse(
        success=True,
        analysis=analysis,
        processing_time=time.time() - start_time,
        metadata={
            "semanas": request.historico.semanas,
            "problemas": len(analysis.problemas_detectados),
            "sugestoes": len(analysis.sugestoes_personalizadas)
        }
    )

@router.post("/predictions", response_model=PredictionsResponse)
async def predictions(historico: HistoricalData) -> PredictionsResponse:
    """
    Predições 7 períodos à frente, só com o histórico
    """
    try:
        return PredictionsResponse(success=True, predicoes=gerar_predicoes(historico))
    except Exception as e:
        logger.error(f"Erro gerando predições: {str(e)}")
        raise AnalysisException(str(e))

@router.post("/stores/{store_id}/analysis", response_model=StoreAnalysisResponse)
async def analyze_store(
    store_id: str,
    request: StoreAnalysisRequest,
    background_tasks: BackgroundTasks
) -> StoreAnalysisResponse:
    """
    Busca os últimos pedidos/carrinhos da loja no BigQuery e roda o workflow
    (análise e explicação opcional)

    LEARNING NOTE: A gravação no BigQuery roda em background depois da
    resposta, só se a request pedir e a configuração permitir
    """
    result = await run_analysis_workflow(store_id=store_id, explain=request.explain)

    if result.get("not_found"):
        raise HTTPException(status_code=404, detail="; ".join(result.get("errors", [])))

    if result.get("processing_stage") == "failed":
        raise HTTPException(
            status_code=500,
            detail=result.get("error") or "; ".join(result.get("errors", []))
        )

    persistence_scheduled = False
    if request.persist and settings.save_predictions_to_bq and result.get("analysis") is not None:
        background_tasks.add_task(
            analysis_service.persist_in_background,
            store_id,
            result["analysis"],
            result.get("reference_date")
        )
        persistence_scheduled = True

    compiled = result.get("result", {})
    return StoreAnalysisResponse(
        success=True,
        store_id=store_id,
        analysis=compiled.get("analysis"),
        explanation=compiled.get("explanation"),
        persistence_scheduled=persistence_scheduled,
        processing_time=result.get("processing_time", 0),
        errors=result.get("errors", [])
    )

@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest) -> ChatResponse:
    """
    Assistente de analytics (Gemini)
    """
    try:
        reply = await vertex_client.chat(request.message, request.analytics_data)
        return ChatResponse(reply=reply)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro no chat: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
