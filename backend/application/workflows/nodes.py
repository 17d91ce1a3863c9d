"""
LEARNING NOTE: Nós do workflow de análise
Cada nó é uma função que processa o estado. Nenhum nó lança exceção:
erros vão para state["errors"] e o estágio vira "failed".
"""

import logging
from typing import Dict, Any
from datetime import datetime, timezone

from backend.application.services.intelligent_analysis_service import (
    IntelligentAnalysisService,
    analisar_dados_inteligente,
)
from backend.core.constants import MESSAGES
from backend.core.exceptions import DataNotFoundException
from backend.infrastructure.external.vertex_ai import VertexAIClient

logger = logging.getLogger(__name__)

# Instâncias dos serviços
analysis_service = IntelligentAnalysisService()
vertex_client = VertexAIClient()

async def fetch_data_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Nó 1: Busca pedidos e carrinhos e agrega em semanas
    """
    store_id = state["store_id"]
    logger.info(MESSAGES["analysis_started"].format(store_id=store_id))

    try:
        analysis_input = analysis_service.load_input(store_id, state.get("reference_date"))
        return {
            "analysis_input": analysis_input,
            "data_fetched": True,
            "processing_stage": "fetched"
        }

    except DataNotFoundException as e:
        logger.warning(f"[{store_id}] {e.detail}")
        return {
            "data_fetched": False,
            "not_found": True,
            "errors": state.get("errors", []) + [e.detail],
            "processing_stage": "failed"
        }

    except Exception as e:
        error_msg = f"Error fetching store data: {str(e)}"
        logger.error(error_msg)
        return {
            "data_fetched": False,
            "errors": state.get("errors", []) + [error_msg],
            "processing_stage": "failed"
        }

async def analyze_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Nó 2: Roda a análise inteligente (função pura)
    """
    analysis_input = state["analysis_input"]

    try:
        analysis = analisar_dados_inteligente(
            analysis_input.historico,
            analysis_input.dados_atual
        )
        logger.info(MESSAGES["analysis_completed"].format(
            problemas=len(analysis.problemas_detectados),
            sugestoes=len(analysis.sugestoes_personalizadas)
        ))
        return {"analysis": analysis, "processing_stage": "analyzed"}

    except Exception as e:
        error_msg = f"Error analyzing store data: {str(e)}"
        logger.error(error_msg, exc_info=True)
        return {
            "errors": state.get("errors", []) + [error_msg],
            "processing_stage": "failed"
        }

async def explain_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Nó 3 (opcional): Resumo executivo com o Gemini
    """
    logger.info("Generating LLM explanation")

    explanation = await vertex_client.explain_analysis(state["analysis"])
    return {"explanation": explanation, "processing_stage": "explained"}

async def compile_results_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Nó final: Compila o resultado e calcula o tempo de processamento
    """
    end_time = datetime.now(timezone.utc)
    start_time = state.get("start_time", end_time)
    failed = state.get("processing_stage") == "failed"

    analysis = state.get("analysis")
    result = {
        "store_id": state["store_id"],
        "analysis": analysis.model_dump(mode="json") if analysis is not None else None,
        "explanation": state.get("explanation"),
    }

    return {
        "result": result,
        "end_time": end_time,
        "processing_time": (end_time - start_time).total_seconds(),
        "processing_stage": "failed" if failed else "completed",
        "errors": state.get("errors", [])
    }
