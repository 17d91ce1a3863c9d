"""
LEARNING NOTE: Workflow de análise por loja
fetch_data → analyze → [explain] → compile
A persistência roda fora do workflow, como background task do endpoint
"""

from langgraph.graph import StateGraph, END
from typing import Dict, Any
import logging
from datetime import datetime, timezone
from backend.application.workflows.states import AnalysisState
from backend.application.workflows.nodes import (
    fetch_data_node,
    analyze_node,
    explain_node,
    compile_results_node
)

logger = logging.getLogger(__name__)

def route_after_fetch(state: Dict[str, Any]) -> str:
    if state.get("processing_stage") == "failed":
        return "compile"
    return "analyze"

def route_after_analyze(state: Dict[str, Any]) -> str:
    """
    Decide se precisa de explicação do LLM
    """
    if state.get("processing_stage") == "failed":
        return "compile"
    if state.get("explain", False):
        return "explain"
    return "compile"

def build_analysis_workflow():
    """
    Constrói o workflow de análise
    """
    workflow = StateGraph(AnalysisState)

    workflow.add_node("fetch_data", fetch_data_node)
    workflow.add_node("analyze", analyze_node)
    workflow.add_node("explain", explain_node)
    workflow.add_node("compile", compile_results_node)

    workflow.set_entry_point("fetch_data")

    workflow.add_conditional_edges(
        "fetch_data",
        route_after_fetch,
        {"analyze": "analyze", "compile": "compile"}
    )
    workflow.add_conditional_edges(
        "analyze",
        route_after_analyze,
        {"explain": "explain", "compile": "compile"}
    )

    workflow.add_edge("explain", "compile")
    workflow.add_edge("compile", END)

    app = workflow.compile()

    logger.info("Analysis workflow compiled successfully")

    return app

# Instância global
analysis_workflow = build_analysis_workflow()

async def run_analysis_workflow(
    store_id: str,
    explain: bool = False,
    reference_date: datetime = None
) -> Dict[str, Any]:
    """
    Executa o workflow de análise para uma loja
    """
    initial_state = {
        "store_id": store_id,
        "reference_date": reference_date or datetime.now(timezone.utc),
        "explain": explain,
        "start_time": datetime.now(timezone.utc),
        "errors": [],
        "processing_stage": "starting"
    }

    try:
        result = await analysis_workflow.ainvoke(initial_state)

        logger.info(
            f"Workflow concluído para {store_id}: stage={result.get('processing_stage')} "
            f"em {result.get('processing_time', 0):.2f}s"
        )

        return result

    except Exception as e:
        logger.error(f"Workflow execution failed: {str(e)}")
        return {
            "store_id": store_id,
            "error": str(e),
            "processing_stage": "failed",
            "errors": initial_state["errors"] + [str(e)]
        }
