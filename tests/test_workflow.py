"""
Testes do workflow LangGraph (serviços mockados)
"""

from unittest.mock import MagicMock, patch

import pytest

from backend.application.services.intelligent_analysis_service import IntelligentAnalysisService
from backend.application.workflows.graphs import (
    route_after_analyze,
    route_after_fetch,
    run_analysis_workflow,
)
from backend.domain.models.analytics import AnalysisInput


@pytest.fixture
def service_with_data(mock_repository, historico_estavel, make_atual):
    service = IntelligentAnalysisService(repository=mock_repository)
    service.load_input = MagicMock(
        return_value=AnalysisInput(historico=historico_estavel, dados_atual=make_atual(abandonos=30))
    )
    return service


class TestRouting:
    def test_failed_fetch_skips_to_compile(self):
        assert route_after_fetch({"processing_stage": "failed"}) == "compile"
        assert route_after_fetch({"processing_stage": "fetched"}) == "analyze"

    @pytest.mark.parametrize("state,expected", [
        ({"processing_stage": "analyzed"}, "compile"),
        ({"processing_stage": "analyzed", "explain": True}, "explain"),
        ({"processing_stage": "failed", "explain": True}, "compile"),
    ])
    def test_after_analyze(self, state, expected):
        assert route_after_analyze(state) == expected


async def test_plain_analysis(service_with_data, mock_vertex_client):
    with patch("backend.application.workflows.nodes.analysis_service", service_with_data), \
            patch("backend.application.workflows.nodes.vertex_client", mock_vertex_client):
        result = await run_analysis_workflow("loja-1")

    assert result["processing_stage"] == "completed"
    compiled = result["result"]
    assert compiled["store_id"] == "loja-1"
    assert compiled["analysis"]["problemas_detectados"][0]["tipo"] == "abandono_acima_do_padrao"
    assert compiled["explanation"] is None
    mock_vertex_client.explain_analysis.assert_not_called()


async def test_explanation(service_with_data, mock_vertex_client, mock_repository):
    with patch("backend.application.workflows.nodes.analysis_service", service_with_data), \
            patch("backend.application.workflows.nodes.vertex_client", mock_vertex_client):
        result = await run_analysis_workflow("loja-1", explain=True)

    assert result["processing_stage"] == "completed"
    assert result["result"]["explanation"] == "Resumo executivo."
    # Gravação não faz parte do workflow
    mock_repository.save_predictions.assert_not_called()


async def test_store_without_data(mock_repository, mock_vertex_client):
    service = IntelligentAnalysisService(repository=mock_repository)

    with patch("backend.application.workflows.nodes.analysis_service", service), \
            patch("backend.application.workflows.nodes.vertex_client", mock_vertex_client):
        result = await run_analysis_workflow("loja-vazia")

    assert result["processing_stage"] == "failed"
    assert result["not_found"] is True
    assert "loja-vazia" in result["errors"][0]
    assert result["result"]["analysis"] is None


async def test_fetch_error_is_recorded(mock_repository, mock_vertex_client):
    mock_repository.get_orders.side_effect = RuntimeError("BigQuery indisponível")
    service = IntelligentAnalysisService(repository=mock_repository)

    with patch("backend.application.workflows.nodes.analysis_service", service), \
            patch("backend.application.workflows.nodes.vertex_client", mock_vertex_client):
        result = await run_analysis_workflow("loja-1")

    assert result["processing_stage"] == "failed"
    assert not result.get("not_found")
    assert "BigQuery indisponível" in result["errors"][0]


async def test_reference_date_defaults_to_utc(service_with_data, mock_vertex_client):
    with patch("backend.application.workflows.nodes.analysis_service", service_with_data), \
            patch("backend.application.workflows.nodes.vertex_client", mock_vertex_client):
        result = await run_analysis_workflow("loja-1")

    assert result["reference_date"].tzinfo is not None
    assert service_with_data.load_input.call_args.args[1] == result["reference_date"]
