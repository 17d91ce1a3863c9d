"""
Testes do cliente do Vertex AI (modelo mockado, sem chamadas externas)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.application.services.intelligent_analysis_service import analisar_dados_inteligente
from backend.core.constants import Gravidade
from backend.core.exceptions import VertexAIException
from backend.domain.models.analytics import Problem
from backend.infrastructure.external.vertex_ai import VertexAIClient, prioritize_problems


def connected_client(response=None, error=None) -> VertexAIClient:
    client = VertexAIClient()
    client._initialized = True
    client._model = MagicMock()
    client._model.generate_content_async = AsyncMock(
        return_value=MagicMock(text=response), side_effect=error
    )
    client._generation_config = MagicMock()
    return client


def test_prioritize_problems():
    problemas = [
        Problem(tipo="produtos_sem_giro", gravidade=Gravidade.MEDIA, mensagem="m", sugestao="s"),
        Problem(tipo="queda_pedidos_recente", gravidade=Gravidade.CRITICA, mensagem="m", sugestao="s"),
        Problem(tipo="produto_popular_em_queda", gravidade=Gravidade.ALTA, mensagem="m", sugestao="s"),
    ]

    assert prioritize_problems(problemas) == (
        "queda_pedidos_recente, produto_popular_em_queda, produtos_sem_giro"
    )
    assert prioritize_problems([]) == "nenhum"


def test_client_is_lazy():
    client = VertexAIClient()
    assert client._initialized is False
    assert client._model is None


async def test_chat_sends_dashboard_context():
    client = connected_client(response="Resposta")

    reply = await client.chat("Como estou?", {"conversao": 2.1})

    assert reply == "Resposta"
    prompt, message = client._model.generate_content_async.call_args.args[0]
    assert '"conversao": 2.1' in prompt
    assert message == "Como estou?"


async def test_chat_wraps_errors():
    client = connected_client(error=RuntimeError("quota"))

    with pytest.raises(VertexAIException) as exc_info:
        await client.chat("Oi", {})

    assert exc_info.value.status_code == 503


async def test_explanation_falls_back_without_llm(historico_estavel, make_atual):
    analysis = analisar_dados_inteligente(historico_estavel, make_atual(abandonos=30))
    client = connected_client(error=RuntimeError("offline"))

    explanation = await client.explain_analysis(analysis)

    assert explanation == (
        "Análise automática: 1 problema(s) detectado(s). Priorize: abandono_acima_do_padrao"
    )


async def test_explanation_uses_model(historico_estavel, atual_estavel):
    analysis = analisar_dados_inteligente(historico_estavel, atual_estavel)
    client = connected_client(response="Tudo dentro do padrão.")

    assert await client.explain_analysis(analysis) == "Tudo dentro do padrão."
