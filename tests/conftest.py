"""
Pytest fixtures para os testes da análise inteligente.

Dados de exemplo de um restaurante estável e mocks do BigQuery e do
Vertex AI, para que nenhum teste precise de credenciais.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.domain.models.analytics import CurrentData, HistoricalData

# =============================================================================
# DADOS DE EXEMPLO
# =============================================================================

STABLE_ORDERS = [50, 52, 48, 51, 49, 50, 53, 51]
STABLE_CANCELLATIONS = [2, 3, 2, 1, 2, 3, 2, 2]
STABLE_ABANDONMENT = [10, 11, 9, 10, 12, 10, 11, 9]
STABLE_CONVERSION = [4.1, 4.0, 3.8, 4.2, 4.0, 3.9, 4.1, 4.0]


@pytest.fixture
def make_historico():
    """Factory de HistoricalData; séries não informadas repetem o padrão estável"""

    def _make(pedidos=None, cancelamentos=None, abandonos=None, conversao=None,
              mais_vendidos=None, menos_vendidos=None, semanas=None):
        pedidos = list(pedidos if pedidos is not None else STABLE_ORDERS)
        n = len(pedidos)

        def _fit(serie, padrao):
            if serie is not None:
                return list(serie)
            return [padrao[i % len(padrao)] for i in range(n)]

        data = {
            "pedidos": pedidos,
            "cancelamentos": _fit(cancelamentos, STABLE_CANCELLATIONS),
            "abandonos": _fit(abandonos, STABLE_ABANDONMENT),
            "conversao": _fit(conversao, STABLE_CONVERSION),
            "produtos": {
                "mais_vendidos": mais_vendidos or [],
                "menos_vendidos": menos_vendidos or [],
            },
        }
        if semanas is not None:
            data["semanas"] = semanas
        return HistoricalData(**data)

    return _make


@pytest.fixture
def make_atual():
    """Factory de CurrentData com valores dentro do padrão estável"""

    def _make(**overrides):
        data = {
            "pedidos_total": 50,
            "cancelamentos": 2,
            "abandonos": 10,
            "conversao": 4.0,
            "produtos_mais_vendidos": [],
            "produtos_menos_vendidos": [],
        }
        data.update(overrides)
        return CurrentData(**data)

    return _make


@pytest.fixture
def historico_estavel(make_historico) -> HistoricalData:
    return make_historico(
        mais_vendidos=[{"produto": "X-Burger", "vendas": [20, 22, 21, 19, 20, 21, 22, 20]}]
    )


@pytest.fixture
def atual_estavel(make_atual) -> CurrentData:
    return make_atual(produtos_mais_vendidos=[{"produto": "X-Burger", "vendas": 21}])


@pytest.fixture
def analysis_payload() -> dict:
    """Body JSON do POST /analytics/analyze"""
    return {
        "historico": {
            "semanas": 8,
            "pedidos": STABLE_ORDERS,
            "cancelamentos": STABLE_CANCELLATIONS,
            "abandonos": STABLE_ABANDONMENT,
            "conversao": STABLE_CONVERSION,
            "produtos": {
                "mais_vendidos": [{"produto": "X-Burger", "vendas": [20, 22, 21, 19, 20, 21, 22, 20]}],
                "menos_vendidos": [],
            },
        },
        "dados_atual": {
            "pedidos_total": 50,
            "cancelamentos": 2,
            "abandonos": 30,
            "conversao": 4.0,
            "produtos_mais_vendidos": [{"produto": "X-Burger", "vendas": 21}],
            "produtos_menos_vendidos": [],
        },
    }


@pytest.fixture
def reference_now() -> datetime:
    return datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# MOCKS
# =============================================================================

@pytest.fixture
def mock_repository() -> MagicMock:
    """Repositório sem BigQuery: sem pedidos nem carrinhos, gravações contam linhas"""
    mock = MagicMock()
    mock.get_orders.return_value = []
    mock.get_carts.return_value = []
    mock.save_predictions.side_effect = lambda store_id, predicoes, reference_date: len(predicoes)
    mock.save_alerts.side_effect = lambda store_id, problemas: len(problemas)
    return mock


@pytest.fixture
def mock_bigquery_client() -> MagicMock:
    mock = MagicMock()
    mock.insert_rows_json.return_value = []
    return mock


@pytest.fixture
def mock_vertex_client() -> MagicMock:
    mock = MagicMock()
    mock.chat = AsyncMock(return_value="Priorize o checkout esta semana.")
    mock.explain_analysis = AsyncMock(return_value="Resumo executivo.")
    return mock


@pytest.fixture
def client() -> TestClient:
    from backend.main import app

    return TestClient(app)
