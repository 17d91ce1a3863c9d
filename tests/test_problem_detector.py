"""
Testes do detector de problemas
"""

import pytest

from backend.core.constants import Gravidade
from backend.infrastructure.ml.models.learning_engine import LearningEngine, learn_pattern
from backend.infrastructure.ml.models.problem_detector import ProblemDetector, detect_anomaly

_SEVERITY_RANK = {
    Gravidade.BAIXA: 0,
    Gravidade.MEDIA: 1,
    Gravidade.ALTA: 2,
    Gravidade.CRITICA: 3,
}


def detect(historico, atual):
    return ProblemDetector(LearningEngine(historico, atual), historico, atual).detect_problems()


def by_tipo(problemas, tipo):
    return [p for p in problemas if p.tipo == tipo]


class TestDetectAnomaly:
    def test_inside_band_is_not_anomaly(self):
        resultado = detect_anomaly(10, learn_pattern([10, 11, 9, 10, 12, 10, 11, 9]))

        assert not resultado.is_anomalia
        assert resultado.gravidade == Gravidade.BAIXA

    def test_zero_stddev_counts_as_one(self):
        metricas = learn_pattern([10, 10, 10, 10])
        resultado = detect_anomaly(12, metricas)

        assert resultado.desvios == pytest.approx(2.0)
        assert resultado.gravidade == Gravidade.MEDIA

    @pytest.mark.parametrize("valor,gravidade", [
        (11.6, Gravidade.MEDIA),
        (12.5, Gravidade.ALTA),
        (13.5, Gravidade.CRITICA),
    ])
    def test_severity_tiers(self, valor, gravidade):
        # média 10, desvio 1
        metricas = learn_pattern([9, 11, 9, 11])
        assert detect_anomaly(valor, metricas).gravidade == gravidade

    def test_severity_is_monotonic(self):
        metricas = learn_pattern([9, 11, 9, 11])
        ranks = [
            _SEVERITY_RANK[detect_anomaly(10 + passo * 0.25, metricas).gravidade]
            for passo in range(20)
        ]
        assert ranks == sorted(ranks)


class TestProblemDetector:
    def test_stable_restaurant_has_no_problems(self, historico_estavel, atual_estavel):
        assert detect(historico_estavel, atual_estavel) == []

    def test_abandonment_spike(self, historico_estavel, make_atual):
        problemas = detect(historico_estavel, make_atual(abandonos=30))

        [problema] = by_tipo(problemas, "abandono_acima_do_padrao")
        assert problema.gravidade in (Gravidade.ALTA, Gravidade.CRITICA)
        assert problema.alerta is True
        assert "(10.2%)" in problema.mensagem

    def test_low_abandonment_is_not_a_problem(self, historico_estavel, make_atual):
        problemas = detect(historico_estavel, make_atual(abandonos=0))
        assert by_tipo(problemas, "abandono_acima_do_padrao") == []

    def test_conversion_drop(self, historico_estavel, make_atual):
        problemas = detect(historico_estavel, make_atual(conversao=1.0))

        [problema] = by_tipo(problemas, "conversao_abaixo_do_padrao")
        assert problema.gravidade == Gravidade.CRITICA

    def test_cancellations_spike_reports_rate(self, historico_estavel, make_atual):
        problemas = detect(historico_estavel, make_atual(cancelamentos=10, pedidos_total=50))

        [problema] = by_tipo(problemas, "cancelamentos_elevados")
        assert "Taxa atual: 20.0%" in problema.mensagem

    def test_recent_orders_collapse_is_critical(self, make_historico, make_atual):
        historico = make_historico(pedidos=[50, 52, 48, 51, 49, 50, 10, 9, 8])
        problemas = detect(historico, make_atual(pedidos_total=9))

        [problema] = by_tipo(problemas, "queda_pedidos_recente")
        assert problema.gravidade == Gravidade.CRITICA

    def test_moderate_orders_drop_is_high(self, make_historico, make_atual):
        historico = make_historico(pedidos=[50, 50, 50, 40, 40, 40])
        problemas = detect(historico, make_atual(pedidos_total=40))

        [problema] = by_tipo(problemas, "queda_pedidos_recente")
        assert problema.gravidade == Gravidade.ALTA
        assert "20%" in problema.mensagem

    def test_orders_drop_needs_six_weeks(self, make_historico, make_atual):
        historico = make_historico(pedidos=[50, 50, 10, 9, 8])
        assert by_tipo(detect(historico, make_atual()), "queda_pedidos_recente") == []

    def test_popular_product_decline(self, make_historico, make_atual):
        historico = make_historico(
            mais_vendidos=[{"produto": "X-Burger", "vendas": [20, 22, 21, 19, 20]}]
        )
        atual = make_atual(produtos_mais_vendidos=[{"produto": "X-Burger", "vendas": 5}])

        [problema] = by_tipo(detect(historico, atual), "produto_popular_em_queda")
        assert problema.gravidade == Gravidade.ALTA
        assert '"X-Burger"' in problema.mensagem
        assert "75%" in problema.mensagem

    def test_popular_product_moderate_decline(self, make_historico, make_atual):
        historico = make_historico(
            mais_vendidos=[{"produto": "X-Burger", "vendas": [20, 22, 21, 19, 20]}]
        )
        atual = make_atual(produtos_mais_vendidos=[{"produto": "X-Burger", "vendas": 13}])

        [problema] = by_tipo(detect(historico, atual), "produto_popular_em_queda")
        assert problema.gravidade == Gravidade.MEDIA

    def test_unknown_product_is_skipped(self, historico_estavel, make_atual):
        atual = make_atual(produtos_mais_vendidos=[{"produto": "Novo", "vendas": 1}])
        assert by_tipo(detect(historico_estavel, atual), "produto_popular_em_queda") == []

    def test_dead_stock(self, historico_estavel, make_atual):
        atual = make_atual(produtos_menos_vendidos=[
            {"produto": "Salada", "vendas": 2},
            {"produto": "Suco", "vendas": 4},
            {"produto": "Batata", "vendas": 30},
        ])

        [problema] = by_tipo(detect(historico_estavel, atual), "produtos_sem_giro")
        assert problema.gravidade == Gravidade.MEDIA
        assert problema.mensagem.startswith("2 produto(s)")
        assert "Salada, Suco" in problema.sugestao

    def test_dead_stock_needs_history(self, make_historico, make_atual):
        historico = make_historico(pedidos=[50, 52, 48, 51, 49])
        atual = make_atual(produtos_menos_vendidos=[{"produto": "Salada", "vendas": 2}])

        assert by_tipo(detect(historico, atual), "produtos_sem_giro") == []

    def test_empty_history_does_not_fail(self, make_historico, make_atual):
        historico = make_historico(pedidos=[])
        assert detect(historico, make_atual()) == []
