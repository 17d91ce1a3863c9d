"""
Testes do motor de aprendizado.
"""

import pytest

from backend.core.constants import MetricKind
from backend.infrastructure.ml.models.learning_engine import LearningEngine, learn_pattern


class TestLearnPattern:
    def test_band_is_one_and_a_half_sigmas(self):
        metricas = learn_pattern([2, 4, 4, 4, 5, 5, 7, 9])

        assert metricas.media == pytest.approx(5.0)
        assert metricas.desvio_padrao == pytest.approx(2.0)
        assert metricas.limite_superior == pytest.approx(8.0)
        assert metricas.limite_inferior == pytest.approx(2.0)

    def test_lower_bound_never_negative(self):
        metricas = learn_pattern([0, 10, 0, 10])
        assert metricas.limite_inferior == 0

    def test_empty_series(self):
        metricas = learn_pattern([])
        assert metricas.media == 0
        assert metricas.desvio_padrao == 0
        assert metricas.tendencia == 0

    def test_slope_is_learned(self):
        assert learn_pattern([1, 2, 3, 4]).tendencia == pytest.approx(1.0)


class TestLearningEngine:
    def test_profiles_every_metric(self, historico_estavel, atual_estavel):
        engine = LearningEngine(historico_estavel, atual_estavel)

        assert set(engine.metrics) == set(MetricKind)
        assert engine.profile(MetricKind.ABANDONOS).media == pytest.approx(10.25)

    def test_within_pattern(self, historico_estavel, make_atual):
        assert LearningEngine(historico_estavel, make_atual(abandonos=10)).is_within_pattern(
            MetricKind.ABANDONOS
        )
        assert not LearningEngine(historico_estavel, make_atual(abandonos=30)).is_within_pattern(
            MetricKind.ABANDONOS
        )

    def test_percent_deviation(self, make_historico, make_atual):
        historico = make_historico(pedidos=[40, 60, 40, 60])
        engine = LearningEngine(historico, make_atual(pedidos_total=75))

        assert engine.percent_deviation(MetricKind.PEDIDOS) == pytest.approx(50.0)

    def test_percent_deviation_zero_mean(self, make_historico, make_atual):
        historico = make_historico(cancelamentos=[0] * 8)
        engine = LearningEngine(historico, make_atual(cancelamentos=5))

        assert engine.percent_deviation(MetricKind.CANCELAMENTOS) == 0

    def test_product_patterns_merge_both_lists(self, make_historico, make_atual):
        historico = make_historico(
            mais_vendidos=[
                {"produto": "X-Burger", "vendas": [20, 22, 21]},
                {"produto": "Combo", "vendas": [10, 10, 10]},
            ],
            menos_vendidos=[
                {"produto": "Salada", "vendas": [2, 1, 3]},
                {"produto": "Combo", "vendas": [4, 4, 4]},
                {"produto": "Vazio", "vendas": []},
            ],
        )
        padroes = LearningEngine(historico, make_atual()).learn_product_patterns()

        assert set(padroes) == {"X-Burger", "Combo", "Salada"}
        # Nome repetido: vale a lista de menos vendidos
        assert padroes["Combo"].media == pytest.approx(4.0)

    def test_metrics_summary(self, historico_estavel, atual_estavel):
        resumo = LearningEngine(historico_estavel, atual_estavel).get_metrics_summary()

        assert resumo.media_abandonos == pytest.approx(10.25)
        assert resumo.media_conversao == pytest.approx(4.0125)
        assert resumo.media_cancelamentos == pytest.approx(2.125)
        assert resumo.desvio_padrao_abandonos == pytest.approx(0.9375 ** 0.5)
