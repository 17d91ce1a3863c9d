"""
LEARNING NOTE: Motor de aprendizado.
Aprende o padrão histórico de cada métrica do restaurante e define limites
adaptativos (média ± 1.5 desvios). Uma instância vive só durante uma análise.
"""

from typing import Dict, List
import logging

from backend.core.constants import BAND_SIGMAS, MetricKind
from backend.domain.models.analytics import (
    CurrentData,
    HistoricalData,
    LearningMetrics,
    MetricasAprendidas,
)
from backend.infrastructure.ml.statistics import linreg_slope, mean, stddev

logger = logging.getLogger(__name__)

def learn_pattern(valores: List[float]) -> LearningMetrics:
    """Média, desvio, inclinação e limites adaptativos de uma série"""
    media = mean(valores)
    desvio_padrao = stddev(valores)

    return LearningMetrics(
        media=media,
        desvio_padrao=desvio_padrao,
        tendencia=linreg_slope(valores),
        limite_superior=media + desvio_padrao * BAND_SIGMAS,
        limite_inferior=max(0.0, media - desvio_padrao * BAND_SIGMAS),
    )

class LearningEngine:
    """
    Perfis aprendidos para as quatro métricas escalares

    LEARNING NOTE: Sem estado global - cada chamada de análise cria o seu
    motor e o passa explicitamente para o detector e o motor de sugestões.
    """

    def __init__(self, historico: HistoricalData, atual: CurrentData):
        self.historico = historico
        self.atual = atual
        self.metrics: Dict[MetricKind, LearningMetrics] = {
            kind: learn_pattern(historico.series(kind)) for kind in MetricKind
        }
        logger.debug(
            "Padrões aprendidos: %s",
            {kind.value: round(m.media, 2) for kind, m in self.metrics.items()}
        )

    def profile(self, kind: MetricKind) -> LearningMetrics:
        return self.metrics[kind]

    def is_within_pattern(self, kind: MetricKind) -> bool:
        """Se o valor atual está dentro de [limite_inferior, limite_superior]"""
        metricas = self.metrics[kind]
        valor_atual = self.atual.value(kind)
        return metricas.limite_inferior <= valor_atual <= metricas.limite_superior

    def percent_deviation(self, kind: MetricKind) -> float:
        """Desvio percentual do valor atual em relação à média histórica"""
        media = self.metrics[kind].media
        if media == 0:
            return 0.0
        return (self.atual.value(kind) - media) / media * 100

    def learn_product_patterns(self) -> Dict[str, LearningMetrics]:
        """
        Perfil por produto, juntando mais e menos vendidos num só lookup.
        Em caso de nome repetido vale o perfil da lista de menos vendidos.
        """
        padroes: Dict[str, LearningMetrics] = {}
        produtos = self.historico.produtos

        for produto in [*produtos.mais_vendidos, *produtos.menos_vendidos]:
            if produto.vendas:
                padroes[produto.produto] = learn_pattern(produto.vendas)

        return padroes

    def get_metrics_summary(self) -> MetricasAprendidas:
        abandonos = self.metrics[MetricKind.ABANDONOS]
        conversao = self.metrics[MetricKind.CONVERSAO]

        return MetricasAprendidas(
            media_abandonos=abandonos.media,
            media_conversao=conversao.media,
            media_cancelamentos=self.metrics[MetricKind.CANCELAMENTOS].media,
            desvio_padrao_abandonos=abandonos.desvio_padrao,
            desvio_padrao_conversao=conversao.desvio_padrao,
        )
