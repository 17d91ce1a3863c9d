"""
LEARNING NOTE: Detector inteligente de problemas
Compara o período atual com os perfis aprendidos e gera registros de
problema com gravidade. A ordem da lista não tem significado.
"""

from typing import List
import logging

from backend.core.constants import (
    ANOMALY_SIGMAS,
    CRITICAL_SIGMAS,
    DEAD_STOCK_MAX_SALES,
    DEAD_STOCK_MIN_WEEKS,
    HIGH_SIGMAS,
    POPULAR_DECLINE_HIGH_PCT,
    POPULAR_DECLINE_RATIO,
    RECENT_DROP_CRITICAL_PCT,
    RECENT_DROP_MIN_WEEKS,
    RECENT_DROP_PCT,
    Gravidade,
    MetricKind,
)
from backend.domain.models.analytics import (
    AnomalyResult,
    CurrentData,
    HistoricalData,
    LearningMetrics,
    Problem,
)
from backend.infrastructure.ml.models.learning_engine import LearningEngine
from backend.infrastructure.ml.statistics import mean, pct_change, safe_rate

logger = logging.getLogger(__name__)

def detect_anomaly(valor_atual: float, metricas: LearningMetrics) -> AnomalyResult:
    """
    Quantos desvios padrão o valor atual está da média aprendida.
    Desvio zero conta como 1 para não dividir por zero.
    """
    desvios = abs(valor_atual - metricas.media) / (metricas.desvio_padrao or 1)

    gravidade = Gravidade.BAIXA
    if desvios > CRITICAL_SIGMAS:
        gravidade = Gravidade.CRITICA
    elif desvios > HIGH_SIGMAS:
        gravidade = Gravidade.ALTA
    elif desvios > ANOMALY_SIGMAS:
        gravidade = Gravidade.MEDIA

    return AnomalyResult(
        is_anomalia=desvios > ANOMALY_SIGMAS,
        gravidade=gravidade,
        desvios=desvios,
    )

class ProblemDetector:
    """Roda as seis verificações sobre o período atual"""

    def __init__(self, learning: LearningEngine, historico: HistoricalData, atual: CurrentData):
        self.learning = learning
        self.historico = historico
        self.atual = atual

    def detect_problems(self) -> List[Problem]:
        problemas: List[Problem] = []

        problemas.extend(self._check_abandonment())
        problemas.extend(self._check_conversion())
        problemas.extend(self._check_cancellations())
        problemas.extend(self._check_popular_products_decline())
        problemas.extend(self._check_dead_stock())
        problemas.extend(self._check_recent_orders_drop())

        logger.info(f"{len(problemas)} problema(s) detectado(s)")
        return problemas

    def _anomaly(self, kind: MetricKind) -> AnomalyResult:
        return detect_anomaly(self.atual.value(kind), self.learning.profile(kind))

    def _check_abandonment(self) -> List[Problem]:
        desvio = self.learning.percent_deviation(MetricKind.ABANDONOS)
        anomalia = self._anomaly(MetricKind.ABANDONOS)

        if not (anomalia.is_anomalia and desvio > 0):
            return []

        media = self.learning.profile(MetricKind.ABANDONOS).media
        return [Problem(
            tipo="abandono_acima_do_padrao",
            gravidade=anomalia.gravidade,
            mensagem=(
                f"O abandono de carrinho está {desvio:.1f}% acima do seu padrão "
                f"histórico ({media:.1f}%)."
            ),
            sugestao=(
                "Revise fotos, descrições e preços dos produtos. "
                "Considere simplificar o processo de checkout."
            ),
            impacto_estimado="Alto - pode representar perda significativa de receita",
        )]

    def _check_conversion(self) -> List[Problem]:
        desvio = self.learning.percent_deviation(MetricKind.CONVERSAO)
        anomalia = self._anomaly(MetricKind.CONVERSAO)

        if not (anomalia.is_anomalia and desvio < 0):
            return []

        media = self.learning.profile(MetricKind.CONVERSAO).media
        return [Problem(
            tipo="conversao_abaixo_do_padrao",
            gravidade=anomalia.gravidade,
            mensagem=(
                f"A taxa de conversão caiu {abs(desvio):.1f}% abaixo da sua média "
                f"({media:.2f}%)."
            ),
            sugestao=(
                "Analise a jornada do cliente. Destaque promoções e produtos "
                "populares no topo do cardápio."
            ),
            impacto_estimado="Médio - afeta diretamente as vendas",
        )]

    def _check_cancellations(self) -> List[Problem]:
        desvio = self.learning.percent_deviation(MetricKind.CANCELAMENTOS)
        anomalia = self._anomaly(MetricKind.CANCELAMENTOS)

        if not (anomalia.is_anomalia and desvio > 0):
            return []

        taxa = safe_rate(self.atual.cancelamentos, self.atual.pedidos_total)
        return [Problem(
            tipo="cancelamentos_elevados",
            gravidade=anomalia.gravidade,
            mensagem=f"Cancelamentos {desvio:.1f}% acima do normal. Taxa atual: {taxa:.1f}%.",
            sugestao=(
                "Investigue motivos dos cancelamentos. Verifique tempo de preparo, "
                "qualidade e comunicação com clientes."
            ),
            impacto_estimado="Alto - afeta reputação e faturamento",
        )]

    def _check_popular_products_decline(self) -> List[Problem]:
        problemas = []
        padroes = self.learning.learn_product_patterns()

        for produto in self.atual.produtos_mais_vendidos:
            padrao = padroes.get(produto.produto)
            if padrao is None or produto.vendas >= padrao.media * POPULAR_DECLINE_RATIO:
                continue

            queda = (padrao.media - produto.vendas) / padrao.media * 100
            problemas.append(Problem(
                tipo="produto_popular_em_queda",
                gravidade=Gravidade.ALTA if queda > POPULAR_DECLINE_HIGH_PCT else Gravidade.MEDIA,
                mensagem=f'"{produto.produto}" (produto popular) teve queda de {queda:.0f}% nas vendas.',
                sugestao=(
                    "Verifique se houve mudança na receita, preço ou apresentação. "
                    "Considere promoções para reativar as vendas."
                ),
                impacto_estimado="Alto - produto chave do negócio",
            ))

        return problemas

    def _check_dead_stock(self) -> List[Problem]:
        sem_giro = [
            p for p in self.atual.produtos_menos_vendidos
            if p.vendas < DEAD_STOCK_MAX_SALES
        ]

        if not sem_giro or self.historico.semanas < DEAD_STOCK_MIN_WEEKS:
            return []

        nomes = ", ".join(p.produto for p in sem_giro)
        return [Problem(
            tipo="produtos_sem_giro",
            gravidade=Gravidade.MEDIA,
            mensagem=(
                f"{len(sem_giro)} produto(s) com vendas muito baixas há "
                f"{self.historico.semanas} semanas."
            ),
            sugestao=(
                f"Produtos parados: {nomes}. Considere reformular, criar combos "
                "ou remover do cardápio."
            ),
            impacto_estimado="Baixo - mas ocupa espaço no estoque e cardápio",
        )]

    def _check_recent_orders_drop(self) -> List[Problem]:
        pedidos = self.historico.pedidos
        if len(pedidos) < RECENT_DROP_MIN_WEEKS:
            return []

        # Últimas 3 semanas contra as 3 anteriores
        variacao = pct_change(mean(pedidos[-3:]), mean(pedidos[-6:-3]))
        if variacao >= RECENT_DROP_PCT:
            return []

        return [Problem(
            tipo="queda_pedidos_recente",
            gravidade=Gravidade.CRITICA if variacao < RECENT_DROP_CRITICAL_PCT else Gravidade.ALTA,
            mensagem=f"Queda de {abs(variacao):.0f}% no volume de pedidos nas últimas semanas.",
            sugestao=(
                "Ação urgente: revise estratégia de marketing, preços e disponibilidade "
                "de produtos. Considere promoções."
            ),
            impacto_estimado="Crítico - faturamento em risco",
        )]
