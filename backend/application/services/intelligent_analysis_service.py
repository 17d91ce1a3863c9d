"""
LEARNING NOTE: Serviço principal da análise inteligente
Orquestra aprendizado, detecção de problemas, sugestões, tendências e
predições. `analisar_dados_inteligente` é uma função pura: mesma entrada,
mesma saída, sem estado entre chamadas.
"""

from datetime import datetime, timezone
from typing import Sequence, Tuple
import logging

from backend.core.config import settings
from backend.core.constants import (
    PRODUCT_TREND_LIMIT,
    PRODUCT_TREND_THRESHOLD,
    MetricKind,
    ProductTrendStatus,
    TrendStatus,
)
from backend.core.exceptions import DataNotFoundException, PersistenceException
from backend.domain.models.analytics import (
    AnalysisInput,
    AnalysisOutput,
    CurrentData,
    HistoricalData,
    ProductTrend,
    ProductTrends,
    Tendencias,
    Trend,
)
from backend.infrastructure.database.bigquery import BigQueryRepository
from backend.infrastructure.ml.models.learning_engine import LearningEngine
from backend.infrastructure.ml.models.prediction_engine import gerar_predicoes
from backend.infrastructure.ml.models.problem_detector import ProblemDetector
from backend.infrastructure.ml.models.suggestion_engine import SuggestionEngine
from backend.infrastructure.ml.preprocessing import analysis_window_start, build_analysis_input
from backend.infrastructure.ml.statistics import (
    classify_trend,
    linreg_slope,
    mean,
    pct_change,
    r2,
)

logger = logging.getLogger(__name__)

_STATUS_TO_PRODUCT = {
    TrendStatus.SUBINDO: ProductTrendStatus.CRESCENDO,
    TrendStatus.DESCENDO: ProductTrendStatus.CAINDO,
    TrendStatus.ESTAVEL: ProductTrendStatus.ESTAVEL,
}

def metric_trend(historico: Sequence[float], valor_atual: float) -> Trend:
    """
    Tendência de uma métrica: inclinação e R² sobre histórico + valor atual.
    A variação compara as últimas 4 semanas com as 4 anteriores (ou a última
    com a penúltima quando há menos de 8 semanas).
    """
    serie = [*historico, valor_atual]

    variacao = 0.0
    if len(historico) >= 8:
        variacao = pct_change(mean(historico[-4:]), mean(historico[-8:-4]))
    elif len(historico) >= 2:
        variacao = pct_change(historico[-1], historico[-2])

    return Trend(
        status=classify_trend(linreg_slope(serie)),
        variacao_percentual=variacao,
        confianca=r2(serie),
    )

def product_trends(historico: HistoricalData, atual: CurrentData) -> ProductTrends:
    # Nome repetido: vale a primeira ocorrência
    vendas_atuais = {}
    for p in atual.produtos_mais_vendidos:
        vendas_atuais.setdefault(p.produto, p.vendas)
    grupos = {status: [] for status in ProductTrendStatus}

    for produto in historico.produtos.mais_vendidos:
        if len(produto.vendas) < 2:
            continue

        status = _STATUS_TO_PRODUCT[
            classify_trend(linreg_slope(produto.vendas), PRODUCT_TREND_THRESHOLD)
        ]
        variacao = pct_change(vendas_atuais.get(produto.produto, 0), mean(produto.vendas))
        grupos[status].append(
            ProductTrend(produto=produto.produto, tendencia=status, variacao=variacao)
        )

    crescendo = sorted(grupos[ProductTrendStatus.CRESCENDO], key=lambda t: t.variacao, reverse=True)
    caindo = sorted(grupos[ProductTrendStatus.CAINDO], key=lambda t: t.variacao)

    return ProductTrends(
        crescendo=crescendo[:PRODUCT_TREND_LIMIT],
        caindo=caindo[:PRODUCT_TREND_LIMIT],
        estaveis=grupos[ProductTrendStatus.ESTAVEL][:PRODUCT_TREND_LIMIT],
    )

def analyze_trends(historico: HistoricalData, atual: CurrentData) -> Tendencias:
    trends = {
        kind.value: metric_trend(historico.series(kind), atual.value(kind))
        for kind in MetricKind
    }
    return Tendencias(**trends, produtos=product_trends(historico, atual))

def analisar_dados_inteligente(historico: HistoricalData, atual: CurrentData) -> AnalysisOutput:
    """
    Análise completa de um período

    1. Aprende os padrões históricos
    2. Detecta problemas
    3. Gera sugestões personalizadas
    4. Analisa tendências
    5. Projeta cada métrica 7 períodos à frente
    """
    learning = LearningEngine(historico, atual)

    problemas = ProblemDetector(learning, historico, atual).detect_problems()
    sugestoes = SuggestionEngine(problemas, learning, historico, atual).generate()

    return AnalysisOutput(
        problemas_detectados=problemas,
        sugestoes_personalizadas=sugestoes,
        tendencias=analyze_trends(historico, atual),
        metricas_aprendidas=learning.get_metrics_summary(),
        predicoes=gerar_predicoes(historico),
    )

class IntelligentAnalysisService:
    """
    Análise por loja: busca os registros no warehouse, agrega em semanas e
    roda a análise pura.

    LEARNING NOTE: O repositório é injetável para facilitar testes
    """

    def __init__(self, repository: BigQueryRepository = None):
        self.repository = repository or BigQueryRepository()
        self.semanas = settings.history_weeks

    def load_input(self, store_id: str, now: datetime = None) -> AnalysisInput:
        now = now or datetime.now(timezone.utc)
        desde = analysis_window_start(now, self.semanas)

        orders = self.repository.get_orders(store_id, desde)
        carts = self.repository.get_carts(store_id, desde)

        if not orders and not carts:
            raise DataNotFoundException(store_id)

        logger.info(f"[{store_id}] {len(orders)} pedidos e {len(carts)} carrinhos carregados")

        return build_analysis_input(
            orders,
            carts,
            now=now,
            semanas=self.semanas,
            top_n=settings.top_products,
            product_limit=settings.product_history_limit,
        )

    def analyze_store(self, store_id: str, now: datetime = None) -> Tuple[AnalysisInput, AnalysisOutput]:
        analysis_input = self.load_input(store_id, now)
        analysis = analisar_dados_inteligente(analysis_input.historico, analysis_input.dados_atual)
        return analysis_input, analysis

    def persist(self, store_id: str, analysis: AnalysisOutput, reference_date: datetime = None) -> dict:
        """Grava predições e alertas de gravidade alta/crítica"""
        reference_date = reference_date or datetime.now(timezone.utc)

        try:
            predicoes = self.repository.save_predictions(store_id, analysis.predicoes, reference_date)
            alertas = self.repository.save_alerts(store_id, analysis.problemas_detectados)
        except Exception as e:
            logger.error(f"[{store_id}] Erro gravando análise: {e}")
            raise PersistenceException(str(e))

        return {"predicoes_salvas": predicoes, "alertas_salvos": alertas}

    def persist_in_background(self, store_id: str, analysis: AnalysisOutput, reference_date: datetime = None) -> None:
        """
        Alvo de BackgroundTasks: a resposta já foi enviada, então falhas de
        gravação só são logadas
        """
        try:
            resultado = self.persist(store_id, analysis, reference_date)
        except PersistenceException as e:
            logger.error(f"[{store_id}] Persistência em background falhou: {e.detail}")
            return

        logger.info(
            f"[{store_id}] {resultado['predicoes_salvas']} predições e "
            f"{resultado['alertas_salvos']} alertas gravados"
        )
