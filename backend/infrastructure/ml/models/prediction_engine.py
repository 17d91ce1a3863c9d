"""
LEARNING NOTE: Predições 7 períodos à frente
Combina a inclinação da regressão linear com a última média móvel
exponencial. Só depende do histórico, não do detector.
"""

from typing import List, Sequence
import math
import logging

from backend.core.constants import (
    LOW_CONFIDENCE,
    MAX_CONFIDENCE,
    MIN_CONFIDENCE,
    MIN_POINTS_FOR_CONFIDENCE,
    PREDICTION_EMA_WINDOW,
    PREDICTION_HORIZON,
    PREDICTION_ORDER,
    PREDICTION_TREND_THRESHOLD,
    MetricKind,
    PredictionTrend,
)
from backend.domain.models.analytics import HistoricalData, Prediction
from backend.infrastructure.ml.statistics import coefficient_of_variation, ema, linreg_slope

logger = logging.getLogger(__name__)

def prediction_confidence(valores: Sequence[float]) -> int:
    """
    Confiança 0-100: quanto menor a variação, maior a confiança.
    Com menos de 4 pontos fica fixa em 30.
    """
    if len(valores) < MIN_POINTS_FOR_CONFIDENCE:
        return LOW_CONFIDENCE

    confianca = 95 - coefficient_of_variation(valores) * 100
    confianca = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confianca))
    # Arredonda .5 para cima
    return int(math.floor(confianca + 0.5))

def classify_prediction_trend(slope: float) -> PredictionTrend:
    if slope > PREDICTION_TREND_THRESHOLD:
        return PredictionTrend.ALTA
    if slope < -PREDICTION_TREND_THRESHOLD:
        return PredictionTrend.BAIXA
    return PredictionTrend.ESTAVEL

def predict_metric(kind: MetricKind, valores: Sequence[float]) -> Prediction:
    if len(valores) == 0:
        return Prediction(
            tipo=kind,
            valor_previsto=0.0,
            confianca=LOW_CONFIDENCE,
            dias_a_frente=PREDICTION_HORIZON,
            tendencia=PredictionTrend.ESTAVEL,
        )

    slope = linreg_slope(valores)
    ultima_media = ema(valores, PREDICTION_EMA_WINDOW)[-1]

    valor_previsto = max(0.0, ultima_media + slope * PREDICTION_HORIZON)
    if kind.is_percentage:
        valor_previsto = min(100.0, valor_previsto)

    return Prediction(
        tipo=kind,
        valor_previsto=valor_previsto,
        confianca=prediction_confidence(valores),
        dias_a_frente=PREDICTION_HORIZON,
        tendencia=classify_prediction_trend(slope),
    )

def gerar_predicoes(historico: HistoricalData) -> List[Prediction]:
    """Uma predição por métrica: pedidos, cancelamentos, abandonos, conversão"""
    predicoes = [predict_metric(kind, historico.series(kind)) for kind in PREDICTION_ORDER]

    logger.debug(
        "Predições: %s",
        {p.tipo.value: round(p.valor_previsto, 2) for p in predicoes}
    )
    return predicoes
