"""
LEARNING NOTE: Enums e limiares da análise inteligente.
Os limiares foram calibrados à mão; mantenha os valores para paridade de
comportamento e ajuste aqui se precisar de outra sensibilidade.
"""

from enum import Enum

class MetricKind(str, Enum):
    """Métricas escalares acompanhadas semana a semana"""
    PEDIDOS = "pedidos"
    CANCELAMENTOS = "cancelamentos"
    ABANDONOS = "abandonos"
    CONVERSAO = "conversao"

    @property
    def is_percentage(self) -> bool:
        return self in (MetricKind.ABANDONOS, MetricKind.CONVERSAO)

class Gravidade(str, Enum):
    BAIXA = "baixa"
    MEDIA = "média"
    ALTA = "alta"
    CRITICA = "crítica"

class TrendStatus(str, Enum):
    SUBINDO = "subindo"
    DESCENDO = "descendo"
    ESTAVEL = "estável"

class ProductTrendStatus(str, Enum):
    CRESCENDO = "crescendo"
    CAINDO = "caindo"
    ESTAVEL = "estável"

class PredictionTrend(str, Enum):
    ALTA = "alta"
    BAIXA = "baixa"
    ESTAVEL = "estável"

# Ordem de cálculo das predições
PREDICTION_ORDER = (
    MetricKind.PEDIDOS,
    MetricKind.CANCELAMENTOS,
    MetricKind.ABANDONOS,
    MetricKind.CONVERSAO,
)

# Aprendizado / anomalias
BAND_SIGMAS = 1.5
ANOMALY_SIGMAS = 1.5
HIGH_SIGMAS = 2.0
CRITICAL_SIGMAS = 3.0

# Tendências
TREND_THRESHOLD = 0.05
PRODUCT_TREND_THRESHOLD = 0.3
PRODUCT_TREND_LIMIT = 5

# Detector de problemas
POPULAR_DECLINE_RATIO = 0.7
POPULAR_DECLINE_HIGH_PCT = 40
DEAD_STOCK_MAX_SALES = 10
DEAD_STOCK_MIN_WEEKS = 6
RECENT_DROP_MIN_WEEKS = 6
RECENT_DROP_PCT = -15
RECENT_DROP_CRITICAL_PCT = -30

# Motor de sugestões
LOW_CONVERSION_PCT = 3.0
HIGH_ABANDONMENT_PCT = 10
CHAMPION_MIN_SALES = 50
STRONG_WEEK_FACTOR = 1.2
ORDERS_GROWTH_SLOPE = 0.5
ORDERS_DECLINE_SLOPE = -0.5
ABANDONMENT_GROWTH_SLOPE = 0.3
CONVERSION_GROWTH_SLOPE = 0.1
RISING_PRODUCT_SLOPE = 0.5
STAGNANT_MAX_SALES = 15
DISPARITY_FACTOR = 10

# Predições
PREDICTION_HORIZON = 7
PREDICTION_EMA_WINDOW = 4
PREDICTION_TREND_THRESHOLD = 0.5
MIN_POINTS_FOR_CONFIDENCE = 4
LOW_CONFIDENCE = 30
MIN_CONFIDENCE = 40
MAX_CONFIDENCE = 95

# Alertas persistidos
ALERT_SEVERITIES = (Gravidade.ALTA, Gravidade.CRITICA)

# Mensagens comuns
MESSAGES = {
    "analysis_started": "Análise iniciada para a loja {store_id}",
    "analysis_completed": "Análise concluída: {problemas} problema(s), {sugestoes} sugestão(ões)",
    "llm_fallback": "Análise automática: {problemas} problema(s) detectado(s). Priorize: {prioridade}",
}
