"""
LEARNING NOTE: Domain Models = Entidades do negócio
Os formatos (nomes em português) são os mesmos que o dashboard consome,
por isso os campos não foram traduzidos.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, model_validator

from backend.core.constants import (
    Gravidade,
    MetricKind,
    PredictionTrend,
    ProductTrendStatus,
    TrendStatus,
)

# Campo do snapshot atual correspondente a cada métrica
_CURRENT_FIELDS: Dict[MetricKind, str] = {
    MetricKind.PEDIDOS: "pedidos_total",
    MetricKind.CANCELAMENTOS: "cancelamentos",
    MetricKind.ABANDONOS: "abandonos",
    MetricKind.CONVERSAO: "conversao",
}

class ProdutoHistorico(BaseModel):
    model_config = ConfigDict(frozen=True)

    produto: str = Field(..., description="Nome do produto")
    vendas: List[NonNegativeFloat] = Field(
        default_factory=list,
        description="Vendas por período, do mais antigo ao mais recente"
    )

class ProdutosHistorico(BaseModel):
    model_config = ConfigDict(frozen=True)

    mais_vendidos: List[ProdutoHistorico] = Field(default_factory=list)
    menos_vendidos: List[ProdutoHistorico] = Field(default_factory=list)

class HistoricalData(BaseModel):
    """
    Snapshot histórico com `semanas` períodos contíguos (antigo → recente).

    LEARNING NOTE: As quatro séries escalares precisam ter o mesmo tamanho;
    isso é validado aqui para que o motor de análise nunca veja séries
    desalinhadas.
    """

    model_config = ConfigDict(frozen=True)

    semanas: int = Field(..., ge=0, description="Quantidade de períodos")
    pedidos: List[NonNegativeFloat] = Field(default_factory=list)
    cancelamentos: List[NonNegativeFloat] = Field(default_factory=list)
    abandonos: List[NonNegativeFloat] = Field(
        default_factory=list,
        description="Percentual de carrinhos abandonados por período"
    )
    conversao: List[NonNegativeFloat] = Field(
        default_factory=list,
        description="Percentual de conversão por período"
    )
    produtos: ProdutosHistorico = Field(default_factory=ProdutosHistorico)

    @model_validator(mode="before")
    @classmethod
    def _default_semanas(cls, data):
        if isinstance(data, dict) and data.get("semanas") is None:
            data = {**data, "semanas": len(data.get("pedidos") or [])}
        return data

    @model_validator(mode="after")
    def _check_aligned_series(self):
        lengths = {len(self.series(kind)) for kind in MetricKind}
        if len(lengths) > 1:
            raise ValueError(
                "pedidos, cancelamentos, abandonos e conversao devem ter o mesmo tamanho"
            )
        return self

    def series(self, kind: MetricKind) -> List[float]:
        return getattr(self, kind.value)

class ProdutoVenda(BaseModel):
    model_config = ConfigDict(frozen=True)

    produto: str
    vendas: NonNegativeFloat

class CurrentData(BaseModel):
    """Snapshot do período atual (últimos 7 dias)"""

    model_config = ConfigDict(frozen=True)

    pedidos_total: NonNegativeFloat = 0
    cancelamentos: NonNegativeFloat = 0
    abandonos: NonNegativeFloat = 0
    conversao: NonNegativeFloat = 0
    produtos_mais_vendidos: List[ProdutoVenda] = Field(default_factory=list)
    produtos_menos_vendidos: List[ProdutoVenda] = Field(default_factory=list)

    def value(self, kind: MetricKind) -> float:
        return getattr(self, _CURRENT_FIELDS[kind])

class AnalysisInput(BaseModel):
    historico: HistoricalData
    dados_atual: CurrentData

class LearningMetrics(BaseModel):
    """Perfil estatístico aprendido de uma série"""

    model_config = ConfigDict(frozen=True)

    media: float
    desvio_padrao: float
    tendencia: float = Field(..., description="Inclinação da regressão linear")
    limite_superior: float
    limite_inferior: float = Field(..., ge=0)

class AnomalyResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_anomalia: bool
    gravidade: Gravidade
    desvios: float

class Problem(BaseModel):
    model_config = ConfigDict(frozen=True)

    alerta: bool = True
    tipo: str = Field(..., description="Identificador do tipo de problema")
    gravidade: Gravidade
    mensagem: str
    sugestao: str
    impacto_estimado: Optional[str] = None

class Trend(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: TrendStatus
    variacao_percentual: float
    confianca: float = Field(..., ge=0, le=1, description="R² da linha de tendência")

class ProductTrend(BaseModel):
    model_config = ConfigDict(frozen=True)

    produto: str
    tendencia: ProductTrendStatus
    variacao: float

class ProductTrends(BaseModel):
    model_config = ConfigDict(frozen=True)

    crescendo: List[ProductTrend] = Field(default_factory=list)
    caindo: List[ProductTrend] = Field(default_factory=list)
    estaveis: List[ProductTrend] = Field(default_factory=list)

class Tendencias(BaseModel):
    model_config = ConfigDict(frozen=True)

    abandonos: Trend
    conversao: Trend
    pedidos: Trend
    cancelamentos: Trend
    produtos: ProductTrends

class MetricasAprendidas(BaseModel):
    """Resumo exibido nos cards do dashboard"""

    model_config = ConfigDict(frozen=True)

    media_abandonos: float
    media_conversao: float
    media_cancelamentos: float
    desvio_padrao_abandonos: float
    desvio_padrao_conversao: float

class Prediction(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "tipo": "pedidos",
                "valor_previsto": 54.2,
                "confianca": 88,
                "dias_a_frente": 7,
                "tendencia": "alta"
            }
        }
    )

    tipo: MetricKind
    valor_previsto: float = Field(..., ge=0)
    confianca: int = Field(..., ge=0, le=100)
    dias_a_frente: int = 7
    tendencia: PredictionTrend

class AnalysisOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    problemas_detectados: List[Problem] = Field(default_factory=list)
    sugestoes_personalizadas: List[str] = Field(default_factory=list)
    tendencias: Tendencias
    metricas_aprendidas: MetricasAprendidas
    predicoes: List[Prediction] = Field(default_factory=list)
