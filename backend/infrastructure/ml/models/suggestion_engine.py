"""
LEARNING NOTE: Motor de sugestões
Junta quatro fontes de recomendação, nesta ordem:
  1. a sugestão de cada problema detectado
  2. sugestões proativas (mesmo sem problema crítico)
  3. sugestões por tendência
  4. otimização de produtos
O resultado não tem duplicatas e mantém a ordem da primeira ocorrência.
"""

from typing import List
import logging

from backend.core.constants import (
    ABANDONMENT_GROWTH_SLOPE,
    CHAMPION_MIN_SALES,
    CONVERSION_GROWTH_SLOPE,
    DISPARITY_FACTOR,
    HIGH_ABANDONMENT_PCT,
    LOW_CONVERSION_PCT,
    ORDERS_DECLINE_SLOPE,
    ORDERS_GROWTH_SLOPE,
    RISING_PRODUCT_SLOPE,
    STAGNANT_MAX_SALES,
    STRONG_WEEK_FACTOR,
    MetricKind,
)
from backend.domain.models.analytics import CurrentData, HistoricalData, Problem
from backend.infrastructure.ml.models.learning_engine import LearningEngine
from backend.infrastructure.ml.statistics import pct_change

logger = logging.getLogger(__name__)

def _format_count(valor: float) -> str:
    return str(int(valor)) if float(valor).is_integer() else f"{valor:g}"

class SuggestionEngine:
    """Gera recomendações personalizadas a partir do histórico e dos problemas"""

    def __init__(
        self,
        problemas: List[Problem],
        learning: LearningEngine,
        historico: HistoricalData,
        atual: CurrentData
    ):
        self.problemas = problemas
        self.learning = learning
        self.historico = historico
        self.atual = atual

    def generate(self) -> List[str]:
        sugestoes = [problema.sugestao for problema in self.problemas]
        sugestoes.extend(self._proactive())
        sugestoes.extend(self._by_trend())
        sugestoes.extend(self._product_optimization())

        # dict preserva a ordem de inserção
        return list(dict.fromkeys(sugestoes))

    def _proactive(self) -> List[str]:
        sugestoes = []
        conversao = self.learning.profile(MetricKind.CONVERSAO)
        abandonos = self.learning.profile(MetricKind.ABANDONOS)

        if LOW_CONVERSION_PCT > self.atual.conversao >= conversao.media:
            sugestoes.append(
                "Sua conversão está dentro do padrão, mas pode melhorar. "
                "Teste fotos profissionais e descrições mais atrativas."
            )

        if HIGH_ABANDONMENT_PCT < self.atual.abandonos <= abandonos.limite_superior:
            sugestoes.append(
                "Adicione badges de 'Mais Vendido' ou 'Recomendado' nos produtos "
                "populares para reduzir abandono."
            )

        if self.atual.produtos_mais_vendidos:
            top = self.atual.produtos_mais_vendidos[0]
            if top.vendas > CHAMPION_MIN_SALES:
                sugestoes.append(
                    f'"{top.produto}" é seu campeão de vendas. Considere criar '
                    "variações ou combos com este item."
                )

        if len(self.historico.pedidos) >= 4:
            melhor_semana = max(self.historico.pedidos[-4:])
            if melhor_semana > self.learning.profile(MetricKind.PEDIDOS).media * STRONG_WEEK_FACTOR:
                sugestoes.append(
                    f"Sua melhor semana recente teve {_format_count(melhor_semana)} pedidos. "
                    "Analise o que funcionou naquele período e replique."
                )

        return sugestoes

    def _by_trend(self) -> List[str]:
        sugestoes = []
        tendencia_pedidos = self.learning.profile(MetricKind.PEDIDOS).tendencia

        if tendencia_pedidos > ORDERS_GROWTH_SLOPE:
            sugestoes.append(
                "Seu negócio está em crescimento! Prepare-se para escalar: "
                "revise estoque e capacidade de atendimento."
            )

        if tendencia_pedidos < ORDERS_DECLINE_SLOPE:
            sugestoes.append(
                "Tendência de queda detectada. Ação recomendada: lance promoções, "
                "aumente presença em redes sociais e revise cardápio."
            )

        if self.learning.profile(MetricKind.ABANDONOS).tendencia > ABANDONMENT_GROWTH_SLOPE:
            sugestoes.append(
                "Taxa de abandono vem crescendo. Simplifique o checkout e destaque "
                "frete grátis ou descontos no carrinho."
            )

        if self.learning.profile(MetricKind.CONVERSAO).tendencia > CONVERSION_GROWTH_SLOPE:
            sugestoes.append(
                "Conversão em alta! Continue investindo nas estratégias atuais de "
                "apresentação e precificação."
            )

        return sugestoes

    def _product_optimization(self) -> List[str]:
        sugestoes = []
        padroes = self.learning.learn_product_patterns()
        mais_vendidos = self.atual.produtos_mais_vendidos
        menos_vendidos = self.atual.produtos_menos_vendidos

        # Primeiro produto em ascensão, na ordem dos mais vendidos
        for produto in mais_vendidos:
            padrao = padroes.get(produto.produto)
            if padrao is not None and padrao.tendencia > RISING_PRODUCT_SLOPE:
                variacao = pct_change(produto.vendas, padrao.media)
                sugestoes.append(
                    f'"{produto.produto}" está em ascensão ({variacao:.0f}% acima da média). '
                    "Destaque-o no topo do cardápio."
                )
                break

        if len(mais_vendidos) >= 3 and len(menos_vendidos) >= 3:
            sugestoes.append(
                "Organize o cardápio: produtos mais vendidos no topo, itens com baixo "
                "giro no final ou em seções de promoções."
            )

        estagnados = [p for p in menos_vendidos if p.vendas < STAGNANT_MAX_SALES]
        if len(estagnados) >= 2:
            nomes = ", ".join(p.produto for p in estagnados[:2])
            sugestoes.append(
                f"Produtos estagnados detectados. Crie combos atrativos incluindo: {nomes}."
            )

        # Sempre divide por 3, mesmo com listas menores
        media_top = sum(p.vendas for p in mais_vendidos[:3]) / 3
        media_bottom = sum(p.vendas for p in menos_vendidos[:3]) / 3
        if media_top > media_bottom * DISPARITY_FACTOR:
            sugestoes.append(
                "Grande disparidade entre produtos. Revise preços e apresentação "
                "dos itens com baixa saída."
            )

        return sugestoes
