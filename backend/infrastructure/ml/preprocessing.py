"""
LEARNING NOTE: Preprocessing dos registros de pedidos e carrinhos
Agrupa os registros brutos em semanas e monta a entrada da análise
(HistoricalData + CurrentData). A análise em si não faz nenhuma consulta.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Sequence
import logging

import numpy as np
import pandas as pd

from backend.domain.models.analytics import (
    AnalysisInput,
    CurrentData,
    HistoricalData,
    ProdutoHistorico,
    ProdutosHistorico,
    ProdutoVenda,
)
from backend.domain.models.orders import CartRecord, OrderRecord

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Desconhecido"
WEEK = pd.Timedelta(days=7)

def analysis_window_start(now: datetime, semanas: int) -> datetime:
    """Início da janela histórica (semanas × 7 dias antes de `now`)"""
    return now - timedelta(days=7 * semanas)

def _utc(moment) -> pd.Timestamp:
    ts = pd.Timestamp(moment)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")

def assign_week_index(created_at: pd.Series, now: pd.Timestamp, semanas: int) -> pd.Series:
    """
    Índice da semana de cada registro, 0 = mais antiga, semanas-1 = mais recente.

    A semana mais recente cobre [now - 7d, now); registros fora da janela
    recebem -1.
    """
    semanas_atras = np.ceil((now - created_at) / WEEK) - 1
    indice = (semanas - 1) - semanas_atras
    dentro = (created_at < now) & (semanas_atras >= 0) & (semanas_atras < semanas)
    return indice.where(dentro, -1).astype(int)

def orders_to_frame(orders: Sequence[OrderRecord]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"created_at": o.created_at, "cancelled": o.status == "cancelled"} for o in orders],
        columns=["created_at", "cancelled"]
    )
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
    return df

def order_items_to_frame(orders: Sequence[OrderRecord]) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {
                "created_at": o.created_at,
                "produto": item.product_name or UNKNOWN_PRODUCT,
                "quantidade": item.quantity,
            }
            for o in orders
            for item in o.items
        ],
        columns=["created_at", "produto", "quantidade"]
    )
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
    df["quantidade"] = df["quantidade"].astype(float)
    return df

def carts_to_frame(carts: Sequence[CartRecord]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"created_at": c.created_at, "abandoned": c.is_abandoned} for c in carts],
        columns=["created_at", "abandoned"]
    )
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
    return df

def _weekly(series: pd.Series, semanas: int) -> pd.Series:
    return series.reindex(range(semanas), fill_value=0).astype(float)

def cart_rates(pedidos: pd.Series, carrinhos: pd.Series, abandonados: pd.Series):
    """
    Abandono e conversão em %. Sem carrinhos o denominador vira 1.

    LEARNING NOTE: A conversão é pedidos / carrinhos, igual ao dashboard
    web. Ver DESIGN.md (Open Questions) antes de mudar o denominador.
    """
    total = carrinhos.where(carrinhos > 0, 1)
    abandono = abandonados / total * 100
    conversao = (pedidos / total * 100).where(pedidos > 0, 0.0)
    return abandono, conversao

def weekly_product_sales(items: pd.DataFrame, semanas: int) -> pd.DataFrame:
    """Tabela produto × semana com a quantidade vendida"""
    dentro = items[items["semana"] >= 0]
    if dentro.empty:
        return pd.DataFrame(columns=range(semanas), dtype=float)

    tabela = dentro.pivot_table(
        index="produto",
        columns="semana",
        values="quantidade",
        aggfunc="sum",
        fill_value=0,
    )
    return tabela.reindex(columns=range(semanas), fill_value=0).astype(float)

def _product_series(tabela: pd.DataFrame, ascending: bool, limit: int) -> List[ProdutoHistorico]:
    totais = tabela.sum(axis=1).sort_values(ascending=ascending, kind="stable")
    return [
        ProdutoHistorico(produto=str(produto), vendas=tabela.loc[produto].tolist())
        for produto in totais.index[:limit]
    ]

def current_product_sales(items: pd.DataFrame, desde: pd.Timestamp, top_n: int) -> Dict[str, List[ProdutoVenda]]:
    recentes = items[items["created_at"] >= desde]
    vendas = (
        recentes.groupby("produto", sort=False)["quantidade"].sum()
        .sort_values(ascending=False, kind="stable")
    )
    ordenados = [ProdutoVenda(produto=str(p), vendas=float(v)) for p, v in vendas.items()]

    return {
        "mais_vendidos": ordenados[:top_n],
        "menos_vendidos": list(reversed(ordenados[-top_n:])) if ordenados else [],
    }

def build_analysis_input(
    orders: Sequence[OrderRecord],
    carts: Sequence[CartRecord],
    now: datetime,
    semanas: int = 12,
    top_n: int = 5,
    product_limit: int = 10
) -> AnalysisInput:
    """
    Monta HistoricalData (semanas completas) e CurrentData (últimos 7 dias)
    a partir dos registros brutos.
    """
    agora = _utc(now)
    uma_semana_atras = agora - WEEK

    df_orders = orders_to_frame(orders)
    df_items = order_items_to_frame(orders)
    df_carts = carts_to_frame(carts)

    df_orders["semana"] = assign_week_index(df_orders["created_at"], agora, semanas)
    df_items["semana"] = assign_week_index(df_items["created_at"], agora, semanas)
    df_carts["semana"] = assign_week_index(df_carts["created_at"], agora, semanas)

    # Séries semanais
    pedidos_semana = df_orders[df_orders["semana"] >= 0].groupby("semana")
    carrinhos_semana = df_carts[df_carts["semana"] >= 0].groupby("semana")

    pedidos = _weekly(pedidos_semana.size(), semanas)
    cancelamentos = _weekly(pedidos_semana["cancelled"].sum(), semanas)
    carrinhos = _weekly(carrinhos_semana.size(), semanas)
    abandonados = _weekly(carrinhos_semana["abandoned"].sum(), semanas)
    abandonos, conversao = cart_rates(pedidos, carrinhos, abandonados)

    tabela_produtos = weekly_product_sales(df_items, semanas)

    historico = HistoricalData(
        semanas=semanas,
        pedidos=pedidos.tolist(),
        cancelamentos=cancelamentos.tolist(),
        abandonos=abandonos.tolist(),
        conversao=conversao.tolist(),
        produtos=ProdutosHistorico(
            mais_vendidos=_product_series(tabela_produtos, ascending=False, limit=product_limit),
            menos_vendidos=_product_series(tabela_produtos, ascending=True, limit=product_limit),
        ),
    )

    # Período atual
    pedidos_recentes = df_orders[df_orders["created_at"] >= uma_semana_atras]
    carrinhos_recentes = df_carts[df_carts["created_at"] >= uma_semana_atras]
    abandono_atual, conversao_atual = cart_rates(
        pd.Series([float(len(pedidos_recentes))]),
        pd.Series([float(len(carrinhos_recentes))]),
        pd.Series([float(carrinhos_recentes["abandoned"].sum())]),
    )
    produtos_atuais = current_product_sales(df_items, uma_semana_atras, top_n)

    dados_atual = CurrentData(
        pedidos_total=len(pedidos_recentes),
        cancelamentos=int(pedidos_recentes["cancelled"].sum()),
        abandonos=float(abandono_atual.iloc[0]),
        conversao=float(conversao_atual.iloc[0]),
        produtos_mais_vendidos=produtos_atuais["mais_vendidos"],
        produtos_menos_vendidos=produtos_atuais["menos_vendidos"],
    )

    logger.info(
        f"Entrada montada: {int(pedidos.sum())} pedidos em {semanas} semanas, "
        f"{len(tabela_produtos)} produtos"
    )

    return AnalysisInput(historico=historico, dados_atual=dados_atual)
