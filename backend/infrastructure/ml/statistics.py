"""
LEARNING NOTE: Primitivas estatísticas da análise inteligente.
Todas são totais: séries vazias, médias zero e séries de um ponto devolvem
um valor sentinela em vez de falhar. Os guards de divisão por zero ficam
TODOS aqui, os motores não repetem essas verificações.
"""

from typing import List, Sequence
import numpy as np
from sklearn.metrics import r2_score

from backend.core.constants import TREND_THRESHOLD, TrendStatus

def mean(valores: Sequence[float]) -> float:
    """Média aritmética; 0 para série vazia"""
    if len(valores) == 0:
        return 0.0
    # Ordenar fixa a ordem da soma: o resultado não depende da ordem de entrada
    return float(np.mean(np.sort(np.asarray(valores, dtype=float))))

def stddev(valores: Sequence[float]) -> float:
    """Desvio padrão populacional (divide por N); 0 para série vazia ou constante"""
    if len(valores) == 0:
        return 0.0
    arr = np.asarray(valores, dtype=float)
    # np.std deixa ruído de arredondamento em séries constantes (ex.: [0.1] * 3)
    if arr.max() == arr.min():
        return 0.0
    return float(np.std(arr))

def ema(valores: Sequence[float], janela: int = 3) -> List[float]:
    """
    Média móvel exponencial, dá mais peso aos períodos recentes.

    k = 2 / (janela + 1), semente ema[0] = valores[0].
    Quem chama precisa garantir que a série não está vazia.
    """
    if len(valores) == 0:
        raise ValueError("ema() precisa de pelo menos um valor")

    k = 2 / (janela + 1)
    resultado = [float(valores[0])]
    for valor in valores[1:]:
        resultado.append(valor * k + resultado[-1] * (1 - k))
    return resultado

def _sums(valores: Sequence[float]):
    y = np.asarray(valores, dtype=float)
    x = np.arange(len(y), dtype=float)
    return x, y, x.sum(), y.sum(), (x * y).sum(), (x * x).sum()

def linreg_slope(valores: Sequence[float]) -> float:
    """
    Inclinação da regressão linear (mínimos quadrados) contra o índice 0..n-1.

    slope = (nΣxy − ΣxΣy) / (nΣx² − (Σx)²); 0 para n < 2.
    """
    n = len(valores)
    if n < 2:
        return 0.0

    _, _, soma_x, soma_y, soma_xy, soma_x2 = _sums(valores)
    return float((n * soma_xy - soma_x * soma_y) / (n * soma_x2 - soma_x * soma_x))

def r2(valores: Sequence[float]) -> float:
    """Coeficiente de determinação da mesma regressão; 0 para n < 3, limitado a [0, 1]"""
    n = len(valores)
    if n < 3:
        return 0.0

    x, y, soma_x, soma_y, _, _ = _sums(valores)
    slope = linreg_slope(valores)
    intercept = (soma_y - slope * soma_x) / n
    y_pred = slope * x + intercept

    ss_total = float(((y - y.mean()) ** 2).sum())
    if ss_total == 0:
        # Série constante: a reta passa por todos os pontos
        valor = 1.0 - float(((y - y_pred) ** 2).sum())
    else:
        valor = float(r2_score(y, y_pred))

    return max(0.0, min(1.0, valor))

def pct_change(atual: float, anterior: float) -> float:
    """Variação percentual; 100 se o anterior é 0 e o atual positivo, 0 se ambos são 0"""
    if anterior == 0:
        return 100.0 if atual > 0 else 0.0
    return (atual - anterior) / anterior * 100

def classify_trend(slope: float, limiar: float = TREND_THRESHOLD) -> TrendStatus:
    if slope > limiar:
        return TrendStatus.SUBINDO
    if slope < -limiar:
        return TrendStatus.DESCENDO
    return TrendStatus.ESTAVEL

def coefficient_of_variation(valores: Sequence[float]) -> float:
    """stddev / mean; 0 quando a média é 0"""
    media = mean(valores)
    if media == 0:
        return 0.0
    return stddev(valores) / media

def safe_rate(parte: float, total: float) -> float:
    """parte / total × 100; 0 quando o total é 0"""
    if total == 0:
        return 0.0
    return parte / total * 100
