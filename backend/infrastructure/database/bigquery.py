"""
LEARNING NOTE: Repository do warehouse de pedidos
Lê pedidos e carrinhos de uma loja e grava predições e alertas.
O client só é criado no primeiro uso (lazy) para não exigir credenciais
no import nem nos testes.
"""

from google.cloud import bigquery
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, timedelta, timezone
import pandas as pd
from backend.core.config import settings
from backend.core.constants import ALERT_SEVERITIES, PREDICTION_HORIZON
from backend.domain.models.analytics import Prediction, Problem
from backend.domain.models.orders import CartRecord, OrderItem, OrderRecord
import logging

logger = logging.getLogger(__name__)

class BigQueryRepository:
    """
    Repository para os dados de delivery no BigQuery
    """

    def __init__(self, client: Optional[bigquery.Client] = None):
        self._client = client
        self.dataset_id = settings.bigquery_dataset

    @property
    def client(self) -> bigquery.Client:
        if self._client is None:
            logger.info("Inicializando client do BigQuery...")
            self._client = bigquery.Client(project=settings.gcp_project_id)
        return self._client

    def _table(self, name: str) -> str:
        return f"{settings.gcp_project_id}.{self.dataset_id}.{name}"

    def _store_params(self, store_id: str, since: datetime) -> bigquery.QueryJobConfig:
        return bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter("store_id", "STRING", store_id),
                bigquery.ScalarQueryParameter("since", "TIMESTAMP", since),
            ]
        )

    def get_orders(self, store_id: str, since: datetime) -> List[OrderRecord]:
        """
        Pedidos da loja desde `since`, com os itens e o nome do produto
        (uma linha por item, agrupadas aqui por pedido)
        """
        query = f"""
        SELECT
            o.id AS order_id,
            o.created_at,
            o.status,
            p.name AS product_name,
            oi.quantity
        FROM
            `{self._table("orders")}` o
        LEFT JOIN
            `{self._table("order_items")}` oi ON oi.order_id = o.id
        LEFT JOIN
            `{self._table("products")}` p ON p.id = oi.product_id
        WHERE
            o.restaurant_id = @store_id
            AND o.created_at >= @since
        ORDER BY
            o.created_at
        """

        try:
            df = self.client.query(query, job_config=self._store_params(store_id, since)).to_dataframe()
        except Exception as e:
            logger.error(f"Erro obtendo pedidos da loja {store_id}: {e}")
            raise

        orders: Dict[Any, OrderRecord] = {}
        for row in df.to_dict("records"):
            order = orders.get(row["order_id"])
            if order is None:
                status = row["status"] if pd.notna(row["status"]) else "pending"
                order = OrderRecord(created_at=row["created_at"], status=status)
                orders[row["order_id"]] = order

            # LEFT JOIN: pedido sem itens vem com quantity nulo
            if pd.notna(row["quantity"]):
                nome = row["product_name"] if pd.notna(row["product_name"]) else None
                order.items.append(OrderItem(product_name=nome, quantity=row["quantity"]))

        logger.info(f"Recuperados {len(orders)} pedidos da loja {store_id}")
        return list(orders.values())

    def get_carts(self, store_id: str, since: datetime) -> List[CartRecord]:
        query = f"""
        SELECT
            created_at,
            is_abandoned
        FROM
            `{self._table("carts")}`
        WHERE
            restaurant_id = @store_id
            AND created_at >= @since
        """

        try:
            df = self.client.query(query, job_config=self._store_params(store_id, since)).to_dataframe()
        except Exception as e:
            logger.error(f"Erro obtendo carrinhos da loja {store_id}: {e}")
            raise

        carts = [
            CartRecord(
                created_at=row["created_at"],
                is_abandoned=bool(row["is_abandoned"]) if pd.notna(row["is_abandoned"]) else False
            )
            for row in df.to_dict("records")
        ]
        logger.info(f"Recuperados {len(carts)} carrinhos da loja {store_id}")
        return carts

    @staticmethod
    def build_prediction_rows(
        store_id: str,
        predicoes: Sequence[Prediction],
        reference_date: datetime
    ) -> List[Dict[str, Any]]:
        """Uma linha por métrica, datada 7 períodos à frente"""
        prediction_date = (reference_date + timedelta(days=PREDICTION_HORIZON)).date().isoformat()

        return [
            {
                "restaurant_id": store_id,
                "prediction_type": p.tipo.value,
                "predicted_value": p.valor_previsto,
                "confidence_score": p.confianca,
                "prediction_date": prediction_date,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            for p in predicoes
        ]

    @staticmethod
    def build_alert_rows(store_id: str, problemas: Sequence[Problem]) -> List[Dict[str, Any]]:
        """Só problemas de gravidade alta ou crítica viram alerta"""
        return [
            {
                "restaurant_id": store_id,
                "alert_type": p.tipo,
                "severity": p.gravidade.value,
                "title": p.tipo.replace("_", " ").capitalize(),
                "message": p.mensagem,
                "is_read": False,
                "is_resolved": False,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            for p in problemas
            if p.gravidade in ALERT_SEVERITIES
        ]

    def _insert(self, table_name: str, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0

        table_id = self._table(table_name)
        try:
            errors = self.client.insert_rows_json(table_id, rows)
        except Exception as e:
            logger.error(f"Erro gravando em {table_id}: {e}")
            # Falha de gravação não derruba a análise
            return 0

        if errors:
            logger.error(f"Erro inserindo linhas em {table_id}: {errors}")
            return 0

        logger.info(f"Gravadas {len(rows)} linhas em {table_id}")
        return len(rows)

    def save_predictions(
        self,
        store_id: str,
        predicoes: Sequence[Prediction],
        reference_date: datetime
    ) -> int:
        rows = self.build_prediction_rows(store_id, predicoes, reference_date)
        return self._insert("analytics_predictions", rows)

    def save_alerts(self, store_id: str, problemas: Sequence[Problem]) -> int:
        rows = self.build_alert_rows(store_id, problemas)
        return self._insert("analytics_alerts", rows)
