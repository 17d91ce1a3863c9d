"""
LEARNING NOTE: Registros brutos de pedidos e carrinhos, como vêm do warehouse.
São agregados em semanas pelo preprocessing antes da análise.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, NonNegativeFloat

class OrderItem(BaseModel):
    product_name: Optional[str] = Field(None, description="Nome do produto")
    quantity: NonNegativeFloat = Field(1, description="Quantidade vendida")

class OrderRecord(BaseModel):
    created_at: datetime
    status: str = Field("pending", description="Status do pedido (cancelled, delivered, ...)")
    items: List[OrderItem] = Field(default_factory=list)

class CartRecord(BaseModel):
    created_at: datetime
    is_abandoned: bool = False
