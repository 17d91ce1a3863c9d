"""
LEARNING NOTE: Este arquivo centraliza TODA a configuração.
Padrão: "Single Source of Truth" para configurações.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from functools import lru_cache

class Settings(BaseSettings):
    """
    LEARNING NOTE: Pydantic Settings valida automaticamente as variáveis de ambiente
    e converte para o tipo certo (int, float, bool, etc.)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        protected_namespaces=()
    )

    # API Settings
    api_version: str = "v1"
    debug_mode: bool = False
    port: int = 8000
    cors_origins: List[str] = ["http://localhost:5173"]

    # Google Cloud Settings
    gcp_project_id: Optional[str] = None

    # BigQuery Settings
    bigquery_dataset: str = "delivery_analytics"
    save_predictions_to_bq: bool = False

    # Vertex AI Settings
    vertex_ai_location: str = "us-central1"
    model_name: str = "gemini-2.5-flash"
    llm_temperature: float = 0.3
    llm_max_output_tokens: int = 800

    # Janela de análise
    history_weeks: int = 12
    top_products: int = 5
    product_history_limit: int = 10

@lru_cache()
def get_settings() -> Settings:
    """
    LEARNING NOTE: @lru_cache faz com que só exista uma instância (Singleton)
    Evita ler o .env várias vezes
    """
    return Settings()

# Instância global para importar fácil
settings = get_settings()
