"""
LEARNING NOTE: Integração com Vertex AI para o assistente de analytics
Separado para trocar fácil de provedor (OpenAI, Anthropic, etc.)
"""

from vertexai.generative_models import GenerativeModel, GenerationConfig
import vertexai
from typing import Any, Dict, Optional, Sequence
import json
import logging
from backend.core.config import settings
from backend.core.constants import MESSAGES, Gravidade
from backend.core.exceptions import VertexAIException
from backend.domain.models.analytics import AnalysisOutput, Problem

logger = logging.getLogger(__name__)

_SEVERITY_ORDER = [Gravidade.CRITICA, Gravidade.ALTA, Gravidade.MEDIA, Gravidade.BAIXA]

ANALYTICS_SYSTEM_PROMPT = """Você é um especialista em análise de dados e inteligência de negócios para restaurantes e delivery.

Seu papel é analisar métricas operacionais e fornecer insights acionáveis, claros e práticos.

DADOS ATUAIS DO RESTAURANTE:
{analytics_data}

REGRAS:
1. Justifique cada sugestão com os números disponíveis.
2. Cite números específicos e compare períodos e produtos.
3. Quando possível, quantifique o impacto financeiro.
4. Estruture a resposta em: Análise dos Dados, Insight, Ação Recomendada, Impacto Esperado.
5. Responda em português brasileiro, de forma direta.
6. Se não houver dados suficientes, diga isso e sugira o que monitorar.
"""

def prioritize_problems(problemas: Sequence[Problem]) -> str:
    """Tipos de problema do mais grave ao menos grave"""
    ordenados = sorted(problemas, key=lambda p: _SEVERITY_ORDER.index(p.gravidade))
    return ", ".join(p.tipo for p in ordenados) or "nenhum"

class VertexAIClient:
    """
    Cliente do Gemini no Vertex AI

    LEARNING NOTE: Facade Pattern - simplifica uma API complexa
    """

    def __init__(self):
        """
        Inicializa a configuração mas NÃO a conexão
        LAZY LOADING: a conexão real é feita no primeiro uso
        """
        self._initialized = False
        self._model: Optional[GenerativeModel] = None
        self._generation_config: Optional[GenerationConfig] = None

    def _ensure_initialized(self):
        if self._initialized:
            return

        logger.info("Inicializando conexão com Vertex AI...")
        try:
            vertexai.init(
                project=settings.gcp_project_id,
                location=settings.vertex_ai_location
            )
            self._model = GenerativeModel(settings.model_name)
            self._generation_config = GenerationConfig(
                temperature=settings.llm_temperature,
                max_output_tokens=settings.llm_max_output_tokens,
                top_p=0.8,
                top_k=40
            )
            self._initialized = True
            logger.info("Vertex AI conectado")

        except Exception as e:
            logger.error(f"Erro conectando com Vertex AI: {str(e)}")
            raise VertexAIException(f"Failed to initialize Vertex AI: {str(e)}")

    @property
    def model(self) -> GenerativeModel:
        self._ensure_initialized()
        return self._model

    @property
    def generation_config(self) -> GenerationConfig:
        self._ensure_initialized()
        return self._generation_config

    async def chat(self, message: str, analytics_data: Dict[str, Any]) -> str:
        """
        Assistente de analytics: responde à pergunta do dono do restaurante
        usando os dados atuais como contexto
        """
        system_prompt = ANALYTICS_SYSTEM_PROMPT.format(
            analytics_data=json.dumps(analytics_data, indent=2, ensure_ascii=False, default=str)
        )

        try:
            response = await self.model.generate_content_async(
                [system_prompt, message],
                generation_config=self.generation_config
            )
            return response.text

        except VertexAIException:
            raise
        except Exception as e:
            logger.error(f"Erro no chat de analytics: {str(e)}")
            raise VertexAIException(str(e))

    async def explain_analysis(self, analysis: AnalysisOutput) -> str:
        """
        Resumo executivo da análise (máximo 5 linhas)
        Sem LLM disponível, devolve um resumo determinístico
        """
        prompt = f"""
        Você é um consultor de restaurantes. Resuma em no máximo 5 linhas, em português,
        a análise abaixo e diga qual ação priorizar esta semana.

        Problemas: {json.dumps([p.model_dump(mode="json") for p in analysis.problemas_detectados], ensure_ascii=False)}
        Sugestões: {json.dumps(analysis.sugestoes_personalizadas, ensure_ascii=False)}
        Predições: {json.dumps([p.model_dump(mode="json") for p in analysis.predicoes], ensure_ascii=False)}
        """

        try:
            response = await self.model.generate_content_async(
                prompt,
                generation_config=self.generation_config
            )
            return response.text

        except Exception as e:
            logger.error(f"Erro gerando explicação: {str(e)}")
            return MESSAGES["llm_fallback"].format(
                problemas=len(analysis.problemas_detectados),
                prioridade=prioritize_problems(analysis.problemas_detectados)
            )
