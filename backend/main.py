"""
LEARNING NOTE: Entry point da aplicação
Aqui se configura todo o FastAPI
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time
from contextlib import asynccontextmanager
from backend.core.config import settings
from backend.api.v1.endpoints import analytics

# Configurar logging
logging.basicConfig(
    level=logging.INFO if not settings.debug_mode else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Delivery Analytics API")
    logger.info(f"Debug mode: {settings.debug_mode}")
    logger.info(f"GCP Project: {settings.gcp_project_id}")

    yield

    # Shutdown
    logger.info("Shutting down Delivery Analytics API")

def create_application() -> FastAPI:
    app = FastAPI(
        title="Delivery Analytics API",
        description="Análise inteligente de pedidos, cancelamentos, abandono e conversão",
        version=settings.api_version,
        lifespan=lifespan
    )

    # LEARNING NOTE: CORS para o dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log de todas as requests"""
        start_time = time.time()
        logger.info(f"Request: {request.method} {request.url.path}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(f"Response: {response.status_code} - Time: {process_time:.3f}s")
        response.headers["X-Process-Time"] = str(process_time)

        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Trata exceções não capturadas"""
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": str(exc) if settings.debug_mode else "An error occurred"
            }
        )

    app.include_router(
        analytics.router,
        prefix=f"/api/{settings.api_version}"
    )

    @app.get("/")
    async def root():
        """Health check básico"""
        return {
            "service": "Delivery Analytics API",
            "version": settings.api_version,
            "status": "operational"
        }

    @app.get("/api/v1/health")
    async def health_check():
        """
        Health check detalhado

        LEARNING NOTE: Importante para Kubernetes/Cloud Run
        """
        return {
            "status": "healthy",
            "version": settings.api_version,
            "checks": {
                "api": "operational",
                "bigquery": "configured" if settings.gcp_project_id else "not_configured",
                "vertex_ai": "configured" if settings.gcp_project_id else "not_configured",
            }
        }

    return app

app = create_application()

if __name__ == "__main__":
    import uvicorn

    # LEARNING NOTE: Só para desenvolvimento local
    # Em produção use: uvicorn backend.main:app
    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug_mode,
        log_level="info" if not settings.debug_mode else "debug"
    )
