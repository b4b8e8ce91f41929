"""
BloomIQ learning backend: AI relay plus topic/roadmap progress API
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging

from bloom_host.core.config import settings
from bloom_host.database.db import init_db
from bloom_host.routers.ai import ALLOWED_HEADERS, RELAY_PATH, ai_router
from bloom_host.routers.learning import learning_router
from bloom_host.services.gateway import GatewayClient

# ============= LOGGING CONFIG =============
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logging.getLogger("uvicorn").setLevel(logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)
# ============= END LOGGING CONFIG =============


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Initializing BloomIQ backend...")

    try:
        await init_db()
        app.state.gateway = GatewayClient.from_settings(settings)
        if not settings.LLM_API_KEY:
            logger.warning("⚠️  LLM_API_KEY is not configured; AI actions will fail")
        logger.info(f"✅ Relaying to {settings.LLM_GATEWAY_URL} ({settings.LLM_MODEL})")
    except Exception as e:
        logger.error(f"❌ Failed to initialize BloomIQ backend: {e}")
        raise

    yield

    logger.info("⏹️  Shutting down BloomIQ backend...")
    await app.state.gateway.aclose()


app = FastAPI(
    title="BloomIQ Learning API",
    description="Assessments, personalized roadmaps, quizzes and an AI mentor",
    version="1.0.0",
    lifespan=lifespan,
)


class LearningRoutesCORSMiddleware(CORSMiddleware):
    """CORSMiddleware for every route except the relay, which sets its own CORS headers."""

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["path"] == RELAY_PATH:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


app.add_middleware(
    LearningRoutesCORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=ALLOWED_HEADERS,
)


# ============= INCLUDE ROUTERS =============
app.include_router(ai_router)
app.include_router(learning_router)
# ============= END ROUTERS =============


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "gateway_configured": bool(settings.LLM_API_KEY),
    }


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"🌐 Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"📤 Response: {response.status_code}")
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
