from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from loguru import logger

from ai_gateway.api.router import api_router
from ai_gateway.core.errors import install_error_handlers
from ai_gateway.core.flags import describe_flags
from ai_gateway.core.middleware import ApiKeyAuthMiddleware, PerformanceLogMiddleware, RateLimitMiddleware, RequestContextMiddleware
from ai_gateway.core.settings import settings
from ai_gateway.utils.logger import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if not settings.OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY not set. Model calls will fail.")
        logger.info("DR.TRADER IA gateway ready (env={env}, model={model})", env=settings.APP_ENV, model=settings.OPENAI_MODEL)
        yield

    app = FastAPI(
        title="DR.TRADER IA Gateway",
        version="0.4.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Request IDs + optional auth + optional rate limiting
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(ApiKeyAuthMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(PerformanceLogMiddleware)

    # CORS: permissive by default so the web client can post from any origin.
    # Added last so it is outermost: 401/429 bodies also carry CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    app.include_router(api_router)

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "DR.TRADER IA backend OK"

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "ok",
            "env": settings.APP_ENV,
            "model": settings.OPENAI_MODEL,
            "model_configured": bool(settings.OPENAI_API_KEY),
            "features": {name: f["enabled"] for name, f in describe_flags().items()},
        }

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("ai_gateway.main:app", host=settings.HOST, port=int(settings.PORT))
