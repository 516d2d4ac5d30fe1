"""
accessbot/main.py

Purpose: Application entry point (webhook mode)

- Initializes FastAPI app
- Loads configuration and logging
- Registers the Telegram webhook route
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import time

from accessbot.core.config import settings, validate_settings, Settings
from accessbot.core.errors import add_exception_handlers
from accessbot.core.logging import setup_logging, get_logger
from accessbot.flow.context import BotContext
from accessbot.flow.dispatcher import Dispatcher
from accessbot.services.telegram_service import TelegramService
from accessbot.api import webhook

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


def create_app(config: Optional[Settings] = None, bot: Optional[TelegramService] = None) -> FastAPI:
    """
    Builds the FastAPI application.

    Args:
        config: Settings to use (defaults to the environment)
        bot: Pre-built Telegram client (tests inject a mock)
    """
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Handles startup and shutdown events.
        """
        logger.info("🚀 Starting access bot...")

        try:
            logger.info("Validating configuration...")
            validate_settings(config)
            logger.info("✅ Configuration validated")

            telegram = bot or TelegramService(config)
            app.state.dispatcher = Dispatcher(BotContext.from_settings(config, telegram))

            if config.WEBHOOK_URL:
                await telegram.set_webhook(config.WEBHOOK_URL, secret_token=config.WEBHOOK_SECRET)
                logger.info(f"✅ Webhook registered: {config.WEBHOOK_URL}")

            logger.info("🎉 Access bot started successfully!")
            logger.info(f"Environment: {config.ENVIRONMENT}")

        except Exception as e:
            logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
            raise

        yield  # Application runs here

        logger.info("🛑 Shutting down access bot...")

        try:
            await app.state.dispatcher.ctx.bot.close()
            logger.info("👋 Access bot shut down successfully")
        except Exception as e:
            logger.error(f"Error during shutdown: {str(e)}", exc_info=True)

    app = FastAPI(
        title="Access Bot - Channel Access Requests",
        description="Telegram questionnaire bot that routes access requests to a reviewer",
        version=VERSION,
        lifespan=lifespan,
        debug=config.DEBUG,
        docs_url="/docs" if config.is_development else None,
        redoc_url="/redoc" if config.is_development else None,
    )

    add_exception_handlers(app, config)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to all responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # Telegram expects webhook answers within a few seconds
        if process_time > 5.0:
            logger.warning(f"Slow request detected: {request.method} {request.url.path} ({process_time:.2f}s)")

        return response

    app.include_router(webhook.router, prefix=config.API_PREFIX, tags=["Webhook"])

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - basic info."""
        return {
            "name": "Access Bot API",
            "version": VERSION,
            "status": "running",
            "environment": config.ENVIRONMENT
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint with in-memory session count.
        """
        dispatcher = getattr(request.app.state, "dispatcher", None)
        if dispatcher is None:
            return JSONResponse(status_code=503, content={"status": "not_ready"})

        return {
            "status": "healthy",
            "timestamp": time.time(),
            "environment": config.ENVIRONMENT,
            "version": VERSION,
            "active_sessions": len(dispatcher.store)
        }

    @app.get("/live", tags=["Health"])
    async def liveness_check():
        """
        Liveness probe - indicates if app is alive.
        """
        return {"status": "alive"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "accessbot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
