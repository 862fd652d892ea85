"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nightfall.api.api import api_router
from nightfall.core.config import settings
from nightfall.core.exceptions import AppException
from nightfall.services.log_manager import init_game_logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    background_tasks: list[asyncio.Task] = []
    await _startup(background_tasks)
    yield
    await _shutdown(background_tasks)


app = FastAPI(
    title="Nightfall Game API",
    description="Moderator engine for a nine-seat Werewolf table",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Browsers reject credentials with a wildcard origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
)

app.include_router(api_router)


# ── Global Exception Handlers ──

@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Convert AppException subclasses to structured JSON responses."""
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all handler to prevent stack trace leaking in production."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred." if not settings.DEBUG else str(exc),
            "details": {},
        },
    )


async def _startup(background_tasks: list[asyncio.Task]):
    """Log startup information and start background tasks."""
    logger.info("Nightfall Game API starting up...")

    init_game_logging()

    if settings.llm_enabled:
        logger.info(f"LLM decisions enabled: model={settings.LLM_MODEL}")
    else:
        logger.warning(
            "No LLM API key configured or mock mode enabled. "
            "Computer players will use fallback decisions."
        )

    if settings.STRICT_INVARIANTS:
        logger.warning("STRICT_INVARIANTS is on: rule violations will raise")

    background_tasks.append(asyncio.create_task(_periodic_game_store_cleanup()))


async def _periodic_game_store_cleanup():
    """Background task to periodically clean up expired games.

    Complements the on-demand cleanup in create_game().
    """
    from nightfall.models.game import game_store

    while True:
        try:
            await asyncio.sleep(1800)

            cleaned = game_store._cleanup_old_games()
            if cleaned > 0:
                logger.info(
                    f"Game store cleanup: {cleaned} expired game(s) removed. "
                    f"Active games: {game_store.game_count}"
                )
            else:
                logger.debug(f"Game store cleanup: no expired games. Active: {game_store.game_count}")

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in game store cleanup task: {e}")
            await asyncio.sleep(60)


async def _shutdown(background_tasks: list[asyncio.Task]):
    """Cancel background tasks and close the LLM client."""
    logger.info("Nightfall Game API shutting down...")

    if background_tasks:
        for task in background_tasks:
            task.cancel()
        await asyncio.gather(*background_tasks, return_exceptions=True)

    from nightfall.services.game_engine import game_engine
    close = getattr(game_engine.llm, "close", None)
    if close is not None:
        try:
            await close()
            logger.info("LLM client closed successfully")
        except Exception as e:
            logger.warning(f"Error closing LLM client: {e}")

    logger.info("Shutdown complete")


@app.get("/")
def root():
    """Root endpoint - health check."""
    return {
        "status": "ok",
        "message": "Nightfall Game API is running",
        "version": "1.0.0",
        "llm_mode": "real" if settings.llm_enabled else "mock",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("nightfall.main:app", host="0.0.0.0", port=8000, reload=True)
