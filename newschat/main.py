"""
NewsChat Backend - FastAPI Application
Retrieval-augmented chat over an RSS news feed
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newschat.config import settings
from newschat.api.routes import chat, session, embeddings
from newschat.core.vector_store import vector_store
from newschat.db.redis_client import session_store
from newschat.db.qdrant_client import qdrant_manager
from newschat.utils.logger import get_logger


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for startup and shutdown events."""
    # Startup - graceful connection, components reconnect lazily on first use
    try:
        await session_store.connect()
    except Exception as e:
        logger.warning("Redis not available: %s", e)

    try:
        await qdrant_manager.connect()
        await vector_store.initialize()
    except Exception as e:
        logger.warning("Vector store not ready, will initialize on first query: %s", e)

    logger.info("NewsChat API started successfully")

    yield

    # Shutdown
    await session_store.disconnect()
    await qdrant_manager.disconnect()
    logger.info("NewsChat API shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title="NewsChat API",
    description="Chat with the latest news using retrieval-augmented generation",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(chat.router, prefix="/api", tags=["Chat"])
app.include_router(session.router, prefix="/api/session", tags=["Session"])
app.include_router(embeddings.router, prefix="/api", tags=["Embeddings"])


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "NewsChat API",
        "version": "1.0.0"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check with service status."""
    redis_status = await session_store.ping()
    qdrant_status = await qdrant_manager.ping()

    return {
        "status": "healthy" if (redis_status and qdrant_status) else "degraded",
        "services": {
            "redis": "connected" if redis_status else "disconnected",
            "qdrant": "connected" if qdrant_status else "disconnected"
        }
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    """Malformed request bodies share the error shape of every endpoint."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) if settings.DEBUG else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("newschat.main:app", host=settings.HOST, port=settings.PORT)
