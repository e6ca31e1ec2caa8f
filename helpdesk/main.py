"""
Helpdesk Auto-Resolution - FastAPI Backend
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.config import get_settings
from helpdesk.dependencies import get_workflow
from helpdesk.middleware.logging_middleware import LoggingMiddleware
from helpdesk.routes import ai, health
from helpdesk.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Only shut down a workflow that was actually built
    if get_workflow.cache_info().currsize:
        await get_workflow().shutdown()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Helpdesk Auto-Resolution",
    description="Confidence-gated AI ticket resolution with LangGraph orchestration",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware runs bottom-up: CORS first, then logging
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(ai.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"message": "Helpdesk Auto-Resolution API", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
