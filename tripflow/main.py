"""
FastAPI application entry point.

Assembles the FastAPI app with the planner router.
"""

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tripflow.graph.config import config_from_env
from tripflow.graph.orchestrator_api import router as planner_router
from tripflow.shared.logging.config import setup_logging


# ============================================================================
# Logging configuration (single source of truth for the service)
# ============================================================================
LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s"
)

_config = config_from_env()

if _config.json_logs:
    setup_logging(
        level=getattr(logging, _config.log_level.upper(), logging.INFO),
        log_file=_config.log_file,
    )
else:
    logging.basicConfig(
        level=getattr(logging, _config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,  # Override any prior basicConfig calls
    )

# Quiet noisy third-party loggers
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


app = FastAPI(
    title="Tripflow",
    description="Conversational trip-planning engine built with LangGraph",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(planner_router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Tripflow",
        "version": "0.1.0",
        "components": {
            "orchestrator": {
                "status": "active",
                "endpoints": "/api/planner",
            },
        },
    }


@app.get("/health")
async def health():
    """Global health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
