import logging

from fastapi import FastAPI

from lifetrack.config import settings
from lifetrack.engine.router import router as engine_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="LifeTrack Goal Engine", version="0.1.0")
app.include_router(engine_router)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "engine": {
            "metrics": "/engine/metrics",
            "metrics_catalog": "/engine/metrics/catalog",
            "trends": "/engine/trends/{metric}",
            "projections": "/engine/projections",
            "trajectory": "/engine/trajectory",
            "dashboard": "/engine/dashboard",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
