import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ticket_engine.config import settings
from ticket_engine.api import health, variants, tickets

logger.remove()
logger.add(sys.stderr, level=settings.log_level)

app = FastAPI(
    title="Lotto Ticket Engine API",
    version=settings.code_version,
    description="Weighted, quota-constrained ticket generation, exact-repeat allocation and swap refinement",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(variants.router)
app.include_router(tickets.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
