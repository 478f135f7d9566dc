from fastapi import APIRouter
from ticket_engine.config import settings
from ticket_engine.engine.variants import VARIANTS

router = APIRouter()


@router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "version": settings.code_version,
        "default_variant": settings.default_variant,
        "variants": list(VARIANTS),
    }
