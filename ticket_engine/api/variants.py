from typing import List
from fastapi import APIRouter, HTTPException

from ticket_engine.engine.variants import VARIANTS
from ticket_engine.schemas.variant import VariantResponse
from ticket_engine.services.generation_service import GenerationService

router = APIRouter(prefix="/variants", tags=["variants"])


@router.get("", response_model=List[VariantResponse])
async def list_variants():
    service = GenerationService()
    return [service.describe_variant(name) for name in VARIANTS]


@router.get("/{name}", response_model=VariantResponse)
async def get_variant(name: str):
    if name not in VARIANTS:
        raise HTTPException(status_code=404, detail=f"Variant {name} not found")
    return GenerationService().describe_variant(name)
