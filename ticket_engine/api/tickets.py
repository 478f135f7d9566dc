from fastapi import APIRouter, HTTPException

from ticket_engine.engine.variants import VARIANTS
from ticket_engine.errors import (
    AllocationInfeasible,
    AssemblyExhausted,
    ConfigurationError,
    ValidationError,
)
from ticket_engine.schemas.tickets import (
    AllocateRequest,
    AllocateResponse,
    CompareRequest,
    CompareResponse,
    GenerateRequest,
    GenerateResponse,
    OptimizeRequest,
    OptimizeResponse,
    RandomResultRequest,
    RandomResultResponse,
)
from ticket_engine.services.generation_service import GenerationService

router = APIRouter(prefix="/tickets", tags=["tickets"])


def _check_variant(name: str):
    """Raise 404 for unknown variants before any work is done"""
    if name not in VARIANTS:
        raise HTTPException(status_code=404, detail=f"Variant {name} not found")


def _run(call, request):
    _check_variant(request.variant)
    try:
        return call(request)
    except (ValidationError, ConfigurationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (AssemblyExhausted, AllocationInfeasible) as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/generate", response_model=GenerateResponse)
async def generate_tickets(request: GenerateRequest):
    return _run(GenerationService().generate, request)


@router.post("/allocate", response_model=AllocateResponse)
async def allocate_tickets(request: AllocateRequest):
    return _run(GenerationService().allocate, request)


@router.post("/optimize", response_model=OptimizeResponse)
async def optimize_tickets(request: OptimizeRequest):
    return _run(GenerationService().optimize, request)


@router.post("/compare", response_model=CompareResponse)
async def compare_tickets(request: CompareRequest):
    return _run(GenerationService().compare, request)


@router.post("/random-result", response_model=RandomResultResponse)
async def random_result(request: RandomResultRequest):
    return _run(GenerationService().random_result, request)
