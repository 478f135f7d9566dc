from typing import Optional, List, Dict
from pydantic import BaseModel, Field

from ticket_engine.config import settings


class TicketModel(BaseModel):
    id: int
    numbers: List[int]


class GenerateRequest(BaseModel):
    variant: str = settings.default_variant
    count: int = Field(10, ge=1, le=500)
    mandatory: List[int] = []
    forbidden: Optional[List[int]] = None
    history: Optional[List[List[int]]] = None
    constrained: bool = False
    overlap_penalty: Optional[float] = None
    per_number_cap: Optional[int] = None
    seed: Optional[int] = None


class GenerateResponse(BaseModel):
    variant: str
    mandatory: List[int]
    tickets: List[TicketModel]
    attempts: List[int]


class AllocateRequest(BaseModel):
    variant: str = "lotofacil_dual"
    seed: Optional[int] = None


class AllocateResponse(BaseModel):
    variant: str
    tickets: List[TicketModel]
    attempts: Dict[str, int]


class OptimizeRequest(BaseModel):
    variant: str = "lotofacil_dual"
    tickets: List[TicketModel]
    target: str
    max_passes: Optional[int] = Field(None, ge=0)
    seed: Optional[int] = None


class OptimizeResponse(BaseModel):
    focus_ticket_id: int
    final_hits: int
    passes_used: int
    tickets: List[TicketModel]


class CompareRequest(BaseModel):
    variant: str = settings.default_variant
    tickets: List[TicketModel]
    result: str
    seed: Optional[int] = None


class CompareResponse(BaseModel):
    result: List[int]
    hits: List[int]
    prize_buckets: Dict[int, int]
    total_prizes: float
    best_ticket_id: Optional[int]
    best_hits: int
    histogram: Dict[int, int]
    cost: Optional[float] = None
    profit: Optional[float] = None
    roi: Optional[float] = None


class RandomResultRequest(BaseModel):
    variant: str = settings.default_variant
    history: Optional[List[List[int]]] = None
    seed: Optional[int] = None


class RandomResultResponse(BaseModel):
    variant: str
    numbers: List[int]
