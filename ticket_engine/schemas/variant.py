from typing import Optional, List, Dict, Tuple
from pydantic import BaseModel


class BucketResponse(BaseModel):
    name: str
    min: int
    max: int


class AllocationPlanResponse(BaseModel):
    ticket_count: int
    per_ticket: Dict[str, int]
    repeat_targets: Dict[str, int]


class VariantResponse(BaseModel):
    name: str
    pool_min: int
    pool_max: int
    ticket_size: int
    buckets: List[BucketResponse]
    balancing_bucket: str
    default_quota: Dict[str, int]
    constrained_quota_bounds: Dict[str, Tuple[int, int]]
    forbidden: List[int]
    prize_table: Dict[int, float]
    ticket_cost: Optional[float] = None
    allocation: Optional[AllocationPlanResponse] = None
