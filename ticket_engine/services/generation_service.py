from collections import Counter
from typing import List, Optional

import numpy as np

from ticket_engine.config import settings
from ticket_engine.engine.generator import TicketGenerator
from ticket_engine.engine.results import compare_against_result, parse_result_string
from ticket_engine.engine.tickets import Ticket
from ticket_engine.engine.variants import GameVariant, get_variant
from ticket_engine.errors import ValidationError
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
    TicketModel,
)
from ticket_engine.schemas.variant import AllocationPlanResponse, BucketResponse, VariantResponse


def _to_models(tickets):
    return [TicketModel(id=t.id, numbers=list(t.numbers)) for t in tickets]


def _to_tickets(variant: GameVariant, models) -> List[Ticket]:
    """Validate submitted tickets; nothing is repaired, every defect is a ValidationError."""
    tickets = []
    seen_ids = set()
    for model in models:
        if model.id in seen_ids:
            raise ValidationError(f"Ticket id {model.id} is used more than once")
        seen_ids.add(model.id)

        outside = [n for n in model.numbers if not variant.in_pool(n)]
        if outside:
            raise ValidationError(f"Ticket {model.id} holds numbers outside the pool: {outside}")
        duplicates = sorted(n for n, c in Counter(model.numbers).items() if c > 1)
        if duplicates:
            raise ValidationError(f"Ticket {model.id} repeats numbers: {duplicates}")
        if len(model.numbers) != variant.ticket_size:
            raise ValidationError(
                f"Ticket {model.id} has {len(model.numbers)} numbers, expected {variant.ticket_size}"
            )
        tickets.append(Ticket(id=model.id, numbers=sorted(model.numbers)))
    return tickets


class GenerationService:
    def _generator(self, variant: GameVariant, seed: Optional[int], forbidden=None) -> TicketGenerator:
        rng = np.random.default_rng(settings.random_seed if seed is None else seed)
        return TicketGenerator(variant, rng=rng, forbidden=forbidden)

    def describe_variant(self, name: str) -> VariantResponse:
        variant = get_variant(name)
        allocation = None
        if variant.allocation is not None:
            allocation = AllocationPlanResponse(
                ticket_count=variant.allocation.ticket_count,
                per_ticket=variant.allocation.per_ticket,
                repeat_targets=variant.allocation.repeat_targets,
            )
        return VariantResponse(
            name=variant.name,
            pool_min=variant.pool_min,
            pool_max=variant.pool_max,
            ticket_size=variant.ticket_size,
            buckets=[BucketResponse(name=b.name, min=b.low, max=b.high) for b in variant.buckets],
            balancing_bucket=variant.balancing_bucket,
            default_quota=variant.default_quota,
            constrained_quota_bounds=variant.constrained_quota_bounds,
            forbidden=sorted(variant.forbidden),
            prize_table=variant.prize_table,
            ticket_cost=variant.ticket_cost,
            allocation=allocation,
        )

    def generate(self, request: GenerateRequest) -> GenerateResponse:
        variant = get_variant(request.variant)
        generator = self._generator(variant, request.seed, forbidden=request.forbidden)
        batch = generator.generate_batch(
            total=request.count,
            mandatory=generator.sanitize_mandatory(request.mandatory),
            history=request.history,
            constrained=request.constrained,
            overlap_penalty=request.overlap_penalty,
            per_number_cap=request.per_number_cap,
        )
        return GenerateResponse(
            variant=variant.name,
            mandatory=batch.mandatory,
            tickets=_to_models(batch.tickets),
            attempts=batch.attempts,
        )

    def allocate(self, request: AllocateRequest) -> AllocateResponse:
        variant = get_variant(request.variant)
        result = self._generator(variant, request.seed).allocate()
        return AllocateResponse(variant=variant.name, tickets=_to_models(result.tickets), attempts=result.attempts)

    def optimize(self, request: OptimizeRequest) -> OptimizeResponse:
        variant = get_variant(request.variant)
        target = parse_result_string(request.target, variant.draw_size, variant.pool_min, variant.pool_max)
        tickets = _to_tickets(variant, request.tickets)
        result = self._generator(variant, request.seed).optimize(tickets, target, max_passes=request.max_passes)
        return OptimizeResponse(
            focus_ticket_id=result.focus_ticket_id,
            final_hits=result.final_hits,
            passes_used=result.passes_used,
            tickets=_to_models(tickets),
        )

    def compare(self, request: CompareRequest) -> CompareResponse:
        variant = get_variant(request.variant)
        result = parse_result_string(request.result, variant.draw_size, variant.pool_min, variant.pool_max)
        tickets = _to_tickets(variant, request.tickets)
        report = compare_against_result(tickets, result, variant.prize_table, variant.ticket_cost)
        return CompareResponse(
            result=report.result,
            hits=report.hits,
            prize_buckets=report.prize_buckets,
            total_prizes=report.total_prizes,
            best_ticket_id=report.best_ticket_id,
            best_hits=report.best_hits,
            histogram=report.histogram,
            cost=report.cost,
            profit=report.profit,
            roi=report.roi,
        )

    def random_result(self, request: RandomResultRequest) -> RandomResultResponse:
        variant = get_variant(request.variant)
        numbers = self._generator(variant, request.seed).random_result(request.history)
        return RandomResultResponse(variant=variant.name, numbers=numbers)
