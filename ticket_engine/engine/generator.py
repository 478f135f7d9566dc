from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np
from loguru import logger

from ticket_engine.config import settings
from ticket_engine.engine import History
from ticket_engine.engine.batch_allocator import AllocationResult, BatchAllocator
from ticket_engine.engine.cooccurrence import compute_boosts
from ticket_engine.engine.local_optimizer import LocalOptimizer, OptimizationResult
from ticket_engine.engine.quota import QuotaPolicy
from ticket_engine.engine.ticket_builder import TicketBuilder
from ticket_engine.engine.tickets import BatchState, Ticket
from ticket_engine.engine.variants import GameVariant
from ticket_engine.engine.weights import compute_weights
from ticket_engine.errors import AssemblyExhausted, ConfigurationError


@dataclass
class GeneratedBatch:
    tickets: List[Ticket]
    mandatory: List[int]
    attempts: List[int] = field(default_factory=list)


class TicketGenerator:
    """
    Entry point tying the models, quota policy and builder together for one
    game variant. Each call creates its own BatchState, so calls never leak
    usage counts or signatures into each other.
    """

    def __init__(
        self,
        variant: GameVariant,
        rng: Optional[np.random.Generator] = None,
        forbidden: Optional[Iterable[int]] = None,
        max_ticket_attempts: Optional[int] = None,
        max_allocation_attempts: Optional[int] = None,
        quota_sampling_attempts: Optional[int] = None,
        over_cap_penalty: Optional[float] = None,
    ):
        self.variant = variant
        self.rng = rng if rng is not None else np.random.default_rng(settings.random_seed)
        self.forbidden = frozenset(variant.forbidden if forbidden is None else forbidden)
        self.max_ticket_attempts = settings.max_ticket_attempts if max_ticket_attempts is None else max_ticket_attempts
        self.max_allocation_attempts = (
            settings.max_allocation_attempts if max_allocation_attempts is None else max_allocation_attempts
        )
        self.quota_sampling_attempts = (
            settings.quota_sampling_attempts if quota_sampling_attempts is None else quota_sampling_attempts
        )
        self.over_cap_penalty = settings.over_cap_penalty if over_cap_penalty is None else over_cap_penalty

    def sanitize_mandatory(self, raw: Iterable[int]) -> List[int]:
        """Dedupe, drop out-of-pool and forbidden numbers, truncate to ticket size."""
        cleaned = []
        removed = []
        for num in raw:
            num = int(num)
            if not self.variant.in_pool(num) or num in cleaned:
                continue
            if num in self.forbidden:
                removed.append(num)
                continue
            cleaned.append(num)
        if removed:
            logger.warning(f"Mandatory list contained forbidden numbers, removed: {removed}")
        return cleaned[:self.variant.ticket_size]

    def generate_batch(
        self,
        total: int = 10,
        mandatory: Iterable[int] = (),
        history: History = None,
        constrained: bool = False,
        overlap_penalty: Optional[float] = None,
        per_number_cap: Optional[int] = None,
    ) -> GeneratedBatch:
        """
        Build `total` pairwise-distinct tickets.

        Args:
            total: Number of tickets
            mandatory: Numbers every ticket must contain
            history: Past draws, oldest first
            constrained: Draw a randomized quota per ticket instead of one
                history-derived quota, fitted around the mandatory numbers,
                for the whole batch
            overlap_penalty: Override of the variant's overlap penalty
            per_number_cap: Override of the variant's soft usage cap

        Raises:
            ConfigurationError: forbidden/out-of-pool mandatory numbers or
                impossible quota bounds
            AssemblyExhausted: a ticket could not be built within budget
        """
        if total < 0:
            raise ConfigurationError(f"Batch size must be >= 0, got {total}")

        variant = self.variant
        params = variant.weighting
        mandatory = list(dict.fromkeys(int(n) for n in mandatory))

        weights = compute_weights(
            variant, history,
            half_life=params.half_life,
            laplace=params.laplace,
            hot_cold_exponent=params.hot_cold_exponent,
        )
        boosts = compute_boosts(variant, history, laplace=params.pair_laplace, scale=params.pair_scale)
        builder = TicketBuilder(
            variant,
            weights,
            boosts,
            forbidden=self.forbidden,
            overlap_penalty=params.overlap_penalty if overlap_penalty is None else overlap_penalty,
            per_number_cap=variant.per_number_cap(total) if per_number_cap is None else per_number_cap,
            over_cap_penalty=self.over_cap_penalty,
            max_attempts=self.max_ticket_attempts,
        )
        policy = QuotaPolicy(variant, sampling_attempts=self.quota_sampling_attempts, forbidden=self.forbidden)
        batch_quota = None if constrained else policy.fit_to_mandatory(policy.from_history(history), mandatory)

        state = BatchState()
        tickets = []
        attempts = []
        for i in range(total):
            quota = policy.sample_constrained(mandatory, self.rng).quota if constrained else batch_quota
            outcome = builder.try_build(mandatory, quota, state, self.rng)
            if outcome.exhausted:
                raise AssemblyExhausted(
                    outcome.attempts,
                    f"Ticket {i + 1}/{total}: no unique valid ticket after {outcome.attempts} attempts",
                )
            tickets.append(Ticket(id=i + 1, numbers=outcome.numbers))
            attempts.append(outcome.attempts)

        logger.info(
            f"[{variant.name}] generated {total} tickets "
            f"({'constrained' if constrained else 'history'} quota, {sum(attempts)} attempts)"
        )
        return GeneratedBatch(tickets, mandatory, attempts)

    def random_result(self, history: History = None) -> List[int]:
        """Synthesise one draw-like ticket from history, with no batch penalties."""
        variant = self.variant
        if variant.draw_size != variant.ticket_size:
            raise ConfigurationError(
                f"Variant {variant.name} draws {variant.draw_size} numbers but builds tickets of {variant.ticket_size}"
            )
        params = variant.weighting
        weights = compute_weights(
            variant, history, half_life=params.half_life, laplace=params.laplace, hot_cold_exponent=1.0
        )
        boosts = compute_boosts(variant, history, laplace=params.pair_laplace, scale=0.1)
        builder = TicketBuilder(
            variant,
            weights,
            boosts,
            forbidden=(),
            overlap_penalty=0.0,
            per_number_cap=99,
            over_cap_penalty=self.over_cap_penalty,
            max_attempts=self.max_ticket_attempts,
        )
        policy = QuotaPolicy(variant, forbidden=())
        quota = policy.fit_to_mandatory(policy.from_history(history), [])
        return builder.build([], quota, BatchState(), self.rng)

    def allocate(self) -> AllocationResult:
        plan = self.variant.allocation
        if plan is None:
            raise ConfigurationError(f"Variant {self.variant.name} has no allocation plan")

        pool_buckets = {b.name: b.numbers for b in self.variant.buckets}
        allocator = BatchAllocator(max_attempts=self.max_allocation_attempts)
        return allocator.allocate(
            pool_buckets,
            plan.repeat_targets,
            plan.per_ticket,
            plan.ticket_count,
            self.rng,
        )

    def optimize(self, tickets: List[Ticket], target: Iterable[int], max_passes: Optional[int] = None) -> OptimizationResult:
        optimizer = LocalOptimizer(
            self.variant.bucket_of,
            max_passes=settings.optimizer_max_passes if max_passes is None else max_passes,
        )
        return optimizer.optimize(tickets, target)
