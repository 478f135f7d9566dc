"""
Exact-repeat batch allocation.

Every number of a bucket must appear in exactly `repeat_target` tickets
and every ticket must receive exactly its per-bucket share. Each bucket is
solved independently by dealing a shuffled multiset of tokens, always to
the eligible ticket with the most free slots; a dead end discards the
partial deal and reshuffles.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
from loguru import logger

from ticket_engine.engine.tickets import Ticket
from ticket_engine.errors import AllocationInfeasible, ConfigurationError, InvariantViolation


@dataclass
class DealOutcome:
    """Per-ticket numbers dealt for one bucket, or None when the budget ran out"""
    hands: Optional[List[List[int]]]
    attempts: int

    @property
    def exhausted(self) -> bool:
        return self.hands is None


@dataclass
class AllocationResult:
    tickets: List[Ticket]
    attempts: Dict[str, int] = field(default_factory=dict)


class BatchAllocator:
    def __init__(self, max_attempts: int = 200):
        self.max_attempts = max_attempts

    def try_allocate_bucket(
        self,
        label: str,
        numbers: Sequence[int],
        repeat_target: int,
        per_ticket_needed: Sequence[int],
        rng: np.random.Generator,
    ) -> DealOutcome:
        total_to_place = len(numbers) * repeat_target
        expected = sum(per_ticket_needed)
        if expected != total_to_place:
            raise ConfigurationError(
                f"[{label}] Per-ticket slots ({expected}) != tokens to place "
                f"({len(numbers)} x {repeat_target} = {total_to_place})"
            )

        n_tickets = len(per_ticket_needed)
        tokens = np.repeat(np.asarray(numbers, dtype=int), repeat_target)

        for attempt in range(1, self.max_attempts + 1):
            remaining = list(per_ticket_needed)
            hands = [set() for _ in range(n_tickets)]
            failed = False

            for num in rng.permutation(tokens):
                num = int(num)
                candidates = [
                    gi for gi in range(n_tickets)
                    if remaining[gi] > 0 and num not in hands[gi]
                ]
                if not candidates:
                    failed = True
                    break

                best_cap = max(remaining[gi] for gi in candidates)
                best = [gi for gi in candidates if remaining[gi] == best_cap]
                chosen = best[int(rng.integers(len(best)))]

                hands[chosen].add(num)
                remaining[chosen] -= 1

            if not failed:
                logger.debug(f"[{label}] dealt on attempt {attempt}")
                return DealOutcome([sorted(h) for h in hands], attempt)

            if attempt % 20 == 0:
                logger.debug(f"[{label}] retry {attempt}/{self.max_attempts}")

        return DealOutcome(None, self.max_attempts)

    def allocate(
        self,
        pool_buckets: Dict[str, Sequence[int]],
        repeat_targets: Dict[str, int],
        per_ticket: Dict[str, Union[int, Sequence[int]]],
        ticket_count: int,
        rng: np.random.Generator,
    ) -> AllocationResult:
        """
        Build `ticket_count` tickets satisfying every bucket's repeat target.

        Args:
            pool_buckets: Bucket name -> numbers of that bucket (disjoint)
            repeat_targets: Bucket name -> appearances required per number
            per_ticket: Bucket name -> numbers each ticket takes from it,
                either one int for all tickets or one value per ticket
            ticket_count: Number of tickets in the batch
            rng: Single randomness source

        Raises:
            ConfigurationError: slot arithmetic does not match
            AllocationInfeasible: a bucket could not be dealt within budget
            InvariantViolation: the finished batch fails re-validation
        """
        needed = {}
        for label in pool_buckets:
            if label not in repeat_targets or label not in per_ticket:
                raise ConfigurationError(f"[{label}] missing repeat target or per-ticket count")
            share = per_ticket[label]
            needed[label] = [share] * ticket_count if isinstance(share, int) else list(share)
            if len(needed[label]) != ticket_count:
                raise ConfigurationError(
                    f"[{label}] {len(needed[label])} per-ticket counts for {ticket_count} tickets"
                )

        # Check every bucket up front so a bad plan fails before any dealing
        for label, numbers in pool_buckets.items():
            total = len(numbers) * repeat_targets[label]
            if sum(needed[label]) != total:
                raise ConfigurationError(
                    f"[{label}] Per-ticket slots ({sum(needed[label])}) != tokens to place ({total})"
                )

        hands_per_ticket = [[] for _ in range(ticket_count)]
        attempts = {}
        for label, numbers in pool_buckets.items():
            outcome = self.try_allocate_bucket(label, numbers, repeat_targets[label], needed[label], rng)
            if outcome.exhausted:
                raise AllocationInfeasible(label, outcome.attempts)
            attempts[label] = outcome.attempts
            for gi, hand in enumerate(outcome.hands):
                hands_per_ticket[gi].extend(hand)

        tickets = [Ticket(id=gi + 1, numbers=sorted(h)) for gi, h in enumerate(hands_per_ticket)]
        self._validate(tickets, pool_buckets, repeat_targets, needed)
        logger.info(f"Allocated {ticket_count} tickets (attempts per bucket: {attempts})")
        return AllocationResult(tickets, attempts)

    @staticmethod
    def _validate(tickets, pool_buckets, repeat_targets, needed):
        for gi, ticket in enumerate(tickets):
            expected_size = sum(needed[label][gi] for label in pool_buckets)
            if len(ticket.numbers) != expected_size or len(set(ticket.numbers)) != expected_size:
                raise InvariantViolation(
                    f"Ticket {ticket.id} has {len(ticket.numbers)} numbers (expected: {expected_size})"
                )

        counts = Counter(n for t in tickets for n in t.numbers)
        for label, numbers in pool_buckets.items():
            for num in numbers:
                if counts[num] != repeat_targets[label]:
                    raise InvariantViolation(
                        f"Number {num} ({label}) appears {counts[num]} times != {repeat_targets[label]}"
                    )
