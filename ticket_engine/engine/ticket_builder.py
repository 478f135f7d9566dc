"""
Weighted, quota-constrained assembly of a single ticket.

Candidates are scored as

    score(c) = log w(c)
             + Σ_{x committed} (boost[c, x] + boost[x, c])
             - overlap_penalty * #{prior tickets containing c}
             - over_cap_penalty * 𝟙{usage(c) >= per_number_cap}

and picked one at a time with the Gumbel-max trick: the argmax of
score + Gumbel noise is a draw from softmax(score), so repeating it with
the committed set growing gives weighted sampling without replacement.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np
from loguru import logger

from ticket_engine.engine.tickets import BatchState, signature
from ticket_engine.engine.variants import GameVariant
from ticket_engine.errors import AssemblyExhausted, ConfigurationError


def gumbel_noise(rng: np.random.Generator, size: int) -> np.ndarray:
    u = np.maximum(rng.random(size), 1e-12)
    return -np.log(-np.log(u))


@dataclass
class BuildOutcome:
    numbers: Optional[List[int]]
    attempts: int

    @property
    def exhausted(self) -> bool:
        return self.numbers is None


class TicketBuilder:
    def __init__(
        self,
        variant: GameVariant,
        weights: np.ndarray,
        boosts: Optional[np.ndarray] = None,
        forbidden: Optional[Iterable[int]] = None,
        overlap_penalty: float = 0.12,
        per_number_cap: int = 4,
        over_cap_penalty: float = 10.0,
        max_attempts: int = 2000,
    ):
        n_range = variant.pool_size
        if len(weights) != n_range:
            raise ConfigurationError(f"Expected {n_range} weights, got {len(weights)}")
        if boosts is None:
            boosts = np.zeros((n_range, n_range))
        if boosts.shape != (n_range, n_range):
            raise ConfigurationError(f"Boost matrix must be {n_range}x{n_range}, got {boosts.shape}")

        self.variant = variant
        self.log_weights = np.log(np.maximum(np.asarray(weights, dtype=float), 1e-9))
        self.boosts = boosts
        self.forbidden = frozenset(variant.forbidden if forbidden is None else forbidden)
        self.overlap_penalty = overlap_penalty
        self.per_number_cap = per_number_cap
        self.over_cap_penalty = over_cap_penalty
        self.max_attempts = max_attempts

    def _check_mandatory(self, mandatory: Iterable[int]) -> List[int]:
        numbers = []
        for num in mandatory:
            num = int(num)
            if num in numbers:
                continue
            if not self.variant.in_pool(num):
                raise ConfigurationError(
                    f"Mandatory number {num} is outside pool {self.variant.pool_min}..{self.variant.pool_max}"
                )
            if num in self.forbidden:
                raise ConfigurationError(f"Forbidden number {num} found among mandatory numbers")
            numbers.append(num)
        if len(numbers) > self.variant.ticket_size:
            raise ConfigurationError(
                f"{len(numbers)} mandatory numbers exceed ticket size {self.variant.ticket_size}"
            )
        return numbers

    def _check_quota(self, quota: Dict[str, int]):
        unknown = set(quota) - set(self.variant.bucket_names)
        if unknown:
            raise ConfigurationError(f"Quota names unknown buckets: {sorted(unknown)}")
        if sum(quota.values()) != self.variant.ticket_size:
            raise ConfigurationError(
                f"Quota {quota} does not sum to ticket size {self.variant.ticket_size}"
            )

    def base_scores(self, state: BatchState) -> np.ndarray:
        """Per-number score terms that do not depend on the committed set."""
        variant = self.variant
        overlap = np.zeros(variant.pool_size)
        for prior in state.prior_tickets:
            for num in prior:
                if variant.in_pool(num):
                    overlap[variant.index_of(num)] += 1

        over_cap = np.zeros(variant.pool_size)
        for num, used in state.usage.items():
            if variant.in_pool(num) and used >= self.per_number_cap:
                over_cap[variant.index_of(num)] = 1.0

        return self.log_weights - self.overlap_penalty * overlap - self.over_cap_penalty * over_cap

    def _score(self, base: np.ndarray, cand_idx: np.ndarray, chosen_idx: List[int]) -> np.ndarray:
        scores = base[cand_idx]
        if chosen_idx:
            scores = scores + self.boosts[np.ix_(cand_idx, chosen_idx)].sum(axis=1)
            scores = scores + self.boosts[np.ix_(chosen_idx, cand_idx)].sum(axis=0)
        return scores

    def try_build(
        self,
        mandatory: Iterable[int],
        quota: Dict[str, int],
        state: BatchState,
        rng: np.random.Generator,
    ) -> BuildOutcome:
        """
        Assemble one unique ticket, registering it in `state` on success.

        Every returned ticket matches `quota` bucket for bucket.

        Returns:
            BuildOutcome with the sorted numbers, or numbers=None when the
            attempt budget ran out

        Raises:
            ConfigurationError: mandatory numbers overflow a bucket's quota, or
                forbidden numbers leave a bucket too few candidates
        """
        variant = self.variant
        required = self._check_mandatory(mandatory)
        self._check_quota(quota)

        candidates = [n for n in variant.pool if n not in required and n not in self.forbidden]
        by_bucket = {
            bucket.name: [variant.index_of(n) for n in candidates if n in bucket]
            for bucket in variant.buckets
        }

        required_counts = variant.bucket_counts(required)
        need = {}
        for name in variant.bucket_names:
            wanted = quota.get(name, 0)
            if required_counts[name] > wanted:
                raise ConfigurationError(
                    f"{required_counts[name]} mandatory numbers in bucket {name} exceed its quota of {wanted}"
                )
            need[name] = wanted - required_counts[name]
            if need[name] > len(by_bucket[name]):
                raise ConfigurationError(
                    f"Bucket {name} needs {need[name]} more numbers but only "
                    f"{len(by_bucket[name])} are not forbidden or mandatory"
                )
        base = self.base_scores(state)

        for attempt in range(1, self.max_attempts + 1):
            chosen_idx = [variant.index_of(n) for n in required]

            for bucket in variant.buckets:
                local = list(by_bucket[bucket.name])
                for _ in range(need[bucket.name]):
                    cand = np.array(local)
                    keyed = self._score(base, cand, chosen_idx) + gumbel_noise(rng, len(cand))
                    best = int(cand[int(np.argmax(keyed))])
                    chosen_idx.append(best)
                    local.remove(best)

            numbers = sorted(i + variant.pool_min for i in chosen_idx)
            if signature(numbers) in state.seen_signatures:
                continue

            state.register(numbers)
            if attempt > 1:
                logger.debug(f"[{variant.name}] unique ticket found on attempt {attempt}")
            return BuildOutcome(numbers, attempt)

        return BuildOutcome(None, self.max_attempts)

    def build(
        self,
        mandatory: Iterable[int],
        quota: Dict[str, int],
        state: BatchState,
        rng: np.random.Generator,
    ) -> List[int]:
        outcome = self.try_build(mandatory, quota, state, rng)
        if outcome.exhausted:
            raise AssemblyExhausted(outcome.attempts)
        return outcome.numbers
