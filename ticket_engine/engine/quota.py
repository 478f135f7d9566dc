import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
from loguru import logger

from ticket_engine.engine import History, normalize_history
from ticket_engine.engine.variants import GameVariant
from ticket_engine.errors import ConfigurationError

Quota = Dict[str, int]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


@dataclass
class QuotaSample:
    """Outcome of randomized constrained sampling"""
    quota: Quota
    attempts: int
    fallback: bool = False


class QuotaPolicy:
    """
    Per-ticket bucket quotas.

    Two modes:
      - from_history: bucket proportions observed in past draws, rounded to
        ticket size and clamped to the variant's history bounds. Pass the
        result through fit_to_mandatory before building with it.
      - sample_constrained: a uniform random split inside the variant's
        constrained bounds, never below the mandatory numbers already
        sitting in a bucket.

    No bucket is ever asked for more numbers than it has left once the
    forbidden ones are removed.
    """

    def __init__(
        self,
        variant: GameVariant,
        sampling_attempts: int = 200,
        forbidden: Optional[Iterable[int]] = None,
    ):
        self.variant = variant
        self.sampling_attempts = sampling_attempts
        self.forbidden = frozenset(variant.forbidden if forbidden is None else forbidden)

    @property
    def _others(self):
        return [n for n in self.variant.bucket_names if n != self.variant.balancing_bucket]

    def available(self, mandatory: Iterable[int] = ()) -> Dict[str, int]:
        """Numbers per bucket a ticket may hold: non-forbidden ones plus the mandatory ones."""
        mandatory = set(mandatory)
        return {
            bucket.name: sum(1 for n in bucket.numbers if n not in self.forbidden or n in mandatory)
            for bucket in self.variant.buckets
        }

    def from_history(self, history: History) -> Quota:
        variant = self.variant
        k = variant.ticket_size
        draws = normalize_history(history)

        counts = {name: 0 for name in variant.bucket_names}
        total = 0
        for numbers in draws:
            for num in numbers:
                if variant.in_pool(num):
                    counts[variant.bucket_of(num)] += 1
                    total += 1

        if total == 0:
            return dict(variant.default_quota)

        quota = {name: _round_half_up(counts[name] / total * k) for name in self._others}
        balancing = variant.balancing_bucket

        # Rounding may overshoot; the balancing bucket absorbs the error
        quota[balancing] = k - sum(quota.values())
        while quota[balancing] < 0:
            largest = max(self._others, key=lambda n: quota[n])
            quota[largest] -= 1
            quota[balancing] += 1

        for name in self._others:
            if name in variant.history_quota_bounds:
                lo, hi = variant.history_quota_bounds[name]
                quota[name] = max(lo, min(hi, quota[name]))
        quota[balancing] = k - sum(quota[n] for n in self._others)

        if quota[balancing] < 0:
            raise ConfigurationError(
                f"{variant.name}: history bounds leave {quota[balancing]} numbers for bucket {balancing}"
            )
        return {name: quota[name] for name in variant.bucket_names}

    def fit_to_mandatory(self, quota: Quota, mandatory: Iterable[int]) -> Quota:
        """
        Move a quota the least needed so every bucket holds its mandatory
        numbers and no bucket asks for more numbers than it has available.

        Buckets are first clamped to [mandatory count, available count]; the
        resulting surplus or shortfall goes to the balancing bucket first,
        then to the others in bucket order.

        Raises:
            ConfigurationError: no quota summing to ticket size fits
        """
        variant = self.variant
        mandatory = list(mandatory)
        required = variant.bucket_counts(mandatory)
        available = self.available(mandatory)

        fitted = {
            name: max(required[name], min(available[name], quota.get(name, 0)))
            for name in variant.bucket_names
        }
        remaining = variant.ticket_size - sum(fitted.values())
        for name in [variant.balancing_bucket] + self._others:
            if remaining > 0:
                step = min(available[name] - fitted[name], remaining)
            else:
                step = max(required[name] - fitted[name], remaining)
            fitted[name] += step
            remaining -= step

        if remaining != 0:
            raise ConfigurationError(
                f"{variant.name}: mandatory {sorted(mandatory)} and forbidden numbers leave no quota "
                f"summing to ticket size {variant.ticket_size}"
            )
        if fitted != quota:
            logger.debug(f"[{variant.name}] quota {quota} adjusted to {fitted}")
        return fitted

    def effective_bounds(self, mandatory: Iterable[int]) -> Dict[str, Tuple[int, int]]:
        """
        [min, max] per bucket, raised so mandatory numbers always fit and
        capped at the numbers the bucket has available.

        Raises:
            ConfigurationError: a bucket's floor exceeds what it has available
        """
        variant = self.variant
        mandatory = list(mandatory)
        required = variant.bucket_counts(mandatory)
        available = self.available(mandatory)
        bounds = {}
        for bucket in variant.buckets:
            lo, hi = variant.constrained_quota_bounds.get(
                bucket.name, (0, min(bucket.size, variant.ticket_size))
            )
            req = required[bucket.name]
            lo, hi = max(lo, req), min(max(hi, req), available[bucket.name])
            if lo > hi:
                raise ConfigurationError(
                    f"{variant.name}: bucket {bucket.name} needs {lo} numbers but only {hi} are available"
                )
            bounds[bucket.name] = (lo, hi)
        return bounds

    def sample_constrained(self, mandatory: Iterable[int], rng: np.random.Generator) -> QuotaSample:
        variant = self.variant
        k = variant.ticket_size
        balancing = variant.balancing_bucket
        bounds = self.effective_bounds(list(mandatory))

        lo_sum = sum(lo for lo, _ in bounds.values())
        hi_sum = sum(hi for _, hi in bounds.values())
        if not lo_sum <= k <= hi_sum:
            raise ConfigurationError(
                f"{variant.name}: quota bounds {bounds} cannot sum to ticket size {k}"
            )

        bal_lo, bal_hi = bounds[balancing]
        for attempt in range(1, self.sampling_attempts + 1):
            quota = {}
            for name in self._others:
                lo, hi = bounds[name]
                quota[name] = int(rng.integers(lo, hi + 1))
            rest = k - sum(quota.values())
            if bal_lo <= rest <= bal_hi:
                quota[balancing] = rest
                return QuotaSample({n: quota[n] for n in variant.bucket_names}, attempt)

        logger.debug(
            f"[{variant.name}] no quota found in {self.sampling_attempts} samples, using deterministic split"
        )
        return QuotaSample(self._deterministic_split(bounds), self.sampling_attempts, fallback=True)

    def _deterministic_split(self, bounds: Dict[str, Tuple[int, int]]) -> Quota:
        variant = self.variant
        quota = {name: lo for name, (lo, _) in bounds.items()}
        remaining = variant.ticket_size - sum(quota.values())

        # Balancing bucket takes the slack first, then the others in bucket order
        for name in [variant.balancing_bucket] + self._others:
            if remaining <= 0:
                break
            room = bounds[name][1] - quota[name]
            step = min(room, remaining)
            quota[name] += step
            remaining -= step

        return {name: quota[name] for name in variant.bucket_names}
