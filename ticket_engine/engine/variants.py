"""
Game variants.

A variant describes one game as data: the number pool, the ticket size,
the buckets used for balance quotas, the default weighting parameters and
the prize table. The engine is written once against this description.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from ticket_engine.errors import ConfigurationError


@dataclass(frozen=True)
class Bucket:
    name: str
    low: int
    high: int

    def __contains__(self, num: int) -> bool:
        return self.low <= num <= self.high

    @property
    def numbers(self) -> List[int]:
        return list(range(self.low, self.high + 1))

    @property
    def size(self) -> int:
        return self.high - self.low + 1


@dataclass
class WeightingParams:
    """Default parameters for weights, pair boosts and batch penalties"""
    half_life: float = 20.0
    laplace: float = 1.0
    hot_cold_exponent: float = 1.1
    pair_laplace: float = 0.1
    pair_scale: float = 0.12
    overlap_penalty: float = 0.12
    per_number_cap: Optional[int] = None  # None = derived from batch size


@dataclass
class AllocationPlan:
    """Exact-repeat design: every number of a bucket appears repeat_targets[bucket] times"""
    ticket_count: int
    per_ticket: Dict[str, int]
    repeat_targets: Dict[str, int]


@dataclass
class GameVariant:
    name: str
    pool_min: int
    pool_max: int
    ticket_size: int
    buckets: Tuple[Bucket, ...]
    balancing_bucket: str
    default_quota: Dict[str, int]
    history_quota_bounds: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    constrained_quota_bounds: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    forbidden: FrozenSet[int] = frozenset()
    weighting: WeightingParams = field(default_factory=WeightingParams)
    prize_table: Dict[int, float] = field(default_factory=dict)
    ticket_cost: Optional[float] = None
    allocation: Optional[AllocationPlan] = None
    draw_size: Optional[int] = None  # numbers in an official draw, defaults to ticket_size

    def __post_init__(self):
        if self.draw_size is None:
            self.draw_size = self.ticket_size
        self._validate()

    def _validate(self):
        if self.pool_min > self.pool_max:
            raise ConfigurationError(f"{self.name}: empty pool {self.pool_min}..{self.pool_max}")
        if not 0 < self.ticket_size <= self.pool_size:
            raise ConfigurationError(
                f"{self.name}: ticket size {self.ticket_size} does not fit pool of {self.pool_size}"
            )

        covered = []
        for bucket in self.buckets:
            covered.extend(bucket.numbers)
        if sorted(covered) != self.pool:
            raise ConfigurationError(
                f"{self.name}: buckets must partition the pool {self.pool_min}..{self.pool_max}"
            )

        names = self.bucket_names
        if self.balancing_bucket not in names:
            raise ConfigurationError(f"{self.name}: unknown balancing bucket {self.balancing_bucket}")
        if set(self.default_quota) != set(names) or sum(self.default_quota.values()) != self.ticket_size:
            raise ConfigurationError(
                f"{self.name}: default quota {self.default_quota} must cover {names} and sum to {self.ticket_size}"
            )
        for bounds in (self.history_quota_bounds, self.constrained_quota_bounds):
            for bucket_name, (lo, hi) in bounds.items():
                if bucket_name not in names or lo > hi or lo < 0:
                    raise ConfigurationError(
                        f"{self.name}: invalid quota bounds {bucket_name}=[{lo},{hi}]"
                    )

    @property
    def pool(self) -> List[int]:
        return list(range(self.pool_min, self.pool_max + 1))

    @property
    def pool_size(self) -> int:
        return self.pool_max - self.pool_min + 1

    @property
    def bucket_names(self) -> List[str]:
        return [b.name for b in self.buckets]

    def index_of(self, num: int) -> int:
        return num - self.pool_min

    def in_pool(self, num: int) -> bool:
        return self.pool_min <= num <= self.pool_max

    def bucket_of(self, num: int) -> str:
        for bucket in self.buckets:
            if num in bucket:
                return bucket.name
        raise ConfigurationError(f"{num} is outside pool {self.pool_min}..{self.pool_max}")

    def bucket_counts(self, numbers) -> Dict[str, int]:
        counts = {name: 0 for name in self.bucket_names}
        for num in numbers:
            counts[self.bucket_of(num)] += 1
        return counts

    def per_number_cap(self, batch_size: int) -> int:
        if self.weighting.per_number_cap is not None:
            return self.weighting.per_number_cap
        return max(3, int(batch_size * 0.45))

    @classmethod
    def from_rules(cls, name: str, rules: Dict) -> "GameVariant":
        """
        Build a variant from a rules mapping.

        Expected shape (only 'main' is required):
            {
                "main": {"min": 1, "max": 25, "pick": 15, "drawn": 15},
                "buckets": [{"name": "L", "min": 1, "max": 9}, ...],
                "balancing_bucket": "M",
                "default_quota": {"L": 5, "M": 6, "H": 4},
                "history_quota_bounds": {"L": [3, 8]},
                "constrained_quota_bounds": {"L": [3, 5]},
                "forbidden": [4, 6],
                "weighting": {"half_life": 20, ...},
                "prizes": {"11": 7.0},
                "ticket_cost": 3.5,
                "allocation": {"ticket_count": 10, "per_ticket": {...}, "repeat_targets": {...}}
            }
        """
        main_rules = rules.get("main", rules.get("numbers", {}))
        n_min = main_rules.get("min", 1)
        n_max = main_rules.get("max", 49)
        n_pick = main_rules.get("pick", main_rules.get("count", 6))
        n_drawn = main_rules.get("drawn", n_pick)

        bucket_rules = rules.get("buckets") or [{"name": "ALL", "min": n_min, "max": n_max}]
        buckets = tuple(Bucket(b["name"], b["min"], b["max"]) for b in bucket_rules)
        balancing = rules.get("balancing_bucket", buckets[len(buckets) // 2].name)

        default_quota = rules.get("default_quota")
        if default_quota is None:
            if len(buckets) != 1:
                raise ConfigurationError(f"{name}: 'default_quota' is required with several buckets")
            default_quota = {buckets[0].name: n_pick}

        allocation = None
        if rules.get("allocation"):
            alloc = rules["allocation"]
            allocation = AllocationPlan(
                ticket_count=alloc["ticket_count"],
                per_ticket=dict(alloc["per_ticket"]),
                repeat_targets=dict(alloc["repeat_targets"]),
            )

        return cls(
            name=name,
            pool_min=n_min,
            pool_max=n_max,
            ticket_size=n_pick,
            buckets=buckets,
            balancing_bucket=balancing,
            default_quota=dict(default_quota),
            history_quota_bounds={k: tuple(v) for k, v in rules.get("history_quota_bounds", {}).items()},
            constrained_quota_bounds={k: tuple(v) for k, v in rules.get("constrained_quota_bounds", {}).items()},
            forbidden=frozenset(rules.get("forbidden", [])),
            weighting=WeightingParams(**rules.get("weighting", {})),
            prize_table={int(k): float(v) for k, v in rules.get("prizes", {}).items()},
            ticket_cost=rules.get("ticket_cost"),
            allocation=allocation,
            draw_size=n_drawn,
        )


LOTOFACIL = GameVariant(
    name="lotofacil",
    pool_min=1,
    pool_max=25,
    ticket_size=15,
    buckets=(Bucket("L", 1, 9), Bucket("M", 10, 19), Bucket("H", 20, 25)),
    balancing_bucket="M",
    default_quota={"L": 5, "M": 6, "H": 4},
    history_quota_bounds={"L": (3, 8), "H": (2, 6)},
    constrained_quota_bounds={"L": (3, 5), "M": (5, 9), "H": (3, 5)},
    forbidden=frozenset({4, 6, 8, 17, 18, 21}),
    weighting=WeightingParams(
        half_life=20.0,
        laplace=1.0,
        hot_cold_exponent=1.1,
        pair_laplace=0.1,
        pair_scale=0.12,
        overlap_penalty=0.12,
    ),
    prize_table={11: 7.0, 12: 14.0, 13: 35.0, 14: 2200.0, 15: 1000000.0},
    ticket_cost=3.5,
)

MEGASENA = GameVariant(
    name="megasena",
    pool_min=1,
    pool_max=60,
    ticket_size=6,
    buckets=(Bucket("ALL", 1, 60),),
    balancing_bucket="ALL",
    default_quota={"ALL": 6},
    forbidden=frozenset({3, 21, 22, 26, 31, 40, 48, 55, 60}),
    weighting=WeightingParams(
        half_life=40.0,
        laplace=1.0,
        hot_cold_exponent=1.0,
        pair_laplace=0.1,
        pair_scale=0.0,
        overlap_penalty=0.08,
        per_number_cap=3,
    ),
    prize_table={4: 680.0, 5: 37000.0, 6: 5000000.0},
    ticket_cost=5.0,
)

LOTOFACIL_DUAL = GameVariant(
    name="lotofacil_dual",
    pool_min=1,
    pool_max=25,
    ticket_size=17,
    draw_size=15,
    buckets=(Bucket("P1", 1, 15), Bucket("P2", 16, 25)),
    balancing_bucket="P1",
    default_quota={"P1": 9, "P2": 8},
    prize_table={11: 7.0, 12: 14.0, 13: 35.0, 14: 2200.0, 15: 1000000.0},
    allocation=AllocationPlan(
        ticket_count=10,
        per_ticket={"P1": 9, "P2": 8},
        repeat_targets={"P1": 6, "P2": 8},
    ),
)

VARIANTS = {
    "lotofacil": LOTOFACIL,
    "megasena": MEGASENA,
    "lotofacil_dual": LOTOFACIL_DUAL,
}


def get_variant(name: str) -> GameVariant:
    try:
        return VARIANTS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown game variant: {name}") from None
