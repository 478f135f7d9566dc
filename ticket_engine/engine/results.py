from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ticket_engine.engine.tickets import Ticket
from ticket_engine.errors import ValidationError


def parse_result_string(text: str, size: int, pool_min: int = 1, pool_max: int = 25) -> List[int]:
    """
    Parse a human-entered draw such as "02 03 04 ...".

    Raises:
        ValidationError: empty input, non-numeric token, wrong count,
            duplicate value or value outside [pool_min, pool_max]
    """
    if not text or not isinstance(text, str) or not text.strip():
        raise ValidationError(f"Invalid result: expected a string with {size} numbers")

    nums = []
    for token in text.split():
        try:
            nums.append(int(token, 10))
        except ValueError:
            raise ValidationError(f"Invalid result: '{token}' is not a number") from None

    if len(nums) != size:
        raise ValidationError(f"Invalid result: expected {size} numbers, got {len(nums)}")

    seen = set()
    for num in nums:
        if num in seen:
            raise ValidationError(f"Invalid result: duplicate value {num}")
        seen.add(num)

    for num in nums:
        if num < pool_min or num > pool_max:
            raise ValidationError(f"Invalid result: {num} out of range ({pool_min}..{pool_max})")

    return sorted(nums)


def count_hits(tickets: Sequence[Ticket], result: Iterable[int]) -> List[int]:
    target = set(result)
    return [t.hits(target) for t in tickets]


@dataclass
class ComparisonReport:
    result: List[int]
    hits: List[int]
    prize_buckets: Dict[int, int]
    total_prizes: float
    best_ticket_id: Optional[int]
    best_hits: int
    histogram: Dict[int, int] = field(default_factory=dict)
    cost: Optional[float] = None
    profit: Optional[float] = None
    roi: Optional[float] = None


def compare_against_result(
    tickets: Sequence[Ticket],
    result: Iterable[int],
    prize_table: Dict[int, float],
    ticket_cost: Optional[float] = None,
) -> ComparisonReport:
    """
    Score a batch against a draw.

    Prize buckets hold one counter per prize tier. Cost, profit and ROI (in
    percent) are only filled in when a ticket cost is known.
    """
    result = sorted(set(result))
    hits = count_hits(tickets, result)

    buckets = {tier: 0 for tier in sorted(prize_table)}
    total_prizes = 0.0
    histogram: Dict[int, int] = {}
    best_id, best_hits = None, -1

    for ticket, h in zip(tickets, hits):
        histogram[h] = histogram.get(h, 0) + 1
        if h in prize_table:
            buckets[h] += 1
            total_prizes += prize_table[h]
        if h > best_hits:
            best_id, best_hits = ticket.id, h

    report = ComparisonReport(
        result=result,
        hits=hits,
        prize_buckets=buckets,
        total_prizes=total_prizes,
        best_ticket_id=best_id,
        best_hits=max(best_hits, 0),
        histogram=dict(sorted(histogram.items())),
    )
    if ticket_cost is not None:
        report.cost = len(tickets) * ticket_cost
        report.profit = total_prizes - report.cost
        report.roi = (total_prizes / report.cost) * 100 if report.cost > 0 else 0.0
    return report
