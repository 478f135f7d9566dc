from collections import Counter
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Set


def signature(numbers: Iterable[int]) -> str:
    """Canonical key of a ticket: sorted numbers joined by commas."""
    return ",".join(str(n) for n in sorted(numbers))


@dataclass
class Ticket:
    id: int
    numbers: List[int]

    @property
    def signature(self) -> str:
        return signature(self.numbers)

    def hits(self, result: Iterable[int]) -> int:
        target = set(result)
        return sum(1 for n in self.numbers if n in target)


@dataclass
class BatchState:
    """
    Mutable bookkeeping for one batch.

    Create one per generation run and discard it afterwards; it must never
    be shared between unrelated batches.
    """
    seen_signatures: Set[str] = field(default_factory=set)
    usage: Counter = field(default_factory=Counter)
    prior_tickets: List[FrozenSet[int]] = field(default_factory=list)

    def register(self, numbers: List[int]):
        self.seen_signatures.add(signature(numbers))
        for n in numbers:
            self.usage[n] += 1
        self.prior_tickets.append(frozenset(numbers))
