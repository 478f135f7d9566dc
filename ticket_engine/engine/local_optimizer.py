from dataclasses import dataclass
from typing import Callable, Iterable, List

from loguru import logger

from ticket_engine.engine.tickets import Ticket
from ticket_engine.errors import ValidationError


@dataclass
class OptimizationResult:
    focus_ticket_id: int
    final_hits: int
    passes_used: int


class LocalOptimizer:
    """
    Stack target numbers onto the best ticket through legal swaps.

    A swap moves `bring` (in the target, held by another ticket) into the
    focus ticket and sends `leave` (not in the target) back. Both numbers
    belong to the same bucket and the other ticket must not already hold
    `leave`, so ticket sizes, per-bucket composition and global per-number
    counts never change. First improvement wins and the scan restarts.
    """

    def __init__(self, bucket_of: Callable[[int], str], max_passes: int = 200):
        self.bucket_of = bucket_of
        self.max_passes = max_passes

    @staticmethod
    def _pick_focus(tickets: List[Ticket], target: set) -> int:
        focus_idx, best_hits = 0, -1
        for i, ticket in enumerate(tickets):
            hits = ticket.hits(target)
            if hits > best_hits:
                focus_idx, best_hits = i, hits
        return focus_idx

    def _try_improve_once(self, tickets: List[Ticket], focus_idx: int, target: set, best_hits: int) -> bool:
        focus = tickets[focus_idx]
        focus_set = set(focus.numbers)

        for j, other in enumerate(tickets):
            if j == focus_idx:
                continue
            other_set = set(other.numbers)

            want = [n for n in other.numbers if n in target and n not in focus_set]
            if not want:
                continue
            can_leave = [n for n in focus.numbers if n not in target]

            for bring in want:
                leave_options = [
                    out for out in can_leave
                    if self.bucket_of(out) == self.bucket_of(bring) and out not in other_set
                ]
                if not leave_options:
                    continue
                leave = leave_options[0]

                new_focus = sorted([x for x in focus.numbers if x != leave] + [bring])
                new_hits = sum(1 for n in new_focus if n in target)
                if new_hits > best_hits:
                    focus.numbers = new_focus
                    other.numbers = sorted([x for x in other.numbers if x != bring] + [leave])
                    logger.debug(f"Swap {leave} <-> {bring} between ticket {focus.id} and {other.id}")
                    return True
        return False

    def optimize(self, tickets: List[Ticket], target: Iterable[int]) -> OptimizationResult:
        """
        Mutate `tickets` in place, raising the focus ticket's hits on `target`.

        Returns:
            OptimizationResult with the focus ticket id, its final hit count
            and the number of swaps applied
        """
        if not tickets:
            raise ValidationError("Cannot optimize an empty batch")
        target = set(target)
        focus_idx = self._pick_focus(tickets, target)
        best_hits = tickets[focus_idx].hits(target)

        passes = 0
        while passes < self.max_passes:
            if not self._try_improve_once(tickets, focus_idx, target, best_hits):
                break
            best_hits = tickets[focus_idx].hits(target)
            passes += 1

        logger.info(
            f"Optimization finished: focus ticket {tickets[focus_idx].id} | hits {best_hits} | passes {passes}"
        )
        return OptimizationResult(tickets[focus_idx].id, best_hits, passes)
