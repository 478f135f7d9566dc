from collections import Counter

import pytest
import numpy as np

from ticket_engine.engine.generator import TicketGenerator
from ticket_engine.engine.tickets import signature
from ticket_engine.errors import AssemblyExhausted, ConfigurationError

MANDATORY = [1, 3, 7, 20, 22]


def test_generate_batch_history_quota(lotofacil, lotofacil_history, rng):
    generator = TicketGenerator(lotofacil, rng=rng)

    batch = generator.generate_batch(total=10, mandatory=MANDATORY, history=lotofacil_history)

    assert len(batch.tickets) == 10
    assert len(batch.attempts) == 10
    assert len({t.signature for t in batch.tickets}) == 10
    for t in batch.tickets:
        assert len(t.numbers) == 15
        assert set(MANDATORY) <= set(t.numbers)
        assert not set(t.numbers) & lotofacil.forbidden


def test_generate_batch_empty_history_uses_default_quota(lotofacil, rng):
    batch = TicketGenerator(lotofacil, rng=rng).generate_batch(total=10, mandatory=MANDATORY)

    for t in batch.tickets:
        assert lotofacil.bucket_counts(t.numbers) == {"L": 5, "M": 6, "H": 4}


def test_generate_batch_constrained_quota(lotofacil, rng):
    batch = TicketGenerator(lotofacil, rng=rng).generate_batch(total=10, mandatory=MANDATORY, constrained=True)

    assert len({t.signature for t in batch.tickets}) == 10
    for t in batch.tickets:
        counts = lotofacil.bucket_counts(t.numbers)
        assert sum(counts.values()) == 15
        assert 3 <= counts["L"] <= 5
        assert 5 <= counts["M"] <= 9
        assert 3 <= counts["H"] <= 5


def test_generate_batch_megasena(megasena, megasena_history, rng):
    batch = TicketGenerator(megasena, rng=rng).generate_batch(total=10, history=megasena_history)

    assert len({signature(t.numbers) for t in batch.tickets}) == 10
    usage = Counter(n for t in batch.tickets for n in t.numbers)
    assert all(len(t.numbers) == 6 for t in batch.tickets)
    assert not set(usage) & megasena.forbidden


def test_separate_batches_do_not_share_state(lotofacil):
    first = TicketGenerator(lotofacil, rng=np.random.default_rng(9)).generate_batch(total=5, mandatory=MANDATORY)
    second = TicketGenerator(lotofacil, rng=np.random.default_rng(9)).generate_batch(total=5, mandatory=MANDATORY)

    assert [t.numbers for t in first.tickets] == [t.numbers for t in second.tickets]


def test_generate_batch_forbidden_mandatory(lotofacil, rng):
    with pytest.raises(ConfigurationError):
        TicketGenerator(lotofacil, rng=rng).generate_batch(total=2, mandatory=[1, 4])


def test_generate_batch_exhaustion(lotofacil, rng):
    # 15 mandatory numbers (6 L, 8 M, 1 H) are the whole ticket, so only one exists
    mandatory = [1, 2, 3, 5, 7, 9, 10, 11, 12, 13, 14, 15, 16, 19, 20]
    generator = TicketGenerator(lotofacil, rng=rng, max_ticket_attempts=20)

    single = generator.generate_batch(total=1, mandatory=mandatory)
    assert single.tickets[0].numbers == sorted(mandatory)
    assert lotofacil.bucket_counts(single.tickets[0].numbers) == {"L": 6, "M": 8, "H": 1}

    with pytest.raises(AssemblyExhausted) as exc_info:
        generator.generate_batch(total=2, mandatory=mandatory)
    assert exc_info.value.attempts == 20


def test_generate_batch_lifts_quota_to_mandatory(lotofacil, rng):
    mandatory = [1, 2, 3, 5, 7, 9]

    batch = TicketGenerator(lotofacil, rng=rng).generate_batch(total=3, mandatory=mandatory)

    for t in batch.tickets:
        assert set(mandatory) <= set(t.numbers)
        assert lotofacil.bucket_counts(t.numbers) == {"L": 6, "M": 5, "H": 4}


def test_generate_batch_history_quota_capped_by_forbidden(lotofacil, rng):
    # An all-L history asks for 8 L numbers, but only 6 are not forbidden
    history = [list(range(1, 10))] * 5

    batch = TicketGenerator(lotofacil, rng=rng).generate_batch(total=3, history=history)

    for t in batch.tickets:
        assert lotofacil.bucket_counts(t.numbers) == {"L": 6, "M": 7, "H": 2}


def test_zero_attempt_budget_is_respected(lotofacil, rng):
    generator = TicketGenerator(lotofacil, rng=rng, max_ticket_attempts=0)

    assert generator.max_ticket_attempts == 0
    with pytest.raises(AssemblyExhausted) as exc_info:
        generator.generate_batch(total=1)
    assert exc_info.value.attempts == 0


def test_sanitize_mandatory(lotofacil, rng):
    generator = TicketGenerator(lotofacil, rng=rng)

    assert generator.sanitize_mandatory([1, 3, 3, 4, 7, 30, 20, 22, 0]) == [1, 3, 7, 20, 22]


def test_sanitize_mandatory_truncates(megasena, rng):
    generator = TicketGenerator(megasena, rng=rng)

    assert generator.sanitize_mandatory([1, 2, 4, 5, 6, 7, 8, 9]) == [1, 2, 4, 5, 6, 7]


def test_custom_forbidden_overrides_variant(lotofacil, rng):
    generator = TicketGenerator(lotofacil, rng=rng, forbidden=[25])
    batch = generator.generate_batch(total=5, mandatory=[4])

    for t in batch.tickets:
        assert 4 in t.numbers
        assert 25 not in t.numbers


def test_random_result(lotofacil, lotofacil_history, rng):
    numbers = TicketGenerator(lotofacil, rng=rng).random_result(lotofacil_history)

    assert len(numbers) == 15
    assert numbers == sorted(set(numbers))
    assert all(1 <= n <= 25 for n in numbers)


def test_random_result_needs_matching_draw_size(dual_pool, rng):
    with pytest.raises(ConfigurationError):
        TicketGenerator(dual_pool, rng=rng).random_result()


def test_allocate_dual_pool(dual_pool, rng):
    result = TicketGenerator(dual_pool, rng=rng).allocate()

    counts = Counter(n for t in result.tickets for n in t.numbers)
    assert len(result.tickets) == 10
    assert all(len(t.numbers) == 17 for t in result.tickets)
    assert all(counts[n] == 6 for n in range(1, 16))
    assert all(counts[n] == 8 for n in range(16, 26))


def test_allocate_requires_plan(lotofacil, rng):
    with pytest.raises(ConfigurationError):
        TicketGenerator(lotofacil, rng=rng).allocate()


def test_optimize_after_allocation(dual_pool, rng):
    generator = TicketGenerator(dual_pool, rng=rng)
    tickets = generator.allocate().tickets
    target = [2, 3, 4, 6, 7, 9, 13, 14, 15, 16, 17, 19, 20, 23, 24]
    best_before = max(t.hits(target) for t in tickets)

    result = generator.optimize(tickets, target, max_passes=300)

    assert result.final_hits >= best_before
    assert result.passes_used <= 300
