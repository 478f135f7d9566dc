import numpy as np

from ticket_engine.engine import History, normalize_history
from ticket_engine.engine.variants import GameVariant


class CooccurrenceModel:
    """
    Pairwise affinity from pointwise mutual information.

    boost(i, j) = scale * max(0, log(P(i,j) / (P(i) * P(j))))

    Probabilities are Laplace-smoothed frequencies over the T observed draws.
    Only attraction is rewarded: pairs seen together less often than chance
    get zero, never a negative boost.
    """

    def __init__(self, variant: GameVariant, laplace: float = 0.1, scale: float = 0.12):
        self.variant = variant
        self.laplace = laplace
        self.scale = scale
        n_range = variant.pool_size
        self.boosts = np.zeros((n_range, n_range))
        self.n_draws = 0

    def fit(self, history: History):
        draws = normalize_history(history)
        n_range = self.variant.pool_size
        self.n_draws = len(draws)

        if not draws:
            self.boosts = np.zeros((n_range, n_range))
            return self

        single = np.zeros(n_range)
        joint = np.zeros((n_range, n_range))

        for numbers in draws:
            idx = sorted(self.variant.index_of(n) for n in set(numbers) if self.variant.in_pool(n))
            for i, a in enumerate(idx):
                single[a] += 1
                for b in idx[i + 1:]:
                    joint[a, b] += 1
                    joint[b, a] += 1

        denom = self.n_draws + n_range * self.laplace
        p_single = (single + self.laplace) / denom
        p_joint = (joint + self.laplace) / denom
        independent = np.outer(p_single, p_single)

        pmi = np.log(np.maximum(p_joint, 1e-12) / np.maximum(independent, 1e-12))
        boosts = np.maximum(pmi, 0.0) * self.scale
        np.fill_diagonal(boosts, 0.0)
        self.boosts = boosts
        return self


def compute_boosts(
    variant: GameVariant,
    history: History,
    laplace: float = 0.1,
    scale: float = 0.12,
) -> np.ndarray:
    """Symmetric boost matrix indexed by `variant.index_of(num)`."""
    return CooccurrenceModel(variant, laplace=laplace, scale=scale).fit(history).boosts
