"""
Number weights from history.

Each past draw contributes an exponentially decayed vote to every number it
contains. Votes are Laplace-smoothed, raised to a hot/cold exponent and
normalised into a sampling distribution.

Formula: c(i) = Σ_t exp(-ln2 / h * age_t) * 𝟙{i ∈ draw_t}
         w(i) = (c(i) + α)^γ / Σ_j (c(j) + α)^γ
"""

import math
import numpy as np

from ticket_engine.engine import History, normalize_history
from ticket_engine.errors import ConfigurationError
from ticket_engine.engine.variants import GameVariant


def decay_weight(age: int, half_life: float) -> float:
    """Weight of a draw `age` steps before the most recent one (age 0)."""
    lam = math.log(2) / max(1.0, half_life)
    return math.exp(-lam * age)


class WeightModel:
    """
    Exponentially decayed frequency weights with Laplace smoothing.

    An exponent above 1 widens the gap between hot and cold numbers,
    below 1 it compresses it.
    """

    def __init__(
        self,
        variant: GameVariant,
        half_life: float = 20.0,
        laplace: float = 1.0,
        hot_cold_exponent: float = 1.1,
    ):
        """
        Args:
            variant: Game variant defining the pool
            half_life: Number of draws after which a vote counts half
            laplace: Smoothing constant added to every count (must be > 0)
            hot_cold_exponent: Power applied to smoothed counts
        """
        if laplace <= 0:
            raise ConfigurationError(f"laplace must be > 0, got {laplace}")
        self.variant = variant
        self.half_life = half_life
        self.laplace = laplace
        self.hot_cold_exponent = hot_cold_exponent
        self.weights = None

    def fit(self, history: History):
        draws = normalize_history(history)
        n_range = self.variant.pool_size

        if not draws:
            self.weights = np.full(n_range, 1.0 / n_range)
            return self

        counts = np.zeros(n_range)
        n_draws = len(draws)
        for t, numbers in enumerate(draws):
            # t=0 is oldest, age 0 is the most recent draw
            weight = decay_weight(n_draws - 1 - t, self.half_life)
            for num in numbers:
                if self.variant.in_pool(num):
                    counts[self.variant.index_of(num)] += weight

        base = np.power(counts + self.laplace, self.hot_cold_exponent)
        self.weights = base / base.sum()
        return self


def compute_weights(
    variant: GameVariant,
    history: History,
    half_life: float = 20.0,
    laplace: float = 1.0,
    hot_cold_exponent: float = 1.1,
) -> np.ndarray:
    """Weight vector indexed by `variant.index_of(num)`, summing to 1."""
    model = WeightModel(variant, half_life=half_life, laplace=laplace, hot_cold_exponent=hot_cold_exponent)
    return model.fit(history).weights
