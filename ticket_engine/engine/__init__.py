from typing import Iterable, List, Sequence, Union

import pandas as pd

History = Union[pd.DataFrame, Sequence[Sequence[int]], None]


def normalize_history(history: History) -> List[List[int]]:
    """
    Turn any accepted history shape into a list of draws, oldest first.

    Accepts None, a sequence of draws, or a DataFrame with a 'numbers'
    column (the same shape the analysis DataFrames use).

    Returns:
        List of draws, each a list of ints with in-draw duplicates removed
    """
    if history is None:
        return []
    if isinstance(history, pd.DataFrame):
        if len(history) == 0:
            return []
        if "numbers" not in history.columns:
            raise ValueError("History DataFrame needs a 'numbers' column")
        rows: Iterable = history["numbers"]
    else:
        rows = history

    draws = []
    for numbers in rows:
        if numbers is None:
            continue
        seen = []
        for num in numbers:
            num = int(num)
            if num not in seen:
                seen.append(num)
        draws.append(seen)
    return draws
