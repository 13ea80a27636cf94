import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> list[T]:
    """Return a new list holding the same elements in random order.

    The input is never modified, so callers can keep it as the answer key.
    """
    rng = rng or random
    return rng.sample(list(items), len(items))
