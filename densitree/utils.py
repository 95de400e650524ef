from collections.abc import Callable, Sequence
from typing import TypeVar

import numpy as np

S = TypeVar("S")
T = TypeVar("T")


def initialized_property(func: Callable[[S], T]):
    name = func.__name__

    def getter(self: S) -> T:
        value = getattr(self, f"_{name}", None)
        if value is None:
            raise AttributeError(f"{name} is not initialized")
        return value

    def setter(self: S, value: T):
        setattr(self, f"_{name}", value)

    return property(getter, setter)


def always_true(*args):
    return True


def make_rng(rng: np.random.Generator | int | None = None) -> np.random.Generator:
    """
    Coerce a seed or generator into a numpy random generator.

    Parameters:
    rng (numpy.random.Generator, int or None): An existing generator is returned as is, anything else seeds a new one.

    Returns:
    numpy.random.Generator
    """
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def first_duplicate(labels: Sequence[str]) -> str | None:
    seen = set()
    for label in labels:
        if label in seen:
            return label
        seen.add(label)
    return None
