from dataclasses import dataclass
from typing import Any

__all__ = ['Complement', 'complement']


@dataclass(frozen=True)
class Complement:
    """A distribution paired with an argument of an upper-tail function

    Passing a `Complement` to `cdf` evaluates the upper-tail probability
    ``P(X > param)``; passing one to `quantile` evaluates the value exceeded
    with probability `param`. Each uses its own formula, so no precision is
    lost forming ``1 - cdf`` or ``1 - q``.
    """
    dist: Any
    param: Any


def complement(dist, param):
    """Mark `param` as an argument of the complementary function of `dist`

    Examples
    --------
    >>> from paretodist import Pareto, cdf, complement
    >>> float(cdf(complement(Pareto(1, 2), 4)))
    0.0625

    """
    return Complement(dist, param)
