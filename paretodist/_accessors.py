"""
Free functions over distributions.

Each function accepts a distribution object as its first argument. `cdf` and
`quantile` also accept a `Complement` (see `complement`) in its place, which
selects the upper-tail formula.
"""
import functools

import numpy as np

from paretodist._complement import Complement
from paretodist._distribution_infrastructure import ContinuousDistribution

__all__ = ['location', 'shape', 'range', 'support', 'pdf', 'cdf', 'quantile',
           'mean', 'mode', 'median', 'variance', 'standard_deviation',
           'skewness', 'kurtosis', 'kurtosis_excess', 'hazard', 'chf',
           'coefficient_of_variation']


def _distribution(dist, function):
    if not isinstance(dist, ContinuousDistribution):
        message = (f"`{function}` requires a distribution, but got an object "
                   f"of type `{type(dist).__name__}`.")
        raise TypeError(message)
    return dist


def location(dist):
    """Location parameter of `dist`"""
    return _distribution(dist, 'location').location


def shape(dist):
    """Shape parameter of `dist`"""
    return _distribution(dist, 'shape').shape


def range(dist):
    """Range of values the random variable could take, ``(lower, upper)``"""
    return _distribution(dist, 'range').range()


def support(dist):
    """Interval on which the density of `dist` is positive, ``(lower, upper)``"""
    return _distribution(dist, 'support').support()


def pdf(dist, x):
    """Probability density of `dist` at `x`"""
    return _distribution(dist, 'pdf').pdf(x)


@functools.singledispatch
def cdf(dist, x=None):
    """Cumulative distribution function

    ``cdf(dist, x)`` is ``P(X <= x)``; ``cdf(complement(dist, x))`` is
    ``P(X > x)``.
    """
    _distribution(dist, 'cdf')


@cdf.register
def _(dist: ContinuousDistribution, x):
    return dist.cdf(x)


@cdf.register
def _(c: Complement):
    return _distribution(c.dist, 'cdf').ccdf(c.param)


@functools.singledispatch
def quantile(dist, p=None):
    """Inverse of the cumulative distribution function

    ``quantile(dist, p)`` is the value `x` with ``cdf(dist, x) == p``;
    ``quantile(complement(dist, q))`` is the value `x` with
    ``cdf(complement(dist, x)) == q``.
    """
    _distribution(dist, 'quantile')


@quantile.register
def _(dist: ContinuousDistribution, p):
    return dist.icdf(p)


@quantile.register
def _(c: Complement):
    return _distribution(c.dist, 'quantile').iccdf(c.param)


def mean(dist):
    return _distribution(dist, 'mean').mean()


def mode(dist):
    return _distribution(dist, 'mode').mode()


def median(dist):
    return _distribution(dist, 'median').median()


def variance(dist):
    return _distribution(dist, 'variance').var()


def standard_deviation(dist):
    return _distribution(dist, 'standard_deviation').std()


def skewness(dist):
    return _distribution(dist, 'skewness').skewness()


def kurtosis(dist):
    return _distribution(dist, 'kurtosis').kurtosis()


def kurtosis_excess(dist):
    return _distribution(dist, 'kurtosis_excess').kurtosis_excess()


def hazard(dist, x):
    """Hazard function (failure rate), ``pdf(dist, x) / cdf(complement(dist, x))``"""
    return _distribution(dist, 'hazard').hazard(x)


def chf(dist, x):
    """Cumulative hazard function, ``-log(cdf(complement(dist, x)))``"""
    return _distribution(dist, 'chf').chf(x)


def coefficient_of_variation(dist):
    """Ratio of the standard deviation to the mean of `dist`"""
    dist = _distribution(dist, 'coefficient_of_variation')
    m = np.asarray(dist.mean())
    d = np.asarray(dist.std())
    big = dist.policy.max_value(np.result_type(m, d))
    overflow = (np.abs(m) < 1) & (np.abs(d) > np.abs(m) * big)
    with np.errstate(divide='ignore', invalid='ignore'):
        res = d / m
    if np.any(overflow):
        value = dist.policy.report_overflow_error(
            f"{dist.__class__.__name__}.coefficient_of_variation",
            "coefficient of variation overflows for mean {}.",
            np.broadcast_to(m, overflow.shape)[overflow][0])
        res = np.where(overflow, value, res)
    return np.asarray(res)[()]
