import numpy as np
from scipy import special

from paretodist._distribution_infrastructure import (
    ContinuousDistribution, _RealDomain, _RealParameter, _Parameterization,
    oo)

__all__ = ['Pareto']


def _powm1(x, y):
    # `special.powm1` has single and double precision loops only. Extended
    # precision takes `expm1` of the logarithm where the result is near zero
    # and the direct power elsewhere.
    if np.result_type(x, y).itemsize <= 8:
        return special.powm1(x, y)
    ylogx = y * np.log(x)
    return np.where(np.abs(ylogx) < 0.5, np.expm1(ylogx), x**y - 1)


class Pareto(ContinuousDistribution):
    r"""Pareto distribution

    The probability density function of the Pareto distribution is

    .. math::

        f(x; x_m, k) = \frac{k x_m^k}{x^{k+1}} \quad \text{for } x \geq x_m

    and zero below the location :math:`x_m`.

    Parameters
    ----------
    location : array_like, default: 1
        The location :math:`x_m > 0`, the smallest value of the support.
    shape : array_like, default: 1
        The shape :math:`k > 0`; larger values give a lighter tail.
    policy : ErrorPolicy, str, callable or dict, optional
        How invalid parameters, invalid arguments and undefined statistics
        are reported. See `ContinuousDistribution`.

    Notes
    -----
    The mean is infinite for :math:`k \le 1` and is then reported as the
    largest finite value of the result dtype. The variance, skewness and
    kurtosis do not exist for :math:`k \le 2`, :math:`k \le 3` and
    :math:`k \le 4`, respectively; evaluating them there is a domain error.

    Examples
    --------
    >>> from paretodist import Pareto
    >>> dist = Pareto(location=2, shape=3)
    >>> float(dist.var())
    3.0
    >>> float(dist.cdf(4))
    0.875

    """
    _location_domain = _RealDomain(endpoints=(0, oo))
    _shape_domain = _RealDomain(endpoints=(0, oo))
    _x_domain = _RealDomain(endpoints=(0, oo))
    _x_support = _RealDomain(endpoints=('location', oo), inclusive=(True, False))
    _x_range = _RealDomain(endpoints=(0, oo), inclusive=(True, False))

    _location_param = _RealParameter('location', label='Location parameter',
                                     symbol='x_m', domain=_location_domain)
    _shape_param = _RealParameter('shape', label='Shape parameter',
                                  symbol='k', domain=_shape_domain)
    _x_param = _RealParameter('x', label='x parameter', domain=_x_domain)

    _x_support.define_parameters(_location_param)

    # location is checked before shape
    _parameterization = _Parameterization(_location_param, _shape_param)
    _variable = _x_param

    _undefined = {
        'var': ('shape', _RealDomain(endpoints=(2, oo)),
                "variance is undefined for shape <= 2, but got {}."),
        'skewness': ('shape', _RealDomain(endpoints=(3, oo)),
                     "skewness is undefined for shape <= 3, but got {}."),
        'kurtosis': ('shape', _RealDomain(endpoints=(4, oo)),
                     "kurtosis is undefined for shape <= 4, but got {}."),
        'kurtosis_excess': (
            'shape', _RealDomain(endpoints=(4, oo)),
            "kurtosis_excess is undefined for shape <= 4, but got {}."),
    }

    def __init__(self, location=1, shape=1, *, policy=None):
        super().__init__(location=location, shape=shape, policy=policy)

    @property
    def location(self):
        """Location (minimum value) of the distribution"""
        return self._parameters['location'][()]

    @property
    def shape(self):
        """Shape (tail exponent) of the distribution"""
        return self._parameters['shape'][()]

    def _pdf_formula(self, x, *, location, shape, **kwargs):
        # k x_m^k / x^(k+1), arranged so that x_m^k cannot overflow
        return np.where(x < location, 0, shape / x * (location / x)**shape)

    def _cdf_formula(self, x, *, location, shape, **kwargs):
        # 1 - (x_m/x)^k loses precision when x is just above x_m
        return np.where(x <= location, 0, -_powm1(location / x, shape))

    def _ccdf_formula(self, x, *, location, shape, **kwargs):
        return np.where(x <= location, 1, (location / x)**shape)

    def _icdf_formula(self, p, *, location, shape, **kwargs):
        # infinite where the power underflows, not only at p == 1
        res = location / (1 - p)**(1 / shape)
        res = np.where(np.isinf(res), self.policy.max_value(res.dtype), res)
        return np.where(p == 0, location, res)

    def _iccdf_formula(self, q, *, location, shape, **kwargs):
        res = location / q**(1 / shape)
        res = np.where(np.isinf(res), self.policy.max_value(res.dtype), res)
        return np.where(q == 1, location, res)

    def _chf_formula(self, x, *, location, shape, **kwargs):
        return np.where(x <= location, 0,
                        shape * np.log1p((x - location) / location))

    def _mean_formula(self, *, location, shape, **kwargs):
        res = shape * location / (shape - 1)
        return np.where(shape > 1, res, self.policy.max_value(self.dtype))

    def _median_formula(self, *, location, shape, **kwargs):
        return location * 2**(1 / shape)

    def _mode_formula(self, *, location, **kwargs):
        return location

    def _var_formula(self, *, location, shape, **kwargs):
        return location**2 * shape / ((shape - 1)**2 * (shape - 2))

    def _skewness_formula(self, *, shape, **kwargs):
        return 2 * (shape + 1) / (shape - 3) * np.sqrt((shape - 2) / shape)

    def _kurtosis_formula(self, *, shape, **kwargs):
        return (3 * (shape - 2) * (3 * shape**2 + shape + 2)
                / (shape * (shape - 3) * (shape - 4)))

    def _kurtosis_excess_formula(self, *, shape, **kwargs):
        return (6 * (shape**3 + shape**2 - 6 * shape - 2)
                / (shape * (shape - 3) * (shape - 4)))
