import re

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_equal
from hypothesis import strategies, given
import hypothesis.extra.numpy as npst

from scipy import stats

import paretodist
from paretodist import Pareto, DomainError, errstate, complement

f64_max = np.finfo(np.float64).max


def test_basic():
    dist = Pareto(1, 1)
    assert_equal(dist.pdf(2.), 0.25)
    assert_equal(dist.cdf(2.), 0.5)
    assert_equal(dist.ccdf(2.), 0.5)
    assert_equal(dist.median(), 2.)
    assert_equal(dist.mode(), 1.)

    dist = Pareto(2, 3)
    assert_allclose(dist.var(), 3., rtol=1e-15)
    assert_allclose(dist.std(), np.sqrt(3.), rtol=1e-15)
    assert_equal(dist.mean(), 3.)
    assert_equal(dist.mode(), 2.)


def test_defaults():
    dist = Pareto()
    assert dist.location == 1.
    assert dist.shape == 1.


def test_infinite_mean():
    # no error: the mean is reported as the largest finite value
    assert_equal(Pareto(1, 1).mean(), f64_max)
    assert_equal(Pareto(3, 0.5).mean(), f64_max)
    assert_equal(Pareto(1, [0.5, 2]).mean(), [f64_max, 2.])


@pytest.mark.parametrize('method, shape, message', [
    ('var', 2., "variance is undefined for shape <= 2, but got 2.0."),
    ('skewness', 3., "skewness is undefined for shape <= 3, but got 3.0."),
    ('kurtosis', 4., "kurtosis is undefined for shape <= 4, but got 4.0."),
    ('kurtosis_excess', 1.5,
     "kurtosis_excess is undefined for shape <= 4, but got 1.5."),
])
def test_undefined_moments(method, shape, message):
    dist = Pareto(2, shape)
    message = f"Pareto.{method}: {message}"
    with pytest.raises(DomainError, match=re.escape(message)):
        getattr(dist, method)()

    with errstate(domain='ignore'):
        assert np.isnan(getattr(dist, method)())
        # only elements outside of the region are affected
        res = getattr(Pareto(2, [shape, 10.]), method)()
        assert np.isnan(res[0]) and np.isfinite(res[1])


class TestParameters:

    @pytest.mark.parametrize('location, shape, message', [
        (0, 1, "Location parameter is 0.0, but must be in (0, ∞)!"),
        (-2, 1, "Location parameter is -2.0, but must be in (0, ∞)!"),
        (np.inf, 1, "Location parameter is inf, but must be finite!"),
        (np.nan, 1, "Location parameter is nan, but must be finite!"),
        (1, -1, "Shape parameter is -1.0, but must be in (0, ∞)!"),
        (1, 0, "Shape parameter is 0.0, but must be in (0, ∞)!"),
        (1, np.inf, "Shape parameter is inf, but must be finite!"),
        # location is checked first
        (0, -1, "Location parameter is 0.0, but must be in (0, ∞)!"),
        ([1, 0, -1], 1, "Location parameter is 0.0, but must be in (0, ∞)!"),
    ])
    def test_invalid(self, location, shape, message):
        message = f"Pareto.__init__: {message}"
        with pytest.raises(DomainError, match=re.escape(message)):
            Pareto(location, shape)

    def test_invalid_stored_verbatim(self):
        dist = Pareto(-1., [1., -2.], policy='ignore')
        assert_equal(dist.location, [-1., -1.])
        assert_equal(dist.shape, [1., -2.])
        assert_equal(dist.pdf(2.), [np.nan, np.nan])

        # every method re-validates
        dist = Pareto([1., -1.], 2., policy='ignore')
        assert_equal(dist.cdf(2.), [0.75, np.nan])
        assert_equal(dist.mean(), [2., np.nan])
        assert_equal(dist.icdf(0.), [1., np.nan])

    def test_read_only(self):
        location = np.asarray([1., 2.])
        dist = Pareto(location, 3.)
        location[0] = 10.
        assert_equal(dist.location, [1., 2.])

        with pytest.raises(ValueError, match="read-only"):
            dist.location[0] = 10.
        with pytest.raises(AttributeError):
            dist.location = 10.

    def test_broadcasting(self):
        dist = Pareto([[1.], [2.]], [1., 2., 3.])
        assert dist.location.shape == (2, 3)
        assert dist.mean().shape == (2, 3)
        assert dist.cdf([3., 4., 5.]).shape == (2, 3)

        message = "The parameters `{location, shape}` provided to the `Pareto`..."
        with pytest.raises(ValueError, match=message):
            Pareto([1., 2.], [1., 2., 3.])

        message = "The argument provided to `Pareto.pdf` cannot be broadcast..."
        with pytest.raises(ValueError, match=message):
            Pareto([1., 2.], 3.).pdf([1., 2., 3.])

    def test_repr(self):
        assert repr(Pareto(2, 3)) == "Pareto(location=2.0, shape=3.0)"
        assert (repr(Pareto([1, 2], 3))
                == "Pareto(location=[1.0, 2.0], shape=[3.0, 3.0])")


class TestFunctions:

    def test_below_and_at_location(self):
        dist = Pareto(2, 3)
        x = np.asarray([0.5, 1., 1.999])
        assert_equal(dist.pdf(x), 0)
        assert_equal(dist.cdf(x), 0)
        assert_equal(dist.ccdf(x), 1)
        assert_equal(dist.hazard(x), 0)
        assert_equal(dist.chf(x), 0)

        assert_equal(dist.pdf(2.), 1.5)  # shape / location
        assert_equal(dist.cdf(2.), 0.)
        assert_equal(dist.ccdf(2.), 1.)

    def test_arrays(self):
        assert_allclose(Pareto([1., 2.], 3.).pdf(2.), [0.1875, 1.5])
        assert_allclose(Pareto(1., 2.).cdf([2., 4.]), [0.75, 0.9375])

    def test_invalid_argument(self):
        dist = Pareto(2, 3)
        message = "Pareto.pdf: x parameter is -1.0, but must be in (0, ∞)!"
        with pytest.raises(DomainError, match=re.escape(message)):
            dist.pdf(-1.)
        message = "Pareto.cdf: x parameter is nan, but must be finite!"
        with pytest.raises(DomainError, match=re.escape(message)):
            dist.cdf(np.nan)

        with errstate(domain='ignore'):
            assert_equal(dist.ccdf([-1., 4.]), [np.nan, 0.125])

    def test_invalid_argument_first(self):
        # the argument is reported before the parameters
        calls = []

        def policy(function, message, value):
            calls.append(message.format(value))
            return -1.

        dist = Pareto(-1., 3., policy=policy)
        calls.clear()
        assert_equal(dist.pdf([0., 2.]), [-1., -1.])
        assert calls == ["x parameter is 0.0, but must be in (0, ∞)!"]

    def test_quantile_boundaries(self):
        dist = Pareto(2, 3)
        assert_equal(dist.icdf(0.), 2.)
        assert_equal(dist.icdf(1.), f64_max)
        assert_equal(dist.iccdf(1.), 2.)
        assert_equal(dist.iccdf(0.), f64_max)
        assert_allclose(dist.icdf(0.875), 4., rtol=1e-14)
        assert_allclose(dist.iccdf(0.125), 4., rtol=1e-14)

    def test_quantile_underflow(self):
        # (1 - p)**(1/shape) underflows to zero inside (0, 1) for tiny shape
        dist = Pareto(1, 1e-4)
        assert_equal(dist.icdf(0.5), f64_max)
        assert_equal(dist.iccdf(0.5), f64_max)
        assert_equal(dist.icdf([0., 0.5]), [1., f64_max])

    @pytest.mark.parametrize('method', ['icdf', 'iccdf'])
    @pytest.mark.parametrize('p', [1.5, -0.5])
    def test_invalid_probability(self, method, p):
        dist = Pareto(2, 3)
        message = (f"Pareto.{method}: Probability argument is {p}, but must "
                   "be in [0, 1]!")
        with pytest.raises(DomainError, match=re.escape(message)):
            getattr(dist, method)(p)

    def test_cdf_small_shape(self):
        # 1 - (x_m/x)^k cancels catastrophically when k is tiny
        res = Pareto(1, 1e-10).cdf(2.)
        ref = -np.expm1(-1e-10 * np.log(2.))
        assert_allclose(res, ref, rtol=1e-14)

    def test_ccdf_tail(self):
        # the upper tail is computed directly, not as 1 - cdf
        dist = Pareto(1, 3)
        assert_allclose(dist.ccdf(1e10), 1e-30, rtol=1e-14)
        assert_equal(dist.cdf(1e10), 1.)
        assert_allclose(dist.iccdf(1e-30), 1e10, rtol=1e-14)

    def test_pdf_large_shape(self):
        # location**shape alone would overflow
        dist = Pareto(10., 400.)
        assert_allclose(dist.pdf(10.), 40., rtol=1e-15)
        assert_allclose(dist.pdf(20.), 20 * 0.5**400, rtol=1e-13)

    def test_hazard_chf(self):
        dist = Pareto(1, 3)
        assert_allclose(dist.hazard(2.), 1.5, rtol=1e-15)
        assert_allclose(dist.hazard([2., 4.]), 3 / np.asarray([2., 4.]),
                        rtol=1e-15)
        assert_allclose(dist.chf(2.), 3 * np.log(2.), rtol=1e-15)
        # chf is -log(ccdf) without forming ccdf
        assert_allclose(Pareto(1, 1e-3).chf(1 + 1e-12), 1e-15, rtol=1e-3)


class TestMoments:

    @pytest.mark.parametrize('location, shape', [(1., 5.), (2., 4.5),
                                                 (0.3, 10.), (7., 100.)])
    def test_scipy(self, location, shape):
        dist = Pareto(location, shape)
        ref = stats.pareto(shape, scale=location)
        m, v, s, k = ref.stats('mvsk')
        assert_allclose(dist.mean(), m, rtol=1e-13)
        assert_allclose(dist.var(), v, rtol=1e-13)
        assert_allclose(dist.skewness(), s, rtol=1e-13)
        assert_allclose(dist.kurtosis_excess(), k, rtol=1e-13)
        assert_allclose(dist.kurtosis(), k + 3, rtol=1e-13)
        assert_allclose(dist.median(), ref.median(), rtol=1e-13)

        x = location * np.asarray([1.001, 1.5, 2., 10., 1e3])
        assert_allclose(dist.pdf(x), ref.pdf(x), rtol=1e-12)
        assert_allclose(dist.cdf(x), ref.cdf(x), rtol=1e-12)
        assert_allclose(dist.ccdf(x), ref.sf(x), rtol=1e-12)
        p = np.asarray([0., 0.01, 0.5, 0.99])
        assert_allclose(dist.icdf(p), ref.ppf(p), rtol=1e-12)
        assert_allclose(dist.iccdf(1 - p), ref.isf(1 - p), rtol=1e-12)

    def test_kurtosis(self):
        dist = Pareto(1, 5)
        assert_allclose(dist.kurtosis(), 73.8, rtol=1e-14)
        assert_allclose(dist.kurtosis_excess(), 70.8, rtol=1e-14)

    def test_median_mode(self):
        assert_equal(Pareto(3, 1).median(), 6.)
        assert_allclose(Pareto(1, 2).median(), np.sqrt(2), rtol=1e-15)
        assert_equal(Pareto([1., 4.], 2.).mode(), [1., 4.])


class TestProperties:

    locations = strategies.floats(min_value=1e-3, max_value=1e3)
    shapes = strategies.floats(min_value=0.5, max_value=20)
    probabilities = strategies.floats(min_value=0, max_value=0.99)

    @given(location=locations, shape=shapes,
           factor=strategies.floats(min_value=0.5, max_value=1e3))
    def test_cdf_ccdf(self, location, shape, factor):
        dist = Pareto(location, shape)
        x = location * factor
        assert_allclose(dist.cdf(x) + dist.ccdf(x), 1., rtol=1e-14)
        assert 0 <= dist.cdf(x) <= 1

    @given(location=locations, shape=shapes, p=probabilities)
    def test_icdf_iccdf(self, location, shape, p):
        dist = Pareto(location, shape)
        assert_allclose(dist.icdf(p), dist.iccdf(1 - p), rtol=1e-15)
        assert dist.icdf(p) >= location

    @given(location=locations, shape=shapes, p=probabilities)
    def test_cdf_icdf(self, location, shape, p):
        dist = Pareto(location, shape)
        assert_allclose(dist.cdf(dist.icdf(p)), p, rtol=1e-10, atol=1e-12)

    @given(p=npst.arrays(np.float64, npst.array_shapes(max_dims=2),
                         elements=dict(min_value=0, max_value=1)))
    def test_icdf_monotonic(self, p):
        dist = Pareto(2, 3)
        p = np.sort(p, axis=None)
        res = dist.icdf(p)
        assert np.all(np.diff(res) >= 0)
        assert np.all(res >= 2.)


class TestSupport:

    def test_range(self):
        a, b = Pareto(2, 3).range()
        assert_equal(a, 0.)
        assert_equal(b, f64_max)

    def test_support(self):
        a, b = Pareto(2, 3).support()
        assert_equal(a, 2.)
        assert_equal(b, f64_max)

        a, b = Pareto([1., 2.], 3.).support()
        assert_equal(a, [1., 2.])
        assert_equal(b, [f64_max, f64_max])


class TestDtypes:

    def test_float32(self):
        dist = Pareto(np.float32(2), np.float32(3))
        f32_max = np.finfo(np.float32).max
        assert dist.dtype == np.float32
        assert dist.pdf(2.).dtype == np.float32
        assert dist.cdf(np.float32(4)).dtype == np.float32
        assert dist.var().dtype == np.float32
        assert_equal(dist.icdf(1.), f32_max)
        assert_allclose(dist.cdf(4.), 0.875, rtol=1e-6)
        assert_equal(Pareto(np.float32(1), np.float32(1)).mean(), f32_max)
        assert_equal(dist.support()[1], f32_max)

    def test_integers(self):
        dist = Pareto(2, 3)
        assert dist.dtype == np.float64
        assert dist.cdf(4).dtype == np.float64

    def test_mixed(self):
        dist = Pareto(np.float32(2), 3.)
        assert dist.dtype == np.float64
        dist = Pareto(np.float32(2), np.float32(3))
        assert dist.cdf(np.float64(4.)).dtype == np.float32
        assert dist.cdf(np.asarray([4.])).dtype == np.float64

    def test_longdouble(self):
        location = np.longdouble(1)
        dist = Pareto(location, np.longdouble(2))
        assert dist.dtype == np.longdouble
        res = dist.cdf(np.longdouble(2))
        assert res.dtype == np.longdouble
        assert_allclose(res, 0.75)
        assert_allclose(dist.ccdf(np.longdouble(2)), 0.25)
        assert_allclose(Pareto(location, np.longdouble(1e-10)).cdf(2.),
                        -np.expm1(-1e-10 * np.log(2.)), rtol=1e-14)
        assert dist.icdf(1.) == np.finfo(np.longdouble).max

    def test_python_scalar_beyond_dtype(self):
        # finite Python scalars are valid even when the dtype can't hold them
        dist = Pareto(np.float32(1), np.float32(3))
        res = dist.cdf(1e39)
        assert res.dtype == np.float32
        assert_equal(res, 1.)
        assert_equal(dist.ccdf(1e39), 0.)
        assert_equal(dist.pdf(1e39), 0.)

        dist = Pareto(np.float16(1), np.float16(2))
        res = dist.cdf(70000)
        assert res.dtype == np.float16
        assert_equal(res, 1.)

        # the message shows the argument as given
        message = ("Pareto.cdf: x parameter is -1e+39, but must be in "
                   "(0, ∞)!")
        with pytest.raises(DomainError, match=re.escape(message)):
            Pareto(np.float32(1), np.float32(3)).cdf(-1e39)
        message = "Pareto.cdf: x parameter is inf, but must be finite!"
        with pytest.raises(DomainError, match=re.escape(message)):
            Pareto(np.float32(1), np.float32(3)).cdf(np.inf)

    def test_real_dtype(self):
        message = "Parameter `location` must be of real dtype."
        with pytest.raises(ValueError, match=message):
            Pareto(1 + 1j, 2)


class TestFreeFunctions:

    def test_accessors(self):
        dist = Pareto(2, 3)
        assert paretodist.location(dist) == 2.
        assert paretodist.shape(dist) == 3.
        assert_equal(paretodist.range(dist), (0., f64_max))
        assert_equal(paretodist.support(dist), (2., f64_max))
        assert_equal(paretodist.pdf(dist, 2.), 1.5)
        assert_allclose(paretodist.cdf(dist, 4.), 0.875, rtol=1e-15)
        assert_equal(paretodist.mean(dist), 3.)
        assert_equal(paretodist.mode(dist), 2.)
        assert_equal(paretodist.median(dist), dist.median())
        assert_allclose(paretodist.variance(dist), 3., rtol=1e-15)
        assert_allclose(paretodist.standard_deviation(dist), np.sqrt(3.),
                        rtol=1e-15)
        assert_allclose(paretodist.hazard(dist, 4.), 0.75, rtol=1e-15)
        assert_allclose(paretodist.chf(dist, 4.), 3 * np.log(2.), rtol=1e-15)
        assert_allclose(paretodist.coefficient_of_variation(dist),
                        np.sqrt(3.) / 3., rtol=1e-15)

        dist = Pareto(1, 5)
        assert_allclose(paretodist.skewness(dist), dist.skewness())
        assert_allclose(paretodist.kurtosis(dist), 73.8, rtol=1e-14)
        assert_allclose(paretodist.kurtosis_excess(dist), 70.8, rtol=1e-14)

    def test_complement(self):
        dist = Pareto(1, 2)
        assert_equal(paretodist.cdf(complement(dist, 4.)), 0.0625)
        assert_equal(paretodist.cdf(complement(dist, 4.)), dist.ccdf(4.))
        assert_allclose(paretodist.quantile(dist, 0.75), 2., rtol=1e-15)
        assert_allclose(paretodist.quantile(complement(dist, 0.25)), 2.,
                        rtol=1e-15)
        assert_equal(paretodist.quantile(complement(dist, 0.)), f64_max)

        message = ("Pareto.iccdf: Probability argument is 2.0, but must be "
                   "in [0, 1]!")
        with pytest.raises(DomainError, match=re.escape(message)):
            paretodist.quantile(complement(dist, 2.))

    def test_complement_frozen(self):
        c = complement(Pareto(1, 2), 4.)
        with pytest.raises(AttributeError):
            c.param = 5.

    @pytest.mark.parametrize('function, args', [
        (paretodist.mean, ()),
        (paretodist.location, ()),
        (paretodist.cdf, (2.,)),
        (paretodist.quantile, (0.5,)),
    ])
    def test_not_a_distribution(self, function, args):
        message = "requires a distribution, but got an object of type `float`."
        with pytest.raises(TypeError, match=message):
            function(3., *args)

    def test_complement_not_a_distribution(self):
        message = "`cdf` requires a distribution"
        with pytest.raises(TypeError, match=message):
            paretodist.cdf(complement("Pareto", 2.))
