import functools
from abc import ABC, abstractmethod
from collections import namedtuple

import numpy as np

from paretodist._policies import _as_policy

oo = np.inf

__all__ = ['ContinuousDistribution']

# Notes on input validation
#
# Every public function validates its inputs before computing anything. A
# check produces a `_Failure`: a boolean mask of offending elements, a message
# template with a single `{}` field, and the array the mask refers to. The
# checks of one call are ordered (argument, then each distribution parameter
# in the order of the parameterization, then the region where a statistic is
# undefined). Only the first check with any offending element is reported to
# the error policy, and only once per call, with the first offending element
# as the value. Whatever the policy returns (usually NaN) replaces every
# element that failed *any* check. Valid elements of array inputs are still
# computed normally.
#
# Distribution parameters are stored exactly as given (after dtype
# standardization and broadcasting), even when invalid. Their failures are
# recorded at construction and re-reported by every method. This keeps
# instances immutable: no method writes to the instance.

_Failure = namedtuple('_Failure', ['mask', 'message', 'values'])


class _Domain(ABC):
    """ Representation of the applicable domain of a parameter or variable

    A `_Domain` object is responsible for storing information about the
    domain of a parameter or variable, determining whether a value is within
    the domain (`contains`), and providing a text/mathematical representation
    of itself (`__str__`). `_Domain` itself has no implementation and is meant
    for subclassing.

    Attributes
    ----------
    symbols : dict
        A map from special numerical values to symbols for use in `__str__`

    Methods
    -------
    contains(x)
        Determine whether the argument is contained within the domain (True)
        or not (False). Used for input validation.
    get_numerical_endpoints()
        Gets the numerical values of the domain endpoints, which may have been
        defined symbolically.
    __str__()
        Returns a text representation of the domain (e.g. `[0, ∞)`).
        Used in error messages.

    """
    symbols = {np.inf: "∞", -np.inf: "-∞", np.pi: "π", -np.pi: "-π"}

    @abstractmethod
    def contains(self, x):
        raise NotImplementedError()

    @abstractmethod
    def get_numerical_endpoints(self, x):
        raise NotImplementedError()

    @abstractmethod
    def __str__(self):
        raise NotImplementedError()


class _SimpleDomain(_Domain):
    """ Representation of a simply-connected domain defined by two endpoints

    Each endpoint may be a finite scalar, positive or negative infinity, or
    be given by a single parameter. The domain may include the endpoints or
    not.

    Attributes
    ----------
    symbols : dict
        Inherited. A map from special values to symbols for use in `__str__`.
    endpoints : 2-tuple of float(s) and/or str(s)
        A tuple with two values. Each may be either a float (the numerical
        value of the endpoints of the domain) or a string (the name of the
        parameters that will define the endpoint).
    inclusive : 2-tuple of bools
        A tuple with two boolean values; each indicates whether the
        corresponding endpoint is included within the domain or not.

    Methods
    -------
    define_parameters(*parameters)
        Records any parameters used to define the endpoints of the domain
    get_numerical_endpoints(parameter_values)
        Gets the numerical values of the domain endpoints, which may have been
        defined symbolically.
    contains(item, parameter_values)
        Determines whether the argument is contained within the domain

    """
    def __init__(self, endpoints=(-oo, oo), inclusive=(False, False)):
        a, b = endpoints
        self.endpoints = np.asarray(a)[()], np.asarray(b)[()]
        self.inclusive = inclusive
        # instances must not share the class-level map
        self.symbols = self.symbols.copy()

    def define_parameters(self, *parameters):
        r""" Records any parameters used to define the endpoints of the domain

        Adds the keyword name of each parameter and its text representation
        to the `symbols` attribute as key:value pairs.

        Returns None, but updates the `symbols` attribute.

        Parameters
        ----------
        *parameters : _Parameter objects
            Parameters that may define the endpoints of the domain.

        """
        new_symbols = {param.name: param.symbol for param in parameters}
        self.symbols.update(new_symbols)

    def get_numerical_endpoints(self, parameter_values):
        """ Get the numerical values of the domain endpoints

        Domain endpoints may be defined symbolically. This returns numerical
        values of the endpoints given numerical values for any variables.

        Parameters
        ----------
        parameter_values : dict
            A dictionary that maps between string variable names and numerical
            values of parameters, which may define the endpoints.

        Returns
        -------
        a, b : ndarray
            Numerical values of the endpoints

        """
        a, b = self.endpoints
        # If `a` (`b`) is a string - the name of the parameter that defines
        # the endpoint of the domain - then corresponding numerical values
        # will be found in the `parameter_values` dictionary. Otherwise, it is
        # itself the array of numerical values of the endpoint.
        a = np.asarray(parameter_values.get(a, a))
        b = np.asarray(parameter_values.get(b, b))

        # an unresolved endpoint is still the name of its parameter
        if a.dtype.kind in 'US' or b.dtype.kind in 'US':
            message = ("The endpoints of the domain are defined by "
                       "parameters, but their values were not provided.")
            raise TypeError(message)

        return a, b

    def contains(self, item, parameter_values=None):
        """Determine whether the argument is contained within the domain

        Parameters
        ----------
        item : ndarray
            The argument
        parameter_values : dict
            A dictionary that maps between string variable names and numerical
            values of parameters, which may define the endpoints.

        Returns
        -------
        out : bool
            True if `item` is within the domain; False otherwise.

        """
        parameter_values = parameter_values or {}
        a, b = self.get_numerical_endpoints(parameter_values)
        left_inclusive, right_inclusive = self.inclusive

        in_left = item >= a if left_inclusive else item > a
        in_right = item <= b if right_inclusive else item < b
        return in_left & in_right


class _RealDomain(_SimpleDomain):
    """ Represents a simply-connected subset of the real line

    Completes the implementation of the `_SimpleDomain` class for simple
    domains on the real line.

    Methods
    -------
    define_parameters(*parameters)
        (Inherited) Records any parameters used to define the endpoints of the
        domain.
    get_numerical_endpoints(parameter_values)
        (Inherited) Gets the numerical values of the domain endpoints, which
        may have been defined symbolically.
    contains(item, parameter_values)
        (Inherited) Determines whether the argument is contained within the
        domain
    __str__()
        Returns a string representation of the domain, e.g. "[a, b)".

    """

    def __str__(self):
        a, b = self.endpoints
        left_inclusive, right_inclusive = self.inclusive

        left = "[" if left_inclusive else "("
        a = self.symbols.get(a, f"{a}")
        right = "]" if right_inclusive else ")"
        b = self.symbols.get(b, f"{b}")

        return f"{left}{a}, {b}{right}"


class _Parameter(ABC):
    """ Representation of a distribution parameter or variable

    A `_Parameter` object is responsible for storing information about a
    parameter or variable, providing input validation/standardization of
    values passed for that parameter, and recording how the parameter is
    named in error messages and in the text of domains. It is meant for
    subclassing.

    Attributes
    ----------
    name : str
        The keyword used to pass numerical values of the parameter into the
        initializer of the distribution
    symbol : str
        The text representation of the variable in domains defined by it.
    label : str
        How the parameter is referred to in error messages, e.g.
        "Location parameter".
    domain : _Domain
        The domain of the parameter for which the distribution is valid.

    Methods
    -------
    validate(x, parameter_values):
        Validates and standardizes the argument for use as numerical values
        of the parameter.

   """
    def __init__(self, name, *, domain, label=None, symbol=None):
        self.name = name
        self.symbol = symbol or name
        self.label = label or f"Parameter `{name}`"
        self.domain = domain

    @abstractmethod
    def validate(self, arr, parameter_values):
        raise NotImplementedError()


class _RealParameter(_Parameter):
    """ Represents a real-valued parameter

    Implements the remaining methods of _Parameter for real parameters.
    All attributes are inherited.

    """
    def validate(self, arr, parameter_values):
        """ Input validation/standardization of numerical values of a parameter

        Checks whether elements of the argument `arr` are reals, ensuring that
        the dtype reflects this, and checks which elements are finite and
        within the domain.

        Parameters
        ----------
        arr : ndarray
            The argument array to be validated and standardized.
        parameter_values : dict
            Map of parameter names to parameter value arrays.

        Returns
        -------
        arr : ndarray
            The argument array that has been validated and standardized
            (converted to an appropriate dtype, if necessary).
        dtype : NumPy dtype
            The appropriate floating point dtype of the parameter.
        failures : list of _Failure
            The finiteness check followed by the domain check. The domain
            check only flags finite elements, so each offending element is
            reported by exactly one check.

        """
        arr = np.asarray(arr)

        # minor optimization - fast track the most common types to avoid
        # overhead of np.issubdtype.
        if arr.dtype == np.float64 or arr.dtype == np.float32:
            pass
        elif arr.dtype == np.int32 or arr.dtype == np.int64:
            arr = np.asarray(arr, dtype=np.float64)
        elif np.issubdtype(arr.dtype, np.floating):
            pass
        elif np.issubdtype(arr.dtype, np.integer):
            arr = np.asarray(arr, dtype=np.float64)
        else:
            message = f"Parameter `{self.name}` must be of real dtype."
            raise ValueError(message)

        finite = np.isfinite(arr)
        inside = self.domain.contains(arr, parameter_values)
        failures = [
            _Failure(~finite, f"{self.label} is {{}}, but must be finite!",
                     arr),
            _Failure(finite & ~inside,
                     f"{self.label} is {{}}, but must be in {self.domain}!",
                     arr),
        ]
        return arr, arr.dtype, failures


class _Parameterization:
    """ Represents a parameterization of a distribution

    A `_Parameterization` object is responsible for recording the parameters
    used by the parameterization, in order, and performing input validation
    of the numerical values of these parameters.

    Attributes
    ----------
    parameters : dict
        String names (of keyword arguments) and the corresponding _Parameters.
        The order of the parameters is the order in which they are validated.

    Methods
    -------
    validation(parameter_values)
        Input validation / standardization of parameterization. Validates the
        numerical values of all parameters.
    """
    def __init__(self, *parameters):
        self.parameters = {param.name: param for param in parameters}

    def validation(self, parameter_values):
        """ Input validation / standardization of parameterization

        Parameters
        ----------
        parameter_values : dict
            The keyword arguments passed as parameter values to the
            distribution. Standardized arrays replace the originals in place.

        Returns
        -------
        failures : list of _Failure
            The checks of all parameters, in parameter order.
        dtype : dtype
            The common dtype of the parameter arrays. This will determine
            the dtype of the output of distribution methods.
        """
        failures = []
        dtypes = set()  # avoid np.result_type if there's only one type
        for name, parameter in self.parameters.items():
            arr, dtype, parameter_failures = parameter.validate(
                parameter_values[name], parameter_values)
            dtypes.add(dtype)
            failures.extend(parameter_failures)
            parameter_values[name] = arr
        dtype = (dtypes.pop() if len(dtypes) == 1
                 else np.result_type(*list(dtypes)))

        return failures, dtype


_probability = _RealParameter(
    'p', label="Probability argument",
    domain=_RealDomain(endpoints=(0, 1), inclusive=(True, True)))


def _combine_failures(failures, shape):
    # Returns a mask of all elements that fail any check and the first
    # failure that flags anything (None if everything is valid).
    invalid = np.zeros(shape, dtype=bool)
    first = None
    for failure in failures:
        if not np.any(failure.mask):
            continue
        first = failure if first is None else first
        invalid = invalid | failure.mask
    return invalid, first


def _validate_argument(f):
    # Wrapper for input / output validation and standardization of
    # distribution functions that accept one argument:
    # pdf, cdf, ccdf, hazard, chf (argument is the variable `x`)
    # icdf, iccdf (argument is a probability)
    # The argument and the distribution parameters are checked, failures are
    # reported to the error policy, the remaining elements are computed by the
    # decorated function, and the policy's result is placed wherever any check
    # failed. It also ensures that output is of the appropriate shape and
    # dtype.
    method_name = f.__name__
    inverse = method_name in {'icdf', 'iccdf'}

    @functools.wraps(f)
    def validated(self, x):
        function = f"{self.__class__.__name__}.{method_name}"
        variable = _probability if inverse else self._variable

        # Python scalars adopt the precision of the distribution. They are
        # validated as given and clipped to the range of a narrower dtype.
        scalar = isinstance(x, (int, float))
        x, dtype, failures = variable.validate(x, self._parameters)
        dtype = self._dtype if scalar else np.result_type(dtype, self._dtype)

        try:
            shape = np.broadcast_shapes(x.shape, self._shape)
        except ValueError as e:
            message = (f"The argument provided to `{function}` cannot be "
                       "broadcast to the same shape as the distribution "
                       "parameters.")
            raise ValueError(message) from e

        invalid, replacement = self._report(
            function, failures + self._failures, shape)

        if scalar:
            big = self._policy.max_value(dtype)
            x = np.clip(x, -big, big)
        x = np.asarray(x, dtype=dtype)
        parameters = self._parameters
        if replacement is not None:
            x = np.where(invalid, np.nan, x)
            parameters = {name: np.where(invalid, np.nan, arr)
                          for name, arr in parameters.items()}

        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            res = f(self, x, **parameters)

        res = np.array(np.broadcast_to(res, shape), dtype=dtype)
        if replacement is not None:
            res[invalid] = replacement
        return res[()]

    return validated


def _validate_property(f):
    # Wrapper for input / output validation and standardization of
    # distribution functions that represent properties of the distribution
    # itself: mean, median, mode, var, skewness, kurtosis, kurtosis_excess.
    # In addition to the parameter checks, a distribution can declare in
    # `_undefined` the region of one parameter outside of which the property
    # does not exist; that region is the last check.
    method_name = f.__name__

    @functools.wraps(f)
    def validated(self):
        function = f"{self.__class__.__name__}.{method_name}"
        failures = list(self._failures)

        if method_name in self._undefined:
            name, domain, message = self._undefined[method_name]
            values = self._parameters[name]
            invalid, _ = _combine_failures(failures, self._shape)
            undefined = ~invalid & ~domain.contains(values, self._parameters)
            failures.append(_Failure(undefined, message, values))

        invalid, replacement = self._report(function, failures, self._shape)

        parameters = self._parameters
        if replacement is not None:
            parameters = {name: np.where(invalid, np.nan, arr)
                          for name, arr in parameters.items()}

        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            res = f(self, **parameters)

        res = np.array(np.broadcast_to(res, self._shape), dtype=self._dtype)
        if replacement is not None:
            res[invalid] = replacement
        return res[()]

    return validated


class ContinuousDistribution:
    """ Class that represents a continuous statistical distribution.

    Instances of the class represent a random variable. They are immutable:
    the parameters are fixed at construction and every method returns a newly
    computed result, so an instance may be shared freely between threads.

    Subclasses define the class attributes `_parameterization` (the ordered
    parameters), `_variable` (the parameter describing valid arguments of
    `pdf`/`cdf`), `_x_support` and `_x_range` (domains), optionally
    `_undefined`, and the `_*_formula` methods.

    Parameters
    ----------
    policy : ErrorPolicy, str, callable or dict, optional
        How invalid parameters/arguments and undefined statistics are
        reported. A string or callable is the action for every category of
        error; a dict is passed to `ErrorPolicy` as keyword arguments.
        Default is ``ErrorPolicy()``, which follows the settings of
        `seterr`/`errstate` in effect at each call.
    **parameters : array_like
        Numerical values of the distribution parameters.

    """
    _parameterization = None
    _variable = None
    _x_support = None
    _x_range = None
    _undefined = {}

    ### Initialization

    def __init__(self, *, policy=None, **parameters):
        self._policy = _as_policy(policy)
        self._not_implemented = (
            f"`{self.__class__.__name__}` does not provide an implementation "
            "of the required method."
        )

        parameters, shape = self._broadcast(parameters)
        failures, dtype = self._parameterization.validation(parameters)
        for name, arr in parameters.items():
            arr = np.array(arr, copy=True)
            arr.flags.writeable = False
            parameters[name] = arr

        self._parameters = parameters
        self._shape = shape
        self._dtype = dtype
        self._failures = failures

        # The result is discarded; an instance with invalid parameters exists
        # if the policy does not raise.
        self._report(f"{self.__class__.__name__}.__init__", failures, shape)

    def _broadcast(self, parameters):
        # Broadcast the distribution parameters to the same shape. If the
        # arrays are not broadcastable, raise a meaningful error.
        # It's much faster to check whether broadcasting is necessary than to
        # broadcast when it's not necessary.
        parameter_vals = [np.asarray(parameter)
                          for parameter in parameters.values()]
        parameter_shapes = set((parameter.shape
                                for parameter in parameter_vals))
        if len(parameter_shapes) == 1:
            return (dict(zip(parameters.keys(), parameter_vals)),
                    parameter_vals[0].shape)

        try:
            parameter_vals = np.broadcast_arrays(*parameter_vals)
        except ValueError as e:
            parameter_names = self._get_parameter_str(parameters)
            message = (f"The parameters `{parameter_names}` provided to the "
                       f"`{self.__class__.__name__}` distribution family "
                       "cannot be broadcast to the same shape.")
            raise ValueError(message) from e
        return (dict(zip(parameters.keys(), parameter_vals)),
                parameter_vals[0].shape)

    def _get_parameter_str(self, parameters):
        # Get a string representation of the parameters like "{a, b, c}".
        parameter_names_list = list(parameters.keys())
        parameter_names_list.sort()
        return f"{{{', '.join(parameter_names_list)}}}"

    def _report(self, function, failures, shape):
        # Report the first failure to the policy. Returns the mask of elements
        # to be replaced and their replacement (None if all are valid).
        invalid, first = _combine_failures(failures, shape)
        if first is None:
            return invalid, None
        value = first.values[first.mask][0]
        replacement = self._policy.report_domain_error(
            function, first.message, value)
        return invalid, replacement

    ### Attributes

    @property
    def policy(self):
        """The error policy of the distribution"""
        return self._policy

    @property
    def dtype(self):
        """The floating point type of results"""
        return self._dtype

    ### Other magic methods

    def __repr__(self):
        """ Returns a string representation of the distribution.

        Includes the name of the distribution family and the values of the
        parameters.

        """
        class_name = self.__class__.__name__
        parameters = ", ".join(f"{name}={arr.tolist()}"
                               for name, arr in self._parameters.items())
        return f"{class_name}({parameters})"

    ### Support

    def support(self):
        """Support of the distribution

        The interval on which the density is positive. An infinite endpoint
        is represented by the largest finite value of the result dtype.
        """
        return self._endpoints(self._x_support)

    def range(self):
        """Range of the random variable

        The values the random variable could take for some parameter values,
        independent of the parameters of this instance.
        """
        return self._endpoints(self._x_range)

    def _endpoints(self, domain):
        a, b = domain.get_numerical_endpoints(self._parameters)
        big = self._policy.max_value(self._dtype)
        a = np.asarray(np.where(np.isposinf(a), big, a), dtype=self._dtype)
        b = np.asarray(np.where(np.isposinf(b), big, b), dtype=self._dtype)
        if a.shape != b.shape:
            a, b = np.broadcast_arrays(a, b)
        return a[()], b[()]

    ### Distribution properties

    @_validate_property
    def mean(self, **kwargs):
        """Distribution mean"""
        return self._mean_formula(**kwargs)

    def _mean_formula(self, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_property
    def median(self, **kwargs):
        """Distribution median"""
        return self._median_formula(**kwargs)

    def _median_formula(self, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_property
    def mode(self, **kwargs):
        """Distribution mode"""
        return self._mode_formula(**kwargs)

    def _mode_formula(self, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_property
    def var(self, **kwargs):
        """Distribution variance"""
        return self._var_formula(**kwargs)

    def _var_formula(self, **kwargs):
        raise NotImplementedError(self._not_implemented)

    def std(self):
        """Distribution standard deviation"""
        return np.sqrt(self.var())

    @_validate_property
    def skewness(self, **kwargs):
        """Distribution skewness (standardized third moment)"""
        return self._skewness_formula(**kwargs)

    def _skewness_formula(self, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_property
    def kurtosis(self, **kwargs):
        """Distribution Pearson kurtosis (standardized fourth moment)

        This is the Pearson kurtosis, the standardized fourth moment, not the
        "Fisher" or "Excess" kurtosis. The Pearson kurtosis of the normal
        distribution is 3.
        """
        return self._kurtosis_formula(**kwargs)

    def _kurtosis_formula(self, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_property
    def kurtosis_excess(self, **kwargs):
        """Distribution excess ("Fisher") kurtosis, `kurtosis() - 3`"""
        return self._kurtosis_excess_formula(**kwargs)

    def _kurtosis_excess_formula(self, **kwargs):
        raise NotImplementedError(self._not_implemented)

    ### Distribution functions
    # The following functions are exposed via a public method that accepts
    # one positional argument - the quantile or, for the inverse functions,
    # the percentile. Input/output validation is provided by the
    # `_validate_argument` decorator; the decorated method receives the
    # standardized argument and the parameters as keyword arguments and
    # delegates to the `_*_formula` implementation.
    # `cdf` and `ccdf` (and `icdf` and `iccdf`) are separate formulas rather
    # than complements of one another: computing `1 - cdf` loses all
    # precision where `cdf` is close to 1.

    @_validate_argument
    def pdf(self, x, **kwargs):
        """Probability density function"""
        return self._pdf_formula(x, **kwargs)

    def _pdf_formula(self, x, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_argument
    def cdf(self, x, **kwargs):
        """Cumulative distribution function"""
        return self._cdf_formula(x, **kwargs)

    def _cdf_formula(self, x, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_argument
    def ccdf(self, x, **kwargs):
        """Complementary cumulative distribution function (survival function)"""
        return self._ccdf_formula(x, **kwargs)

    def _ccdf_formula(self, x, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_argument
    def icdf(self, x, **kwargs):
        """Inverse of the cumulative distribution function (quantile)"""
        return self._icdf_formula(x, **kwargs)

    def _icdf_formula(self, x, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_argument
    def iccdf(self, x, **kwargs):
        """Inverse of the complementary cumulative distribution function"""
        return self._iccdf_formula(x, **kwargs)

    def _iccdf_formula(self, x, **kwargs):
        raise NotImplementedError(self._not_implemented)

    @_validate_argument
    def hazard(self, x, **kwargs):
        """Hazard function, ``pdf(x) / ccdf(x)``"""
        return self._hazard_formula(x, **kwargs)

    def _hazard_formula(self, x, **kwargs):
        d = np.asarray(self._pdf_formula(x, **kwargs))
        p = np.asarray(self._ccdf_formula(x, **kwargs))
        overflow = d > p * self._policy.max_value(d.dtype)
        res = np.where(d == 0, 0, d / p)
        if np.any(overflow):
            x = np.broadcast_to(x, overflow.shape)
            value = self._policy.report_overflow_error(
                f"{self.__class__.__name__}.hazard",
                "hazard rate overflows at x = {}.", x[overflow][0])
            res = np.where(overflow, value, res)
        return res

    @_validate_argument
    def chf(self, x, **kwargs):
        """Cumulative hazard function, ``-log(ccdf(x))``"""
        return self._chf_formula(x, **kwargs)

    def _chf_formula(self, x, **kwargs):
        return -np.log(self._ccdf_formula(x, **kwargs))
