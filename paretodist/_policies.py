import contextlib
import contextvars
import functools
import inspect
import warnings

import numpy as np

__all__ = ['ErrorPolicy', 'DomainError', 'DomainWarning',
           'DistributionOverflowError', 'DistributionOverflowWarning',
           'geterr', 'seterr', 'errstate']

_RAISE = "raise"
_WARN = "warn"
_IGNORE = "ignore"
_ACTIONS = {_RAISE, _WARN, _IGNORE}
_CATEGORIES = ('domain', 'overflow')

_defaults = {'domain': _RAISE, 'overflow': _RAISE}
_settings = contextvars.ContextVar('paretodist_errstate', default=_defaults)


class DomainError(ValueError):
    """A parameter or argument is outside its mathematically valid range."""


class DistributionOverflowError(OverflowError):
    """A result is too large to be represented by the floating point type."""


class DomainWarning(RuntimeWarning):
    """Issued instead of `DomainError` when the domain action is "warn"."""


class DistributionOverflowWarning(RuntimeWarning):
    """Issued instead of `DistributionOverflowError` when the overflow
    action is "warn"."""


def _validate_action(category, action):
    if callable(action) or action in _ACTIONS:
        return action
    message = (f"Action for `{category}` errors must be one of "
               f"{sorted(_ACTIONS)} or a callable; got `{action!r}`.")
    raise ValueError(message)


def geterr():
    """Get the current handling of domain and overflow errors

    Returns
    -------
    res : dict
        A dictionary with keys "domain" and "overflow", each mapping to the
        current action: "raise", "warn", "ignore" or a callable.

    See Also
    --------
    seterr, errstate

    Examples
    --------
    >>> import paretodist
    >>> paretodist.geterr()
    {'domain': 'raise', 'overflow': 'raise'}

    """
    return dict(_settings.get())


def seterr(*, all=None, domain=None, overflow=None):
    """Set how domain and overflow errors are handled

    Settings are local to the current thread (and `asyncio` task). Parameters
    that are not specified leave the corresponding setting unchanged, except
    that `all` sets every category not given explicitly.

    Parameters
    ----------
    all : {"raise", "warn", "ignore"} or callable, optional
        Action for every category of error.
    domain : {"raise", "warn", "ignore"} or callable, optional
        Action when a parameter or argument is invalid, or when a statistic
        is evaluated where it is undefined.

        - "raise": raise `DomainError`
        - "warn": issue `DomainWarning` and return NaN
        - "ignore": return NaN
        - callable: called as ``action(function, message, value)``; its
          return value becomes the result of the computation

    overflow : {"raise", "warn", "ignore"} or callable, optional
        Action when a result overflows. "warn" and "ignore" return ``inf``.

    Returns
    -------
    olderr : dict
        The settings before the call, suitable for passing back to `seterr`.

    """
    old = geterr()
    _settings.set(_updated(old, all=all, domain=domain, overflow=overflow))
    return old


def _updated(settings, *, all=None, domain=None, overflow=None):
    new = dict(settings)
    if all is not None:
        all = _validate_action('all', all)
        new = dict.fromkeys(_CATEGORIES, all)
    for category, action in zip(_CATEGORIES, (domain, overflow)):
        if action is not None:
            new[category] = _validate_action(category, action)
    return new


class errstate(contextlib.ContextDecorator):
    """Context manager (or decorator) for temporary error handling settings

    Accepts the same keyword arguments as `seterr`; the previous settings are
    restored on exit.

    Examples
    --------
    >>> import numpy as np
    >>> from paretodist import Pareto, errstate
    >>> with errstate(domain='ignore'):
    ...     res = Pareto(2, 3).skewness()
    >>> np.isnan(res)
    True

    """
    def __init__(self, **kwargs):
        unknown = set(kwargs) - set(_CATEGORIES) - {'all'}
        if unknown:
            message = (f"`errstate` got unexpected keyword arguments "
                       f"`{sorted(unknown)}`.")
            raise ValueError(message)
        # validate eagerly so that a bad action fails at construction
        _updated(_defaults, **kwargs)
        self._kwargs = kwargs
        self._tokens = []

    def __enter__(self):
        new = _updated(_settings.get(), **self._kwargs)
        self._tokens.append(_settings.set(new))
        return self

    def __exit__(self, *exc_info):
        _settings.reset(self._tokens.pop())


class ErrorPolicy:
    """Strategy deciding what happens when a computation cannot proceed

    Every validation failure and every undefined statistic is routed through
    `report_domain_error`; results too large to represent are routed through
    `report_overflow_error`. The policy, not the distribution, decides
    whether to raise, warn or silently return a placeholder.

    Parameters
    ----------
    domain, overflow : {None, "raise", "warn", "ignore"} or callable
        Actions for each category of error (see `seterr`). ``None`` (default)
        defers to the settings in effect when the error is reported.

    """
    def __init__(self, domain=None, overflow=None):
        self.domain = (None if domain is None
                       else _validate_action('domain', domain))
        self.overflow = (None if overflow is None
                         else _validate_action('overflow', overflow))

    def __repr__(self):
        return (f"{self.__class__.__name__}(domain={self.domain!r}, "
                f"overflow={self.overflow!r})")

    def _action(self, category):
        action = getattr(self, category)
        return _settings.get()[category] if action is None else action

    def report_domain_error(self, function, message, value):
        """Handle an argument/parameter outside its domain

        Parameters
        ----------
        function : str
            The public entry point that detected the error, e.g. "Pareto.pdf".
        message : str
            A template with a single ``{}`` field for the offending value.
        value : scalar
            The offending value.

        Returns
        -------
        result : scalar
            The value to use as the result of the computation.

        """
        return self._handle('domain', function, message, value,
                            DomainError, DomainWarning, np.nan)

    def report_overflow_error(self, function, message, value=None):
        """Handle a result too large for the floating point type"""
        return self._handle('overflow', function, message, value,
                            DistributionOverflowError,
                            DistributionOverflowWarning, np.inf)

    def _handle(self, category, function, message, value, error, warning,
                placeholder):
        action = self._action(category)
        if callable(action):
            return action(function, message, value)
        if action == _IGNORE:
            return placeholder

        text = f"{function}: {message.format(value)}"
        if action == _RAISE:
            raise error(text)
        warnings.warn(text, warning, stacklevel=_stacklevel())
        return placeholder

    @staticmethod
    def max_value(dtype):
        """Largest finite value of `dtype`, used in place of infinity"""
        return np.finfo(dtype).max


def _stacklevel():
    # `stacklevel` for `warnings.warn` in `ErrorPolicy._handle` that points at
    # the first frame outside of the library. `functools` frames belong to
    # the `singledispatch` free functions.
    frame = inspect.currentframe().f_back
    level = 1
    while frame is not None and _is_internal(frame):
        frame = frame.f_back
        level += 1
    return level


def _is_internal(frame):
    module = frame.f_globals.get("__name__", "")
    return (module in {"paretodist", "functools"}
            or module.startswith("paretodist._"))


@functools.singledispatch
def _as_policy(policy):
    # A single action applies to every category.
    action = _validate_action('all', policy)
    return ErrorPolicy(domain=action, overflow=action)


@_as_policy.register(type(None))
def _(policy):
    return ErrorPolicy()


@_as_policy.register(ErrorPolicy)
def _(policy):
    return policy


@_as_policy.register(dict)
def _(policy):
    return ErrorPolicy(**policy)
