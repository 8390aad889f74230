"""
===================================================
Pareto distribution (:mod:`paretodist`)
===================================================

.. currentmodule:: paretodist

The Pareto distribution with its density, cumulative and quantile functions
(and their complements), moments and shape statistics, for NumPy floating
point types of any precision and with configurable handling of domain
errors.

Distributions
=============

.. autosummary::
   :toctree: generated/

   Pareto
   ContinuousDistribution

Functions
=========

.. autosummary::
   :toctree: generated/

   complement
   location
   shape
   range
   support
   pdf
   cdf
   quantile
   mean
   mode
   median
   variance
   standard_deviation
   skewness
   kurtosis
   kurtosis_excess
   hazard
   chf
   coefficient_of_variation

Error handling
==============

.. autosummary::
   :toctree: generated/

   ErrorPolicy
   geterr
   seterr
   errstate
   DomainError
   DomainWarning
   DistributionOverflowError
   DistributionOverflowWarning

"""
from ._distribution_infrastructure import ContinuousDistribution
from ._pareto import Pareto
from ._complement import Complement, complement
from ._accessors import (
    location, shape, range, support, pdf, cdf, quantile,
    mean, mode, median, variance, standard_deviation,
    skewness, kurtosis, kurtosis_excess,
    hazard, chf, coefficient_of_variation)
from ._policies import (
    ErrorPolicy, DomainError, DomainWarning,
    DistributionOverflowError, DistributionOverflowWarning,
    geterr, seterr, errstate)

__version__ = "0.1.0"

__all__ = [
    'Pareto', 'ContinuousDistribution',
    'Complement', 'complement',
    'location', 'shape', 'range', 'support', 'pdf', 'cdf', 'quantile',
    'mean', 'mode', 'median', 'variance', 'standard_deviation',
    'skewness', 'kurtosis', 'kurtosis_excess',
    'hazard', 'chf', 'coefficient_of_variation',
    'ErrorPolicy', 'DomainError', 'DomainWarning',
    'DistributionOverflowError', 'DistributionOverflowWarning',
    'geterr', 'seterr', 'errstate',
]
