"""Parameter value distributions and their expansion into variants."""

from .expander import DistributionExpander, Variant, VariantSequence
from .parser import find_distribution, parse_distribution
from .schema import (
    DeterministicMultiParameterDistribution,
    DeterministicSingleParameterDistribution,
    DistributionRange,
    DistributionSet,
    DistributionSpec,
    Histogram,
    HistogramBin,
    LogNormalDistribution,
    NormalDistribution,
    ParameterValueSet,
    PoissonDistribution,
    ProbabilityDistributionSet,
    ProbabilityDistributionSetElement,
    Range,
    StochasticDistribution,
    StochasticDistributions,
    UniformDistribution,
    UserDefinedDistribution,
)

__all__ = [
    "DistributionExpander",
    "Variant",
    "VariantSequence",
    "parse_distribution",
    "find_distribution",
    "DistributionSpec",
    "DistributionSet",
    "DistributionRange",
    "DeterministicSingleParameterDistribution",
    "DeterministicMultiParameterDistribution",
    "ParameterValueSet",
    "StochasticDistributions",
    "StochasticDistribution",
    "NormalDistribution",
    "LogNormalDistribution",
    "UniformDistribution",
    "PoissonDistribution",
    "Histogram",
    "HistogramBin",
    "ProbabilityDistributionSet",
    "ProbabilityDistributionSetElement",
    "Range",
    "UserDefinedDistribution",
]
