"""Schema definitions for parameter value distributions.

Example XML:
```xml
<ParameterValueDistribution>
  <ScenarioFile filepath="cut_in.xosc"/>
  <Deterministic>
    <DeterministicSingleParameterDistribution parameterName="EgoSpeed">
      <DistributionRange stepWidth="5.0">
        <Range lowerLimit="5.0" upperLimit="60.0"/>
      </DistributionRange>
    </DeterministicSingleParameterDistribution>
    <DeterministicMultiParameterDistribution>
      <ValueSetDistribution>
        <ParameterValueSet>
          <ParameterAssignment parameterRef="Weather" value="rain"/>
          <ParameterAssignment parameterRef="Friction" value="0.5"/>
        </ParameterValueSet>
      </ValueSetDistribution>
    </DeterministicMultiParameterDistribution>
  </Deterministic>
</ParameterValueDistribution>
```

Limits, weights and moments are kept as the text of the document and
checked by validate(), so that every problem is reported before any
expansion work starts.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

import numpy as np

from ..errors import EmptyDistributionError, InvalidDistributionError, InvalidRangeError

# Rejection sampling attempts before a truncated law is declared unusable
MAX_REJECTIONS = 10_000


def _number(parameter: str, what: str, text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise InvalidDistributionError(parameter, f"{what} '{text}' is not a number") from None
    if math.isnan(value):
        raise InvalidDistributionError(parameter, f"{what} is NaN")
    return value


def _decimal(parameter: str, what: str, text: str) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidDistributionError(parameter, f"{what} '{text}' is not a number") from None
    if not value.is_finite():
        raise InvalidDistributionError(parameter, f"{what} '{text}' is not finite")
    return value


# Deterministic


@dataclass(frozen=True)
class DistributionSet:
    """Explicit values, enumerated in document order."""

    elements: tuple[str, ...]

    def validate(self, parameter: str) -> None:
        if not self.elements:
            raise EmptyDistributionError(f"DistributionSet of '{parameter}' has no elements")

    def values(self, parameter: str) -> list[str]:
        return list(self.elements)


@dataclass(frozen=True)
class DistributionRange:
    """lowerLimit, lowerLimit + stepWidth, ... up to upperLimit inclusive."""

    lower_limit: str
    upper_limit: str
    step_width: str

    def _limits(self, parameter: str) -> tuple[Decimal, Decimal, Decimal]:
        return (
            _decimal(parameter, "lowerLimit", self.lower_limit),
            _decimal(parameter, "upperLimit", self.upper_limit),
            _decimal(parameter, "stepWidth", self.step_width),
        )

    def validate(self, parameter: str) -> None:
        lower, upper, step = self._limits(parameter)
        if step <= 0 or upper < lower:
            raise InvalidRangeError(parameter, self.lower_limit, self.upper_limit, self.step_width)

    def count(self, parameter: str) -> int:
        lower, upper, step = self._limits(parameter)
        return int((upper - lower) // step) + 1

    def values(self, parameter: str) -> list[Decimal]:
        lower, _, step = self._limits(parameter)
        # Decimal stepping: 0.1 * 3 is exactly 0.3
        return [lower + step * i for i in range(self.count(parameter))]


@dataclass(frozen=True)
class UserDefinedDistribution:
    """Tool-specific distribution; carried but not expandable."""

    type: str
    content: str = ""

    def validate(self, parameter: str) -> None:
        raise InvalidDistributionError(
            parameter, f"user defined distribution '{self.type}' is not supported"
        )


@dataclass(frozen=True)
class DeterministicSingleParameterDistribution:
    parameter_name: str
    distribution: Union[DistributionSet, DistributionRange, UserDefinedDistribution]

    @property
    def parameter_names(self) -> list[str]:
        return [self.parameter_name]

    def validate(self) -> None:
        self.distribution.validate(self.parameter_name)


@dataclass(frozen=True)
class ParameterValueSet:
    """Assignments applied together, never combined with other sets' members."""

    assignments: tuple[tuple[str, str], ...]  # (parameterRef, value)

    def as_dict(self) -> dict[str, str]:
        return dict(self.assignments)


@dataclass(frozen=True)
class DeterministicMultiParameterDistribution:
    value_sets: tuple[ParameterValueSet, ...]

    @property
    def parameter_names(self) -> list[str]:
        names: list[str] = []
        for value_set in self.value_sets:
            for name, _ in value_set.assignments:
                if name not in names:
                    names.append(name)
        return names

    def validate(self) -> None:
        if not self.value_sets:
            raise EmptyDistributionError("ValueSetDistribution has no ParameterValueSet")
        for i, value_set in enumerate(self.value_sets):
            if not value_set.assignments:
                raise EmptyDistributionError(f"ParameterValueSet {i} has no assignments")
            names = [name for name, _ in value_set.assignments]
            if len(names) != len(set(names)):
                raise InvalidDistributionError(
                    ", ".join(names), f"ParameterValueSet {i} assigns a parameter twice"
                )


# Stochastic


@dataclass(frozen=True)
class Range:
    lower_limit: str
    upper_limit: str

    def bounds(self, parameter: str) -> tuple[float, float]:
        lower = _number(parameter, "lowerLimit", self.lower_limit)
        upper = _number(parameter, "upperLimit", self.upper_limit)
        if upper < lower:
            raise InvalidRangeError(parameter, self.lower_limit, self.upper_limit, "-")
        return lower, upper


def _truncated(parameter: str, draw, bounds: tuple[float, float] | None) -> float:
    if bounds is None:
        return float(draw())
    lower, upper = bounds
    for _ in range(MAX_REJECTIONS):
        value = float(draw())
        if lower <= value <= upper:
            return value
    raise InvalidDistributionError(
        parameter, f"no sample fell inside [{lower}, {upper}] after {MAX_REJECTIONS} draws"
    )


@dataclass(frozen=True)
class NormalDistribution:
    expected_value: str
    variance: str
    range: Range | None = None

    def validate(self, parameter: str) -> None:
        _number(parameter, "expectedValue", self.expected_value)
        if _number(parameter, "variance", self.variance) < 0:
            raise InvalidDistributionError(parameter, "variance must not be negative")
        if self.range is not None:
            self.range.bounds(parameter)

    def sample(self, parameter: str, rng: np.random.Generator) -> float:
        mean = float(self.expected_value)
        std = math.sqrt(float(self.variance))
        bounds = self.range.bounds(parameter) if self.range else None
        return _truncated(parameter, lambda: rng.normal(mean, std), bounds)


@dataclass(frozen=True)
class LogNormalDistribution:
    """Log-normal law; expectedValue and variance describe the underlying normal."""

    expected_value: str
    variance: str
    range: Range | None = None

    def validate(self, parameter: str) -> None:
        _number(parameter, "expectedValue", self.expected_value)
        if _number(parameter, "variance", self.variance) < 0:
            raise InvalidDistributionError(parameter, "variance must not be negative")
        if self.range is not None:
            self.range.bounds(parameter)

    def sample(self, parameter: str, rng: np.random.Generator) -> float:
        mean = float(self.expected_value)
        sigma = math.sqrt(float(self.variance))
        bounds = self.range.bounds(parameter) if self.range else None
        return _truncated(parameter, lambda: rng.lognormal(mean, sigma), bounds)


@dataclass(frozen=True)
class UniformDistribution:
    range: Range

    def validate(self, parameter: str) -> None:
        self.range.bounds(parameter)

    def sample(self, parameter: str, rng: np.random.Generator) -> float:
        lower, upper = self.range.bounds(parameter)
        return float(rng.uniform(lower, upper))


@dataclass(frozen=True)
class PoissonDistribution:
    expected_value: str
    range: Range | None = None

    def validate(self, parameter: str) -> None:
        if _number(parameter, "expectedValue", self.expected_value) < 0:
            raise InvalidDistributionError(parameter, "expectedValue must not be negative")
        if self.range is not None:
            self.range.bounds(parameter)

    def sample(self, parameter: str, rng: np.random.Generator) -> float:
        lam = float(self.expected_value)
        bounds = self.range.bounds(parameter) if self.range else None
        return _truncated(parameter, lambda: rng.poisson(lam), bounds)


def _probabilities(parameter: str, weights: list[str]) -> np.ndarray:
    values = np.array([_number(parameter, "weight", w) for w in weights])
    if (values < 0).any() or values.sum() <= 0:
        raise InvalidDistributionError(parameter, "weights must be non-negative with a positive sum")
    return values / values.sum()


@dataclass(frozen=True)
class HistogramBin:
    range: Range
    weight: str


@dataclass(frozen=True)
class Histogram:
    """Pick a bin by weight, then a uniform value inside it."""

    bins: tuple[HistogramBin, ...]

    def validate(self, parameter: str) -> None:
        if not self.bins:
            raise EmptyDistributionError(f"Histogram of '{parameter}' has no bins")
        for histogram_bin in self.bins:
            histogram_bin.range.bounds(parameter)
        _probabilities(parameter, [b.weight for b in self.bins])

    def sample(self, parameter: str, rng: np.random.Generator) -> float:
        p = _probabilities(parameter, [b.weight for b in self.bins])
        chosen = self.bins[int(rng.choice(len(self.bins), p=p))]
        lower, upper = chosen.range.bounds(parameter)
        return float(rng.uniform(lower, upper))


@dataclass(frozen=True)
class ProbabilityDistributionSetElement:
    value: str
    weight: str


@dataclass(frozen=True)
class ProbabilityDistributionSet:
    """Pick one of the listed values by weight."""

    elements: tuple[ProbabilityDistributionSetElement, ...]

    def validate(self, parameter: str) -> None:
        if not self.elements:
            raise EmptyDistributionError(
                f"ProbabilityDistributionSet of '{parameter}' has no elements"
            )
        _probabilities(parameter, [e.weight for e in self.elements])

    def sample(self, parameter: str, rng: np.random.Generator) -> str:
        p = _probabilities(parameter, [e.weight for e in self.elements])
        return self.elements[int(rng.choice(len(self.elements), p=p))].value


SamplingLaw = Union[
    NormalDistribution,
    LogNormalDistribution,
    UniformDistribution,
    PoissonDistribution,
    Histogram,
    ProbabilityDistributionSet,
    UserDefinedDistribution,
]


@dataclass(frozen=True)
class StochasticDistribution:
    """One parameter bound to a sampling law."""

    parameter_name: str
    law: SamplingLaw


@dataclass(frozen=True)
class StochasticDistributions:
    """Stochastic block: numberOfTestRuns rows, one sample per parameter each."""

    number_of_test_runs: int
    distributions: tuple[StochasticDistribution, ...]
    random_seed: int | None = None

    @property
    def parameter_names(self) -> list[str]:
        return [d.parameter_name for d in self.distributions]

    def validate(self) -> None:
        if self.number_of_test_runs < 1:
            raise EmptyDistributionError(
                f"numberOfTestRuns must be at least 1, got {self.number_of_test_runs}"
            )
        if not self.distributions:
            raise EmptyDistributionError("Stochastic block has no StochasticDistribution")
        for distribution in self.distributions:
            distribution.law.validate(distribution.parameter_name)


Axis = Union[
    DeterministicSingleParameterDistribution,
    DeterministicMultiParameterDistribution,
    StochasticDistributions,
]


@dataclass(frozen=True)
class DistributionSpec:
    """Top-level distribution node: variation axes in document order."""

    axes: tuple[Axis, ...]
    scenario_file: str | None = None
