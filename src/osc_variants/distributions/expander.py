"""Expands a DistributionSpec into concrete parameter assignments.

Each axis is computed once into a list of rows (a row is a mapping of
parameter name to value text):

    single parameter   one row per value, {name: value}
    multi parameter    one row per ParameterValueSet, all of its assignments
    stochastic         numberOfTestRuns rows, one sample per parameter

Variants are the cartesian product of the rows, axes taken in document
order, so variant numbering is reproducible.

Example:
    expander = DistributionExpander(spec, declarations=template_declarations)
    for variant in expander.expand():
        scope = variant.scope(base_scope)
"""

import itertools
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

import numpy as np

from ..errors import (
    DuplicateParameterDeclarationError,
    EmptyDistributionError,
    ParameterNotFoundError,
    TypeMismatchError,
)
from ..parameters.schema import ParameterDeclaration
from ..parameters.scope import ParameterScope
from ..values import DOUBLE, INT, UNSIGNED_INT, UNSIGNED_SHORT, OSType
from .schema import (
    DeterministicMultiParameterDistribution,
    DeterministicSingleParameterDistribution,
    DistributionSet,
    DistributionSpec,
    StochasticDistributions,
)

logger = logging.getLogger(__name__)

INTEGER_TYPES = {INT.name, UNSIGNED_INT.name, UNSIGNED_SHORT.name}

Row = Mapping[str, str]


@dataclass(frozen=True)
class Variant:
    """One combination of parameter values, numbered at expansion time."""

    index: int
    assignments: Mapping[str, str]

    @property
    def label(self) -> str:
        return f"variant {self.index}"

    def scope(self, base: ParameterScope) -> ParameterScope:
        """Overlay this variant's assignments on `base`."""
        return base.push_layer(self.assignments, label=self.label)


class VariantSequence:
    """Finite, sized, re-iterable sequence of variants.

    Axis rows are materialized once, so iterating again (or from another
    thread) yields the same variants, stochastic samples included.
    """

    def __init__(self, axes: list[list[Row]]):
        self._axes: tuple[tuple[Row, ...], ...] = tuple(tuple(rows) for rows in axes)

    def __len__(self) -> int:
        return math.prod(len(rows) for rows in self._axes)

    def __iter__(self) -> Iterator[Variant]:
        for index, combination in enumerate(itertools.product(*self._axes)):
            yield self._variant(index, combination)

    def __getitem__(self, index: int) -> Variant:
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError(index)
        # Mixed radix, last axis varies fastest as in itertools.product
        combination = []
        remainder = index
        for rows in reversed(self._axes):
            remainder, position = divmod(remainder, len(rows))
            combination.append(rows[position])
        return self._variant(index, reversed(combination))

    @staticmethod
    def _variant(index: int, combination: Iterable[Row]) -> Variant:
        merged: dict[str, str] = {}
        for row in combination:
            merged.update(row)
        return Variant(index, MappingProxyType(merged))


def format_number(parameter: str, value, ostype: OSType) -> str:
    """Text of a generated number, in the parameter's declared type."""
    if ostype.name in INTEGER_TYPES:
        if isinstance(value, Decimal):
            if value != value.to_integral_value():
                raise TypeMismatchError(parameter, ostype.name, str(value))
            text = str(int(value))
        else:
            text = str(int(round(value)))
        if not ostype.accepts(text):
            raise TypeMismatchError(parameter, ostype.name, text)
        return text
    return DOUBLE.format(float(value))


class DistributionExpander:
    """Validates a distribution spec and expands it into variants."""

    def __init__(
        self,
        spec: DistributionSpec,
        declarations: Iterable[ParameterDeclaration] | None = None,
        seed: int | None = None,
    ):
        """Initialize expander.

        Args:
            spec: Parsed distribution
            declarations: Declarations of the scenario template; when given,
                every varied parameter must be declared, and generated values
                take the declared type
            seed: Random seed used when the Stochastic block has none; None
                draws fresh entropy on every expansion
        """
        self.spec = spec
        self.declarations = (
            {d.name: d for d in declarations} if declarations is not None else None
        )
        self.seed = seed

    def _ostype(self, name: str) -> OSType:
        if self.declarations is None:
            return DOUBLE
        return self.declarations[name].ostype

    def validate(self) -> None:
        """Check every axis before any expansion work.

        Raises:
            EmptyDistributionError: No axes, or an axis with nothing to expand
            InvalidRangeError: stepWidth <= 0 or upperLimit < lowerLimit
            InvalidDistributionError: Malformed or unsupported sampling law
            DuplicateParameterDeclarationError: A parameter varied by two axes
            ParameterNotFoundError: A varied parameter the template does not declare
        """
        if not self.spec.axes:
            raise EmptyDistributionError("distribution has no deterministic or stochastic axes")

        varied: set[str] = set()
        for axis in self.spec.axes:
            axis.validate()
            for name in axis.parameter_names:
                if name in varied:
                    raise DuplicateParameterDeclarationError(
                        name, "varied by more than one distribution"
                    )
                varied.add(name)
                if self.declarations is not None and name not in self.declarations:
                    raise ParameterNotFoundError(name, available=list(self.declarations))

            if self.declarations is None:
                continue
            # Literal values are checked against declarations up front
            if isinstance(axis, DeterministicSingleParameterDistribution) and isinstance(
                axis.distribution, DistributionSet
            ):
                for value in axis.distribution.elements:
                    self.declarations[axis.parameter_name].check(value)
            elif isinstance(axis, DeterministicMultiParameterDistribution):
                for value_set in axis.value_sets:
                    for name, value in value_set.assignments:
                        self.declarations[name].check(value)

    def _rows(self, axis) -> list[Row]:
        match axis:
            case DeterministicSingleParameterDistribution(
                parameter_name=name, distribution=DistributionSet(elements=elements)
            ):
                return [{name: value} for value in elements]

            case DeterministicSingleParameterDistribution(
                parameter_name=name, distribution=distribution
            ):
                ostype = self._ostype(name)
                return [
                    {name: format_number(name, value, ostype)}
                    for value in distribution.values(name)
                ]

            case DeterministicMultiParameterDistribution(value_sets=value_sets):
                return [value_set.as_dict() for value_set in value_sets]

            case StochasticDistributions():
                return self._sample(axis)

            case _:
                raise TypeError(f"unknown distribution axis: {axis!r}")

    def _sample(self, block: StochasticDistributions) -> list[Row]:
        seed = block.random_seed if block.random_seed is not None else self.seed
        rng = np.random.default_rng(seed)
        logger.debug(
            "Sampling %d runs of %s (seed=%s)",
            block.number_of_test_runs,
            ", ".join(block.parameter_names),
            seed,
        )

        rows = []
        for _ in range(block.number_of_test_runs):
            row = {}
            for distribution in block.distributions:
                name = distribution.parameter_name
                sample = distribution.law.sample(name, rng)
                if isinstance(sample, str):
                    row[name] = sample
                else:
                    row[name] = format_number(name, sample, self._ostype(name))
            rows.append(row)
        return rows

    def expand(self) -> VariantSequence:
        """Validate, then compute every axis and return the variant sequence."""
        self.validate()
        axes = [self._rows(axis) for axis in self.spec.axes]
        variants = VariantSequence(axes)
        logger.debug(
            "Expanded %d axes (%s) into %d variants",
            len(axes),
            " x ".join(str(len(rows)) for rows in axes),
            len(variants),
        )
        return variants
