"""Reads a ParameterValueDistribution element into a DistributionSpec."""

from ..document import Element
from ..errors import DocumentError
from .schema import (
    Axis,
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
    SamplingLaw,
    StochasticDistribution,
    StochasticDistributions,
    UniformDistribution,
    UserDefinedDistribution,
)


def _required(element: Element, attribute: str) -> str:
    value = element.get(attribute)
    if value is None:
        raise DocumentError(f"<{element.tag}> is missing attribute '{attribute}'")
    return value


def _range(element: Element | None, owner: str) -> Range:
    if element is None:
        raise DocumentError(f"<{owner}> is missing its <Range>")
    return Range(_required(element, "lowerLimit"), _required(element, "upperLimit"))


def _optional_range(element: Element) -> Range | None:
    node = element.find("Range")
    return _range(node, element.tag) if node is not None else None


def _single(element: Element) -> DeterministicSingleParameterDistribution:
    name = _required(element, "parameterName")
    if not element.children:
        raise DocumentError(f"Distribution of '{name}' has no content")
    node = element.children[0]

    if node.tag == "DistributionSet":
        distribution = DistributionSet(
            tuple(_required(e, "value") for e in node.findall("Element"))
        )
    elif node.tag == "DistributionRange":
        limits = _range(node.find("Range"), node.tag)
        distribution = DistributionRange(
            lower_limit=limits.lower_limit,
            upper_limit=limits.upper_limit,
            step_width=_required(node, "stepWidth"),
        )
    elif node.tag == "UserDefinedDistribution":
        distribution = UserDefinedDistribution(node.get("type", ""), node.text or "")
    else:
        raise DocumentError(f"Unknown deterministic distribution <{node.tag}> for '{name}'")

    return DeterministicSingleParameterDistribution(name, distribution)


def _multi(element: Element) -> DeterministicMultiParameterDistribution:
    node = element.find("ValueSetDistribution")
    if node is None:
        raise DocumentError("DeterministicMultiParameterDistribution has no <ValueSetDistribution>")
    value_sets = tuple(
        ParameterValueSet(
            tuple(
                (_required(a, "parameterRef"), _required(a, "value"))
                for a in value_set.findall("ParameterAssignment")
            )
        )
        for value_set in node.findall("ParameterValueSet")
    )
    return DeterministicMultiParameterDistribution(value_sets)


def _law(element: Element) -> SamplingLaw:
    match element.tag:
        case "NormalDistribution":
            return NormalDistribution(
                _required(element, "expectedValue"),
                _required(element, "variance"),
                _optional_range(element),
            )
        case "LogNormalDistribution":
            return LogNormalDistribution(
                _required(element, "expectedValue"),
                _required(element, "variance"),
                _optional_range(element),
            )
        case "UniformDistribution":
            return UniformDistribution(_range(element.find("Range"), element.tag))
        case "PoissonDistribution":
            return PoissonDistribution(_required(element, "expectedValue"), _optional_range(element))
        case "Histogram":
            return Histogram(
                tuple(
                    HistogramBin(_range(b.find("Range"), b.tag), _required(b, "weight"))
                    for b in element.findall("HistogramBin")
                )
            )
        case "ProbabilityDistributionSet":
            return ProbabilityDistributionSet(
                tuple(
                    ProbabilityDistributionSetElement(_required(e, "value"), _required(e, "weight"))
                    for e in element.findall("Element")
                )
            )
        case "UserDefinedDistribution":
            return UserDefinedDistribution(element.get("type", ""), element.text or "")
        case _:
            raise DocumentError(f"Unknown stochastic distribution <{element.tag}>")


def _stochastic(element: Element) -> StochasticDistributions:
    runs = _required(element, "numberOfTestRuns")
    try:
        number_of_test_runs = int(runs)
    except ValueError:
        raise DocumentError(f"numberOfTestRuns '{runs}' is not an integer") from None

    seed = element.get("randomSeed")
    try:
        random_seed = int(float(seed)) if seed is not None else None
    except ValueError:
        raise DocumentError(f"randomSeed '{seed}' is not a number") from None

    distributions = []
    for node in element.findall("StochasticDistribution"):
        name = _required(node, "parameterName")
        if not node.children:
            raise DocumentError(f"Stochastic distribution of '{name}' has no content")
        distributions.append(StochasticDistribution(name, _law(node.children[0])))

    return StochasticDistributions(number_of_test_runs, tuple(distributions), random_seed)


def find_distribution(root: Element) -> Element | None:
    """The ParameterValueDistribution element of a document, if it is one."""
    if root.tag == "ParameterValueDistribution":
        return root
    return root.find("ParameterValueDistribution")


def parse_distribution(element: Element) -> DistributionSpec:
    """Read a ParameterValueDistribution (or a document holding one).

    Axes keep document order, which fixes the order of generated variants.
    """
    node = find_distribution(element)
    if node is None:
        raise DocumentError(f"<{element.tag}> is not a parameter value distribution")

    scenario_file = None
    axes: list[Axis] = []
    for child in node.children:
        if child.tag == "ScenarioFile":
            scenario_file = _required(child, "filepath")
        elif child.tag == "Deterministic":
            for axis in child.children:
                if axis.tag == "DeterministicSingleParameterDistribution":
                    axes.append(_single(axis))
                elif axis.tag == "DeterministicMultiParameterDistribution":
                    axes.append(_multi(axis))
                else:
                    raise DocumentError(f"Unknown deterministic axis <{axis.tag}>")
        elif child.tag == "Stochastic":
            axes.append(_stochastic(child))

    return DistributionSpec(axes=tuple(axes), scenario_file=scenario_file)
