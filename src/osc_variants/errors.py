"""Error taxonomy for parameter, distribution and catalog resolution.

Every error names the parameter, catalog or distribution that failed so a
caller can report it without inspecting the document again.
"""

from pathlib import Path


class EngineError(Exception):
    """Base class for all resolution failures."""

    pass


class DocumentError(EngineError):
    """Raised when an input document is unusable (missing file, wrong root)."""

    pass


# Parameters


class ParameterNotFoundError(EngineError):
    """Raised when a parameter reference has no value in scope."""

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = sorted(available or [])
        message = f"Parameter '{name}' not found"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class TypeMismatchError(EngineError):
    """Raised when a parameter value does not parse as the expected type."""

    def __init__(self, name: str, expected: str, got: str):
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(
            f"Parameter '{name}': expected {expected}, got '{got}'"
        )


class UnevaluatedExpressionError(EngineError):
    """Raised when an expression is reached and no evaluator is configured."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Expression '{text}' cannot be evaluated")


class DuplicateParameterDeclarationError(EngineError):
    """Raised when a parameter is declared twice in an incompatible way."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Duplicate declaration of parameter '{name}': {reason}")


class ConstraintViolationError(EngineError):
    """Raised when a value breaks every constraint group of its declaration."""

    def __init__(self, name: str, value: str, constraints: list[str]):
        self.name = name
        self.value = value
        self.constraints = constraints
        super().__init__(
            f"Parameter '{name}' value '{value}' violates constraints: "
            + " or ".join(constraints)
        )


# Distributions


class EmptyDistributionError(EngineError):
    """Raised when a distribution (or an axis of it) has nothing to expand."""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Empty distribution: {what}")


class InvalidRangeError(EngineError):
    """Raised for a range with a non-positive step or inverted limits."""

    def __init__(self, parameter: str, lower: str, upper: str, step: str):
        self.parameter = parameter
        self.lower = lower
        self.upper = upper
        self.step = step
        super().__init__(
            f"Invalid range for '{parameter}': "
            f"lowerLimit={lower}, upperLimit={upper}, stepWidth={step}"
        )


class InvalidDistributionError(EngineError):
    """Raised for malformed or unsupported distribution definitions."""

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"Invalid distribution for '{parameter}': {reason}")


# Catalogs


class CatalogNotConfiguredError(EngineError):
    """Raised when no configured catalog location provides the catalog."""

    def __init__(self, catalog: str, searched: list[Path] | None = None):
        self.catalog = catalog
        self.searched = list(searched or [])
        message = f"Catalog '{catalog}' not configured"
        if self.searched:
            message += " (searched: " + ", ".join(str(p) for p in self.searched) + ")"
        super().__init__(message)


class EntryNotFoundError(EngineError):
    """Raised when a catalog has no entry with the referenced name."""

    def __init__(self, catalog: str, entry: str):
        self.catalog = catalog
        self.entry = entry
        super().__init__(f"Catalog entry '{entry}' not found in catalog '{catalog}'")


class CatalogTypeMismatchError(EngineError):
    """Raised when an entry's kind is not legal at the reference site."""

    def __init__(self, catalog: str, entry: str, expected: list[str], actual: str):
        self.catalog = catalog
        self.entry = entry
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Catalog entry '{catalog}/{entry}' is a {actual}, "
            f"expected one of: {', '.join(expected)}"
        )


class MaxCatalogDepthExceededError(EngineError):
    """Raised when nested catalog references go deeper than allowed."""

    def __init__(self, catalog: str, entry: str, max_depth: int):
        self.catalog = catalog
        self.entry = entry
        self.max_depth = max_depth
        super().__init__(
            f"Catalog reference '{catalog}/{entry}' exceeds maximum nesting "
            f"depth {max_depth} (cyclic catalog reference?)"
        )


class CatalogFileParseError(EngineError):
    """Raised when a catalog file cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to parse catalog file {self.path}: {reason}")
