"""Error kinds raised by the contact matrix pipeline.

Every error is raised at the point of detection and is fatal to the
invocation that triggered it. They all derive from ``ValueError`` so callers
that only care about bad input can catch them together.
"""


class ConmatError(ValueError):
    """Base class for contact matrix pipeline errors."""


class InvalidColumnType(ConmatError):
    """Raised when an age or population column is not numeric."""

    def __init__(self, column: str, dtype):
        self.column = column
        self.dtype = dtype
        super().__init__(f"Column '{column}' must be numeric, got dtype '{dtype}'")


class ModelTermMismatch(ConmatError):
    """Raised when a requested smoothing term is absent from a fitted model."""

    def __init__(self, term_name: str, available: list[str]):
        self.term_name = term_name
        self.available = available
        super().__init__(
            f"Term '{term_name}' not found in model terms: {', '.join(available) or 'none'}"
        )


class IncompleteTermSet(ConmatError):
    """Raised when reconstruction is attempted without every expected term."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing predicted terms: {', '.join(missing)}")


class DimensionMismatch(ConmatError):
    """Raised when matrices of differing shape or ages are combined."""

    def __init__(self, shapes: dict[str, tuple[int, ...]], detail: str | None = None):
        self.shapes = shapes
        described = ", ".join(f"{name}={shape}" for name, shape in shapes.items())
        super().__init__(detail or f"Matrices must share the same shape, got {described}")


class UndefinedAggregate(ConmatError):
    """Raised when an age bracket has no population weight to average over."""

    def __init__(self, bracket: str):
        self.bracket = bracket
        super().__init__(f"Age bracket {bracket} has zero total population weight")
