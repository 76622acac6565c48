"""Contact and transmission matrix schema definitions.

This module defines Pydantic models for age grid, aggregation and
transmission matrix requests and responses.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .common import AgeBreaksConfig


class AgeGridRequest(BaseModel):
    """Request for the feature grid of a set of ages.

    Attributes
    ----------
    ages : list of float
        Ages to cross with themselves.
    """

    ages: list[float] = Field(..., min_length=1, description="Ages to build the grid for")


class AgeGridResponse(BaseModel):
    """Feature grid rows.

    Attributes
    ----------
    n_rows : int
        Number of age pairs.
    columns : list of str
        Column names of each row.
    rows : list of dict of {str: float}
        One entry per (age_from, age_to) pair with its covariates.
    """

    n_rows: int
    columns: list[str]
    rows: list[dict[str, float]]


class AggregateRequest(AgeBreaksConfig):
    """Request to rebin a single-year contact matrix into age brackets.

    Attributes
    ----------
    ages : list of float
        Ages indexing the matrix rows and columns.
    matrix : list of list of float
        Square contact matrix, rows are age_from.
    population : list of float
        Population for each of ``ages``.
    method : {'mean', 'sum'} or None
        How age_to ages are combined. None uses the configured default.
    """

    ages: list[float] = Field(..., min_length=1)
    matrix: list[list[float]]
    population: list[float]
    method: Literal["mean", "sum"] | None = None

    @model_validator(mode="after")
    def validate_sizes(self) -> "AggregateRequest":
        """Validate that matrix and population match the ages."""
        n = len(self.ages)
        if len(self.matrix) != n or any(len(row) != n for row in self.matrix):
            raise ValueError(f"'matrix' must be {n}x{n} to match 'ages'")
        if len(self.population) != n:
            raise ValueError(f"'population' must have {n} values to match 'ages'")
        return self


class ContactMatrixResponse(BaseModel):
    """An age bracket contact matrix.

    Attributes
    ----------
    age_groups : list of str
        Bracket labels for the matrix rows and columns.
    matrix : list of list of float
        Aggregated contact rates.
    method : str
        Aggregation method used.
    """

    age_groups: list[str]
    matrix: list[list[float]]
    method: str


class TransmissionRequest(AgeBreaksConfig):
    """Request to compose setting matrices into a transmission matrix.

    Attributes
    ----------
    settings : dict of {str: list of list of float}
        Setting matrices keyed by setting name (home, work, school, other).
    ages : list of float or None
        Ages indexing the setting matrices. Required when they need
        rebinning to the age breaks.
    population : list of float or None
        Population for each of ``ages``, used for rebinning.
    transmission_probabilities : dict of {str: list of list of float} or None
        Probability of transmission given contact per setting.
    """

    settings: dict[str, list[list[float]]] = Field(..., min_length=1)
    ages: list[float] | None = None
    population: list[float] | None = None
    transmission_probabilities: dict[str, list[list[float]]] | None = None

    @model_validator(mode="after")
    def validate_population(self) -> "TransmissionRequest":
        """Validate that population is given together with matching ages."""
        if self.population is not None:
            if self.ages is None:
                raise ValueError("'ages' must be provided together with 'population'")
            if len(self.population) != len(self.ages):
                raise ValueError("'population' must have one value per age")
        return self


class TransmissionResponse(BaseModel):
    """A composed transmission probability matrix.

    Attributes
    ----------
    age_groups : list of str
        Bracket labels for the matrix rows and columns.
    open_ended : bool
        Whether the last bracket is open-ended.
    matrix : list of list of float
        Composite transmission probabilities.
    settings : dict of {str: list of list of float}
        Per-setting transmission probabilities by bracket.
    contributions : dict of {str: list of list of float}
        Per-setting contact-weighted transmission (contacts times
        probabilities) by bracket. Empty when no transmission probabilities
        were given.
    """

    age_groups: list[str]
    open_ended: bool
    matrix: list[list[float]]
    settings: dict[str, list[list[float]]] = Field(
        ..., description="Per-setting transmission matrices"
    )
    contributions: dict[str, list[list[float]]] = Field(
        default_factory=dict, description="Per-setting contacts times transmission probabilities"
    )
