"""Population data for weighting contact matrices.

This module defines the Population value and ``as_conmat_population``,
which builds populations from plain tables, grouped tables or column
mappings.
"""

import logging
from collections.abc import Mapping
from typing import Any, Literal

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype
from pandas.core.groupby import DataFrameGroupBy
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .exceptions import InvalidColumnType

logger = logging.getLogger(__name__)

PopulationInputKind = Literal["default", "table", "list", "grouped"]


class Population(BaseModel):
    """Population counts by age.

    Attributes
    ----------
    ages : tuple of float
        Unique ages, in the order they were supplied.
    population : tuple of float
        Non-negative population count for each age.
    group : any, optional
        Value of the grouping key when built from a grouped table.
    """

    model_config = ConfigDict(frozen=True)

    ages: tuple[float, ...]
    population: tuple[float, ...]
    group: Any = None

    @field_validator("ages", "population", mode="before")
    @classmethod
    def _coerce_floats(cls, value):
        return tuple(float(v) for v in value)

    @model_validator(mode="after")
    def validate_counts(self) -> "Population":
        """Validate lengths, unique ages and non-negative counts."""
        if len(self.ages) != len(self.population):
            raise ValueError(
                f"Got {len(self.ages)} ages but {len(self.population)} population counts"
            )
        if len(set(self.ages)) != len(self.ages):
            raise ValueError("Population ages must be unique")
        if any(np.isnan(self.ages)) or any(np.isnan(self.population)):
            raise ValueError("Population ages and counts must not be missing")
        if any(count < 0 for count in self.population):
            raise ValueError("Population counts must be non-negative")
        return self

    def __len__(self) -> int:
        return len(self.ages)

    @property
    def total(self) -> float:
        return float(sum(self.population))

    def counts_for(self, ages) -> np.ndarray:
        """Return the population count for each of ``ages``.

        Raises
        ------
        ValueError
            If any age is not part of this population.
        """
        lookup = dict(zip(self.ages, self.population))
        missing = [age for age in ages if float(age) not in lookup]
        if missing:
            raise ValueError(f"No population given for ages {missing}")
        return np.array([lookup[float(age)] for age in ages], dtype=float)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"age": self.ages, "population": self.population})


def population_input_kind(data) -> PopulationInputKind:
    """Classify the shape of population input data."""
    if isinstance(data, DataFrameGroupBy):
        return "grouped"
    if isinstance(data, pd.DataFrame):
        return "table"
    if isinstance(data, Mapping):
        return "list"
    return "default"


def _check_numeric(frame: pd.DataFrame, column: str) -> None:
    if column not in frame.columns:
        raise ValueError(f"Column '{column}' not found, available columns: {list(frame.columns)}")
    dtype = frame[column].dtype
    if not is_numeric_dtype(dtype) or is_bool_dtype(dtype):
        raise InvalidColumnType(column, dtype)


def _from_default(data, age_col: str, population_col: str):
    raise TypeError(
        f"Cannot build a population from {type(data).__name__}; "
        "expected a DataFrame, a grouped DataFrame or a mapping of columns"
    )


def _from_table(
    data: pd.DataFrame, age_col: str, population_col: str, group=None
) -> Population:
    _check_numeric(data, age_col)
    _check_numeric(data, population_col)
    return Population(
        ages=data[age_col].tolist(),
        population=data[population_col].tolist(),
        group=group,
    )


def _from_list(data: Mapping, age_col: str, population_col: str) -> Population:
    missing = [col for col in (age_col, population_col) if col not in data]
    if missing:
        raise ValueError(f"Columns {missing} not found, available keys: {list(data)}")
    frame = pd.DataFrame({age_col: list(data[age_col]), population_col: list(data[population_col])})
    return _from_table(frame, age_col, population_col)


def _from_grouped(
    data: DataFrameGroupBy, age_col: str, population_col: str
) -> dict[Any, Population]:
    populations = {}
    for key, frame in data:
        populations[key] = _from_table(frame, age_col, population_col, group=key)
    logger.debug(f"Built {len(populations)} grouped populations")
    return populations


_HANDLERS = {
    "default": _from_default,
    "table": _from_table,
    "list": _from_list,
    "grouped": _from_grouped,
}


def as_conmat_population(
    data,
    age_col: str = "age",
    population_col: str = "population",
    kind: PopulationInputKind | None = None,
) -> Population | dict[Any, Population]:
    """Build population data from tabular input.

    Parameters
    ----------
    data : pd.DataFrame, DataFrameGroupBy or mapping
        Population data. A mapping must hold one sequence per column.
    age_col : str, optional
        Name of the age column. Default is 'age'.
    population_col : str, optional
        Name of the population column. Default is 'population'.
    kind : {'default', 'table', 'list', 'grouped'} or None, optional
        Input kind. Inferred with :func:`population_input_kind` when None.

    Returns
    -------
    Population or dict of {key: Population}
        A single population, or one population per group for grouped
        input.

    Raises
    ------
    InvalidColumnType
        If the age or population column is not numeric.
    ValueError
        If a column is missing, ages repeat or counts are negative.
    TypeError
        If the input kind is not supported.

    Examples
    --------
    >>> pop = as_conmat_population(pd.DataFrame({"age": [0, 1], "population": [10, 12]}))
    >>> pop.population
    (10.0, 12.0)
    """
    if kind is None:
        kind = population_input_kind(data)
    if kind not in _HANDLERS:
        raise ValueError(f"Unknown population input kind '{kind}'")
    return _HANDLERS[kind](data, age_col, population_col)
