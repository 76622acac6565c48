"""Population-weighted rebinning of contact matrices into age brackets."""

import logging
from typing import Literal

import numpy as np

from ..utils.age_breaks import age_bracket_labels, assign_age_brackets, validate_age_breaks
from .exceptions import UndefinedAggregate
from .matrices import ContactMatrix
from .population_service import Population

logger = logging.getLogger(__name__)

AggregationMethod = Literal["mean", "sum"]


def bracket_weights(
    ages,
    population: Population,
    age_breaks,
) -> np.ndarray:
    """Build the row-weighting matrix used to aggregate age_from.

    Parameters
    ----------
    ages : sequence of float
        Single-year ages indexing the fine-grained matrix.
    population : Population
        Population counts for each of ``ages``.
    age_breaks : sequence of float
        Bracket boundaries.

    Returns
    -------
    np.ndarray
        Array of shape ``(n_brackets, len(ages))`` whose row ``k`` holds the
        population share of each age within bracket ``k`` (zero outside).

    Raises
    ------
    UndefinedAggregate
        If a bracket has no ages or zero total population.
    """
    labels = age_bracket_labels(age_breaks)
    index = assign_age_brackets(ages, age_breaks)
    counts = population.counts_for(np.asarray(ages)[index >= 0])
    weights = np.zeros((len(labels), len(ages)))
    weights[index[index >= 0], np.flatnonzero(index >= 0)] = counts

    totals = weights.sum(axis=1)
    for label, total in zip(labels, totals):
        if not total > 0:
            raise UndefinedAggregate(label)
    return weights / totals[:, None]


def bracket_columns(ages, age_breaks, method: AggregationMethod = "mean") -> np.ndarray:
    """Build the column-collapsing matrix used to aggregate age_to.

    Returns an array of shape ``(len(ages), n_brackets)``. With ``'mean'``
    each column averages the ages in its bracket; with ``'sum'`` it adds
    them up.
    """
    labels = age_bracket_labels(age_breaks)
    index = assign_age_brackets(ages, age_breaks)
    columns = np.zeros((len(ages), len(labels)))
    columns[np.flatnonzero(index >= 0), index[index >= 0]] = 1.0

    sizes = columns.sum(axis=0)
    for label, size in zip(labels, sizes):
        if size == 0:
            raise UndefinedAggregate(label)
    if method == "mean":
        columns = columns / sizes
    elif method != "sum":
        raise ValueError(f"Unknown aggregation method '{method}', expected 'mean' or 'sum'")
    return columns


def aggregate_matrix(
    matrix: np.ndarray,
    ages,
    population: Population,
    age_breaks,
    method: AggregationMethod = "mean",
) -> np.ndarray:
    """Aggregate a single-year matrix into an age bracket matrix.

    Cell ``(I, J)`` is ``sum_{a in I} w_a * agg_{b in J} C[a, b]`` where
    ``w_a`` is the population share of age ``a`` within bracket ``I`` and
    ``agg`` is the mean (or sum) over ages in bracket ``J``. Ages outside
    every bracket are ignored.
    """
    weights = bracket_weights(ages, population, age_breaks)
    columns = bracket_columns(ages, age_breaks, method)
    return weights @ np.asarray(matrix, dtype=float) @ columns


def aggregate_contact_matrix(
    contact_matrix: ContactMatrix,
    population: Population,
    age_breaks,
    method: AggregationMethod = "mean",
) -> ContactMatrix:
    """Rebin a single-year contact matrix into age brackets.

    Brackets are closed below and open above, except the last bracket which
    also includes its upper bound (use ``math.inf`` for an open-ended top
    bracket).

    Parameters
    ----------
    contact_matrix : ContactMatrix
        Fine-grained matrix, typically one row per single year of age.
    population : Population
        Population for every age of ``contact_matrix`` inside the brackets,
        used to weight the age_from dimension.
    age_breaks : sequence of float
        Strictly increasing bracket boundaries.
    method : {'mean', 'sum'}, optional
        How age_to ages are combined within a bracket. ``'mean'`` (default)
        suits rates and probabilities; ``'sum'`` keeps the number of
        contacts per person.

    Returns
    -------
    ContactMatrix
        Matrix indexed by the lower bound of each bracket.

    Raises
    ------
    UndefinedAggregate
        If a bracket contains no ages or has zero total population.
    ValueError
        If ``population`` lacks an age of ``contact_matrix``.
    """
    breaks = validate_age_breaks(age_breaks)
    aggregated = aggregate_matrix(
        contact_matrix.matrix, contact_matrix.ages, population, breaks, method
    )
    logger.debug(
        f"Aggregated {contact_matrix.shape} matrix into {aggregated.shape} using '{method}'"
    )
    return ContactMatrix(
        ages=breaks[:-1],
        matrix=aggregated,
        setting=contact_matrix.setting,
    )
