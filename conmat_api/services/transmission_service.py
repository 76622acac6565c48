"""Composition of setting matrices into transmission probability matrices.

Each setting (home, work, school, other) contributes a contact matrix and,
optionally, the probability that a contact in that setting leads to
transmission. The composite is the probability of transmission given a
contact in any setting, rebinned to the requested age brackets.
"""

import logging
from collections.abc import Mapping

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype

from ..utils.age_breaks import validate_age_breaks
from .aggregation import aggregate_matrix
from .exceptions import DimensionMismatch
from .matrices import ContactMatrix, TransmissionProbabilityMatrix
from .population_service import Population

logger = logging.getLogger(__name__)

# Eyre et al. setting names mapped to the contact model settings
EYRE_SETTING_MAP: dict[str, tuple[str, ...]] = {
    "household": ("home",),
    "work_education": ("work", "school"),
    "events_activities": ("other",),
}


def _as_array(matrix) -> tuple[np.ndarray, tuple[float, ...] | None]:
    """Return a matrix as a float array plus its age labels, when known."""
    if isinstance(matrix, ContactMatrix):
        return np.asarray(matrix.matrix, dtype=float), matrix.ages
    if isinstance(matrix, pd.DataFrame):
        if is_numeric_dtype(matrix.index):
            contact_matrix = ContactMatrix.from_frame(matrix)
            return np.asarray(contact_matrix.matrix), contact_matrix.ages
        return matrix.to_numpy(dtype=float), None
    return np.asarray(matrix, dtype=float), None


def _check_dimensions(matrices: Mapping[str, np.ndarray]) -> None:
    shapes = {name: m.shape for name, m in matrices.items()}
    first = next(iter(shapes.values()))
    if len(first) != 2 or first[0] != first[1]:
        raise ValueError(f"Setting matrices must be square, got shape {first}")
    if any(shape != first for shape in shapes.values()):
        raise DimensionMismatch(shapes)


def combine_settings(
    probabilities: Mapping[str, np.ndarray],
    contacts: Mapping[str, np.ndarray] | None = None,
) -> np.ndarray:
    """Combine per-setting transmission probabilities into one matrix.

    With ``contacts`` each setting is weighted by its contact rate, giving
    ``sum_s C_s * P_s / sum_s C_s`` (zero where there are no contacts at
    all). Without ``contacts`` every setting has the same weight.
    """
    stacked = np.stack(list(probabilities.values()))
    if contacts is None:
        return stacked.mean(axis=0)

    weights = np.stack([contacts[name] for name in probabilities])
    total = weights.sum(axis=0)
    return np.divide(
        (weights * stacked).sum(axis=0),
        total,
        out=np.zeros_like(total),
        where=total > 0,
    )


def _rebin(
    matrix: np.ndarray,
    ages: tuple[float, ...] | None,
    population: Population | None,
    age_breaks: tuple[float, ...],
) -> np.ndarray:
    n_brackets = len(age_breaks) - 1
    if ages is None:
        if matrix.shape[0] == n_brackets:
            return matrix
        raise ValueError(
            f"Matrices have {matrix.shape[0]} rows but age_breaks define {n_brackets} "
            "brackets; pass ContactMatrix inputs so they can be rebinned"
        )
    if tuple(ages) == tuple(age_breaks[:-1]):
        # Already indexed by bracket lower bounds
        return matrix
    if population is None:
        raise ValueError("A population is required to rebin matrices to age_breaks")
    return aggregate_matrix(matrix, ages, population, age_breaks, method="mean")


def _align_probabilities(
    name: str,
    probability,
    contacts: np.ndarray,
    ages: tuple[float, ...] | None,
) -> np.ndarray:
    """Return a setting's probabilities on the same ages as its contacts.

    When both sides carry ages the probabilities are reindexed onto the
    contact ages; otherwise they are matched by position and must have the
    same shape.
    """
    array, probability_ages = _as_array(probability)
    if ages is not None and probability_ages is not None:
        frame = pd.DataFrame(array, index=probability_ages, columns=probability_ages)
        missing = [age for age in ages if age not in frame.index]
        if missing:
            raise DimensionMismatch(
                {name: contacts.shape, f"{name}_probability": array.shape},
                detail=f"Transmission probabilities for '{name}' do not cover ages {missing}",
            )
        return frame.reindex(index=list(ages), columns=list(ages)).to_numpy()

    _check_dimensions({name: contacts, f"{name}_probability": array})
    return array


def transmission_probability_matrix(
    *matrices,
    age_breaks,
    population: Population | None = None,
    transmission_probabilities: Mapping | None = None,
    **named_matrices,
) -> TransmissionProbabilityMatrix:
    """Create a transmission probability matrix from setting matrices.

    Parameters
    ----------
    *matrices : ContactMatrix, np.ndarray or pd.DataFrame
        Setting matrices named positionally ``setting_1``, ``setting_2``...
    age_breaks : sequence of float
        Strictly increasing bracket boundaries; the last may be ``math.inf``.
    population : Population, optional
        Population used to rebin single-year matrices to ``age_breaks``.
        Not needed when the matrices already have one row per bracket.
    transmission_probabilities : mapping of {str: matrix}, optional
        Probability of transmission given contact for each setting. When
        omitted the setting matrices are used as transmission matrices
        directly.
    **named_matrices : ContactMatrix, np.ndarray or pd.DataFrame
        Setting matrices keyed by setting name, e.g. ``home=...``.

    Returns
    -------
    TransmissionProbabilityMatrix
        Composite matrix, per-setting transmission matrices and (with
        probabilities) per-setting contributions, one row and column per
        age bracket.

    Raises
    ------
    DimensionMismatch
        If the setting (or probability) matrices differ in shape, or
        age-labelled probabilities do not cover the contact ages.
    ValueError
        If no matrices are given, a setting lacks a probability matrix, or
        matrices need rebinning without ages or population.

    Examples
    --------
    >>> m = np.full((9, 9), 0.05)
    >>> tpm = transmission_probability_matrix(
    ...     home=m, work=m, age_breaks=[*range(0, 90, 10), float("inf")]
    ... )
    >>> tpm.shape
    (9, 9)
    """
    breaks = validate_age_breaks(age_breaks)

    inputs = {f"setting_{i}": m for i, m in enumerate(matrices, start=1)}
    inputs.update(named_matrices)
    if not inputs:
        raise ValueError("At least one setting matrix must be provided")

    arrays = {}
    setting_ages = {}
    for name, matrix in inputs.items():
        arrays[name], setting_ages[name] = _as_array(matrix)
    _check_dimensions(arrays)

    known_ages = {ages for ages in setting_ages.values() if ages is not None}
    if len(known_ages) > 1:
        raise ValueError("Setting matrices are indexed by different ages")
    ages = known_ages.pop() if known_ages else None

    contributions = {}
    if transmission_probabilities is None:
        probabilities = arrays
        composite = combine_settings(probabilities)
    else:
        missing = [name for name in arrays if name not in transmission_probabilities]
        if missing:
            raise ValueError(f"No transmission probabilities given for settings {missing}")
        probabilities = {
            name: _align_probabilities(name, transmission_probabilities[name], arrays[name], ages)
            for name in arrays
        }
        composite = combine_settings(probabilities, contacts=arrays)
        contributions = {
            name: _rebin(arrays[name] * probabilities[name], ages, population, breaks)
            for name in arrays
        }

    logger.debug(
        f"Composing settings {list(arrays)} into {len(breaks) - 1} age brackets"
    )
    return TransmissionProbabilityMatrix(
        age_breaks=breaks,
        matrix=_rebin(composite, ages, population, breaks),
        settings={
            name: _rebin(matrix, ages, population, breaks)
            for name, matrix in probabilities.items()
        },
        contributions=contributions,
    )


def transmission_probabilities_from_table(
    table: pd.DataFrame,
    setting_map: Mapping[str, tuple[str, ...]] = EYRE_SETTING_MAP,
    setting_col: str = "setting",
    case_col: str = "case_age",
    contact_col: str = "contact_age",
    probability_col: str = "probability",
) -> dict[str, ContactMatrix]:
    """Build per-setting probability matrices from a long probability table.

    Parameters
    ----------
    table : pd.DataFrame
        One row per setting, case age and contact age, e.g. the Eyre et al.
        transmission probabilities.
    setting_map : mapping of {str: tuple of str}, optional
        Source setting names mapped to the model settings they feed.
        Source settings not in the map are ignored.
    setting_col, case_col, contact_col, probability_col : str, optional
        Column names in ``table``.

    Returns
    -------
    dict of {str: ContactMatrix}
        Probability matrices indexed by case age (rows) and contact age
        (columns), keyed by model setting.

    Raises
    ------
    ValueError
        If two source settings feed the same model setting, or a source
        setting does not cover every case/contact age pair.
    """
    matrices: dict[str, ContactMatrix] = {}
    for source, frame in table.groupby(setting_col, sort=False):
        if source not in setting_map:
            logger.debug(f"Skipping unmapped transmission setting '{source}'")
            continue
        wide = frame.pivot_table(
            index=case_col, columns=contact_col, values=probability_col, aggfunc="mean"
        )
        ages = sorted(set(wide.index) | set(wide.columns))
        wide = wide.reindex(index=ages, columns=ages)
        if wide.isna().to_numpy().any():
            raise ValueError(f"Setting '{source}' does not cover every case and contact age")
        for target in setting_map[source]:
            if target in matrices:
                raise ValueError(f"Setting '{target}' is fed by more than one source setting")
            matrices[target] = ContactMatrix(ages=tuple(ages), matrix=wide.to_numpy(), setting=target)
    return matrices
