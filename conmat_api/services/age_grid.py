"""Feature grid construction for contact model prediction.

The contact models are fitted on six symmetric transformations of the ages
of the two people in contact. This module builds the grid of every
(age_from, age_to) pair for a set of ages and derives those covariates, plus
the optional school and work attendance covariates used by the school and
work setting models.
"""

import logging
from collections.abc import Mapping, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SYMMETRICAL_FEATURES = [
    "gam_age_offdiag",
    "gam_age_offdiag_2",
    "gam_age_diag_prod",
    "gam_age_diag_sum",
    "gam_age_pmax",
    "gam_age_pmin",
]

ATTENDANCE_FEATURES = ["school_probability", "work_probability"]


def add_symmetrical_features(frame: pd.DataFrame) -> pd.DataFrame:
    """Add the six symmetric age covariates to a table of age pairs.

    Parameters
    ----------
    frame : pd.DataFrame
        Table with numeric ``age_from`` and ``age_to`` columns.

    Returns
    -------
    pd.DataFrame
        Copy of ``frame`` with ``gam_age_offdiag`` (|i - j|),
        ``gam_age_offdiag_2`` (|i - j|^2), ``gam_age_diag_prod`` (|i * j|),
        ``gam_age_diag_sum`` (|i + j|), ``gam_age_pmax`` (max(i, j)) and
        ``gam_age_pmin`` (min(i, j)) columns.
    """
    age_from = frame["age_from"].to_numpy(dtype=float)
    age_to = frame["age_to"].to_numpy(dtype=float)
    offdiag = np.abs(age_from - age_to)

    return frame.assign(
        gam_age_offdiag=offdiag,
        gam_age_offdiag_2=offdiag**2,
        gam_age_diag_prod=np.abs(age_from * age_to),
        gam_age_diag_sum=np.abs(age_from + age_to),
        gam_age_pmax=np.maximum(age_from, age_to),
        gam_age_pmin=np.minimum(age_from, age_to),
    )


def attendance_fraction_by_age(
    table: pd.DataFrame,
    numerator: str,
    denominator: str,
    age_col: str = "age",
) -> pd.Series:
    """Compute the fraction of people attending school or work at each age.

    Rows are summed per age first, so tables split by state, region or
    labour force status can be passed directly.

    Parameters
    ----------
    table : pd.DataFrame
        Table with an age column and count columns, e.g. ABS education data
        with ``population_educated`` and ``total_population``.
    numerator : str
        Column counting people attending (educated, employed).
    denominator : str
        Column counting everyone of that age.
    age_col : str, optional
        Age column name. Default is 'age'.

    Returns
    -------
    pd.Series
        Fraction attending, indexed by age. Ages with an empty denominator
        get a fraction of 0.
    """
    totals = table.groupby(age_col, sort=True)[[numerator, denominator]].sum()
    denom = totals[denominator].to_numpy(dtype=float)
    fraction = np.divide(
        totals[numerator].to_numpy(dtype=float),
        denom,
        out=np.zeros_like(denom),
        where=denom > 0,
    )
    return pd.Series(fraction, index=totals.index, name="fraction")


def _lookup_fraction(ages: np.ndarray, fraction: Mapping | pd.Series) -> np.ndarray:
    lookup = pd.Series(fraction, dtype=float)
    lookup.index = lookup.index.astype(float)
    return lookup.reindex(ages).fillna(0.0).to_numpy()


def add_attendance_features(
    frame: pd.DataFrame,
    school_fraction: Mapping | pd.Series | None = None,
    work_fraction: Mapping | pd.Series | None = None,
) -> pd.DataFrame:
    """Add school and work attendance covariates to a table of age pairs.

    Each covariate is the probability that both people attend the same kind
    of place, ``fraction(age_from) * fraction(age_to)``. Ages missing from a
    fraction table are treated as not attending.

    Parameters
    ----------
    frame : pd.DataFrame
        Table with ``age_from`` and ``age_to`` columns.
    school_fraction : mapping or pd.Series, optional
        Fraction of each age attending school.
    work_fraction : mapping or pd.Series, optional
        Fraction of each age in work.

    Returns
    -------
    pd.DataFrame
        Copy of ``frame`` with ``school_probability`` and/or
        ``work_probability`` columns.
    """
    age_from = frame["age_from"].to_numpy(dtype=float)
    age_to = frame["age_to"].to_numpy(dtype=float)
    features = {}
    if school_fraction is not None:
        features["school_probability"] = _lookup_fraction(
            age_from, school_fraction
        ) * _lookup_fraction(age_to, school_fraction)
    if work_fraction is not None:
        features["work_probability"] = _lookup_fraction(
            age_from, work_fraction
        ) * _lookup_fraction(age_to, work_fraction)
    return frame.assign(**features)


def create_age_grid(
    ages: Sequence[float],
    school_fraction: Mapping | pd.Series | None = None,
    work_fraction: Mapping | pd.Series | None = None,
) -> pd.DataFrame:
    """Create the grid of age pairs used to predict from a contact model.

    The grid is the full cross product of ``ages`` with itself, enumerated
    with ``age_from`` varying fastest: row ``j * n + i`` holds
    ``(ages[i], ages[j])``. Duplicate ages are kept.

    Parameters
    ----------
    ages : sequence of float
        Ages to predict for, e.g. ``range(0, 100)``.
    school_fraction, work_fraction : mapping or pd.Series, optional
        Attendance fractions by age; when given the matching attendance
        covariate is added (see :func:`add_attendance_features`).

    Returns
    -------
    pd.DataFrame
        ``len(ages) ** 2`` rows with ``age_from``, ``age_to`` and the model
        covariates.
    """
    ages = np.asarray(ages, dtype=float)
    n = len(ages)
    grid = pd.DataFrame({"age_from": np.tile(ages, n), "age_to": np.repeat(ages, n)})
    grid = add_symmetrical_features(grid)
    if school_fraction is not None or work_fraction is not None:
        grid = add_attendance_features(grid, school_fraction, work_fraction)

    logger.debug(f"Created age grid with {len(grid)} rows for {n} ages")
    return grid
