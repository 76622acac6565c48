"""Reconstruction of contact matrices from additive term predictions.

The contact models use a log link, so the contact rate for an age pair is
the exponential of the sum of every term's link-scale contribution.
"""

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd

from ..utils.term_names import PREDICTION_PREFIX, prediction_column
from .age_grid import create_age_grid
from .exceptions import IncompleteTermSet
from .matrices import ContactMatrix
from .term_prediction import FittedSettingModel, pivot_longer_age_preds, predict_individual_terms

logger = logging.getLogger(__name__)

AGE_KEYS = ["age_from", "age_to"]


def _is_long(predictions: pd.DataFrame) -> bool:
    return {"pred", "value"}.issubset(predictions.columns)


def _check_long_terms(long: pd.DataFrame, term_var_names: list[str] | None) -> pd.DataFrame:
    present = list(dict.fromkeys(long["pred"]))
    expected = present if term_var_names is None else list(term_var_names)
    missing = [term for term in expected if term not in present]
    if missing or not expected:
        raise IncompleteTermSet(missing or ["any predicted term"])

    long = long[long["pred"].isin(expected)]
    terms_per_pair = long.dropna(subset=["value"]).groupby(AGE_KEYS)["pred"].nunique()
    if (terms_per_pair < len(expected)).any() or long["value"].isna().any():
        incomplete = long[long["value"].isna()]["pred"].unique().tolist()
        raise IncompleteTermSet(incomplete or expected)
    return long


def _wide_to_long(predictions: pd.DataFrame, term_var_names: list[str] | None) -> pd.DataFrame:
    if term_var_names is None:
        pred_cols = [c for c in predictions.columns if c.startswith(PREDICTION_PREFIX)]
    else:
        pred_cols = [prediction_column(name) for name in term_var_names]
    missing = [c for c in pred_cols if c not in predictions.columns]
    if missing or not pred_cols:
        raise IncompleteTermSet(missing or [f"{PREDICTION_PREFIX}*"])

    with_gaps = [c for c in pred_cols if predictions[c].isna().any()]
    if with_gaps:
        raise IncompleteTermSet(with_gaps)

    return pivot_longer_age_preds(predictions[AGE_KEYS + pred_cols])


def add_age_partial_sum(age_predictions_long: pd.DataFrame) -> pd.DataFrame:
    """Sum term contributions per age pair and back-transform to contact rates.

    Parameters
    ----------
    age_predictions_long : pd.DataFrame
        Long table with ``age_from``, ``age_to`` and ``value`` columns, as
        returned by
        :func:`~conmat_api.services.term_prediction.pivot_longer_age_preds`.

    Returns
    -------
    pd.DataFrame
        One row per (age_from, age_to) with ``gam_total_term`` holding
        ``exp(sum(value))``.
    """
    summed = age_predictions_long.groupby(AGE_KEYS, sort=True)["value"].sum()
    return summed.apply(np.exp).rename("gam_total_term").reset_index()


def reconstruct_contact_matrix(
    predictions: pd.DataFrame,
    term_var_names: Sequence[str] | None = None,
    setting: str | None = None,
) -> ContactMatrix:
    """Build a contact matrix from per-term predictions.

    Parameters
    ----------
    predictions : pd.DataFrame
        Term predictions either wide (``pred_<name>`` columns, from
        :func:`~conmat_api.services.term_prediction.predict_individual_terms`)
        or long (``pred`` and ``value`` columns).
    term_var_names : sequence of str, optional
        Cleaned names of the terms that must be present. Defaults to every
        term found in ``predictions``.
    setting : str, optional
        Setting name recorded on the returned matrix.

    Returns
    -------
    ContactMatrix
        Matrix over the sorted unique ages with
        ``matrix[age_from, age_to] = exp(sum of terms)``.

    Raises
    ------
    IncompleteTermSet
        If an expected term is missing or has no value for some age pair.
    ValueError
        If the age pairs do not form a full cross product.
    """
    names = None if term_var_names is None else list(term_var_names)
    if _is_long(predictions):
        long = _check_long_terms(predictions, names)
    else:
        long = _wide_to_long(predictions, names)

    rates = add_age_partial_sum(long).pivot(
        index="age_from", columns="age_to", values="gam_total_term"
    )
    ages = sorted(set(rates.index) | set(rates.columns))
    rates = rates.reindex(index=ages, columns=ages)
    if rates.isna().to_numpy().any():
        raise ValueError("Age pairs in predictions do not cover every (age_from, age_to) pair")

    logger.debug(f"Reconstructed {len(ages)}x{len(ages)} contact matrix for setting {setting}")
    return ContactMatrix(ages=tuple(ages), matrix=rates.to_numpy(), setting=setting)


def predict_contact_matrix(
    fit: FittedSettingModel,
    ages: Sequence[float],
    setting: str | None = None,
    **attendance,
) -> ContactMatrix:
    """Predict a setting's contact matrix for arbitrary ages.

    Runs grid construction, per-term prediction and reconstruction in one
    step. Keyword arguments ``school_fraction`` and ``work_fraction`` are
    passed to :func:`~conmat_api.services.age_grid.create_age_grid`.
    """
    age_grid = create_age_grid(ages, **attendance)
    predictions = predict_individual_terms(age_grid, fit)
    return reconstruct_contact_matrix(predictions, setting=setting)
