"""Per-term predictions from fitted setting models.

A fitted setting model is any object exposing its coefficient names and a
term-wise prediction on the link scale, so GAM, GLM or test doubles can all
be used interchangeably.
"""

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

import numpy as np
import pandas as pd

from ..utils.term_names import (
    PREDICTION_PREFIX,
    clean_term_name,
    prediction_column,
    smooth_term_names,
)
from .exceptions import ModelTermMismatch

logger = logging.getLogger(__name__)


@runtime_checkable
class FittedSettingModel(Protocol):
    """Interface of a contact model fitted for a single setting."""

    @property
    def coefficients(self) -> Mapping[str, float]:
        """Coefficient values keyed by coefficient name."""
        ...

    def predict_term(self, data: pd.DataFrame, term: str) -> np.ndarray:
        """Predict the contribution of one term, on the link scale, per row of ``data``."""
        ...


def extract_term_names(fit: FittedSettingModel) -> list[str]:
    """Extract the smoothing term names of a fitted model.

    Parameters
    ----------
    fit : FittedSettingModel
        Fitted model for one setting, e.g. home.

    Returns
    -------
    list of str
        Term names such as ``'s(gam_age_offdiag)'``.
    """
    return smooth_term_names(fit.coefficients.keys())


def clean_term_names(term_names: list[str]) -> list[str]:
    """Clean term names for use as column names, e.g. 's(gam_age_pmax)' -> 'pmax'."""
    return [clean_term_name(term) for term in term_names]


def predict_individual_terms(
    age_grid: pd.DataFrame,
    fit: FittedSettingModel,
    term_names: list[str] | None = None,
    term_var_names: list[str] | None = None,
) -> pd.DataFrame:
    """Predict each model term separately over an age grid.

    Parameters
    ----------
    age_grid : pd.DataFrame
        Grid of ages from :func:`~conmat_api.services.age_grid.create_age_grid`.
    fit : FittedSettingModel
        Fitted model for one setting.
    term_names : list of str, optional
        Terms to predict. Defaults to every smoothing term of ``fit``.
    term_var_names : list of str, optional
        Cleaned names used for the ``pred_<name>`` columns. Defaults to
        :func:`clean_term_names` applied to ``term_names``.

    Returns
    -------
    pd.DataFrame
        ``age_grid`` with one ``pred_<name>`` column of link-scale
        predictions per term, rows in the same order.

    Raises
    ------
    ModelTermMismatch
        If a requested term is not one of the model's smoothing terms.
    ValueError
        If the name lists differ in length, or the model returns the wrong
        number of predictions.
    """
    available = extract_term_names(fit)
    if term_names is None:
        term_names = available
    if term_var_names is None:
        term_var_names = clean_term_names(term_names)
    if len(term_names) != len(term_var_names):
        raise ValueError(
            f"Got {len(term_names)} term names but {len(term_var_names)} cleaned names"
        )

    predicted = {}
    for term_name, term_var_name in zip(term_names, term_var_names):
        if term_name not in available:
            raise ModelTermMismatch(term_name, available)
        values = np.asarray(fit.predict_term(age_grid, term_name), dtype=float).ravel()
        if len(values) != len(age_grid):
            raise ValueError(
                f"Model returned {len(values)} predictions for term '{term_name}', "
                f"expected {len(age_grid)}"
            )
        predicted[prediction_column(term_var_name)] = values

    logger.debug(f"Predicted terms {term_names} over {len(age_grid)} age pairs")
    return age_grid.assign(**predicted)


def predict_setting_terms(
    models: Mapping[str, FittedSettingModel],
    age_grid: pd.DataFrame,
) -> pd.DataFrame:
    """Predict individual terms for several settings and stack the results.

    Parameters
    ----------
    models : mapping of {str: FittedSettingModel}
        Fitted models keyed by setting name (home, work, school, other).
    age_grid : pd.DataFrame
        Grid of ages to predict over.

    Returns
    -------
    pd.DataFrame
        Predictions for every setting with a leading ``setting`` column.
        Terms a setting's model does not have are left missing.
    """
    frames = [
        predict_individual_terms(age_grid, fit).assign(setting=setting)
        for setting, fit in models.items()
    ]
    stacked = pd.concat(frames, ignore_index=True)
    return stacked[["setting"] + [c for c in stacked.columns if c != "setting"]]


def pivot_longer_age_preds(age_predictions: pd.DataFrame) -> pd.DataFrame:
    """Reshape term predictions to one row per age pair and term.

    Parameters
    ----------
    age_predictions : pd.DataFrame
        Output of :func:`predict_individual_terms`.

    Returns
    -------
    pd.DataFrame
        The non-prediction columns plus ``pred`` (cleaned term name) and
        ``value`` columns.
    """
    pred_cols = [c for c in age_predictions.columns if c.startswith(PREDICTION_PREFIX)]
    id_cols = [c for c in age_predictions.columns if c not in pred_cols]
    long = age_predictions.melt(
        id_vars=id_cols, value_vars=pred_cols, var_name="pred", value_name="value"
    )
    long["pred"] = long["pred"].str.removeprefix(PREDICTION_PREFIX)
    return long
