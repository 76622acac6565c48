import numpy as np
import pytest

from conmat_api.services.age_grid import create_age_grid
from conmat_api.services.exceptions import ModelTermMismatch
from conmat_api.services.term_prediction import (
    FittedSettingModel,
    clean_term_names,
    extract_term_names,
    pivot_longer_age_preds,
    predict_individual_terms,
    predict_setting_terms,
)
from conmat_api.utils.term_names import clean_term_name, smooth_term_names


def test_model_satisfies_interface(home_model):
    """Test that the stand-in model is recognised as a fitted model."""
    assert isinstance(home_model, FittedSettingModel)


def test_extract_term_names(home_model):
    """Test that basis suffixes are dropped and the intercept is excluded."""
    assert extract_term_names(home_model) == ["s(gam_age_offdiag)", "s(gam_age_pmax)"]


def test_smooth_term_names_keeps_first_appearance_order():
    """Test ordering and deduplication of term names."""
    names = ["s(b).1", "(Intercept)", "s(a).1", "s(b).2", "s(a).2", "x"]
    assert smooth_term_names(names) == ["s(b)", "s(a)"]


def test_clean_term_names():
    """Test removal of the smooth wrapper and age prefix."""
    assert clean_term_names(["s(gam_age_offdiag_2)", "s(gam_age_diag_prod)"]) == [
        "offdiag_2",
        "diag_prod",
    ]
    assert clean_term_name("s(work_probability)") == "work_probability"


def test_predict_individual_terms_adds_columns(home_model):
    """Test that each term gets a prediction column aligned with the grid."""
    grid = create_age_grid([0, 10, 20])
    predictions = predict_individual_terms(grid, home_model)

    assert len(predictions) == len(grid)
    assert list(predictions.columns) == list(grid.columns) + ["pred_offdiag", "pred_pmax"]
    np.testing.assert_allclose(predictions["pred_offdiag"], -0.1 * grid["gam_age_offdiag"])
    np.testing.assert_allclose(predictions["pred_pmax"], 0.01 * grid["gam_age_pmax"])


def test_predict_individual_terms_subset(home_model):
    """Test predicting a chosen term under a custom name."""
    grid = create_age_grid([1, 2])
    predictions = predict_individual_terms(
        grid, home_model, term_names=["s(gam_age_pmax)"], term_var_names=["max_age"]
    )
    assert "pred_max_age" in predictions.columns
    assert "pred_offdiag" not in predictions.columns


def test_predict_unknown_term_raises(home_model):
    """Test that a term absent from the model is rejected."""
    grid = create_age_grid([1, 2])
    with pytest.raises(ModelTermMismatch, match="s\\(gam_age_pmin\\)"):
        predict_individual_terms(grid, home_model, term_names=["s(gam_age_pmin)"])


def test_predict_mismatched_name_lengths(home_model):
    """Test that term and cleaned name lists must align."""
    grid = create_age_grid([1, 2])
    with pytest.raises(ValueError, match="cleaned names"):
        predict_individual_terms(
            grid, home_model, term_names=["s(gam_age_pmax)"], term_var_names=["a", "b"]
        )


def test_predict_setting_terms_stacks_settings(home_model, school_model):
    """Test predictions for several settings stacked with a setting column."""
    grid = create_age_grid([5, 6], school_fraction={5: 1.0, 6: 1.0})
    predictions = predict_setting_terms({"home": home_model, "school": school_model}, grid)

    assert predictions.columns[0] == "setting"
    assert len(predictions) == 2 * len(grid)
    assert predictions.groupby("setting").size().to_dict() == {"home": 4, "school": 4}
    home = predictions[predictions["setting"] == "home"]
    assert home["pred_pmin"].isna().all()


def test_pivot_longer_age_preds(home_model):
    """Test the long form has one row per age pair and term."""
    grid = create_age_grid([1, 2, 3])
    long = pivot_longer_age_preds(predict_individual_terms(grid, home_model))

    assert len(long) == len(grid) * 2
    assert set(long["pred"]) == {"offdiag", "pmax"}
    assert "value" in long.columns
