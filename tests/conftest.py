import numpy as np
import pandas as pd
import pytest
from fastapi.testclient import TestClient

from conmat_api.main import app


class LinearTermModel:
    """Stand-in for a fitted setting model with linear smoothing terms.

    Each term's link-scale contribution is ``slope * feature``.
    """

    def __init__(self, slopes: dict[str, float]):
        self.slopes = slopes

    @property
    def coefficients(self):
        coefs = {"(Intercept)": 0.0}
        for term, slope in self.slopes.items():
            for basis in range(1, 4):
                coefs[f"{term}.{basis}"] = slope
        return coefs

    def predict_term(self, data: pd.DataFrame, term: str) -> np.ndarray:
        feature = term.removeprefix("s(").removesuffix(")")
        return self.slopes[term] * data[feature].to_numpy()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def home_model():
    return LinearTermModel({"s(gam_age_offdiag)": -0.1, "s(gam_age_pmax)": 0.01})


@pytest.fixture
def school_model():
    return LinearTermModel(
        {
            "s(gam_age_offdiag)": -0.2,
            "s(gam_age_pmin)": -0.05,
            "s(school_probability)": 1.5,
        }
    )
