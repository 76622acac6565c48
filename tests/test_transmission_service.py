import math

import numpy as np
import pandas as pd
import pytest

from conmat_api.services.exceptions import DimensionMismatch, UndefinedAggregate
from conmat_api.services.matrices import ContactMatrix, TransmissionProbabilityMatrix
from conmat_api.services.aggregation import aggregate_contact_matrix
from conmat_api.services.population_service import Population
from conmat_api.services.transmission_service import (
    combine_settings,
    transmission_probabilities_from_table,
    transmission_probability_matrix,
)

DECADE_BREAKS = [*range(0, 90, 10), math.inf]


def test_constant_settings_keep_constant():
    """Test two constant 9x9 settings with ten-year breaks."""
    home = np.full((9, 9), 0.05)
    work = np.full((9, 9), 0.05)

    result = transmission_probability_matrix(home=home, work=work, age_breaks=DECADE_BREAKS)

    assert isinstance(result, TransmissionProbabilityMatrix)
    assert result.shape == (9, 9)
    np.testing.assert_allclose(result.matrix, 0.05)
    assert result.setting_names == ["home", "work"]
    assert result.age_groups[0] == "[0,10)"
    assert result.age_groups[-1] == "[80,Inf]"
    assert result.age_breaks[-1] == math.inf


def test_positional_settings_are_named_in_order():
    """Test that positional matrices get positional setting names."""
    result = transmission_probability_matrix(
        np.full((2, 2), 0.1), np.full((2, 2), 0.3), age_breaks=[0, 10, math.inf]
    )
    assert result.setting_names == ["setting_1", "setting_2"]
    np.testing.assert_allclose(result["setting_2"], 0.3)
    np.testing.assert_allclose(result.matrix, 0.2)


def test_single_setting_matches_rebinned_matrix():
    """Test that one setting without probabilities is just rebinned."""
    rng = np.random.default_rng(1)
    contact_matrix = ContactMatrix(ages=range(20), matrix=rng.uniform(0, 2, (20, 20)))
    population = Population(ages=range(20), population=rng.integers(1, 100, 20))
    breaks = [0, 5, 10, math.inf]

    result = transmission_probability_matrix(
        home=contact_matrix, age_breaks=breaks, population=population
    )
    expected = aggregate_contact_matrix(contact_matrix, population, breaks)

    np.testing.assert_allclose(result.matrix, expected.matrix)
    np.testing.assert_allclose(result["home"], expected.matrix)


def test_mismatched_dimensions_raise():
    """Test that settings must share a shape."""
    with pytest.raises(DimensionMismatch, match="home"):
        transmission_probability_matrix(
            home=np.ones((3, 3)), work=np.ones((4, 4)), age_breaks=[0, 1, 2, 3]
        )


def test_no_settings_raise():
    """Test that at least one setting is required."""
    with pytest.raises(ValueError, match="At least one"):
        transmission_probability_matrix(age_breaks=[0, 1])


def test_rebinning_needs_population():
    """Test that single-year matrices need a population to rebin."""
    contact_matrix = ContactMatrix(ages=range(4), matrix=np.ones((4, 4)))
    with pytest.raises(ValueError, match="population is required"):
        transmission_probability_matrix(home=contact_matrix, age_breaks=[0, 2, math.inf])


def test_rebinning_needs_ages():
    """Test that plain arrays can only be used at bracket resolution."""
    with pytest.raises(ValueError, match="brackets"):
        transmission_probability_matrix(home=np.ones((4, 4)), age_breaks=[0, 2, math.inf])


def test_probabilities_are_contact_weighted():
    """Test combining contacts with setting transmission probabilities."""
    home = np.array([[3.0, 0.0], [1.0, 1.0]])
    work = np.array([[1.0, 0.0], [1.0, 3.0]])
    probabilities = {"home": np.full((2, 2), 0.2), "work": np.full((2, 2), 0.6)}

    result = transmission_probability_matrix(
        home=home,
        work=work,
        age_breaks=[0, 10, math.inf],
        transmission_probabilities=probabilities,
    )

    expected = np.array([[0.3, 0.0], [0.4, 0.5]])
    np.testing.assert_allclose(result.matrix, expected)
    np.testing.assert_allclose(result["work"], 0.6)


def test_missing_probabilities_raise():
    """Test that every setting needs transmission probabilities."""
    with pytest.raises(ValueError, match="work"):
        transmission_probability_matrix(
            home=np.ones((2, 2)),
            work=np.ones((2, 2)),
            age_breaks=[0, 1, 2],
            transmission_probabilities={"home": np.ones((2, 2))},
        )


def test_probability_shape_must_match():
    """Test that probabilities have the same shape as contacts."""
    with pytest.raises(DimensionMismatch):
        transmission_probability_matrix(
            home=np.ones((2, 2)),
            age_breaks=[0, 1, 2],
            transmission_probabilities={"home": np.ones((3, 3))},
        )


def test_combine_settings_without_contacts_is_mean():
    """Test equal weighting when no contacts are given."""
    combined = combine_settings({"a": np.zeros((2, 2)), "b": np.ones((2, 2))})
    np.testing.assert_allclose(combined, 0.5)


def test_probabilities_from_table():
    """Test building setting probability matrices from a long table."""
    rows = []
    for setting, probability in [("household", 0.2), ("work_education", 0.1), ("other", 0.9)]:
        for case_age in (0, 5):
            for contact_age in (0, 5):
                rows.append((setting, case_age, contact_age, probability))
    table = pd.DataFrame(rows, columns=["setting", "case_age", "contact_age", "probability"])

    matrices = transmission_probabilities_from_table(table)

    assert set(matrices) == {"home", "work", "school"}
    np.testing.assert_allclose(matrices["home"].matrix, 0.2)
    np.testing.assert_allclose(matrices["school"].matrix, 0.1)
    assert matrices["work"].ages == (0.0, 5.0)


def test_probabilities_from_table_feeds_composer():
    """Test using table probabilities with single-year contact matrices."""
    ages = range(4)
    table = pd.DataFrame(
        [("household", a, b, 0.25) for a in ages for b in ages],
        columns=["setting", "case_age", "contact_age", "probability"],
    )
    probabilities = transmission_probabilities_from_table(table)
    home = ContactMatrix(ages=ages, matrix=np.full((4, 4), 2.0))
    population = Population(ages=ages, population=[1, 2, 3, 4])

    result = transmission_probability_matrix(
        home=home,
        age_breaks=[0, 2, math.inf],
        population=population,
        transmission_probabilities=probabilities,
    )

    np.testing.assert_allclose(result.matrix, 0.25)
    assert result.age_groups == ("[0,2)", "[2,Inf]")


def test_dataframe_settings_are_rebinned_by_index():
    """Test that age-indexed DataFrames carry their ages for rebinning."""
    home = ContactMatrix(ages=range(4), matrix=np.full((4, 4), 0.3)).to_frame()
    population = Population(ages=range(4), population=[1, 1, 1, 1])

    result = transmission_probability_matrix(
        home, age_breaks=[0, 2, math.inf], population=population
    )

    assert list(home.index) == [0.0, 1.0, 2.0, 3.0]
    np.testing.assert_allclose(result.matrix, 0.3)
    frame = result.to_frame("setting_1")
    assert frame.index.name == "case_age"
    assert list(frame.columns) == ["[0,2)", "[2,Inf]"]


def test_single_year_matrix_with_bracket_count_is_still_rebinned():
    """Test that a single-year matrix is rebinned even when its size matches the brackets."""
    home = ContactMatrix(ages=range(9), matrix=np.arange(81.0).reshape(9, 9))
    population = Population(ages=range(9), population=[1] * 9)

    with pytest.raises(UndefinedAggregate, match=r"\[10,20\)"):
        transmission_probability_matrix(
            home=home, age_breaks=DECADE_BREAKS, population=population
        )


def test_bracket_indexed_matrix_needs_no_population():
    """Test that a matrix indexed by bracket lower bounds is used as is."""
    home = ContactMatrix(ages=[0, 10, 20], matrix=np.arange(9.0).reshape(3, 3))

    result = transmission_probability_matrix(home=home, age_breaks=[0, 10, 20, math.inf])

    np.testing.assert_allclose(result.matrix, home.matrix)


def test_probabilities_must_cover_contact_ages():
    """Test that probabilities over other ages are not applied by position."""
    home = ContactMatrix(ages=range(4), matrix=np.ones((4, 4)))
    probabilities = {"home": ContactMatrix(ages=range(1, 5), matrix=np.full((4, 4), 0.1))}

    with pytest.raises(DimensionMismatch, match="do not cover ages"):
        transmission_probability_matrix(
            home=home,
            age_breaks=[0, 1, 2, 3, math.inf],
            transmission_probabilities=probabilities,
        )


def test_probabilities_are_reindexed_onto_contact_ages():
    """Test that probabilities over more ages are matched to the contacts by age."""
    ages = np.arange(5.0)
    probability = ContactMatrix(ages=ages, matrix=10 * ages[:, None] + ages[None, :])
    home = ContactMatrix(ages=range(4), matrix=np.full((4, 4), 2.0))

    result = transmission_probability_matrix(
        home=home,
        age_breaks=[0, 1, 2, 3, math.inf],
        transmission_probabilities={"home": probability},
    )

    expected = probability.matrix[:4, :4]
    np.testing.assert_allclose(result.matrix, expected)
    np.testing.assert_allclose(result["home"], expected)
    np.testing.assert_allclose(np.diag(result.matrix), [0.0, 11.0, 22.0, 33.0])


def test_probabilities_in_other_age_order_are_aligned():
    """Test that probability rows and columns follow the contact ages."""
    probability = ContactMatrix(
        ages=[1, 0], matrix=np.array([[0.4, 0.3], [0.2, 0.1]])
    )
    home = ContactMatrix(ages=[0, 1], matrix=np.ones((2, 2)))

    result = transmission_probability_matrix(
        home=home, age_breaks=[0, 1, math.inf], transmission_probabilities={"home": probability}
    )

    np.testing.assert_allclose(result.matrix, [[0.1, 0.2], [0.3, 0.4]])


def test_contributions_are_contacts_times_probabilities():
    """Test the per-setting contact-weighted transmission matrices."""
    home = np.array([[3.0, 0.0], [1.0, 1.0]])
    work = np.array([[1.0, 0.0], [1.0, 3.0]])
    probabilities = {"home": np.full((2, 2), 0.2), "work": np.full((2, 2), 0.6)}

    result = transmission_probability_matrix(
        home=home,
        work=work,
        age_breaks=[0, 10, math.inf],
        transmission_probabilities=probabilities,
    )

    np.testing.assert_allclose(result.contributions["home"], home * 0.2)
    np.testing.assert_allclose(result.contributions["work"], work * 0.6)
    np.testing.assert_allclose(
        result.contributions["home"] + result.contributions["work"],
        result.matrix * (home + work),
    )


def test_contributions_empty_without_probabilities():
    """Test that no contributions are reported when settings are used directly."""
    result = transmission_probability_matrix(
        home=np.full((2, 2), 0.05), age_breaks=[0, 10, math.inf]
    )

    assert result.contributions == {}
