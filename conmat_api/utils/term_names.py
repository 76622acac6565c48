"""Utilities for parsing and cleaning model term names."""

import re

SMOOTH_PREFIX = "s("
AGE_FEATURE_PREFIX = "gam_age_"
PREDICTION_PREFIX = "pred_"

_COEFFICIENT_SUFFIX = re.compile(r"\.[^.]*$")


def strip_coefficient_suffix(name: str) -> str:
    """Remove the per-basis-function suffix from a coefficient name.

    Examples
    --------
    >>> strip_coefficient_suffix('s(gam_age_offdiag).3')
    's(gam_age_offdiag)'
    >>> strip_coefficient_suffix('(Intercept)')
    '(Intercept)'
    """
    return _COEFFICIENT_SUFFIX.sub("", name)


def smooth_term_names(coefficient_names) -> list[str]:
    """Collapse coefficient names into the unique smoothing terms they belong to.

    Order of first appearance is kept. Parametric terms such as the
    intercept are dropped.

    Examples
    --------
    >>> smooth_term_names(['(Intercept)', 's(gam_age_pmax).1', 's(gam_age_pmax).2'])
    ['s(gam_age_pmax)']
    """
    terms = dict.fromkeys(strip_coefficient_suffix(name) for name in coefficient_names)
    return [term for term in terms if term.startswith(SMOOTH_PREFIX)]


def clean_term_name(term: str) -> str:
    """Strip the smooth wrapper and age feature prefix from a term name.

    Examples
    --------
    >>> clean_term_name('s(gam_age_offdiag_2)')
    'offdiag_2'
    >>> clean_term_name('s(school_probability)')
    'school_probability'
    """
    name = term
    if name.startswith(SMOOTH_PREFIX):
        name = name[len(SMOOTH_PREFIX) :]
    if name.startswith(AGE_FEATURE_PREFIX):
        name = name[len(AGE_FEATURE_PREFIX) :]
    return name.replace(")", "")


def prediction_column(term_var_name: str) -> str:
    """Name of the column holding predictions for a cleaned term name."""
    return f"{PREDICTION_PREFIX}{term_var_name}"
