"""Utilities for validating age breaks and assigning ages to brackets."""

import math

import numpy as np


def validate_age_breaks(age_breaks) -> tuple[float, ...]:
    """Check that age breaks are usable as bracket boundaries.

    Parameters
    ----------
    age_breaks : sequence of float
        Bracket boundaries. The last element may be ``math.inf`` to make the
        top bracket open-ended.

    Returns
    -------
    tuple of float
        The breaks as floats.

    Raises
    ------
    ValueError
        If fewer than two breaks are given, any break is NaN, or the breaks
        are not strictly increasing.
    """
    breaks = tuple(float(b) for b in age_breaks)
    if len(breaks) < 2:
        raise ValueError("age_breaks must contain at least two values")
    if any(math.isnan(b) for b in breaks):
        raise ValueError("age_breaks must not contain NaN")
    if any(lo >= hi for lo, hi in zip(breaks, breaks[1:])):
        raise ValueError(f"age_breaks must be strictly increasing, got {list(breaks)}")
    return breaks


def _format_break(value: float) -> str:
    if math.isinf(value):
        return "Inf"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def age_bracket_labels(age_breaks) -> list[str]:
    """Build interval labels for each bracket.

    Brackets are closed below and open above, except the last one which is
    closed on both ends.

    Examples
    --------
    >>> age_bracket_labels([0, 10, 20, float("inf")])
    ['[0,10)', '[10,20)', '[20,Inf]']
    """
    breaks = validate_age_breaks(age_breaks)
    labels = []
    for i, (lo, hi) in enumerate(zip(breaks, breaks[1:])):
        closing = "]" if i == len(breaks) - 2 else ")"
        labels.append(f"[{_format_break(lo)},{_format_break(hi)}{closing}")
    return labels


def assign_age_brackets(ages, age_breaks) -> np.ndarray:
    """Map each age to the index of the bracket containing it.

    Parameters
    ----------
    ages : array-like of float
        Ages to assign.
    age_breaks : sequence of float
        Bracket boundaries, see :func:`validate_age_breaks`.

    Returns
    -------
    np.ndarray
        Integer bracket index per age, or -1 where the age falls outside
        every bracket.
    """
    breaks = np.asarray(validate_age_breaks(age_breaks))
    ages = np.asarray(ages, dtype=float)
    n_brackets = len(breaks) - 1

    index = np.searchsorted(breaks, ages, side="right") - 1
    # The top boundary belongs to the last bracket
    index[ages == breaks[-1]] = n_brackets - 1
    index[(ages < breaks[0]) | (ages > breaks[-1]) | np.isnan(ages)] = -1
    return index
