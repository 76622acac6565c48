"""Immutable matrix values passed between pipeline stages.

A :class:`ContactMatrix` is indexed by single ages (or any ordered age
labels), while a :class:`TransmissionProbabilityMatrix` is indexed by age
brackets and keeps the breaks used to build it.
"""

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..utils.age_breaks import age_bracket_labels, validate_age_breaks


def _frozen_array(value) -> np.ndarray:
    array = np.array(value, dtype=float)
    array.setflags(write=False)
    return array


class ContactMatrix(BaseModel):
    """Square matrix of contact rates over an ordered set of ages.

    Attributes
    ----------
    ages : tuple of float
        Age labels for both rows (age_from) and columns (age_to).
    matrix : np.ndarray
        ``matrix[i, j]`` is the expected number of daily contacts an
        individual aged ``ages[i]`` has with individuals aged ``ages[j]``.
    setting : str or None
        Setting the matrix was derived for, if known.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ages: tuple[float, ...]
    matrix: np.ndarray
    setting: str | None = None

    @field_validator("ages", mode="before")
    @classmethod
    def _coerce_ages(cls, value):
        return tuple(float(age) for age in value)

    @field_validator("matrix", mode="before")
    @classmethod
    def _copy_matrix(cls, value):
        return _frozen_array(value)

    @model_validator(mode="after")
    def validate_shape(self) -> "ContactMatrix":
        """Validate that the matrix is square and matches the ages."""
        if self.matrix.ndim != 2 or self.matrix.shape[0] != self.matrix.shape[1]:
            raise ValueError(f"Contact matrix must be square, got shape {self.matrix.shape}")
        if self.matrix.shape[0] != len(self.ages):
            raise ValueError(
                f"Contact matrix has {self.matrix.shape[0]} rows but {len(self.ages)} ages"
            )
        return self

    @property
    def shape(self) -> tuple[int, int]:
        return self.matrix.shape

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, setting: str | None = None) -> "ContactMatrix":
        """Build a contact matrix from a square DataFrame indexed by age."""
        if list(frame.index) != list(frame.columns):
            raise ValueError("DataFrame index and columns must hold the same ages")
        return cls(ages=tuple(frame.index), matrix=frame.to_numpy(), setting=setting)

    def to_frame(self) -> pd.DataFrame:
        """Return the matrix as a DataFrame with age_from rows and age_to columns."""
        return pd.DataFrame(
            self.matrix,
            index=pd.Index(self.ages, name="age_from"),
            columns=pd.Index(self.ages, name="age_to"),
        )


class TransmissionProbabilityMatrix(BaseModel):
    """Transmission probabilities between age brackets.

    Attributes
    ----------
    age_breaks : tuple of float
        Bracket boundaries; the last may be infinite.
    age_groups : tuple of str
        Bracket labels matching the matrix rows and columns.
    matrix : np.ndarray
        Composite probability of transmission from a case in bracket ``i``
        to a contact in bracket ``j`` given contact.
    settings : dict of {str: np.ndarray}
        Per-setting bracket matrices the composite was built from.
    contributions : dict of {str: np.ndarray}
        Per-setting contact-weighted transmission ``C_s * P_s`` by bracket
        (who infects whom). Empty when no transmission probabilities were
        given.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    age_breaks: tuple[float, ...]
    age_groups: tuple[str, ...] = ()
    matrix: np.ndarray
    settings: dict[str, np.ndarray]
    contributions: dict[str, np.ndarray] = {}

    @model_validator(mode="before")
    @classmethod
    def _default_age_groups(cls, data):
        if isinstance(data, dict) and not data.get("age_groups") and "age_breaks" in data:
            data = {**data, "age_groups": tuple(age_bracket_labels(data["age_breaks"]))}
        return data

    @field_validator("age_breaks", mode="before")
    @classmethod
    def _validate_breaks(cls, value):
        return validate_age_breaks(value)

    @field_validator("matrix", mode="before")
    @classmethod
    def _copy_matrix(cls, value):
        return _frozen_array(value)

    @field_validator("settings", "contributions", mode="before")
    @classmethod
    def _copy_settings(cls, value):
        return {name: _frozen_array(m) for name, m in value.items()}

    @model_validator(mode="after")
    def validate_brackets(self) -> "TransmissionProbabilityMatrix":
        """Validate that every matrix has one row per age bracket."""
        n_brackets = len(self.age_breaks) - 1
        if len(self.age_groups) != n_brackets:
            raise ValueError(f"Expected {n_brackets} age group labels, got {len(self.age_groups)}")
        expected = (n_brackets, n_brackets)
        if self.matrix.shape != expected:
            raise ValueError(
                f"Transmission matrix must have shape {expected}, got {self.matrix.shape}"
            )
        for name, matrix in {**self.settings, **self.contributions}.items():
            if matrix.shape != expected:
                raise ValueError(
                    f"Setting '{name}' matrix must have shape {expected}, got {matrix.shape}"
                )
        return self

    @property
    def shape(self) -> tuple[int, int]:
        return self.matrix.shape

    @property
    def setting_names(self) -> list[str]:
        return list(self.settings)

    def __getitem__(self, setting: str) -> np.ndarray:
        return self.settings[setting]

    def to_frame(self, setting: str | None = None) -> pd.DataFrame:
        """Return the composite (or one setting's) matrix labelled by bracket."""
        matrix = self.matrix if setting is None else self.settings[setting]
        labels = list(self.age_groups)
        return pd.DataFrame(
            matrix,
            index=pd.Index(labels, name="case_age"),
            columns=pd.Index(labels, name="contact_age"),
        )
