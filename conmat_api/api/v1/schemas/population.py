"""Population-related schema definitions.

This module defines Pydantic models for population input records and the
populations built from them.
"""

from pydantic import BaseModel, Field


class PopulationRecord(BaseModel):
    """A single row of population input.

    Attributes
    ----------
    age : float
        Age in years.
    population : float
        Number of people of that age.
    group : str or None
        Optional grouping key (e.g., state or local government area).
    """

    age: float = Field(..., ge=0, description="Age in years")
    population: float = Field(..., ge=0, description="Number of people of this age")
    group: str | None = Field(default=None, description="Optional grouping key")


class PopulationRequest(BaseModel):
    """Request to build populations from records.

    Attributes
    ----------
    records : list of PopulationRecord
        Population rows. When any record has a group, one population is
        built per group.
    """

    records: list[PopulationRecord] = Field(..., min_length=1)


class PopulationEntry(BaseModel):
    """Population count for one age.

    Attributes
    ----------
    age : float
        Age in years.
    population : float
        Population count at this age.
    """

    age: float
    population: float


class PopulationDetail(BaseModel):
    """A population built from input records.

    Attributes
    ----------
    group : str or None
        Grouping key, or None for ungrouped input.
    total_population : float
        Sum of all population counts.
    entries : list of PopulationEntry
        Population by age, in input order.
    """

    group: str | None = None
    total_population: float
    entries: list[PopulationEntry]


class PopulationListResponse(BaseModel):
    """Response listing the populations built from a request.

    Attributes
    ----------
    populations : list of PopulationDetail
        One population per group (a single one for ungrouped input).
    total : int
        Number of populations.
    """

    populations: list[PopulationDetail]
    total: int
