"""Common schema definitions used across the API.

This module defines shared request and response schemas used by multiple
endpoints.
"""

from pydantic import BaseModel, Field, field_validator


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Attributes
    ----------
    detail : str
        Human-readable error message.
    """

    detail: str


class HealthResponse(BaseModel):
    """Health check response schema.

    Attributes
    ----------
    status : str
        Health status (e.g., 'healthy').
    version : str
        API version string.
    numpy_version : str
        Version of numpy used for matrix computations.
    """

    status: str
    version: str
    numpy_version: str


class AgeBreaksConfig(BaseModel):
    """Age bracket boundaries for a request.

    JSON cannot carry infinity, so an open-ended top bracket is requested
    with ``open_ended`` instead of a trailing infinite break.

    Attributes
    ----------
    age_breaks : list of float
        Strictly increasing bracket boundaries.
    open_ended : bool
        Append an infinite upper boundary so the last bracket has no
        maximum age.
    """

    age_breaks: list[float] = Field(
        ..., min_length=1, description="Strictly increasing bracket boundaries"
    )
    open_ended: bool = Field(
        default=True, description="Make the last bracket open-ended (append Inf)"
    )

    @field_validator("age_breaks")
    @classmethod
    def validate_increasing(cls, value: list[float]) -> list[float]:
        """Validate that the breaks are strictly increasing."""
        if any(lo >= hi for lo, hi in zip(value, value[1:])):
            raise ValueError("age_breaks must be strictly increasing")
        return value

    def resolved_breaks(self) -> list[float]:
        """Return the breaks with the infinite upper bound when open-ended."""
        return [*self.age_breaks, float("inf")] if self.open_ended else list(self.age_breaks)
