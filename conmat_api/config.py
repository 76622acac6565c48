"""Application configuration settings.

This module defines the Settings class which loads configuration from
environment variables with the CONMAT_ prefix.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden by environment variables with the
    CONMAT_ prefix (e.g., CONMAT_DEBUG=true).

    Attributes
    ----------
    app_name : str
        Application display name.
    app_version : str
        Application version string.
    debug : bool
        Enable debug mode.
    api_v1_prefix : str
        URL prefix for API v1 endpoints.
    max_matrix_size : int
        Largest number of ages (matrix rows) accepted in a request.
    default_aggregation_method : {'mean', 'sum'}
        How age_to ages are combined when a request does not say.
    """

    model_config = SettingsConfigDict(env_prefix="CONMAT_")

    app_name: str = "conmat WebAPI"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_v1_prefix: str = "/api/v1"

    # Matrix limits and defaults
    max_matrix_size: int = 200
    default_aggregation_method: Literal["mean", "sum"] = "mean"


settings = Settings()
