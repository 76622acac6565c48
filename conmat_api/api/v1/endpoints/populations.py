"""Population API endpoints.

This module provides the endpoint for building population data from
age and population records.
"""

from fastapi import APIRouter, HTTPException

from ....services import contact_service
from ....services.exceptions import ConmatError
from ..schemas.common import ErrorResponse
from ..schemas.population import PopulationListResponse, PopulationRequest

router = APIRouter()


@router.post(
    "",
    response_model=PopulationListResponse,
    summary="Build populations",
    description="Validate age and population records and build one population per group.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        422: {"model": ErrorResponse, "description": "Invalid population data"},
        500: {"model": ErrorResponse, "description": "Building populations failed"},
    },
)
async def create_populations(request: PopulationRequest) -> PopulationListResponse:
    """Build populations from records.

    Parameters
    ----------
    request : PopulationRequest
        Age and population records, optionally grouped.

    Returns
    -------
    PopulationListResponse
        Populations built from the records.

    Raises
    ------
    HTTPException
        422 for invalid population data, 400 for other input errors,
        500 if building fails.
    """
    try:
        return contact_service.build_populations(request)
    except ConmatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build populations: {str(e)}")
