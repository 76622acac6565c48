"""Contact matrix API endpoints.

This module provides endpoints for building the age feature grid and for
rebinning contact matrices into age brackets.
"""

from fastapi import APIRouter, HTTPException

from ....services import contact_service
from ....services.exceptions import ConmatError
from ..schemas.common import ErrorResponse
from ..schemas.contacts import (
    AgeGridRequest,
    AgeGridResponse,
    AggregateRequest,
    ContactMatrixResponse,
)

router = APIRouter()


@router.post(
    "/age-grid",
    response_model=AgeGridResponse,
    summary="Build age feature grid",
    description="Get every age pair with the covariates used by the contact models.",
    responses={413: {"model": ErrorResponse, "description": "Too many ages"}},
)
async def create_age_grid(request: AgeGridRequest) -> AgeGridResponse:
    """Build the feature grid for a set of ages.

    Raises
    ------
    HTTPException
        413 if too many ages are requested.
    """
    try:
        return contact_service.build_age_grid(request)
    except contact_service.MatrixTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))


@router.post(
    "/aggregate",
    response_model=ContactMatrixResponse,
    summary="Aggregate contact matrix",
    description="Rebin a single-year contact matrix into age brackets using population weights.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        413: {"model": ErrorResponse, "description": "Matrix too large"},
        422: {"model": ErrorResponse, "description": "Bracket without population weight"},
        500: {"model": ErrorResponse, "description": "Aggregation failed"},
    },
)
async def aggregate_contact_matrix(request: AggregateRequest) -> ContactMatrixResponse:
    """Rebin a contact matrix into age brackets.

    Parameters
    ----------
    request : AggregateRequest
        Single-year matrix, ages, population and target age breaks.

    Returns
    -------
    ContactMatrixResponse
        Aggregated matrix labelled by age bracket.

    Raises
    ------
    HTTPException
        413 if the matrix is too large, 422 if a bracket has no population
        weight, 400 for other input errors, 500 if aggregation fails.
    """
    try:
        return contact_service.aggregate_contacts(request)
    except contact_service.MatrixTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ConmatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Aggregation failed: {str(e)}")
